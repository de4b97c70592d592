"""
Pytest fixtures for mixkit tests.
"""
import pytest
import sys
from pathlib import Path
import tempfile
import shutil

import numpy as np

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from mixkit.audio import Audio
from mixkit.config import get_config, set_config


@pytest.fixture
def sample_rate():
    """Standard sample rate for tests."""
    return 44100


@pytest.fixture
def temp_dir():
    """Create temporary directory for test outputs."""
    tmp = tempfile.mkdtemp()
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def rng():
    """Seeded generator for reproducible noise."""
    return np.random.default_rng(1234)


@pytest.fixture
def restore_config():
    """Put the active engine config back after a test changes it."""
    original = get_config()
    yield original
    set_config(original)


@pytest.fixture
def constant_audio():
    """Factory for audio where every sample equals one value."""
    def make(value, frames, channels=1, sample_rate=44100):
        return Audio.from_array(np.full((frames, channels), value), sample_rate=sample_rate)
    return make
