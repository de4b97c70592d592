"""
Tests for engine configuration
"""

import logging
import pytest
import sys
import numpy as np
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from mixkit.audio import Audio
from mixkit.config import (
    ConfigLoadError,
    EngineConfig,
    configure_logging,
    get_config,
    make_rng,
    set_config,
)


class TestEngineConfig:
    """Tests for the config dataclass."""

    def test_defaults(self):
        """Defaults match the documented values."""
        config = EngineConfig()
        assert config.default_sample_rate == 44100
        assert config.resample_window == ("kaiser", 5.0)
        assert config.seed is None
        assert config.log_level == "WARNING"
        assert config.float_subtype == "FLOAT"

    def test_invalid_sample_rate(self):
        """A non-positive sample rate is rejected."""
        with pytest.raises(ConfigLoadError):
            EngineConfig(default_sample_rate=0)

    def test_normalization(self):
        """Window lists become tuples and levels are upper-cased."""
        config = EngineConfig(resample_window=["kaiser", 8.0], log_level="debug")
        assert config.resample_window == ("kaiser", 8.0)
        assert config.log_level == "DEBUG"

    def test_to_dict(self):
        """to_dict holds every field."""
        data = EngineConfig(seed=3).to_dict()
        assert data["seed"] == 3
        assert set(data) == {
            "default_sample_rate", "resample_window", "seed", "log_level", "float_subtype"
        }


class TestFromEnv:
    """Tests for environment loading."""

    def test_from_env(self, monkeypatch):
        """Environment variables override the defaults."""
        monkeypatch.setenv("MIXKIT_SAMPLE_RATE", "48000")
        monkeypatch.setenv("MIXKIT_SEED", "11")
        monkeypatch.setenv("MIXKIT_LOG_LEVEL", "info")
        monkeypatch.setenv("MIXKIT_SUBTYPE", "PCM_24")

        config = EngineConfig.from_env()
        assert config.default_sample_rate == 48000
        assert config.seed == 11
        assert config.log_level == "INFO"
        assert config.float_subtype == "PCM_24"

    def test_from_env_defaults(self, monkeypatch):
        """Without variables the defaults are used."""
        for name in ("MIXKIT_SAMPLE_RATE", "MIXKIT_SEED", "MIXKIT_LOG_LEVEL", "MIXKIT_SUBTYPE"):
            monkeypatch.delenv(name, raising=False)
        assert EngineConfig.from_env() == EngineConfig()


class TestFromYaml:
    """Tests for YAML loading."""

    def test_load(self, temp_dir):
        """Keys in the YAML file set the fields."""
        path = Path(temp_dir) / "engine.yaml"
        path.write_text(
            "default_sample_rate: 96000\n"
            "seed: 5\n"
            "resample_window: [kaiser, 10.0]\n"
        )
        config = EngineConfig.from_yaml(path)
        assert config.default_sample_rate == 96000
        assert config.seed == 5
        assert config.resample_window == ("kaiser", 10.0)

    def test_empty_file(self, temp_dir):
        """An empty file gives the defaults."""
        path = Path(temp_dir) / "empty.yaml"
        path.write_text("")
        assert EngineConfig.from_yaml(path) == EngineConfig()

    def test_missing_file(self, temp_dir):
        """A missing file raises ConfigLoadError."""
        with pytest.raises(ConfigLoadError):
            EngineConfig.from_yaml(Path(temp_dir) / "missing.yaml")

    def test_unknown_keys(self, temp_dir):
        """Unknown keys are reported by name."""
        path = Path(temp_dir) / "engine.yaml"
        path.write_text("sample_rate: 48000\n")
        with pytest.raises(ConfigLoadError, match="sample_rate"):
            EngineConfig.from_yaml(path)

    def test_not_a_mapping(self, temp_dir):
        """A top-level list is rejected."""
        path = Path(temp_dir) / "engine.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigLoadError):
            EngineConfig.from_yaml(path)

    def test_invalid_yaml(self, temp_dir):
        """Malformed YAML raises ConfigLoadError."""
        path = Path(temp_dir) / "engine.yaml"
        path.write_text("seed: [unclosed\n")
        with pytest.raises(ConfigLoadError):
            EngineConfig.from_yaml(path)


class TestActiveConfig:
    """Tests for the process-wide configuration."""

    def test_set_config(self, restore_config):
        """The active config supplies the default sample rate."""
        set_config(EngineConfig(default_sample_rate=48000))
        assert get_config().default_sample_rate == 48000
        assert Audio.create_null().get_sample_rate() == 48000

    def test_log_level_applied(self, restore_config):
        """Setting a config applies its log level."""
        set_config(EngineConfig(log_level="DEBUG"))
        assert logging.getLogger("mixkit").level == logging.DEBUG

    def test_configure_logging(self):
        """configure_logging sets the package logger level."""
        package_logger = configure_logging(EngineConfig(log_level="ERROR"))
        assert package_logger.name == "mixkit"
        assert package_logger.level == logging.ERROR
        configure_logging()

    def test_make_rng(self, restore_config):
        """Generators follow the configured seed or an explicit one."""
        set_config(EngineConfig(seed=9))
        assert make_rng().random() == make_rng().random()
        assert make_rng(1).random() == np.random.default_rng(1).random()
