"""
Tests for resampling and sample-rate alignment
"""

import pytest
import sys
import numpy as np
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from mixkit.audio import Audio
from mixkit.audio_buffer import Format, FormatError
from mixkit.resampling import resample, match_sample_rates, max_sample_rate


def _sine(freq, rate, frames):
    t = np.arange(frames) / rate
    return np.sin(2 * np.pi * freq * t)


class TestResample:
    """Tests for single-buffer resampling."""

    def test_same_rate_is_copy(self):
        """Resampling to the current rate returns an independent copy."""
        audio = Audio.from_array(np.ones(10), sample_rate=44100)
        out = resample(audio, 44100)
        assert out == audio
        assert out is not audio
        assert out.buffer is not audio.buffer

    def test_invalid_rate(self):
        """A non-positive target rate raises FormatError."""
        audio = Audio(Format(1, 10, 44100))
        with pytest.raises(FormatError):
            resample(audio, 0)

    def test_upsample_frame_count(self):
        """Doubling the rate doubles the frames and keeps the channels."""
        audio = Audio(Format(2, 100, 22050))
        out = resample(audio, 44100)
        assert out.get_format() == Format(2, 200, 44100)

    def test_non_integer_ratio(self):
        """Non-integer rate ratios keep the duration."""
        audio = Audio(Format(1, 441, 44100))
        out = resample(audio, 48000)
        assert out.get_num_frames() == 480
        assert out.get_length() == pytest.approx(audio.get_length())

    def test_keeps_type(self):
        """The result has the input's class."""
        out = resample(Audio(Format(1, 10, 8000)), 16000)
        assert isinstance(out, Audio)

    def test_empty_buffer(self):
        """An empty buffer only changes its rate."""
        out = resample(Audio(Format(2, 0, 22050)), 44100)
        assert out.get_format() == Format(2, 0, 44100)

    def test_source_untouched(self):
        """The input buffer is not modified."""
        audio = Audio.from_array(np.linspace(-1, 1, 64), sample_rate=8000)
        before = audio.copy()
        resample(audio, 16000)
        assert audio == before

    def test_sine_preserved(self):
        """A tone well below Nyquist comes through with the same shape."""
        audio = Audio.from_array(_sine(1000, 22050, 2205), sample_rate=22050)
        out = resample(audio, 44100)
        expected = _sine(1000, 44100, 4410)

        middle = slice(500, 3900)
        assert np.allclose(out.get_channel(0)[middle], expected[middle], atol=0.05)


class TestAlignment:
    """Tests for bringing inputs to a common rate."""

    def test_max_sample_rate(self):
        """The highest rate among the inputs is found."""
        inputs = [Audio(Format(1, 1, r)) for r in (22050, 48000, 44100)]
        assert max_sample_rate(inputs) == 48000

    def test_empty_inputs(self):
        """No inputs means nothing to align."""
        assert match_sample_rates([]) is None

    def test_already_matched(self):
        """Inputs sharing one rate are not copied."""
        inputs = [Audio(Format(1, 10, 44100)), Audio(Format(2, 5, 44100))]
        assert match_sample_rates(inputs) is None

    def test_mismatched_rates(self):
        """Every input is brought up to the highest rate."""
        inputs = [Audio(Format(1, 100, 22050)), Audio(Format(2, 50, 44100))]
        matched = match_sample_rates(inputs)

        assert len(matched) == 2
        assert all(a.get_sample_rate() == 44100 for a in matched)
        assert matched[0].get_num_frames() == 200
        assert matched[1].get_format() == inputs[1].get_format()
        # Inputs untouched
        assert inputs[0].get_sample_rate() == 22050
