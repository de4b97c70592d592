"""
Unit tests for AudioBuffer and Format

Tests format validation, frame-major storage, checked indexing, resizing
and value semantics.
"""

import copy
import pytest
import sys
import numpy as np
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from mixkit.audio_buffer import (
    AudioBuffer,
    Format,
    FormatError,
    IndexOutOfRange,
)


class TestFormat:
    """Tests for the format descriptor."""

    def test_valid_format(self):
        """Sample count and duration derive from the counts and rate."""
        fmt = Format(channel_count=2, frame_count=100, sample_rate=48000)
        assert fmt.num_samples == 200
        assert fmt.duration == pytest.approx(100 / 48000)

    def test_zero_sample_rate_rejected(self):
        """Sample rate must be strictly positive."""
        with pytest.raises(FormatError):
            Format(1, 10, 0)

    def test_negative_counts_rejected(self):
        """Channel and frame counts cannot be negative."""
        with pytest.raises(FormatError):
            Format(-1, 10, 44100)
        with pytest.raises(FormatError):
            Format(1, -10, 44100)

    def test_format_error_is_value_error(self):
        """FormatError can be caught as ValueError."""
        with pytest.raises(ValueError):
            Format(1, 1, -5)


class TestStorage:
    """Tests for sample storage and indexing."""

    def test_new_buffer_is_silent(self):
        """A new buffer is zeroed with shape (frames, channels)."""
        buf = AudioBuffer(Format(2, 50, 44100))
        assert buf.buffer.shape == (50, 2)
        assert np.all(buf.buffer == 0)

    def test_frame_major_order(self):
        """Flat samples hold all channels of a frame before the next frame."""
        buf = AudioBuffer(Format(2, 3, 44100))
        buf.set_sample(0, 0, 1.0)
        buf.set_sample(1, 0, 2.0)
        buf.set_sample(0, 1, 3.0)
        buf.set_sample(1, 2, 4.0)

        assert buf.get_samples().tolist() == [1.0, 2.0, 3.0, 0.0, 0.0, 4.0]

    def test_construct_from_flat_samples(self):
        """Flat input is read frame-major."""
        buf = AudioBuffer(Format(2, 2, 44100), [0.1, 0.2, 0.3, 0.4])
        assert buf.get_sample(1, 0) == pytest.approx(0.2)
        assert buf.get_sample(0, 1) == pytest.approx(0.3)

    def test_construct_from_frames_by_channels(self):
        """A (frames, channels) array is taken as is."""
        data = np.array([[0.1, 0.2], [0.3, 0.4], [0.5, 0.6]])
        buf = AudioBuffer(Format(2, 3, 44100), data)
        assert buf.get_channel(1).tolist() == pytest.approx([0.2, 0.4, 0.6])

    def test_transposed_array_rejected(self):
        """A (channels, frames) array is not silently reinterpreted."""
        with pytest.raises(FormatError):
            AudioBuffer(Format(2, 3, 44100), np.zeros((2, 3)))

    def test_sample_count_mismatch(self):
        """The number of samples must match the format."""
        with pytest.raises(FormatError):
            AudioBuffer(Format(2, 2, 44100), [0.1, 0.2, 0.3])

    def test_out_of_range_channel(self):
        """Reading a missing channel raises IndexOutOfRange."""
        buf = AudioBuffer(Format(1, 10, 44100))
        with pytest.raises(IndexOutOfRange):
            buf.get_sample(1, 0)

    def test_out_of_range_frame(self):
        """Frames past either end raise an IndexError."""
        buf = AudioBuffer(Format(1, 10, 44100))
        with pytest.raises(IndexOutOfRange):
            buf.set_sample(0, 10, 1.0)
        with pytest.raises(IndexError):
            buf.get_sample(0, -1)

    def test_get_channel(self):
        """A channel is returned as a contiguous copy."""
        buf = AudioBuffer(Format(2, 3, 44100), [1, 2, 3, 4, 5, 6])
        assert buf.get_channel(1).tolist() == [2.0, 4.0, 6.0]

    def test_clear_buffer(self):
        """Clearing zeroes every sample."""
        buf = AudioBuffer(Format(1, 4, 44100), [1, 1, 1, 1])
        buf.clear_buffer()
        assert np.all(buf.buffer == 0)

    def test_time_of_frame(self):
        """Frame times use the buffer's sample rate."""
        buf = AudioBuffer(Format(1, 100, 100))
        assert buf.get_time_of_frame(50) == pytest.approx(0.5)


class TestResizing:
    """Tests for format setters."""

    def test_set_buffer_size_keeps_overlap(self):
        """Growing keeps existing samples and zero-fills the rest."""
        buf = AudioBuffer(Format(1, 3, 44100), [1, 2, 3])
        buf.set_buffer_size(2, 5)

        assert buf.get_num_channels() == 2
        assert buf.get_num_frames() == 5
        assert buf.get_channel(0).tolist() == [1.0, 2.0, 3.0, 0.0, 0.0]
        assert np.all(buf.get_channel(1) == 0)

    def test_shrink_frames(self):
        """Shrinking drops trailing frames."""
        buf = AudioBuffer(Format(1, 3, 44100), [1, 2, 3])
        buf.set_num_frames(2)
        assert buf.get_channel(0).tolist() == [1.0, 2.0]

    def test_set_sample_rate(self):
        """The rate can be changed but must stay positive."""
        buf = AudioBuffer(Format(1, 3, 44100))
        buf.set_sample_rate(48000)
        assert buf.get_sample_rate() == 48000
        with pytest.raises(FormatError):
            buf.set_sample_rate(0)

    def test_copy_format(self):
        """Copying a format resizes to match the other buffer."""
        a = AudioBuffer(Format(1, 3, 44100))
        b = AudioBuffer(Format(2, 7, 22050))
        a.copy_format(b)
        assert a.get_format() == b.get_format()


class TestValueSemantics:
    """Copies never share storage."""

    def test_copy_is_independent(self):
        """Writing to a copy leaves the original alone."""
        original = AudioBuffer(Format(1, 4, 44100), [1, 2, 3, 4])
        clone = original.copy()
        clone.set_sample(0, 0, 9.0)

        assert original.get_sample(0, 0) == 1.0
        assert clone == AudioBuffer(Format(1, 4, 44100), [9, 2, 3, 4])

    def test_copy_module_support(self):
        """copy.copy and copy.deepcopy both duplicate storage."""
        original = AudioBuffer(Format(1, 2, 44100), [1, 2])
        for clone in (copy.copy(original), copy.deepcopy(original)):
            assert clone == original
            assert clone.buffer is not original.buffer

    def test_construction_copies_input_array(self):
        """The constructor does not keep a reference to its input."""
        data = np.ones((4, 1), dtype=np.float32)
        buf = AudioBuffer(Format(1, 4, 44100), data)
        data[0, 0] = 5.0
        assert buf.get_sample(0, 0) == 1.0

    def test_equality(self):
        """Buffers are equal when formats and samples match."""
        a = AudioBuffer(Format(1, 2, 44100), [1, 2])
        assert a == AudioBuffer(Format(1, 2, 44100), [1, 2])
        assert a != AudioBuffer(Format(1, 2, 48000), [1, 2])
        assert a != AudioBuffer(Format(1, 2, 44100), [1, 3])

    def test_summary(self):
        """The summary names channels, frames and length."""
        buf = AudioBuffer(Format(2, 44100, 44100))
        text = buf.summary()
        assert "Channels: 2" in text
        assert "Frames: 44100" in text
        assert "1.000 s" in text
