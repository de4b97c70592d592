"""
Audio Buffer - raw sample storage with a format descriptor.

Samples are held in a C-contiguous float32 array of shape
(frames, channels). Its flat view is frame-major: all channels of frame 0,
then all channels of frame 1, and so on.

Buffers have value semantics: copying duplicates the samples, and no
operation shares storage with another buffer implicitly.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
import logging

import numpy as np

from .config import get_config
from .utils import SAMPLE_DTYPE, SAMPLE_RATE, frame_to_time

logger = logging.getLogger(__name__)


class FormatError(ValueError):
    """Raised when a format descriptor would be invalid."""
    pass


class IndexOutOfRange(IndexError):
    """Raised when a (channel, frame) address falls outside the buffer."""
    pass


@dataclass(frozen=True)
class Format:
    """
    Buffer format descriptor.

    Attributes:
        channel_count: Number of channels (>= 0)
        frame_count: Number of frames (>= 0)
        sample_rate: Frames per second (> 0)
    """
    channel_count: int = 0
    frame_count: int = 0
    sample_rate: int = SAMPLE_RATE

    def __post_init__(self):
        if self.channel_count < 0:
            raise FormatError(f"channel_count must be >= 0, got {self.channel_count}")
        if self.frame_count < 0:
            raise FormatError(f"frame_count must be >= 0, got {self.frame_count}")
        if self.sample_rate <= 0:
            raise FormatError(f"sample_rate must be > 0, got {self.sample_rate}")

    @property
    def num_samples(self) -> int:
        return self.channel_count * self.frame_count

    @property
    def duration(self) -> float:
        return self.frame_count / self.sample_rate


class AudioBuffer:
    """
    Owner of a frame-major sample array and its Format.

    Usage:
        buf = AudioBuffer(Format(channel_count=2, frame_count=44100, sample_rate=44100))
        buf.set_sample(1, 100, 0.5)
        value = buf.get_sample(1, 100)
    """

    def __init__(
        self,
        fmt: Optional[Format] = None,
        samples: Optional[np.ndarray] = None
    ):
        """
        Create a buffer.

        Args:
            fmt: Format of the buffer. Defaults to an empty format.
            samples: Optional initial samples, either flat frame-major or
                     shaped (frames, channels). The array is copied.
        """
        if fmt is None:
            fmt = Format(sample_rate=get_config().default_sample_rate)
        self._format = fmt

        if samples is None:
            self.buffer = np.zeros((fmt.frame_count, fmt.channel_count), dtype=SAMPLE_DTYPE)
        else:
            data = np.asarray(samples, dtype=SAMPLE_DTYPE)
            if data.ndim == 2 and data.shape != (fmt.frame_count, fmt.channel_count):
                raise FormatError(
                    f"Sample array shape {data.shape} does not match format "
                    f"(expected ({fmt.frame_count}, {fmt.channel_count}) as (frames, channels))"
                )
            if data.size != fmt.num_samples:
                raise FormatError(
                    f"Sample count {data.size} does not match format "
                    f"({fmt.channel_count} channels x {fmt.frame_count} frames)"
                )
            self.buffer = np.array(
                data.reshape(fmt.frame_count, fmt.channel_count), dtype=SAMPLE_DTYPE, order='C'
            )

    # =========================================================================
    # Value semantics
    # =========================================================================

    def copy(self):
        """Return a deep copy with its own sample storage."""
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone.buffer = self.buffer.copy()
        return clone

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        clone = self.copy()
        memo[id(self)] = clone
        return clone

    def __eq__(self, other) -> bool:
        if not isinstance(other, AudioBuffer):
            return NotImplemented
        return self._format == other._format and np.array_equal(self.buffer, other.buffer)

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(channels={self.get_num_channels()}, "
            f"frames={self.get_num_frames()}, sample_rate={self.get_sample_rate()})"
        )

    # =========================================================================
    # I/O
    # =========================================================================

    def load(self, path: Union[str, Path]) -> bool:
        """Load a file into the buffer, replacing format and samples."""
        from .codec import read_audio

        result = read_audio(path)
        if result is None:
            return False
        self._format, self.buffer = result
        return True

    def save(self, path: Union[str, Path]) -> bool:
        """Save the buffer to a file. Samples are clipped on write."""
        from .codec import write_audio

        return write_audio(path, self._format, self.buffer)

    def summary(self) -> str:
        """Short human-readable description of the buffer."""
        text = (
            f"Channels: {self.get_num_channels()}, "
            f"Frames: {self.get_num_frames()}, "
            f"Sample rate: {self.get_sample_rate()} Hz, "
            f"Length: {self._format.duration:.3f} s"
        )
        logger.debug(text)
        return text

    # =========================================================================
    # Getters
    # =========================================================================

    def _check_index(self, channel: int, frame: int) -> None:
        if not 0 <= channel < self._format.channel_count:
            raise IndexOutOfRange(
                f"Channel {channel} out of range [0, {self._format.channel_count})"
            )
        if not 0 <= frame < self._format.frame_count:
            raise IndexOutOfRange(
                f"Frame {frame} out of range [0, {self._format.frame_count})"
            )

    def get_sample(self, channel: int, frame: int) -> float:
        self._check_index(channel, frame)
        return float(self.buffer[frame, channel])

    def get_format(self) -> Format:
        return self._format

    def get_num_channels(self) -> int:
        return self._format.channel_count

    def get_num_frames(self) -> int:
        return self._format.frame_count

    def get_sample_rate(self) -> int:
        return self._format.sample_rate

    def get_time_of_frame(self, frame: int) -> float:
        return frame_to_time(frame, self._format.sample_rate)

    def get_samples(self) -> np.ndarray:
        """Frame-major flat copy of the samples."""
        return self.buffer.ravel().copy()

    def get_channel(self, channel: int) -> np.ndarray:
        """Copy of one channel's samples."""
        if not 0 <= channel < self._format.channel_count:
            raise IndexOutOfRange(
                f"Channel {channel} out of range [0, {self._format.channel_count})"
            )
        return self.buffer[:, channel].copy()

    # =========================================================================
    # Setters
    # =========================================================================

    def set_sample(self, channel: int, frame: int, sample: float) -> None:
        self._check_index(channel, frame)
        self.buffer[frame, channel] = sample

    def set_buffer_size(self, channel_count: int, frame_count: int) -> None:
        """Resize, keeping overlapping samples and zero-filling new space."""
        new_format = Format(channel_count, frame_count, self._format.sample_rate)
        resized = np.zeros((frame_count, channel_count), dtype=SAMPLE_DTYPE)
        keep_frames = min(frame_count, self._format.frame_count)
        keep_channels = min(channel_count, self._format.channel_count)
        resized[:keep_frames, :keep_channels] = self.buffer[:keep_frames, :keep_channels]
        self.buffer = resized
        self._format = new_format

    def set_num_channels(self, channel_count: int) -> None:
        self.set_buffer_size(channel_count, self._format.frame_count)

    def set_num_frames(self, frame_count: int) -> None:
        self.set_buffer_size(self._format.channel_count, frame_count)

    def set_sample_rate(self, sample_rate: int) -> None:
        self._format = Format(self._format.channel_count, self._format.frame_count, sample_rate)

    def copy_format(self, other: "AudioBuffer") -> None:
        """Adopt another buffer's format, resizing this buffer to match."""
        fmt = other.get_format()
        self.set_buffer_size(fmt.channel_count, fmt.frame_count)
        self.set_sample_rate(fmt.sample_rate)

    def clear_buffer(self) -> None:
        self.buffer.fill(0.0)
