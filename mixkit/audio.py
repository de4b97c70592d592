"""
Audio - a sample buffer with time/frame conversion and value-returning processing.

Every processing method returns a new Audio. The only methods that modify
the receiver are the explicitly named *_in_place variants.

Usage:
    audio = Audio.from_array(np.zeros((44100, 2)), sample_rate=44100)
    quieter = audio.modify_volume(0.5)
    faded = audio.modify_volume(Func1x1(lambda t: max(0.0, 1.0 - t)))
    mixed = Audio.mix([audio, quieter], start_times=[0.0, 0.25])
"""

from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Union
import logging

import numpy as np

from .audio_buffer import AudioBuffer, Format
from .config import get_config
from .function import Function
from .resampling import resample as _resample
from .utils import SAMPLE_DTYPE, frame_to_time, time_to_frame

logger = logging.getLogger(__name__)

# mod(audio, k) -> modified copy, used by iterate and delay
Modifier = Callable[["Audio", int], "Audio"]


class Audio(AudioBuffer):
    """
    Audio buffer with time-based operations.

    Create with a Format, from an array, or from a file:
        Audio(Format(channel_count=1, frame_count=100, sample_rate=48000))
        Audio.from_array(samples, sample_rate=48000)
        Audio.from_file("drums.wav")
    """

    @classmethod
    def from_array(cls, samples: np.ndarray, sample_rate: Optional[int] = None) -> "Audio":
        """
        Build from a (frames,) mono or (frames, channels) array.

        The array is copied.
        """
        data = np.asarray(samples, dtype=SAMPLE_DTYPE)
        if data.ndim == 1:
            data = data[:, np.newaxis]
        if data.ndim != 2:
            raise ValueError(f"Samples must be 1D or 2D, got {data.ndim}D.")
        rate = sample_rate if sample_rate is not None else get_config().default_sample_rate
        return cls(Format(data.shape[1], data.shape[0], rate), data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Audio":
        """Load a file; returns null audio if it cannot be read."""
        audio = cls.create_null()
        if not audio.load(path):
            return cls.create_null()
        return audio

    @classmethod
    def create_null(cls) -> "Audio":
        """Zero-format sentinel returned by degenerate operations."""
        return cls(Format(0, 0, get_config().default_sample_rate))

    def is_null(self) -> bool:
        return self.get_num_frames() == 0

    # =========================================================================
    # Time conversion
    # =========================================================================

    def time_to_frame(self, time: float) -> int:
        return time_to_frame(time, self.get_sample_rate())

    def frame_to_time(self, frame: float) -> float:
        return frame_to_time(frame, self.get_sample_rate())

    def get_length(self) -> float:
        """Duration in seconds."""
        return self.frame_to_time(self.get_num_frames())

    def sample_function_over_domain(self, function: Any) -> np.ndarray:
        """One value of function per frame, at each frame's local time."""
        return Function.lift(function).sample_frames(
            0, self.get_num_frames(), self.get_sample_rate()
        )

    # =========================================================================
    # Analysis
    # =========================================================================

    def get_max_sample_magnitude(self) -> float:
        if self.buffer.size == 0:
            return 0.0
        return float(np.max(np.abs(self.buffer)))

    # =========================================================================
    # Conversions
    # =========================================================================

    def _require_stereo(self, operation: str) -> bool:
        if self.get_num_channels() == 2:
            return True
        logger.warning(f"{operation} needs 2 channels, got {self.get_num_channels()}")
        return False

    def convert_to_mid_side(self) -> "Audio":
        """
        Left/right stereo to mid (channel 0) and side (channel 1).

        mid = (L + R) / 2 and side = (L - R) / 2. Anything other than
        stereo gives null audio.
        """
        if not self._require_stereo("Mid/side conversion"):
            return self.create_null()
        left = self.buffer[:, 0]
        right = self.buffer[:, 1]
        data = np.column_stack([(left + right) * 0.5, (left - right) * 0.5])
        return self.__class__(self.get_format(), data)

    def convert_to_left_right(self) -> "Audio":
        """Inverse of convert_to_mid_side: L = mid + side, R = mid - side."""
        if not self._require_stereo("Left/right conversion"):
            return self.create_null()
        mid = self.buffer[:, 0]
        side = self.buffer[:, 1]
        data = np.column_stack([mid + side, mid - side])
        return self.__class__(self.get_format(), data)

    # =========================================================================
    # Procs
    # =========================================================================

    def resample(self, sample_rate: int) -> "Audio":
        return _resample(self, sample_rate)

    def modify_volume(self, gain: Any) -> "Audio":
        """Scale by a constant or a time-varying gain."""
        return self.copy().modify_volume_in_place(gain)

    def modify_volume_in_place(self, gain: Any) -> "Audio":
        if isinstance(gain, Function) or callable(gain):
            gains = self.sample_function_over_domain(gain)
            self.buffer *= gains.astype(SAMPLE_DTYPE)[:, np.newaxis]
        else:
            self.buffer *= np.float32(gain)
        return self

    def set_volume(self, level: float) -> "Audio":
        """Scale so the peak magnitude equals level."""
        peak = self.get_max_sample_magnitude()
        if peak == 0:
            return self.copy()
        return self.modify_volume(level / peak)

    def reverse(self) -> "Audio":
        return self.__class__(self.get_format(), self.buffer[::-1])

    def cut(self, start_time: float, end_time: float) -> "Audio":
        """Portion between two times, clamped to the buffer."""
        start = min(max(self.time_to_frame(start_time), 0), self.get_num_frames())
        end = min(max(self.time_to_frame(end_time), start), self.get_num_frames())
        fmt = Format(self.get_num_channels(), end - start, self.get_sample_rate())
        return self.__class__(fmt, self.buffer[start:end])

    def mono_to_stereo(self) -> "Audio":
        """Duplicate a mono channel to two channels; other layouts are copied."""
        if self.get_num_channels() != 1:
            return self.copy()
        fmt = Format(2, self.get_num_frames(), self.get_sample_rate())
        return self.__class__(fmt, np.repeat(self.buffer, 2, axis=1))

    def waveshape(self, shaper: Any) -> "Audio":
        """Map every sample value through shaper (Function, callable or constant)."""
        values = Function.lift(shaper)._evaluate(self.buffer.ravel().astype(np.float64))
        return self.__class__(self.get_format(), values.astype(SAMPLE_DTYPE))

    def pan(self, pan_amount: Any) -> "Audio":
        """
        Constant-power pan.

        Args:
            pan_amount: Position from -1 (hard left) through 0 (centre) to 1
                        (hard right), constant or time-varying; clamped to
                        that range

        Returns:
            Stereo audio. Mono input is duplicated to two channels first;
            any other layout gives null audio.
        """
        out = self.mono_to_stereo()
        if not out._require_stereo("Pan"):
            return self.create_null()

        amount = np.clip(out.sample_function_over_domain(pan_amount), -1.0, 1.0)
        angle = (amount + 1.0) / 2.0 * np.pi / 2.0
        gains = np.column_stack([np.cos(angle), np.sin(angle)])
        out.buffer *= gains.astype(SAMPLE_DTYPE)
        return out

    def widen(self, widen_amount: Any) -> "Audio":
        """
        Scale the side signal by 1 + widen_amount.

        0 leaves the stereo image unchanged, -1 collapses it to mono and
        positive values widen it. Needs stereo input; anything else gives
        null audio.
        """
        mid_side = self.convert_to_mid_side()
        if mid_side.get_num_channels() != 2:
            return mid_side

        side_gain = 1.0 + mid_side.sample_function_over_domain(widen_amount)
        mid_side.buffer[:, 1] *= side_gain.astype(SAMPLE_DTYPE)
        return mid_side.convert_to_left_right()

    def fades(self, fade_time: float = 0.05) -> "Audio":
        """
        Linear fade-in and fade-out.

        Each fade lasts fade_time, shortened to half the buffer when the
        buffer is too short for both.
        """
        frames = self.get_num_frames()
        n = min(max(self.time_to_frame(fade_time), 0), frames // 2)
        out = self.copy()
        if n == 0:
            return out

        ramp = (np.arange(n) / n).astype(SAMPLE_DTYPE)[:, np.newaxis]
        out.buffer[:n] *= ramp
        out.buffer[frames - n:] *= ramp[::-1]
        return out

    def _repeats(self, count: int, mod: Optional[Modifier], feedback: bool) -> List["Audio"]:
        """count copies; copy k >= 1 is mod(previous copy or self, k)."""
        copies = []
        current = self
        for k in range(max(0, count)):
            if k > 0 and mod is not None:
                current = mod(current if feedback else self, k)
            copies.append(current)
        return copies

    def iterate(
        self,
        n: int,
        mod: Optional[Modifier] = None,
        feedback: bool = False
    ) -> "Audio":
        """
        Join n copies end to end.

        Args:
            n: Number of copies; 0 gives null audio
            mod: Optional mod(audio, k) applied to copy k for k >= 1.
                 Copy 0 is always this audio unchanged.
            feedback: Feed each modified copy into the next mod call
                      instead of modifying this audio every time
        """
        from .mixing import join

        return join(self._repeats(n, mod, feedback))

    def delay(
        self,
        delay_time: float,
        num_delays: int,
        decay: float = 0.5,
        mod: Optional[Modifier] = None,
        feedback: bool = True
    ) -> "Audio":
        """
        Echo: the dry signal plus num_delays repeats.

        Repeat k starts at k * delay_time with gain decay ** k. mod and
        feedback work as in iterate.
        """
        from .mixing import mix

        copies = self._repeats(num_delays + 1, mod, feedback)
        start_times = [k * delay_time for k in range(len(copies))]
        amplitudes = [decay ** k for k in range(len(copies))]
        return mix(copies, start_times, amplitudes)

    # =========================================================================
    # Combination
    # =========================================================================

    def mix_in_place(
        self,
        other: "Audio",
        start_time: float = 0.0,
        other_gain: Any = 1.0
    ) -> "Audio":
        from .mixing import mix_in_place

        return mix_in_place(self, other, start_time, other_gain)

    def convolve(self, impulse_response: "Audio", normalize: bool = False) -> "Audio":
        from .convolution import convolve

        return convolve(self, impulse_response, normalize)

    @staticmethod
    def mix(
        inputs: Sequence["Audio"],
        start_times: Sequence[float] = (),
        amplitudes: Sequence[float] = ()
    ) -> "Audio":
        from .mixing import mix

        return mix(inputs, start_times, amplitudes)

    @staticmethod
    def mix_variable_gain(
        inputs: Sequence["Audio"],
        start_times: Sequence[float] = (),
        amplitudes: Sequence[Any] = ()
    ) -> "Audio":
        from .mixing import mix_variable_gain

        return mix_variable_gain(inputs, start_times, amplitudes)

    @staticmethod
    def join(inputs: Sequence["Audio"], offset: float = 0.0) -> "Audio":
        from .mixing import join

        return join(inputs, offset)

    @staticmethod
    def select(
        inputs: Sequence["Audio"],
        selection: Any,
        start_times: Sequence[float] = ()
    ) -> "Audio":
        from .mixing import select

        return select(inputs, selection, start_times)
