"""
Resampling and sample-rate alignment.

Resampling uses scipy's polyphase filter with the reduced integer ratio
between the two rates. Alignment brings a set of buffers to the highest
rate among them, upsampling only the mismatched ones and never
downsampling.
"""

from typing import List, Optional, Sequence
import logging
import math

import numpy as np
from scipy import signal

from .audio_buffer import AudioBuffer, Format, FormatError
from .config import get_config
from .utils import SAMPLE_DTYPE

logger = logging.getLogger(__name__)


def resample(audio: AudioBuffer, target_rate: int) -> AudioBuffer:
    """
    Resample a buffer to a new sample rate.

    Channel count is preserved and the duration is kept, so the frame count
    scales by target_rate / source_rate (rounded up).

    Args:
        audio: Buffer to resample (not modified)
        target_rate: Output sample rate in Hz

    Returns:
        New buffer of the same type as audio

    Raises:
        FormatError: If target_rate is not positive
    """
    target_rate = int(target_rate)
    if target_rate <= 0:
        raise FormatError(f"Target sample rate must be > 0, got {target_rate}")

    source_rate = audio.get_sample_rate()
    fmt = audio.get_format()

    if source_rate == target_rate:
        return audio.copy()

    if fmt.frame_count == 0 or fmt.channel_count == 0:
        frames = int(math.ceil(fmt.frame_count * target_rate / source_rate))
        return audio.__class__(Format(fmt.channel_count, frames, target_rate))

    g = math.gcd(target_rate, source_rate)
    up = target_rate // g
    down = source_rate // g

    resampled = signal.resample_poly(
        audio.buffer.astype(np.float64),
        up,
        down,
        axis=0,
        window=get_config().resample_window,
    )

    out_format = Format(fmt.channel_count, resampled.shape[0], target_rate)
    logger.debug(
        f"Resampled {fmt.frame_count} frames {source_rate} Hz -> "
        f"{out_format.frame_count} frames {target_rate} Hz (up={up}, down={down})"
    )
    return audio.__class__(out_format, resampled.astype(SAMPLE_DTYPE))


def max_sample_rate(inputs: Sequence[AudioBuffer]) -> int:
    """Highest sample rate among the inputs."""
    return max(a.get_sample_rate() for a in inputs)


def match_sample_rates(inputs: Sequence[AudioBuffer]) -> Optional[List[AudioBuffer]]:
    """
    Bring all inputs to the highest sample rate present.

    Args:
        inputs: Buffers to align

    Returns:
        None when the inputs are empty or already share one rate, meaning
        the originals can be used as they are. Otherwise a list parallel to
        inputs where every buffer is at the maximum rate.
    """
    if not inputs:
        return None

    target_rate = max_sample_rate(inputs)
    if all(a.get_sample_rate() == target_rate for a in inputs):
        return None

    logger.debug(f"Aligning {len(inputs)} inputs to {target_rate} Hz")
    return [resample(a, target_rate) for a in inputs]


def aligned(inputs: Sequence[AudioBuffer]) -> List[AudioBuffer]:
    """Inputs at a common sample rate, reusing the originals when possible."""
    matched = match_sample_rates(inputs)
    return list(inputs) if matched is None else matched
