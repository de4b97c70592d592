"""
Spectral Convolution - FFT-based linear convolution of audio with an impulse response.

Both signals are zero-padded into a power-of-two transform at least twice
as long as the longer of the two, so the circular convolution computed by
the FFT equals the linear one with no wraparound.

Usage:
    wet = convolve(dry, room_ir)
    wet = convolve(dry, room_ir, normalize=True)   # peak scaled to 1.0
"""

import logging
import math

import numpy as np

from .audio import Audio
from .audio_buffer import Format
from .resampling import resample
from .spectral import SpectralTransform
from .utils import next_power_of_two

logger = logging.getLogger(__name__)


def transform_size(signal_frames: int, ir_frames: int) -> int:
    """Power-of-two transform length for convolving two lengths without wraparound."""
    return 2 * next_power_of_two(max(signal_frames, ir_frames))


def convolve(signal: Audio, impulse_response: Audio, normalize: bool = False) -> Audio:
    """
    Convolve signal with an impulse response.

    The impulse response is resampled to the signal's rate when they differ.
    An impulse response with fewer channels is reused cyclically, so
    output channel c uses impulse channel c % ir_channels.

    Args:
        signal: Audio to process
        impulse_response: Impulse response
        normalize: Scale the result so its peak magnitude is 1.0

    Returns:
        Audio with the signal's channels and rate and
        signal_frames + ir_frames frames, or null audio if either input is
        null
    """
    if signal.is_null() or impulse_response.is_null():
        return Audio.create_null()
    if impulse_response.get_num_channels() == 0:
        return Audio.create_null()

    if impulse_response.get_sample_rate() == signal.get_sample_rate():
        ir = impulse_response
    else:
        ir = resample(impulse_response, signal.get_sample_rate())

    signal_frames = signal.get_num_frames()
    ir_frames = ir.get_num_frames()
    ir_channels = ir.get_num_channels()

    out = Audio(Format(
        signal.get_num_channels(),
        signal_frames + ir_frames,
        signal.get_sample_rate(),
    ))
    out_frames = out.get_num_frames()

    size = transform_size(signal_frames, ir_frames)
    scale = 1.0 / math.sqrt(size)
    logger.debug(
        f"Convolving {signal_frames} frames with {ir_frames}-frame IR "
        f"(transform size {size}, {out.get_num_channels()} channels)"
    )

    with SpectralTransform(size) as fft:
        for channel in range(out.get_num_channels()):
            fft.clear_real()
            fft.real_buffer[:signal_frames] = signal.buffer[:, channel] * scale
            signal_spectrum = fft.forward().copy()

            fft.clear_real()
            fft.real_buffer[:ir_frames] = ir.buffer[:, channel % ir_channels] * scale
            fft.forward()

            fft.complex_buffer *= signal_spectrum

            fft.inverse()
            out.buffer[:, channel] = fft.real_buffer[:out_frames]

    if normalize:
        peak = out.get_max_sample_magnitude()
        if peak > 0:
            out.modify_volume_in_place(1.0 / peak)
        else:
            logger.warning("Convolution output is silent; skipping normalization")

    return out
