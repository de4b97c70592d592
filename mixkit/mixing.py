"""
Mixing Engine - additive placement of many buffers into one output timeline.

Provides constant-gain and automation-driven mixing, in-place mixing into an
existing buffer, sequential joining, and proximity-weighted selection
(crossfading) between inputs.

All mixing is strictly additive: the output may exceed [-1, 1] and nothing
here limits or normalizes it.

Accumulation model:
- The output is a (frames, channels) arena cleared to zero.
- One input's contribution covers a contiguous block of output frames with
  no address written twice, so it is applied as a single slice-add.
- Different inputs may overlap, so inputs are accumulated one at a time.

Usage:
    out = mix([vocals, drums], start_times=[0.0, 1.5], amplitudes=[0.8, 1.0])
    out = mix_variable_gain([pad], amplitudes=[Func1x1(lambda t: min(t, 1.0))])
    song = join([intro, verse, chorus], offset=0.25)
    blended = select([dry, wet], selection=Func1x1(lambda t: t / 10.0))
"""

from typing import Any, List, Sequence
import logging

import numpy as np

from .audio import Audio
from .audio_buffer import Format
from .function import Function, unwrap_scalar
from .resampling import aligned, resample
from .utils import pad_list, time_to_frame

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def _start_frames(inputs: Sequence[Audio], start_times: Sequence[float]) -> List[int]:
    """Convert start times to frame offsets at the first input's rate."""
    sample_rate = inputs[0].get_sample_rate()
    return [time_to_frame(t, sample_rate) for t in start_times[:len(inputs)]]


def _allocate_output(inputs: Sequence[Audio], offsets: Sequence[int]) -> Audio:
    """Cleared output wide enough for every input and long enough for every placement."""
    channels = max(a.get_num_channels() for a in inputs)
    frames = max(a.get_num_frames() + offset for a, offset in zip(inputs, offsets))
    fmt = Format(channels, max(0, frames), inputs[0].get_sample_rate())
    logger.debug(f"Mixing {len(inputs)} inputs into {fmt}")
    return Audio(fmt)


def _place(out: Audio, source: Audio, offset: int, gains: Any) -> None:
    """
    Add source * gains into out starting at frame offset.

    Only the source's own channels are written, and frames landing outside
    the output are skipped.

    Args:
        out: Output buffer, modified in place
        source: Buffer to add
        offset: Output frame of source frame 0 (may be negative)
        gains: Scalar gain, or one gain per source frame
    """
    first = max(0, -offset)
    last = min(source.get_num_frames(), out.get_num_frames() - offset)
    channels = min(source.get_num_channels(), out.get_num_channels())
    if last <= first or channels == 0:
        return

    segment = source.buffer[first:last, :channels]
    if np.ndim(gains) == 0:
        contribution = segment * gains
    else:
        contribution = segment * np.asarray(gains)[first:last, np.newaxis]

    out.buffer[first + offset:last + offset, :channels] += contribution


# =============================================================================
# Mixing
# =============================================================================

def mix(
    inputs: Sequence[Audio],
    start_times: Sequence[float] = (),
    amplitudes: Sequence[float] = ()
) -> Audio:
    """
    Sum inputs into one buffer with constant gains.

    Args:
        inputs: Buffers to mix. Mismatched sample rates are upsampled to the
                highest rate present.
        start_times: Start of each input in seconds; missing entries are 0
        amplitudes: Gain of each input; missing entries are 1

    Returns:
        Mixed audio with the widest channel count and enough frames for the
        latest-ending input, or null audio when inputs is empty
    """
    if len(inputs) == 0:
        return Audio.create_null()

    ins = aligned(inputs)
    offsets = _start_frames(ins, pad_list(start_times, len(ins), 0.0))
    gains = pad_list(amplitudes, len(ins), 1.0)

    out = _allocate_output(ins, offsets)
    for source, offset, gain in zip(ins, offsets, gains):
        _place(out, source, offset, float(gain))
    return out


def mix_variable_gain(
    inputs: Sequence[Audio],
    start_times: Sequence[float] = (),
    amplitudes: Sequence[Any] = ()
) -> Audio:
    """
    Sum inputs into one buffer with time-varying gains.

    Each gain curve is evaluated in output time: the gain applied to an
    input's local frame k is curve((offset + k) / sample_rate).

    Args:
        inputs: Buffers to mix
        start_times: Start of each input in seconds; missing entries are 0
        amplitudes: Gain curve of each input (Function, callable or
                    constant); missing entries are the constant 1

    Returns:
        Mixed audio, or null audio when inputs is empty
    """
    if len(inputs) == 0:
        return Audio.create_null()

    ins = aligned(inputs)
    offsets = _start_frames(ins, pad_list(start_times, len(ins), 0.0))
    curves = [Function.lift(a) for a in pad_list(amplitudes, len(ins), 1.0)]
    sample_rate = ins[0].get_sample_rate()

    # Each curve is sampled only over the frames its input covers.
    gain_samples = [
        curve.sample_frames(offset, source.get_num_frames(), sample_rate)
        for source, offset, curve in zip(ins, offsets, curves)
    ]

    out = _allocate_output(ins, offsets)
    for source, offset, gains in zip(ins, offsets, gain_samples):
        _place(out, source, offset, gains)
    return out


def mix_in_place(
    dest: Audio,
    other: Audio,
    start_time: float = 0.0,
    other_gain: Any = 1.0
) -> Audio:
    """
    Add other into dest at start_time without growing dest.

    other is resampled only when its rate differs from dest's. Only the
    channels both buffers share are written. The gain curve is evaluated in
    other's local time.

    Returns:
        dest
    """
    if dest.get_sample_rate() == other.get_sample_rate():
        source = other
    else:
        source = resample(other, dest.get_sample_rate())

    gains = source.sample_function_over_domain(other_gain)
    _place(dest, source, dest.time_to_frame(start_time), gains)
    return dest


# =============================================================================
# Join & Select
# =============================================================================

def join(inputs: Sequence[Audio], offset: float = 0.0) -> Audio:
    """
    Place inputs one after another.

    Input k starts at the sum of the durations of the inputs before it plus
    k * offset. A positive offset leaves silence between inputs, a negative
    one overlaps them.

    Returns:
        Joined audio, or null audio when inputs is empty
    """
    if len(inputs) == 0:
        return Audio.create_null()

    start_times = [0.0]
    for audio in inputs[:-1]:
        start_times.append(start_times[-1] + audio.get_length() + offset)

    return mix(inputs, start_times)


def selection_weight(selection: Function, index: int) -> Function:
    """
    Gain curve for one input of a selection mix.

    weight(t) = sqrt(1 - |selection(t) - index|) while that distance is
    below 1, and 0 otherwise.
    """
    f = selection.f

    def weight(t):
        distance = np.abs(np.asarray(f(t), dtype=np.float64) - index)
        return unwrap_scalar(np.where(distance < 1.0, np.sqrt(np.clip(1.0 - distance, 0.0, None)), 0.0))

    return Function(weight, vectorized=selection.vectorized)


def select(
    inputs: Sequence[Audio],
    selection: Any,
    start_times: Sequence[float] = ()
) -> Audio:
    """
    Crossfade between inputs with a continuous selection curve.

    When selection(t) equals i the output is input i alone; between two
    integers the neighbouring inputs are blended.

    Args:
        inputs: Buffers to select among
        selection: Curve (Function, callable or constant) giving a
                   fractional input index at each time
        start_times: Start of each input in seconds

    Returns:
        Mixed audio, or null audio when inputs is empty
    """
    selection = Function.lift(selection)
    weights = [selection_weight(selection, i) for i in range(len(inputs))]
    return mix_variable_gain(inputs, start_times, weights)
