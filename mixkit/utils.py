"""
Utility functions and constants for the mixing engine.

Provides:
- Audio format defaults
- Power-of-two sizing for spectral transforms
- Time/frame conversion helpers
"""

import math
from typing import Sequence


# =============================================================================
# AUDIO CONSTANTS
# =============================================================================

SAMPLE_RATE = 44100  # Hz - default rate for new and null buffers
SAMPLE_DTYPE = "float32"

# Floating point slack when counting sample points between two times
SAMPLE_COUNT_TOLERANCE = 1e-9


# =============================================================================
# NUMERIC HELPERS
# =============================================================================

def next_power_of_two(n: int) -> int:
    """
    Smallest power of two that is >= n.

    Args:
        n: Requested minimum size

    Returns:
        Power of two (1 for n <= 1)
    """
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


def time_to_frame(time: float, sample_rate: int) -> int:
    """Convert seconds to the nearest frame index."""
    return int(round(time * sample_rate))


def frame_to_time(frame: float, sample_rate: int) -> float:
    """Convert a frame index to seconds."""
    return frame / sample_rate


def count_sample_points(start: float, end: float, step: float) -> int:
    """Number of points start + k*step that fall in [start, end)."""
    if step <= 0:
        raise ValueError(f"Sampling step must be positive, got {step}")
    if end <= start:
        return 0
    return int(math.ceil((end - start) / step - SAMPLE_COUNT_TOLERANCE))


def pad_list(values: Sequence, length: int, fill) -> list:
    """Return values as a list extended with fill up to length."""
    padded = list(values)
    if len(padded) < length:
        padded.extend([fill] * (length - len(padded)))
    return padded
