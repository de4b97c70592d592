"""
Audio file codec - load and save raw sample arrays with soundfile.

The engine only needs a Format descriptor and a frame-major sample array;
file parsing and encoding are delegated to libsndfile through soundfile.
Failures are reported as None/False results and logged, never raised.
"""

from pathlib import Path
from typing import Optional, Tuple, Union
import logging

import numpy as np
import soundfile as sf

from .audio_buffer import Format
from .config import get_config

logger = logging.getLogger(__name__)


def read_audio(path: Union[str, Path]) -> Optional[Tuple[Format, np.ndarray]]:
    """
    Read an audio file.

    Args:
        path: File to read

    Returns:
        (Format, samples) with samples shaped (frames, channels) as float32,
        or None if the file could not be read
    """
    try:
        samples, sample_rate = sf.read(str(path), dtype='float32', always_2d=True)
    except (RuntimeError, OSError) as e:
        logger.warning(f"Failed to load audio file {path}: {e}")
        return None

    fmt = Format(
        channel_count=samples.shape[1],
        frame_count=samples.shape[0],
        sample_rate=int(sample_rate),
    )
    logger.debug(f"Loaded {path}: {fmt}")
    return fmt, np.ascontiguousarray(samples)


def write_audio(
    path: Union[str, Path],
    fmt: Format,
    samples: np.ndarray,
    subtype: Optional[str] = None
) -> bool:
    """
    Write samples to an audio file.

    Samples are clipped to [-1, 1] before encoding.

    Args:
        path: Destination file; the container is chosen from the extension
        fmt: Format of the samples
        samples: Array shaped (frames, channels)
        subtype: soundfile subtype, defaults to the configured one

    Returns:
        True on success
    """
    if fmt.channel_count == 0 or fmt.frame_count == 0:
        logger.warning(f"Refusing to save empty audio to {path}")
        return False

    subtype = subtype or get_config().float_subtype
    data = np.clip(samples.reshape(fmt.frame_count, fmt.channel_count), -1.0, 1.0)

    try:
        sf.write(str(path), data, fmt.sample_rate, subtype=subtype)
    except (RuntimeError, OSError, ValueError, TypeError) as e:
        logger.warning(f"Failed to save audio file {path}: {e}")
        return False

    logger.debug(f"Saved {path}: {fmt}")
    return True
