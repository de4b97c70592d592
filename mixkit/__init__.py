"""
mixkit

Value-semantic audio buffers with a multi-track mixing engine, automation
curves, sample-rate alignment and FFT-based convolution.
"""

__version__ = "0.1.0"

from .audio_buffer import (
    AudioBuffer,
    Format,
    FormatError,
    IndexOutOfRange,
)
from .audio import Audio
from .function import (
    Function,
    Func1x1,
    Func2x1,
    Func2x2,
    Vec2,
)
from .resampling import (
    resample,
    match_sample_rates,
)
from .mixing import (
    mix,
    mix_variable_gain,
    mix_in_place,
    join,
    select,
)
from .spectral import SpectralTransform
from .convolution import convolve
from .codec import read_audio, write_audio
from .config import (
    EngineConfig,
    ConfigLoadError,
    get_config,
    set_config,
    configure_logging,
    make_rng,
)

__all__ = [
    "AudioBuffer",
    "Format",
    "FormatError",
    "IndexOutOfRange",
    "Audio",
    "Function",
    "Func1x1",
    "Func2x1",
    "Func2x2",
    "Vec2",
    "resample",
    "match_sample_rates",
    "mix",
    "mix_variable_gain",
    "mix_in_place",
    "join",
    "select",
    "SpectralTransform",
    "convolve",
    "read_audio",
    "write_audio",
    "EngineConfig",
    "ConfigLoadError",
    "get_config",
    "set_config",
    "configure_logging",
    "make_rng",
]
