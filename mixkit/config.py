"""
Engine configuration.

Centralized defaults for the mixing engine, loadable from environment
variables or a YAML file. Also owns logging setup for the package logger
and construction of random generators for stochastic automation.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
import logging
import os

import numpy as np
import yaml

from .utils import SAMPLE_RATE

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "mixkit"


class ConfigLoadError(Exception):
    """Raised when configuration loading fails."""
    pass


@dataclass
class EngineConfig:
    """
    Configuration for the mixing and convolution engine.

    Attributes:
        default_sample_rate: Rate given to new and null buffers
        resample_window: Window passed to scipy's polyphase resampler
        seed: Seed for generators created when stochastic automation is
              built without an explicit rng (None = OS entropy)
        log_level: Level applied to the package logger
        float_subtype: soundfile subtype used when saving buffers
    """
    default_sample_rate: int = SAMPLE_RATE
    resample_window: Tuple[Any, ...] = ("kaiser", 5.0)
    seed: Optional[int] = None
    log_level: str = "WARNING"
    float_subtype: str = "FLOAT"

    def __post_init__(self):
        if int(self.default_sample_rate) <= 0:
            raise ConfigLoadError(
                f"default_sample_rate must be positive, got {self.default_sample_rate}"
            )
        self.default_sample_rate = int(self.default_sample_rate)
        if isinstance(self.resample_window, list):
            self.resample_window = tuple(self.resample_window)
        self.log_level = str(self.log_level).upper()

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """
        Create config from environment variables.

        Environment Variables:
            MIXKIT_SAMPLE_RATE: Default sample rate
            MIXKIT_SEED: Seed for stochastic automation
            MIXKIT_LOG_LEVEL: Package log level (DEBUG, INFO, ...)
            MIXKIT_SUBTYPE: soundfile subtype for saving
        """
        seed = os.getenv("MIXKIT_SEED")
        return cls(
            default_sample_rate=int(os.getenv("MIXKIT_SAMPLE_RATE", SAMPLE_RATE)),
            seed=int(seed) if seed not in (None, "") else None,
            log_level=os.getenv("MIXKIT_LOG_LEVEL", "WARNING"),
            float_subtype=os.getenv("MIXKIT_SUBTYPE", "FLOAT"),
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "EngineConfig":
        """
        Load configuration from a YAML mapping.

        Raises:
            ConfigLoadError: If the file is missing, unparsable, or has
                unknown keys
        """
        path = Path(path)
        if not path.exists():
            raise ConfigLoadError(f"Configuration file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"Failed to parse YAML file {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigLoadError(f"Configuration in {path} must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigLoadError(f"Unknown configuration keys in {path}: {unknown}")

        config = cls(**data)
        logger.debug(f"Loaded engine config from {path}")
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


_active_config = EngineConfig()


def get_config() -> EngineConfig:
    """Return the active engine configuration."""
    return _active_config


def set_config(config: EngineConfig) -> None:
    """Replace the active engine configuration and apply its log level."""
    global _active_config
    _active_config = config
    configure_logging(config)


def configure_logging(config: Optional[EngineConfig] = None) -> logging.Logger:
    """Apply the configured level to the package logger."""
    config = config or _active_config
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, config.log_level, logging.WARNING))
    return package_logger


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Build a random generator for stochastic automation.

    Falls back to the configured seed when none is given.
    """
    if seed is None:
        seed = _active_config.seed
    return np.random.default_rng(seed)
