"""Configuration loading, schema, and defaults."""

from hunkstage.config.loader import ConfigError, load_config
from hunkstage.config.schema import HunkstageConfig

__all__ = [
    "ConfigError",
    "HunkstageConfig",
    "load_config",
]
