"""Load and merge configuration from .hunkstage.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from hunkstage.config.schema import (
    LOG_FORMATS,
    LOG_LEVELS,
    OUTPUT_FORMATS,
    STAGING_MODES,
    DiffConfig,
    GitConfig,
    HunkstageConfig,
    LoggingConfig,
    OutputConfig,
    StagingConfig,
)

CONFIG_FILENAME = ".hunkstage.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: HunkstageConfig) -> None:
    if cfg.staging.mode not in STAGING_MODES:
        raise ConfigError(f"Invalid staging mode: {cfg.staging.mode!r}")
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"Invalid output format: {cfg.output.format!r}")
    if cfg.logging.format not in LOG_FORMATS:
        raise ConfigError(f"Invalid log format: {cfg.logging.format!r}")
    if cfg.logging.level.upper() not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level: {cfg.logging.level!r}")
    if cfg.staging.prompt_padding < 0:
        raise ConfigError("staging.prompt_padding must be >= 0")
    if cfg.diff.context < 0:
        raise ConfigError("diff.context must be >= 0")
    if cfg.git.timeout is not None and cfg.git.timeout <= 0:
        raise ConfigError("git.timeout must be positive")


def _merge_env_overrides(cfg: HunkstageConfig) -> None:
    """Apply HUNKSTAGE_* environment variable overrides. Invalid values are ignored."""
    if val := os.environ.get("HUNKSTAGE_GIT"):
        cfg.git.executable = val
    if val := os.environ.get("HUNKSTAGE_TIMEOUT"):
        try:
            timeout = float(val)
        except ValueError:
            pass
        else:
            if timeout > 0:
                cfg.git.timeout = timeout
    if val := os.environ.get("HUNKSTAGE_STAGING_MODE"):
        if val in STAGING_MODES:
            cfg.staging.mode = val  # type: ignore[assignment]
    if val := os.environ.get("HUNKSTAGE_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("HUNKSTAGE_LOG_LEVEL"):
        if val.upper() in LOG_LEVELS:
            cfg.logging.level = val.upper()
    if val := os.environ.get("HUNKSTAGE_LOG_FORMAT"):
        if val in LOG_FORMATS:
            cfg.logging.format = val  # type: ignore[assignment]


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> HunkstageConfig:
    """Load, validate, and return a HunkstageConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = HunkstageConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = HunkstageConfig(
                version=raw.get("version", "1.0"),
                git=_build_section(raw, GitConfig, "git"),
                staging=_build_section(raw, StagingConfig, "staging"),
                diff=_build_section(raw, DiffConfig, "diff"),
                output=_build_section(raw, OutputConfig, "output"),
                logging=_build_section(raw, LoggingConfig, "logging"),
            )
            _validate(cfg)
        except (TypeError, AttributeError) as exc:
            raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc

    _merge_env_overrides(cfg)
    return cfg
