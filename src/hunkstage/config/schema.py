"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

StagingMode = Literal["interactive", "scripted"]
OutputFormat = Literal["terminal", "json"]
LogFormat = Literal["console", "json"]

STAGING_MODES = ("interactive", "scripted")
OUTPUT_FORMATS = ("terminal", "json")
LOG_FORMATS = ("console", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class GitConfig:
    executable: str = "git"
    timeout: Optional[float] = 30.0  # seconds; bounds every git invocation


@dataclass
class StagingConfig:
    mode: StagingMode = "interactive"
    prompt_padding: int = 10  # extra "n" answers in scripted mode


@dataclass
class DiffConfig:
    find_renames: bool = False
    context: int = 3


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_line_numbers: bool = True


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    format: LogFormat = "console"


@dataclass
class HunkstageConfig:
    version: str = "1.0"
    git: GitConfig = field(default_factory=GitConfig)
    staging: StagingConfig = field(default_factory=StagingConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
