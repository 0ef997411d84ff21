"""
Logging configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import get_args

from ..errors import InvalidConfigError
from .base import LogFormat, LogLevel


@dataclass
class LoggingConfig:
    """How agent runs are logged. See `StructuredLogger.from_config`."""

    level: LogLevel = "INFO"
    format: LogFormat = "text"

    # stderr when unset
    log_file: Path | None = None

    # Prompts can hold user data; off unless asked for
    log_prompts: bool = False
    log_completions: bool = True
    log_tool_calls: bool = True

    # Applies to Settings.to_dict() dumps
    redact_api_keys: bool = True

    def __post_init__(self):
        if self.level not in get_args(LogLevel):
            raise InvalidConfigError(f"Invalid log level {self.level!r}; expected one of {get_args(LogLevel)}")
        if self.format not in get_args(LogFormat):
            raise InvalidConfigError(f"Invalid log format {self.format!r}; expected one of {get_args(LogFormat)}")
        if self.log_file and isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)


__all__ = ["LoggingConfig"]
