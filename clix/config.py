"""Logging configuration — env-driven via pydantic-settings.

Every setting can be given on the command line (``--log.level`` ...) or
through ``LOG_*`` environment variables. Command-line values win.

Examples
--------
Override via environment::

    export LOG_LEVEL=debug
    export LOG_FORMAT=json
    export LOG_PATH=/var/log/mytool.log
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Accepted log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def levelno(self) -> int:
        return logging.getLevelName(self.value.upper())


class LogFormat(str, Enum):
    """Output encoding for log lines."""

    TEXT = "text"
    JSON = "json"


class LoggerConfig(BaseSettings):
    """Logger settings with ``LOG_*`` environment variable overrides."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        extra="ignore",
    )

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    quiet: bool = False  # only log errors
    path: Path | None = None  # additionally write logs to this file
