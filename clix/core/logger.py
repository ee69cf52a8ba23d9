"""Structured logging — field-carrying loggers on top of stdlib ``logging``.

Loggers are ``FieldLogger`` adapters: ``with_fields`` returns a new
adapter whose fields are attached to every record and rendered by the
handler's formatter (``key=value`` pairs for text, object members for
JSON).

Process-wide state
------------------
``install`` publishes a logger as the process default and moves its
handlers onto the root logger so that library loggers share them. It is
called once during bootstrap; everything afterwards only reads it through
``get_logger``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from clix.config import LogFormat, LoggerConfig

_default: FieldLogger | None = None
_installed_handlers: list[logging.Handler] = []


# ---------------------------------------------------------------------------
# Field-carrying adapter
# ---------------------------------------------------------------------------


class FieldLogger(logging.LoggerAdapter):
    """Logger adapter that carries structured fields."""

    def __init__(self, logger: logging.Logger, fields: dict[str, Any] | None = None) -> None:
        super().__init__(logger, dict(fields or {}))

    @property
    def fields(self) -> dict[str, Any]:
        return dict(self.extra)

    def with_fields(self, **fields: Any) -> FieldLogger:
        """Return a new adapter with *fields* merged into the current ones."""
        return FieldLogger(self.logger, {**self.extra, **fields})

    def with_error(self, err: BaseException) -> FieldLogger:
        return self.with_fields(error=str(err))

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        extra["fields"] = {**self.extra, **extra.get("fields", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "fields", None) or {}


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class FieldsFormatter(logging.Formatter):
    """Appends record fields as ``key=value`` pairs to the message."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = record_fields(record)
        if not fields:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in fields.items())
        return f"{message}  {pairs}"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def _level(config: LoggerConfig, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if config.quiet:
        return logging.ERROR
    return config.level.levelno


def _handlers(config: LoggerConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if config.format == LogFormat.JSON:
        stream = logging.StreamHandler()
        stream.setFormatter(JSONFormatter())
        handlers.append(stream)
    else:
        rich_handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        rich_handler.setFormatter(FieldsFormatter("%(message)s"))
        handlers.append(rich_handler)

    if config.path is not None:
        config.path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.path, encoding="utf-8")
        if config.format == LogFormat.JSON:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                FieldsFormatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
            )
        handlers.append(file_handler)
    return handlers


def new_logger(name: str, config: LoggerConfig | None = None, *, debug: bool = False) -> FieldLogger:
    """Build a logger named *name* from *config*.

    Handlers previously attached to the same logger are replaced.
    """
    config = config or LoggerConfig()
    base = logging.getLogger(name)
    for handler in list(base.handlers):
        base.removeHandler(handler)
        handler.close()
    for handler in _handlers(config):
        base.addHandler(handler)
    base.setLevel(_level(config, debug))
    base.propagate = False
    return FieldLogger(base)


# ---------------------------------------------------------------------------
# Process-wide default
# ---------------------------------------------------------------------------


def install(logger: FieldLogger) -> None:
    """Publish *logger* as the process default and share its handlers."""
    global _default
    base = logger.logger
    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()
    for handler in list(base.handlers):
        base.removeHandler(handler)
        root.addHandler(handler)
        _installed_handlers.append(handler)
    root.setLevel(base.level)
    base.propagate = True
    _default = logger


def get_logger() -> FieldLogger:
    """The installed process-wide logger, or an unconfigured fallback."""
    if _default is not None:
        return _default
    return FieldLogger(logging.getLogger("clix"))


def reset() -> None:
    """Forget the installed logger and detach its handlers. Intended for tests."""
    global _default
    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()
    _default = None
