"""Logging setup for calexpr.

Library modules log through ``logging.getLogger(__name__)`` and never
install handlers themselves. Applications (and the ``calexpr`` CLI) call
:func:`configure_logging` to attach a handler to the ``calexpr`` logger
with one of three output formats:

- ``console``: human-readable, colored when writing to a terminal
- ``json``: one JSON object per line, for log aggregation
- ``logfmt``: ``key=value`` pairs

Usage:
    >>> from calexpr.infrastructure.logging import configure_logging
    >>> configure_logging(level="debug", format="json")

Structured fields passed through ``extra`` are included in every format:

    >>> logger.debug("Next timeout found", extra={"timezone": "UTC"})
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from calexpr.infrastructure.config import ConfigProfile

ROOT_LOGGER = "calexpr"

# Attributes every stdlib LogRecord carries; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class LogLevel(IntEnum):
    """Log severity levels."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def from_string(cls, level: str) -> "LogLevel":
        """Convert string to LogLevel, defaulting to INFO."""
        mapping = {
            "debug": cls.DEBUG,
            "info": cls.INFO,
            "warning": cls.WARNING,
            "warn": cls.WARNING,
            "error": cls.ERROR,
            "critical": cls.CRITICAL,
            "fatal": cls.CRITICAL,
        }
        return mapping.get(level.lower(), cls.INFO)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class ConsoleFormatter(logging.Formatter):
    """Human-readable output with optional ANSI colors."""

    COLORS = {
        LogLevel.DEBUG: "\033[36m",     # Cyan
        LogLevel.INFO: "\033[32m",      # Green
        LogLevel.WARNING: "\033[33m",   # Yellow
        LogLevel.ERROR: "\033[31m",     # Red
        LogLevel.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, *, color: bool = False, timestamp_format: str = "%Y-%m-%d %H:%M:%S") -> None:
        super().__init__()
        self._color = color
        self._timestamp_format = timestamp_format

    def format(self, record: logging.LogRecord) -> str:
        parts = [_timestamp(record).strftime(self._timestamp_format)]

        level = record.levelname.ljust(8)
        if self._color:
            color = self.COLORS.get(record.levelno, "")
            level = f"{color}{level}{self.RESET}"
        parts.append(level)
        parts.append(f"[{record.name}]")
        parts.append(record.getMessage())

        fields = _extra_fields(record)
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))

        result = " ".join(parts)
        if record.exc_info:
            result = f"{result}\n{self.formatException(record.exc_info)}"
        return result


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(_extra_fields(record))
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class LogfmtFormatter(logging.Formatter):
    """``key=value`` pairs, quoting values that contain spaces."""

    def format(self, record: logging.LogRecord) -> str:
        pairs: dict[str, Any] = {
            "ts": _timestamp(record).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        pairs.update(_extra_fields(record))
        return " ".join(f"{k}={self._quote(v)}" for k, v in pairs.items())

    @staticmethod
    def _quote(value: Any) -> str:
        text = str(value)
        if not text or any(c in text for c in ' ="'):
            return json.dumps(text)
        return text


_FORMATTERS = {
    "json": JsonFormatter,
    "logfmt": LogfmtFormatter,
}


@dataclass
class LogConfig:
    """Logging configuration.

    Example:
        >>> config = LogConfig(level="debug", format="json")
    """

    level: str | LogLevel = LogLevel.WARNING
    format: str = "console"  # console, json, logfmt
    color: bool = True

    @property
    def log_level(self) -> LogLevel:
        if isinstance(self.level, LogLevel):
            return self.level
        return LogLevel.from_string(self.level)

    @classmethod
    def from_config(cls, profile: "ConfigProfile") -> "LogConfig":
        """Read the ``logging`` section of a configuration profile."""
        return cls(
            level=profile.get_str("logging.level", "WARNING"),
            format=profile.get_str("logging.format", "console"),
        )

    def create_formatter(self, stream: TextIO) -> logging.Formatter:
        formatter_cls = _FORMATTERS.get(self.format)
        if formatter_cls is not None:
            return formatter_cls()
        color = self.color and hasattr(stream, "isatty") and stream.isatty()
        return ConsoleFormatter(color=color)


_handler: logging.Handler | None = None
_lock = threading.Lock()


def configure_logging(
    *,
    level: str | LogLevel = LogLevel.WARNING,
    format: str = "console",
    stream: TextIO | None = None,
    color: bool = True,
) -> logging.Logger:
    """Configure the ``calexpr`` logger.

    Replaces any handler installed by a previous call.

    Args:
        level: Log level.
        format: Output format (console, json, logfmt).
        stream: Output stream (default: stderr).
        color: Enable ANSI colors on terminals in console format.

    Returns:
        The configured ``calexpr`` logger.
    """
    global _handler

    config = LogConfig(level=level, format=format, color=color)
    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setFormatter(config.create_formatter(stream))

    logger = logging.getLogger(ROOT_LOGGER)
    with _lock:
        if _handler is not None:
            logger.removeHandler(_handler)
        logger.addHandler(handler)
        logger.setLevel(config.log_level)
        logger.propagate = False
        _handler = handler
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the ``calexpr`` namespace."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def reset_logging() -> None:
    """Remove the handler installed by :func:`configure_logging`."""
    global _handler

    logger = logging.getLogger(ROOT_LOGGER)
    with _lock:
        if _handler is not None:
            logger.removeHandler(_handler)
            _handler = None
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
