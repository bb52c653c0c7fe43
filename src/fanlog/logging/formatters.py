"""
Log formatters and color utilities.

All formatters are pure: ``format(record) -> str``, the record is never mutated.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

import orjson

from .severity import Severity
from .types import LogRecord

# =============================================================================
# Timestamps
# =============================================================================


def format_timestamp(moment: datetime) -> str:
    """Render ``YYYY-MM-DD hh:mm:ss.SSS AM`` (12-hour clock, milliseconds)."""
    millis = moment.microsecond // 1000
    return f"{moment:%Y-%m-%d %I:%M:%S}.{millis:03d} {moment:%p}"


def orjson_dumps(v: Any, *, default: Any = str) -> str:
    """Fast JSON serialization using orjson."""
    return orjson.dumps(v, default=default, option=orjson.OPT_NON_STR_KEYS).decode()


# =============================================================================
# Formatter Abstraction
# =============================================================================


class BaseFormatter(ABC):
    @abstractmethod
    def format(self, record: LogRecord) -> str: ...


# =============================================================================
# Console Formatter
# =============================================================================

COLORS = {
    "reset": "\033[0m",
    "dim": "\033[2m",
    "key": "\033[34m",
}

LEVEL_COLORS = {
    Severity.SILLY: "\033[35m",
    Severity.DEBUG: "\033[34m",
    Severity.VERBOSE: "\033[36m",
    Severity.INFO: "\033[32m",
    Severity.WARN: "\033[33m",
    Severity.ERROR: "\033[31m",
}


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    return f"{color}{text}{COLORS['reset']}"


class ConsoleFormatter(BaseFormatter):
    """Human-readable ``[<timestamp>] (<level>): <message>`` lines.

    Extra fields follow the message as ``key=value`` pairs. Colour codes are
    only emitted when ``use_color`` is set, so the same formatter is safe for
    pipes and redirected output.
    """

    def __init__(self, *, use_color: bool = True):
        self.use_color = use_color

    def _maybe_color(self, text: str, color: str) -> str:
        if not self.use_color:
            return text
        return colorize(text, color)

    def format(self, record: LogRecord) -> str:
        level_color = LEVEL_COLORS[record.level]
        message = self._maybe_color(record.message, level_color)

        extras = []
        for key, value in record.fields.items():
            extras.append(f"{self._maybe_color(str(key), COLORS['key'])}={self._maybe_color(str(value), COLORS['dim'])}")
        if extras:
            message = f"{message} " + " ".join(extras)

        level = self._maybe_color(record.level.value, level_color)
        return f"[{format_timestamp(record.timestamp)}] ({level}): {message}"


# =============================================================================
# Structured (JSON) Formatter
# =============================================================================


class StructuredFormatter(BaseFormatter):
    """One compact JSON object per record for files.

    Keys: ``level``, ``message``, any extra fields, then ``timestamp``. Extra
    fields never overwrite the three reserved keys.
    """

    RESERVED_KEYS = ("level", "message", "timestamp")

    def to_dict(self, record: LogRecord) -> dict[str, Any]:
        entry: dict[str, Any] = {"level": record.level.value, "message": record.message}
        for key, value in record.fields.items():
            if key not in self.RESERVED_KEYS:
                entry[key] = value
        entry["timestamp"] = format_timestamp(record.timestamp)
        return entry

    def format(self, record: LogRecord) -> str:
        entry = self.to_dict(record)
        try:
            return orjson_dumps(entry)
        except orjson.JSONEncodeError:
            # e.g. integers wider than 64 bits, or cyclic containers
            return orjson_dumps({key: value if key in self.RESERVED_KEYS else str(value) for key, value in entry.items()})


# =============================================================================
# Remote Message Formatter
# =============================================================================


class RemoteMessageFormatter(BaseFormatter):
    """Minimal ``[<level>] : <message>`` text sent to log aggregation."""

    def format(self, record: LogRecord) -> str:
        return f"[{record.level.value}] : {record.message}"


__all__ = [
    "BaseFormatter",
    "ConsoleFormatter",
    "StructuredFormatter",
    "RemoteMessageFormatter",
    "format_timestamp",
    "orjson_dumps",
    "colorize",
]
