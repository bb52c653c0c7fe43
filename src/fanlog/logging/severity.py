"""
Severity model.

Total order: silly < debug < verbose < info < warn < error.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import total_ordering
from typing import Union

SeverityLike = Union["Severity", str, int]


@total_ordering
class Severity(Enum):
    """Ordered log level. The value is the name written to every sink."""

    SILLY = "silly"
    DEBUG = "debug"
    VERBOSE = "verbose"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: SeverityLike) -> "Severity":
        """Coerce a name, alias, stdlib level number or Severity into a Severity."""
        if isinstance(value, Severity):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid log level: {value!r}")
        if isinstance(value, int):
            return cls.from_stdlib(value)
        name = str(value).strip().lower()
        if name in _ALIASES:
            return _ALIASES[name]
        try:
            return cls(name)
        except ValueError:
            raise ValueError(
                f"Unknown log level: {value!r}. Supported: {[s.value for s in cls]}"
            ) from None

    @classmethod
    def from_stdlib(cls, levelno: int) -> "Severity":
        """Map a stdlib ``logging`` level number onto the nearest severity."""
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno > logging.DEBUG:
            return cls.VERBOSE
        if levelno == logging.DEBUG:
            return cls.DEBUG
        return cls.SILLY


_RANKS = {
    Severity.SILLY: 0,
    Severity.DEBUG: 1,
    Severity.VERBOSE: 2,
    Severity.INFO: 3,
    Severity.WARN: 4,
    Severity.ERROR: 5,
}

_ALIASES = {
    "warning": Severity.WARN,
    "critical": Severity.ERROR,
    "fatal": Severity.ERROR,
}


def is_at_least(level: SeverityLike, minimum: SeverityLike) -> bool:
    """Return True when ``level`` is as severe as ``minimum`` or more."""
    return Severity.parse(level).rank >= Severity.parse(minimum).rank


__all__ = ["Severity", "SeverityLike", "is_at_least"]
