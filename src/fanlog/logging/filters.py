"""
Level filters deciding which records a sink accepts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .severity import Severity, SeverityLike
from .types import LogRecord


class LevelFilter(ABC):
    """Predicate over log records."""

    @abstractmethod
    def accepts(self, record: LogRecord) -> bool: ...


class ThresholdFilter(LevelFilter):
    """Accepts records at ``minimum`` or anything more severe."""

    def __init__(self, minimum: SeverityLike):
        self.minimum = Severity.parse(minimum)

    def accepts(self, record: LogRecord) -> bool:
        return record.level >= self.minimum

    def __repr__(self) -> str:
        return f"ThresholdFilter(minimum={self.minimum.value!r})"


class ExactLevelFilter(LevelFilter):
    """Accepts only records whose level equals ``target``.

    Per-level files (``info.log``) rely on this: info.log holds info records
    only, not info-and-above.
    """

    def __init__(self, target: SeverityLike):
        self.target = Severity.parse(target)

    def accepts(self, record: LogRecord) -> bool:
        return record.level is self.target

    def __repr__(self) -> str:
        return f"ExactLevelFilter(target={self.target.value!r})"


__all__ = ["LevelFilter", "ThresholdFilter", "ExactLevelFilter"]
