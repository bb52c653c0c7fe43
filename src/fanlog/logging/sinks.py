"""
Log sink abstractions and local implementations.

Every sink pairs a level filter with a formatter and a delivery target. The
remote CloudWatch sink lives in ``cloudwatch.py``.
"""

from __future__ import annotations

import gzip
import os
import re
import shutil
import sys
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import IO, Callable, Optional, Union

from .filters import LevelFilter, ThresholdFilter
from .formatters import BaseFormatter, ConsoleFormatter, StructuredFormatter
from .severity import Severity
from .types import LogRecord

DATE_PATTERN = "%Y-%m-%d"

# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks."""

    def __init__(self, *, name: str, formatter: BaseFormatter, level_filter: LevelFilter):
        self.name = name
        self.formatter = formatter
        self.filter = level_filter

    def accepts(self, record: LogRecord) -> bool:
        return self.filter.accepts(record)

    def emit(self, record: LogRecord) -> None:
        """Format a record and hand it to the delivery target."""
        self.deliver(self.formatter.format(record))

    @abstractmethod
    def deliver(self, formatted: str) -> None:
        """Write one already formatted record."""
        ...

    def close(self) -> None:
        """Close the sink and release resources."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, filter={self.filter!r})"


class ConsoleSink(BaseSink):
    """Standard output sink, always human-readable.

    Args:
        level_filter: Usually the global threshold.
        stream: Output stream (default: the current ``sys.stdout``)
        colorize: Force colour on or off; ``None`` colours only TTYs.
    """

    def __init__(
        self,
        level_filter: Optional[LevelFilter] = None,
        *,
        stream: Optional[IO[str]] = None,
        colorize: Optional[bool] = None,
    ):
        self._stream = stream
        self._colorize = colorize
        self._color_formatter = ConsoleFormatter(use_color=True)
        self._plain_formatter = ConsoleFormatter(use_color=False)
        super().__init__(
            name="console",
            formatter=self._color_formatter,
            level_filter=level_filter or ThresholdFilter(Severity.SILLY),
        )

    @property
    def stream(self) -> IO[str]:
        return self._stream or sys.stdout

    @property
    def use_color(self) -> bool:
        if self._colorize is not None:
            return self._colorize
        return bool(getattr(self.stream, "isatty", lambda: False)())

    def emit(self, record: LogRecord) -> None:
        formatter = self._color_formatter if self.use_color else self._plain_formatter
        self.deliver(formatter.format(record))

    def deliver(self, formatted: str) -> None:
        stream = self.stream
        stream.write(formatted + "\n")
        stream.flush()


class FileSink(BaseSink):
    """Append-only local file (JSON lines), opened on first write."""

    def __init__(
        self,
        path: Union[str, Path],
        level_filter: LevelFilter,
        *,
        name: Optional[str] = None,
        formatter: Optional[BaseFormatter] = None,
    ):
        self.path = Path(path)
        self._file: Optional[IO[str]] = None
        super().__init__(
            name=name or self.path.stem,
            formatter=formatter or StructuredFormatter(),
            level_filter=level_filter,
        )

    def deliver(self, formatted: str) -> None:
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "a", encoding="utf-8")
        self._file.write(formatted + "\n")
        self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None


class RotatingFileSink(BaseSink):
    """Daily file with size-triggered rotation, gzip archives and retention.

    The active file is ``<stem>-<YYYY-MM-DD>.log``. It is archived to
    ``<stem>-<date>.<n>.log.gz`` when the date changes or when it grows past
    ``max_bytes``, whichever comes first. After each rotation archives older
    than ``retention`` (a ``timedelta``) or beyond ``retention`` files (an
    ``int``) are deleted, oldest first. Active files of earlier days found when
    a file is opened, e.g. left by a previous process, are archived the same way.
    """

    def __init__(
        self,
        log_dir: Union[str, Path],
        stem: str,
        level_filter: LevelFilter,
        *,
        max_bytes: int,
        retention: Union[timedelta, int],
        formatter: Optional[BaseFormatter] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.log_dir = Path(log_dir)
        self.stem = stem
        self.max_bytes = max_bytes
        self.retention = retention
        self._clock = clock
        self._file: Optional[IO[str]] = None
        self._date: Optional[str] = None
        self._archive_pattern = re.compile(rf"^{re.escape(stem)}-(\d{{4}}-\d{{2}}-\d{{2}})\.(\d+)\.log\.gz$")
        self._active_pattern = re.compile(rf"^{re.escape(stem)}-(\d{{4}}-\d{{2}}-\d{{2}})\.log$")
        super().__init__(
            name=stem,
            formatter=formatter or StructuredFormatter(),
            level_filter=level_filter,
        )

    @property
    def path(self) -> Optional[Path]:
        """Path of the active file, if one has been opened."""
        if self._date is None:
            return None
        return self.path_for(self._date)

    def path_for(self, date: str) -> Path:
        return self.log_dir / f"{self.stem}-{date}.log"

    def deliver(self, formatted: str) -> None:
        today = self._clock().strftime(DATE_PATTERN)
        if self._file is not None and today != self._date:
            self._rotate()
        if self._file is None:
            self._open(today)
        assert self._file is not None
        self._file.write(formatted + "\n")
        self._file.flush()
        if os.fstat(self._file.fileno()).st_size > self.max_bytes:
            self._rotate()

    def _open(self, date: str) -> None:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._retire_stale(date)
        self._date = date
        self._file = open(self.path_for(date), "a", encoding="utf-8")

    def _retire_stale(self, today: str) -> None:
        """Archive active files of earlier days, e.g. left over by a previous process."""
        stale = []
        for path in self.log_dir.glob(f"{self.stem}-*.log"):
            match = self._active_pattern.match(path.name)
            if match and match.group(1) != today:
                stale.append((match.group(1), path))
        for date, path in sorted(stale):
            self._archive(date, path)
        if stale:
            self._apply_retention()

    def _rotate(self) -> None:
        if self._file is None or self._date is None:
            return
        self._file.close()
        self._file = None
        active = self.path_for(self._date)
        if active.exists():
            self._archive(self._date, active)
        self._apply_retention()

    def _archive(self, date: str, active: Path) -> None:
        # the archive keeps the source mtime so age-based retention sees the last write
        stat = active.stat()
        archive = self._next_archive_path(date)
        with open(active, "rb") as src, gzip.open(archive, "wb") as dst:
            shutil.copyfileobj(src, dst)
        os.utime(archive, (stat.st_atime, stat.st_mtime))
        active.unlink()

    def _next_archive_path(self, date: str) -> Path:
        prefix = f"{self.stem}-{date}."
        taken = [
            int(match.group(2))
            for candidate in self.log_dir.glob(f"{prefix}*.log.gz")
            if (match := self._archive_pattern.match(candidate.name))
        ]
        return self.log_dir / f"{prefix}{max(taken, default=0) + 1}.log.gz"

    def archives(self) -> list[Path]:
        """Archived files of this sink, oldest first."""
        found = []
        for path in self.log_dir.glob(f"{self.stem}-*.log.gz"):
            match = self._archive_pattern.match(path.name)
            if match:
                found.append((path.stat().st_mtime, match.group(1), int(match.group(2)), path))
        return [entry[-1] for entry in sorted(found)]

    def _apply_retention(self) -> None:
        archives = self.archives()
        if isinstance(self.retention, timedelta):
            # archive ages come from mtimes, so compare against wall-clock time
            cutoff = time.time() - self.retention.total_seconds()
            expired = [p for p in archives if p.stat().st_mtime < cutoff]
        else:
            expired = archives[: max(len(archives) - self.retention, 0)]
        for path in expired:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None


__all__ = [
    "BaseSink",
    "ConsoleSink",
    "FileSink",
    "RotatingFileSink",
    "DATE_PATTERN",
]
