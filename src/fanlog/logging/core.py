"""
Core logger facade and process-wide lifecycle.

A log call flows through a structlog processor chain:
level gate -> exception rendering -> timestamp -> message key -> sink fan-out.
The fan-out renderer delivers to every accepting sink and returns an empty
string to a silent wrapped logger, so structlog itself writes nothing.
"""

from __future__ import annotations

import atexit
import sys
import threading
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

import structlog
from structlog.typing import EventDict, WrappedLogger

from fanlog.exceptions import LoggingConfigurationError

from .composition import build_sinks, resolve_level
from .severity import Severity, SeverityLike
from .sinks import BaseSink
from .types import LoggingOptions, LogRecord

# =============================================================================
# Internal Error Reporting
# =============================================================================


def _report_failure(context: str, exc: BaseException) -> None:
    """Last-resort diagnostics; a log call must never raise."""
    try:
        print(f"fanlog: {context}: {type(exc).__name__}: {exc}", file=sys.__stderr__)
    except Exception:
        pass


# =============================================================================
# Structlog Processors
# =============================================================================


class LevelGate:
    """Drop events below the global minimum severity."""

    def __init__(self, minimum: Severity):
        self.minimum = minimum

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        if event_dict["level"] < self.minimum:
            raise structlog.DropEvent
        return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp the event with local wall-clock time."""
    event_dict["timestamp"] = datetime.now()
    return event_dict


def rename_event_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename structlog's 'event' to 'message'."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


class SinkFanout:
    """Render an event to every sink whose filter accepts it.

    A failing sink is reported on stderr; the remaining sinks still receive
    the record.
    """

    def __init__(self, sinks: Iterable[BaseSink]):
        self.sinks: tuple[BaseSink, ...] = tuple(sinks)

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        level = event_dict.pop("level")
        message = event_dict.pop("message", "")
        timestamp = event_dict.pop("timestamp")
        record = LogRecord(level=level, message=str(message), timestamp=timestamp, fields=event_dict)
        for sink in self.sinks:
            try:
                if sink.accepts(record):
                    sink.emit(record)
            except Exception as exc:
                _report_failure(f"sink {sink.name!r} failed to write a {level.value} record", exc)
        return ""


class _NopFile:
    def write(self, s: str) -> None:
        pass

    def flush(self) -> None:
        pass


_NOP_FILE = _NopFile()


# =============================================================================
# Logger Facade
# =============================================================================


class LoggerFacade(structlog.BoundLoggerBase):
    """Single logging entry point fanning records out to the active sinks.

    Use :meth:`create` to build one. ``bind()`` returns a facade sharing the
    same sinks with extra structured fields attached to every record.
    """

    @classmethod
    def create(cls, sinks: Sequence[BaseSink], level: SeverityLike) -> "LoggerFacade":
        processors = [
            LevelGate(Severity.parse(level)),
            structlog.processors.format_exc_info,
            add_timestamp,
            rename_event_key,
            SinkFanout(sinks),
        ]
        return cls(structlog.PrintLogger(file=_NOP_FILE), processors=processors, context={})

    @property
    def level(self) -> Severity:
        """Global minimum severity."""
        return self._processor(LevelGate).minimum

    @property
    def sinks(self) -> tuple[BaseSink, ...]:
        return self._processor(SinkFanout).sinks

    def _processor(self, kind: type) -> Any:
        return next(p for p in self._processors if isinstance(p, kind))

    def log(self, level: SeverityLike, message: Any, /, **fields: Any) -> None:
        """Deliver ``message`` to every active sink that accepts ``level``."""
        try:
            severity = Severity.parse(level)
            # passed as a dict so no field name collides with a parameter
            args, kw = self._process_event("msg", None, {**fields, "level": severity, "event": message})
            self._logger.msg(*args, **kw)
        except structlog.DropEvent:
            return
        except Exception as exc:
            _report_failure(f"dropped log record {message!r}", exc)

    def silly(self, message: Any, /, **fields: Any) -> None:
        self.log(Severity.SILLY, message, **fields)

    def debug(self, message: Any, /, **fields: Any) -> None:
        self.log(Severity.DEBUG, message, **fields)

    def verbose(self, message: Any, /, **fields: Any) -> None:
        self.log(Severity.VERBOSE, message, **fields)

    def info(self, message: Any, /, **fields: Any) -> None:
        self.log(Severity.INFO, message, **fields)

    def warn(self, message: Any, /, **fields: Any) -> None:
        self.log(Severity.WARN, message, **fields)

    warning = warn

    def error(self, message: Any, /, **fields: Any) -> None:
        self.log(Severity.ERROR, message, **fields)

    def exception(self, message: Any, /, **fields: Any) -> None:
        """Log at error level with the active exception's traceback."""
        fields.setdefault("exc_info", True)
        self.log(Severity.ERROR, message, **fields)

    def close(self) -> None:
        """Close every sink. Buffered remote delivery is flushed best-effort."""
        for sink in self.sinks:
            try:
                sink.close()
            except Exception as exc:
                _report_failure(f"sink {sink.name!r} failed to close", exc)


# =============================================================================
# Configuration Logic
# =============================================================================


def configure_logging(options: LoggingOptions) -> LoggerFacade:
    """Build a facade for ``options`` without registering it process-wide.

    Raises:
        LoggingConfigurationError: The options cannot produce the sinks they
            ask for (e.g. CloudWatch without credentials).
    """
    return LoggerFacade.create(build_sinks(options), resolve_level(options))


_logger: Optional[LoggerFacade] = None
_logger_options: Optional[LoggingOptions] = None
_lock = threading.Lock()


def _options_from_settings() -> LoggingOptions:
    # Imported here to avoid a circular import (config depends on logging.types)
    from fanlog.config import settings

    return settings.logging.to_options(settings.environment)


def init_logging(options: Optional[LoggingOptions] = None) -> LoggerFacade:
    """Build the process-wide logger once, at start-up.

    Without ``options`` the configuration comes from ``fanlog.config.settings``.
    Calling again returns the existing logger; asking for different options
    after construction is an error, since configuration is read once.
    """
    global _logger, _logger_options

    with _lock:
        if _logger is not None:
            if options is not None and options != _logger_options:
                raise LoggingConfigurationError(
                    "Logging is already initialized with different options",
                    code="LOGGING_ALREADY_INITIALIZED",
                )
            return _logger

        resolved = options if options is not None else _options_from_settings()
        logger = configure_logging(resolved)
        atexit.register(logger.close)
        _logger, _logger_options = logger, resolved
        return logger


def get_logger() -> LoggerFacade:
    """Return the process-wide logger, building it from settings on first use."""
    logger = _logger
    if logger is not None:
        return logger
    return init_logging()


def _reset_logger() -> None:
    """Close and forget the process-wide logger (tests only)."""
    global _logger, _logger_options

    with _lock:
        if _logger is not None:
            atexit.unregister(_logger.close)
            _logger.close()
        _logger, _logger_options = None, None


__all__ = [
    "LoggerFacade",
    "LevelGate",
    "SinkFanout",
    "configure_logging",
    "init_logging",
    "get_logger",
]
