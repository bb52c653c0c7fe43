"""
Unified Logging Service for Fanlog.

Provides structured logging with multiple sink support:
- console: Standard output, human-readable and colour-annotated
- files: combined / error / info JSON-lines files, optionally rotated daily
- cloudwatch: AWS CloudWatch Logs, uploaded in the background

Design Pattern: Strategy Pattern for sink abstraction, decision tables for
sink composition.
Library: structlog + orjson for the processor chain and JSON serialization.
"""

from .composition import SinkKind, build_sinks, plan_sinks, resolve_level
from .core import LoggerFacade, configure_logging, get_logger, init_logging
from .filters import ExactLevelFilter, LevelFilter, ThresholdFilter
from .formatters import ConsoleFormatter, RemoteMessageFormatter, StructuredFormatter
from .interceptors import intercept_stdlib_logging
from .severity import Severity, is_at_least
from .types import (
    CloudWatchOptions,
    CompositionPolicy,
    ConsoleOptions,
    FileLogOptions,
    LoggingOptions,
    LogRecord,
    RotationOptions,
)

__all__ = [
    "configure_logging",
    "init_logging",
    "get_logger",
    "intercept_stdlib_logging",
    "LoggerFacade",
    "Severity",
    "is_at_least",
    "LogRecord",
    "LoggingOptions",
    "FileLogOptions",
    "RotationOptions",
    "CloudWatchOptions",
    "ConsoleOptions",
    "CompositionPolicy",
    "SinkKind",
    "plan_sinks",
    "build_sinks",
    "resolve_level",
    "LevelFilter",
    "ThresholdFilter",
    "ExactLevelFilter",
    "ConsoleFormatter",
    "StructuredFormatter",
    "RemoteMessageFormatter",
]
