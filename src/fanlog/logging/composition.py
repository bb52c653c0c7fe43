"""
Composition policy: which sinks a configuration activates.

Two policy shapes exist:

- ``exclusive`` (default): CloudWatch, when enabled, is the only mandatory
  sink; console and files come back only if their suppress flags are off.
  Without CloudWatch the console is always on and files follow
  ``file_logs.enable``, rotating or not per ``file_logs.rotation.enable``.
- ``env_driven``: the console is always on; CloudWatch replaces the file sinks
  entirely; otherwise a fixed daily-rotating file set is used.

Both are decision tables so every combination can be enumerated in tests.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Callable

from .cloudwatch import CloudWatchSink
from .filters import ExactLevelFilter, LevelFilter, ThresholdFilter
from .severity import Severity
from .sinks import BaseSink, ConsoleSink, FileSink, RotatingFileSink
from .types import CompositionPolicy, LoggingOptions, parse_size


class SinkKind(str, Enum):
    CLOUDWATCH = "cloudwatch"
    CONSOLE = "console"
    FILES = "files"
    ROTATING_FILES = "rotating_files"


# Rotation used by the env-driven policy, not configurable
FIXED_ROTATION_MAX_BYTES = parse_size("20m")
FIXED_ROTATION_RETENTION = timedelta(days=14)

# Exclusive policy, keyed by
# (remote_enabled, console_suppressed, file_suppressed, rotation_enabled).
# Without CloudWatch "file_suppressed" means file logging is disabled and the
# console cannot be suppressed, so those keys are absent.
_EXCLUSIVE_TABLE: dict[tuple[bool, bool, bool, bool], tuple[SinkKind, ...]] = {
    (False, False, False, False): (SinkKind.CONSOLE, SinkKind.FILES),
    (False, False, False, True): (SinkKind.CONSOLE, SinkKind.ROTATING_FILES),
    (False, False, True, False): (SinkKind.CONSOLE,),
    (False, False, True, True): (SinkKind.CONSOLE,),
    (True, True, True, False): (SinkKind.CLOUDWATCH,),
    (True, True, True, True): (SinkKind.CLOUDWATCH,),
    (True, False, True, False): (SinkKind.CLOUDWATCH, SinkKind.CONSOLE),
    (True, False, True, True): (SinkKind.CLOUDWATCH, SinkKind.CONSOLE),
    (True, True, False, False): (SinkKind.CLOUDWATCH, SinkKind.FILES),
    (True, True, False, True): (SinkKind.CLOUDWATCH, SinkKind.ROTATING_FILES),
    (True, False, False, False): (SinkKind.CLOUDWATCH, SinkKind.CONSOLE, SinkKind.FILES),
    (True, False, False, True): (SinkKind.CLOUDWATCH, SinkKind.CONSOLE, SinkKind.ROTATING_FILES),
}

# Env-driven policy, keyed by remote_enabled
_ENV_DRIVEN_TABLE: dict[bool, tuple[SinkKind, ...]] = {
    True: (SinkKind.CONSOLE, SinkKind.CLOUDWATCH),
    False: (SinkKind.CONSOLE, SinkKind.ROTATING_FILES),
}


def resolve_level(options: LoggingOptions) -> Severity:
    """Global minimum: the explicit override, else info in production, else debug."""
    if options.level is not None:
        return options.level
    return Severity.INFO if options.is_production else Severity.DEBUG


def exclusive_key(options: LoggingOptions) -> tuple[bool, bool, bool, bool]:
    """Normalize options into the exclusive policy's table key."""
    remote = options.cloudwatch.enable
    if remote:
        console_suppressed = options.cloudwatch.disable_console_logs
        file_suppressed = options.cloudwatch.disable_file_logs
    else:
        console_suppressed = False
        file_suppressed = not options.file_logs.enable
    return (remote, console_suppressed, file_suppressed, options.file_logs.rotation.enable)


def plan_sinks(options: LoggingOptions) -> tuple[SinkKind, ...]:
    """Ordered sink kinds for ``options``. Pure; nothing is instantiated."""
    if options.policy is CompositionPolicy.ENV_DRIVEN:
        return _ENV_DRIVEN_TABLE[options.cloudwatch.enable]
    return _EXCLUSIVE_TABLE[exclusive_key(options)]


# =============================================================================
# Sink Construction
# =============================================================================


def _file_destinations(level: Severity) -> list[tuple[str, LevelFilter]]:
    """combined (threshold at the global minimum), error and info (exact match)."""
    return [
        ("combined", ThresholdFilter(level)),
        ("error", ExactLevelFilter(Severity.ERROR)),
        ("info", ExactLevelFilter(Severity.INFO)),
    ]


def build_console_sink(options: LoggingOptions, level: Severity) -> list[BaseSink]:
    return [ConsoleSink(ThresholdFilter(level), colorize=options.console.colorize)]


def build_file_sinks(options: LoggingOptions, level: Severity) -> list[BaseSink]:
    log_dir = Path(options.file_logs.log_dir)
    return [FileSink(log_dir / f"{stem}.log", level_filter, name=stem) for stem, level_filter in _file_destinations(level)]


def build_rotating_file_sinks(options: LoggingOptions, level: Severity) -> list[BaseSink]:
    if options.policy is CompositionPolicy.ENV_DRIVEN:
        max_bytes, retention = FIXED_ROTATION_MAX_BYTES, FIXED_ROTATION_RETENTION
    else:
        rotation = options.file_logs.rotation
        max_bytes, retention = rotation.max_size, rotation.max_age
    return [
        RotatingFileSink(
            options.file_logs.log_dir,
            stem,
            level_filter,
            max_bytes=max_bytes,
            retention=retention,
        )
        for stem, level_filter in _file_destinations(level)
    ]


def build_cloudwatch_sink(options: LoggingOptions, level: Severity) -> list[BaseSink]:
    return [CloudWatchSink(options.cloudwatch, ThresholdFilter(level))]


SinkBuilder = Callable[[LoggingOptions, Severity], list[BaseSink]]

# One builder per sink kind (Strategy Pattern)
_SINK_BUILDERS: dict[SinkKind, SinkBuilder] = {
    SinkKind.CLOUDWATCH: build_cloudwatch_sink,
    SinkKind.CONSOLE: build_console_sink,
    SinkKind.FILES: build_file_sinks,
    SinkKind.ROTATING_FILES: build_rotating_file_sinks,
}


def build_sinks(options: LoggingOptions) -> list[BaseSink]:
    """Instantiate the active sinks for ``options``, in plan order.

    Raises:
        LoggingConfigurationError: CloudWatch is enabled without its
            identifying settings.
    """
    level = resolve_level(options)
    sinks: list[BaseSink] = []
    for kind in plan_sinks(options):
        sinks.extend(_SINK_BUILDERS[kind](options, level))
    return sinks


__all__ = [
    "SinkKind",
    "resolve_level",
    "exclusive_key",
    "plan_sinks",
    "build_sinks",
    "build_console_sink",
    "build_file_sinks",
    "build_rotating_file_sinks",
    "build_cloudwatch_sink",
    "FIXED_ROTATION_MAX_BYTES",
    "FIXED_ROTATION_RETENTION",
]
