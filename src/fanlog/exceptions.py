"""
Fanlog exception hierarchy.

Only configuration problems are raised to callers. Delivery failures (local
I/O, remote upload) are contained inside the sinks and never escape a log call.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class FanlogError(Exception):
    """Base class for all fanlog errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class LoggingConfigurationError(FanlogError):
    """Raised when the logger cannot be built from the given configuration.

    This is fatal at start-up: the process should fail rather than silently
    drop a sink it was asked to deliver to.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "LOGGING_CONFIG_INVALID",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class MissingCloudWatchSettings(LoggingConfigurationError):
    """CloudWatch delivery is enabled but identifying fields are absent."""

    def __init__(self, *, missing: list[str]) -> None:
        message = "CloudWatch logging is enabled but missing required settings: " + ", ".join(missing)
        super().__init__(message, code="CLOUDWATCH_CONFIG_MISSING", details={"missing": missing})


__all__ = [
    "FanlogError",
    "LoggingConfigurationError",
    "MissingCloudWatchSettings",
]
