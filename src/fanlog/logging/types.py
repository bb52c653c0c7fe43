"""
Log record and resolved logging options.

``LoggingOptions`` is the already-resolved configuration the logger is built
from. It never reads the environment itself; see ``fanlog.config`` for that.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from .severity import Severity

PRODUCTION = "production"

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([kmg]?)b?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"": 1, "k": 1024, "m": 1024**2, "g": 1024**3}
_AGE_PATTERN = re.compile(r"^\s*(\d+)\s*(d?)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class LogRecord:
    """A single log entry, immutable once created."""

    level: Severity
    message: str
    timestamp: datetime
    fields: Mapping[str, Any] = field(default_factory=dict)


class CompositionPolicy(str, Enum):
    """How the active sink set is derived from configuration."""

    EXCLUSIVE = "exclusive"  # remote replaces local unless suppress flags are off
    ENV_DRIVEN = "env_driven"  # console always, remote replaces files


def parse_size(value: Union[int, str]) -> int:
    """Parse ``"10m"``-style sizes into bytes."""
    if isinstance(value, int):
        if value <= 0:
            raise ValueError("size must be positive")
        return value
    match = _SIZE_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid size: {value!r} (expected e.g. '500k', '10m', '1g')")
    size = int(match.group(1)) * _SIZE_UNITS[match.group(2).lower()]
    if size <= 0:
        raise ValueError("size must be positive")
    return size


def parse_retention(value: Union[int, str, timedelta]) -> Union[int, timedelta]:
    """Parse a retention policy.

    ``"7d"`` keeps files for seven days; a bare number keeps that many files.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, int):
        if value <= 0:
            raise ValueError("retention must be positive")
        return value
    match = _AGE_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid max age: {value!r} (expected e.g. '7d' or '10')")
    amount = int(match.group(1))
    if amount <= 0:
        raise ValueError("retention must be positive")
    if match.group(2):
        return timedelta(days=amount)
    return amount


class RotationOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    enable: bool = False
    max_size: int = Field(default=parse_size("10m"), description="Bytes before a size-triggered rotation")
    max_age: Union[timedelta, int] = Field(
        default=timedelta(days=7),
        description="Retention: a duration, or the number of archived files to keep",
    )

    @field_validator("max_size", mode="before")
    @classmethod
    def _parse_max_size(cls, value: Any) -> int:
        return parse_size(value)

    @field_validator("max_age", mode="before")
    @classmethod
    def _parse_max_age(cls, value: Any) -> Union[timedelta, int]:
        return parse_retention(value)


class FileLogOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    enable: bool = True
    log_dir: str = ".logs"
    rotation: RotationOptions = Field(default_factory=RotationOptions)


class CloudWatchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    enable: bool = False
    # console and file sinks are off by default while CloudWatch is on
    disable_console_logs: bool = True
    disable_file_logs: bool = True
    group_name: Optional[str] = None
    stream_name: Optional[str] = None
    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[SecretStr] = None
    upload_interval: float = Field(default=2.0, gt=0)

    def missing_fields(self) -> list[str]:
        """Names of the identifying fields that are unset or blank."""
        values = {
            "group_name": self.group_name,
            "stream_name": self.stream_name,
            "region": self.region,
            "access_key_id": self.access_key_id,
            "secret_access_key": (
                self.secret_access_key.get_secret_value() if self.secret_access_key else None
            ),
        }
        return [name for name, value in values.items() if not value]


class ConsoleOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    colorize: Optional[bool] = Field(default=None, description="None means colour only on a TTY")


class LoggingOptions(BaseModel):
    """Resolved logging configuration, immutable for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    environment: str = "development"
    level: Optional[Severity] = None
    policy: CompositionPolicy = CompositionPolicy.EXCLUSIVE
    file_logs: FileLogOptions = Field(default_factory=FileLogOptions)
    cloudwatch: CloudWatchOptions = Field(default_factory=CloudWatchOptions)
    console: ConsoleOptions = Field(default_factory=ConsoleOptions)

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Optional[Severity]:
        # an empty string means "not overridden", like an unset config key
        if value is None or value == "":
            return None
        return Severity.parse(value)

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION


__all__ = [
    "PRODUCTION",
    "LogRecord",
    "CompositionPolicy",
    "RotationOptions",
    "FileLogOptions",
    "CloudWatchOptions",
    "ConsoleOptions",
    "LoggingOptions",
    "parse_size",
    "parse_retention",
]
