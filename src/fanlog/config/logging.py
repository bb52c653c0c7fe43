"""
Logging Configuration.

Flat `FANLOG_LOG_*` environment variables, converted into the nested,
immutable `LoggingOptions` the logger is built from.
"""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from fanlog.logging.types import (
    CloudWatchOptions,
    CompositionPolicy,
    ConsoleOptions,
    FileLogOptions,
    LoggingOptions,
    RotationOptions,
)

from .environment import EnvironmentSettings


class LoggingSettings(BaseSettings):
    """Logging infrastructure configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FANLOG_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    level: Optional[str] = Field(
        default=None,
        description="Minimum level (silly, debug, verbose, info, warn, error); defaults by environment",
    )
    policy: CompositionPolicy = Field(default=CompositionPolicy.EXCLUSIVE, description="Sink composition policy")
    console_colorize: Optional[bool] = Field(default=None, description="Force console colours on/off")

    # Local files
    file_logs_enable: bool = Field(default=True, description="Write combined/error/info files")
    file_logs_dir: str = Field(default=".logs", description="Directory for log files")
    rotation_enable: bool = Field(default=False, description="Rotate files daily and by size")
    rotation_max_size: str = Field(default="10m", description="Size that triggers a rotation")
    rotation_max_age: str = Field(default="7d", description="Retention, e.g. '7d' or a file count")

    # CloudWatch
    cloudwatch_enable: bool = Field(default=False, description="Ship logs to CloudWatch Logs")
    cloudwatch_disable_console_logs: bool = Field(default=True, description="Drop console output while CloudWatch is on")
    cloudwatch_disable_file_logs: bool = Field(default=True, description="Drop file output while CloudWatch is on")
    cloudwatch_group_name: Optional[str] = Field(default=None, description="CloudWatch log group")
    cloudwatch_stream_name: Optional[str] = Field(default=None, description="CloudWatch log stream")
    cloudwatch_region: Optional[str] = Field(default=None, description="AWS region")
    cloudwatch_access_key_id: Optional[str] = Field(default=None, description="AWS access key id")
    cloudwatch_secret_access_key: Optional[SecretStr] = Field(default=None, description="AWS secret access key")
    cloudwatch_upload_interval: float = Field(default=2.0, description="Seconds between background uploads")

    def to_options(self, environment: EnvironmentSettings) -> LoggingOptions:
        """Resolve into the immutable options the logger is built from."""
        return LoggingOptions(
            environment=environment.env,
            level=self.level or None,
            policy=self.policy,
            console=ConsoleOptions(colorize=self.console_colorize),
            file_logs=FileLogOptions(
                enable=self.file_logs_enable,
                log_dir=self.file_logs_dir or ".logs",
                rotation=RotationOptions(
                    enable=self.rotation_enable,
                    max_size=self.rotation_max_size or "10m",
                    max_age=self.rotation_max_age or "7d",
                ),
            ),
            cloudwatch=CloudWatchOptions(
                enable=self.cloudwatch_enable,
                disable_console_logs=self.cloudwatch_disable_console_logs,
                disable_file_logs=self.cloudwatch_disable_file_logs,
                group_name=self.cloudwatch_group_name,
                stream_name=self.cloudwatch_stream_name,
                region=self.cloudwatch_region,
                access_key_id=self.cloudwatch_access_key_id,
                secret_access_key=self.cloudwatch_secret_access_key,
                upload_interval=self.cloudwatch_upload_interval,
            ),
        )
