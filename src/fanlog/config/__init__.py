"""
Fanlog Configuration Module.

Each sub-module represents an independent concern with its own environment
variable prefix.

Multi-Environment Support:
    Set `FANLOG_ENV` to e.g. development, testing, staging, production.
    The system will load .env files in this order (later overrides earlier):
    1. .env
    2. .env.local
    3. .env.{environment}
    4. .env.{environment}.local

Usage:
    from fanlog.config import settings

    settings.environment.is_production  # False
    settings.logging.to_options(settings.environment)
"""

from functools import cached_property
import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import EnvironmentSettings
from .logging import LoggingSettings


def _get_env_files() -> tuple[str, ...]:
    """
    Determine which .env files to load based on FANLOG_ENV.

    This function is called at module import time to configure the Settings class.
    """
    env = os.getenv("FANLOG_ENV", "development")
    return (
        ".env",
        ".env.local",
        f".env.{env}",
        f".env.{env}.local",
    )


class Settings(BaseSettings):
    """
    Composite settings aggregating the configuration domains.

    Sub-settings are built lazily and cached, each from its own env prefix
    and the environment-specific .env files.
    """

    model_config = SettingsConfigDict(
        env_file=_get_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @cached_property
    def environment(self) -> EnvironmentSettings:
        return EnvironmentSettings(_env_file=_get_env_files())

    @cached_property
    def logging(self) -> LoggingSettings:
        return LoggingSettings(_env_file=_get_env_files())


# Singleton instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "EnvironmentSettings",
    "LoggingSettings",
]
