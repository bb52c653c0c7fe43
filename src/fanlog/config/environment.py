"""
Environment Configuration.

The environment is determined by the `FANLOG_ENV` environment variable.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION = "production"


class EnvironmentSettings(BaseSettings):
    """
    Environment detection and configuration.

    Any value is accepted; only "production" changes logging defaults.

    File Resolution Order:
    1. `.env.{environment}.local` (local overrides, gitignored)
    2. `.env.{environment}` (environment-specific)
    3. `.env.local` (local overrides, gitignored)
    4. `.env` (base defaults)
    """

    model_config = SettingsConfigDict(
        env_prefix="FANLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    env: str = Field(
        default="development",
        description="Current environment (development, testing, staging, production, ...)",
    )

    @property
    def is_production(self) -> bool:
        return self.env == PRODUCTION

    @property
    def env_files(self) -> tuple[str, ...]:
        """
        Returns the list of .env files to load in priority order.

        Lower index = lower priority (later files override earlier ones).
        """
        return (
            ".env",
            ".env.local",
            f".env.{self.env}",
            f".env.{self.env}.local",
        )
