"""
Application settings for LifeHub.

Values come from environment variables prefixed with ``LIFEHUB_`` and an
optional ``.env`` file.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """LifeHub configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LIFEHUB_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "LifeHub"
    debug: bool = False
    log_level: str | None = None
    log_json: bool = False

    # Persistence
    storage_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///./lifehub.db"

    # Background worker
    redis_url: str = "redis://localhost:6379/0"
    productivity_cron_hour: int = 23
    productivity_cron_minute: int = 55

    # Analytics
    wearable_timeout_seconds: float = 5.0
    correlation_window_days: int = 7


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
