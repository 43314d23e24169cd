"""Application settings and configuration.

This module defines all configuration options for statusgraph. Settings are
loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="statusgraph", alias="APP_NAME")

    # Database configuration
    database_url: str = Field(default="sqlite:///./statusgraph.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")

    # Cache layer and activity tracking
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    cache_backend: Literal["memory", "redis"] = Field(default="memory", alias="CACHE_BACKEND")
    replies_count_cache_ttl_seconds: int = Field(
        default=60,
        alias="REPLIES_COUNT_CACHE_TTL_SECONDS",
    )
    activity_expire_days: int = Field(default=90, alias="ACTIVITY_EXPIRE_DAYS")

    # Timeline windows
    home_timeline_max_age_days: int = Field(default=3, alias="HOME_TIMELINE_MAX_AGE_DAYS")
    group_timeline_max_age_days: int = Field(default=10, alias="GROUP_TIMELINE_MAX_AGE_DAYS")
    pro_timeline_max_age_hours: int = Field(default=1, alias="PRO_TIMELINE_MAX_AGE_HOURS")

    # Composition limits
    max_status_chars: int = Field(default=3000, alias="MAX_STATUS_CHARS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
