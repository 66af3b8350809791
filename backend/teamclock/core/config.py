"""
TeamClock - Configuration
=========================

All application settings loaded from environment variables.
Uses pydantic-settings for validation and type conversion.
"""

from functools import lru_cache
from typing import Literal, Optional
from zoneinfo import ZoneInfo

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    APP_NAME: str = "TeamClock"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = "development"
    DEBUG: bool = False

    # ==========================================================================
    # API
    # ==========================================================================
    API_V1_PREFIX: str = "/api/v1"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:8081"]

    # ==========================================================================
    # Storage (SQL via SQLAlchemy, or in-memory for local/dev mode)
    # ==========================================================================
    STORAGE_BACKEND: Literal["sql", "memory"] = "sql"
    DATABASE_URL: str = "sqlite+aiosqlite:///./teamclock.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_ECHO: bool = False

    @computed_field  # type: ignore[misc]
    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.DATABASE_URL

    # ==========================================================================
    # Identity provider (issues the bearer tokens, we only verify them)
    # ==========================================================================
    IDENTITY_JWT_SECRET: str = "CHANGE-ME-IN-PRODUCTION-USE-LONG-RANDOM-STRING"
    IDENTITY_JWT_ALGORITHM: str = "HS256"
    IDENTITY_JWT_AUDIENCE: Optional[str] = None
    IDENTITY_JWT_ISSUER: Optional[str] = None
    IDENTITY_TOKEN_EXPIRE_MINUTES: int = 60

    DEFAULT_AVATAR_REF: str = "https://via.placeholder.com/150"

    # ==========================================================================
    # Time tracking
    # ==========================================================================
    TIMEZONE: str = "UTC"  # day boundaries for windows and day grouping

    INVITE_CODE_LENGTH: int = 6
    INVITE_CODE_MAX_ATTEMPTS: int = 10

    HISTORY_DEFAULT_LIMIT: int = 10
    HISTORY_MAX_LIMIT: int = 500
    HISTORY_REPORT_LIMIT: int = 100
    RECENT_PROJECTS_SCAN: int = 50
    SUMMARY_WINDOW_DAYS: int = 30
    PROJECT_STATS_WINDOW_DAYS: int = 365

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)

    @computed_field  # type: ignore[misc]
    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @computed_field  # type: ignore[misc]
    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @computed_field  # type: ignore[misc]
    @property
    def is_test(self) -> bool:
        return self.ENVIRONMENT == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export
settings = get_settings()
