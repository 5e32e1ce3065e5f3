"""
Configuration Settings

This module defines application configuration using Pydantic Settings.
All configuration is loaded from environment variables or .env file.

Design Decisions:
- Uses pydantic-settings for type-safe configuration
- Supports multiple environments (production, staging, dev)
- SQLite (file-based) through aiosqlite
- Rate limits use the "count/period" notation understood by the limits library
"""

from __future__ import annotations

from enum import Enum

from limits import RateLimitItem, parse
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings", "settings"]

class EnvSettingsOptions(Enum):
    """Environment options for deployment."""
    production = "production"
    staging = "staging"
    development = "dev"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Project Configuration
    ENV_SETTING: EnvSettingsOptions = Field(
        default=EnvSettingsOptions.development,
        description="Environment setting (production, staging, dev)"
    )

    # Database Configuration
    # Default: sqlite+aiosqlite:///./urlshortener.db
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./urlshortener.db",
        description="Database connection string (async SQLAlchemy URL, SQLite via aiosqlite)"
    )

    # Application Configuration
    BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL for generating short URLs"
    )
    CORS_ORIGINS: list[str] = Field(
        default=["*"],
        description="Origins allowed by the CORS middleware"
    )
    DEFAULT_PAGE_SIZE: int = Field(default=50, ge=1)
    MAX_PAGE_SIZE: int = Field(default=100, ge=1)

    # Short Code Configuration
    SHORT_CODE_LENGTH: int = Field(
        default=7,
        ge=1,
        description="Length of generated short codes (fallback codes are capped at 11)"
    )
    SHORT_CODE_PRIMARY_ATTEMPTS: int = Field(
        default=10,
        ge=1,
        description="Random alphanumeric candidates tried before switching to UUID-derived codes"
    )
    SHORT_CODE_INSERT_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        description="Times a generated code is regenerated after a unique-constraint conflict on insert"
    )

    # Rate Limiting Configuration
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT: str = Field(
        default="60/minute",
        description="Per-IP fixed window limit, e.g. '60/minute' or '10 per 30 seconds'"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def check_database_url(cls, value: str) -> str:
        # Only the SQLite adapter ships (see shortener.db.sqlite_adapter)
        if not value.startswith("sqlite+aiosqlite://"):
            raise ValueError("DATABASE_URL must use the sqlite+aiosqlite driver")
        return value

    @field_validator("RATE_LIMIT")
    @classmethod
    def check_rate_limit(cls, value: str) -> str:
        parse(value)
        return value

    @property
    def rate_limit_item(self) -> RateLimitItem:
        return parse(self.RATE_LIMIT)

    @property
    def is_production(self) -> bool:
        return self.ENV_SETTING is EnvSettingsOptions.production


settings = Settings()
