"""
Configuration module with strict validation.

Key principles:
- APP STARTUP requires DATABASE_URL and nothing else
- Cache lifetime and connection pool size are configurable
- Safe defaults for all optional settings
"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation.

    Loads from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database (REQUIRED for API startup)
    database_url: str = Field(
        ...,
        description="SQLAlchemy connection URL (PostgreSQL, MySQL or SQLite)"
    )

    # Connection pool. Requests beyond this capacity wait at the pool.
    db_pool_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of pooled database connections"
    )

    db_max_overflow: int = Field(
        default=0,
        ge=0,
        le=50,
        description="Extra connections allowed above pool size"
    )

    # Response cache
    cache_ttl_seconds: int = Field(
        default=3600,
        ge=1,
        description="Lifetime of cached listing responses in seconds"
    )

    cache_max_entries: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of cached responses kept in memory"
    )

    # Public URL used for links inside the RSS feed
    site_url: str = Field(
        default="https://ai-startup-tracker-olive.vercel.app",
        description="Public dashboard URL embedded in feed items"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("site_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


# Global settings instance
# This can be imported throughout the application
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    This pattern allows:
    - Easy testing (can reset settings between tests)
    - Lazy loading (only loads when first accessed)
    - Singleton pattern (same instance used everywhere)
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """
    Reset the global settings instance.

    Useful for testing to ensure clean state between tests.
    """
    global _settings
    _settings = None
