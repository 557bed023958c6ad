"""
Unit tests for configuration module.

Tests run WITHOUT .env file.
"""
import pytest
from pydantic import ValidationError

from startup_tracker.core.config import (
    Settings,
    get_settings,
    reset_settings,
)


@pytest.mark.unit
def test_config_requires_database_url(clean_env, monkeypatch):
    """Database URL is required for app startup."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.unit
def test_config_defaults(clean_env, monkeypatch):
    """Test default values for optional settings."""
    monkeypatch.setenv("DATABASE_URL", "postgresql://test")

    settings = Settings(_env_file=None)

    assert settings.database_url == "postgresql://test"
    assert settings.db_pool_size == 5
    assert settings.db_max_overflow == 0
    assert settings.cache_ttl_seconds == 3600
    assert settings.cache_max_entries == 1000
    assert settings.site_url == "https://ai-startup-tracker-olive.vercel.app"
    assert settings.log_level == "INFO"
    assert settings.is_sqlite is False


@pytest.mark.unit
def test_config_custom_values(clean_env, monkeypatch):
    """Test custom values from environment."""
    monkeypatch.setenv("DATABASE_URL", "sqlite:///tracker.db")
    monkeypatch.setenv("DB_POOL_SIZE", "10")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("SITE_URL", "https://tracker.example.com/")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.db_pool_size == 10
    assert settings.cache_ttl_seconds == 60
    assert settings.site_url == "https://tracker.example.com"
    assert settings.log_level == "DEBUG"
    assert settings.is_sqlite is True


@pytest.mark.unit
def test_config_invalid_log_level(clean_env, monkeypatch):
    """Unknown log levels are rejected."""
    monkeypatch.setenv("DATABASE_URL", "postgresql://test")
    monkeypatch.setenv("LOG_LEVEL", "LOUD")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.unit
@pytest.mark.parametrize("var,value", [
    ("DB_POOL_SIZE", "0"),
    ("DB_POOL_SIZE", "51"),
    ("CACHE_TTL_SECONDS", "0"),
    ("CACHE_MAX_ENTRIES", "0"),
])
def test_config_bounds(clean_env, monkeypatch, var, value):
    monkeypatch.setenv("DATABASE_URL", "postgresql://test")
    monkeypatch.setenv(var, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.unit
def test_get_settings_singleton(clean_env, monkeypatch):
    """get_settings returns one instance until reset."""
    monkeypatch.setenv("DATABASE_URL", "postgresql://test")

    first = get_settings()
    assert get_settings() is first

    reset_settings()
    assert get_settings() is not first
