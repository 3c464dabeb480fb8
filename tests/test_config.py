"""Unit tests for core/config.py -- Settings validation and the get_settings() singleton."""

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings

LONG_KEY = "k" * 32


def test_defaults():
    s = Settings(secret_key=LONG_KEY)
    assert s.port == 3000
    assert s.database_url == "sqlite:///arena.db"
    assert s.token_expire_seconds == 0
    assert s.rate_limit_enabled is True


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(debug=False, secret_key="")


def test_debug_generates_secret_key(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    s = Settings(debug=True, secret_key="")
    assert len(s.secret_key) >= 32


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(debug=True, secret_key="short")


def test_negative_token_expiry_rejected():
    with pytest.raises(ValidationError):
        Settings(secret_key=LONG_KEY, token_expire_seconds=-1)


def test_environment_variables_are_read(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///other.db")
    s = Settings(secret_key=LONG_KEY)
    assert s.port == 8080
    assert s.database_url == "sqlite:///other.db"


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
