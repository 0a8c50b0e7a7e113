"""Tests for settings and logging configuration."""

import logging

import pytest
from pydantic import ValidationError

from zkcred.config import (
    DEFAULT_ROOT_VALIDITY_DURATION,
    Settings,
    configure_logging,
    get_settings,
    reset_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("ZKCRED_DATABASE_URL", "ZKCRED_SUPPORTED_DEPTHS", "ZKCRED_DEFAULT_ROOT_VALIDITY_DURATION"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.default_root_validity_duration == DEFAULT_ROOT_VALIDITY_DURATION
        assert settings.supported_depths == list(range(16, 33))
        assert settings.max_tree_depth == 32
        assert settings.jwt_algorithm == "HS256"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("ZKCRED_DEFAULT_ROOT_VALIDITY_DURATION", "120")
        monkeypatch.setenv("ZKCRED_SUPPORTED_DEPTHS", "[16, 20]")
        monkeypatch.setenv("ZKCRED_DATABASE_URL", "sqlite:///other.db")

        settings = get_settings()
        assert settings.default_root_validity_duration == 120
        assert settings.supported_depths == [16, 20]
        assert settings.database_url == "sqlite:///other.db"

    def test_singleton(self):
        assert get_settings() is get_settings()

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_root_validity_duration=-1)

    def test_max_depth_bounds(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, max_tree_depth=33)


def test_configure_logging(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
    configure_logging("debug")
    assert calls["level"] == "DEBUG"
