"""Unit tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from shared.config import Settings


def test_settings_use_model_config():
    assert "Config" not in vars(Settings)
    assert Settings.model_config["case_sensitive"] is True
    assert Settings.model_config["extra"] == "ignore"
    assert Settings.model_config["env_file"] == ".env"


def test_values_read_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "9123")
    monkeypatch.setenv("DB_ECHO", "true")
    monkeypatch.setenv("CORS_ORIGINS", "https://app.example.com")

    settings = Settings(_env_file=None)

    assert settings.PORT == 9123
    assert settings.DB_ECHO is True
    assert settings.CORS_ORIGINS == "https://app.example.com"


def test_names_are_case_sensitive(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.setenv("port", "9123")

    assert Settings(_env_file=None).PORT != 9123


def test_out_of_range_value_rejected(monkeypatch):
    monkeypatch.setenv("DB_POOL_SIZE", "0")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
