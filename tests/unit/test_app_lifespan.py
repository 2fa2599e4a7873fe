"""Unit tests for the API lifespan: startup validation and shutdown."""

import pytest

from api.main import app
from shared.config import get_settings
from shared.startup_validator import PLACEHOLDER_JWT_SECRET, StartupValidationError


def test_no_deprecated_startup_hooks():
    assert app.router.on_startup == []
    assert app.router.on_shutdown == []


@pytest.mark.asyncio
async def test_skipped_validation_starts_and_stops():
    async with app.router.lifespan_context(app):
        pass


@pytest.mark.asyncio
async def test_valid_configuration_starts(monkeypatch):
    monkeypatch.setattr(get_settings(), "SKIP_STARTUP_VALIDATION", False)

    async with app.router.lifespan_context(app):
        pass


@pytest.mark.asyncio
async def test_placeholder_secret_blocks_startup(monkeypatch):
    monkeypatch.setattr(get_settings(), "SKIP_STARTUP_VALIDATION", False)
    monkeypatch.setattr(get_settings(), "AUTH_JWT_SECRET", PLACEHOLDER_JWT_SECRET)

    with pytest.raises(StartupValidationError, match="AUTH_JWT_SECRET"):
        async with app.router.lifespan_context(app):
            pass
