"""Tests for environment settings."""

import pytest

from timeout.config import Settings


def test_policy_defaults():
    settings = Settings()

    assert settings.VERIFICATION_REQUIRED_VOTES == 3
    assert settings.VERIFICATION_TTL_HOURS == 24
    assert "DEBUG" not in Settings.model_fields


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("VERIFICATION_REQUIRED_VOTES", "5")
    monkeypatch.setenv("CORS_ORIGINS", "https://app.timeout.dev, https://admin.timeout.dev")

    settings = Settings()

    assert settings.VERIFICATION_REQUIRED_VOTES == 5
    assert settings.get_cors_origins() == ["https://app.timeout.dev", "https://admin.timeout.dev"]


@pytest.mark.parametrize("overrides", [
    {"AUTH_PROVIDER": "saml"},
    {"AUTH_PROVIDER": "jwt", "JWT_SECRET": None},
    {"AUTH_PROVIDER": "jwt", "JWT_SECRET": "dev", "ENVIRONMENT": "production"},
])
def test_validate_required_rejects(overrides):
    with pytest.raises(ValueError):
        Settings(**overrides).validate_required()


def test_validate_required_accepts_dev_jwt():
    Settings(AUTH_PROVIDER="jwt", JWT_SECRET="dev", ENVIRONMENT="development").validate_required()
