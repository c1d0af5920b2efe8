"""Tests for :class:`Settings` validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from goalmates.config import Settings, get_settings, reset_settings_cache

BASE = {"database_url": "sqlite://", "secret_key": "secret"}


def build(**overrides) -> Settings:
    return Settings(_env_file=None, **{**BASE, **overrides})


def test_defaults() -> None:
    settings = build()

    assert settings.access_token_expire_minutes > 0
    assert settings.notification_list_limit == 50
    assert settings.notification_email_timeout_seconds is None
    assert settings.sendgrid_api_key is None


def test_sendgrid_credentials_come_in_pairs() -> None:
    with pytest.raises(ValidationError):
        build(sendgrid_api_key="SG.key")
    with pytest.raises(ValidationError):
        build(sendgrid_sender="noreply@goalmates.app")

    settings = build(sendgrid_api_key="SG.key", sendgrid_sender="noreply@goalmates.app")
    assert settings.sendgrid_sender == "noreply@goalmates.app"


def test_sendgrid_sender_must_be_an_address() -> None:
    with pytest.raises(ValidationError):
        build(sendgrid_api_key="SG.key", sendgrid_sender="goalmates")


def test_email_timeout_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        build(notification_email_timeout_seconds=0)


@pytest.fixture
def fresh_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()


def test_settings_are_cached_until_reset(monkeypatch, fresh_settings) -> None:
    monkeypatch.setenv("NOTIFICATION_LIST_LIMIT", "10")
    first = get_settings()
    assert first.notification_list_limit == 10

    monkeypatch.setenv("NOTIFICATION_LIST_LIMIT", "25")
    assert get_settings() is first

    reset_settings_cache()
    assert get_settings().notification_list_limit == 25
