from __future__ import annotations

import logging

import pytest

from rcs_gateway.core.config import AppSettings, RbmSettings
from rcs_gateway.gateway.app import warn_on_incomplete_config

pytestmark = pytest.mark.unit


def _settings(environment: str, **rbm) -> AppSettings:
    return AppSettings(environment=environment, rbm=RbmSettings(_env_file=None, **rbm))


def test_missing_credentials_warn_without_failing(caplog):
    caplog.set_level(logging.WARNING)

    warnings = warn_on_incomplete_config(_settings("development", client_id="id"))

    assert warnings == ["missing required rbm settings: client_secret, bot_id"]
    assert any("client_secret" in record.message for record in caplog.records)


def test_production_without_webhook_secret_is_flagged():
    warnings = warn_on_incomplete_config(
        _settings("production", client_id="id", client_secret="secret", bot_id="bot")
    )

    assert warnings == ["webhook signature verification disabled; no webhook secret configured"]


def test_complete_configuration_is_quiet():
    settings = _settings(
        "production",
        client_id="id",
        client_secret="secret",
        bot_id="bot",
        webhook_secret="hook",
    )

    assert warn_on_incomplete_config(settings) == []


def test_missing_webhook_secret_outside_production_is_accepted():
    settings = _settings("development", client_id="id", client_secret="secret", bot_id="bot")

    assert warn_on_incomplete_config(settings) == []
