import logging

import pytest
from pydantic import ValidationError

from insights.core.config import Settings
from insights.core.logging import _parse_headers, configure_logging, init_tracer
from insights.main import resolve_timezone


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("COMPUTATION_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("REPORTING_TIMEZONE", "Africa/Johannesburg")

    settings = Settings()

    assert settings.computation_timeout_seconds == 2.5
    assert settings.reporting_timezone == "Africa/Johannesburg"
    assert settings.currency_symbol == "R"
    assert settings.timeline_fetch_concurrency == 16


def test_settings_reject_non_positive_timeout():
    with pytest.raises(ValidationError):
        Settings(computation_timeout_seconds=0)


def test_configure_logging_sets_service_level():
    logger = configure_logging(Settings(log_level="debug"))

    assert logger.name == "insights"
    assert logger.getEffectiveLevel() == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_tracer_disabled_by_default():
    assert init_tracer(Settings(otel_enabled=False)) is None


def test_parse_otlp_headers():
    assert _parse_headers("api-key=abc, tenant = helpdesk ,broken") == {"api-key": "abc", "tenant": "helpdesk"}
    assert _parse_headers(None) == {}


def test_resolve_timezone():
    assert resolve_timezone("UTC").utcoffset(None).total_seconds() == 0
    with pytest.raises(ValueError):
        resolve_timezone("Mars/Olympus_Mons")
