"""Tests for settings and logging setup."""

import logging

from teamsync import main
from teamsync.config import Settings
from teamsync.logging_config import configure_logging


def test_settings_read_prefixed_env(monkeypatch):
    monkeypatch.setenv("TEAMSYNC_REMINDER_INTERVAL_SECONDS", "60")
    monkeypatch.setenv("TEAMSYNC_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("TEAMSYNC_STRICT_INDEXES", "true")
    settings = Settings()
    assert settings.reminder_interval_seconds == 60
    assert settings.timezone == "Europe/Berlin"
    assert settings.strict_indexes is True


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("TEAMSYNC_STORE_BACKEND", raising=False)
    settings = Settings(_env_file=None)
    assert settings.store_backend == "memory"
    assert settings.reminder_ledger == "memory"
    assert settings.reminder_lookahead_days == 7


def test_configure_logging_sets_level():
    configure_logging("debug")
    assert logging.getLogger("sqlalchemy.engine").level in (logging.INFO, logging.WARNING)


def test_run_serves_configured_host_and_port(monkeypatch):
    """run() hands the app import path and settings to uvicorn."""
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    monkeypatch.setattr(main.settings, "port", 9001)
    main.run()
    args, kwargs = calls[0]
    assert args == ("teamsync.main:app",)
    assert kwargs["port"] == 9001
    assert kwargs["host"] == main.settings.host
