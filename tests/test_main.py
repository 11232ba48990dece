"""
tests/test_main.py

Startup validation and the process exit code on startup failure.
"""

from __future__ import annotations

import threading
from unittest.mock import Mock

import pytest

from app import main as app_main

REQUIRED = {
    "PORTAL_EMAIL": "bot@example.com",
    "PORTAL_PASSWORD": "s3cret",
    "TELEGRAM_BOT_TOKEN": "123:abc",
}
DATABASE_VARS = ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL", "ENVIRONMENT")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("db.config.load_env_files", lambda *args, **kwargs: None)
    for name in (*REQUIRED, *DATABASE_VARS):
        monkeypatch.delenv(name, raising=False)


def _set_required(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in REQUIRED.items():
        monkeypatch.setenv(name, value)


def test_validation_reports_every_missing_variable_at_once(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTAL_PASSWORD", "s3cret")

    with pytest.raises(RuntimeError) as excinfo:
        app_main._validate_env()

    message = str(excinfo.value)
    assert "PORTAL_EMAIL" in message
    assert "TELEGRAM_BOT_TOKEN" in message
    assert "DATABASE_URL" in message
    assert "PORTAL_PASSWORD" not in message


def test_blank_values_count_as_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("PORTAL_EMAIL", "   ")
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/pickup")

    with pytest.raises(RuntimeError, match="PORTAL_EMAIL"):
        app_main._validate_env()


def test_complete_environment_passes(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://localhost/pickup")

    app_main._validate_env()


def test_cloud_url_needs_cloud_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("CLOUD_DATABASE_URL", "postgresql://cloud/pickup")
    monkeypatch.setenv("ENVIRONMENT", "local")

    with pytest.raises(RuntimeError, match="No database URL configured"):
        app_main._validate_env()

    monkeypatch.setenv("ENVIRONMENT", "production")
    app_main._validate_env()


def test_database_check_failure_exits_with_code_one(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)
    _set_required(monkeypatch)
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/pickup")
    monkeypatch.setattr("db.session.get_engine", Mock())
    monkeypatch.setattr("db.session.check_connection", Mock(side_effect=RuntimeError("Database unavailable.")))
    bot_cls = Mock()
    monkeypatch.setattr("app.bot.CommandBot", bot_cls)

    assert app_main.main() == 1
    bot_cls.assert_not_called()


def test_invalid_environment_exits_before_touching_the_database(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)
    get_engine = Mock()
    monkeypatch.setattr("db.session.get_engine", get_engine)

    assert app_main.main() == 1
    get_engine.assert_not_called()
