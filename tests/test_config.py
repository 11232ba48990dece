from __future__ import annotations

from collections.abc import Iterator

import pytest

from app import config
from app.config import get_portal_settings, get_telegram_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(config, "load_env_files", lambda: None)
    config._load_env_once.cache_clear()
    get_portal_settings.cache_clear()
    get_telegram_settings.cache_clear()
    yield
    config._load_env_once.cache_clear()
    get_portal_settings.cache_clear()
    get_telegram_settings.cache_clear()


def test_portal_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTAL_BASE_URL", "https://portal.example/")
    monkeypatch.setenv("PORTAL_EMAIL", " ops@example.com ")
    monkeypatch.setenv("PORTAL_PASSWORD", "pw")
    monkeypatch.setenv("PORTAL_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("PICKUP_MAX_EMPTY_ATTEMPTS", "3")
    monkeypatch.setenv("PICKUP_CLAIM_WORKERS", "8")

    settings = get_portal_settings()

    assert settings.base_url == "https://portal.example"
    assert settings.email == "ops@example.com"
    assert settings.password == "pw"
    assert settings.timeout_seconds == 12.5
    assert settings.max_empty_attempts == 3
    assert settings.claim_workers == 8
    assert settings.url("/wa_numbers") == "https://portal.example/wa_numbers"


def test_portal_settings_fall_back_on_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PORTAL_BASE_URL", "PORTAL_EMAIL", "PORTAL_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PICKUP_MAX_EMPTY_ATTEMPTS", "zero")
    monkeypatch.setenv("PICKUP_CLAIM_WORKERS", "-4")

    settings = get_portal_settings()

    assert settings.base_url == config.DEFAULT_PORTAL_BASE_URL
    assert settings.email is None
    assert settings.max_empty_attempts == 2
    assert settings.claim_workers == 1


def test_absolute_urls_pass_through() -> None:
    settings = config.PortalSettings(base_url="https://portal.example")
    assert settings.url("https://other.example/x") == "https://other.example/x"
    assert settings.url("wa_numbers/1/pick_up") == "https://portal.example/wa_numbers/1/pick_up"


def test_telegram_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("TELEGRAM_PICK_COMMAND", "grab")
    monkeypatch.setenv("TELEGRAM_ALLOWED_CHAT_IDS", "10, -20, junk,,30")

    settings = get_telegram_settings()

    assert settings.token == "123:abc"
    assert settings.command == "/grab"
    assert settings.allowed_chat_ids == frozenset({10, -20, 30})


def test_telegram_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_PICK_COMMAND", "TELEGRAM_ALLOWED_CHAT_IDS"):
        monkeypatch.delenv(name, raising=False)

    settings = get_telegram_settings()

    assert settings.token is None
    assert settings.command == "/pickfun"
    assert settings.allowed_chat_ids == frozenset()
    assert settings.send_retries == 3
