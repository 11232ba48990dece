"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_PORTAL_BASE_URL = "https://burungvnix.com"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_int_set_env(name: str) -> frozenset[int]:
    """
    Read a comma-separated list of integers; malformed items are ignored.
    """

    _load_env_once()
    raw_value = os.getenv(name, "")
    values: set[int] = set()
    for token in raw_value.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            values.add(int(token))
        except ValueError:
            continue
    return frozenset(values)


@dataclass(frozen=True)
class PortalSettings:
    """
    Remote portal endpoints, credentials and pickup loop tuning.
    """

    base_url: str = DEFAULT_PORTAL_BASE_URL
    email: str | None = None
    password: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 30.0
    max_empty_attempts: int = 2
    claim_workers: int = 16
    login_path: str = "/users/sign_in"
    listing_path: str = "/wa_numbers"
    replenish_form_path: str = "/wa_numbers/wa_assignment_form"
    replenish_submit_path: str = "/wa_numbers/assign_wa"

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


@dataclass(frozen=True)
class TelegramSettings:
    """
    Telegram Bot API settings for the command interface.
    """

    token: str | None = None
    api_base_url: str = "https://api.telegram.org"
    command: str = "/pickfun"
    poll_timeout_seconds: int = 30
    poll_error_pause_seconds: float = 5.0
    send_retries: int = 3
    send_retry_delay_seconds: float = 1.0
    request_timeout_seconds: float = 15.0
    allowed_chat_ids: frozenset[int] = frozenset()


@lru_cache(maxsize=1)
def get_portal_settings() -> PortalSettings:
    """
    Return cached portal settings from environment variables.
    """

    return PortalSettings(
        base_url=_get_str_env("PORTAL_BASE_URL", DEFAULT_PORTAL_BASE_URL).rstrip("/"),
        email=_get_optional_str_env("PORTAL_EMAIL"),
        password=_get_optional_str_env("PORTAL_PASSWORD"),
        user_agent=_get_str_env("PORTAL_USER_AGENT", DEFAULT_USER_AGENT),
        timeout_seconds=max(1.0, _get_float_env("PORTAL_TIMEOUT_SECONDS", 30.0)),
        max_empty_attempts=max(1, _get_int_env("PICKUP_MAX_EMPTY_ATTEMPTS", 2)),
        claim_workers=max(1, _get_int_env("PICKUP_CLAIM_WORKERS", 16)),
    )


@lru_cache(maxsize=1)
def get_telegram_settings() -> TelegramSettings:
    """
    Return cached Telegram settings from environment variables.
    """

    command = _get_str_env("TELEGRAM_PICK_COMMAND", "/pickfun")
    if not command.startswith("/"):
        command = f"/{command}"

    return TelegramSettings(
        token=_get_optional_str_env("TELEGRAM_BOT_TOKEN"),
        api_base_url=_get_str_env("TELEGRAM_API_BASE_URL", "https://api.telegram.org").rstrip("/"),
        command=command,
        poll_timeout_seconds=max(0, _get_int_env("TELEGRAM_POLL_TIMEOUT_SECONDS", 30)),
        poll_error_pause_seconds=max(0.0, _get_float_env("TELEGRAM_POLL_ERROR_PAUSE_SECONDS", 5.0)),
        send_retries=max(1, _get_int_env("TELEGRAM_SEND_RETRIES", 3)),
        send_retry_delay_seconds=max(0.0, _get_float_env("TELEGRAM_SEND_RETRY_DELAY_SECONDS", 1.0)),
        request_timeout_seconds=max(1.0, _get_float_env("TELEGRAM_REQUEST_TIMEOUT_SECONDS", 15.0)),
        allowed_chat_ids=_get_int_set_env("TELEGRAM_ALLOWED_CHAT_IDS"),
    )
