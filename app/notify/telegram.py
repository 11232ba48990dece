"""
app/notify/telegram.py

Telegram Bot API client used as the command and reporting transport.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import requests
from pydantic import ValidationError

from app.config import TelegramSettings
from app.logging_utils import log_event
from app.schemas.telegram import TelegramResponse, TelegramUpdate

logger = logging.getLogger(__name__)


class TelegramDeliveryError(RuntimeError):
    """
    Raised when a Bot API call fails.

    ``retry_after`` is set when Telegram asked the caller to back off.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: int | None = None,
        retry_after: int | None = None,
    ) -> None:
        self.error_code = error_code
        self.retry_after = retry_after
        super().__init__(message)


class TelegramClient:
    """
    Thin Bot API wrapper over ``requests``.
    """

    def __init__(
        self,
        *,
        settings: TelegramSettings,
        session: requests.Session | None = None,
    ) -> None:
        if not settings.token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required.")
        self._settings = settings
        self._session = session or requests.Session()
        self._base_url = f"{settings.api_base_url}/bot{settings.token}"

    def send_message(self, chat_id: int, text: str, *, parse_mode: str | None = "Markdown") -> None:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        self._call("sendMessage", payload)

    def get_updates(self, *, offset: int | None = None, timeout: int | None = None) -> list[TelegramUpdate]:
        """
        Long-poll for new updates. Malformed updates are skipped.
        """

        poll_timeout = self._settings.poll_timeout_seconds if timeout is None else timeout
        payload: dict[str, Any] = {"timeout": poll_timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset

        result = self._call(
            "getUpdates",
            payload,
            timeout=poll_timeout + self._settings.request_timeout_seconds,
        )
        updates: list[TelegramUpdate] = []
        for item in result or []:
            try:
                updates.append(TelegramUpdate.model_validate(item))
            except ValidationError as exc:
                log_event(logger, logging.WARNING, "telegram_update_skipped", error=str(exc))
        return updates

    def _call(self, method: str, payload: dict[str, Any], *, timeout: float | None = None) -> Any:
        try:
            response = self._session.post(
                f"{self._base_url}/{method}",
                json=payload,
                timeout=timeout or self._settings.request_timeout_seconds,
            )
        except requests.RequestException as exc:
            raise TelegramDeliveryError(f"{method} request failed: {exc}") from exc

        try:
            envelope = TelegramResponse.model_validate(response.json())
        except ValueError as exc:
            raise TelegramDeliveryError(
                f"{method} returned an unreadable response status={response.status_code}",
                error_code=response.status_code,
            ) from exc

        if not envelope.ok:
            retry_after = envelope.parameters.retry_after if envelope.parameters else None
            raise TelegramDeliveryError(
                f"{method} failed: {envelope.error_code} {envelope.description or ''}".strip(),
                error_code=envelope.error_code,
                retry_after=retry_after,
            )
        return envelope.result


def send_message_with_retry(
    client: TelegramClient,
    chat_id: int,
    text: str,
    *,
    retries: int = 3,
    delay_seconds: float = 1.0,
    parse_mode: str | None = "Markdown",
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Send a message, retrying transient failures.

    Waits ``retry_after`` seconds exactly when Telegram rate-limits the call,
    otherwise ``delay_seconds``. Re-raises the last error once ``retries``
    attempts have failed.
    """

    attempts = max(1, retries)
    for attempt in range(1, attempts + 1):
        try:
            client.send_message(chat_id, text, parse_mode=parse_mode)
            return
        except TelegramDeliveryError as exc:
            if attempt >= attempts:
                log_event(
                    logger,
                    logging.ERROR,
                    "telegram_send_failed",
                    chat_id=chat_id,
                    attempts=attempt,
                    error=str(exc),
                )
                raise
            wait_seconds = float(exc.retry_after) if exc.retry_after is not None else delay_seconds
            log_event(
                logger,
                logging.WARNING,
                "telegram_send_retry",
                chat_id=chat_id,
                attempt=attempt,
                max_attempts=attempts,
                wait_seconds=wait_seconds,
                rate_limited=exc.retry_after is not None,
                error=str(exc),
            )
            sleep(wait_seconds)
