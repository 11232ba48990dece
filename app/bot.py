"""
app/bot.py

Long-polling Telegram command loop that triggers pickup runs.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from app.config import TelegramSettings
from app.logging_utils import log_event
from app.notify.telegram import TelegramClient
from app.schemas.telegram import TelegramUpdate

logger = logging.getLogger(__name__)

DEFAULT_HANDLER_WORKERS = 4


class CommandBot:
    """
    Polls ``getUpdates`` and runs ``handler(chat_id)`` for each command.

    Handlers run on worker threads so polling keeps going while a run is in
    progress. Handler and polling failures are logged, never fatal.
    """

    def __init__(
        self,
        *,
        client: TelegramClient,
        settings: TelegramSettings,
        handler: Callable[[int], object],
        sleep: Callable[[float], None] = time.sleep,
        max_workers: int = DEFAULT_HANDLER_WORKERS,
    ) -> None:
        self._client = client
        self._settings = settings
        self._handler = handler
        self._sleep = sleep
        self._offset: int | None = None
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="pick-command",
        )

    @property
    def offset(self) -> int | None:
        return self._offset

    def matches_command(self, text: str | None) -> bool:
        if not text:
            return False
        first_token = text.strip().split(maxsplit=1)[0] if text.strip() else ""
        command = first_token.split("@", 1)[0]
        return command.lower() == self._settings.command.lower()

    def poll_once(self) -> int:
        """
        Fetch one batch of updates and dispatch matching commands.
        """

        updates = self._client.get_updates(offset=self._offset)
        for update in updates:
            self._offset = update.update_id + 1
            self._dispatch(update)
        return len(updates)

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        stop = stop_event or threading.Event()
        log_event(logger, logging.INFO, "bot_polling_started", command=self._settings.command)
        while not stop.is_set():
            try:
                self.poll_once()
            except Exception as exc:
                log_event(
                    logger,
                    logging.ERROR,
                    "bot_polling_failed",
                    error=str(exc),
                    pause_seconds=self._settings.poll_error_pause_seconds,
                )
                self._sleep(self._settings.poll_error_pause_seconds)
        log_event(logger, logging.INFO, "bot_polling_stopped")

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _dispatch(self, update: TelegramUpdate) -> None:
        message = update.message
        if message is None or not self.matches_command(message.text):
            return

        chat_id = message.chat.id
        allowed = self._settings.allowed_chat_ids
        if allowed and chat_id not in allowed:
            log_event(logger, logging.WARNING, "command_from_unlisted_chat", chat_id=chat_id)
            return

        log_event(logger, logging.INFO, "command_received", chat_id=chat_id, update_id=update.update_id)
        self._executor.submit(self._run_handler, chat_id)

    def _run_handler(self, chat_id: int) -> None:
        try:
            self._handler(chat_id)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "command_handler_failed",
                chat_id=chat_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
