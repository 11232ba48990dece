"""
app/services/pickup_service.py

Service orchestration for chat-triggered pickup runs.

Wires PortalSession -> SessionManager / PortalClient -> ClaimLoop ->
NumberLedger, and reports the outcome over the chat transport.

Failure contract
----------------
- Initial login failure  -> "login failed" message, no summary
- Ledger failure         -> aborts the run, error message with the cause
- Any other exception    -> logged, error message with the cause
- Delivery failure       -> raised to the caller after retries
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from app.config import PortalSettings, TelegramSettings, get_portal_settings, get_telegram_settings
from app.domain.pickup import RunSummary
from app.logging_utils import log_event
from app.notify.report import build_summary_message
from app.notify.telegram import TelegramClient, send_message_with_retry
from app.portal.claim_loop import ClaimLoop
from app.portal.client import PortalClient
from app.portal.errors import AuthenticationFailure
from app.portal.session import PortalSession, SessionManager
from app.storage.base import NumberLedger
from app.storage.sqlalchemy_storage import SQLAlchemyNumberLedger

logger = logging.getLogger(__name__)

START_MESSAGE = (
    "Starting number pickup. The run continues until no numbers are left. Please wait..."
)
BUSY_MESSAGE = "A pickup run is already in progress. Please wait for its summary."
LOGIN_FAILED_MESSAGE = "Login failed. Unable to process the request."
ERROR_MESSAGE_TEMPLATE = "An error occurred: {error}"


class PickupService:
    """
    Runs the claim loop on demand and reports back to the chat.

    All runs share one portal session; a run-level lock keeps them from
    overlapping.
    """

    def __init__(
        self,
        *,
        portal_settings: PortalSettings,
        ledger: NumberLedger,
        telegram: TelegramClient | None = None,
        telegram_settings: TelegramSettings | None = None,
        session: PortalSession | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._portal_settings = portal_settings
        self._ledger = ledger
        self._telegram = telegram
        self._telegram_settings = telegram_settings or TelegramSettings()
        self._session = session or PortalSession(user_agent=portal_settings.user_agent)
        self._session_manager = SessionManager(settings=portal_settings, session=self._session)
        self._client = PortalClient(settings=portal_settings, session=self._session)
        self._sleep = sleep
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def build_loop(self) -> ClaimLoop:
        return ClaimLoop(
            session_manager=self._session_manager,
            client=self._client,
            ledger=self._ledger,
            max_empty_attempts=self._portal_settings.max_empty_attempts,
            claim_workers=self._portal_settings.claim_workers,
        )

    def run_once(self) -> RunSummary:
        """
        Execute one run, waiting for any run already in progress.
        """

        with self._run_lock:
            return self.build_loop().run()

    def handle_pick_command(self, chat_id: int) -> RunSummary | None:
        """
        Acknowledge, run and report. Returns the summary of a completed run.
        """

        if not self._run_lock.acquire(blocking=False):
            log_event(logger, logging.INFO, "pick_command_rejected_busy", chat_id=chat_id)
            self._notify(chat_id, BUSY_MESSAGE)
            return None

        try:
            log_event(logger, logging.INFO, "pick_command_started", chat_id=chat_id)
            self._notify(chat_id, START_MESSAGE)
            try:
                summary = self.build_loop().run()
            except AuthenticationFailure:
                self._notify(chat_id, LOGIN_FAILED_MESSAGE)
                return None
            self._notify(chat_id, build_summary_message(summary), parse_mode="Markdown")
            return summary
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "pick_command_failed",
                chat_id=chat_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            self._notify(chat_id, ERROR_MESSAGE_TEMPLATE.format(error=exc))
            return None
        finally:
            self._run_lock.release()

    def _notify(self, chat_id: int, text: str, *, parse_mode: str | None = None) -> None:
        if self._telegram is None:
            log_event(logger, logging.INFO, "chat_message_dropped", chat_id=chat_id, text=text)
            return

        send_message_with_retry(
            self._telegram,
            chat_id,
            text,
            retries=self._telegram_settings.send_retries,
            delay_seconds=self._telegram_settings.send_retry_delay_seconds,
            parse_mode=parse_mode,
            sleep=self._sleep,
        )


def build_pickup_service(*, telegram: TelegramClient | None = None) -> PickupService:
    """
    Build a service wired to the configured portal and PostgreSQL ledger.
    """

    from db.session import SessionLocal

    return PickupService(
        portal_settings=get_portal_settings(),
        ledger=SQLAlchemyNumberLedger(session_factory=SessionLocal),
        telegram=telegram,
        telegram_settings=get_telegram_settings(),
    )
