"""
Authenticated portal session and its manager.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TypeVar

import requests

from app.config import PortalSettings
from app.logging_utils import log_event
from app.portal.errors import SessionExpiredError
from app.portal.parsing import extract_csrf_token

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUTH_FAILURE_STATUS_CODES = frozenset({401, 403})
DEFAULT_SESSION_ATTEMPTS = 2


def is_redirect_status(status_code: int) -> bool:
    return 300 <= status_code < 400


class PortalSession:
    """
    Cookie jar plus validity state for one logged-in portal identity.

    The underlying ``requests.Session`` absorbs ``Set-Cookie`` from every
    exchange, including redirects that are not followed.
    ``generation`` increases by one on every successful login.
    """

    def __init__(
        self,
        *,
        http: requests.Session | None = None,
        user_agent: str | None = None,
    ) -> None:
        self.http = http or requests.Session()
        if user_agent:
            self.http.headers["User-Agent"] = user_agent
        self.lock = threading.RLock()
        self._valid = False
        self._generation = 0

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def generation(self) -> int:
        return self._generation

    def mark_authenticated(self) -> None:
        with self.lock:
            self._valid = True
            self._generation += 1

    def invalidate(self, generation: int | None = None) -> None:
        """
        Mark the session unusable, unless it was already replaced by a login
        newer than ``generation``.
        """

        with self.lock:
            if generation is None or generation == self._generation:
                self._valid = False

    def reset(self) -> None:
        with self.lock:
            self._valid = False
            self.http.cookies.clear()


class SessionManager:
    """
    Logs in, detects expiry and re-authenticates transparently.
    """

    def __init__(self, *, settings: PortalSettings, session: PortalSession) -> None:
        self._settings = settings
        self._session = session

    @property
    def session(self) -> PortalSession:
        return self._session

    @staticmethod
    def is_authorization_failure(status_code: int) -> bool:
        return status_code in AUTH_FAILURE_STATUS_CODES

    def authenticate(self) -> bool:
        """
        Submit the login form. Success iff the portal answers with a redirect.

        Never raises: network failures count as a failed login.
        """

        login_url = self._settings.url(self._settings.login_path)
        with self._session.lock:
            self._session.reset()
            log_event(logger, logging.INFO, "login_started", url=login_url)
            try:
                page = self._session.http.get(login_url, timeout=self._settings.timeout_seconds)
                page.raise_for_status()
                token = extract_csrf_token(page.text)
                if not token:
                    log_event(logger, logging.ERROR, "login_token_missing", url=login_url)
                    return False

                response = self._session.http.post(
                    login_url,
                    data={
                        "utf8": "✓",
                        "authenticity_token": token,
                        "user[email]": self._settings.email or "",
                        "user[password]": self._settings.password or "",
                        "commit": "Login",
                    },
                    allow_redirects=False,
                    timeout=self._settings.timeout_seconds,
                )
            except requests.RequestException as exc:
                log_event(logger, logging.ERROR, "login_failed", url=login_url, error=str(exc))
                return False

            if not is_redirect_status(response.status_code):
                log_event(
                    logger,
                    logging.ERROR,
                    "login_rejected",
                    url=login_url,
                    status=response.status_code,
                )
                return False

            self._session.mark_authenticated()
            log_event(
                logger,
                logging.INFO,
                "login_succeeded",
                generation=self._session.generation,
            )
            return True

    def ensure_authenticated(self) -> bool:
        """
        Log in only when the session is not currently valid.
        """

        with self._session.lock:
            if self._session.valid:
                return True
            return self.authenticate()

    def reauthenticate(self, seen_generation: int) -> bool:
        """
        Recover from an expired session observed at ``seen_generation``.

        When several workers hit the expiry together only the first logs in;
        the others see the bumped generation and reuse the fresh session.
        """

        with self._session.lock:
            if self._session.valid and self._session.generation != seen_generation:
                return True
            return self.authenticate()

    def run_with_session_retry(
        self,
        operation: Callable[[], T],
        *,
        max_attempts: int = DEFAULT_SESSION_ATTEMPTS,
        label: str = "operation",
    ) -> T | None:
        """
        Run ``operation``, re-authenticating once per expiry, at most
        ``max_attempts`` times in total. Returns None once attempts run out
        or re-authentication fails.
        """

        attempts = max(1, max_attempts)
        for attempt in range(1, attempts + 1):
            seen_generation = self._session.generation
            try:
                return operation()
            except SessionExpiredError as exc:
                self._session.invalidate(seen_generation)
                log_event(
                    logger,
                    logging.WARNING,
                    "session_expired",
                    label=label,
                    status=exc.status_code,
                    attempt=attempt,
                    max_attempts=attempts,
                )
                if attempt >= attempts:
                    break
                if not self.reauthenticate(seen_generation):
                    log_event(logger, logging.ERROR, "reauthentication_failed", label=label)
                    return None

        log_event(logger, logging.ERROR, "session_retry_exhausted", label=label)
        return None
