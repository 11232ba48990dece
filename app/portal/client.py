"""
Page client for the portal's listing, claim and replenishment forms.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from app.config import PortalSettings
from app.domain.pickup import ListingEntry, ListingResult
from app.logging_utils import log_event
from app.portal.errors import (
    ItemUnavailableError,
    PortalRequestError,
    SessionExpiredError,
    TokenMissingError,
)
from app.portal.parsing import (
    extract_claimed_value,
    extract_csrf_token,
    parse_claim_form,
    parse_listing,
)
from app.portal.session import AUTH_FAILURE_STATUS_CODES, PortalSession, is_redirect_status

logger = logging.getLogger(__name__)

CONFLICT_STATUS_CODE = 422


class PortalClient:
    """
    Fetches and submits portal pages over an authenticated ``PortalSession``.

    401/403 on any request raises ``SessionExpiredError``; recovering from it
    is the caller's job.
    """

    def __init__(self, *, settings: PortalSettings, session: PortalSession) -> None:
        self._settings = settings
        self._session = session

    @staticmethod
    def fetch_token(html: str) -> str | None:
        return extract_csrf_token(html)

    def list_available(self) -> ListingResult:
        """
        Fetch the listing page. Fetch or parse failures come back as a
        ``ListingResult`` with ``error`` set rather than raising.
        """

        try:
            response = self._request("GET", self._settings.listing_path)
            response.raise_for_status()
            entries = parse_listing(response.text)
        except SessionExpiredError:
            raise
        except Exception as exc:
            log_event(logger, logging.ERROR, "listing_failed", error=str(exc))
            return ListingResult(entries=[], error=str(exc))

        log_event(logger, logging.INFO, "listing_fetched", entries=len(entries))
        return ListingResult(entries=entries)

    def claim(self, entry: ListingEntry) -> str | None:
        """
        Claim one listed entry and return the claimed number.

        Returns None when the entry is gone (422), the response carries no
        number, or the request fails.
        """

        try:
            value = self._claim(entry)
        except SessionExpiredError:
            raise
        except ItemUnavailableError:
            log_event(logger, logging.WARNING, "claim_unavailable", entry_id=entry.external_id)
            return None
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "claim_failed",
                entry_id=entry.external_id,
                error=str(exc),
            )
            return None

        if value is None:
            log_event(logger, logging.WARNING, "claim_not_claimable", entry_id=entry.external_id)
            return None

        log_event(logger, logging.INFO, "claim_succeeded", entry_id=entry.external_id)
        return value

    def request_replenishment(self) -> bool:
        """
        Ask the portal to assign new items. Success iff it answers with a redirect.
        """

        try:
            form = self._request("GET", self._settings.replenish_form_path)
            form.raise_for_status()
            token = extract_csrf_token(form.text)
            if not token:
                raise TokenMissingError("Replenishment form has no anti-forgery token.")

            response = self._request(
                "POST",
                self._settings.replenish_submit_path,
                data={
                    "utf8": "✓",
                    "authenticity_token": token,
                    "commit": "Submit Post",
                },
                headers={"X-CSRF-Token": token},
                allow_redirects=False,
            )
        except SessionExpiredError:
            raise
        except Exception as exc:
            log_event(logger, logging.ERROR, "replenishment_failed", error=str(exc))
            return False

        if not is_redirect_status(response.status_code):
            log_event(
                logger,
                logging.WARNING,
                "replenishment_rejected",
                status=response.status_code,
            )
            return False

        log_event(logger, logging.INFO, "replenishment_succeeded")
        return True

    def _claim(self, entry: ListingEntry) -> str | None:
        form = self._request("GET", entry.claim_url)
        self._raise_for_claim_status(form)
        token, action = parse_claim_form(form.text)
        if not token:
            raise TokenMissingError(f"Claim form for entry {entry.external_id} has no token.")
        if not action:
            raise PortalRequestError(f"Claim form for entry {entry.external_id} has no action.")

        response = self._request(
            "POST",
            action,
            data={
                "utf8": "✓",
                "_method": "put",
                "authenticity_token": token,
            },
            headers={
                "X-CSRF-Token": token,
                "X-Requested-With": "XMLHttpRequest",
            },
        )
        self._raise_for_claim_status(response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise PortalRequestError("Claim response was not valid JSON.") from exc
        return extract_claimed_value(payload)

    @staticmethod
    def _raise_for_claim_status(response: requests.Response) -> None:
        if response.status_code == CONFLICT_STATUS_CODE:
            raise ItemUnavailableError(f"Item no longer claimable url={response.url}")
        response.raise_for_status()

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self._settings.url(path)
        kwargs.setdefault("timeout", self._settings.timeout_seconds)
        response = self._session.http.request(method, url, **kwargs)
        if response.status_code in AUTH_FAILURE_STATUS_CODES:
            raise SessionExpiredError(response.status_code, url)
        return response
