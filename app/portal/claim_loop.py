"""
Claim loop: list, claim, persist and replenish until the portal runs dry.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from app.domain.pickup import ListingEntry, ListingResult, RunSummary
from app.logging_utils import log_event
from app.portal.client import PortalClient
from app.portal.errors import AuthenticationFailure
from app.portal.session import SessionManager
from app.storage.base import NumberLedger

logger = logging.getLogger(__name__)

DEFAULT_MAX_EMPTY_ATTEMPTS = 2
DEFAULT_CLAIM_WORKERS = 16


class LoopState(str, Enum):
    AUTHENTICATING = "authenticating"
    LISTING = "listing"
    REPLENISHING = "replenishing"
    CLAIMING = "claiming"
    PERSISTING = "persisting"
    DONE = "done"


@dataclass
class _RunProgress:
    started_at: datetime
    total_new: int = 0
    total_duplicate: int = 0
    batches: int = 0
    claims_attempted: int = 0
    claims_failed: int = 0
    listing_errors: int = 0
    replenishments: int = 0

    def to_summary(self) -> RunSummary:
        return RunSummary(
            total_new=self.total_new,
            total_duplicate=self.total_duplicate,
            batches=self.batches,
            claims_attempted=self.claims_attempted,
            claims_failed=self.claims_failed,
            listing_errors=self.listing_errors,
            replenishments=self.replenishments,
            started_at=self.started_at,
            finished_at=datetime.now(timezone.utc),
        )


class ClaimLoop:
    """
    Drives one pickup run through the loop states until DONE.

    Terminates after ``max_empty_attempts`` consecutive empty attempts, where
    an empty attempt is a failed replenishment or an empty listing right
    after a successful one. Any non-empty listing resets the count.
    """

    def __init__(
        self,
        *,
        session_manager: SessionManager,
        client: PortalClient,
        ledger: NumberLedger,
        max_empty_attempts: int = DEFAULT_MAX_EMPTY_ATTEMPTS,
        claim_workers: int = DEFAULT_CLAIM_WORKERS,
    ) -> None:
        self._sessions = session_manager
        self._client = client
        self._ledger = ledger
        self._max_empty_attempts = max(1, max_empty_attempts)
        self._claim_workers = max(1, claim_workers)

    def run(self) -> RunSummary:
        """
        Execute the loop and return the run totals.

        Raises ``AuthenticationFailure`` if the initial login fails. Ledger
        errors propagate and abort the run.
        """

        progress = _RunProgress(started_at=datetime.now(timezone.utc))
        state = LoopState.AUTHENTICATING
        empty_attempts = 0
        after_replenishment = False
        entries: list[ListingEntry] = []
        claimed: list[str] = []

        while state is not LoopState.DONE:
            log_event(logger, logging.DEBUG, "loop_state", state=state.value, empty_attempts=empty_attempts)

            if state is LoopState.AUTHENTICATING:
                if not self._sessions.authenticate():
                    log_event(logger, logging.ERROR, "run_authentication_failed")
                    raise AuthenticationFailure("Login to the portal failed.")
                state = LoopState.LISTING

            elif state is LoopState.LISTING:
                listing = self._list()
                if not listing.ok:
                    progress.listing_errors += 1
                entries = listing.entries
                if entries:
                    empty_attempts = 0
                    state = LoopState.CLAIMING
                elif after_replenishment:
                    empty_attempts += 1
                    state = self._after_empty_attempt(empty_attempts, reason="empty_after_replenishment")
                else:
                    state = LoopState.REPLENISHING
                after_replenishment = False

            elif state is LoopState.REPLENISHING:
                if self._replenish():
                    progress.replenishments += 1
                    after_replenishment = True
                    state = LoopState.LISTING
                else:
                    empty_attempts += 1
                    state = self._after_empty_attempt(empty_attempts, reason="replenishment_failed")

            elif state is LoopState.CLAIMING:
                claimed = self._claim_batch(entries)
                progress.claims_attempted += len(entries)
                progress.claims_failed += len(entries) - len(claimed)
                state = LoopState.PERSISTING

            elif state is LoopState.PERSISTING:
                if claimed:
                    result = self._ledger.persist(claimed)
                    progress.total_new += result.new_count
                    progress.total_duplicate += result.duplicate_count
                    progress.batches += 1
                claimed = []
                state = LoopState.LISTING

        summary = progress.to_summary()
        log_event(logger, logging.INFO, "run_completed", **summary.to_dict())
        return summary

    def _after_empty_attempt(self, empty_attempts: int, *, reason: str) -> LoopState:
        if empty_attempts >= self._max_empty_attempts:
            log_event(
                logger,
                logging.WARNING,
                "run_exhausted",
                reason=reason,
                empty_attempts=empty_attempts,
            )
            return LoopState.DONE
        log_event(
            logger,
            logging.INFO,
            "empty_attempt",
            reason=reason,
            empty_attempts=empty_attempts,
            max_empty_attempts=self._max_empty_attempts,
        )
        return LoopState.LISTING

    def _list(self) -> ListingResult:
        if not self._sessions.ensure_authenticated():
            return ListingResult(entries=[], error="Portal session unavailable.")
        result = self._sessions.run_with_session_retry(self._client.list_available, label="listing")
        if result is None:
            return ListingResult(entries=[], error="Portal session expired.")
        return result

    def _replenish(self) -> bool:
        result = self._sessions.run_with_session_retry(
            self._client.request_replenishment,
            label="replenishment",
        )
        return bool(result)

    def _claim_batch(self, entries: list[ListingEntry]) -> list[str]:
        """
        Claim every entry concurrently and wait for all of them.

        Claimed values keep the listing order.
        """

        results: list[str | None] = [None] * len(entries)
        workers = min(self._claim_workers, len(entries))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="claim") as executor:
            futures = {
                executor.submit(self._claim_one, entry): index
                for index, entry in enumerate(entries)
            }
            for future in as_completed(futures):
                index = futures[future]
                try:
                    results[index] = future.result()
                except Exception as exc:
                    log_event(
                        logger,
                        logging.ERROR,
                        "claim_worker_crashed",
                        entry_id=entries[index].external_id,
                        error=str(exc),
                    )

        claimed = [value for value in results if value]
        log_event(logger, logging.INFO, "batch_claimed", listed=len(entries), claimed=len(claimed))
        return claimed

    def _claim_one(self, entry: ListingEntry) -> str | None:
        return self._sessions.run_with_session_retry(
            lambda: self._client.claim(entry),
            label=f"claim:{entry.external_id}",
        )
