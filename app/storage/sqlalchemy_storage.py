"""
SQLAlchemy-backed dedup ledger.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.pickup import PersistResult
from app.logging_utils import log_event
from app.repositories.picked_number_repository import PickedNumberRepository
from app.storage.base import NumberLedger

logger = logging.getLogger(__name__)


class SQLAlchemyNumberLedger(NumberLedger):
    """
    Persist claimed numbers through the repository, one transaction per batch.
    """

    def __init__(self, *, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def persist(self, numbers: Sequence[str]) -> PersistResult:
        if not numbers:
            return PersistResult(new_count=0, duplicate_count=0)

        with self._session_factory() as session:
            repository = PickedNumberRepository(session)
            try:
                existing = repository.find_existing(numbers)
                fresh = self._select_fresh(numbers, existing)
                inserted = repository.bulk_insert(fresh)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                log_event(
                    logger,
                    logging.ERROR,
                    "ledger_write_failed",
                    batch_size=len(numbers),
                    error=str(exc),
                )
                raise

        result = PersistResult(new_count=inserted, duplicate_count=len(numbers) - inserted)
        log_event(
            logger,
            logging.INFO,
            "ledger_batch_persisted",
            batch_size=len(numbers),
            new_count=result.new_count,
            duplicate_count=result.duplicate_count,
        )
        return result

    @staticmethod
    def _select_fresh(numbers: Sequence[str], existing: set[str]) -> list[str]:
        # Repeats inside one batch are duplicates of their first occurrence.
        seen: set[str] = set(existing)
        fresh: list[str] = []
        for number in numbers:
            if number in seen:
                continue
            seen.add(number)
            fresh.append(number)
        return fresh
