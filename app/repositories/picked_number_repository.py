"""
app/repositories/picked_number_repository.py

Persistence layer for claimed numbers.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import func, insert, select
from sqlalchemy.orm import Session

from db.models.picked_number import PickedNumber


class PickedNumberRepository:
    """
    Repository for membership checks and batch inserts on the ledger table.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_existing(self, numbers: Sequence[str]) -> set[str]:
        """
        Return the subset of ``numbers`` already present in the ledger.
        """

        if not numbers:
            return set()

        stmt = select(PickedNumber.number).where(PickedNumber.number.in_(set(numbers)))
        return set(self._session.scalars(stmt).all())

    def bulk_insert(self, numbers: Sequence[str]) -> int:
        """
        Insert ``numbers`` in one multi-row INSERT and return the row count.

        Callers are expected to have filtered out existing numbers first.
        """

        if not numbers:
            return 0

        payloads: list[dict[str, Any]] = [
            {"uuid": uuid.uuid4(), "number": number}
            for number in numbers
        ]
        self._session.execute(insert(PickedNumber), payloads)
        return len(payloads)

    def count(self) -> int:
        return self._session.scalar(select(func.count()).select_from(PickedNumber)) or 0
