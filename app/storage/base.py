"""
Storage interface for the claimed-number dedup ledger.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from app.domain.pickup import PersistResult


class NumberLedger(ABC):
    """
    Durable record of every number ever claimed.
    """

    @abstractmethod
    def persist(self, numbers: Sequence[str]) -> PersistResult:
        """
        Store the numbers not seen before and classify the whole batch.

        ``new_count + duplicate_count`` always equals ``len(numbers)``.
        """
