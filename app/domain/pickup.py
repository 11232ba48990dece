"""
app/domain/pickup.py

Domain models for the number pickup workflow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class ListingEntry:
    """
    One claimable row from the portal listing page.
    """

    external_id: str
    claim_url: str


@dataclass(frozen=True)
class ListingResult:
    """
    Outcome of one listing fetch.

    ``error`` is None when the page was fetched and parsed, even if it held
    no rows; otherwise it describes why the listing could not be read.
    """

    entries: list[ListingEntry] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PersistResult:
    """
    Ledger classification of one persisted batch.
    """

    new_count: int
    duplicate_count: int

    @property
    def total(self) -> int:
        return self.new_count + self.duplicate_count


@dataclass(frozen=True)
class RunSummary:
    """
    Totals accumulated across one pickup run.
    """

    total_new: int = 0
    total_duplicate: int = 0
    batches: int = 0
    claims_attempted: int = 0
    claims_failed: int = 0
    listing_errors: int = 0
    replenishments: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def total(self) -> int:
        return self.total_new + self.total_duplicate

    @property
    def efficiency_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.total_new / self.total * 100

    def to_dict(self) -> dict[str, object]:
        return {
            "total_new": self.total_new,
            "total_duplicate": self.total_duplicate,
            "total": self.total,
            "efficiency_rate": round(self.efficiency_rate, 2),
            "batches": self.batches,
            "claims_attempted": self.claims_attempted,
            "claims_failed": self.claims_failed,
            "listing_errors": self.listing_errors,
            "replenishments": self.replenishments,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
