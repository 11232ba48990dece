"""
app/domain package marker.
"""

from app.domain.pickup import ListingEntry, ListingResult, PersistResult, RunSummary

__all__ = [
    "ListingEntry",
    "ListingResult",
    "PersistResult",
    "RunSummary",
]
