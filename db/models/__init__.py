"""
Model package exports.

Import every SQLAlchemy model here so metadata registration sees the full
ledger schema before `ensure_schema` runs.
"""

from db.models.picked_number import PickedNumber

__all__ = ["PickedNumber"]
