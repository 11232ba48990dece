"""
Ledger storage exports.
"""

from app.storage.base import NumberLedger
from app.storage.sqlalchemy_storage import SQLAlchemyNumberLedger

__all__ = ["NumberLedger", "SQLAlchemyNumberLedger"]
