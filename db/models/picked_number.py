"""
db/models/picked_number.py

Ledger row for one number claimed from the portal.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

NUMBER_MAX_LENGTH = 20


class PickedNumber(TimestampMixin, Base):
    __tablename__ = "pick_numbers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        unique=True,
        default=uuid.uuid4,
        comment="Correlation id, globally unique",
    )
    number: Mapped[str] = mapped_column(
        String(NUMBER_MAX_LENGTH),
        nullable=False,
        unique=True,
        comment="Claimed number; business key",
    )

    def __repr__(self) -> str:
        return f"PickedNumber(id={self.id!r}, number={self.number!r})"
