# File: src/campusbill/models/transaction.py
"""Ledger entries (charges and payments) on a student account."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, Enum, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campusbill.core.db import Base
from campusbill.models.enums import TransactionType
from campusbill.utils.datetime import now_utc

if TYPE_CHECKING:
    from campusbill.models.student_profile import StudentProfile


class Transaction(Base):
    """One charge or payment. Amounts are always positive; type gives the sign."""

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("student_profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, native_enum=False, length=20),
        nullable=False,
    )

    transaction_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    note: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=now_utc,
    )

    profile: Mapped["StudentProfile"] = relationship(
        "StudentProfile",
        back_populates="transactions",
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction(user_id={self.user_id}, type={self.type}, "
            f"amount={self.amount}, date={self.transaction_date})>"
        )
