# File: src/campusbill/models/student_profile.py
"""StudentProfile model: the transcript side of a student user (1:1 with User)."""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campusbill.core.db import Base
from campusbill.models.enums import ClassStatus

if TYPE_CHECKING:
    from campusbill.models.transaction import Transaction
    from campusbill.models.user import User


class StudentProfile(Base):
    """Student transcript data. Scoping uses the owning user's college."""

    __tablename__ = "student_profiles"

    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    class_status: Mapped[ClassStatus] = mapped_column(
        Enum(ClassStatus, native_enum=False, length=20),
        nullable=False,
        index=True,
    )

    term: Mapped[str] = mapped_column(String(40), nullable=False, default="")
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_resident: Mapped[bool] = mapped_column(default=True, nullable=False)
    is_active_duty_military: Mapped[bool] = mapped_column(default=False, nullable=False)

    scholarship: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)

    # Relationships (eager: async sessions can't lazy-load on attribute access)
    user: Mapped["User"] = relationship(
        "User",
        lazy="joined",
    )

    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="Transaction.transaction_date",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<StudentProfile(user_id={self.user_id}, class_status={self.class_status})>"
