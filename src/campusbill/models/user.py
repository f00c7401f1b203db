# File: src/campusbill/models/user.py
"""User model: identity, role and college."""

from datetime import datetime

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from campusbill.core.db import Base
from campusbill.models.enums import College, Role
from campusbill.utils.datetime import now_utc


class User(Base):
    """A system user. The id is the only credential."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
    )

    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=20),
        nullable=False,
        default=Role.STUDENT,
        index=True,
    )

    college: Mapped[College] = mapped_column(
        Enum(College, native_enum=False, length=40),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=now_utc,
    )

    @property
    def display_name(self) -> str:
        """Return formatted display name (first_name last_name or id fallback)."""
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name if full_name else self.id

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role}, college={self.college})>"
