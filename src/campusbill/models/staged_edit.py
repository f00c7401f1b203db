# File: src/campusbill/models/staged_edit.py
"""Unsaved record edits held for a login session."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from campusbill.core.db import Base
from campusbill.utils.datetime import now_utc


class StagedEdit(Base):
    """
    A temporary edit of one student record, owned by one login session.

    The session cookie only carries the opaque session_token; the edited
    fields live here until the session saves them, logs out, or expires.
    """

    __tablename__ = "staged_edits"
    __table_args__ = (UniqueConstraint("session_token", "user_id", name="uq_staged_edit_session_user"),)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    session_token: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Student whose record is being edited
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("student_profiles.user_id", ondelete="CASCADE"),
        nullable=False,
    )

    fields: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=now_utc,
        onupdate=now_utc,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<StagedEdit(session_token={self.session_token[:8]}..., user_id={self.user_id})>"
