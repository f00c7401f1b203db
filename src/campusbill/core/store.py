# File: src/campusbill/core/store.py
"""Data access for users and student profiles."""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from campusbill.core.errors import StoreConflictError, StoreIOError
from campusbill.core.logging import get_logger
from campusbill.models.enums import ClassStatus, College
from campusbill.models.staged_edit import StagedEdit
from campusbill.models.student_profile import StudentProfile
from campusbill.models.user import User

logger = get_logger(__name__)


async def commit_all(db: AsyncSession, objects: Iterable[object] = ()) -> None:
    """
    Add objects and commit the session's pending work in one transaction.

    Raises:
        StoreConflictError: a key or constraint was taken by another writer first.
        StoreIOError: any other database failure. The transaction is rolled back.
    """
    objects = list(objects)
    try:
        db.add_all(objects)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("store.save_conflict", count=len(objects), error=str(e.orig))
        raise StoreConflictError(
            "Data store rejected a conflicting write",
            details={"error": type(e).__name__},
        ) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("store.save_failed", count=len(objects), error=str(e))
        raise StoreIOError(
            "Failed to save to the data store",
            details={"error": type(e).__name__},
        ) from e


class UserStore:
    """Key-value access to users by id. Owns user lifetime."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: str) -> User | None:
        return await self.db.get(User, user_id)

    async def find_existing_ids(self, user_ids: Iterable[str]) -> set[str]:
        """Return the subset of user_ids already in the store."""
        ids = list(user_ids)
        if not ids:
            return set()
        result = await self.db.execute(select(User.id).where(User.id.in_(ids)))
        return set(result.scalars().all())

    async def save(self, user: User) -> User:
        """Persist one user."""
        await self.save_all([user])
        return user

    async def save_all(self, objects: Iterable[object]) -> None:
        """
        Persist a batch in one transaction. Either all rows land or none do.

        Raises:
            StoreConflictError: a key or constraint was taken by another writer first.
            StoreIOError: any other database failure.
        """
        await commit_all(self.db, objects)


class StudentDirectory:
    """Queries over student profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def by_user_id(self, user_id: str) -> StudentProfile | None:
        stmt = select(StudentProfile).where(StudentProfile.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def by_college(self, college: College) -> list[StudentProfile]:
        """Profiles whose owning user belongs to college."""
        stmt = (
            select(StudentProfile)
            .join(User, StudentProfile.user_id == User.id)
            .where(User.college == college)
            .order_by(StudentProfile.user_id)
        )
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def by_class_status(self, statuses: Iterable[ClassStatus]) -> list[StudentProfile]:
        """Profiles with any of the given class statuses, system-wide."""
        stmt = (
            select(StudentProfile)
            .where(StudentProfile.class_status.in_(list(statuses)))
            .order_by(StudentProfile.user_id)
        )
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def existing_profile_ids(self, user_ids: Iterable[str]) -> set[str]:
        ids = list(user_ids)
        if not ids:
            return set()
        stmt = select(StudentProfile.user_id).where(StudentProfile.user_id.in_(ids))
        result = await self.db.execute(stmt)
        return set(result.scalars().all())


class StagedEditStore:
    """Temporary record edits, keyed by login session token and student id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, session_token: str, user_id: str) -> dict[str, Any] | None:
        stmt = select(StagedEdit.fields).where(
            StagedEdit.session_token == session_token,
            StagedEdit.user_id == user_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def put(self, session_token: str, user_id: str, fields: dict[str, Any]) -> None:
        """Create or replace the session's edit of user_id's record."""
        stmt = select(StagedEdit).where(
            StagedEdit.session_token == session_token,
            StagedEdit.user_id == user_id,
        )
        edit = (await self.db.execute(stmt)).scalar_one_or_none()
        if edit is None:
            edit = StagedEdit(session_token=session_token, user_id=user_id, fields=fields)
        else:
            edit.fields = fields
        await commit_all(self.db, [edit])

    async def discard(self, session_token: str, user_id: str) -> int:
        return await self._delete(
            StagedEdit.session_token == session_token,
            StagedEdit.user_id == user_id,
        )

    async def discard_all(self, session_token: str) -> int:
        """Drop every edit made by a session."""
        return await self._delete(StagedEdit.session_token == session_token)

    async def purge_older_than(self, cutoff: datetime) -> int:
        """Drop edits of sessions whose cookie has expired without a logout."""
        return await self._delete(StagedEdit.updated_at < cutoff)

    async def _delete(self, *criteria) -> int:
        try:
            result = await self.db.execute(delete(StagedEdit).where(*criteria))
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("store.delete_failed", table=StagedEdit.__tablename__, error=str(e))
            raise StoreIOError(
                "Failed to delete from the data store",
                details={"error": type(e).__name__},
            ) from e
        await commit_all(self.db)
        return result.rowcount
