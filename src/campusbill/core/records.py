# File: src/campusbill/core/records.py
"""Access-gated reading and editing of student records."""

from sqlalchemy.ext.asyncio import AsyncSession

from campusbill.core.access import AccessControl
from campusbill.core.errors import InvalidRecordError
from campusbill.core.logging import get_logger
from campusbill.core.session import UserSession
from campusbill.core.store import StudentDirectory, UserStore
from campusbill.models.record_schemas import (
    StudentProfileFields,
    StudentProfileUpdate,
    StudentRecordRead,
    TransactionRecord,
)
from campusbill.models.student_profile import StudentProfile

logger = get_logger(__name__)


def to_record_read(profile: StudentProfile) -> StudentRecordRead:
    """Flatten a profile, its user and its ledger into the read schema."""
    return StudentRecordRead(
        user_id=profile.user_id,
        first_name=profile.user.first_name,
        last_name=profile.user.last_name,
        college=profile.user.college,
        class_status=profile.class_status,
        term=profile.term,
        phone=profile.phone,
        email=profile.email,
        address=profile.address,
        is_resident=profile.is_resident,
        is_active_duty_military=profile.is_active_duty_military,
        scholarship=profile.scholarship,
        transactions=[TransactionRecord.model_validate(t) for t in profile.transactions],
    )


class RecordService:
    """Student record operations for a logged-in session."""

    def __init__(self, db: AsyncSession):
        self.store = UserStore(db)
        self.access = AccessControl(self.store, StudentDirectory(db))

    async def get_record(self, session: UserSession, user_id: str) -> StudentRecordRead:
        """
        Return user_id's record as the session sees it.

        An unsaved edit staged by this session takes the place of the stored
        profile fields; the ledger always comes from the store.
        """
        profile = await self.access.profile_for(session, user_id)
        record = to_record_read(profile)

        staged = await session.staged_record(user_id)
        if staged is not None:
            fields = StudentProfileFields.model_validate(staged)
            record = record.model_copy(update={**dict(fields), "staged": True})
        return record

    async def edit_record(
        self,
        session: UserSession,
        user_id: str,
        update: StudentProfileUpdate,
        permanent: bool = False,
    ) -> StudentRecordRead:
        """
        Replace the editable fields of user_id's record.

        permanent=True writes to the store; otherwise the edit is kept in the
        session only and dropped at logout.

        Raises:
            NoActiveSessionError, RecordNotFoundError, PermissionDeniedError: see profile_for.
            InvalidRecordError: the payload is for a different student.
            StoreIOError: the permanent write failed.
        """
        profile = await self.access.profile_for(session, user_id)

        if update.user_id != user_id:
            raise InvalidRecordError(
                "Record user_id doesn't match the student being edited",
                details={"user_id": user_id, "record_user_id": update.user_id},
            )

        if permanent:
            for field, value in update.model_dump(exclude={"user_id"}).items():
                setattr(profile, field, value)
            await self.store.save_all([profile])
            await session.discard_staged_record(user_id)
        else:
            await session.stage_record(user_id, update.model_dump(mode="json", exclude={"user_id"}))

        logger.info(
            "record.edited",
            user_id=user_id,
            edited_by=session.user_id,
            permanent=permanent,
        )
        return await self.get_record(session, user_id)
