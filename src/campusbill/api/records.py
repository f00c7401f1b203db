# File: src/campusbill/api/records.py
"""Student listing and record endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusbill.api.auth import get_user_session
from campusbill.core.access import AccessControl
from campusbill.core.db import get_db
from campusbill.core.records import RecordService
from campusbill.core.session import UserSession
from campusbill.core.store import StudentDirectory, UserStore
from campusbill.models.record_schemas import StudentProfileUpdate, StudentRecordRead
from campusbill.models.user_schemas import StudentIdsResponse

router = APIRouter(tags=["records"])


@router.get("/students", response_model=StudentIdsResponse)
async def list_student_ids(
    session: UserSession = Depends(get_user_session),
    db: AsyncSession = Depends(get_db),
):
    """Ids of the students the logged-in admin may view. Admin only."""
    access = AccessControl(UserStore(db), StudentDirectory(db))
    return StudentIdsResponse(student_ids=await access.visible_student_ids(session))


@router.get("/records/{user_id}", response_model=StudentRecordRead)
async def get_record(
    user_id: str,
    session: UserSession = Depends(get_user_session),
    db: AsyncSession = Depends(get_db),
):
    """A student record, including any edit staged in this session."""
    return await RecordService(db).get_record(session, user_id)


@router.put("/records/{user_id}", response_model=StudentRecordRead)
async def edit_record(
    user_id: str,
    update: StudentProfileUpdate,
    permanent: bool = Query(False, description="Save to the store instead of staging in the session"),
    session: UserSession = Depends(get_user_session),
    db: AsyncSession = Depends(get_db),
):
    """Edit a student record, temporarily (session) or permanently (store)."""
    return await RecordService(db).edit_record(session, user_id, update, permanent=permanent)
