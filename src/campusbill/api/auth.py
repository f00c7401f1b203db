"""Authentication endpoints and dependencies."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from campusbill.core.db import get_db
from campusbill.core.logging import bind_session_user, get_logger
from campusbill.core.session import UserSession
from campusbill.core.store import UserStore
from campusbill.models.user_schemas import LoginRequest, UserResponse

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


async def get_user_session(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> UserSession:
    """Dependency: a UserSession over this request's signed cookie session."""
    session = UserSession(UserStore(db), request.session)
    bind_session_user(session.user_id)
    return session


@router.post("/login", response_model=UserResponse)
async def login(
    payload: LoginRequest,
    session: UserSession = Depends(get_user_session),
):
    """Log in by user id. Replaces any existing login on this client."""
    return await session.login(payload.user_id)


@router.post("/logout")
async def logout(session: UserSession = Depends(get_user_session)):
    """Clear the session. Always succeeds."""
    await session.logout()
    return {"status": "logged_out"}


@router.get("/me", response_model=UserResponse)
async def me(session: UserSession = Depends(get_user_session)):
    """The logged-in user."""
    return await session.current_user()
