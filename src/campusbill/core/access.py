# File: src/campusbill/core/access.py
"""Role- and college-scoped access control for student records.

Who may see a student record:

- the student themself, whatever their role;
- a GRADUATE_SCHOOL admin, for any MASTERS or PHD student in the system;
- an admin, for any student whose user belongs to the admin's college.

Everyone else is denied. Self-access is checked before any admin rule.
"""

import enum
from typing import Optional

from campusbill.core.errors import PermissionDeniedError, RecordNotFoundError
from campusbill.core.logging import get_logger
from campusbill.core.session import UserSession
from campusbill.core.store import StudentDirectory, UserStore
from campusbill.models.enums import GRADUATE_STATUSES, College, Role
from campusbill.models.student_profile import StudentProfile
from campusbill.models.user import User

logger = get_logger(__name__)


class Relation(str, enum.Enum):
    """How a requester relates to a target record, in precedence order."""

    SELF = "SELF"
    GRADUATE_SCOPE = "GRADUATE_SCOPE"
    SAME_COLLEGE = "SAME_COLLEGE"
    UNRELATED = "UNRELATED"


class AccessGrant(str, enum.Enum):
    """Outcome of an access decision, naming the rule that allowed it."""

    SELF = "SELF"
    GRADUATE_SCOPE = "GRADUATE_SCOPE"
    COLLEGE_SCOPE = "COLLEGE_SCOPE"
    DENIED = "DENIED"


# role x relation -> grant. Must cover every pair.
ACCESS_TABLE: dict[tuple[Role, Relation], AccessGrant] = {
    (Role.ADMIN, Relation.SELF): AccessGrant.SELF,
    (Role.ADMIN, Relation.GRADUATE_SCOPE): AccessGrant.GRADUATE_SCOPE,
    (Role.ADMIN, Relation.SAME_COLLEGE): AccessGrant.COLLEGE_SCOPE,
    (Role.ADMIN, Relation.UNRELATED): AccessGrant.DENIED,
    (Role.STUDENT, Relation.SELF): AccessGrant.SELF,
    (Role.STUDENT, Relation.GRADUATE_SCOPE): AccessGrant.DENIED,
    (Role.STUDENT, Relation.SAME_COLLEGE): AccessGrant.DENIED,
    (Role.STUDENT, Relation.UNRELATED): AccessGrant.DENIED,
}


def relation_to(requester: User, target: StudentProfile) -> Relation:
    """Classify requester against target. The first matching relation wins."""
    if requester.id == target.user_id:
        return Relation.SELF
    if requester.college == College.GRADUATE_SCHOOL and target.class_status in GRADUATE_STATUSES:
        return Relation.GRADUATE_SCOPE
    if requester.college == target.user.college:
        return Relation.SAME_COLLEGE
    return Relation.UNRELATED


def decide(requester: Optional[User], target: StudentProfile) -> AccessGrant:
    """Look up the grant for requester on target. No requester means denied."""
    if requester is None:
        return AccessGrant.DENIED
    return ACCESS_TABLE[(Role(requester.role), relation_to(requester, target))]


def can_access(requester: Optional[User], target: StudentProfile) -> bool:
    """Pure allow/deny for requester reading or changing target's record."""
    return decide(requester, target) is not AccessGrant.DENIED


class AccessControl:
    """Session-aware access checks backed by the user store and student directory."""

    def __init__(self, store: UserStore, directory: StudentDirectory):
        self.store = store
        self.directory = directory

    async def visible_student_ids(self, session: UserSession) -> list[str]:
        """
        Ids of every student the session admin may view.

        Raises:
            NoActiveSessionError: nobody is logged in.
            PermissionDeniedError: the session user isn't an admin.
        """
        user = await session.current_user()
        if user.role != Role.ADMIN:
            logger.warning(
                "access.permission_denied",
                user_id=user.id,
                required_role="ADMIN",
                user_role=user.role,
            )
            raise PermissionDeniedError(
                "Current logged in user has no administration role",
                details={"user_id": user.id},
            )

        if user.college == College.GRADUATE_SCHOOL:
            profiles = await self.directory.by_class_status(GRADUATE_STATUSES)
        else:
            profiles = await self.directory.by_college(user.college)

        return list(dict.fromkeys(p.user_id for p in profiles))

    async def by_user_id(self, user_id: str) -> Optional[User]:
        """Plain store lookup. Callers must gate exposure with can_access."""
        return await self.store.find_by_id(user_id)

    async def require_access(self, session: UserSession, target: StudentProfile) -> User:
        """
        Return the session user if they may access target.

        Raises:
            NoActiveSessionError: nobody is logged in.
            PermissionDeniedError: the decision table denies access.
        """
        user = await session.current_user()
        grant = decide(user, target)
        if grant is AccessGrant.DENIED:
            logger.warning(
                "access.denied",
                user_id=user.id,
                target_user_id=target.user_id,
            )
            raise PermissionDeniedError(
                f"User {user.id} can't access the record of {target.user_id}",
                details={"user_id": user.id, "target_user_id": target.user_id},
            )
        logger.debug("access.granted", user_id=user.id, target_user_id=target.user_id, grant=grant)
        return user

    async def profile_for(self, session: UserSession, user_id: str) -> StudentProfile:
        """
        Load user_id's profile for the session user, enforcing access.

        Checks run in order: active session, record exists, access allowed.
        Nothing about the record is returned unless all three pass.
        """
        await session.current_user()
        profile = await self.directory.by_user_id(user_id)
        if profile is None:
            raise RecordNotFoundError(user_id)
        await self.require_access(session, profile)
        return profile
