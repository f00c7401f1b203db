# File: src/campusbill/core/session.py
"""Login sessions.

A UserSession is bound to a mutable mapping that holds its data: the signed
cookie session of an HTTP request, or a plain dict for scripts and tests.
Every access-controlled operation takes the session explicitly, so there is
no process-wide "current user" and concurrent requests can't clobber each
other's login.

The mapping only holds the user id and an opaque session token. The User is
re-read from the store on each ``current_user()`` call, and temporary record
edits live server-side in the staged edit store under the session token.
"""

import enum
import secrets
from collections.abc import MutableMapping
from datetime import timedelta
from typing import Any, Optional

from campusbill.core.errors import NoActiveSessionError, StoreIOError, UserNotFoundError
from campusbill.core.logging import bind_session_user, get_logger
from campusbill.core.store import StagedEditStore, UserStore
from campusbill.models.user import User
from campusbill.utils.datetime import now_utc

logger = get_logger(__name__)

USER_ID_KEY = "user_id"
SESSION_TOKEN_KEY = "session_token"

# Cookie lifetime; staged edits older than this belong to dead sessions
SESSION_MAX_AGE = 8 * 60 * 60


class SessionState(str, enum.Enum):
    """Login states."""

    LOGGED_OUT = "LOGGED_OUT"
    LOGGED_IN = "LOGGED_IN"


class UserSession:
    """At most one logged-in user, plus session-scoped staged record edits."""

    def __init__(
        self,
        store: UserStore,
        data: Optional[MutableMapping[str, Any]] = None,
        edits: Optional[StagedEditStore] = None,
    ):
        self.store = store
        self.data = data if data is not None else {}
        self.edits = edits if edits is not None else StagedEditStore(store.db)

    @property
    def user_id(self) -> Optional[str]:
        return self.data.get(USER_ID_KEY)

    @property
    def session_token(self) -> Optional[str]:
        return self.data.get(SESSION_TOKEN_KEY)

    @property
    def state(self) -> SessionState:
        return SessionState.LOGGED_IN if self.user_id else SessionState.LOGGED_OUT

    async def login(self, user_id: str) -> User:
        """
        Log in as user_id, replacing any current login.

        Raises:
            UserNotFoundError: user_id isn't in the store. The session is left as it was.
        """
        user = await self.store.find_by_id(user_id)
        if user is None:
            logger.warning("session.login_failed", user_id=user_id)
            raise UserNotFoundError(user_id)

        previous = self.user_id
        if previous != user.id or not self.session_token:
            if previous and self.session_token:
                # Staged edits belong to the login that made them
                await self.edits.discard_all(self.session_token)
                logger.info("session.replaced", previous_user_id=previous, user_id=user.id)
            self.data[SESSION_TOKEN_KEY] = secrets.token_urlsafe(32)
            await self.edits.purge_older_than(now_utc() - timedelta(seconds=SESSION_MAX_AGE))

        self.data[USER_ID_KEY] = user.id
        bind_session_user(user.id)
        logger.info("session.login", user_id=user.id, role=user.role)
        return user

    async def logout(self) -> None:
        """Clear the session and its staged edits. Safe to call when logged out."""
        user_id, token = self.user_id, self.session_token
        self.data.clear()
        bind_session_user(None)

        if token:
            try:
                await self.edits.discard_all(token)
            except StoreIOError as e:
                # The token is gone from the session; leftovers expire with purge_older_than
                logger.warning("session.logout_discard_failed", user_id=user_id, error=e.message)

        if user_id:
            logger.info("session.logout", user_id=user_id)

    async def current_user(self) -> User:
        """
        Return the logged-in user.

        Raises:
            NoActiveSessionError: nobody is logged in, or the user was removed from the store.
        """
        user_id = self.user_id
        if not user_id:
            raise NoActiveSessionError()

        user = await self.store.find_by_id(user_id)
        if user is None:
            logger.warning("session.user_vanished", user_id=user_id)
            await self.logout()
            raise NoActiveSessionError("Logged-in user no longer exists")
        return user

    async def staged_record(self, user_id: str) -> Optional[dict[str, Any]]:
        """Unsaved edit of user_id's record made in this session, if any."""
        if not self.session_token:
            return None
        return await self.edits.get(self.session_token, user_id)

    async def stage_record(self, user_id: str, record: dict[str, Any]) -> None:
        if not self.user_id:
            raise NoActiveSessionError()
        if not self.session_token:
            self.data[SESSION_TOKEN_KEY] = secrets.token_urlsafe(32)
        await self.edits.put(self.session_token, user_id, record)

    async def discard_staged_record(self, user_id: str) -> None:
        if self.session_token:
            await self.edits.discard(self.session_token, user_id)
