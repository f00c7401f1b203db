"""Sentry context middleware to capture request context in error reports."""

import sentry_sdk
from starlette.types import ASGIApp, Receive, Scope, Send

from campusbill.core.logging import get_request_id
from campusbill.core.session import USER_ID_KEY


class SentryContextMiddleware:
    """
    Tag Sentry events with the request id and the session user id.

    Must sit inside SessionMiddleware so scope["session"] is populated.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        sentry_sdk.set_tag("request_id", get_request_id())

        user_id = scope.get("session", {}).get(USER_ID_KEY)
        if user_id:
            sentry_sdk.set_user({"id": user_id})

        sentry_sdk.set_context(
            "request",
            {"method": scope.get("method"), "path": scope.get("path")},
        )

        await self.app(scope, receive, send)
