"""Per-request log context: request id in, X-Request-ID out."""

import uuid

import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from campusbill.core.logging import get_logger, set_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = b"x-request-id"


class RequestIDMiddleware:
    """
    Start every HTTP request with a fresh structlog context holding its request id.

    The id is taken from an incoming X-Request-ID header or generated, then
    echoed back on the response. Anything bound by an earlier request on the
    same context (request id, session user) is cleared first.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope.get("headers", [])).get(REQUEST_ID_HEADER)
        request_id = incoming.decode("latin-1") if incoming else str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        set_request_id(request_id)

        logger.info("request.start", method=scope["method"], path=scope["path"])

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (REQUEST_ID_HEADER, request_id.encode("latin-1")),
                ]
                logger.info("request.complete", status_code=message["status"])
            await send(message)

        await self.app(scope, receive, send_with_request_id)
