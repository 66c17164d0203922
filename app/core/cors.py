from __future__ import annotations

import logging
from collections.abc import Iterable

from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Receive, Scope, Send

ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]


class OriginAllowlistMiddleware:
    """Reject browser requests from origins outside the allow-list.

    Requests without an ``Origin`` header (curl, server-to-server) pass through.
    """

    def __init__(self, app: ASGIApp, allowed_origins: Iterable[str]) -> None:
        self._app = app
        self._allowed = {origin.rstrip("/") for origin in allowed_origins}
        self._logger = logging.getLogger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return
        origin = _header(scope, b"origin")
        if origin is None or origin.rstrip("/") in self._allowed:
            await self._app(scope, receive, send)
            return
        self._logger.warning("Rejected request from origin %s to %s", origin, scope.get("path"))
        response = PlainTextResponse("Not allowed by CORS", status_code=403)
        await response(scope, receive, send)


def _header(scope: Scope, name: bytes) -> str | None:
    for key, value in scope.get("headers", []):
        if key.lower() == name:
            return value.decode("latin-1")
    return None
