"""Request Logging Middleware — one log entry per inbound HTTP request.

Invariants:
    - Logs method and path before the request is dispatched, in the message itself
      so every log format keeps them
    - Exactly one entry per request, including ones that end as 404
    - Pure observer: never alters, replaces or short-circuits the response

Design Decisions:
    - Raw ASGI middleware over BaseHTTPMiddleware: no response buffering and no
      extra task per request
    - Logger injected at construction (app.add_middleware kwargs)
"""

import logging

from starlette.types import ASGIApp, Receive, Scope, Send

from version_api.core.repository_protocols import StructuredLogger


class RequestLoggingMiddleware:
    """Records every HTTP request, then delegates unchanged."""

    def __init__(self, app: ASGIApp, logger: StructuredLogger | None = None):
        self.app = app
        self.logger = logger or logging.getLogger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            self.logger.info(
                f"Handling request. method={scope['method']} path={scope['path']}",
                extra={"method": scope["method"], "path": scope["path"]},
            )
        await self.app(scope, receive, send)
