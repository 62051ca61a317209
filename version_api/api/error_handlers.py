"""Error Handlers — global exception handlers for the version API.

Invariants:
    - 404 and 405 from routing → the same fixed not-found body with status 404
    - Other HTTP exceptions keep their status with the standard envelope
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Method mismatches folded into not-found: the API has one not-found answer
    - Extracted from app.py to keep the factory short
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from version_api.core.errors import (
    ErrorCategory, ErrorSeverity, error_envelope, internal_error_response,
    not_found_response,
)
from version_api.core.repository_protocols import StructuredLogger

_NOT_FOUND_STATUSES = (
    status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED,
)


def register_error_handlers(app: FastAPI, logger: StructuredLogger) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_http_error_handler(app, logger)
    _register_generic_error_handler(app, logger)


def _register_http_error_handler(app: FastAPI, logger: StructuredLogger) -> None:
    """Register routing / HTTPException handler."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code in _NOT_FOUND_STATUSES:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content=not_found_response(),
            )
        logger.warning(
            f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}",
            extra={"status_code": exc.status_code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(
                "HTTP_ERROR", str(exc.detail),
                ErrorCategory.INTERNAL, ErrorSeverity.ERROR,
            ),
            headers=exc.headers,
        )


def _register_generic_error_handler(app: FastAPI, logger: StructuredLogger) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=internal_error_response(),
        )
