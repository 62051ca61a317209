"""Error Hierarchy — typed, categorized exceptions for all version-api failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - StorageError is request-scoped: it ends as a 500 response, never reaches the lifecycle
    - BindError and ShutdownError are process-scoped: never rendered into an HTTP response
    - No internal details leaked in user-facing messages (cause kept on __cause__)

Design Decisions:
    - Single hierarchy with VersionApiError base: one envelope shape for every error body
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context attached to an error for logs."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str | None = None


class VersionApiError(Exception):
    """Base exception for all version-api errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status


# ─── Request-scoped ─────────────────────────────────────────────

class StorageError(VersionApiError):
    """Reading from the version store failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            f"Database {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, ctx, 500,
        )
        self.operation = operation


# ─── Process-scoped ─────────────────────────────────────────────

class BindError(VersionApiError):
    """Listening address could not be bound — fatal during Start."""
    def __init__(self, host: str, port: int, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot listen on {host}:{port}: {reason}",
            "BIND_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.host = host
        self.port = port


class ShutdownError(VersionApiError):
    """Graceful shutdown did not complete cleanly. Never fatal."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "SHUTDOWN_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.WARNING, context, 500,
        )


# ─── Response bodies ────────────────────────────────────────────

def error_envelope(
    code: str, message: str, category: ErrorCategory, severity: ErrorSeverity,
) -> dict:
    """Standard REST error body shared by every error response."""
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
        },
    }


def not_found_response() -> dict:
    """Fixed body for every unmatched path or method."""
    return error_envelope(
        "NOT_FOUND", "Resource not found",
        ErrorCategory.RESOURCE_NOT_FOUND, ErrorSeverity.INFO,
    )


def storage_unavailable_response() -> dict:
    """Generic body for a failed read; the cause stays in the logs."""
    return error_envelope(
        "STORAGE_ERROR", "Versions are temporarily unavailable",
        ErrorCategory.DATABASE, ErrorSeverity.ERROR,
    )


def internal_error_response() -> dict:
    """Catch-all body — never leaks internal details."""
    return error_envelope(
        "INTERNAL_ERROR", "An unexpected error occurred",
        ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
    )
