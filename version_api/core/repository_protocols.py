"""Boundary Protocols — contracts between the HTTP layer and its collaborators.

Invariants:
    - Routes and the lifecycle depend on these Protocols, never on SQLAlchemy or a concrete logger
    - Implementations provided by the shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, logging.Logger satisfies StructuredLogger as-is
    - Async in VersionRepository: implementations do IO
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol


class VersionLike(Protocol):
    """Structural contract for a version record (ORM row or test double)."""
    version: str
    created_at: datetime


class VersionRepository(Protocol):
    """Read-only contract for version persistence — implemented by shell.

    fetch_latest_versions returns newest first and raises StorageError on failure.
    """
    async def fetch_latest_versions(self) -> Sequence[VersionLike]: ...


class StructuredLogger(Protocol):
    """Log sink injected into the router and the lifecycle manager."""
    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
