"""SQL Version Repository — reads version records newest first.

Invariants:
    - Read-only: a single SELECT per call, no writes, no commits
    - Ordered by created_at DESC, id DESC; capped at the construction-time limit
    - Any failure (no database, lost connection, bad query) raises StorageError
      with the original exception on __cause__

Design Decisions:
    - Holds the DatabaseSessionManager, not a session: each call opens its own
      pooled session, so concurrent requests share nothing but the engine
"""

from collections.abc import Sequence

from sqlalchemy import select

from version_api.core.errors import StorageError
from version_api.infrastructure.database import DatabaseSessionManager
from version_api.models.version import Version


class SqlVersionRepository:
    """VersionRepository backed by the versions table."""

    def __init__(self, db: DatabaseSessionManager | None, limit: int = 100):
        self._db = db
        self._limit = limit

    async def fetch_latest_versions(self) -> Sequence[Version]:
        if self._db is None:
            raise StorageError("Database is not configured", "connect")
        stmt = (
            select(Version)
            .order_by(Version.created_at.desc(), Version.id.desc())
            .limit(self._limit)
        )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())
