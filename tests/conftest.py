"""Root conftest — shared fixtures: in-memory database and version seeding."""

import os
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.pool import StaticPool

from version_api.db.base import Base
from version_api.infrastructure.database import DatabaseSessionManager
from version_api.models.version import Version

# Ensure tests never pick up a developer's real database or verbosity
for _var in (
    "POSTGRES_DSN", "DATABASE_URL", "VERBOSE", "LOG_LEVEL", "LOG_FORMAT",
    "LOG_FILE", "HOST", "PORT", "SHUTDOWN_TIMEOUT_SECONDS", "LATEST_VERSIONS_LIMIT",
):
    os.environ.pop(_var, None)

RELEASE_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def database():
    """Session manager over a fresh in-memory SQLite database."""
    db = DatabaseSessionManager("sqlite+aiosqlite://", poolclass=StaticPool)
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.close()


@pytest.fixture
def seed_versions(database):
    """Insert versions in chronological order, one day apart."""
    async def _seed(*names: str, start: datetime = RELEASE_START) -> None:
        async with database.session() as session:
            for offset, name in enumerate(names):
                session.add(
                    Version(version=name, created_at=start + timedelta(days=offset)),
                )
            await session.commit()
    return _seed
