"""Database Session Manager — async engine held for the whole process lifetime.

Invariants:
    - Every session auto-rolls-back on exception (no partial work leaks)
    - Connection pool uses pool_pre_ping for stale connection detection
    - All SQLAlchemy and socket-level exceptions mapped to StorageError (core/errors.py)
    - The engine is disposed only by close(), which the lifecycle calls during shutdown

Design Decisions:
    - open_database() never raises: a missing or unusable URL is logged and the
      process keeps serving the liveness route; version reads then fail per request
    - No logging in session(): the controller logs each failed request exactly once
    - expire_on_commit=False: prevents lazy-load issues in async context
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    OperationalError, DBAPIError, SQLAlchemyError,
)

from version_api.core.errors import StorageError

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Manages async database sessions with pooling and rollback."""

    def __init__(self, database_url: str, **engine_kwargs: Any):
        self.engine = create_async_engine(
            database_url,
            pool_pre_ping=True,
            **engine_kwargs,
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except OperationalError as e:
            await session.rollback()
            raise StorageError("Connection or operational error", "execute") from e
        except DBAPIError as e:
            await session.rollback()
            raise StorageError("Database driver error", "query") from e
        except SQLAlchemyError as e:
            await session.rollback()
            raise StorageError("Database operation failed", "unknown") from e
        except OSError as e:
            raise StorageError("Connection failed", "connect") from e
        finally:
            await session.close()

    async def close(self) -> None:
        """Release every pooled connection."""
        try:
            await self.engine.dispose()
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(str(e), "dispose") from e


def open_database(database_url: str, **engine_kwargs: Any) -> DatabaseSessionManager | None:
    """Create the process-wide session manager, or None when the URL is unusable."""
    if not database_url:
        logger.error("Environment variable POSTGRES_DSN is not set!")
        return None
    try:
        return DatabaseSessionManager(database_url, **engine_kwargs)
    except (SQLAlchemyError, ImportError) as e:
        logger.error(f"Database open failed: {e}")
        return None
