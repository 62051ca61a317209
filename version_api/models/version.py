"""Version ORM — one published software version.

Invariants:
    - version is a unique, non-null identifier string (e.g. "1.2.0")
    - created_at orders versions by recency; id breaks ties
    - Never written by this service

Design Decisions:
    - Integer primary key: insertion order doubles as a tiebreaker for equal timestamps
    - Index on created_at: "latest" is the only query
"""

from datetime import datetime, timezone

from sqlalchemy import Integer, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from version_api.db.base import Base


class Version(Base):
    """Version entity — immutable release record."""
    __tablename__ = "versions"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    version: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"Version({self.version!r})"
