"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)
    - Read-only from this service: rows are written by the release process

Design Decisions:
    - All models imported here so Base.metadata is complete before create_all in tests
"""

from version_api.models.version import Version  # noqa: F401
