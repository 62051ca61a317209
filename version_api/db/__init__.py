"""Database Infrastructure — SQLAlchemy declarative Base.

Invariants:
    - Single async engine per process (owned by infrastructure/database.py)

Design Decisions:
    - asyncpg driver for PostgreSQL (native async, no thread pool overhead)
"""
