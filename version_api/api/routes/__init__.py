"""Route Modules — one file per resource/concern.

Invariants:
    - Each module defines its own APIRouter
    - Routes never touch SQLAlchemy directly (delegate to the repository)
"""
