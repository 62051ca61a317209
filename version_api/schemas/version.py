"""Version Schemas — public shape of a version record.

Invariants:
    - Only version and created_at leave the service (no internal ids)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class VersionResponse(BaseModel):
    """One entry of GET /version/latest."""
    model_config = ConfigDict(from_attributes=True)

    version: str
    created_at: datetime
