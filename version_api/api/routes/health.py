"""Liveness Probe — confirms the process is up and serving.

Invariants:
    - GET / always returns 200 with a fixed plaintext body
    - Never touches the database (works while the store is down)
"""

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse

LIVENESS_BODY = "dzialam"

router = APIRouter(tags=["health"])


@router.get(
    "/", response_class=PlainTextResponse, status_code=status.HTTP_200_OK,
)
async def liveness() -> str:
    return LIVENESS_BODY
