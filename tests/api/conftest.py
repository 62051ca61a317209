"""API fixtures — FastAPI apps over httpx ASGITransport.

Invariants:
    - Every client gets its own app instance (create_app is a factory)
    - client is backed by the in-memory SQLite database; client_for takes any repository
"""

import logging

import pytest
from httpx import ASGITransport, AsyncClient

from version_api.api.app import create_app
from version_api.services.version_repository import SqlVersionRepository


@pytest.fixture
def caplog_info(caplog):
    caplog.set_level(logging.INFO)
    return caplog


@pytest.fixture
async def client_for():
    """Build a test client around a given repository."""
    clients = []

    def _build(repository, logger=None) -> AsyncClient:
        c = AsyncClient(
            transport=ASGITransport(app=create_app(repository, logger)),
            base_url="http://test",
        )
        clients.append(c)
        return c

    yield _build
    for c in clients:
        await c.aclose()


@pytest.fixture
async def client(client_for, database):
    return client_for(SqlVersionRepository(database))
