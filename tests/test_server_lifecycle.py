"""ServerLifecycle — real uvicorn on an ephemeral loopback port.

Invariants:
    - start() returns once the socket accepts; a taken port raises BindError
    - wait() returns only when the token is set
    - After shutdown begins new connections are refused, in-flight requests finish
    - Requests outliving the deadline are cut off; shutdown still completes
    - The database handle is released during shutdown, not before
"""

import asyncio
import logging
import socket
import time

import httpx
import pytest

from version_api.api.app import create_app
from version_api.api.routes.health import LIVENESS_BODY
from version_api.core.errors import BindError, ShutdownError
from version_api.server import ServerLifecycle
from tests.fakes import BlockingVersionRepository, RecordingDatabase, StaticVersionRepository


@pytest.fixture
def occupied_port():
    """A loopback port that is already bound and listening."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen()
    yield sock.getsockname()[1]
    sock.close()


def _lifecycle(repository=None, **kwargs) -> ServerLifecycle:
    app = create_app(repository or StaticVersionRepository())
    return ServerLifecycle(app, host="127.0.0.1", port=0, **kwargs)


def _client(lifecycle: ServerLifecycle) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=f"http://127.0.0.1:{lifecycle.port}", trust_env=False,
    )


async def test_start_serves_requests(caplog):
    lifecycle = _lifecycle()
    await lifecycle.start()
    try:
        async with _client(lifecycle) as client:
            res = await client.get("/")
        assert res.status_code == 200
        assert res.text == LIVENESS_BODY
    finally:
        await lifecycle.shutdown()


async def test_start_resolves_ephemeral_port():
    lifecycle = _lifecycle()
    await lifecycle.start()
    try:
        assert lifecycle.port != 0
    finally:
        await lifecycle.shutdown()


async def test_bind_failure_raises_before_serving(occupied_port):
    lifecycle = ServerLifecycle(
        create_app(StaticVersionRepository()), host="127.0.0.1", port=occupied_port,
    )

    with pytest.raises(BindError) as excinfo:
        await lifecycle.start()

    assert excinfo.value.port == occupied_port
    assert isinstance(excinfo.value.__cause__, OSError)
    assert lifecycle._serve_task is None


async def test_run_propagates_bind_error_without_waiting(occupied_port):
    lifecycle = ServerLifecycle(
        create_app(StaticVersionRepository()), host="127.0.0.1", port=occupied_port,
    )
    stop = asyncio.Event()

    with pytest.raises(BindError):
        await asyncio.wait_for(lifecycle.run(stop), timeout=5)


async def test_wait_blocks_until_token_is_set():
    lifecycle = _lifecycle()
    stop = asyncio.Event()

    waiter = asyncio.create_task(lifecycle.wait(stop))
    await asyncio.sleep(0.05)
    assert not waiter.done()

    stop.set()
    await asyncio.wait_for(waiter, timeout=1)


async def test_shutdown_refuses_new_connections():
    lifecycle = _lifecycle()
    await lifecycle.start()
    url = f"http://127.0.0.1:{lifecycle.port}/"

    await lifecycle.shutdown()

    async with httpx.AsyncClient(trust_env=False) as client:
        with pytest.raises(httpx.ConnectError):
            await client.get(url)


async def test_in_flight_request_completes_after_shutdown_begins():
    repo = BlockingVersionRepository()
    lifecycle = _lifecycle(repo, shutdown_timeout=5)
    await lifecycle.start()
    url = f"http://127.0.0.1:{lifecycle.port}/"

    async with _client(lifecycle) as client:
        pending = asyncio.create_task(client.get("/version/latest"))
        await asyncio.wait_for(repo.entered.wait(), timeout=5)

        stopping = asyncio.create_task(lifecycle.shutdown())
        await asyncio.sleep(0.3)

        async with httpx.AsyncClient(trust_env=False) as fresh:
            with pytest.raises(httpx.ConnectError):
                await fresh.get(url)
        assert not stopping.done()

        repo.release.set()
        res = await asyncio.wait_for(pending, timeout=5)
        await asyncio.wait_for(stopping, timeout=5)

    assert res.status_code == 200
    assert [v["version"] for v in res.json()] == ["2.0.0"]


async def test_request_past_deadline_is_cut_off():
    repo = BlockingVersionRepository()
    lifecycle = _lifecycle(repo, shutdown_timeout=0.3)
    await lifecycle.start()

    async with _client(lifecycle) as client:
        pending = asyncio.create_task(client.get("/version/latest"))
        await asyncio.wait_for(repo.entered.wait(), timeout=5)

        started = time.monotonic()
        await lifecycle.shutdown()
        elapsed = time.monotonic() - started

        (outcome,) = await asyncio.wait_for(
            asyncio.gather(pending, return_exceptions=True), timeout=5,
        )

    assert elapsed < 0.3 + 1.0
    assert isinstance(outcome, httpx.HTTPError) or outcome.status_code == 500


async def test_shutdown_releases_database_after_serving():
    database = RecordingDatabase()
    lifecycle = _lifecycle(database=database)
    await lifecycle.start()
    assert database.closed is False

    await lifecycle.shutdown()

    assert database.closed is True


async def test_shutdown_error_surfaces_from_shutdown():
    lifecycle = _lifecycle(database=RecordingDatabase(fail_on_close=True))
    await lifecycle.start()

    with pytest.raises(ShutdownError) as excinfo:
        await lifecycle.shutdown()
    assert "pool already torn down" in excinfo.value.message


async def test_run_logs_shutdown_error_as_warning(caplog):
    lifecycle = _lifecycle(database=RecordingDatabase(fail_on_close=True))
    stop = asyncio.Event()
    stop.set()

    with caplog.at_level(logging.INFO):
        await asyncio.wait_for(lifecycle.run(stop), timeout=5)

    warnings = [
        r for r in caplog.records
        if r.name == "version_api.server" and r.levelno == logging.WARNING
    ]
    assert len(warnings) == 1
    assert "Http server shutdown failed" in warnings[0].getMessage()


async def test_run_logs_each_transition(caplog):
    lifecycle = _lifecycle()
    stop = asyncio.Event()
    stop.set()

    with caplog.at_level(logging.INFO, logger="version_api.server"):
        await asyncio.wait_for(lifecycle.run(stop), timeout=5)

    messages = [r.getMessage() for r in caplog.records if r.name == "version_api.server"]
    assert messages == ["Starting listening... To shut down use ^C", "Shutting down..."]
