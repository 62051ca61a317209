"""Process Entry Point — wires configuration, logging, database and the lifecycle.

Invariants:
    - Logging is set up before anything else logs; close_logging() runs before exit
    - The first SIGINT/SIGTERM sets the shutdown token; later signals change nothing
    - Exit status 0 after shutdown (even a failed one), 1 on bind or log-file failure
    - A missing or broken database is not fatal: GET / keeps answering

Design Decisions:
    - serve() takes an optional token so tests drive shutdown without OS signals
    - add_signal_handler with a signal.signal fallback (loops without Unix signal support)
"""

import asyncio
import logging
import signal
import sys

from version_api.api.app import create_app
from version_api.config import Settings, get_settings
from version_api.core.errors import BindError, StorageError
from version_api.infrastructure.database import open_database
from version_api.infrastructure.observability import close_logging, setup_logging
from version_api.server import ServerLifecycle
from version_api.services.version_repository import SqlVersionRepository

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_shutdown_signals(stop: asyncio.Event | None = None) -> asyncio.Event:
    """Return a token that the first shutdown signal sets."""
    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()

    def _request_shutdown(signum: int) -> None:
        if stop.is_set():
            return
        logger.info(f"Received {signal.Signals(signum).name}.")
        stop.set()

    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, _request_shutdown, sig)
        except NotImplementedError:
            signal.signal(
                sig, lambda signum, _frame: loop.call_soon_threadsafe(_request_shutdown, signum),
            )
    return stop


async def serve(settings: Settings, stop: asyncio.Event | None = None) -> int:
    """Run the backend until the token is set. Returns the process exit status."""
    logger.info("Opening database.")
    database = open_database(settings.database_url)

    logger.info("Creating http handler.")
    repository = SqlVersionRepository(database, limit=settings.latest_versions_limit)
    app = create_app(repository, logger=logging.getLogger("version_api.http"))
    lifecycle = ServerLifecycle(
        app,
        host=settings.host,
        port=settings.port,
        shutdown_timeout=settings.shutdown_timeout_seconds,
        database=database,
    )

    if stop is None:
        stop = install_shutdown_signals()
    try:
        await lifecycle.run(stop)
    except BindError as exc:
        logger.critical(
            f"Http server failed to start: {exc.message}",
            extra={"error_code": exc.code, "host": exc.host, "port": exc.port},
        )
        if database is not None:
            try:
                await database.close()
            except StorageError as close_exc:
                logger.warning(f"Database close failed: {close_exc.message}")
        return 1
    return 0


def main(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    try:
        setup_logging(settings.effective_log_level, settings.log_format, settings.log_file)
    except OSError as exc:
        close_logging()
        logger.critical(f"Failed to open log file {settings.log_file} for output: {exc}")
        sys.exit(1)

    logger.info("Starting backend.")
    try:
        exit_code = asyncio.run(serve(settings))
    finally:
        close_logging()
    sys.exit(exit_code)
