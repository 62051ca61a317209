"""Server Lifecycle — start, wait for the shutdown token, bounded graceful shutdown.

Invariants:
    - Phases run strictly in order: start → wait → shutdown
    - start() binds the socket itself; a bind failure raises BindError before any
      request can be served and before wait() is reached
    - wait() returns only when the shutdown token is set
    - shutdown() stops accepting at once, gives in-flight requests up to
      shutdown_timeout seconds, then cancels them and aborts their connections
    - The database handle is released inside shutdown(), never earlier
    - ShutdownError is logged as a warning by run(); it never escapes run()

Design Decisions:
    - uvicorn.Server embedded as an asyncio task (serve(sockets=...)) instead of
      uvicorn.run(): the caller keeps the event loop and the shutdown decision
    - uvicorn's own signal handling disabled: the token is the only shutdown trigger,
      main() decides which OS signals set it
    - uvicorn's timeout_graceful_shutdown enforces the deadline; the outer wait adds a
      small grace so a stuck server still cannot hold the process
"""

import asyncio
import contextlib
import logging
import socket

import uvicorn
from fastapi import FastAPI

from version_api.core.errors import BindError, ShutdownError, StorageError
from version_api.core.repository_protocols import StructuredLogger
from version_api.infrastructure.database import DatabaseSessionManager

_STARTUP_POLL_SECONDS = 0.05
_FORCE_EXIT_GRACE_SECONDS = 1.0

DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 10.0


class _ManagedServer(uvicorn.Server):
    """uvicorn server that leaves signals to ServerLifecycle."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class ServerLifecycle:
    """Owns the listening socket and the serving task for one process run."""

    def __init__(
        self,
        app: FastAPI,
        host: str = "127.0.0.1",
        port: int = 2137,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
        database: DatabaseSessionManager | None = None,
        logger: StructuredLogger | None = None,
    ):
        self.app = app
        self.host = host
        self.port = port
        self.shutdown_timeout = shutdown_timeout
        self.database = database
        self.logger = logger or logging.getLogger(__name__)
        self._server: _ManagedServer | None = None
        self._serve_task: asyncio.Task | None = None

    # ─── Phase 1: start ─────────────────────────────────────────

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
        except OSError as exc:
            sock.close()
            raise BindError(self.host, self.port, exc.strerror or str(exc)) from exc
        sock.set_inheritable(True)
        return sock

    async def start(self) -> None:
        """Bind and begin serving in the background. Returns once accepting."""
        sock = self._bind()
        # port 0 asks the OS for a free port
        self.port = sock.getsockname()[1]
        config = uvicorn.Config(
            self.app,
            log_config=None,
            access_log=False,
            lifespan="off",
            timeout_graceful_shutdown=self.shutdown_timeout,
        )
        self._server = _ManagedServer(config)
        self._serve_task = asyncio.create_task(self._server.serve(sockets=[sock]))
        while not self._server.started:
            if self._serve_task.done():
                cause = None if self._serve_task.cancelled() else self._serve_task.exception()
                sock.close()
                raise BindError(
                    self.host, self.port, f"server stopped during startup: {cause}",
                ) from cause
            await asyncio.sleep(_STARTUP_POLL_SECONDS)
        self.logger.debug(
            "Http server started.", extra={"host": self.host, "port": self.port},
        )

    # ─── Phase 2: wait ──────────────────────────────────────────

    async def wait(self, stop: asyncio.Event) -> None:
        """Block until the shutdown token is set."""
        await stop.wait()

    # ─── Phase 3: shutdown ──────────────────────────────────────

    async def shutdown(self) -> None:
        """Stop accepting, drain in-flight requests up to the deadline, release the database."""
        errors: list[str] = []
        if self._server is not None:
            self._server.should_exit = True
            try:
                await self._wait_for_server_exit()
            except ShutdownError as exc:
                errors.append(exc.message)
            finally:
                self._abort_open_connections()
        if self.database is not None:
            try:
                await self.database.close()
            except StorageError as exc:
                errors.append(exc.message)
        if errors:
            raise ShutdownError("; ".join(errors))

    async def _wait_for_server_exit(self) -> None:
        try:
            await asyncio.wait_for(
                self._serve_task,
                timeout=self.shutdown_timeout + _FORCE_EXIT_GRACE_SECONDS,
            )
        except asyncio.TimeoutError as exc:
            self._server.force_exit = True
            raise ShutdownError(
                f"Http server did not stop within {self.shutdown_timeout}s",
            ) from exc
        except Exception as exc:
            raise ShutdownError(f"Http server stopped with an error: {exc}") from exc

    def _abort_open_connections(self) -> None:
        """Drop connections whose requests outlived the deadline."""
        for connection in list(self._server.server_state.connections):
            transport = getattr(connection, "transport", None)
            if transport is not None and not transport.is_closing():
                transport.abort()

    # ─── All phases ─────────────────────────────────────────────

    async def run(self, stop: asyncio.Event) -> None:
        """start → wait → shutdown. BindError propagates; shutdown failures are logged."""
        await self.start()
        self.logger.info(
            "Starting listening... To shut down use ^C",
            extra={"host": self.host, "port": self.port},
        )
        await self.wait(stop)
        self.logger.info(
            "Shutting down...", extra={"timeout_seconds": self.shutdown_timeout},
        )
        try:
            await self.shutdown()
        except ShutdownError as exc:
            self.logger.warning(
                f"Http server shutdown failed: {exc.message}",
                extra={"error_code": exc.code},
            )
