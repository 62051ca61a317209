"""Application Factory — builds the FastAPI app (router, middleware, handlers).

Invariants:
    - Only GET / and GET /version/latest are routable; docs/openapi routes disabled
    - No trailing-slash redirects: "/version/latest/" is an unmatched path
    - RequestLoggingMiddleware wraps every route, including the not-found path
    - No database or logging setup here: collaborators are injected

Design Decisions:
    - Factory over module-level app: the lifecycle and the tests each build
      their own instance with their own repository and logger
"""

import logging

from fastapi import FastAPI

from version_api import __version__
from version_api.api.error_handlers import register_error_handlers
from version_api.api.middleware import RequestLoggingMiddleware
from version_api.api.routes import health
from version_api.api.routes.versions import VersionController, build_version_router
from version_api.core.repository_protocols import StructuredLogger, VersionRepository


def create_app(
    repository: VersionRepository, logger: StructuredLogger | None = None,
) -> FastAPI:
    """Wire repository → controller → router behind the logging middleware."""
    logger = logger or logging.getLogger("version_api.http")
    app = FastAPI(
        title="version-api", version=__version__,
        docs_url=None, redoc_url=None, openapi_url=None,
        redirect_slashes=False,
    )
    app.add_middleware(RequestLoggingMiddleware, logger=logger)

    # Routes, registered explicitly
    app.include_router(health.router)
    app.include_router(
        build_version_router(VersionController(repository, logger)),
    )

    register_error_handlers(app, logger)
    return app
