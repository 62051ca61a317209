"""Version Controller — serves the latest versions from the repository.

Invariants:
    - Success: 200 + JSON array, newest first; an empty store is [] (not an error)
    - StorageError: 500 + generic body, logged exactly once; cause never sent to the client
    - One log entry per request outcome

Design Decisions:
    - Controller is a small class holding repository + logger, registered as a bound
      method: no module globals, tests build it with fakes
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from version_api.core.errors import StorageError, storage_unavailable_response
from version_api.core.repository_protocols import StructuredLogger, VersionRepository
from version_api.schemas.version import VersionResponse


class VersionController:
    """Translates repository results into HTTP responses."""

    def __init__(self, repository: VersionRepository, logger: StructuredLogger):
        self.repository = repository
        self.logger = logger

    async def serve_latest_versions(self):
        """Latest versions, newest first."""
        try:
            versions = await self.repository.fetch_latest_versions()
        except StorageError as exc:
            self.logger.error(
                f"Fetching latest versions failed: {exc.message}",
                exc_info=exc,
                extra={"error_code": exc.code},
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=storage_unavailable_response(),
            )
        self.logger.info(
            "Served latest versions.", extra={"count": len(versions)},
        )
        return [VersionResponse.model_validate(v) for v in versions]


def build_version_router(controller: VersionController) -> APIRouter:
    router = APIRouter(prefix="/version", tags=["version"])
    router.add_api_route(
        "/latest",
        controller.serve_latest_versions,
        methods=["GET"],
        response_model=list[VersionResponse],
        status_code=status.HTTP_200_OK,
    )
    return router
