"""FastAPI application factory and HTTP error boundary.

:func:`create_app` is the only place that translates
:class:`~reelwall.exceptions.ReelwallError` subclasses into HTTP status
codes.  Handlers render ``{"error": message, "hint": hint}``; media-tool
failures add the stderr tail under ``"details"``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from reelwall.api import routes, video_routes
from reelwall.api.schemas import HealthResponse
from reelwall.bootstrap import Services, build_services
from reelwall.config import Settings
from reelwall.exceptions import (
    EnvironmentError,
    FfmpegNotFoundError,
    InvalidRequestError,
    InvalidURLError,
    JobNotFoundError,
    MediaFileNotFoundError,
    ProcessingError,
    ReelwallError,
    UnknownPlatformError,
    UploadTooLargeError,
)
from reelwall.infra.artifact_store import UPLOADS_URL_PREFIX
from reelwall.version import __version__

logger = logging.getLogger(__name__)

_STATUS_CODES: tuple[tuple[type[ReelwallError], int], ...] = (
    (InvalidURLError, 400),
    (UploadTooLargeError, 413),
    (InvalidRequestError, 400),
    (UnknownPlatformError, 404),
    (JobNotFoundError, 404),
    (MediaFileNotFoundError, 404),
    (ProcessingError, 500),
    (EnvironmentError, 500),
    (FfmpegNotFoundError, 500),
)


def status_code_for(exc: ReelwallError) -> int:
    for exc_type, code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return 500


async def _handle_reelwall_error(request: Request, exc: ReelwallError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    content: dict[str, object] = {"error": str(exc), "hint": exc.hint}
    if isinstance(exc, ProcessingError) and exc.diagnostics:
        content["details"] = exc.diagnostics
    return JSONResponse(status_code=code, content=content)


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted(
        {".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()} - {""}
    )
    hint = f"Check the fields: {', '.join(fields)}" if fields else None
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "hint": hint},
    )


def create_app(
    settings: Settings | None = None,
    services: Services | None = None,
) -> FastAPI:
    """Build the HTTP application.

    Parameters
    ----------
    settings:
        Configuration; read from the environment when omitted.
    services:
        Pre-built object graph (tests inject fakes); built from
        *settings* when omitted.
    """
    if services is None:
        services = build_services(settings or Settings.from_env())
    resolved = services

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        janitor: asyncio.Task[None] | None = None
        if resolved.settings.artifact_ttl is not None:
            janitor = asyncio.create_task(
                resolved.downloads.run_janitor(resolved.settings.eviction_interval),
                name="artifact-janitor",
            )
        try:
            yield
        finally:
            if janitor is not None:
                janitor.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await janitor
            await resolved.downloads.shutdown()

    app = FastAPI(title="reelwall", version=__version__, lifespan=lifespan)
    app.state.services = resolved

    app.add_exception_handler(ReelwallError, _handle_reelwall_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)

    app.include_router(routes.router)
    app.include_router(video_routes.router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__)

    output_dir = resolved.store.root
    output_dir.mkdir(parents=True, exist_ok=True)
    app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=output_dir), name="uploads")

    return app
