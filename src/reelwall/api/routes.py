"""Social-video routes: validation, metadata, downloads and job status."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from reelwall.api.schemas import (
    CancelResponse,
    DownloadRequest,
    DownloadResponse,
    MetadataResponse,
    StatusResponse,
    UrlRequest,
    ValidateResponse,
)
from reelwall.bootstrap import Services
from reelwall.core.platforms import parse_platform
from reelwall.exceptions import InvalidURLError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["social"])

METADATA_FALLBACK_HINT = (
    "This video could not be read right now. "
    "Try again later or use a video from a different platform."
)


def get_services(request: Request) -> Services:
    return request.app.state.services


@router.post("/validate", response_model=ValidateResponse)
async def validate_url(
    body: UrlRequest, services: Services = Depends(get_services)
) -> ValidateResponse:
    return ValidateResponse.from_reference(services.metadata.validate(body.url))


@router.post("/metadata", response_model=MetadataResponse)
async def fetch_metadata(body: UrlRequest, services: Services = Depends(get_services)):
    try:
        metadata = await services.metadata.fetch_metadata(body.url)
    except InvalidURLError:
        raise
    except Exception:
        logger.exception("Metadata fetch failed for %s", body.url)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to fetch video metadata",
                "message": METADATA_FALLBACK_HINT,
                "fallback": True,
            },
        )
    return MetadataResponse.from_metadata(metadata)


@router.post("/download", response_model=DownloadResponse)
async def start_download(
    body: DownloadRequest, services: Services = Depends(get_services)
) -> DownloadResponse:
    job = await services.downloads.start_download(body.url, body.format, body.quality)
    return DownloadResponse.from_job(job)


@router.get(
    "/download/{platform}/{download_id}/status", response_model=StatusResponse
)
async def download_status(
    platform: str, download_id: str, services: Services = Depends(get_services)
) -> StatusResponse:
    return StatusResponse.from_status(services.downloads.get_status(platform, download_id))


@router.delete("/download/{platform}/{download_id}", response_model=CancelResponse)
async def cancel_download(
    platform: str, download_id: str, services: Services = Depends(get_services)
) -> CancelResponse:
    parse_platform(platform)
    cancelled = services.downloads.cancel(download_id)
    return CancelResponse(
        download_id=download_id,
        cancelled=cancelled,
        message="Download cancelled" if cancelled else "Download already finished",
    )
