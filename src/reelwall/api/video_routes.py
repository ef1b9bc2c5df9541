"""Local media routes backed by :class:`~reelwall.core.transform_service.TransformService`."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, File, UploadFile

from reelwall.api.routes import get_services
from reelwall.api.schemas import (
    CleanupRequest,
    CleanupResponse,
    ConvertRequest,
    ExtractAudioRequest,
    InfoRequest,
    InfoResponse,
    MergeRequest,
    TransformResponse,
    TrimRequest,
    WallpaperRequest,
)
from reelwall.bootstrap import Services

router = APIRouter(prefix="/api/video", tags=["video"])

UPLOAD_CHUNK_SIZE: int = 1024 * 1024


async def _read_chunks(upload: UploadFile) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            return
        yield chunk


@router.post("/upload", response_model=InfoResponse)
async def upload_video(
    video: UploadFile = File(...), services: Services = Depends(get_services)
) -> InfoResponse:
    """Store a multipart ``video`` upload and return its path with the probe."""
    try:
        info = await services.transforms.upload(
            video.filename or "",
            _read_chunks(video),
            max_bytes=services.settings.max_upload_bytes,
        )
    finally:
        await video.close()
    return InfoResponse.from_media_info(info)


@router.post("/info", response_model=InfoResponse)
async def video_info(
    body: InfoRequest, services: Services = Depends(get_services)
) -> InfoResponse:
    return InfoResponse.from_media_info(await services.transforms.probe(body.input_path))


@router.post("/trim", response_model=TransformResponse)
async def trim(
    body: TrimRequest, services: Services = Depends(get_services)
) -> TransformResponse:
    result = await services.transforms.trim(
        body.input_path, body.start_time, body.end_time, body.output_format,
    )
    return TransformResponse.from_result(result)


@router.post("/extract-audio", response_model=TransformResponse)
async def extract_audio(
    body: ExtractAudioRequest, services: Services = Depends(get_services)
) -> TransformResponse:
    result = await services.transforms.extract_audio(body.input_path, body.output_format)
    return TransformResponse.from_result(result)


@router.post("/merge", response_model=TransformResponse)
async def merge(
    body: MergeRequest, services: Services = Depends(get_services)
) -> TransformResponse:
    result = await services.transforms.merge(
        body.video_path, body.audio_path, body.output_format,
    )
    return TransformResponse.from_result(result)


@router.post("/convert", response_model=TransformResponse)
async def convert(
    body: ConvertRequest, services: Services = Depends(get_services)
) -> TransformResponse:
    result = await services.transforms.convert(
        body.input_path, body.output_format, body.quality,
    )
    return TransformResponse.from_result(result)


@router.post("/optimize-wallpaper", response_model=TransformResponse)
async def optimize_wallpaper(
    body: WallpaperRequest, services: Services = Depends(get_services)
) -> TransformResponse:
    result = await services.transforms.optimize_wallpaper(body.input_path, body.target_size)
    return TransformResponse.from_result(result)


@router.delete("/cleanup", response_model=CleanupResponse)
async def cleanup(
    body: CleanupRequest, services: Services = Depends(get_services)
) -> CleanupResponse:
    return CleanupResponse.from_outcomes(services.transforms.cleanup(body.file_paths))
