"""Wire schemas for the HTTP boundary.

Python attributes are snake_case; JSON keys are camelCase through the
shared :class:`ApiModel` alias generator.  The ``from_*`` constructors
translate core models into responses so route handlers stay thin.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reelwall.core.models import (
    CleanupOutcome,
    DownloadJob,
    FormatDescriptor,
    JobStatus,
    MediaInfo,
    TransformResult,
    VideoMetadata,
    VideoReference,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class UrlRequest(ApiModel):
    url: str


class DownloadRequest(ApiModel):
    url: str
    format: str = "videoAndAudio"
    quality: str = "highest"


class TrimRequest(ApiModel):
    input_path: str
    start_time: float
    end_time: float
    output_format: str = "mp4"


class ExtractAudioRequest(ApiModel):
    input_path: str
    output_format: str = "mp3"


class MergeRequest(ApiModel):
    video_path: str
    audio_path: str
    output_format: str = "mp4"


class ConvertRequest(ApiModel):
    input_path: str
    output_format: str = "mp4"
    quality: str = "medium"


class WallpaperRequest(ApiModel):
    input_path: str
    target_size: str = "medium"


class InfoRequest(ApiModel):
    input_path: str


class CleanupRequest(ApiModel):
    file_paths: list[str]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class ValidateResponse(ApiModel):
    valid: bool = True
    video_id: str
    platform: str
    message: str

    @classmethod
    def from_reference(cls, reference: VideoReference) -> ValidateResponse:
        return cls(
            video_id=reference.video_id,
            platform=reference.platform.value,
            message=f"Valid {reference.platform.label} video URL",
        )


class FormatResponse(ApiModel):
    quality: str
    container: str
    size: Optional[int] = None
    url: Optional[str] = None

    @classmethod
    def from_descriptor(cls, fmt: FormatDescriptor) -> FormatResponse:
        return cls(
            quality=fmt.quality_label,
            container=fmt.container,
            size=fmt.approx_size_bytes,
            url=fmt.source_url,
        )


class FormatsResponse(ApiModel):
    video_and_audio: list[FormatResponse] = Field(default_factory=list)


class MetadataResponse(ApiModel):
    video_id: str
    platform: str
    title: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: Optional[float] = None
    author: Optional[str] = None
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    comment_count: Optional[int] = None
    tags: list[str] = Field(default_factory=list)
    video_url: str
    formats: FormatsResponse
    sources: list[str] = Field(default_factory=list)

    @classmethod
    def from_metadata(cls, metadata: VideoMetadata) -> MetadataResponse:
        return cls(
            video_id=metadata.video_id,
            platform=metadata.platform.value,
            title=metadata.title,
            description=metadata.description,
            thumbnail=metadata.thumbnail_url,
            duration=metadata.duration_seconds,
            author=metadata.author_name,
            view_count=metadata.view_count,
            like_count=metadata.like_count,
            comment_count=metadata.comment_count,
            tags=list(metadata.tags),
            video_url=metadata.url,
            formats=FormatsResponse(
                video_and_audio=[FormatResponse.from_descriptor(f) for f in metadata.formats],
            ),
            sources=list(metadata.sources),
        )


class DownloadResponse(ApiModel):
    download_id: str
    status: Literal["queued"] = "queued"
    message: str
    platform: str
    video_id: str
    format: str
    quality: str

    @classmethod
    def from_job(cls, job: DownloadJob) -> DownloadResponse:
        platform = job.reference.platform
        return cls(
            download_id=job.job_id,
            message=f"{platform.label} video download started",
            platform=platform.value,
            video_id=job.reference.video_id,
            format=job.requested_format.value,
            quality=job.requested_quality.value,
        )


class StatusResponse(ApiModel):
    download_id: str
    platform: str
    status: str
    progress: float
    file_name: Optional[str] = None
    size: Optional[int] = None
    download_url: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_status(cls, status: JobStatus) -> StatusResponse:
        return cls(
            download_id=status.job_id,
            platform=status.platform.value,
            status=status.status,
            progress=status.progress,
            file_name=status.file_name,
            size=status.size_bytes,
            download_url=status.download_url,
            error=status.error,
        )


class CancelResponse(ApiModel):
    download_id: str
    cancelled: bool
    message: str


class TransformResponse(ApiModel):
    success: bool
    output_path: str
    output_file_name: str
    message: str
    settings: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: TransformResult) -> TransformResponse:
        return cls(
            success=result.success,
            output_path=str(result.output_path),
            output_file_name=result.output_file_name,
            message=result.message,
            settings=dict(result.details),
        )


class VideoStreamResponse(ApiModel):
    codec: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[float] = None
    bitrate: Optional[int] = None


class AudioStreamResponse(ApiModel):
    codec: Optional[str] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    bitrate: Optional[int] = None


class InfoResponse(ApiModel):
    path: str
    file_name: Optional[str] = None
    duration: Optional[float] = None
    size: Optional[int] = None
    format: Optional[str] = None
    video: Optional[VideoStreamResponse] = None
    audio: Optional[AudioStreamResponse] = None

    @classmethod
    def from_media_info(cls, info: MediaInfo) -> InfoResponse:
        video = info.video
        audio = info.audio
        return cls(
            path=str(info.path),
            file_name=info.path.name,
            duration=info.duration_seconds,
            size=info.size_bytes,
            format=info.container,
            video=VideoStreamResponse(
                codec=video.codec,
                width=video.width,
                height=video.height,
                fps=video.fps,
                bitrate=video.bitrate,
            ) if video is not None else None,
            audio=AudioStreamResponse(
                codec=audio.codec,
                sample_rate=audio.sample_rate,
                channels=audio.channels,
                bitrate=audio.bitrate,
            ) if audio is not None else None,
        )


class CleanupItem(ApiModel):
    path: str
    status: str
    error: Optional[str] = None


class CleanupResponse(ApiModel):
    success: bool = True
    results: list[CleanupItem]
    message: str = "Cleanup completed"

    @classmethod
    def from_outcomes(cls, outcomes: list[CleanupOutcome]) -> CleanupResponse:
        return cls(
            results=[
                CleanupItem(path=o.path, status=o.status, error=o.error) for o in outcomes
            ],
        )


class HealthResponse(ApiModel):
    status: str = "ok"
    version: str
