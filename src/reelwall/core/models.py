"""Domain models for reelwall.

Value objects are **frozen** dataclasses with no behaviour beyond data
access and trivial parsing.  The only mutable type here is the
:class:`JobRecord` ledger entry, which belongs to the job registry.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class PlatformKind(str, Enum):
    """Social-video platforms recognised by the resolver."""

    YOUTUBE = "youtube"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"

    @property
    def label(self) -> str:
        """Display name (``"YouTube"``, ``"Facebook"``, ``"Instagram"``)."""
        return _PLATFORM_LABELS[self]


_PLATFORM_LABELS: dict[PlatformKind, str] = {
    PlatformKind.YOUTUBE: "YouTube",
    PlatformKind.FACEBOOK: "Facebook",
    PlatformKind.INSTAGRAM: "Instagram",
}


class DownloadFormat(str, Enum):
    """What the caller wants out of a download."""

    VIDEO = "video"
    AUDIO = "audio"
    VIDEO_AND_AUDIO = "videoAndAudio"

    @classmethod
    def parse(cls, value: str) -> DownloadFormat:
        """Parse case-insensitively, ignoring ``_`` and ``-`` separators."""
        normalized = value.strip().lower().replace("_", "").replace("-", "")
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"{value!r} is not a valid {cls.__name__}")


class DownloadQuality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    HIGHEST = "highest"

    @classmethod
    def parse(cls, value: str) -> DownloadQuality:
        return cls(value.strip().lower())


class JobState(str, Enum):
    """Lifecycle of a download job as tracked by the registry."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED)


class TransformOperation(str, Enum):
    TRIM = "trim"
    EXTRACT_AUDIO = "extractAudio"
    MERGE = "merge"
    CONVERT = "convert"
    OPTIMIZE_WALLPAPER = "optimizeWallpaper"


# ---------------------------------------------------------------------------
# Video identity and metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class VideoReference:
    """A validated URL together with its platform and platform video id."""

    url: str
    platform: PlatformKind
    video_id: str


@dataclass(frozen=True, slots=True)
class FormatDescriptor:
    """One downloadable rendition reported by a metadata source."""

    quality_label: str
    """Human-readable quality (e.g. ``"720p"``, ``"HD"``)."""

    container: str
    """Container extension (e.g. ``mp4``)."""

    approx_size_bytes: int | None = None
    source_url: str | None = None


@dataclass(frozen=True, slots=True)
class VideoMetadata:
    """Normalised metadata snapshot returned to clients."""

    video_id: str
    platform: PlatformKind
    url: str
    title: str
    description: str | None
    thumbnail_url: str | None
    duration_seconds: float | None
    author_name: str | None
    view_count: int | None
    like_count: int | None = None
    comment_count: int | None = None
    tags: tuple[str, ...] = ()
    formats: tuple[FormatDescriptor, ...] = ()
    sources: tuple[str, ...] = ()
    """Names of the tiers that contributed at least one field."""


@dataclass(frozen=True, slots=True)
class MetadataPatch:
    """Partial metadata produced by a single tier.

    ``None`` (or an empty tuple) means "this tier has nothing to say";
    the reducer in :mod:`reelwall.core.metadata_service` fills such gaps
    from later tiers.
    """

    source: str
    title: str | None = None
    description: str | None = None
    thumbnail_url: str | None = None
    duration_seconds: float | None = None
    author_name: str | None = None
    view_count: int | None = None
    like_count: int | None = None
    comment_count: int | None = None
    tags: tuple[str, ...] = ()
    formats: tuple[FormatDescriptor, ...] = ()

    def is_empty(self) -> bool:
        return not any(
            (
                self.title,
                self.description,
                self.thumbnail_url,
                self.duration_seconds is not None,
                self.author_name,
                self.view_count is not None,
                self.like_count is not None,
                self.comment_count is not None,
                self.tags,
                self.formats,
            )
        )


# ---------------------------------------------------------------------------
# Downloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ExtractorSelection:
    """Extractor arguments derived from a ``(format, quality)`` pair."""

    format_spec: str
    """yt-dlp ``-f`` selector."""

    extract_audio: bool = False
    audio_format: str | None = None


@dataclass(frozen=True, slots=True)
class DownloadJob:
    """Immutable description of one launched download."""

    job_id: str
    reference: VideoReference
    requested_format: DownloadFormat
    requested_quality: DownloadQuality
    selection: ExtractorSelection
    output_template: str
    """yt-dlp ``-o`` template; the job id is embedded in the file name."""

    created_at: float = field(default_factory=time.time)


@dataclass(slots=True)
class JobRecord:
    """Mutable ledger entry tracking a :class:`DownloadJob`."""

    job: DownloadJob
    state: JobState = JobState.QUEUED
    progress: float = 0.0
    artifact_path: Path | None = None
    error: str | None = None
    finished_at: float | None = None


@dataclass(frozen=True, slots=True)
class JobStatus:
    """Poll result for a download job.

    ``status`` is ``"processing"`` while the job is queued or running and
    otherwise the terminal state name.
    """

    job_id: str
    platform: PlatformKind
    status: str
    progress: float
    file_name: str | None = None
    size_bytes: int | None = None
    download_url: str | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class EncodingPreset:
    """x264 speed/compression pair used by ``convert``."""

    preset: str
    crf: int


@dataclass(frozen=True, slots=True)
class WallpaperPreset:
    width: int
    height: int
    fps: int
    crf: int
    pixel_format: str = "yuv420p"


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Outcome of one media-tool operation."""

    operation: TransformOperation
    output_path: Path
    success: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def output_file_name(self) -> str:
        return self.output_path.name


@dataclass(frozen=True, slots=True)
class VideoStreamInfo:
    codec: str | None
    width: int | None
    height: int | None
    fps: float | None
    bitrate: int | None


@dataclass(frozen=True, slots=True)
class AudioStreamInfo:
    codec: str | None
    sample_rate: int | None
    channels: int | None
    bitrate: int | None


@dataclass(frozen=True, slots=True)
class MediaInfo:
    """Summary of a local media file as reported by ffprobe."""

    path: Path
    size_bytes: int | None
    duration_seconds: float | None
    container: str | None
    video: VideoStreamInfo | None
    audio: AudioStreamInfo | None


@dataclass(frozen=True, slots=True)
class CleanupOutcome:
    """Per-path result of a best-effort delete."""

    path: str
    status: str
    """``"deleted"``, ``"not_found"`` or ``"error"``."""

    error: str | None = None
