"""Core / service layer — domain models, pure logic and orchestration.

Rules
-----
* No ``print()`` calls.
* No direct filesystem, network or subprocess access; those go through
  the protocols in :mod:`reelwall.core.protocols`.
* No imports from ``api``, ``cli`` or ``infra``.
* Pure helpers (selection tables, argument builders, parsers, the
  metadata reducer) are deterministic and stateless.
"""

from reelwall.core.download_service import DownloadService
from reelwall.core.jobs import JobRegistry
from reelwall.core.metadata_service import MetadataService, merge_patches
from reelwall.core.models import (
    DownloadFormat,
    DownloadJob,
    DownloadQuality,
    FormatDescriptor,
    JobState,
    JobStatus,
    MetadataPatch,
    PlatformKind,
    TransformResult,
    VideoMetadata,
    VideoReference,
)
from reelwall.core.platforms import extract_video_id, resolve_platform, resolve_reference
from reelwall.core.transform_service import TransformService

__all__: list[str] = [
    "DownloadFormat",
    "DownloadJob",
    "DownloadQuality",
    "DownloadService",
    "FormatDescriptor",
    "JobRegistry",
    "JobState",
    "JobStatus",
    "MetadataPatch",
    "MetadataService",
    "PlatformKind",
    "TransformResult",
    "TransformService",
    "VideoMetadata",
    "VideoReference",
    "extract_video_id",
    "merge_patches",
    "resolve_platform",
    "resolve_reference",
]
