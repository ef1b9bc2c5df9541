"""Composition root.

Builds the concrete infrastructure adapters from :class:`Settings` and
injects them into the core services.  Both the HTTP app and the CLI go
through :func:`build_services`; tests construct :class:`Services`
directly with fakes.
"""

from __future__ import annotations

from dataclasses import dataclass

from reelwall.config import Settings
from reelwall.core.download_service import DownloadService
from reelwall.core.metadata_service import MetadataService
from reelwall.core.protocols import ArtifactStore
from reelwall.core.transform_service import TransformService
from reelwall.infra.artifact_store import LocalArtifactStore
from reelwall.infra.browser_scraper import BrowserScrapeTier
from reelwall.infra.ffmpeg_runner import FfmpegRunner
from reelwall.infra.youtube_api import YouTubeDataApiTier
from reelwall.infra.ytdlp_download_provider import YtDlpProcessRunner
from reelwall.infra.ytdlp_provider import YtDlpMetadataTier


@dataclass(frozen=True, slots=True)
class Services:
    settings: Settings
    store: ArtifactStore
    metadata: MetadataService
    downloads: DownloadService
    transforms: TransformService


def build_services(settings: Settings) -> Services:
    """Wire the production object graph for *settings*."""
    store = LocalArtifactStore(settings.output_dir)

    metadata = MetadataService(
        [
            YouTubeDataApiTier(settings.youtube_api_key, timeout=settings.api_timeout),
            YtDlpMetadataTier(),
            BrowserScrapeTier(settings.scrape_wait, settings.page_timeout),
        ]
    )
    downloads = DownloadService(
        YtDlpProcessRunner(settings.ytdlp_command),
        store,
        max_concurrent=settings.max_concurrent_downloads,
        timeout=settings.download_timeout,
        artifact_ttl=settings.artifact_ttl,
    )
    transforms = TransformService(
        FfmpegRunner(settings.ffmpeg_binary, settings.ffprobe_binary),
        store,
    )
    return Services(
        settings=settings,
        store=store,
        metadata=metadata,
        downloads=downloads,
        transforms=transforms,
    )
