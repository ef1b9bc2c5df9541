"""Infrastructure layer — external system integration.

This layer wraps all interaction with yt-dlp, the YouTube Data API,
Playwright, ffmpeg and the filesystem.  Every raw third-party exception
must be caught here and re-raised as a
:class:`~reelwall.exceptions.ReelwallError` subclass.

Rules
-----
* No imports from ``api`` or ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Optional heavy dependencies (``yt_dlp``, ``playwright``) are imported
  lazily inside the adapters that need them.
"""

from reelwall.infra.artifact_store import LocalArtifactStore
from reelwall.infra.browser_scraper import BrowserScrapeTier
from reelwall.infra.ffmpeg_detector import ToolStatus, detect_tool, require_tool
from reelwall.infra.ffmpeg_runner import FfmpegRunner
from reelwall.infra.youtube_api import YouTubeDataApiTier
from reelwall.infra.ytdlp_download_provider import YtDlpProcessRunner
from reelwall.infra.ytdlp_provider import YtDlpMetadataProvider, YtDlpMetadataTier

__all__: list[str] = [
    "BrowserScrapeTier",
    "FfmpegRunner",
    "LocalArtifactStore",
    "ToolStatus",
    "YouTubeDataApiTier",
    "YtDlpMetadataProvider",
    "YtDlpMetadataTier",
    "YtDlpProcessRunner",
    "detect_tool",
    "require_tool",
]
