"""yt-dlp backed :class:`~reelwall.core.protocols.MetadataTier`.

This module is the **only** place in the codebase that imports the
``yt_dlp`` Python API.  All yt-dlp exceptions are caught here and
re-raised as :class:`~reelwall.exceptions.UpstreamUnavailableError` —
nothing raw escapes the infrastructure boundary.
"""

from __future__ import annotations

import asyncio
from typing import Any

from reelwall.core.format_filter import select_muxed_formats
from reelwall.core.models import MetadataPatch, VideoReference
from reelwall.exceptions import (
    EnvironmentError,
    UpstreamUnavailableError,
    append_ytdlp_upgrade_suggestion,
)


class YtDlpMetadataProvider:
    """Synchronous metadata extraction through ``yt_dlp.YoutubeDL``.

    Usage::

        provider = YtDlpMetadataProvider()
        info = provider.fetch_info("https://www.instagram.com/reel/...")
    """

    # Substrings in yt-dlp error messages that indicate the video itself
    # is unavailable (as opposed to a transient or extraction error).
    _UNAVAILABLE_SIGNALS: tuple[str, ...] = (
        "unavailable",
        "private video",
        "removed",
        "not available",
        "login required",
        "sign in to confirm your age",
    )

    @staticmethod
    def _build_opts() -> dict[str, Any]:
        """Return yt-dlp options suitable for metadata-only extraction."""
        return {
            "quiet": True,
            "no_warnings": True,
            "no_color": True,
            "nocheckcertificate": True,
            # Do not write any files to disk.
            "skip_download": True,
        }

    def fetch_info(self, url: str) -> dict[str, Any]:
        """Extract metadata for *url* without downloading.

        Raises
        ------
        EnvironmentError
            When the ``yt_dlp`` package is not installed.
        UpstreamUnavailableError
            For every extraction failure.
        """
        opts = self._build_opts()

        try:
            import yt_dlp
            import yt_dlp.utils
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "yt-dlp is not installed. Install with: pip install yt-dlp",
            ) from exc

        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info: Any = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as exc:
            self._raise_mapped(exc)
        except Exception as exc:
            raise UpstreamUnavailableError(
                f"Unexpected yt-dlp error: {exc}",
            ) from exc

        if not isinstance(info, dict):
            raise UpstreamUnavailableError(
                "yt-dlp returned no metadata for the given URL.",
            )

        return dict(info)  # shallow copy

    @classmethod
    def _raise_mapped(cls, exc: Exception) -> None:
        """Translate a yt-dlp ``DownloadError``; always raises."""
        msg_lower = str(exc).lower()
        if any(signal in msg_lower for signal in cls._UNAVAILABLE_SIGNALS):
            raise UpstreamUnavailableError(
                str(exc),
                hint="The video may be private, removed, or geo-restricted.",
            ) from exc
        raise UpstreamUnavailableError(
            str(exc),
            hint=append_ytdlp_upgrade_suggestion("The extractor could not read this page."),
        ) from exc


def info_to_patch(info: dict[str, Any], source: str = "extractor") -> MetadataPatch:
    """Map a raw yt-dlp info dict onto a :class:`MetadataPatch`."""
    duration = info.get("duration")
    raw_tags = info.get("tags")
    tags = tuple(str(t) for t in raw_tags if t) if isinstance(raw_tags, list) else ()
    raw_formats = info.get("formats")

    return MetadataPatch(
        source=source,
        title=_text(info.get("title")),
        description=_text(info.get("description")),
        thumbnail_url=_text(info.get("thumbnail")),
        duration_seconds=float(duration) if isinstance(duration, (int, float)) else None,
        author_name=_text(info.get("uploader")) or _text(info.get("channel")),
        view_count=_count(info.get("view_count")),
        like_count=_count(info.get("like_count")),
        comment_count=_count(info.get("comment_count")),
        tags=tags,
        formats=select_muxed_formats(raw_formats) if isinstance(raw_formats, list) else (),
    )


def _text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _count(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    return value if isinstance(value, int) else None


class YtDlpMetadataTier:
    """Metadata tier that runs :class:`YtDlpMetadataProvider` off the event loop."""

    name: str = "extractor"
    fallback_only: bool = False

    def __init__(self, provider: YtDlpMetadataProvider | None = None) -> None:
        self._provider = provider or YtDlpMetadataProvider()

    async def fetch(self, reference: VideoReference) -> MetadataPatch | None:
        info = await asyncio.to_thread(self._provider.fetch_info, reference.url)
        return info_to_patch(info, source=self.name)
