"""YouTube Data API v3 metadata tier.

Only YouTube references are served; the tier stays silent (returns
``None``) for other platforms and when no API key is configured.
HTTP and payload errors are re-raised as
:class:`~reelwall.exceptions.UpstreamUnavailableError`.
"""

from __future__ import annotations

import re
from typing import Any

import httpx

from reelwall.core.models import MetadataPatch, PlatformKind, VideoReference
from reelwall.exceptions import UpstreamUnavailableError

VIDEOS_ENDPOINT: str = "https://www.googleapis.com/youtube/v3/videos"

_ISO_DURATION = re.compile(
    r"^P(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)


def parse_iso_duration(value: str | None) -> float | None:
    """Convert an ISO-8601 duration such as ``PT1H2M3S`` to seconds."""
    if not value:
        return None
    match = _ISO_DURATION.match(value.strip())
    if match is None:
        return None
    parts = {k: float(v) for k, v in match.groupdict().items() if v}
    if not parts:
        return None
    return (
        parts.get("days", 0.0) * 86400
        + parts.get("hours", 0.0) * 3600
        + parts.get("minutes", 0.0) * 60
        + parts.get("seconds", 0.0)
    )


def _count(stats: dict[str, Any], key: str) -> int | None:
    try:
        return int(stats[key])
    except (KeyError, TypeError, ValueError):
        return None


def item_to_patch(item: dict[str, Any], source: str = "youtube_api") -> MetadataPatch:
    """Map one ``videos.list`` item onto a :class:`MetadataPatch`."""
    snippet: dict[str, Any] = item.get("snippet") or {}
    stats: dict[str, Any] = item.get("statistics") or {}
    details: dict[str, Any] = item.get("contentDetails") or {}
    thumbnails: dict[str, Any] = snippet.get("thumbnails") or {}

    thumbnail = None
    for size in ("maxres", "high", "medium", "default"):
        entry = thumbnails.get(size)
        if isinstance(entry, dict) and entry.get("url"):
            thumbnail = entry["url"]
            break

    tags = snippet.get("tags")
    return MetadataPatch(
        source=source,
        title=snippet.get("title") or None,
        description=snippet.get("description") or None,
        thumbnail_url=thumbnail,
        duration_seconds=parse_iso_duration(details.get("duration")),
        author_name=snippet.get("channelTitle") or None,
        view_count=_count(stats, "viewCount"),
        like_count=_count(stats, "likeCount"),
        comment_count=_count(stats, "commentCount"),
        tags=tuple(str(t) for t in tags) if isinstance(tags, list) else (),
    )


class YouTubeDataApiTier:
    """Authoritative metadata for YouTube videos.

    Parameters
    ----------
    api_key:
        YouTube Data API key, or ``None`` to disable the tier.
    timeout:
        Request timeout in seconds.
    transport:
        Optional :class:`httpx.AsyncBaseTransport` (tests inject a
        :class:`httpx.MockTransport`).
    """

    name: str = "youtube_api"
    fallback_only: bool = False

    def __init__(
        self,
        api_key: str | None,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, reference: VideoReference) -> MetadataPatch | None:
        if reference.platform is not PlatformKind.YOUTUBE or not self._api_key:
            return None

        params = {
            "id": reference.video_id,
            "key": self._api_key,
            "part": "snippet,statistics,contentDetails",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(VIDEOS_ENDPOINT, params=params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailableError(
                f"YouTube Data API returned {exc.response.status_code}",
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamUnavailableError(f"YouTube Data API request failed: {exc}") from exc

        items = payload.get("items") if isinstance(payload, dict) else None
        if not items:
            return None
        return item_to_patch(items[0], source=self.name)
