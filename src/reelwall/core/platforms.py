"""Platform URL resolution.

Pure pattern matching — no network access.  Resolution happens in two
steps so callers can tell an unrecognised URL apart from a URL that
belongs to a known platform but carries no usable video id.
"""

from __future__ import annotations

import re

from reelwall.core.models import PlatformKind, VideoReference
from reelwall.exceptions import InvalidURLError, UnknownPlatformError

_SCHEME = r"^(?:https?://)?"
_SUBDOMAIN = r"(?:[\w-]+\.)*"


# Ordered: first match wins.
_PLATFORM_PATTERNS: tuple[tuple[PlatformKind, re.Pattern[str]], ...] = (
    (
        PlatformKind.FACEBOOK,
        re.compile(_SCHEME + _SUBDOMAIN + r"(?:facebook\.com|fb\.com|fb\.watch)(?:/|$)", re.I),
    ),
    (
        PlatformKind.INSTAGRAM,
        re.compile(_SCHEME + _SUBDOMAIN + r"instagram\.com/(?:p|reels?|tv)/", re.I),
    ),
    (
        PlatformKind.YOUTUBE,
        re.compile(
            _SCHEME
            + _SUBDOMAIN
            + r"(?:youtube\.com/(?:watch\?|shorts/|embed/|live/|v/)"
            + r"|youtube-nocookie\.com/embed/"
            + r"|youtu\.be/)",
            re.I,
        ),
    ),
)

_YOUTUBE_ID = r"([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"

_VIDEO_ID_PATTERNS: dict[PlatformKind, tuple[re.Pattern[str], ...]] = {
    PlatformKind.YOUTUBE: (
        re.compile(r"youtube\.com/watch\?(?:[^#]*&)?v=" + _YOUTUBE_ID, re.I),
        re.compile(r"youtu\.be/" + _YOUTUBE_ID, re.I),
        re.compile(r"youtube\.com/(?:shorts|embed|live|v)/" + _YOUTUBE_ID, re.I),
        re.compile(r"youtube-nocookie\.com/embed/" + _YOUTUBE_ID, re.I),
    ),
    PlatformKind.FACEBOOK: (
        re.compile(r"facebook\.com/.*?/videos/(?:[^/?#]+/)?(\d+)", re.I),
        re.compile(r"facebook\.com/video\.php\?(?:[^#]*&)?v=(\d+)", re.I),
        re.compile(r"facebook\.com/watch/?\?(?:[^#]*&)?v=(\d+)", re.I),
        re.compile(r"facebook\.com/reel/(\d+)", re.I),
        re.compile(r"fb\.watch/([A-Za-z0-9_-]+)", re.I),
    ),
    PlatformKind.INSTAGRAM: (
        re.compile(r"instagram\.com/p/([A-Za-z0-9_-]+)", re.I),
        re.compile(r"instagram\.com/reels?/([A-Za-z0-9_-]+)", re.I),
        re.compile(r"instagram\.com/tv/([A-Za-z0-9_-]+)", re.I),
    ),
}


def resolve_platform(url: str) -> PlatformKind | None:
    """Return the platform *url* belongs to, or ``None`` if unrecognised."""
    candidate = url.strip()
    for platform, pattern in _PLATFORM_PATTERNS:
        if pattern.search(candidate):
            return platform
    return None


def extract_video_id(url: str, platform: PlatformKind) -> str | None:
    """Return the first capturing group of the platform's id patterns.

    Patterns are tried in a fixed priority order.  ``None`` means the URL
    is malformed for *platform*.
    """
    candidate = url.strip()
    for pattern in _VIDEO_ID_PATTERNS[platform]:
        match = pattern.search(candidate)
        if match:
            return match.group(1)
    return None


def resolve_reference(url: str) -> VideoReference:
    """Resolve *url* into a :class:`VideoReference`.

    Raises
    ------
    InvalidURLError
        If *url* is empty, matches no platform, or has no video id.
    """
    stripped = url.strip()
    if not stripped:
        raise InvalidURLError("URL must not be empty.")

    platform = resolve_platform(stripped)
    if platform is None:
        raise InvalidURLError(
            f"Unsupported video URL: {stripped}",
            hint="Paste a YouTube, Facebook or Instagram video link.",
        )

    video_id = extract_video_id(stripped, platform)
    if video_id is None:
        raise InvalidURLError(
            f"Invalid {platform.label} video URL: {stripped}",
            hint="The link does not point at a single video.",
        )

    return VideoReference(url=stripped, platform=platform, video_id=video_id)


def parse_platform(name: str) -> PlatformKind:
    """Parse a platform path segment such as ``"instagram"``.

    Raises
    ------
    UnknownPlatformError
        If *name* is not a supported platform.
    """
    try:
        return PlatformKind(name.strip().lower())
    except ValueError as exc:
        raise UnknownPlatformError(f"Invalid platform: {name}") from exc
