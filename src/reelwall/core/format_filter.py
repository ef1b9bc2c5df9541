"""Pure format filtering, deduplication, and sorting logic.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic.

Pipeline order (enforced by :func:`select_muxed_formats`):

1. **Filter** — keep only streams carrying both video and audio.
2. **Deduplicate** — collapse identical ``(height, ext)`` pairs.
3. **Sort** — resolution desc → mp4 preferred.
4. **Describe** — convert the survivors to :class:`FormatDescriptor`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from reelwall.core.models import FormatDescriptor


# ---------------------------------------------------------------------------
# 1. Filter
# ---------------------------------------------------------------------------

def filter_muxed(formats: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return only formats that carry both a video and an audio codec."""
    return [
        fmt
        for fmt in formats
        if (fmt.get("vcodec") or "none") != "none"
        and (fmt.get("acodec") or "none") != "none"
    ]


# ---------------------------------------------------------------------------
# 2. Deduplicate
# ---------------------------------------------------------------------------

def deduplicate_formats(formats: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """Remove duplicates keyed by ``(height, ext)``; first occurrence wins."""
    seen: set[tuple[int | None, str]] = set()
    result: list[dict[str, Any]] = []
    for fmt in formats:
        key = (_height(fmt), str(fmt.get("ext") or ""))
        if key not in seen:
            seen.add(key)
            result.append(fmt)
    return result


# ---------------------------------------------------------------------------
# 3. Sort
# ---------------------------------------------------------------------------

def _sort_key(fmt: dict[str, Any]) -> tuple[int, int]:
    height = _height(fmt) or 0
    ext_priority = 0 if fmt.get("ext") == "mp4" else 1
    return (-height, ext_priority)


def sort_formats(formats: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort formats by resolution desc, mp4 preferred."""
    return sorted(formats, key=_sort_key)


# ---------------------------------------------------------------------------
# 4. Describe
# ---------------------------------------------------------------------------

def describe_format(fmt: dict[str, Any]) -> FormatDescriptor:
    """Convert one raw yt-dlp format dict into a :class:`FormatDescriptor`."""
    height = _height(fmt)
    if height is not None:
        quality = f"{height}p"
    else:
        quality = str(fmt.get("format_note") or "Unknown")

    raw_size = fmt.get("filesize")
    if raw_size is None:
        raw_size = fmt.get("filesize_approx")
    size: int | None = int(raw_size) if isinstance(raw_size, (int, float)) else None

    url = fmt.get("url")
    return FormatDescriptor(
        quality_label=quality,
        container=str(fmt.get("ext") or "mp4"),
        approx_size_bytes=size,
        source_url=url if isinstance(url, str) else None,
    )


def _height(fmt: dict[str, Any]) -> int | None:
    value = fmt.get("height")
    return value if isinstance(value, int) and not isinstance(value, bool) else None


# ---------------------------------------------------------------------------
# Composite pipeline
# ---------------------------------------------------------------------------

def select_muxed_formats(formats: Sequence[object]) -> tuple[FormatDescriptor, ...]:
    """Run the full filter → deduplicate → sort → describe pipeline.

    Malformed (non-dict) entries are skipped.  Returns an empty tuple
    when nothing qualifies.
    """
    entries = [fmt for fmt in formats if isinstance(fmt, dict)]
    muxed = filter_muxed(entries)
    deduped = deduplicate_formats(muxed)
    return tuple(describe_format(fmt) for fmt in sort_formats(deduped))
