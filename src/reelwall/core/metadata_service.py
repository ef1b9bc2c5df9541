"""Core metadata service — tiered metadata fetch with graceful degradation.

The service walks an ordered sequence of
:class:`~reelwall.core.protocols.MetadataTier` objects injected at
construction time.  Each tier yields an optional
:class:`~reelwall.core.models.MetadataPatch`; the patches are folded
into one :class:`~reelwall.core.models.VideoMetadata` by the pure
:func:`merge_patches` reducer ("first non-null wins").

Guarantees
----------
* A resolvable URL always yields a record; tier failures are logged and
  skipped, never raised.
* Only :class:`~reelwall.exceptions.InvalidURLError` escapes, and only
  before any tier runs.
* Tiers run sequentially — a later tier never starts while an earlier
  one is in flight.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import fields

from reelwall.core.models import (
    FormatDescriptor,
    MetadataPatch,
    PlatformKind,
    VideoMetadata,
    VideoReference,
)
from reelwall.core.platforms import resolve_reference
from reelwall.core.protocols import MetadataTier
from reelwall.exceptions import ReelwallError

logger = logging.getLogger(__name__)

PLACEHOLDER_SOURCE: str = "placeholder"

_MERGED_FIELDS: tuple[str, ...] = tuple(
    f.name for f in fields(MetadataPatch) if f.name != "source"
)


# ---------------------------------------------------------------------------
# Pure reducer
# ---------------------------------------------------------------------------

def placeholder_patch(reference: VideoReference) -> MetadataPatch:
    """Return the last-resort record derived from the reference alone."""
    label = reference.platform.label
    thumbnail: str | None = None
    if reference.platform is PlatformKind.YOUTUBE:
        thumbnail = f"https://img.youtube.com/vi/{reference.video_id}/maxresdefault.jpg"
    return MetadataPatch(
        source=PLACEHOLDER_SOURCE,
        title=f"{label} Video {reference.video_id}",
        description=f"{label} video content",
        thumbnail_url=thumbnail,
        author_name=f"{label} User",
        formats=(FormatDescriptor(quality_label="HD", container="mp4"),),
    )


def _is_set(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, tuple)):
        return len(value) > 0
    return True


def merge_patches(
    reference: VideoReference,
    patches: Sequence[MetadataPatch],
) -> VideoMetadata:
    """Fold *patches* into a :class:`VideoMetadata`.

    Earlier patches take precedence field by field; the placeholder
    patch is always appended last so that ``title`` is never empty.
    """
    ordered = [*patches, placeholder_patch(reference)]
    merged: dict[str, object] = {}
    sources: list[str] = []

    for patch in ordered:
        contributed = False
        for name in _MERGED_FIELDS:
            value = getattr(patch, name)
            if name not in merged and _is_set(value):
                merged[name] = value
                contributed = True
        if contributed and patch.source not in sources:
            sources.append(patch.source)

    return VideoMetadata(
        video_id=reference.video_id,
        platform=reference.platform,
        url=reference.url,
        title=str(merged["title"]),
        description=merged.get("description"),  # type: ignore[arg-type]
        thumbnail_url=merged.get("thumbnail_url"),  # type: ignore[arg-type]
        duration_seconds=merged.get("duration_seconds"),  # type: ignore[arg-type]
        author_name=merged.get("author_name"),  # type: ignore[arg-type]
        view_count=merged.get("view_count"),  # type: ignore[arg-type]
        like_count=merged.get("like_count"),  # type: ignore[arg-type]
        comment_count=merged.get("comment_count"),  # type: ignore[arg-type]
        tags=merged.get("tags", ()),  # type: ignore[arg-type]
        formats=merged.get("formats", ()),  # type: ignore[arg-type]
        sources=tuple(sources),
    )


def is_complete(patches: Sequence[MetadataPatch]) -> bool:
    """Return ``True`` once the core display fields are all populated."""
    def has(name: str) -> bool:
        return any(_is_set(getattr(p, name)) for p in patches)

    return all(
        has(name)
        for name in ("title", "author_name", "thumbnail_url", "duration_seconds", "formats")
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class MetadataService:
    """Stateless service that runs the metadata tiers in order.

    Parameters
    ----------
    tiers:
        Tiers in priority order (authoritative API first).
    """

    def __init__(self, tiers: Sequence[MetadataTier]) -> None:
        self._tiers: tuple[MetadataTier, ...] = tuple(tiers)

    @staticmethod
    def validate(url: str) -> VideoReference:
        """Resolve *url* or raise :class:`~reelwall.exceptions.InvalidURLError`."""
        return resolve_reference(url)

    async def fetch_metadata(self, url: str) -> VideoMetadata:
        """Return the best-effort metadata record for *url*.

        Raises
        ------
        InvalidURLError
            If *url* cannot be resolved to a platform and video id.
        """
        reference = resolve_reference(url)
        patches = await self._collect(reference)
        return merge_patches(reference, patches)

    async def _collect(self, reference: VideoReference) -> list[MetadataPatch]:
        patches: list[MetadataPatch] = []
        for tier in self._tiers:
            if tier.fallback_only and patches:
                logger.debug("Skipping fallback tier %s for %s", tier.name, reference.url)
                continue

            try:
                patch = await tier.fetch(reference)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "Metadata tier %s failed for %s: %s",
                    tier.name,
                    reference.url,
                    exc,
                    exc_info=not isinstance(exc, ReelwallError),
                )
                continue

            if patch is None or patch.is_empty():
                logger.debug("Metadata tier %s unavailable for %s", tier.name, reference.url)
                continue

            patches.append(patch)
            if is_complete(patches):
                break
        return patches
