"""``reelwall info <url>`` — render fetched metadata for a single URL."""

from __future__ import annotations

import sys

from reelwall.cli.console import console, rich_available
from reelwall.core.models import VideoMetadata


def _duration(seconds: float | None) -> str:
    if seconds is None:
        return "unknown"
    total = int(round(seconds))
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _count(value: int | None) -> str:
    return f"{value:,}" if value is not None else "-"


def metadata_rows(metadata: VideoMetadata) -> list[tuple[str, str]]:
    """Flatten *metadata* into ``(field, value)`` display rows."""
    formats = ", ".join(
        f"{fmt.quality_label}/{fmt.container}" for fmt in metadata.formats
    ) or "-"
    return [
        ("Platform", metadata.platform.label),
        ("Video id", metadata.video_id),
        ("Title", metadata.title),
        ("Author", metadata.author_name or "-"),
        ("Duration", _duration(metadata.duration_seconds)),
        ("Views", _count(metadata.view_count)),
        ("Likes", _count(metadata.like_count)),
        ("Comments", _count(metadata.comment_count)),
        ("Thumbnail", metadata.thumbnail_url or "-"),
        ("Formats", formats),
        ("Sources", ", ".join(metadata.sources)),
    ]


def render_metadata(metadata: VideoMetadata) -> None:
    rows = metadata_rows(metadata)
    if not rich_available():
        for label, value in rows:
            print(f"{label:<10} {value}", file=sys.stderr)
        return

    from rich.table import Table

    table = Table(title=metadata.title, show_header=False, border_style="dim")
    table.add_column("Field", style="bold cyan")
    table.add_column("Value", overflow="fold")
    for label, value in rows:
        table.add_row(label, value)
    console.print(table)
