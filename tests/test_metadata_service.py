"""Tests for the tiered metadata service (core/metadata_service.py).

Tiers are replaced by :class:`FakeTier` — no network, no yt-dlp, no
browser.  Coverage:

* Pure reducer: first non-null wins, placeholder last, sources recorded.
* Chain control: stop when complete, fallback-only tiers, swallowed errors.
* Idempotence with deterministic tiers.
* Invalid URLs rejected before any tier runs.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from conftest import FakeTier
from reelwall.core.metadata_service import (
    PLACEHOLDER_SOURCE,
    MetadataService,
    is_complete,
    merge_patches,
    placeholder_patch,
)
from reelwall.core.models import FormatDescriptor, MetadataPatch, PlatformKind, VideoReference
from reelwall.exceptions import InvalidURLError, UpstreamUnavailableError

YT_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
IG_URL = "https://www.instagram.com/reel/XyZ_123/"

YT_REF = VideoReference(url=YT_URL, platform=PlatformKind.YOUTUBE, video_id="dQw4w9WgXcQ")
IG_REF = VideoReference(url=IG_URL, platform=PlatformKind.INSTAGRAM, video_id="XyZ_123")

HD = FormatDescriptor(quality_label="720p", container="mp4")


def _full_patch(source: str = "api") -> MetadataPatch:
    return MetadataPatch(
        source=source,
        title="Never Gonna Give You Up",
        description="Official video",
        thumbnail_url="https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        duration_seconds=213.0,
        author_name="Rick Astley",
        view_count=1_000,
        formats=(HD,),
    )


# ---------------------------------------------------------------------------
# Pure reducer
# ---------------------------------------------------------------------------

class TestPlaceholder:
    def test_youtube_placeholder(self) -> None:
        patch = placeholder_patch(YT_REF)
        assert patch.source == PLACEHOLDER_SOURCE
        assert patch.title == "YouTube Video dQw4w9WgXcQ"
        assert patch.author_name == "YouTube User"
        assert patch.description == "YouTube video content"
        assert patch.thumbnail_url == "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"
        assert patch.formats == (FormatDescriptor(quality_label="HD", container="mp4"),)

    def test_instagram_placeholder_has_no_thumbnail(self) -> None:
        patch = placeholder_patch(IG_REF)
        assert patch.title == "Instagram Video XyZ_123"
        assert patch.thumbnail_url is None


class TestMergePatches:
    def test_no_patches_yields_placeholder(self) -> None:
        meta = merge_patches(IG_REF, [])
        assert meta.title == "Instagram Video XyZ_123"
        assert meta.author_name == "Instagram User"
        assert meta.duration_seconds is None
        assert meta.view_count is None
        assert meta.sources == (PLACEHOLDER_SOURCE,)

    def test_first_non_null_wins(self) -> None:
        api = MetadataPatch(source="api", title="From API", view_count=10)
        cli = MetadataPatch(source="cli", title="From CLI", author_name="Uploader", view_count=99)
        meta = merge_patches(YT_REF, [api, cli])
        assert meta.title == "From API"
        assert meta.view_count == 10
        assert meta.author_name == "Uploader"
        assert meta.sources == ("api", "cli", PLACEHOLDER_SOURCE)

    def test_empty_strings_do_not_block_later_values(self) -> None:
        api = MetadataPatch(source="api", title="", description="")
        cli = MetadataPatch(source="cli", title="Real title")
        meta = merge_patches(YT_REF, [api, cli])
        assert meta.title == "Real title"
        assert meta.description == "YouTube video content"

    def test_zero_counts_are_kept(self) -> None:
        meta = merge_patches(YT_REF, [MetadataPatch(source="api", view_count=0)])
        assert meta.view_count == 0

    def test_identity_fields_come_from_reference(self) -> None:
        meta = merge_patches(YT_REF, [_full_patch()])
        assert meta.video_id == "dQw4w9WgXcQ"
        assert meta.platform is PlatformKind.YOUTUBE
        assert meta.url == YT_URL
        assert meta.sources == ("api",)


class TestIsComplete:
    def test_complete_single(self) -> None:
        assert is_complete([_full_patch()])

    def test_complete_across_patches(self) -> None:
        a = MetadataPatch(source="a", title="t", author_name="x", thumbnail_url="u")
        b = MetadataPatch(source="b", duration_seconds=1.0, formats=(HD,))
        assert not is_complete([a])
        assert is_complete([a, b])


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class TestMetadataService:
    def test_complete_first_tier_short_circuits(self) -> None:
        api = FakeTier("api", _full_patch())
        cli = FakeTier("cli", MetadataPatch(source="cli", title="ignored"))
        meta = asyncio.run(MetadataService([api, cli]).fetch_metadata(YT_URL))
        assert meta.title == "Never Gonna Give You Up"
        assert cli.calls == []

    def test_partial_tier_falls_through(self) -> None:
        api = FakeTier("api", MetadataPatch(source="api", title="API title", view_count=5))
        cli = FakeTier(
            "cli",
            MetadataPatch(source="cli", title="CLI title", duration_seconds=30.0, formats=(HD,)),
        )
        meta = asyncio.run(MetadataService([api, cli]).fetch_metadata(YT_URL))
        assert meta.title == "API title"
        assert meta.duration_seconds == 30.0
        assert meta.formats == (HD,)
        assert len(cli.calls) == 1

    def test_failing_tiers_are_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        api = FakeTier("api", error=UpstreamUnavailableError("quota exceeded"))
        cli = FakeTier("cli", error=RuntimeError("boom"))
        with caplog.at_level(logging.WARNING, logger="reelwall.core.metadata_service"):
            meta = asyncio.run(MetadataService([api, cli]).fetch_metadata(YT_URL))
        assert meta.title == "YouTube Video dQw4w9WgXcQ"
        assert meta.sources == (PLACEHOLDER_SOURCE,)
        assert "quota exceeded" in caplog.text
        assert "boom" in caplog.text

    def test_fallback_tier_runs_only_when_nothing_found(self) -> None:
        cli = FakeTier("cli", error=UpstreamUnavailableError("blocked"))
        browser = FakeTier(
            "browser",
            MetadataPatch(source="browser", title="Scraped", author_name="someone"),
            fallback_only=True,
        )
        meta = asyncio.run(MetadataService([cli, browser]).fetch_metadata(IG_URL))
        assert meta.title == "Scraped"
        assert meta.author_name == "someone"
        assert meta.sources == ("browser", PLACEHOLDER_SOURCE)

    def test_fallback_tier_skipped_after_partial_data(self) -> None:
        cli = FakeTier("cli", MetadataPatch(source="cli", title="Partial"))
        browser = FakeTier(
            "browser", MetadataPatch(source="browser", title="Scraped"), fallback_only=True,
        )
        meta = asyncio.run(MetadataService([cli, browser]).fetch_metadata(IG_URL))
        assert meta.title == "Partial"
        assert browser.calls == []

    def test_none_and_empty_patches_are_unavailable(self) -> None:
        api = FakeTier("api", None)
        cli = FakeTier("cli", MetadataPatch(source="cli"))
        browser = FakeTier("browser", None, fallback_only=True)
        meta = asyncio.run(MetadataService([api, cli, browser]).fetch_metadata(YT_URL))
        assert meta.sources == (PLACEHOLDER_SOURCE,)
        assert len(browser.calls) == 1

    def test_idempotent(self) -> None:
        service = MetadataService(
            [FakeTier("api", MetadataPatch(source="api", title="Same", view_count=3))]
        )
        first = asyncio.run(service.fetch_metadata(YT_URL))
        second = asyncio.run(service.fetch_metadata(YT_URL))
        assert first == second

    def test_invalid_url_rejected_before_tiers(self) -> None:
        api = FakeTier("api", _full_patch())
        with pytest.raises(InvalidURLError):
            asyncio.run(MetadataService([api]).fetch_metadata("https://vimeo.com/1"))
        assert api.calls == []

    def test_validate(self) -> None:
        ref = MetadataService.validate("https://youtu.be/abc12345678")
        assert ref.video_id == "abc12345678"
