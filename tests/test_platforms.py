"""Tests for URL resolution (core/platforms.py).

Pure function calls — no I/O.
"""

from __future__ import annotations

import pytest

from reelwall.core.models import PlatformKind
from reelwall.core.platforms import (
    extract_video_id,
    parse_platform,
    resolve_platform,
    resolve_reference,
)
from reelwall.exceptions import InvalidURLError, UnknownPlatformError


class TestResolvePlatform:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
            "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/abc12345678",
            "https://www.youtube.com/shorts/abc12345678",
            "https://www.youtube.com/embed/abc12345678",
            "https://www.youtube-nocookie.com/embed/abc12345678",
            "youtu.be/abc12345678",
        ],
    )
    def test_youtube(self, url: str) -> None:
        assert resolve_platform(url) is PlatformKind.YOUTUBE

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.facebook.com/somepage/videos/1234567890/",
            "https://m.facebook.com/watch/?v=1234567890",
            "https://www.facebook.com/video.php?v=1234567890",
            "https://www.facebook.com/reel/1234567890",
            "https://fb.watch/aBcD12_3/",
        ],
    )
    def test_facebook(self, url: str) -> None:
        assert resolve_platform(url) is PlatformKind.FACEBOOK

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.instagram.com/p/CxYz123AbC/",
            "https://www.instagram.com/reel/XyZ_123/",
            "https://www.instagram.com/reels/XyZ_123/",
            "https://instagram.com/tv/B1a2C3d4E5/",
        ],
    )
    def test_instagram(self, url: str) -> None:
        assert resolve_platform(url) is PlatformKind.INSTAGRAM

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "not a url",
            "https://vimeo.com/123456",
            "https://www.tiktok.com/@user/video/123",
            "https://www.instagram.com/someuser/",
            "https://notfacebook.community/videos/1",
        ],
    )
    def test_unrecognised(self, url: str) -> None:
        assert resolve_platform(url) is None


class TestExtractVideoId:
    def test_short_link_scenario(self) -> None:
        url = "https://youtu.be/abc12345678"
        assert resolve_platform(url) is PlatformKind.YOUTUBE
        assert extract_video_id(url, PlatformKind.YOUTUBE) == "abc12345678"

    def test_instagram_reel_scenario(self) -> None:
        url = "https://www.instagram.com/reel/XyZ_123/"
        assert resolve_platform(url) is PlatformKind.INSTAGRAM
        assert extract_video_id(url, PlatformKind.INSTAGRAM) == "XyZ_123"

    def test_watch_with_extra_params(self) -> None:
        url = "https://www.youtube.com/watch?list=PL1&v=dQw4w9WgXcQ&t=42"
        assert extract_video_id(url, PlatformKind.YOUTUBE) == "dQw4w9WgXcQ"

    def test_youtube_id_too_short(self) -> None:
        assert extract_video_id("https://youtu.be/short", PlatformKind.YOUTUBE) is None

    def test_youtube_id_too_long(self) -> None:
        url = "https://youtu.be/abc12345678extra"
        assert extract_video_id(url, PlatformKind.YOUTUBE) is None

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.facebook.com/somepage/videos/1234567890/", "1234567890"),
            ("https://www.facebook.com/somepage/videos/my-title/555/", "555"),
            ("https://www.facebook.com/video.php?v=42", "42"),
            ("https://www.facebook.com/watch/?v=987", "987"),
            ("https://www.facebook.com/reel/31337", "31337"),
            ("https://fb.watch/aBcD12_3/", "aBcD12_3"),
        ],
    )
    def test_facebook_ids(self, url: str, expected: str) -> None:
        assert extract_video_id(url, PlatformKind.FACEBOOK) == expected

    def test_facebook_without_id(self) -> None:
        assert extract_video_id("https://www.facebook.com/somepage", PlatformKind.FACEBOOK) is None

    def test_deterministic(self) -> None:
        url = "https://www.instagram.com/p/CxYz123AbC/?igsh=abc"
        first = extract_video_id(url, PlatformKind.INSTAGRAM)
        assert first == "CxYz123AbC"
        assert extract_video_id(url, PlatformKind.INSTAGRAM) == first


class TestResolveReference:
    def test_round_trip(self) -> None:
        ref = resolve_reference("  https://youtu.be/abc12345678  ")
        assert ref.url == "https://youtu.be/abc12345678"
        assert ref.platform is PlatformKind.YOUTUBE
        assert ref.video_id == "abc12345678"
        assert resolve_reference(ref.url) == ref

    def test_empty(self) -> None:
        with pytest.raises(InvalidURLError, match="must not be empty"):
            resolve_reference("   ")

    def test_unrecognised_vs_malformed_messages(self) -> None:
        with pytest.raises(InvalidURLError, match="Unsupported video URL") as unknown:
            resolve_reference("https://vimeo.com/1")
        assert unknown.value.hint is not None

        with pytest.raises(InvalidURLError, match="Invalid YouTube video URL"):
            resolve_reference("https://www.youtube.com/watch?v=nope")


class TestParsePlatform:
    def test_case_insensitive(self) -> None:
        assert parse_platform("Instagram") is PlatformKind.INSTAGRAM

    def test_unknown(self) -> None:
        with pytest.raises(UnknownPlatformError, match="Invalid platform: vimeo"):
            parse_platform("vimeo")
