"""Tests for the headless-browser tier (infra/browser_scraper.py).

No browser is launched: the page-evaluation mapping is tested directly
and the optional ``playwright`` import is hidden via ``sys.modules``.
"""

from __future__ import annotations

import asyncio
import sys

import pytest

from reelwall.core.models import PlatformKind, VideoReference
from reelwall.exceptions import EnvironmentError
from reelwall.infra.browser_scraper import BrowserScrapeTier, scraped_to_patch

REF = VideoReference(
    url="https://www.facebook.com/watch/?v=123",
    platform=PlatformKind.FACEBOOK,
    video_id="123",
)


class TestScrapedToPatch:
    def test_maps_page_data(self) -> None:
        patch_ = scraped_to_patch(
            {
                "title": "  Waves  ",
                "description": "Ocean",
                "thumbnail": "https://cdn.example/poster.jpg",
                "author": None,
                "duration": 31.2,
            }
        )
        assert patch_.source == "browser"
        assert patch_.title == "Waves"
        assert patch_.thumbnail_url == "https://cdn.example/poster.jpg"
        assert patch_.author_name is None
        assert patch_.duration_seconds == 31.2

    def test_ignores_non_text(self) -> None:
        patch_ = scraped_to_patch({"title": 5, "description": "", "duration": "NaN"})
        assert patch_.is_empty()


class TestTier:
    def test_is_fallback_only(self) -> None:
        tier = BrowserScrapeTier()
        assert tier.name == "browser"
        assert tier.fallback_only is True

    def test_missing_playwright(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "playwright", None)
        monkeypatch.setitem(sys.modules, "playwright.async_api", None)
        with pytest.raises(EnvironmentError, match="playwright is not installed") as excinfo:
            asyncio.run(BrowserScrapeTier().fetch(REF))
        assert "playwright install chromium" in (excinfo.value.hint or "")
