"""Headless-browser metadata tier (last resort before the placeholder).

Loads the public page in Chromium through Playwright and reads what the
page exposes: ``<video>`` attributes and Open Graph meta tags.  The
tier is ``fallback_only`` so it runs only when every earlier tier came
back empty.

``playwright`` is imported lazily; a missing install surfaces as
:class:`~reelwall.exceptions.EnvironmentError` with an install hint.
"""

from __future__ import annotations

import logging
from typing import Any

from reelwall.core.models import MetadataPatch, VideoReference
from reelwall.exceptions import EnvironmentError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_EXTRACT_SCRIPT = """
() => {
  const meta = (name) => {
    const el = document.querySelector(`meta[property="${name}"]`)
      || document.querySelector(`meta[name="${name}"]`);
    return el ? el.getAttribute('content') : null;
  };
  const video = document.querySelector('video');
  const duration = video && isFinite(video.duration) ? video.duration : null;
  return {
    title: meta('og:title') || document.title || null,
    description: meta('og:description') || meta('description'),
    thumbnail: (video && video.poster) || meta('og:image'),
    author: meta('author'),
    duration: duration,
  };
}
"""


def scraped_to_patch(data: dict[str, Any], source: str = "browser") -> MetadataPatch:
    """Map the page-evaluation result onto a :class:`MetadataPatch`."""
    duration = data.get("duration")

    def text(key: str) -> str | None:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    return MetadataPatch(
        source=source,
        title=text("title"),
        description=text("description"),
        thumbnail_url=text("thumbnail"),
        author_name=text("author"),
        duration_seconds=float(duration) if isinstance(duration, (int, float)) else None,
    )


class BrowserScrapeTier:
    """Metadata tier backed by a headless Chromium page load.

    Parameters
    ----------
    wait_seconds:
        How long to wait for a ``<video>`` element before reading the page.
    page_timeout:
        Navigation timeout in seconds.
    """

    name: str = "browser"
    fallback_only: bool = True

    def __init__(self, wait_seconds: float = 10.0, page_timeout: float = 30.0) -> None:
        self._wait_ms = int(wait_seconds * 1000)
        self._page_timeout_ms = int(page_timeout * 1000)

    async def fetch(self, reference: VideoReference) -> MetadataPatch | None:
        try:
            from playwright.async_api import Error as PlaywrightError
            from playwright.async_api import TimeoutError as PlaywrightTimeout
            from playwright.async_api import async_playwright
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "playwright is not installed.",
                hint="pip install playwright && playwright install chromium",
            ) from exc

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(
                    headless=True,
                    args=["--no-sandbox", "--disable-dev-shm-usage"],
                )
                try:
                    page = await browser.new_page(user_agent=USER_AGENT)
                    await page.goto(
                        reference.url,
                        wait_until="networkidle",
                        timeout=self._page_timeout_ms,
                    )
                    try:
                        await page.wait_for_selector("video", timeout=self._wait_ms)
                    except PlaywrightTimeout:
                        logger.debug("No <video> element on %s", reference.url)
                    data = await page.evaluate(_EXTRACT_SCRIPT)
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            raise UpstreamUnavailableError(f"Browser scrape failed: {exc}") from exc

        if not isinstance(data, dict):
            return None
        return scraped_to_patch(data, source=self.name)
