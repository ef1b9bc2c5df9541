"""Runtime configuration and logging setup.

Settings are read once from the process environment (after the CLI has
loaded an optional ``.env`` file) into an immutable :class:`Settings`
value that is passed explicitly to everything that needs it.
"""

from __future__ import annotations

import logging
import os
import shlex
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from reelwall.exceptions import EnvironmentCheckError

LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _default_ytdlp_command() -> tuple[str, ...]:
    return (sys.executable, "-m", "yt_dlp")


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable service configuration."""

    output_dir: Path = Path("uploads")
    """Shared artifact directory for downloads and transforms."""

    youtube_api_key: str | None = None
    """Key for the YouTube Data API tier; the tier is skipped when unset."""

    ytdlp_command: tuple[str, ...] = field(default_factory=_default_ytdlp_command)
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"

    download_timeout: float | None = 1800.0
    """Seconds before a running extractor is killed; ``None`` disables."""

    max_concurrent_downloads: int = 3
    artifact_ttl: float | None = 86400.0
    """Seconds an artifact may live before eviction; ``None`` disables."""

    max_upload_bytes: int = 500 * 1024 * 1024
    """Largest accepted client upload."""

    eviction_interval: float = 600.0
    scrape_wait: float = 10.0
    page_timeout: float = 30.0
    api_timeout: float = 10.0
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from *environ* (defaults to :data:`os.environ`).

        Raises
        ------
        EnvironmentCheckError
            When a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ

        raw_command = env.get("REELWALL_YTDLP_COMMAND", "").strip()
        command = tuple(shlex.split(raw_command)) if raw_command else _default_ytdlp_command()

        api_key = env.get("YOUTUBE_API_KEY", "").strip() or None

        return cls(
            output_dir=Path(env.get("REELWALL_OUTPUT_DIR", "uploads")),
            youtube_api_key=api_key,
            ytdlp_command=command,
            ffmpeg_binary=env.get("REELWALL_FFMPEG_BINARY", "ffmpeg"),
            ffprobe_binary=env.get("REELWALL_FFPROBE_BINARY", "ffprobe"),
            download_timeout=_optional_seconds(env, "REELWALL_DOWNLOAD_TIMEOUT", 1800.0),
            max_concurrent_downloads=max(
                1, _int(env, "REELWALL_MAX_CONCURRENT_DOWNLOADS", 3)
            ),
            artifact_ttl=_optional_seconds(env, "REELWALL_ARTIFACT_TTL", 86400.0),
            max_upload_bytes=_int(env, "REELWALL_MAX_UPLOAD_MB", 500) * 1024 * 1024,
            eviction_interval=_float(env, "REELWALL_EVICTION_INTERVAL", 600.0),
            scrape_wait=_float(env, "REELWALL_SCRAPE_WAIT", 10.0),
            page_timeout=_float(env, "REELWALL_PAGE_TIMEOUT", 30.0),
            api_timeout=_float(env, "REELWALL_API_TIMEOUT", 10.0),
            log_level=env.get("REELWALL_LOG_LEVEL", "INFO").upper(),
            host=env.get("REELWALL_HOST", "127.0.0.1"),
            port=_int(env, "REELWALL_PORT", 8000),
        )


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise EnvironmentCheckError(
            f"{name} must be a number, got {raw!r}.",
        ) from exc


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise EnvironmentCheckError(
            f"{name} must be an integer, got {raw!r}.",
        ) from exc


def _optional_seconds(
    env: Mapping[str, str], name: str, default: float
) -> float | None:
    """Parse a duration where ``0`` (or a negative value) disables the limit."""
    value = _float(env, name, default)
    return value if value > 0 else None


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        force=True,
    )
