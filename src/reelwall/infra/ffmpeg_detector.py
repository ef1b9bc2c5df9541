"""Infrastructure: media-tool detection and platform guidance.

Locates ``ffmpeg`` / ``ffprobe`` (or configured replacements) on the
system PATH and provides platform-specific installation guidance when
they are missing.

Rules
-----
* Detection via :func:`shutil.which` only — no subprocess.
* No permanent PATH modification.
* No automatic installation.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from reelwall.exceptions import FfmpegNotFoundError


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ToolStatus:
    """Result of a binary detection probe.

    Attributes
    ----------
    name : str
        The binary name or path that was probed.
    found : bool
        Whether the binary was located.
    path : Path | None
        Absolute path to the binary, or ``None``.
    version_hint : str
        Human-readable status string (e.g. ``"found at …"`` or ``"not found"``).
    install_commands : tuple[str, ...]
        Suggested shell commands for installing ffmpeg on the current
        platform.  Empty when the binary is already present.
    """

    name: str
    found: bool
    path: Path | None
    version_hint: str
    install_commands: tuple[str, ...]


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def detect_tool(binary: str = "ffmpeg") -> ToolStatus:
    """Probe the system for *binary*.

    Returns a :class:`ToolStatus` regardless of whether it is present —
    the caller decides whether to abort or merely warn.
    """
    result = shutil.which(binary)

    if result is not None:
        resolved = Path(result).resolve()
        return ToolStatus(
            name=binary,
            found=True,
            path=resolved,
            version_hint=f"found at {resolved}",
            install_commands=(),
        )

    return ToolStatus(
        name=binary,
        found=False,
        path=None,
        version_hint="not found",
        install_commands=_platform_install_commands(),
    )


def require_tool(binary: str = "ffmpeg") -> Path:
    """Locate *binary* or raise :class:`FfmpegNotFoundError`."""
    status = detect_tool(binary)
    if not status.found or status.path is None:
        raise FfmpegNotFoundError(
            f"{binary} is not installed or not on PATH.",
            hint=install_hint(status),
        )
    return status.path


def install_hint(status: ToolStatus) -> str | None:
    """Render the install commands of *status* as a multi-line hint."""
    if not status.install_commands:
        return None
    lines = ["Install ffmpeg (ships ffprobe) using one of:"]
    lines.extend(f"  {cmd}" for cmd in status.install_commands)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

def _platform_install_commands() -> tuple[str, ...]:
    """Return install commands appropriate for the current OS."""
    system = platform.system().lower()
    if system == "windows":
        return (
            "winget install Gyan.FFmpeg",
            "choco install ffmpeg",
        )
    if system == "linux":
        return (
            "sudo apt install ffmpeg",
            "sudo dnf install ffmpeg",
            "sudo pacman -S ffmpeg",
        )
    if system == "darwin":
        return ("brew install ffmpeg",)
    return ("Please install ffmpeg from https://ffmpeg.org/download.html",)
