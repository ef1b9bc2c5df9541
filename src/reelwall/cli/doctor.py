"""``reelwall doctor`` — environment diagnostics command.

Gathers the runtime prerequisites of the service (extractor, media
tools, browser engine, API key, writable output directory) and renders
them as a Rich table, or as plain text when Rich is unavailable.
"""

from __future__ import annotations

import os
import platform
import sys

from reelwall.cli import exit_codes
from reelwall.cli.console import console, rich_available
from reelwall.config import Settings
from reelwall.infra.ffmpeg_detector import ToolStatus, detect_tool
from reelwall.version import __version__

OK = "[green]OK[/green]"
WARN = "[yellow]WARN[/yellow]"
FAIL = "[red]FAIL[/red]"

Check = tuple[str, str, str]


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _reelwall_version_check() -> Check:
    return "reelwall", __version__, OK


def _python_version_check() -> Check:
    ok = sys.version_info[:2] >= (3, 10)
    return (
        "Python",
        platform.python_version(),
        OK if ok else "[red]FAIL (>=3.10 required)[/red]",
    )


def _ytdlp_version_check() -> Check:
    """yt-dlp is required; downloads and the extractor tier depend on it."""
    try:
        from yt_dlp.version import __version__ as ydl_ver

        return "yt-dlp", ydl_ver, OK
    except ImportError:
        pass

    try:
        import yt_dlp  # noqa: F401

        return "yt-dlp", "unknown", OK
    except ImportError:
        return "yt-dlp", "NOT INSTALLED", FAIL


def _tool_check(label: str, binary: str) -> tuple[Check, ToolStatus]:
    status = detect_tool(binary)
    if status.found:
        return (label, str(status.path) if status.path else "found", OK), status
    return (label, "not found", WARN), status


def _playwright_check() -> Check:
    """The browser tier is optional; its absence only degrades metadata."""
    try:
        import playwright  # noqa: F401
    except ImportError:
        return "Playwright", "not installed", WARN
    return "Playwright", "installed", OK


def _api_key_check(settings: Settings) -> Check:
    if settings.youtube_api_key:
        return "YouTube API", "key configured", OK
    return "YouTube API", "YOUTUBE_API_KEY unset", WARN


def _output_dir_check(settings: Settings) -> Check:
    path = settings.output_dir
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return "Output dir", f"{path} ({exc.strerror})", FAIL
    if not os.access(path, os.W_OK):
        return "Output dir", f"{path} (read-only)", FAIL
    return "Output dir", str(path.resolve()), OK


def _status_plain(status: str) -> str:
    for word in ("FAIL", "WARN", "OK"):
        if word in status:
            return word
    return status


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _render_rich(checks: list[Check]) -> None:
    from rich.table import Table

    table = Table(
        title="reelwall doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for label, value, status in checks:
        table.add_row(label, value, status)

    console.print()
    console.print(table)
    console.print()


def _render_plain(checks: list[Check]) -> None:
    print("\nreelwall doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<12} {'Value':<40} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<12} {value:<40} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


def _emit(rich: bool, markup: str, plain: str) -> None:
    if rich:
        console.print(markup)
    else:
        print(plain, file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(settings: Settings | None = None) -> int:
    """Execute every diagnostic check and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` unless a required check fails, in
        which case :data:`exit_codes.GENERAL_ERROR`.
    """
    settings = settings or Settings.from_env()

    ffmpeg_row, ffmpeg_status = _tool_check("ffmpeg", settings.ffmpeg_binary)
    ffprobe_row, _ = _tool_check("ffprobe", settings.ffprobe_binary)
    checks = [
        _reelwall_version_check(),
        _python_version_check(),
        _ytdlp_version_check(),
        ffmpeg_row,
        ffprobe_row,
        _playwright_check(),
        _api_key_check(settings),
        _output_dir_check(settings),
    ]

    rich = rich_available()
    if rich:
        _render_rich(checks)
    else:
        _render_plain(checks)

    if not ffmpeg_status.found and ffmpeg_status.install_commands:
        _emit(rich, "[yellow]ffmpeg is not installed.[/yellow]", "ffmpeg is not installed.")
        _emit(rich, "Install using one of the following commands:\n",
              "Install using one of the following commands:\n")
        for cmd in ffmpeg_status.install_commands:
            _emit(rich, f"  [bold]{cmd}[/bold]", f"  {cmd}")

    if any("FAIL" in status for _, _, status in checks):
        _emit(rich, "[bold red]Some checks failed.[/bold red]", "Some checks failed.")
        return exit_codes.GENERAL_ERROR

    _emit(rich, "[bold green]All required checks passed.[/bold green]",
          "All required checks passed.")
    return exit_codes.SUCCESS
