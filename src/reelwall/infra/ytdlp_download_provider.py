"""yt-dlp backed :class:`~reelwall.core.protocols.ExtractorRunner`.

Downloads run the yt-dlp command line in a child process so that a job
can be killed on timeout or cancellation.  Failures are re-raised as
:class:`~reelwall.exceptions.DownloadFailedError`.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable, Sequence

from reelwall.core.models import ExtractorSelection
from reelwall.exceptions import DownloadFailedError, append_ytdlp_upgrade_suggestion

logger = logging.getLogger(__name__)

_PROGRESS_LINE = re.compile(r"\[download\]\s+(\d+(?:\.\d+)?)%")
_STDERR_TAIL_LINES = 20


def build_command(
    command: Sequence[str],
    url: str,
    selection: ExtractorSelection,
    output_template: str,
) -> list[str]:
    """Return the full argument vector for one download."""
    args = [
        *command,
        "--no-warnings",
        "--no-check-certificate",
        "--newline",
        # artifacts carry local write time; eviction relies on it
        "--no-mtime",
        "-f", selection.format_spec,
        "-o", output_template,
    ]
    if selection.extract_audio:
        args.append("-x")
        if selection.audio_format:
            args.extend(("--audio-format", selection.audio_format))
    args.append(url)
    return args


def parse_progress(line: str) -> float | None:
    """Return the percentage reported by a ``[download]`` line, if any."""
    match = _PROGRESS_LINE.search(line)
    return float(match.group(1)) if match else None


class YtDlpProcessRunner:
    """Runs ``yt-dlp`` as a subprocess.

    Parameters
    ----------
    command:
        Argument prefix that launches yt-dlp, e.g.
        ``("python", "-m", "yt_dlp")`` or ``("yt-dlp",)``.
    """

    def __init__(self, command: Sequence[str]) -> None:
        if not command:
            raise ValueError("yt-dlp command must not be empty")
        self._command: tuple[str, ...] = tuple(command)

    async def run(
        self,
        url: str,
        selection: ExtractorSelection,
        output_template: str,
        *,
        on_progress: Callable[[float], None] | None = None,
    ) -> None:
        args = build_command(self._command, url, selection, output_template)
        logger.debug("Running %s", " ".join(args))

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise DownloadFailedError(
                f"Could not start yt-dlp: {exc}",
                hint="Install yt-dlp or set REELWALL_YTDLP_COMMAND.",
            ) from exc

        try:
            _, stderr = await asyncio.gather(
                self._pump_progress(process, on_progress),
                process.stderr.read() if process.stderr else _empty(),
            )
            returncode = await process.wait()
        except asyncio.CancelledError:
            await _kill(process)
            raise

        if returncode != 0:
            tail = _tail(stderr.decode("utf-8", errors="replace"))
            raise DownloadFailedError(
                tail or f"yt-dlp exited with status {returncode}.",
                hint=append_ytdlp_upgrade_suggestion("Check the URL and your network."),
            )

    @staticmethod
    async def _pump_progress(
        process: asyncio.subprocess.Process,
        on_progress: Callable[[float], None] | None,
    ) -> None:
        if process.stdout is None:
            return
        async for raw in process.stdout:
            percent = parse_progress(raw.decode("utf-8", errors="replace"))
            if percent is not None and on_progress is not None:
                on_progress(percent)


async def _empty() -> bytes:
    return b""


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()


def _tail(text: str) -> str:
    lines = [line for line in text.strip().splitlines() if line.strip()]
    return "\n".join(lines[-_STDERR_TAIL_LINES:])
