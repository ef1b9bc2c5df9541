"""ffmpeg / ffprobe backed :class:`~reelwall.core.protocols.MediaToolRunner`.

Runs the binaries as child processes.  A missing binary becomes
:class:`~reelwall.exceptions.FfmpegNotFoundError`; a non-zero exit
becomes :class:`~reelwall.exceptions.ProcessingError` carrying the tail
of stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from reelwall.exceptions import FfmpegNotFoundError, ProcessingError
from reelwall.infra.ffmpeg_detector import detect_tool, install_hint

logger = logging.getLogger(__name__)

_DIAGNOSTIC_LINES = 15


class FfmpegRunner:
    """Invokes ``ffmpeg`` and ``ffprobe``.

    Parameters
    ----------
    ffmpeg:
        Name or path of the ffmpeg binary.
    ffprobe:
        Name or path of the ffprobe binary.
    """

    def __init__(self, ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe") -> None:
        self._ffmpeg = ffmpeg
        self._ffprobe = ffprobe

    async def run(self, args: Sequence[str]) -> None:
        _, stderr, code = await self._exec(self._ffmpeg, list(args))
        if code != 0:
            diagnostics = _tail(stderr)
            last = diagnostics.splitlines()[-1] if diagnostics else f"exit status {code}"
            raise ProcessingError(
                f"ffmpeg failed: {last}",
                diagnostics=diagnostics,
            )

    async def probe(self, path: Path) -> dict[str, Any]:
        args = [
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]
        stdout, stderr, code = await self._exec(self._ffprobe, args)
        if code != 0:
            raise ProcessingError(
                f"ffprobe could not read {path.name}",
                diagnostics=_tail(stderr),
            )
        try:
            data = json.loads(stdout or "{}")
        except json.JSONDecodeError as exc:
            raise ProcessingError(f"ffprobe returned invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ProcessingError("ffprobe returned an unexpected payload.")
        return data

    @staticmethod
    async def _exec(binary: str, args: list[str]) -> tuple[str, str, int]:
        logger.debug("Running %s %s", binary, " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise FfmpegNotFoundError(
                f"{binary} is not installed or not on PATH.",
                hint=install_hint(detect_tool(binary)),
            ) from exc

        try:
            out, err = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        return (
            out.decode("utf-8", errors="replace"),
            err.decode("utf-8", errors="replace"),
            process.returncode if process.returncode is not None else -1,
        )


def _tail(text: str) -> str:
    lines = [line for line in text.strip().splitlines() if line.strip()]
    return "\n".join(lines[-_DIAGNOSTIC_LINES:])
