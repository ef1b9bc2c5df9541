"""Tests for the yt-dlp subprocess runner (infra/ytdlp_download_provider.py).

``asyncio.create_subprocess_exec`` is monkeypatched with a fake process
whose pipes are real :class:`asyncio.StreamReader` objects.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from reelwall.core.models import ExtractorSelection
from reelwall.exceptions import DownloadFailedError
from reelwall.infra.ytdlp_download_provider import (
    YtDlpProcessRunner,
    build_command,
    parse_progress,
)

VIDEO = ExtractorSelection(format_spec="best[height<=1080]/best")
AUDIO = ExtractorSelection(format_spec="worstaudio", extract_audio=True, audio_format="mp3")


class TestBuildCommand:
    def test_video(self) -> None:
        args = build_command(("yt-dlp",), "https://youtu.be/x", VIDEO, "/out/%(ext)s")
        assert args == [
            "yt-dlp",
            "--no-warnings",
            "--no-check-certificate",
            "--newline",
            "--no-mtime",
            "-f", "best[height<=1080]/best",
            "-o", "/out/%(ext)s",
            "https://youtu.be/x",
        ]

    def test_audio_extraction(self) -> None:
        args = build_command(("python", "-m", "yt_dlp"), "u", AUDIO, "t")
        assert args[:3] == ["python", "-m", "yt_dlp"]
        assert args[-4:] == ["-x", "--audio-format", "mp3", "u"]


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("[download]  42.3% of 10.00MiB at 1.00MiB/s ETA 00:05", 42.3),
        ("[download] 100% of 10.00MiB", 100.0),
        ("[download] Destination: /out/file.mp4", None),
        ("[Merger] Merging formats", None),
    ],
)
def test_parse_progress(line: str, expected: float | None) -> None:
    assert parse_progress(line) == expected


class _FakeProcess:
    def __init__(self, stdout: bytes, stderr: bytes, returncode: int) -> None:
        self.stdout = asyncio.StreamReader()
        self.stdout.feed_data(stdout)
        self.stdout.feed_eof()
        self.stderr = asyncio.StreamReader()
        self.stderr.feed_data(stderr)
        self.stderr.feed_eof()
        self._exit = returncode
        self.returncode: int | None = None

    async def wait(self) -> int:
        self.returncode = self._exit
        return self._exit

    def kill(self) -> None:
        self.returncode = -9


def _patch_exec(
    monkeypatch: pytest.MonkeyPatch, stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0
) -> list[tuple[Any, ...]]:
    calls: list[tuple[Any, ...]] = []

    async def fake_exec(*args: Any, **kwargs: Any) -> _FakeProcess:
        calls.append(args)
        return _FakeProcess(stdout, stderr, returncode)

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    return calls


class TestRunner:
    def test_empty_command_rejected(self) -> None:
        with pytest.raises(ValueError):
            YtDlpProcessRunner(())

    def test_success_reports_progress(self, monkeypatch: pytest.MonkeyPatch) -> None:
        stdout = b"[download] Destination: x.mp4\n[download]  10.0% of 1MiB\n[download] 100% of 1MiB\n"
        calls = _patch_exec(monkeypatch, stdout=stdout)
        seen: list[float] = []

        asyncio.run(
            YtDlpProcessRunner(("yt-dlp",)).run("u", VIDEO, "t", on_progress=seen.append)
        )
        assert seen == [10.0, 100.0]
        assert calls[0][0] == "yt-dlp"
        assert calls[0][-1] == "u"

    def test_failure_carries_stderr_tail(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_exec(monkeypatch, stderr=b"WARNING: x\nERROR: Video unavailable\n", returncode=1)
        with pytest.raises(DownloadFailedError) as excinfo:
            asyncio.run(YtDlpProcessRunner(("yt-dlp",)).run("u", VIDEO, "t"))
        assert str(excinfo.value).endswith("ERROR: Video unavailable")
        assert excinfo.value.hint is not None
        assert "pip install --upgrade yt-dlp" in excinfo.value.hint

    def test_failure_without_stderr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_exec(monkeypatch, returncode=2)
        with pytest.raises(DownloadFailedError, match="exited with status 2"):
            asyncio.run(YtDlpProcessRunner(("yt-dlp",)).run("u", VIDEO, "t"))

    def test_launch_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def broken(*args: Any, **kwargs: Any) -> None:
            raise FileNotFoundError("yt-dlp")

        monkeypatch.setattr(asyncio, "create_subprocess_exec", broken)
        with pytest.raises(DownloadFailedError, match="Could not start yt-dlp"):
            asyncio.run(YtDlpProcessRunner(("yt-dlp",)).run("u", VIDEO, "t"))
