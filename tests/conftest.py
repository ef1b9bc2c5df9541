"""Shared pytest fixtures and fakes for the reelwall test suite.

Guidelines
----------
* No internet access in any test.
* yt-dlp, ffmpeg, ffprobe and the browser are replaced at the protocol
  boundary by the fakes below, or mocked at the infra boundary.
* Async code is driven with :func:`asyncio.run` inside plain tests.
* Filesystem effects are confined to ``tmp_path``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from reelwall.config import Settings
from reelwall.core.models import ExtractorSelection, JobState, MetadataPatch, VideoReference
from reelwall.infra.artifact_store import LocalArtifactStore


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class FakeExtractorRunner:
    """Stands in for the yt-dlp subprocess.

    Writes ``output_template`` with ``extension`` substituted unless
    ``write`` is false.  Set :attr:`release` to an :class:`asyncio.Event`
    (inside the running loop) to hold the job open.
    """

    def __init__(
        self,
        *,
        extension: str = "mp4",
        payload: bytes = b"\x00" * 2048,
        progress: Sequence[float] = (),
        error: Exception | None = None,
        write: bool = True,
    ) -> None:
        self.extension = extension
        self.payload = payload
        self.progress = tuple(progress)
        self.error = error
        self.write = write
        self.release: asyncio.Event | None = None
        self.calls: list[tuple[str, ExtractorSelection, str]] = []
        self.cancelled = False

    async def run(
        self,
        url: str,
        selection: ExtractorSelection,
        output_template: str,
        *,
        on_progress: Callable[[float], None] | None = None,
    ) -> None:
        self.calls.append((url, selection, output_template))
        for percent in self.progress:
            if on_progress is not None:
                on_progress(percent)
        try:
            if self.release is not None:
                await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        if self.write:
            Path(output_template.replace("%(ext)s", self.extension)).write_bytes(self.payload)


# ---------------------------------------------------------------------------
# Media tool
# ---------------------------------------------------------------------------

class FakeMediaRunner:
    """Stands in for ffmpeg / ffprobe; writes the output path (last arg)."""

    def __init__(
        self,
        *,
        error: Exception | None = None,
        probe_result: dict[str, Any] | None = None,
        probe_error: Exception | None = None,
    ) -> None:
        self.error = error
        self.probe_error = probe_error
        self.probe_result = probe_result or {}
        self.calls: list[list[str]] = []
        self.probed: list[Path] = []

    async def run(self, args: Sequence[str]) -> None:
        self.calls.append(list(args))
        if self.error is not None:
            raise self.error
        Path(args[-1]).write_bytes(b"encoded")

    async def probe(self, path: Path) -> dict[str, Any]:
        self.probed.append(path)
        if self.probe_error is not None:
            raise self.probe_error
        return self.probe_result


# ---------------------------------------------------------------------------
# Metadata tiers
# ---------------------------------------------------------------------------

class FakeTier:
    """Metadata tier returning a fixed patch, ``None``, or raising."""

    def __init__(
        self,
        name: str,
        patch: MetadataPatch | None = None,
        *,
        error: Exception | None = None,
        fallback_only: bool = False,
    ) -> None:
        self.name = name
        self.fallback_only = fallback_only
        self._patch = patch
        self._error = error
        self.calls: list[VideoReference] = []

    async def fetch(self, reference: VideoReference) -> MetadataPatch | None:
        self.calls.append(reference)
        if self._error is not None:
            raise self._error
        return self._patch


async def wait_until_terminal(registry_owner: Any, job_id: str, *, attempts: int = 500) -> None:
    """Yield to the loop until the job reaches a terminal state."""
    for _ in range(attempts):
        record = registry_owner.registry.get(job_id)
        if record is None or record.state.is_terminal:
            return
        await asyncio.sleep(0.001)
    raise AssertionError(f"job {job_id} never finished")


async def wait_for_state(
    registry_owner: Any, job_id: str, state: JobState, *, attempts: int = 500
) -> None:
    for _ in range(attempts):
        record = registry_owner.registry.get(job_id)
        if record is not None and record.state is state:
            return
        await asyncio.sleep(0.001)
    raise AssertionError(f"job {job_id} never reached {state.value}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def store(tmp_path: Path) -> LocalArtifactStore:
    return LocalArtifactStore(tmp_path / "uploads")


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        output_dir=tmp_path / "uploads",
        download_timeout=None,
        artifact_ttl=None,
    )


@pytest.fixture()
def media_file(store: LocalArtifactStore) -> Path:
    path = store.ensure_root() / "input.mp4"
    path.write_bytes(b"\x00" * 4096)
    return path
