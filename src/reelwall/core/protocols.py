"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Callable, Iterable, Sequence
from pathlib import Path
from typing import Any, Protocol

from reelwall.core.models import (
    CleanupOutcome,
    ExtractorSelection,
    MetadataPatch,
    PlatformKind,
    VideoReference,
)


class MetadataTier(Protocol):
    """One stage of the metadata fallback chain.

    Attributes
    ----------
    name:
        Short identifier recorded in :attr:`VideoMetadata.sources`.
    fallback_only:
        When true the tier runs only if no earlier tier produced data.
    """

    name: str
    fallback_only: bool

    async def fetch(self, reference: VideoReference) -> MetadataPatch | None:
        """Return a partial record, or ``None`` when the tier does not apply.

        Implementations raise
        :class:`~reelwall.exceptions.UpstreamUnavailableError` when their
        backing service fails.
        """
        ...  # pragma: no cover


class ExtractorRunner(Protocol):
    """Contract for the process that performs a download."""

    async def run(
        self,
        url: str,
        selection: ExtractorSelection,
        output_template: str,
        *,
        on_progress: Callable[[float], None] | None = None,
    ) -> None:
        """Run the extractor to completion.

        Cancelling the awaiting task must terminate the child process.

        Raises
        ------
        DownloadFailedError
            On non-zero exit or when the process cannot be spawned.
        """
        ...  # pragma: no cover


class MediaToolRunner(Protocol):
    """Contract for the local media tool (ffmpeg / ffprobe)."""

    async def run(self, args: Sequence[str]) -> None:
        """Run the tool with *args*.

        Raises
        ------
        ProcessingError
            When the tool exits non-zero.
        """
        ...  # pragma: no cover

    async def probe(self, path: Path) -> dict[str, Any]:
        """Return the parsed JSON probe output for *path*."""
        ...  # pragma: no cover


class ArtifactStore(Protocol):
    """Filesystem view of the shared output directory."""

    @property
    def root(self) -> Path:
        ...  # pragma: no cover

    def download_template(
        self, platform: PlatformKind, video_id: str, job_id: str
    ) -> str:
        """Return an extractor output template embedding *job_id*."""
        ...  # pragma: no cover

    def new_output_path(self, prefix: str, extension: str) -> Path:
        """Return a fresh, unused path for a transform output."""
        ...  # pragma: no cover

    def find_artifact(self, job_id: str) -> Path | None:
        """Return the finished artifact whose name contains *job_id*."""
        ...  # pragma: no cover

    def size_of(self, path: Path) -> int | None:
        ...  # pragma: no cover

    def download_url(self, path: Path) -> str:
        ...  # pragma: no cover

    def exists(self, path: Path) -> bool:
        ...  # pragma: no cover

    def contains(self, path: Path) -> bool:
        """Return ``True`` when *path* lies inside :attr:`root`."""
        ...  # pragma: no cover

    async def save_upload(
        self,
        original_name: str,
        chunks: AsyncIterable[bytes],
        *,
        max_bytes: int,
    ) -> Path:
        """Store a client upload under a fresh name and return its path."""
        ...  # pragma: no cover

    def delete_many(self, paths: Iterable[str]) -> list[CleanupOutcome]:
        """Delete files inside :attr:`root`; other paths are reported as errors."""
        ...  # pragma: no cover

    def evict_older_than(
        self,
        max_age: float,
        *,
        now: float | None = None,
        keep: Iterable[str] = (),
    ) -> list[Path]:
        """Delete artifacts older than *max_age* seconds.

        Files whose name contains any token in *keep* are left alone.
        """
        ...  # pragma: no cover
