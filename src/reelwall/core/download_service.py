"""Core download service — job launch, supervision and status polling.

This service delegates the actual download to an
:class:`~reelwall.core.protocols.ExtractorRunner` and all filesystem
access to an :class:`~reelwall.core.protocols.ArtifactStore`, both
injected at construction time.  It is responsible for:

* Mapping the logical ``(format, quality)`` pair to an extractor
  selector via one canonical table.
* Allocating job ids and output templates that embed them.
* Running each job as a supervised asyncio task bounded by a
  semaphore, with an optional timeout and explicit cancellation.
* Reporting job status from the in-memory ledger, falling back to a
  directory scan for jobs the ledger does not know (e.g. after a
  restart).

Guarantees
----------
* :meth:`DownloadService.start_download` returns before the extractor
  finishes; failures are recorded on the job, never raised to the
  launcher's caller.
* Only :class:`~reelwall.exceptions.ReelwallError` subclasses escape.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from functools import partial
from pathlib import Path

from reelwall.core.jobs import JobRegistry
from reelwall.core.models import (
    DownloadFormat,
    DownloadJob,
    DownloadQuality,
    ExtractorSelection,
    JobState,
    JobStatus,
    PlatformKind,
)
from reelwall.core.platforms import parse_platform, resolve_reference
from reelwall.core.protocols import ArtifactStore, ExtractorRunner
from reelwall.exceptions import (
    DownloadFailedError,
    InvalidRequestError,
    ReelwallError,
)

logger = logging.getLogger(__name__)

AUDIO_CONTAINER: str = "mp3"

_DEFAULT_VIDEO_SPEC = "best[height<=1080]/best"
_DEFAULT_AUDIO_SPEC = "bestaudio/best"

# quality -> (video selector, audio selector); HIGHEST keeps the format default.
_QUALITY_OVERRIDES: dict[DownloadQuality, tuple[str, str]] = {
    DownloadQuality.LOW: ("worst[height>=360]/worst", "worstaudio"),
    DownloadQuality.MEDIUM: ("best[height<=720]/best", "bestaudio[abr<=128]"),
    DownloadQuality.HIGH: ("best[height<=1080]/best", "bestaudio[abr<=256]"),
}


class DownloadService:
    """Launches and tracks extractor jobs.

    Parameters
    ----------
    runner:
        Any object satisfying the :class:`ExtractorRunner` protocol.
    store:
        Any object satisfying the :class:`ArtifactStore` protocol.
    registry:
        Job ledger; a fresh one is created when omitted.
    max_concurrent:
        Number of extractor processes allowed to run at once.
    timeout:
        Seconds before a running job is killed, or ``None``.
    artifact_ttl:
        Seconds before artifacts and finished records are evicted, or
        ``None`` to keep them forever.
    """

    def __init__(
        self,
        runner: ExtractorRunner,
        store: ArtifactStore,
        *,
        registry: JobRegistry | None = None,
        max_concurrent: int = 3,
        timeout: float | None = None,
        artifact_ttl: float | None = None,
    ) -> None:
        self._runner: ExtractorRunner = runner
        self._store: ArtifactStore = store
        self._registry: JobRegistry = registry if registry is not None else JobRegistry()
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._timeout: float | None = timeout
        self._artifact_ttl: float | None = artifact_ttl
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def registry(self) -> JobRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Selector construction (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def build_selection(
        fmt: DownloadFormat,
        quality: DownloadQuality,
    ) -> ExtractorSelection:
        """Map a logical ``(format, quality)`` pair to extractor arguments.

        Rules
        -----
        * ``video`` and ``videoAndAudio`` default to the best muxed
          stream at or below 1080p.
        * ``audio`` defaults to the best audio stream and is always
          extracted to ``mp3``.
        * A quality other than ``highest`` overrides the default
          selector for the requested format.
        """
        is_audio = fmt is DownloadFormat.AUDIO
        spec = _DEFAULT_AUDIO_SPEC if is_audio else _DEFAULT_VIDEO_SPEC

        override = _QUALITY_OVERRIDES.get(quality)
        if override is not None:
            video_spec, audio_spec = override
            spec = audio_spec if is_audio else video_spec

        if is_audio:
            return ExtractorSelection(
                format_spec=spec,
                extract_audio=True,
                audio_format=AUDIO_CONTAINER,
            )
        return ExtractorSelection(format_spec=spec)

    # ------------------------------------------------------------------
    # Launch
    # ------------------------------------------------------------------

    async def start_download(
        self,
        url: str,
        fmt: DownloadFormat | str = DownloadFormat.VIDEO_AND_AUDIO,
        quality: DownloadQuality | str = DownloadQuality.HIGHEST,
    ) -> DownloadJob:
        """Validate *url*, schedule the extractor and return immediately.

        Raises
        ------
        InvalidURLError
            If *url* cannot be resolved.
        InvalidRequestError
            If *fmt* or *quality* is not recognised.
        """
        reference = resolve_reference(url)
        download_format = _parse_format(fmt)
        download_quality = _parse_quality(quality)

        job_id = str(uuid.uuid4())
        job = DownloadJob(
            job_id=job_id,
            reference=reference,
            requested_format=download_format,
            requested_quality=download_quality,
            selection=self.build_selection(download_format, download_quality),
            output_template=self._store.download_template(
                reference.platform, reference.video_id, job_id,
            ),
        )
        self._registry.add(job)

        task = asyncio.create_task(self._supervise(job), name=f"download-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(job_id, None))

        logger.info(
            "Queued %s download %s (%s/%s) as %s",
            reference.platform.value,
            reference.video_id,
            download_format.value,
            download_quality.value,
            job_id,
        )
        return job

    async def _supervise(self, job: DownloadJob) -> None:
        job_id = job.job_id
        try:
            async with self._semaphore:
                self._registry.mark_running(job_id)
                await self._run(job)
        except asyncio.CancelledError:
            self._registry.mark_cancelled(job_id)
            raise
        except ReelwallError as exc:
            self._registry.mark_failed(job_id, str(exc))
            return
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure in download job %s", job_id)
            self._registry.mark_failed(job_id, f"Unexpected download error: {exc}")
            return

        artifact = self._store.find_artifact(job_id)
        if artifact is None:
            self._registry.mark_failed(
                job_id, "The extractor finished without producing a file.",
            )
            return
        self._registry.mark_completed(job_id, artifact)

    async def _run(self, job: DownloadJob) -> None:
        pending = self._runner.run(
            job.reference.url,
            job.selection,
            job.output_template,
            on_progress=partial(self._registry.update_progress, job.job_id),
        )
        if self._timeout is None:
            await pending
            return
        try:
            await asyncio.wait_for(pending, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise DownloadFailedError(
                f"Download timed out after {self._timeout:g} seconds.",
            ) from exc

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def cancel(self, job_id: str) -> bool:
        """Cancel a queued or running job.

        Returns ``False`` when the job had already finished.

        Raises
        ------
        JobNotFoundError
            If *job_id* is unknown.
        """
        record = self._registry.require(job_id)
        if record.state.is_terminal:
            return False

        self._registry.mark_cancelled(job_id)
        task = self._tasks.get(job_id)
        if task is not None and not task.done():
            task.cancel()
        return True

    async def shutdown(self) -> None:
        """Cancel every outstanding job and wait for the tasks to unwind."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self, platform: PlatformKind | str, job_id: str) -> JobStatus:
        """Report the current status of *job_id*.

        A job started for another platform is treated as unknown.  A
        completed job whose file has since been removed reports
        ``failed``.

        Raises
        ------
        UnknownPlatformError
            If *platform* is not a supported platform name.
        """
        kind = platform if isinstance(platform, PlatformKind) else parse_platform(platform)
        record = self._registry.get(job_id)
        if record is not None and record.job.reference.platform is not kind:
            record = None

        if record is None:
            artifact = self._store.find_artifact(job_id)
            if artifact is not None and artifact.name.startswith(f"{kind.value}_"):
                return self._completed_status(kind, job_id, artifact)
            return JobStatus(job_id=job_id, platform=kind, status="processing", progress=0.0)

        if record.state is JobState.COMPLETED:
            artifact = record.artifact_path
            if artifact is not None and self._store.exists(artifact):
                return self._completed_status(kind, job_id, artifact)
            return JobStatus(
                job_id=job_id,
                platform=kind,
                status=JobState.FAILED.value,
                progress=record.progress,
                error="The downloaded file is no longer available.",
            )

        if record.state in (JobState.FAILED, JobState.CANCELLED):
            return JobStatus(
                job_id=job_id,
                platform=kind,
                status=record.state.value,
                progress=record.progress,
                error=record.error,
            )

        return JobStatus(
            job_id=job_id,
            platform=kind,
            status="processing",
            progress=record.progress,
        )

    def _completed_status(
        self, platform: PlatformKind, job_id: str, artifact: Path
    ) -> JobStatus:
        return JobStatus(
            job_id=job_id,
            platform=platform,
            status="completed",
            progress=100.0,
            file_name=artifact.name,
            size_bytes=self._store.size_of(artifact),
            download_url=self._store.download_url(artifact),
        )

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def evict_expired(self, *, now: float | None = None) -> int:
        """Delete expired artifacts and forget expired finished jobs.

        Jobs in the ledger expire by their finish time, together with
        their artifact.  Files no record claims expire by modification
        time.  Returns the number of files removed.
        """
        if self._artifact_ttl is None:
            return 0
        current = time.time() if now is None else now
        cutoff = current - self._artifact_ttl

        removed = 0
        expired = self._registry.finished_before(cutoff)
        for record in expired:
            if record.artifact_path is not None:
                outcomes = self._store.delete_many([str(record.artifact_path)])
                removed += sum(1 for outcome in outcomes if outcome.status == "deleted")
            self._registry.forget(record.job.job_id)

        known = {record.job.job_id for record in self._registry}
        removed += len(
            self._store.evict_older_than(self._artifact_ttl, now=current, keep=known)
        )
        if removed or expired:
            logger.info(
                "Evicted %d artifact(s) and %d finished job(s)", removed, len(expired),
            )
        return removed

    async def run_janitor(self, interval: float) -> None:
        """Call :meth:`evict_expired` every *interval* seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            self.evict_expired()


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def _parse_format(value: DownloadFormat | str) -> DownloadFormat:
    if isinstance(value, DownloadFormat):
        return value
    try:
        return DownloadFormat.parse(value)
    except ValueError as exc:
        raise InvalidRequestError(
            f"Unsupported format: {value}",
            hint="Use one of: video, audio, videoAndAudio.",
        ) from exc


def _parse_quality(value: DownloadQuality | str) -> DownloadQuality:
    if isinstance(value, DownloadQuality):
        return value
    try:
        return DownloadQuality.parse(value)
    except ValueError as exc:
        raise InvalidRequestError(
            f"Unsupported quality: {value}",
            hint="Use one of: low, medium, high, highest.",
        ) from exc
