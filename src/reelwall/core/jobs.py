"""In-memory job ledger.

The registry maps job ids to :class:`~reelwall.core.models.JobRecord`
entries and owns every state transition.  Terminal states are sticky:
once a job has completed, failed or been cancelled, later transitions
are ignored.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from pathlib import Path

from reelwall.core.models import DownloadJob, JobRecord, JobState
from reelwall.exceptions import JobNotFoundError

logger = logging.getLogger(__name__)


class JobRegistry:
    """Dictionary-backed ledger of download jobs."""

    def __init__(self) -> None:
        self._records: dict[str, JobRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._records

    def __iter__(self) -> Iterator[JobRecord]:
        return iter(list(self._records.values()))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def add(self, job: DownloadJob) -> JobRecord:
        if job.job_id in self._records:
            raise ValueError(f"Duplicate job id: {job.job_id}")
        record = JobRecord(job=job)
        self._records[job.job_id] = record
        return record

    def get(self, job_id: str) -> JobRecord | None:
        return self._records.get(job_id)

    def require(self, job_id: str) -> JobRecord:
        record = self._records.get(job_id)
        if record is None:
            raise JobNotFoundError(f"Download not found: {job_id}")
        return record

    def forget(self, job_id: str) -> None:
        self._records.pop(job_id, None)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def mark_running(self, job_id: str) -> None:
        record = self._live(job_id)
        if record is not None:
            record.state = JobState.RUNNING
            logger.info("Job %s running", job_id)

    def update_progress(self, job_id: str, percent: float) -> None:
        record = self._live(job_id)
        if record is not None:
            record.progress = max(record.progress, min(percent, 100.0))

    def mark_completed(self, job_id: str, artifact_path: Path | None) -> None:
        record = self._live(job_id)
        if record is not None:
            record.state = JobState.COMPLETED
            record.progress = 100.0
            record.artifact_path = artifact_path
            record.finished_at = time.time()
            logger.info("Job %s completed: %s", job_id, artifact_path)

    def mark_failed(self, job_id: str, error: str) -> None:
        record = self._live(job_id)
        if record is not None:
            record.state = JobState.FAILED
            record.error = error
            record.finished_at = time.time()
            logger.info("Job %s failed: %s", job_id, error)

    def mark_cancelled(self, job_id: str) -> None:
        record = self._live(job_id)
        if record is not None:
            record.state = JobState.CANCELLED
            record.error = "Download cancelled"
            record.finished_at = time.time()
            logger.info("Job %s cancelled", job_id)

    def finished_before(self, cutoff: float) -> list[JobRecord]:
        """Return terminal records that finished before *cutoff*."""
        return [
            record
            for record in self._records.values()
            if record.finished_at is not None and record.finished_at < cutoff
        ]

    def _live(self, job_id: str) -> JobRecord | None:
        record = self._records.get(job_id)
        if record is None or record.state.is_terminal:
            return None
        return record
