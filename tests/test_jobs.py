"""Tests for the in-memory job ledger (core/jobs.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from reelwall.core.jobs import JobRegistry
from reelwall.core.models import (
    DownloadFormat,
    DownloadJob,
    DownloadQuality,
    ExtractorSelection,
    JobState,
    PlatformKind,
    VideoReference,
)
from reelwall.exceptions import JobNotFoundError


def _job(job_id: str = "job-1") -> DownloadJob:
    return DownloadJob(
        job_id=job_id,
        reference=VideoReference(
            url="https://youtu.be/abc12345678",
            platform=PlatformKind.YOUTUBE,
            video_id="abc12345678",
        ),
        requested_format=DownloadFormat.VIDEO,
        requested_quality=DownloadQuality.HIGHEST,
        selection=ExtractorSelection(format_spec="best[height<=1080]/best"),
        output_template=f"/tmp/youtube_abc12345678_{job_id}.%(ext)s",
    )


class TestRegistry:
    def test_add_and_lookup(self) -> None:
        registry = JobRegistry()
        record = registry.add(_job())
        assert record.state is JobState.QUEUED
        assert "job-1" in registry
        assert len(registry) == 1
        assert registry.get("job-1") is record
        assert registry.require("job-1") is record

    def test_duplicate_id_rejected(self) -> None:
        registry = JobRegistry()
        registry.add(_job())
        with pytest.raises(ValueError):
            registry.add(_job())

    def test_require_unknown(self) -> None:
        with pytest.raises(JobNotFoundError, match="Download not found: nope"):
            JobRegistry().require("nope")

    def test_lifecycle(self) -> None:
        registry = JobRegistry()
        registry.add(_job())
        registry.mark_running("job-1")
        registry.update_progress("job-1", 42.0)
        record = registry.require("job-1")
        assert record.state is JobState.RUNNING
        assert record.progress == 42.0

        registry.mark_completed("job-1", Path("/tmp/out.mp4"))
        assert record.state is JobState.COMPLETED
        assert record.progress == 100.0
        assert record.artifact_path == Path("/tmp/out.mp4")
        assert record.finished_at is not None

    def test_progress_is_monotonic_and_capped(self) -> None:
        registry = JobRegistry()
        registry.add(_job())
        registry.update_progress("job-1", 60.0)
        registry.update_progress("job-1", 10.0)
        assert registry.require("job-1").progress == 60.0
        registry.update_progress("job-1", 180.0)
        assert registry.require("job-1").progress == 100.0

    def test_terminal_states_are_sticky(self) -> None:
        registry = JobRegistry()
        registry.add(_job())
        registry.mark_cancelled("job-1")
        registry.mark_failed("job-1", "late failure")
        registry.mark_completed("job-1", Path("/tmp/late.mp4"))
        record = registry.require("job-1")
        assert record.state is JobState.CANCELLED
        assert record.error == "Download cancelled"
        assert record.artifact_path is None

    def test_transitions_on_unknown_id_are_ignored(self) -> None:
        registry = JobRegistry()
        registry.mark_running("ghost")
        registry.update_progress("ghost", 5.0)
        assert len(registry) == 0

    def test_finished_before(self) -> None:
        registry = JobRegistry()
        registry.add(_job("old"))
        registry.add(_job("recent"))
        registry.add(_job("live"))
        registry.mark_failed("old", "x")
        registry.mark_completed("recent", None)
        registry.require("old").finished_at = 100.0

        assert [r.job.job_id for r in registry.finished_before(200.0)] == ["old"]
        assert len(registry) == 3

    def test_forget(self) -> None:
        registry = JobRegistry()
        registry.add(_job("a"))
        registry.forget("a")
        registry.forget("a")
        assert "a" not in registry

    def test_iteration_is_a_snapshot(self) -> None:
        registry = JobRegistry()
        registry.add(_job("a"))
        registry.add(_job("b"))
        for record in registry:
            registry.forget(record.job.job_id)
        assert len(registry) == 0
