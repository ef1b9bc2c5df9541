"""Tests for the pure format pipeline (core/format_filter.py).

Every test is a pure function call — no I/O, no mocking.  Coverage:

* Muxed-only filtering
* Deduplication by (height, ext)
* Sort order (height desc, mp4 preferred)
* Descriptor labels and sizes
* End-to-end pipeline via ``select_muxed_formats``
"""

from __future__ import annotations

from typing import Any

from reelwall.core.format_filter import (
    deduplicate_formats,
    describe_format,
    filter_muxed,
    select_muxed_formats,
    sort_formats,
)
from reelwall.core.models import FormatDescriptor


def _fmt(**overrides: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "format_id": "18",
        "ext": "mp4",
        "height": 720,
        "vcodec": "avc1.64001F",
        "acodec": "mp4a.40.2",
        "filesize": 5_000_000,
        "url": "https://cdn.example/video.mp4",
    }
    defaults.update(overrides)
    return defaults


class TestFilterMuxed:
    def test_keeps_muxed(self) -> None:
        assert len(filter_muxed([_fmt(), _fmt(height=360)])) == 2

    def test_drops_video_only(self) -> None:
        assert filter_muxed([_fmt(acodec="none")]) == []

    def test_drops_audio_only(self) -> None:
        assert filter_muxed([_fmt(vcodec="none", height=None)]) == []

    def test_missing_codecs_treated_as_none(self) -> None:
        assert filter_muxed([{"ext": "mp4", "height": 720}]) == []


class TestDeduplicate:
    def test_first_occurrence_wins(self) -> None:
        first = _fmt(format_id="a")
        second = _fmt(format_id="b")
        assert deduplicate_formats([first, second]) == [first]

    def test_different_ext_kept(self) -> None:
        assert len(deduplicate_formats([_fmt(), _fmt(ext="webm")])) == 2


class TestSort:
    def test_height_desc_then_mp4(self) -> None:
        formats = [
            _fmt(height=360),
            _fmt(height=1080, ext="webm"),
            _fmt(height=1080, ext="mp4"),
            _fmt(height=None),
        ]
        ordered = sort_formats(formats)
        assert [(f["height"], f["ext"]) for f in ordered] == [
            (1080, "mp4"),
            (1080, "webm"),
            (360, "mp4"),
            (None, "mp4"),
        ]


class TestDescribe:
    def test_height_label(self) -> None:
        desc = describe_format(_fmt(height=480))
        assert desc == FormatDescriptor(
            quality_label="480p",
            container="mp4",
            approx_size_bytes=5_000_000,
            source_url="https://cdn.example/video.mp4",
        )

    def test_format_note_when_no_height(self) -> None:
        desc = describe_format(_fmt(height=None, format_note="sd"))
        assert desc.quality_label == "sd"

    def test_unknown_label_and_approx_size(self) -> None:
        desc = describe_format(_fmt(height=None, filesize=None, filesize_approx=1234.0))
        assert desc.quality_label == "Unknown"
        assert desc.approx_size_bytes == 1234

    def test_bool_height_ignored(self) -> None:
        assert describe_format(_fmt(height=True)).quality_label == "Unknown"


class TestSelectMuxedFormats:
    def test_pipeline(self) -> None:
        raw: list[object] = [
            _fmt(height=360, ext="webm"),
            _fmt(height=720),
            _fmt(height=720, format_id="dup"),
            _fmt(height=1080, acodec="none"),
            "garbage",
            None,
        ]
        result = select_muxed_formats(raw)
        assert [d.quality_label for d in result] == ["720p", "360p"]
        assert [d.container for d in result] == ["mp4", "webm"]

    def test_empty(self) -> None:
        assert select_muxed_formats([]) == ()
