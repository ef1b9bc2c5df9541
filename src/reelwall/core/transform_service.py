"""Core media transform service — trim, extract, merge, convert, optimise.

Argument construction is pure: each ``*_args`` function returns the
ffmpeg argument vector for one operation.  :class:`TransformService`
validates inputs, allocates a fresh output path through the injected
:class:`~reelwall.core.protocols.ArtifactStore` and hands the vector to
a :class:`~reelwall.core.protocols.MediaToolRunner`.

Guarantees
----------
* Validation errors are raised before the media tool is started.
* Inputs are never modified; every operation writes a new file.
* Inputs must live inside the output directory.
* Tool failures surface as :class:`~reelwall.exceptions.ProcessingError`.
  A partially written output is left in place.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Iterable
from pathlib import Path
from typing import Any

from reelwall.core.models import (
    AudioStreamInfo,
    CleanupOutcome,
    EncodingPreset,
    MediaInfo,
    TransformOperation,
    TransformResult,
    VideoStreamInfo,
    WallpaperPreset,
)
from reelwall.core.protocols import ArtifactStore, MediaToolRunner
from reelwall.exceptions import InvalidRequestError, MediaFileNotFoundError, ReelwallError

logger = logging.getLogger(__name__)

BASE_ARGS: tuple[str, ...] = ("-hide_banner", "-nostdin", "-y")

ENCODING_PRESETS: dict[str, EncodingPreset] = {
    "low": EncodingPreset(preset="ultrafast", crf=28),
    "medium": EncodingPreset(preset="fast", crf=23),
    "high": EncodingPreset(preset="medium", crf=18),
}

WALLPAPER_PRESETS: dict[str, WallpaperPreset] = {
    "small": WallpaperPreset(width=640, height=360, fps=24, crf=25),
    "medium": WallpaperPreset(width=1280, height=720, fps=30, crf=23),
    "large": WallpaperPreset(width=1920, height=1080, fps=30, crf=20),
}

AUDIO_BITRATE: str = "192k"
AUDIO_SAMPLE_RATE: int = 44100


def encoding_preset(name: str) -> EncodingPreset:
    """Return the named preset, falling back to ``medium``."""
    return ENCODING_PRESETS.get(name.strip().lower(), ENCODING_PRESETS["medium"])


def wallpaper_preset(name: str) -> WallpaperPreset:
    """Return the named size class, falling back to ``medium``."""
    return WALLPAPER_PRESETS.get(name.strip().lower(), WALLPAPER_PRESETS["medium"])


def _seconds(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".")


def _extension(output_format: str) -> str:
    ext = output_format.strip().lstrip(".").lower()
    if not ext or not ext.isalnum():
        raise InvalidRequestError(f"Unsupported output format: {output_format!r}")
    return ext


# ---------------------------------------------------------------------------
# Argument builders (pure)
# ---------------------------------------------------------------------------

def validate_trim_window(start: float, end: float) -> None:
    """Reject negative starts and empty or inverted windows."""
    if start < 0:
        raise InvalidRequestError("Start time must not be negative.")
    if end <= start:
        raise InvalidRequestError(
            "End time must be greater than start time.",
            hint=f"Got start={start:g}s and end={end:g}s.",
        )


def trim_args(source: Path, target: Path, start: float, end: float) -> list[str]:
    """Re-encode the ``[start, end)`` window of *source*."""
    validate_trim_window(start, end)
    preset = ENCODING_PRESETS["medium"]
    return [
        *BASE_ARGS,
        "-ss", _seconds(start),
        "-i", str(source),
        "-t", _seconds(end - start),
        "-c:v", "libx264",
        "-c:a", "aac",
        "-preset", preset.preset,
        "-crf", str(preset.crf),
        str(target),
    ]


def extract_audio_args(source: Path, target: Path, output_format: str) -> list[str]:
    codec = "libmp3lame" if output_format == "mp3" else "aac"
    return [
        *BASE_ARGS,
        "-i", str(source),
        "-vn",
        "-acodec", codec,
        "-ab", AUDIO_BITRATE,
        "-ar", str(AUDIO_SAMPLE_RATE),
        str(target),
    ]


def merge_args(video: Path, audio: Path, target: Path) -> list[str]:
    """Copy video from the first input and re-encode audio from the second."""
    return [
        *BASE_ARGS,
        "-i", str(video),
        "-i", str(audio),
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-c:v", "copy",
        "-c:a", "aac",
        "-shortest",
        str(target),
    ]


def convert_args(source: Path, target: Path, preset: EncodingPreset) -> list[str]:
    return [
        *BASE_ARGS,
        "-i", str(source),
        "-c:v", "libx264",
        "-c:a", "aac",
        "-preset", preset.preset,
        "-crf", str(preset.crf),
        str(target),
    ]


def wallpaper_args(source: Path, target: Path, preset: WallpaperPreset) -> list[str]:
    """Scale, re-time and re-encode for looping playback as a wallpaper."""
    return [
        *BASE_ARGS,
        "-i", str(source),
        "-c:v", "libx264",
        "-c:a", "aac",
        "-preset", "fast",
        "-crf", str(preset.crf),
        "-vf", f"scale={preset.width}:{preset.height}",
        "-r", str(preset.fps),
        "-movflags", "+faststart",
        "-pix_fmt", preset.pixel_format,
        str(target),
    ]


# ---------------------------------------------------------------------------
# Probe parsing (pure)
# ---------------------------------------------------------------------------

def _int_or_none(value: object) -> int | None:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _float_or_none(value: object) -> float | None:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def parse_frame_rate(value: object) -> float | None:
    """Parse an ffprobe rate such as ``"30000/1001"``."""
    if not isinstance(value, str) or not value:
        return _float_or_none(value)
    numerator, _, denominator = value.partition("/")
    num = _float_or_none(numerator)
    if num is None:
        return None
    if not denominator:
        return num
    den = _float_or_none(denominator)
    if not den:
        return None
    return round(num / den, 3)


def parse_probe(path: Path, probe: dict[str, Any]) -> MediaInfo:
    """Convert ``ffprobe -print_format json`` output into :class:`MediaInfo`."""
    fmt: dict[str, Any] = probe.get("format") or {}
    streams = [s for s in probe.get("streams") or [] if isinstance(s, dict)]
    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)

    return MediaInfo(
        path=path,
        size_bytes=_int_or_none(fmt.get("size")),
        duration_seconds=_float_or_none(fmt.get("duration")),
        container=fmt.get("format_name"),
        video=VideoStreamInfo(
            codec=video.get("codec_name"),
            width=_int_or_none(video.get("width")),
            height=_int_or_none(video.get("height")),
            fps=parse_frame_rate(video.get("r_frame_rate")),
            bitrate=_int_or_none(video.get("bit_rate")),
        ) if video is not None else None,
        audio=AudioStreamInfo(
            codec=audio.get("codec_name"),
            sample_rate=_int_or_none(audio.get("sample_rate")),
            channels=_int_or_none(audio.get("channels")),
            bitrate=_int_or_none(audio.get("bit_rate")),
        ) if audio is not None else None,
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class TransformService:
    """Runs one-shot media operations on local files.

    Parameters
    ----------
    runner:
        Any object satisfying the :class:`MediaToolRunner` protocol.
    store:
        Any object satisfying the :class:`ArtifactStore` protocol.
    """

    def __init__(self, runner: MediaToolRunner, store: ArtifactStore) -> None:
        self._runner: MediaToolRunner = runner
        self._store: ArtifactStore = store

    async def trim(
        self,
        input_path: str | Path,
        start: float,
        end: float,
        output_format: str = "mp4",
    ) -> TransformResult:
        validate_trim_window(start, end)
        source = self._require(input_path)
        target = self._store.new_output_path("trimmed", _extension(output_format))
        args = trim_args(source, target, start, end)
        await self._runner.run(args)
        return self._done(
            TransformOperation.TRIM,
            target,
            "Video trimmed successfully",
            start=start,
            end=end,
            duration=end - start,
        )

    async def extract_audio(
        self,
        input_path: str | Path,
        output_format: str = "mp3",
    ) -> TransformResult:
        source = self._require(input_path)
        ext = _extension(output_format)
        target = self._store.new_output_path("audio", ext)
        await self._runner.run(extract_audio_args(source, target, ext))
        return self._done(
            TransformOperation.EXTRACT_AUDIO,
            target,
            "Audio extracted successfully",
            bitrate=AUDIO_BITRATE,
            sample_rate=AUDIO_SAMPLE_RATE,
        )

    async def merge(
        self,
        video_path: str | Path,
        audio_path: str | Path,
        output_format: str = "mp4",
    ) -> TransformResult:
        video = self._require(video_path)
        audio = self._require(audio_path)
        target = self._store.new_output_path("merged", _extension(output_format))
        await self._runner.run(merge_args(video, audio, target))
        return self._done(
            TransformOperation.MERGE, target, "Video and audio merged successfully",
        )

    async def convert(
        self,
        input_path: str | Path,
        output_format: str = "mp4",
        quality: str = "medium",
    ) -> TransformResult:
        source = self._require(input_path)
        preset = encoding_preset(quality)
        target = self._store.new_output_path("converted", _extension(output_format))
        await self._runner.run(convert_args(source, target, preset))
        return self._done(
            TransformOperation.CONVERT,
            target,
            "Video converted successfully",
            preset=preset.preset,
            crf=preset.crf,
        )

    async def optimize_wallpaper(
        self,
        input_path: str | Path,
        target_size: str = "medium",
    ) -> TransformResult:
        source = self._require(input_path)
        preset = wallpaper_preset(target_size)
        target = self._store.new_output_path("wallpaper", "mp4")
        await self._runner.run(wallpaper_args(source, target, preset))
        return self._done(
            TransformOperation.OPTIMIZE_WALLPAPER,
            target,
            (
                f"Video optimized for live wallpaper: {preset.width}x{preset.height} "
                f"@ {preset.fps}fps, {preset.pixel_format}"
            ),
            width=preset.width,
            height=preset.height,
            fps=preset.fps,
            crf=preset.crf,
            pixel_format=preset.pixel_format,
        )

    async def probe(self, input_path: str | Path) -> MediaInfo:
        source = self._require(input_path)
        return parse_probe(source, await self._runner.probe(source))

    async def upload(
        self,
        file_name: str,
        chunks: AsyncIterable[bytes],
        *,
        max_bytes: int,
    ) -> MediaInfo:
        """Store a client upload in the output directory and probe it.

        A stored file that cannot be probed is removed again.

        Raises
        ------
        InvalidRequestError
            When no file name was supplied.
        UploadTooLargeError
            When the upload exceeds *max_bytes*.
        """
        if not file_name or not file_name.strip():
            raise InvalidRequestError("Video file is required.")
        stored = await self._store.save_upload(file_name, chunks, max_bytes=max_bytes)
        try:
            return await self.probe(stored)
        except ReelwallError:
            self._store.delete_many([str(stored)])
            raise

    def cleanup(self, paths: Iterable[str]) -> list[CleanupOutcome]:
        """Best-effort delete; individual failures never abort the batch.

        Paths outside the output directory are reported as errors and
        left untouched.
        """
        return self._store.delete_many(paths)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, raw: str | Path) -> Path:
        if isinstance(raw, str) and not raw.strip():
            raise InvalidRequestError("Input path is required.")
        path = Path(raw)
        if not self._store.contains(path):
            raise InvalidRequestError(
                f"Input path is outside the output directory: {path}",
                hint="Upload the file or use a path returned by another request.",
            )
        if not self._store.exists(path):
            raise MediaFileNotFoundError(f"Input file not found: {path}")
        return path

    @staticmethod
    def _done(
        operation: TransformOperation,
        target: Path,
        message: str,
        **details: Any,
    ) -> TransformResult:
        logger.info("%s finished: %s", operation.value, target)
        return TransformResult(
            operation=operation,
            output_path=target,
            success=True,
            message=message,
            details=details,
        )
