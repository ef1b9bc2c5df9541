"""Infrastructure: the shared output directory.

Implements :class:`~reelwall.core.protocols.ArtifactStore` over a local
directory.  Downloads and transforms write here; the HTTP layer serves
the directory under :data:`UPLOADS_URL_PREFIX`.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from collections.abc import AsyncIterable, Iterable
from pathlib import Path

from reelwall.core.models import CleanupOutcome, PlatformKind
from reelwall.exceptions import UploadTooLargeError

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX: str = "/uploads"

# yt-dlp leaves these behind while a download is still in flight.
_PARTIAL_SUFFIXES: tuple[str, ...] = (".part", ".ytdl", ".temp", ".tmp")
_FORMAT_FRAGMENT = re.compile(r"\.f[\w-]+\.\w+$")
# ffmpeg post-processors write <name>.temp.<ext> before renaming.
_POSTPROCESS_TEMP = re.compile(r"\.temp\.\w+$")
_UNSAFE_NAME_CHARS = re.compile(r"[^\w.-]")


def is_partial(name: str) -> bool:
    """Return ``True`` for in-progress download fragments."""
    lowered = name.lower()
    if lowered.endswith(_PARTIAL_SUFFIXES) or ".part-frag" in lowered:
        return True
    return bool(
        _FORMAT_FRAGMENT.search(lowered) or _POSTPROCESS_TEMP.search(lowered)
    )


class LocalArtifactStore:
    """Directory-backed artifact store.

    Parameters
    ----------
    root:
        Output directory.  Created on first write.
    """

    def __init__(self, root: Path) -> None:
        self._root: Path = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def ensure_root(self) -> Path:
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def download_template(
        self, platform: PlatformKind, video_id: str, job_id: str
    ) -> str:
        root = self.ensure_root()
        safe_id = re.sub(r"[^\w-]", "_", video_id)
        return str(root / f"{platform.value}_{safe_id}_{job_id}.%(ext)s")

    def new_output_path(self, prefix: str, extension: str) -> Path:
        root = self.ensure_root()
        return root / f"{prefix}_{uuid.uuid4()}.{extension}"

    def new_upload_path(self, original_name: str) -> Path:
        """Return ``<uuid>_<name>`` for a client upload, keeping only the base name."""
        root = self.ensure_root()
        base = _UNSAFE_NAME_CHARS.sub("_", Path(original_name.replace("\\", "/")).name)
        return root / f"{uuid.uuid4()}_{base.strip('.') or 'upload'}"

    def contains(self, path: Path) -> bool:
        """Return ``True`` when *path* resolves inside the output directory."""
        return Path(path).resolve().is_relative_to(self._root.resolve())

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_artifact(self, job_id: str) -> Path | None:
        """Return the finished file whose name contains *job_id*."""
        if not job_id or not self._root.is_dir():
            return None
        candidates = sorted(
            entry
            for entry in self._root.iterdir()
            if job_id in entry.name and entry.is_file() and not is_partial(entry.name)
        )
        return candidates[0] if candidates else None

    def size_of(self, path: Path) -> int | None:
        try:
            return path.stat().st_size
        except OSError:
            return None

    def download_url(self, path: Path) -> str:
        return f"{UPLOADS_URL_PREFIX}/{path.name}"

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def save_upload(
        self,
        original_name: str,
        chunks: AsyncIterable[bytes],
        *,
        max_bytes: int,
    ) -> Path:
        """Stream *chunks* into a fresh upload path.

        Raises
        ------
        UploadTooLargeError
            Once more than *max_bytes* arrive; the partial file is removed.
        """
        target = self.new_upload_path(original_name)
        written = 0
        try:
            with target.open("wb") as handle:
                async for chunk in chunks:
                    written += len(chunk)
                    if written > max_bytes:
                        raise UploadTooLargeError(
                            f"Upload exceeds the limit of {max_bytes} bytes.",
                            hint="Trim or compress the video before uploading.",
                        )
                    handle.write(chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise
        logger.info("Stored upload %s (%d bytes)", target.name, written)
        return target

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_many(self, paths: Iterable[str]) -> list[CleanupOutcome]:
        outcomes: list[CleanupOutcome] = []
        for raw in paths:
            path = Path(raw)
            if not self.contains(path):
                outcomes.append(
                    CleanupOutcome(
                        path=raw, status="error", error="Path is outside the output directory",
                    )
                )
                continue
            try:
                if path.is_file():
                    path.unlink()
                    outcomes.append(CleanupOutcome(path=raw, status="deleted"))
                else:
                    outcomes.append(CleanupOutcome(path=raw, status="not_found"))
            except OSError as exc:
                logger.warning("Could not delete %s: %s", raw, exc)
                outcomes.append(CleanupOutcome(path=raw, status="error", error=str(exc)))
        return outcomes

    def evict_older_than(
        self,
        max_age: float,
        *,
        now: float | None = None,
        keep: Iterable[str] = (),
    ) -> list[Path]:
        if not self._root.is_dir():
            return []
        cutoff = (time.time() if now is None else now) - max_age
        protected = tuple(token for token in keep if token)
        removed: list[Path] = []
        for entry in self._root.iterdir():
            if any(token in entry.name for token in protected):
                continue
            try:
                if entry.is_file() and entry.stat().st_mtime < cutoff:
                    entry.unlink()
                    removed.append(entry)
            except OSError as exc:
                logger.warning("Could not evict %s: %s", entry, exc)
        return removed
