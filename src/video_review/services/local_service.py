"""Local-directory review backend: videos on disk, document beside them."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from video_review.models import DEFAULT_VIDEO_EXTENSIONS, InitPayload, ReviewSnapshot, VideoDescriptor
from video_review.services.interfaces import StorageError
from video_review.snapshot import DB_FILENAME, SnapshotFormatError, decode_snapshot, encode_snapshot

logger = logging.getLogger(__name__)


def scan_video_files(root: Path, extensions: Sequence[str]) -> list[str]:
    """Return sorted POSIX paths (relative to ``root``) of all video files."""
    suffixes = tuple(ext.lower() for ext in extensions)
    keys = [
        path.relative_to(root).as_posix()
        for path in root.rglob("*")
        if path.is_file() and path.name != DB_FILENAME and path.name.lower().endswith(suffixes)
    ]
    return sorted(keys)


def write_atomic(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` via tempfile + os.replace()."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=".review_db-")
    closed = False
    try:
        os.write(fd, data)
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class LocalReviewBackend:
    """Review store rooted at a local directory."""

    page_size: int | None = None

    def __init__(self, root: str | Path, *, video_extensions: Sequence[str] | None = None) -> None:
        self.root = Path(root).expanduser()
        self.video_extensions = list(video_extensions or DEFAULT_VIDEO_EXTENSIONS)
        self._video_keys: list[str] = []

    @property
    def description(self) -> str:
        return str(self.root)

    @property
    def db_path(self) -> Path:
        return self.root / DB_FILENAME

    async def init(self) -> InitPayload:
        return await asyncio.to_thread(self._init_sync)

    def _init_sync(self) -> InitPayload:
        if not self.root.is_dir():
            raise StorageError(f"{self.root} is not a directory")
        try:
            keys = scan_video_files(self.root, self.video_extensions)
            snapshot = self._load_document()
        except OSError as e:
            raise StorageError(f"Could not read {self.root}: {e}") from e
        self._video_keys = keys
        logger.info("Found %d videos under %s", len(keys), self.root)
        return InitPayload(video_keys=keys, labels=snapshot.labels, last_page=snapshot.last_page)

    def _load_document(self) -> ReviewSnapshot:
        if not self.db_path.exists():
            logger.info("No review document at %s, using defaults", self.db_path)
            return ReviewSnapshot()
        try:
            return decode_snapshot(self.db_path.read_bytes())
        except (SnapshotFormatError, UnicodeDecodeError) as e:
            raise StorageError(f"Review document {self.db_path} is unreadable: {e}") from e

    async def fetch_page(self, page: int, page_size: int) -> list[VideoDescriptor]:
        start = max(0, page) * page_size
        return [
            VideoDescriptor(key=key, url=(self.root / key).resolve().as_uri())
            for key in self._video_keys[start : start + page_size]
        ]

    async def save(self, snapshot: ReviewSnapshot) -> None:
        try:
            await asyncio.to_thread(write_atomic, self.db_path, encode_snapshot(snapshot))
        except OSError as e:
            raise StorageError(f"Failed to write {self.db_path}: {e}", retryable=True) from e

    async def health(self) -> bool:
        return self.root.is_dir()

    async def aclose(self) -> None:
        return None


__all__ = ["LocalReviewBackend", "scan_video_files", "write_atomic"]
