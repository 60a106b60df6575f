"""On-disk artifact storage.

The artifacts directory is the only state the server has: there is no
index or database, and every call re-reads the directory. Artifacts are
written once and never modified, so a file's modification time is the
moment its upload finished and is used as its creation time.

Only regular files directly inside the directory are artifacts.
Subdirectories are ignored by size accounting and by eviction alike.

Concurrency:
  Nothing here takes a lock. Two uploads with the same name can both see
  the name as free and the later write wins, and an eviction pass can
  remove a file between a download's existence check and its open. The
  download path reports the second case as not found.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from spmhost.artifacts.errors import ArtifactNotFoundError, InvalidArtifactError

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = ".zip"
SUFFIX_LENGTH = 6
DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ArtifactFile:
    """A stored artifact as seen by a directory scan."""

    path: Path
    size_bytes: int
    created_at: float

    @property
    def filename(self) -> str:
        return self.path.name


def validate_filename(filename: str) -> None:
    """Reject names that could escape the artifacts directory.

    Raises:
        InvalidArtifactError: If the name is empty or contains a path
            separator, a `..` component or a null byte.
    """
    if not filename or not filename.strip():
        raise InvalidArtifactError("Filename must not be empty")
    if "/" in filename or "\\" in filename:
        raise InvalidArtifactError(f"Invalid filename: path separator in {filename!r}")
    # Separators are already excluded, so ".." can only be the whole name.
    if filename in (".", ".."):
        raise InvalidArtifactError(f"Invalid filename: path traversal in {filename!r}")
    if "\x00" in filename:
        raise InvalidArtifactError(f"Invalid filename: null byte in {filename!r}")


def is_archive(filename: str) -> bool:
    return filename.lower().endswith(ARCHIVE_EXTENSION)


def scan_artifacts(directory: Path) -> list[ArtifactFile]:
    """Return every regular file directly under *directory*.

    Entries whose metadata cannot be read (typically because they were
    deleted mid-scan) are logged and skipped. A missing directory scans as
    empty. Any other failure to list the directory propagates.
    """
    try:
        entries = list(os.scandir(directory))
    except FileNotFoundError:
        return []

    files: list[ArtifactFile] = []
    for entry in entries:
        try:
            if not entry.is_file():
                continue
            stat = entry.stat()
        except OSError as exc:
            logger.warning("Skipping artifact %s: cannot read metadata: %s", entry.name, exc)
            continue
        files.append(
            ArtifactFile(
                path=Path(entry.path),
                size_bytes=stat.st_size,
                created_at=stat.st_mtime,
            )
        )
    return files


def _close_after(handle, chunk_size: int) -> Iterator[bytes]:
    try:
        while True:
            chunk = handle.read(chunk_size)
            if not chunk:
                break
            yield chunk
    finally:
        handle.close()


class ArtifactStore:
    """Reads and writes artifacts in a single directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, filename: str) -> Path:
        return self.directory / filename

    def resolve_collision_safe_name(self, requested: str) -> str:
        """Return *requested*, or a suffixed variant if the name is taken.

        ``build.zip`` becomes ``build-1a2b3c.zip`` when ``build.zip`` is
        already stored. The existing file is never touched.
        """
        if not self.path_for(requested).exists():
            return requested

        stem, extension = os.path.splitext(requested)
        suffix = uuid.uuid4().hex[:SUFFIX_LENGTH]
        final = f"{stem}-{suffix}{extension}"
        logger.info("Artifact %s already exists, storing as %s", requested, final)
        return final

    def write(self, data: bytes, filename: str) -> Path:
        """Write *data* to the artifacts directory under *filename*.

        Creates the directory on first use. If the write fails, whatever was
        written is removed so a truncated archive is never served.

        Raises:
            OSError: If the directory cannot be created or the write fails.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(filename)
        try:
            with open(path, "wb") as fh:
                fh.write(data)
        except OSError:
            try:
                path.unlink(missing_ok=True)
            except OSError as cleanup_exc:
                logger.error("Could not remove partial artifact %s: %s", path, cleanup_exc)
            raise
        return path

    def aggregate_size(self) -> int:
        """Total bytes currently stored, read fresh from disk."""
        return sum(f.size_bytes for f in scan_artifacts(self.directory))

    def resolve_read_path(self, filename: str) -> Path:
        """Return the path of a stored artifact.

        Raises:
            ArtifactNotFoundError: If the name is invalid or no such file exists.
        """
        try:
            validate_filename(filename)
        except InvalidArtifactError:
            raise ArtifactNotFoundError(filename) from None

        path = self.path_for(filename)
        if not path.is_file():
            raise ArtifactNotFoundError(filename)
        return path

    def open_stream(
        self,
        filename: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> tuple[Iterator[bytes], int]:
        """Open an artifact for a streamed read.

        Returns a chunk iterator that closes the file once exhausted, and the
        file size at open time.

        Raises:
            ArtifactNotFoundError: If the file does not exist or disappeared
                after the existence check.
        """
        path = self.resolve_read_path(filename)
        try:
            handle = open(path, "rb")
        except FileNotFoundError:
            raise ArtifactNotFoundError(filename) from None

        size = os.fstat(handle.fileno()).st_size
        return _close_after(handle, chunk_size), size
