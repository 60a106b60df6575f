"""Upload workflow: validate, store, checksum, schedule eviction.

The router handles HTTP concerns (extracting the file, building the public
URL); everything that touches the artifacts directory happens here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from starlette.concurrency import run_in_threadpool

from spmhost.artifacts.checksum import sha256_hex
from spmhost.artifacts.cleaner import EvictionScheduler
from spmhost.artifacts.errors import InvalidArtifactError
from spmhost.artifacts.manifest import package_name_for
from spmhost.artifacts.sizes import format_size
from spmhost.artifacts.store import ARCHIVE_EXTENSION, ArtifactStore, is_archive, validate_filename
from spmhost.core.config import StorageConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    stored_filename: str
    package_name: str
    checksum: str
    size_bytes: int


def _validate_upload(filename: str) -> None:
    validate_filename(filename)
    if not is_archive(filename):
        raise InvalidArtifactError(f"Only {ARCHIVE_EXTENSION} files are allowed")
    if not filename[: -len(ARCHIVE_EXTENSION)]:
        raise InvalidArtifactError(f"Archive name is missing before {ARCHIVE_EXTENSION}")


async def store_upload(
    config: StorageConfig,
    filename: str,
    data: bytes,
    scheduler: Optional[EvictionScheduler] = None,
) -> UploadResult:
    """Persist an uploaded archive and return what the manifest needs.

    Eviction is scheduled after the write when a size limit is configured;
    this coroutine does not wait for it. Filesystem access and hashing run
    in the threadpool.

    Raises:
        InvalidArtifactError: If the filename is unsafe or not a zip archive.
        OSError: If the archive cannot be written.
    """
    _validate_upload(filename)

    store = ArtifactStore(config.artifacts_path)
    final_name = await run_in_threadpool(store.resolve_collision_safe_name, filename)
    await run_in_threadpool(store.write, data, final_name)

    if scheduler is not None and config.max_size_bytes is not None:
        scheduler.schedule(config.artifacts_path, config.max_size_bytes)

    checksum = await run_in_threadpool(sha256_hex, data)
    await run_in_threadpool(_log_remaining_space, store, config.max_size_bytes)

    return UploadResult(
        stored_filename=final_name,
        package_name=package_name_for(filename),
        checksum=checksum,
        size_bytes=len(data),
    )


def _log_remaining_space(store: ArtifactStore, max_size_bytes: Optional[int]) -> None:
    if max_size_bytes is None:
        logger.info("Artifact uploaded. Remaining space: ∞")
        return

    try:
        total = store.aggregate_size()
    except OSError as exc:
        logger.warning("Artifact uploaded. Could not compute remaining space: %s", exc)
        return

    remaining = max(0, max_size_bytes - total)
    logger.info("Artifact uploaded. Remaining space: %s", format_size(remaining))
