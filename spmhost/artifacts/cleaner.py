"""Size-bounded eviction of old artifacts.

After each upload the artifacts directory is checked against the configured
budget. When it is over, artifacts are deleted oldest first until the total
fits. There is no floor: if the newest artifact alone is larger than the
budget, it goes too.

A pass never raises. Listing, stat and delete failures are logged and the
pass carries on with what it can do. Passes triggered by concurrent uploads
are not coordinated; a file already removed by another pass is logged as a
failed deletion and skipped.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock

from spmhost.artifacts.store import scan_artifacts

logger = logging.getLogger(__name__)


@dataclass
class EvictionReport:
    """Outcome of one eviction pass."""

    total_before: int = 0
    total_after: int = 0
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def clean_artifacts(directory: Path, max_size_bytes: int) -> EvictionReport:
    """Delete the oldest artifacts in *directory* until it fits *max_size_bytes*."""
    report = EvictionReport()
    logger.info("Checking artifact directory size limit: %d bytes", max_size_bytes)

    try:
        files = scan_artifacts(Path(directory))
    except OSError as exc:
        logger.warning("Could not enumerate artifacts directory %s: %s", directory, exc)
        return report

    total_size = sum(f.size_bytes for f in files)
    report.total_before = total_size
    report.total_after = total_size
    logger.info("Current artifacts size: %d bytes", total_size)

    if total_size <= max_size_bytes:
        logger.info("Artifacts size is within limit.")
        return report

    # sorted() is stable, so equal timestamps keep scan order
    files = sorted(files, key=lambda f: f.created_at)

    current_size = total_size
    for artifact in files:
        if current_size <= max_size_bytes:
            break
        try:
            artifact.path.unlink()
        except OSError as exc:
            logger.error("Failed to delete artifact %s: %s", artifact.filename, exc)
            report.failed.append(artifact.filename)
            continue
        current_size -= artifact.size_bytes
        report.deleted.append(artifact.filename)
        logger.info(
            "Deleted artifact to free space: %s (%d bytes)",
            artifact.filename, artifact.size_bytes,
        )

    report.total_after = current_size
    logger.info("Cleanup complete. New size: %d bytes", current_size)
    return report


class EvictionScheduler:
    """Runs eviction passes in the background.

    `schedule()` returns immediately; the pass runs on a worker thread and is
    not tied to the request that triggered it. Call `drain()` to wait for
    pending passes (tests) and `shutdown()` when the application stops.
    """

    def __init__(self, max_workers: int = 2) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="artifact-eviction",
        )
        self._pending: set[Future] = set()
        self._lock = Lock()

    def schedule(self, directory: Path, max_size_bytes: int) -> Future:
        future = self._executor.submit(clean_artifacts, directory, max_size_bytes)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        exc = future.exception() if not future.cancelled() else None
        if exc is not None:
            logger.error("Eviction pass crashed: %s", exc, exc_info=exc)

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def drain(self, timeout: float | None = None) -> None:
        """Block until every pass scheduled so far has finished."""
        with self._lock:
            futures = list(self._pending)
        wait(futures, timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
