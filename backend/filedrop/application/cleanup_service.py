"""
Cleanup Application Service

Sweeps an enumerable backend for expired objects and orphaned content.
Runs once on demand, on a timer thread inside the web process, or from the
Celery beat task.
"""

import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from filedrop.domain.errors import DomainError, NotFoundError
from filedrop.domain.file_storage.expiry import utcnow
from filedrop.domain.file_storage.storage_repository import IEnumerableStorageBackend

logger = logging.getLogger(__name__)

# Content without metadata younger than this may still be mid-upload
ORPHAN_GRACE_SECONDS = 3600


@dataclass
class CleanupStats:
    """Counters reported by one sweep."""
    scanned: int = 0
    expired_files_removed: int = 0
    orphaned_files_cleaned: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CleanupService:
    """
    Application service removing expired and orphaned objects.

    Failures on individual keys are logged and counted; the sweep always
    visits every key.
    """

    def __init__(
        self,
        storage: IEnumerableStorageBackend,
        orphan_grace_seconds: int = ORPHAN_GRACE_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize CleanupService.

        Args:
            storage: Enumerable storage backend
            orphan_grace_seconds: Minimum age of orphaned content to remove
            clock: Source of the current time
        """
        self.storage = storage
        self.orphan_grace_seconds = orphan_grace_seconds
        self.clock = clock

    def cleanup_expired_files(self) -> CleanupStats:
        """
        Delete every expired object, then every old orphan.

        Returns:
            CleanupStats for this sweep

        Raises:
            StorageError: If the backend cannot be listed at all
        """
        stats = CleanupStats()
        now = self.clock()

        keys = self.storage.list()
        for key in keys:
            stats.scanned += 1
            try:
                metadata = self.storage.head(key)
            except NotFoundError:
                # Content without metadata: handled by the orphan pass
                continue
            except DomainError as e:
                self._record(stats, f"Failed to read metadata for {key}: {e}")
                continue

            if not metadata.is_expired(now):
                continue

            try:
                self.storage.delete(key)
            except DomainError as e:
                self._record(stats, f"Failed to delete expired file {key}: {e}")
                continue
            stats.expired_files_removed += 1
            logger.info(f"Deleted expired file: {key}")

        try:
            orphans = self.storage.list_orphans(self.orphan_grace_seconds, now)
        except DomainError as e:
            self._record(stats, f"Failed to list orphaned files: {e}")
            orphans = []

        for key in orphans:
            try:
                self.storage.delete_orphan(key)
            except DomainError as e:
                self._record(stats, f"Failed to delete orphaned file {key}: {e}")
                continue
            stats.orphaned_files_cleaned += 1
            logger.info(f"Removed orphaned file: {key}")

        logger.info(
            f"Cleanup completed - Scanned: {stats.scanned}, "
            f"Expired: {stats.expired_files_removed}, "
            f"Orphaned: {stats.orphaned_files_cleaned}, "
            f"Errors: {len(stats.errors)}"
        )
        return stats

    @staticmethod
    def _record(stats: CleanupStats, message: str) -> None:
        stats.errors.append(message)
        logger.warning(message)


class PeriodicCleanup:
    """
    Daemon thread running a sweep at a fixed interval.

    The first sweep runs one interval after start().
    """

    def __init__(self, service: CleanupService, interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.service = service
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="filedrop-cleanup", daemon=True
        )
        self._thread.start()
        logger.info(f"Periodic cleanup started (every {self.interval_seconds:.0f}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.service.cleanup_expired_files()
            except Exception as e:
                # Keep the timer alive; the next tick retries
                logger.error(f"Periodic cleanup failed: {e}", exc_info=True)
