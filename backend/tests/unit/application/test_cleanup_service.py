"""
Unit tests for CleanupService and PeriodicCleanup

Tests the expired-object sweep, the orphan pass with its grace period,
error accounting, and the in-process timer thread.
"""

import io
import threading
from datetime import timedelta
from unittest.mock import Mock, patch

import pytest

from filedrop.application.cleanup_service import (
    ORPHAN_GRACE_SECONDS,
    CleanupService,
    CleanupStats,
    PeriodicCleanup,
)
from filedrop.domain.errors import BadMetadataError, StorageError

from tests.fixtures import REFERENCE_NOW, fixed_clock


def stage(backend, key, expires_in=None):
    expiry = None if expires_in is None else REFERENCE_NOW + timedelta(seconds=expires_in)
    backend.put(key, key, io.BytesIO(b"data"), expiry, "dk", "")


@pytest.fixture
def service(memory_backend):
    return CleanupService(memory_backend, clock=fixed_clock())


@pytest.mark.unit
class TestExpiredSweep:
    """Removal of expired objects."""

    def test_removes_only_expired(self, service, memory_backend):
        # Arrange
        stage(memory_backend, "expired001.txt", expires_in=-10)
        stage(memory_backend, "expired002.txt", expires_in=0)
        stage(memory_backend, "active0001.txt", expires_in=10)
        stage(memory_backend, "forever001.txt")

        # Act
        stats = service.cleanup_expired_files()

        # Assert
        assert stats.scanned == 4
        assert stats.expired_files_removed == 2
        assert stats.errors == []
        assert sorted(memory_backend.contents) == ["active0001.txt", "forever001.txt"]

    def test_empty_backend(self, service):
        assert service.cleanup_expired_files() == CleanupStats()

    def test_delete_failure_recorded_and_sweep_continues(self, service, memory_backend):
        stage(memory_backend, "expired001.txt", expires_in=-10)
        stage(memory_backend, "expired002.txt", expires_in=-10)
        memory_backend.fail_delete_for.add("expired001.txt")

        stats = service.cleanup_expired_files()

        assert stats.expired_files_removed == 1
        assert len(stats.errors) == 1
        assert "expired001.txt" in stats.errors[0]
        assert "expired002.txt" not in memory_backend.contents

    def test_unreadable_metadata_recorded(self, service, memory_backend):
        stage(memory_backend, "broken0001.txt", expires_in=-10)

        with patch.object(memory_backend, "head", side_effect=BadMetadataError("corrupt")):
            stats = service.cleanup_expired_files()

        assert stats.expired_files_removed == 0
        assert len(stats.errors) == 1
        assert "broken0001.txt" in memory_backend.contents

    def test_listing_failure_propagates(self, service, memory_backend):
        with patch.object(memory_backend, "list", side_effect=StorageError("unreadable")):
            with pytest.raises(StorageError):
                service.cleanup_expired_files()


@pytest.mark.unit
class TestOrphanPass:
    """Removal of content without metadata."""

    def test_old_orphan_removed(self, service, memory_backend):
        old = REFERENCE_NOW - timedelta(seconds=ORPHAN_GRACE_SECONDS + 1)
        memory_backend.add_orphan("orphan0001.txt", b"partial", old)

        stats = service.cleanup_expired_files()

        assert stats.orphaned_files_cleaned == 1
        assert "orphan0001.txt" not in memory_backend.contents

    def test_young_orphan_kept(self, service, memory_backend):
        recent = REFERENCE_NOW - timedelta(seconds=60)
        memory_backend.add_orphan("uploading1.txt", b"partial", recent)

        stats = service.cleanup_expired_files()

        assert stats.orphaned_files_cleaned == 0
        assert "uploading1.txt" in memory_backend.contents

    def test_orphans_not_counted_as_errors(self, service, memory_backend):
        old = REFERENCE_NOW - timedelta(days=1)
        memory_backend.add_orphan("orphan0001.txt", b"partial", old)

        stats = service.cleanup_expired_files()

        assert stats.errors == []
        assert stats.scanned == 1

    def test_custom_grace_period(self, memory_backend):
        service = CleanupService(memory_backend, orphan_grace_seconds=30, clock=fixed_clock())
        memory_backend.add_orphan("orphan0001.txt", b"partial", REFERENCE_NOW - timedelta(seconds=60))

        assert service.cleanup_expired_files().orphaned_files_cleaned == 1

    def test_orphan_listing_failure_recorded(self, service, memory_backend):
        stage(memory_backend, "expired001.txt", expires_in=-10)

        with patch.object(memory_backend, "list_orphans", side_effect=StorageError("denied")):
            stats = service.cleanup_expired_files()

        assert stats.expired_files_removed == 1
        assert len(stats.errors) == 1


@pytest.mark.unit
class TestCleanupStats:
    """Test CleanupStats.to_dict()."""

    def test_to_dict(self):
        stats = CleanupStats(scanned=3, expired_files_removed=1, errors=["x"])

        assert stats.to_dict() == {
            "scanned": 3,
            "expired_files_removed": 1,
            "orphaned_files_cleaned": 0,
            "errors": ["x"],
        }


@pytest.mark.unit
class TestPeriodicCleanup:
    """Test the timer thread."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            PeriodicCleanup(Mock(), 0)

    def test_runs_sweeps_until_stopped(self):
        # Arrange
        swept = threading.Event()
        service = Mock()
        service.cleanup_expired_files.side_effect = lambda: swept.set()
        periodic = PeriodicCleanup(service, 0.01)

        # Act
        periodic.start()
        try:
            assert swept.wait(5)
            assert periodic.running
        finally:
            periodic.stop(timeout=5)

        # Assert
        assert not periodic.running
        assert service.cleanup_expired_files.call_count >= 1

    def test_survives_failing_sweep(self):
        swept = threading.Event()
        calls = []

        def sweep():
            calls.append(1)
            if len(calls) == 1:
                raise StorageError("disk gone")
            swept.set()

        service = Mock()
        service.cleanup_expired_files.side_effect = sweep
        periodic = PeriodicCleanup(service, 0.01)

        periodic.start()
        try:
            assert swept.wait(5)
        finally:
            periodic.stop(timeout=5)

        assert len(calls) >= 2

    def test_start_is_idempotent(self):
        periodic = PeriodicCleanup(Mock(), 60)

        periodic.start()
        thread = periodic._thread
        periodic.start()
        try:
            assert periodic._thread is thread
        finally:
            periodic.stop(timeout=5)
