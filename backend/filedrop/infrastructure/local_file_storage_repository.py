"""
Local File Storage Repository Implementation

Concrete implementation of IEnumerableStorageBackend for the local
filesystem. Content lives under ``files_path/<key>`` and a JSON metadata
record under ``meta_path/<key>``.
"""

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

from werkzeug.utils import send_file
from werkzeug.wrappers import Response

from filedrop.domain.errors import (
    BadMetadataError,
    FileEmptyError,
    InsufficientDiskSpaceError,
    NotFoundError,
    StorageError,
)
from filedrop.domain.file_storage.entities import Metadata
from filedrop.domain.file_storage.expiry import expiry_from_epoch, expiry_to_epoch, utcnow
from filedrop.domain.file_storage.storage_repository import IEnumerableStorageBackend

from .archive_inspector import list_archive_entries
from .content_inspector import copy_and_inspect

logger = logging.getLogger(__name__)

GIGABYTE = 1024 * 1024 * 1024


def metadata_to_json(metadata: Metadata) -> Dict[str, Any]:
    """Encode Metadata as the on-disk JSON record."""
    record = {
        "original_name": metadata.original_name,
        "delete_key": metadata.delete_key,
        "access_key": metadata.access_key,
        "content_hash": metadata.content_hash,
        "mimetype": metadata.mimetype,
        "size": metadata.size,
        "expiry": expiry_to_epoch(metadata.expiry),
    }
    if metadata.archive_entries:
        record["archive_entries"] = list(metadata.archive_entries)
    return record


def metadata_from_json(record: Dict[str, Any]) -> Metadata:
    """
    Decode an on-disk JSON record.

    Raises:
        BadMetadataError: If required fields are missing or malformed
    """
    try:
        return Metadata(
            original_name=str(record.get("original_name", "")),
            delete_key=str(record.get("delete_key", "")),
            access_key=str(record.get("access_key", "")),
            content_hash=str(record["content_hash"]),
            mimetype=str(record["mimetype"]),
            size=int(record["size"]),
            expiry=expiry_from_epoch(record["expiry"]),
            archive_entries=list(record.get("archive_entries") or []),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise BadMetadataError(f"Malformed metadata record: {e}", e)


class LocalFilesystemBackend(IEnumerableStorageBackend):
    """
    Local filesystem implementation of IEnumerableStorageBackend.

    Thread Safety:
        Metadata replacement writes a temporary file and renames it over
        the old record, so readers never observe a half-written record.
        Concurrent writers to one key are not coordinated.

    Attributes:
        files_path: Directory holding content files
        meta_path: Directory holding JSON metadata records
        min_free_space_gb: Free space threshold in GiB, 0 disables the check
    """

    def __init__(self, files_path: str, meta_path: str, min_free_space_gb: float = 0):
        """
        Initialize the local backend.

        Args:
            files_path: Directory for content files
            meta_path: Directory for metadata records
            min_free_space_gb: Minimum free space to keep, in GiB

        Raises:
            OSError: If the directories cannot be created
        """
        self.files_path = Path(files_path)
        self.meta_path = Path(meta_path)
        self.min_free_space_gb = min_free_space_gb
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for directory in (self.files_path, self.meta_path):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise OSError(f"Failed to create storage directory: {directory}") from e

    def _content_path(self, key: str) -> Path:
        return self.files_path / self._checked_key(key)

    def _metadata_path(self, key: str) -> Path:
        return self.meta_path / self._checked_key(key)

    @staticmethod
    def _checked_key(key: str) -> str:
        # Keys are single path segments; anything else never names a stored object
        if not key or key in (".", "..") or "/" in key or "\\" in key or "\x00" in key:
            raise NotFoundError(f"Invalid key: {key!r}")
        return key

    @property
    def _min_free_bytes(self) -> int:
        return int(self.min_free_space_gb * GIGABYTE)

    # IStorageBackend interface methods

    def exists(self, key: str) -> bool:
        try:
            path = self._content_path(key)
        except NotFoundError:
            return False
        try:
            path.stat()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to stat {key}: {e}", e)
        return True

    def head(self, key: str) -> Metadata:
        path = self._metadata_path(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                record = json.load(f)
        except FileNotFoundError as e:
            raise NotFoundError(f"No such key: {key}", e)
        except (OSError, ValueError) as e:
            raise BadMetadataError(f"Unreadable metadata for {key}: {e}", e)

        if not isinstance(record, dict):
            raise BadMetadataError(f"Unexpected metadata record for {key}")
        return metadata_from_json(record)

    def get(self, key: str) -> Tuple[Metadata, BinaryIO]:
        metadata = self.head(key)
        try:
            stream = open(self._content_path(key), "rb")
        except FileNotFoundError as e:
            raise NotFoundError(f"No content for key: {key}", e)
        except OSError as e:
            raise StorageError(f"Failed to open {key}: {e}", e)
        return metadata, stream

    def put(
        self,
        key: str,
        original_name: str,
        src: BinaryIO,
        expiry: Optional[datetime],
        delete_key: str,
        access_key: str,
    ) -> Metadata:
        free_before = None
        if self.min_free_space_gb > 0:
            free_before = self._free_bytes()
            if free_before < self._min_free_bytes:
                raise InsufficientDiskSpaceError(
                    f"Insufficient disk space: {free_before / GIGABYTE:.2f} GB free, "
                    f"minimum required is {self.min_free_space_gb:.2f} GB"
                )

        content_path = self._content_path(key)
        try:
            with open(content_path, "wb") as dst:
                summary = copy_and_inspect(src, dst)
        except OSError as e:
            self._discard(content_path)
            raise StorageError(f"Failed to write {key}: {e}", e)
        except BaseException:
            # Source failures (client disconnects, remote timeouts) included
            self._discard(content_path)
            raise

        if summary.size == 0:
            self._discard(content_path)
            raise FileEmptyError("Empty upload")

        if free_before is not None:
            free_after = free_before - summary.size
            if free_after < self._min_free_bytes:
                self._discard(content_path)
                raise InsufficientDiskSpaceError(
                    f"Insufficient disk space: would have {free_after / GIGABYTE:.2f} GB free "
                    f"after upload, minimum required is {self.min_free_space_gb:.2f} GB"
                )

        try:
            with open(content_path, "rb") as stored:
                archive_entries = list_archive_entries(summary.mimetype, stored)
        except OSError as e:
            self._discard(content_path)
            raise StorageError(f"Failed to reopen {key}: {e}", e)

        metadata = Metadata(
            original_name=original_name,
            delete_key=delete_key,
            access_key=access_key,
            content_hash=summary.content_hash,
            mimetype=summary.mimetype,
            size=summary.size,
            expiry=expiry,
            archive_entries=archive_entries,
        )

        try:
            self._write_metadata(key, metadata)
        except StorageError:
            self._discard(content_path)
            raise

        logger.debug(f"Stored {key} ({summary.size} bytes, {summary.mimetype})")
        return metadata

    def put_metadata(self, key: str, metadata: Metadata) -> None:
        self._write_metadata(key, metadata)

    def serve(self, key: str, environ: Dict[str, Any]) -> Response:
        metadata = self.head(key)
        path = self._content_path(key)
        if not path.is_file():
            raise NotFoundError(f"No content for key: {key}")
        try:
            return send_file(
                str(path),
                environ,
                mimetype=metadata.mimetype or None,
                conditional=True,
                etag=False,
                max_age=None,
            )
        except OSError as e:
            raise StorageError(f"Failed to serve {key}: {e}", e)

    def size(self, key: str) -> int:
        try:
            return self._content_path(key).stat().st_size
        except FileNotFoundError as e:
            raise NotFoundError(f"No such key: {key}", e)
        except OSError as e:
            raise StorageError(f"Failed to stat {key}: {e}", e)

    def delete(self, key: str) -> None:
        errors = []
        for path in (self._content_path(key), self._metadata_path(key)):
            try:
                os.remove(path)
            except OSError as e:
                errors.append(e)
        if errors:
            raise StorageError(f"Failed to delete {key}", errors=errors)

    # IEnumerableStorageBackend interface methods

    def list(self) -> List[str]:
        try:
            return sorted(entry.name for entry in os.scandir(self.files_path) if entry.is_file())
        except OSError as e:
            raise StorageError(f"Failed to list {self.files_path}: {e}", e)

    def list_orphans(self, grace_seconds: int, now: Optional[datetime] = None) -> List[str]:
        """
        List content files that have no metadata record.

        Files younger than the grace period are skipped since their upload
        may still be in progress.

        Args:
            grace_seconds: Minimum age in seconds
            now: Reference time (defaults to the current UTC time)

        Returns:
            Keys of orphaned content files
        """
        if now is None:
            now = utcnow()
        cutoff = (now - timedelta(seconds=grace_seconds)).timestamp()

        orphans = []
        for key in self.list():
            if self._metadata_path(key).exists():
                continue
            try:
                modified = self._content_path(key).stat().st_mtime
            except FileNotFoundError:
                continue
            if modified < cutoff:
                orphans.append(key)
        return orphans

    def delete_orphan(self, key: str) -> None:
        """
        Remove a content file that has no metadata record.

        Raises:
            StorageError: If the file cannot be removed
        """
        try:
            os.remove(self._content_path(key))
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to delete orphan {key}: {e}", e)

    # Helpers

    def _free_bytes(self) -> int:
        try:
            return shutil.disk_usage(self.files_path).free
        except OSError as e:
            raise StorageError(f"Failed to check disk usage: {e}", e)

    def _write_metadata(self, key: str, metadata: Metadata) -> None:
        target = self._metadata_path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.meta_path, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(metadata_to_json(metadata), f)
            os.replace(tmp_name, target)
        except (OSError, TypeError, ValueError) as e:
            self._discard(Path(tmp_name))
            raise StorageError(f"Failed to write metadata for {key}: {e}", e)

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial file {path}: {e}")
