"""
Mock Repository Implementations

In-memory implementation of the storage backend interface for unit testing.
Provides realistic behavior with inspection methods for test assertions.
"""

import io
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

from werkzeug.http import parse_range_header
from werkzeug.wrappers import Response

from filedrop.domain.errors import FileEmptyError, NotFoundError, StorageError
from filedrop.domain.file_storage.entities import Metadata
from filedrop.domain.file_storage.expiry import utcnow
from filedrop.domain.file_storage.storage_repository import IEnumerableStorageBackend
from filedrop.infrastructure.content_inspector import copy_and_inspect


class InMemoryStorageBackend(IEnumerableStorageBackend):
    """
    In-memory implementation of IEnumerableStorageBackend.

    Content and metadata live in separate dicts so that orphans (content
    without metadata) can be staged with add_orphan().
    """

    def __init__(self):
        self.contents: Dict[str, bytes] = {}
        self.metadata: Dict[str, Metadata] = {}
        self.created: Dict[str, datetime] = {}
        self._call_history: List[Dict[str, Any]] = []
        self.fail_delete_for: set = set()

    def _record(self, method: str, **args) -> None:
        self._call_history.append({"method": method, "args": args})

    def exists(self, key: str) -> bool:
        self._record("exists", key=key)
        return key in self.contents

    def head(self, key: str) -> Metadata:
        self._record("head", key=key)
        if key not in self.metadata:
            raise NotFoundError(f"No such key: {key}")
        return self.metadata[key]

    def get(self, key: str) -> Tuple[Metadata, BinaryIO]:
        self._record("get", key=key)
        metadata = self.head(key)
        return metadata, io.BytesIO(self.contents[key])

    def put(
        self,
        key: str,
        original_name: str,
        src: BinaryIO,
        expiry: Optional[datetime],
        delete_key: str,
        access_key: str,
    ) -> Metadata:
        self._record("put", key=key, original_name=original_name)
        buffer = io.BytesIO()
        summary = copy_and_inspect(src, buffer)
        if summary.size == 0:
            raise FileEmptyError("Empty upload")

        metadata = Metadata(
            original_name=original_name,
            delete_key=delete_key,
            access_key=access_key,
            content_hash=summary.content_hash,
            mimetype=summary.mimetype,
            size=summary.size,
            expiry=expiry,
        )
        self.contents[key] = buffer.getvalue()
        self.metadata[key] = metadata
        self.created[key] = utcnow()
        return metadata

    def put_metadata(self, key: str, metadata: Metadata) -> None:
        self._record("put_metadata", key=key)
        self.metadata[key] = metadata

    def serve(self, key: str, environ: Dict[str, Any]) -> Response:
        self._record("serve", key=key)
        metadata = self.head(key)
        data = self.contents[key]

        byte_range = parse_range_header(environ.get("HTTP_RANGE"))
        span = byte_range.range_for_length(len(data)) if byte_range else None
        if span is None:
            response = Response(data, mimetype=metadata.mimetype)
        else:
            start, stop = span
            response = Response(data[start:stop], status=206, mimetype=metadata.mimetype)
            response.headers["Content-Range"] = byte_range.to_content_range_header(len(data))
        response.headers["Accept-Ranges"] = "bytes"
        return response

    def size(self, key: str) -> int:
        self._record("size", key=key)
        if key not in self.contents:
            raise NotFoundError(f"No such key: {key}")
        return len(self.contents[key])

    def delete(self, key: str) -> None:
        self._record("delete", key=key)
        if key in self.fail_delete_for:
            raise StorageError(f"Failed to delete {key}", errors=[OSError("simulated")])
        errors = []
        for store in (self.contents, self.metadata):
            if store.pop(key, None) is None:
                errors.append(FileNotFoundError(key))
        self.created.pop(key, None)
        if errors:
            raise StorageError(f"Failed to delete {key}", errors=errors)

    def list(self) -> List[str]:
        self._record("list")
        return sorted(self.contents)

    def list_orphans(self, grace_seconds: int, now: Optional[datetime] = None) -> List[str]:
        self._record("list_orphans", grace_seconds=grace_seconds)
        if now is None:
            now = utcnow()
        cutoff = now - timedelta(seconds=grace_seconds)
        return sorted(
            key for key in self.contents
            if key not in self.metadata and self.created[key] < cutoff
        )

    def delete_orphan(self, key: str) -> None:
        self._record("delete_orphan", key=key)
        self.contents.pop(key, None)
        self.created.pop(key, None)

    # Test helpers

    def add_orphan(self, key: str, data: bytes, created: datetime) -> None:
        """Stage content without metadata, as left by an interrupted upload."""
        self.contents[key] = data
        self.created[key] = created

    def get_call_history(self) -> List[Dict[str, Any]]:
        """Get history of all method calls."""
        return self._call_history.copy()

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        """Get the recorded arguments of every call to one method."""
        return [call["args"] for call in self._call_history if call["method"] == method]

    def clear(self) -> None:
        """Clear all stored objects and call history."""
        self.contents.clear()
        self.metadata.clear()
        self.created.clear()
        self._call_history.clear()
