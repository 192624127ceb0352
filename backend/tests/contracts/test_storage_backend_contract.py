"""
Storage backend contract tests.

Every backend must behave the same way through the IStorageBackend
interface. The same tests run against the in-memory test double, the
local filesystem backend and the S3 backend on a moto-mocked bucket.
"""

import hashlib
import io

import boto3
import pytest
from moto import mock_aws
from werkzeug.test import create_environ

from filedrop.domain.errors import FileEmptyError, NotFoundError
from filedrop.domain.file_storage.storage_repository import IStorageBackend
from filedrop.infrastructure.local_file_storage_repository import LocalFilesystemBackend
from filedrop.infrastructure.s3_storage_repository import S3StorageBackend

from tests.fixtures import REFERENCE_NOW, InMemoryStorageBackend

PAYLOAD = b"contract payload: the same bytes everywhere\n" * 10
KEY = "contract01.txt"


@pytest.fixture(params=["memory", "local", "s3"])
def backend(request, tmp_path, monkeypatch):
    """Yield each backend implementation in turn."""
    if request.param == "memory":
        yield InMemoryStorageBackend()
    elif request.param == "local":
        yield LocalFilesystemBackend(str(tmp_path / "files"), str(tmp_path / "meta"))
    else:
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
        monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
        with mock_aws():
            client = boto3.client("s3", region_name="us-east-1")
            client.create_bucket(Bucket="contract")
            yield S3StorageBackend("contract", client=client)


def store(backend, data=PAYLOAD, expiry=None, access_key=""):
    return backend.put(KEY, "notes.txt", io.BytesIO(data), expiry, "delete-me", access_key)


@pytest.mark.integration
class TestStorageBackendContract:
    """Behavior shared by all IStorageBackend implementations."""

    def test_implements_interface(self, backend):
        assert isinstance(backend, IStorageBackend)

    def test_put_computes_summary_from_content(self, backend):
        metadata = store(backend)

        assert metadata.size == len(PAYLOAD)
        assert metadata.content_hash == hashlib.sha256(PAYLOAD).hexdigest()
        assert metadata.mimetype == "text/plain"
        assert metadata.original_name == "notes.txt"
        assert metadata.delete_key == "delete-me"

    def test_head_returns_what_put_returned(self, backend):
        stored = store(backend, expiry=REFERENCE_NOW, access_key="secret")

        fetched = backend.head(KEY)

        assert fetched.expiry == REFERENCE_NOW
        assert fetched.access_key == "secret"
        assert fetched.content_hash == stored.content_hash
        assert fetched.size == stored.size

    def test_never_expiring_survives_roundtrip(self, backend):
        store(backend)

        assert backend.head(KEY).expiry is None

    def test_get_streams_content(self, backend):
        store(backend)

        _, stream = backend.get(KEY)
        try:
            assert stream.read() == PAYLOAD
        finally:
            stream.close()

    def test_exists_and_size(self, backend):
        assert backend.exists(KEY) is False
        store(backend)

        assert backend.exists(KEY) is True
        assert backend.size(KEY) == len(PAYLOAD)

    def test_empty_upload_leaves_nothing(self, backend):
        with pytest.raises(FileEmptyError):
            store(backend, data=b"")

        assert backend.exists(KEY) is False

    def test_missing_key_is_not_found(self, backend):
        with pytest.raises(NotFoundError):
            backend.head("missing001.txt")
        with pytest.raises(NotFoundError):
            backend.get("missing001.txt")

    def test_put_metadata_replaces_record(self, backend):
        stored = store(backend)

        backend.put_metadata(KEY, stored.with_access_key("rotated"))

        assert backend.head(KEY).access_key == "rotated"
        assert backend.size(KEY) == len(PAYLOAD)

    def test_delete_removes_object(self, backend):
        store(backend)

        backend.delete(KEY)

        assert backend.exists(KEY) is False
        with pytest.raises(NotFoundError):
            backend.head(KEY)

    def test_serve_full(self, backend):
        store(backend)

        response = backend.serve(KEY, create_environ())
        response.direct_passthrough = False
        try:
            assert response.status_code == 200
            assert response.get_data() == PAYLOAD
        finally:
            response.close()

    def test_serve_range(self, backend):
        store(backend)

        response = backend.serve(KEY, create_environ(headers={"Range": "bytes=0-7"}))
        response.direct_passthrough = False
        try:
            assert response.status_code == 206
            assert response.get_data() == PAYLOAD[:8]
            assert response.headers["Content-Range"] == f"bytes 0-7/{len(PAYLOAD)}"
        finally:
            response.close()
