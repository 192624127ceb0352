"""
S3 Storage Repository Implementation

Concrete implementation of IStorageBackend for S3-compatible object stores.
Metadata travels as the object's user metadata, so one object holds both
content and metadata and a put is atomic from the store's point of view.

This backend cannot enumerate keys for the cleanup sweep; expired objects
are removed lazily when accessed.
"""

import logging
import tempfile
from datetime import datetime
from typing import Any, BinaryIO, Dict, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from werkzeug.wrappers import Response

from filedrop.domain.errors import (
    DomainError,
    FileEmptyError,
    NotFoundError,
    StorageError,
)
from filedrop.domain.file_storage.entities import Metadata
from filedrop.domain.file_storage.expiry import expiry_from_epoch, expiry_to_epoch
from filedrop.domain.file_storage.storage_repository import IStorageBackend

from .content_inspector import CHUNK_SIZE, copy_and_inspect

logger = logging.getLogger(__name__)

# Error codes S3-compatible stores use for a missing key
NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


def map_metadata(metadata: Metadata) -> Dict[str, str]:
    """Encode Metadata as string-valued S3 user metadata."""
    return {
        "OriginalName": metadata.original_name,
        "Expiry": str(expiry_to_epoch(metadata.expiry)),
        "Deletekey": metadata.delete_key,
        "Size": str(metadata.size),
        "Mimetype": metadata.mimetype,
        "Sha256sum": metadata.content_hash,
        "AccessKey": metadata.access_key,
    }


def unmap_metadata(user_metadata: Dict[str, str]) -> Metadata:
    """
    Decode S3 user metadata.

    Stores return user metadata keys lower-cased, so lookups ignore case.
    Objects written by older releases carry ``Delete_key`` instead of
    ``Deletekey``.

    Attached metadata cannot be half-written, so unparseable values are
    reported as a store failure rather than corruption.

    Raises:
        StorageError: If Expiry or Size cannot be parsed
    """
    values = {name.lower(): value for name, value in (user_metadata or {}).items()}
    try:
        expiry = expiry_from_epoch(int(values["expiry"]))
        size = int(values["size"])
    except (KeyError, ValueError) as e:
        raise StorageError(f"Malformed object metadata: {e}", e)

    return Metadata(
        original_name=values.get("originalname", ""),
        delete_key=values.get("deletekey") or values.get("delete_key", ""),
        access_key=values.get("accesskey", ""),
        content_hash=values.get("sha256sum", ""),
        mimetype=values.get("mimetype", ""),
        size=size,
        expiry=expiry,
    )


def is_not_found(error: ClientError) -> bool:
    """Check whether a ClientError means the key does not exist."""
    code = str(error.response.get("Error", {}).get("Code", ""))
    return code in NOT_FOUND_CODES


class S3StorageBackend(IStorageBackend):
    """
    S3-compatible implementation of IStorageBackend.

    Thread Safety:
        boto3 clients are thread-safe; the backend holds no other state.

    Attributes:
        bucket: Bucket name
        client: boto3 S3 client
    """

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        endpoint: Optional[str] = None,
        force_path_style: bool = False,
        client: Any = None,
    ):
        """
        Initialize the S3 backend.

        Args:
            bucket: Bucket name
            region: Region name, None to use the SDK's default chain
            endpoint: Custom endpoint URL for S3-compatible stores
            force_path_style: Use path-style addressing (needed by most
                self-hosted stores)
            client: Pre-built boto3 client (tests)

        Raises:
            ValueError: If bucket is empty
        """
        if not bucket or not bucket.strip():
            raise ValueError("bucket cannot be empty")

        self.bucket = bucket
        if client is None:
            config = None
            if force_path_style:
                config = Config(s3={"addressing_style": "path"})
            client = boto3.client(
                "s3",
                region_name=region or None,
                endpoint_url=endpoint or None,
                config=config,
            )
        self.client = client

    def _translate(self, key: str, error: Exception) -> DomainError:
        if isinstance(error, ClientError) and is_not_found(error):
            return NotFoundError(f"No such key: {key}", error)
        return StorageError(f"Object store request for {key} failed: {error}", error)

    # IStorageBackend interface methods

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            error = self._translate(key, e)
            if isinstance(error, NotFoundError):
                return False
            raise error
        return True

    def head(self, key: str) -> Metadata:
        try:
            result = self.client.head_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(key, e)
        return unmap_metadata(result.get("Metadata", {}))

    def get(self, key: str) -> Tuple[Metadata, BinaryIO]:
        try:
            result = self.client.get_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(key, e)
        body = result["Body"]
        try:
            metadata = unmap_metadata(result.get("Metadata", {}))
        except StorageError:
            body.close()
            raise
        return metadata, body

    def put(
        self,
        key: str,
        original_name: str,
        src: BinaryIO,
        expiry: Optional[datetime],
        delete_key: str,
        access_key: str,
    ) -> Metadata:
        # Spool first: hash, size and mimetype must be known before the
        # object is created because they travel with it
        with tempfile.TemporaryFile(prefix="filedrop-upload") as spool:
            try:
                summary = copy_and_inspect(src, spool)
            except OSError as e:
                raise StorageError(f"Failed to spool upload for {key}: {e}", e)

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

            spool.seek(0)
            try:
                self.client.upload_fileobj(
                    spool,
                    self.bucket,
                    key,
                    ExtraArgs={
                        "Metadata": map_metadata(metadata),
                        "ContentType": metadata.mimetype,
                    },
                )
            except (ClientError, BotoCoreError) as e:
                raise StorageError(f"Failed to upload {key}: {e}", e)

        logger.debug(f"Stored {key} in bucket {self.bucket} ({summary.size} bytes)")
        return metadata

    def put_metadata(self, key: str, metadata: Metadata) -> None:
        try:
            self.client.copy_object(
                Bucket=self.bucket,
                Key=key,
                CopySource={"Bucket": self.bucket, "Key": key},
                Metadata=map_metadata(metadata),
                MetadataDirective="REPLACE",
                ContentType=metadata.mimetype or "application/octet-stream",
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(key, e)

    def serve(self, key: str, environ: Dict[str, Any]) -> Response:
        request = {"Bucket": self.bucket, "Key": key}
        byte_range = environ.get("HTTP_RANGE")
        if byte_range:
            request["Range"] = byte_range

        try:
            result = self.client.get_object(**request)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(key, e)

        body = result["Body"]
        response = Response(
            body.iter_chunks(chunk_size=CHUNK_SIZE),
            status=206 if byte_range and result.get("ContentRange") else 200,
            mimetype=result.get("ContentType") or "application/octet-stream",
            direct_passthrough=True,
        )
        response.call_on_close(body.close)
        response.headers["Accept-Ranges"] = "bytes"
        if result.get("ContentLength") is not None:
            response.headers["Content-Length"] = str(result["ContentLength"])
        if response.status_code == 206:
            response.headers["Content-Range"] = result["ContentRange"]
        return response

    def size(self, key: str) -> int:
        try:
            result = self.client.head_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._translate(key, e)
        return int(result["ContentLength"])

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete {key}: {e}", e)
