"""
Storage Backend Interface

Abstract interface for content and metadata persistence.
This abstraction keeps the upload pipeline, the access layer and cleanup
independent of the storage medium: they depend on this capability set,
never on a concrete backend.

Two implementations exist: the local filesystem backend (enumerable, used
by the cleanup sweep) and the S3-compatible object store backend.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, BinaryIO, Dict, List, Optional, Tuple

from .entities import Metadata

if TYPE_CHECKING:
    from werkzeug.wrappers import Response


class IStorageBackend(ABC):
    """
    Unified interface for storing objects together with their metadata.

    Contract Guarantees:
    - Content and metadata are written together by put(); a failed put
      leaves neither behind
    - Content bytes under a key never change after put(); only
      put_metadata() may replace the metadata
    - head()/get() raise NotFoundError for absent keys
    - exists() never raises for absent keys, only for transport/IO failures

    Thread Safety:
    - Implementations hold no mutable state besides their client handle
    - No locking is performed; concurrent writers to one key are not supported
    """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """
        Check if an object exists.

        Used for collision avoidance during key allocation.

        Args:
            key: Storage key (e.g., 'a1b2c3d4e5.png')

        Returns:
            True if the key is taken, False otherwise

        Raises:
            StorageError: On transport or IO failures
        """
        pass  # pragma: no cover

    @abstractmethod
    def head(self, key: str) -> Metadata:
        """
        Fetch the metadata of an object without its content.

        Args:
            key: Storage key

        Returns:
            Stored Metadata

        Raises:
            NotFoundError: If the key does not exist
            BadMetadataError: If the metadata cannot be parsed
            StorageError: On transport or IO failures
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, key: str) -> Tuple[Metadata, BinaryIO]:
        """
        Fetch metadata and a content stream.

        The caller owns the returned stream and must close it; it can be
        used as a context manager.

        Args:
            key: Storage key

        Returns:
            Tuple of (Metadata, content stream)

        Raises:
            NotFoundError: If the key does not exist
            BadMetadataError: If the metadata cannot be parsed
            StorageError: On transport or IO failures
        """
        pass  # pragma: no cover

    @abstractmethod
    def put(
        self,
        key: str,
        original_name: str,
        src: BinaryIO,
        expiry: Optional[datetime],
        delete_key: str,
        access_key: str,
    ) -> Metadata:
        """
        Store content and metadata under a key.

        The hash, mimetype and size in the returned Metadata are computed
        from the bytes actually read from ``src``.

        Args:
            key: Storage key
            original_name: Display name for the object
            src: Content stream (read once, sequentially)
            expiry: Absolute expiry, None for never
            delete_key: Secret required for deletion
            access_key: Secret required for viewing, empty for public

        Returns:
            Metadata as stored

        Raises:
            FileEmptyError: If src yields no bytes
            InsufficientDiskSpaceError: If a local free-space check fails
            StorageError: On transport or IO failures

        Notes:
            - All partial artifacts are removed before an error is raised
        """
        pass  # pragma: no cover

    @abstractmethod
    def put_metadata(self, key: str, metadata: Metadata) -> None:
        """
        Replace the stored metadata of an existing object.

        Content bytes and their hash are never touched.

        Args:
            key: Storage key
            metadata: Replacement metadata

        Raises:
            StorageError: On transport or IO failures
        """
        pass  # pragma: no cover

    @abstractmethod
    def serve(self, key: str, environ: Dict[str, Any]) -> "Response":
        """
        Build an HTTP response streaming the object's content.

        Byte-range requests are honored here because only the backend knows
        how its medium seeks: a ``Range`` header yields a 206 response with
        Content-Range and Content-Length set.

        Args:
            key: Storage key
            environ: WSGI environ of the inbound request

        Returns:
            werkzeug Response streaming the content

        Raises:
            NotFoundError: If the key does not exist
            StorageError: On transport or IO failures
        """
        pass  # pragma: no cover

    @abstractmethod
    def size(self, key: str) -> int:
        """
        Get the content length in bytes without reading metadata.

        Args:
            key: Storage key

        Returns:
            Size in bytes

        Raises:
            NotFoundError: If the key does not exist
            StorageError: On transport or IO failures
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Remove content and metadata.

        Both removals are attempted even if the first one fails; failures
        are reported together. Partial deletion is not rolled back.

        Args:
            key: Storage key

        Raises:
            StorageError: If either removal failed, with all causes in
                ``errors``
        """
        pass  # pragma: no cover


class IEnumerableStorageBackend(IStorageBackend):
    """
    Storage backend that can enumerate its keys.

    Only enumerable backends take part in the periodic cleanup sweep;
    others rely on lazy expiry alone.
    """

    @abstractmethod
    def list(self) -> List[str]:
        """
        List every stored key.

        Returns:
            Keys of all stored objects

        Raises:
            StorageError: On IO failures
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_orphans(self, grace_seconds: int, now: Optional[datetime] = None) -> List[str]:
        """
        List content without a metadata record, older than a grace period.

        Args:
            grace_seconds: Minimum age in seconds
            now: Reference time (defaults to the current UTC time)

        Returns:
            Keys of orphaned content

        Raises:
            StorageError: On IO failures
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete_orphan(self, key: str) -> None:
        """
        Remove orphaned content. Absent content is not an error.

        Args:
            key: Storage key

        Raises:
            StorageError: On IO failures
        """
        pass  # pragma: no cover
