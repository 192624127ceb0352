"""
File Application Service

Read, serve, delete and re-key stored objects. Every path goes through
head(), which reaps expired objects before anything else sees them.
"""

import logging
from datetime import datetime
from typing import Any, BinaryIO, Callable, Dict, Optional, Tuple

from werkzeug.wrappers import Response

from filedrop.domain.access_control.services import AccessDecision, AccessKeyGate, Credentials
from filedrop.domain.errors import InvalidDeleteKeyError, NotFoundError, StorageError
from filedrop.domain.file_storage.entities import Metadata
from filedrop.domain.file_storage.expiry import utcnow
from filedrop.domain.file_storage.storage_repository import IStorageBackend
from filedrop.domain.file_storage.value_objects import DeleteKey

logger = logging.getLogger(__name__)


class FileService:
    """
    Application service for access to stored objects.

    Expired objects are indistinguishable from missing ones: both raise
    NotFoundError.
    """

    def __init__(
        self,
        storage: IStorageBackend,
        gate: AccessKeyGate,
        anyone_can_delete: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize FileService.

        Args:
            storage: Storage backend
            gate: Access key gate for protected objects
            anyone_can_delete: Skip the delete key check
            clock: Source of the current time
        """
        self.storage = storage
        self.gate = gate
        self.anyone_can_delete = anyone_can_delete
        self.clock = clock

    def head(self, key: str) -> Metadata:
        """
        Get metadata, deleting the object first if it has expired.

        Args:
            key: Storage key

        Returns:
            Metadata of an active object

        Raises:
            NotFoundError: If the key is absent or expired
            BadMetadataError: If the metadata is unreadable
        """
        metadata = self.storage.head(key)
        if metadata.is_expired(self.clock()):
            logger.info(f"Reaping expired file on access: {key}")
            try:
                self.storage.delete(key)
            except StorageError as e:
                logger.warning(f"Failed to delete expired file {key}: {e.errors}")
            raise NotFoundError(f"File expired: {key}")
        return metadata

    def get(self, key: str) -> Tuple[Metadata, BinaryIO]:
        """
        Get metadata and a content stream for an active object.

        The caller must close the stream.
        """
        self.head(key)
        return self.storage.get(key)

    def check_access(
        self, key: str, credentials: Credentials
    ) -> Tuple[Metadata, AccessDecision]:
        """
        Look up an object and run the access gate against it.

        Args:
            key: Storage key
            credentials: Access key values from the request

        Returns:
            Tuple of (Metadata, AccessDecision)

        Raises:
            NotFoundError: If the key is absent or expired
        """
        metadata = self.head(key)
        decision = self.gate.check(key, metadata.access_key, credentials, self.clock())
        return metadata, decision

    def serve(self, key: str, environ: Dict[str, Any]) -> Response:
        """Build a streaming response for an object's content."""
        return self.storage.serve(key, environ)

    def delete(self, key: str, delete_key: Optional[str]) -> None:
        """
        Delete an object after checking its delete key.

        Args:
            key: Storage key
            delete_key: Key supplied by the client

        Raises:
            NotFoundError: If the key is absent or expired
            InvalidDeleteKeyError: If the delete key does not match
            StorageError: If removal failed
        """
        metadata = self.head(key)
        self._authorize_delete(key, metadata, delete_key)
        self.storage.delete(key)
        logger.info(f"Deleted file {key}")

    def set_access_key(self, key: str, delete_key: Optional[str], access_key: str) -> Metadata:
        """
        Replace the access key of an object.

        Only metadata is rewritten; content and hash are untouched.

        Args:
            key: Storage key
            delete_key: Key supplied by the client, proves ownership
            access_key: New access key, empty to make the object public

        Returns:
            Updated Metadata

        Raises:
            NotFoundError: If the key is absent or expired
            InvalidDeleteKeyError: If the delete key does not match
            StorageError: If the metadata could not be written
        """
        metadata = self.head(key)
        self._authorize_delete(key, metadata, delete_key)
        updated = metadata.with_access_key(access_key)
        self.storage.put_metadata(key, updated)
        logger.info(f"{'Set' if access_key else 'Cleared'} access key on {key}")
        return updated

    def _authorize_delete(self, key: str, metadata: Metadata, delete_key: Optional[str]) -> None:
        if self.anyone_can_delete:
            return
        if not DeleteKey(metadata.delete_key).matches(delete_key):
            logger.warning(f"Rejected delete key for {key}")
            raise InvalidDeleteKeyError(f"Wrong delete key for {key}")
