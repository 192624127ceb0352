"""
File Storage Entities

Domain entities describing stored objects and upload results.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from .expiry import expiry_to_epoch, is_expired


@dataclass
class Metadata:
    """
    Entity describing one stored object.

    The hash, mimetype and size are computed by the storage backend from
    the bytes actually written, never taken from the client.
    """
    original_name: str = ""
    delete_key: str = ""
    access_key: str = ""
    content_hash: str = ""
    mimetype: str = ""
    size: int = 0
    expiry: Optional[datetime] = None
    archive_entries: List[str] = field(default_factory=list)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the object has expired.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            True if expired, False otherwise (including never-expiring objects)
        """
        return is_expired(self.expiry, now)

    @property
    def is_protected(self) -> bool:
        """True when an access key is required to view the object."""
        return bool(self.access_key)

    def with_access_key(self, access_key: str) -> "Metadata":
        """
        Return a copy with a different access key.

        Args:
            access_key: New access key, empty string to make public

        Returns:
            New Metadata instance
        """
        return replace(self, access_key=access_key, archive_entries=list(self.archive_entries))

    def to_public_dict(self, key: str) -> Dict[str, Any]:
        """
        Convert to the dictionary exposed by the API.

        Secrets (delete and access keys) are not included.

        Args:
            key: Storage key of the object

        Returns:
            Dictionary with public file information
        """
        return {
            "filename": key,
            "original_name": self.original_name or key,
            "expiry": str(expiry_to_epoch(self.expiry)),
            "size": str(self.size),
            "mimetype": self.mimetype,
            "sha256sum": self.content_hash,
            "archive_entries": list(self.archive_entries),
        }


@dataclass
class UploadResult:
    """Result of a successful upload: the allocated key and stored metadata."""
    key: str
    metadata: Metadata

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the dictionary returned to the uploader.

        Unlike Metadata.to_public_dict, this includes the delete and access
        keys since the uploader needs them.

        Returns:
            Dictionary with upload information
        """
        return {
            "filename": self.key,
            "original_name": self.metadata.original_name,
            "delete_key": self.metadata.delete_key,
            "access_key": self.metadata.access_key,
            "expiry": str(expiry_to_epoch(self.metadata.expiry)),
            "size": str(self.metadata.size),
            "mimetype": self.metadata.mimetype,
            "sha256sum": self.metadata.content_hash,
        }
