"""
File Storage Domain

Handles stored objects, their metadata, expiry, and the storage backend
contract.
"""

from .entities import Metadata, UploadResult
from .expiry import NEVER_EXPIRE_EPOCH, ExpiryPolicy, is_expired
from .storage_repository import IEnumerableStorageBackend, IStorageBackend
from .value_objects import DeleteKey, UploadRequest, generate_slug

__all__ = [
    "Metadata",
    "UploadResult",
    "UploadRequest",
    "DeleteKey",
    "ExpiryPolicy",
    "NEVER_EXPIRE_EPOCH",
    "IStorageBackend",
    "IEnumerableStorageBackend",
    "generate_slug",
    "is_expired",
]
