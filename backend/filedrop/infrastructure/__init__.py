"""Infrastructure layer for storage backends and content inspection."""

from .local_file_storage_repository import LocalFilesystemBackend
from .s3_storage_repository import S3StorageBackend
from .storage_factory import StorageFactory

__all__ = [
    'LocalFilesystemBackend',
    'S3StorageBackend',
    'StorageFactory',
]
