"""
Storage Factory

Factory for creating the storage backend selected by configuration.
The application layer asks for an IStorageBackend and never learns which
concrete implementation it received.
"""

import logging

from filedrop.config.settings import Settings
from filedrop.domain.file_storage.storage_repository import IStorageBackend

from .local_file_storage_repository import LocalFilesystemBackend

logger = logging.getLogger(__name__)


class StorageFactory:
    """
    Factory for creating storage backend implementations.

    Selection Logic:
    - If an S3 bucket is configured, use the S3-compatible backend
    - Otherwise, use the local filesystem backend
    """

    @staticmethod
    def create_storage(settings: Settings) -> IStorageBackend:
        """
        Create the storage backend for the given settings.

        Args:
            settings: Application settings

        Returns:
            IStorageBackend implementation (local or S3)

        Raises:
            RuntimeError: If backend initialization fails
        """
        if settings.s3_bucket:
            return StorageFactory._create_s3_storage(settings)
        return StorageFactory._create_local_storage(settings)

    @staticmethod
    def _create_local_storage(settings: Settings) -> IStorageBackend:
        try:
            storage = LocalFilesystemBackend(
                files_path=settings.files_path,
                meta_path=settings.meta_path,
                min_free_space_gb=settings.min_free_space_gb,
            )
        except OSError as e:
            raise RuntimeError(f"Failed to initialize local storage: {e}") from e

        logger.info(
            f"Storage factory: Using local filesystem storage at {settings.files_path} "
            f"(metadata in {settings.meta_path})"
        )
        return storage

    @staticmethod
    def _create_s3_storage(settings: Settings) -> IStorageBackend:
        from .s3_storage_repository import S3StorageBackend

        try:
            storage = S3StorageBackend(
                bucket=settings.s3_bucket,
                region=settings.s3_region,
                endpoint=settings.s3_endpoint,
                force_path_style=settings.s3_force_path_style,
            )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize S3 storage: {e}") from e

        logger.info(f"Storage factory: Using S3 storage with bucket {settings.s3_bucket}")
        return storage
