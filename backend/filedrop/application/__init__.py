"""
Application Services Layer

Orchestrates domain services and coordinates use cases.
"""

from .cleanup_service import CleanupService, CleanupStats, PeriodicCleanup
from .file_service import FileService
from .upload_service import UploadPolicy, UploadService

__all__ = [
    'CleanupService',
    'CleanupStats',
    'PeriodicCleanup',
    'FileService',
    'UploadPolicy',
    'UploadService',
]
