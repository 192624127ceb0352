"""
Error Handling Module

Defines domain exceptions and error categories for the file drop service.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry user-facing messages for API responses.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    FILE_NOT_FOUND = "file_not_found"
    BAD_METADATA = "bad_metadata"
    FILE_EMPTY = "file_empty"
    FILE_TOO_LARGE = "file_too_large"
    FILENAME_TOO_LONG = "filename_too_long"
    FORBIDDEN_EXTENSION = "forbidden_extension"
    PROHIBITED_FILENAME = "prohibited_filename"
    INVALID_ACCESS_KEY = "invalid_access_key"
    INVALID_DELETE_KEY = "invalid_delete_key"
    INSUFFICIENT_DISK_SPACE = "insufficient_disk_space"
    STORAGE_ERROR = "storage_error"
    INVALID_REQUEST = "invalid_request"
    REMOTE_FETCH_FAILED = "remote_fetch_failed"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The requested file does not exist or has expired.",
        "action": "Check the link or ask the uploader to share the file again.",
    },
    ErrorCategory.BAD_METADATA: {
        "title": "Corrupt Metadata",
        "message": "The file exists but its metadata could not be read.",
        "action": "Please contact the site administrator.",
    },
    ErrorCategory.FILE_EMPTY: {
        "title": "Empty File",
        "message": "The uploaded file contained no data.",
        "action": "Select a non-empty file and try again.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded file exceeds the maximum allowed size.",
        "action": "Compress or split the file before uploading.",
    },
    ErrorCategory.FILENAME_TOO_LONG: {
        "title": "Filename Too Long",
        "message": "Filenames may be at most 255 characters long.",
        "action": "Rename the file and try again.",
    },
    ErrorCategory.FORBIDDEN_EXTENSION: {
        "title": "Forbidden File Type",
        "message": "Files with this extension cannot be uploaded here.",
        "action": "Upload a different file type or archive the file first.",
    },
    ErrorCategory.PROHIBITED_FILENAME: {
        "title": "Prohibited Filename",
        "message": "The generated filename is reserved by the server.",
        "action": "Please try the upload again.",
    },
    ErrorCategory.INVALID_ACCESS_KEY: {
        "title": "Access Key Required",
        "message": "This file is protected and the access key was missing or wrong.",
        "action": "Ask the uploader for the access key.",
    },
    ErrorCategory.INVALID_DELETE_KEY: {
        "title": "Invalid Delete Key",
        "message": "The delete key does not match this file.",
        "action": "Use the delete key returned when the file was uploaded.",
    },
    ErrorCategory.INSUFFICIENT_DISK_SPACE: {
        "title": "Server Storage Full",
        "message": "The server does not have enough free space to store this file.",
        "action": "Please try again later or upload a smaller file.",
    },
    ErrorCategory.STORAGE_ERROR: {
        "title": "Storage Error",
        "message": "The storage backend failed while handling the file.",
        "action": "Please try again. If the problem persists, contact support.",
    },
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.REMOTE_FETCH_FAILED: {
        "title": "Could Not Retrieve URL",
        "message": "The remote file could not be downloaded.",
        "action": "Check that the URL is reachable and try again.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions are pure and have no external dependencies.
    They can optionally wrap original errors for context.
    """

    category = ErrorCategory.SYSTEM_ERROR

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class NotFoundError(DomainError):
    """
    Raised when a key is absent from storage.

    Also used for objects that expired and were reaped, so callers
    cannot tell the two situations apart.
    """

    category = ErrorCategory.FILE_NOT_FOUND


class BadMetadataError(DomainError):
    """Raised when stored metadata exists but cannot be parsed."""

    category = ErrorCategory.BAD_METADATA


class FileEmptyError(DomainError):
    """Raised when zero bytes were read from an upload source."""

    category = ErrorCategory.FILE_EMPTY


class FileTooLargeError(DomainError):
    """Raised when the declared or enforced size exceeds the maximum."""

    category = ErrorCategory.FILE_TOO_LARGE


class FilenameTooLongError(DomainError):
    """Raised when a client-supplied filename exceeds 255 characters."""

    category = ErrorCategory.FILENAME_TOO_LONG


class ForbiddenExtensionError(DomainError):
    """Raised when the derived extension is configured as forbidden."""

    category = ErrorCategory.FORBIDDEN_EXTENSION


class ProhibitedFilenameError(DomainError):
    """Raised when an allocated key matches a reserved server filename."""

    category = ErrorCategory.PROHIBITED_FILENAME


class InvalidAccessKeyError(DomainError):
    """Raised when a protected object is requested without the right access key."""

    category = ErrorCategory.INVALID_ACCESS_KEY


class InvalidDeleteKeyError(DomainError):
    """Raised when a delete request carries the wrong delete key."""

    category = ErrorCategory.INVALID_DELETE_KEY


class InsufficientDiskSpaceError(DomainError):
    """
    Raised by the local backend when free space drops below the threshold.

    Checked once before the transfer and once after it.
    """

    category = ErrorCategory.INSUFFICIENT_DISK_SPACE


class StorageError(DomainError):
    """
    Generic transport or IO failure from the storage medium.

    Delete operations attempt every removal and report all failures
    together through ``errors``.
    """

    category = ErrorCategory.STORAGE_ERROR

    def __init__(
        self,
        message: str,
        original_error: Exception = None,
        errors: Optional[List[Exception]] = None,
    ):
        super().__init__(message, original_error)
        self.errors = list(errors or [])
        if original_error is not None and original_error not in self.errors:
            self.errors.insert(0, original_error)


class RemoteFetchError(DomainError):
    """Raised when a remote URL cannot be retrieved for republishing."""

    category = ErrorCategory.REMOTE_FETCH_FAILED


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP responses.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


# HTTP status used for each category when a domain error reaches the API
HTTP_STATUS_BY_CATEGORY: Dict[ErrorCategory, int] = {
    ErrorCategory.FILE_NOT_FOUND: 404,
    ErrorCategory.BAD_METADATA: 500,
    ErrorCategory.FILE_EMPTY: 400,
    ErrorCategory.FILE_TOO_LARGE: 400,
    ErrorCategory.FILENAME_TOO_LONG: 400,
    ErrorCategory.FORBIDDEN_EXTENSION: 400,
    ErrorCategory.PROHIBITED_FILENAME: 400,
    ErrorCategory.INVALID_ACCESS_KEY: 401,
    ErrorCategory.INVALID_DELETE_KEY: 401,
    ErrorCategory.INSUFFICIENT_DISK_SPACE: 500,
    ErrorCategory.STORAGE_ERROR: 500,
    ErrorCategory.INVALID_REQUEST: 400,
    ErrorCategory.REMOTE_FETCH_FAILED: 502,
    ErrorCategory.SYSTEM_ERROR: 500,
}


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: Optional[int] = None,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code, defaults to the category's status

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    if status_code is None:
        status_code = HTTP_STATUS_BY_CATEGORY.get(category, 500)
    return error.to_dict(), status_code


def error_response_for(error: DomainError) -> tuple[Dict[str, Any], int]:
    """
    Build the API error response for a domain error.

    Args:
        error: Domain error raised by a service or backend

    Returns:
        Tuple of (error_dict, status_code)
    """
    return create_error_response(error.category, str(error))
