"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields

from filedrop.api.v1 import api

# =============================================================================
# Request Models
# =============================================================================

access_key_request = api.model(
    "AccessKeyRequest",
    {
        "access_key": fields.String(
            required=True,
            description="New access key, empty string to make the file public",
            example="s3cret",
        ),
    },
)

# =============================================================================
# Response Models
# =============================================================================

file_info_response = api.model(
    "FileInfo",
    {
        "filename": fields.String(description="Storage key", example="a1b2c3d4e5.png"),
        "original_name": fields.String(description="Name the file was uploaded with"),
        "url": fields.String(description="Share URL"),
        "direct_url": fields.String(description="Direct download URL"),
        "expiry": fields.String(description="Expiry as epoch seconds, -1 for never"),
        "size": fields.String(description="Size in bytes"),
        "mimetype": fields.String(description="Detected mimetype"),
        "sha256sum": fields.String(description="SHA-256 of the content"),
        "archive_entries": fields.List(
            fields.String, description="Entries of tar, zip or rar archives"
        ),
    },
)

upload_response = api.model(
    "UploadResult",
    {
        "filename": fields.String(description="Storage key", example="a1b2c3d4e5.png"),
        "original_name": fields.String(description="Name the file was uploaded with"),
        "url": fields.String(description="Share URL"),
        "direct_url": fields.String(description="Direct download URL"),
        "delete_key": fields.String(description="Secret needed to delete the file"),
        "access_key": fields.String(description="Secret needed to view the file"),
        "expiry": fields.String(description="Expiry as epoch seconds, -1 for never"),
        "size": fields.String(description="Size in bytes"),
        "mimetype": fields.String(description="Detected mimetype"),
        "sha256sum": fields.String(description="SHA-256 of the content"),
    },
)

delete_response = api.model(
    "DeleteResult",
    {
        "filename": fields.String(description="Storage key"),
        "status": fields.String(description="Always 'DELETED'", example="DELETED"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing error message"),
        "action": fields.String(description="Suggested next step"),
    },
)

health_response = api.model(
    "HealthResponse",
    {
        "status": fields.String(description="ok or degraded"),
        "message": fields.String(description="Status message"),
        "storage": fields.String(description="Storage backend status"),
        "celery": fields.String(description="Celery availability"),
        "cleanup": fields.String(description="Periodic cleanup status"),
    },
)

# =============================================================================
# Parsers
# =============================================================================

upload_parser = api.parser()
upload_parser.add_argument("file", location="files", type="file", help="File to upload")
upload_parser.add_argument("content", location="form", help="Pasted text (instead of file)")
upload_parser.add_argument("filename", location="form", help="Name for pasted text")
upload_parser.add_argument("extension", location="form", help="Extension for pasted text")
upload_parser.add_argument("expires", location="form", help="Expiry in seconds")
upload_parser.add_argument("access_key", location="form", help="Access key protecting the file")

remote_upload_parser = api.parser()
remote_upload_parser.add_argument("url", location="form", required=True, help="URL to fetch")
remote_upload_parser.add_argument("deletekey", location="form", help="Delete key to use")
remote_upload_parser.add_argument("access_key", location="form", help="Access key protecting the file")
remote_upload_parser.add_argument("expiry", location="form", help="Expiry in seconds")
