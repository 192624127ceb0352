"""
API Namespaces - Organized endpoint groups
"""

from flask import current_app
from flask_restx import Namespace, Resource

from filedrop.api import handlers
from filedrop.api.error_decorator import handle_domain_errors
from filedrop.api.v1.models import (
    access_key_request,
    delete_response,
    error_response,
    file_info_response,
    health_response,
    remote_upload_parser,
    upload_parser,
    upload_response,
)

# =============================================================================
# Upload Namespace - Creating files
# =============================================================================

upload_ns = Namespace("upload", description="File upload operations")


@upload_ns.route("")
class Upload(Resource):
    """Upload a file"""

    @upload_ns.doc("upload_form")
    @upload_ns.expect(upload_parser)
    @upload_ns.response(200, "Uploaded", upload_response)
    @upload_ns.response(400, "Bad Request", error_response)
    @upload_ns.response(500, "Storage Error", error_response)
    @handle_domain_errors
    def post(self):
        """
        Upload a file from a multipart form or a text paste

        Send a multipart 'file' field, or 'content' plus optional 'filename'
        and 'extension' (default txt) for pastes.
        """
        return handlers.handle_post_upload(force_json=True)

    @upload_ns.doc("upload_raw")
    @upload_ns.header("Filedrop-Delete-Key", "Delete key to use instead of a generated one")
    @upload_ns.header("Filedrop-Access-Key", "Access key protecting the file")
    @upload_ns.header("Filedrop-Expiry", "Expiry in seconds")
    @upload_ns.response(200, "Uploaded", upload_response)
    @upload_ns.response(400, "Bad Request", error_response)
    @handle_domain_errors
    def put(self):
        """
        Upload the raw request body

        Without a filename the extension is derived from the content.
        """
        return handlers.handle_put_upload(force_json=True)


@upload_ns.route("/<string:name>")
@upload_ns.param("name", "Filename used for the extension and display name")
class NamedUpload(Resource):
    """Upload a file with a name"""

    @upload_ns.doc("upload_raw_named")
    @upload_ns.response(200, "Uploaded", upload_response)
    @upload_ns.response(400, "Bad Request", error_response)
    @handle_domain_errors
    def put(self, name):
        """Upload the raw request body under a display name"""
        return handlers.handle_put_upload(name, force_json=True)


@upload_ns.route("/remote")
class RemoteUpload(Resource):
    """Republish a remote file"""

    @upload_ns.doc("upload_remote")
    @upload_ns.expect(remote_upload_parser)
    @upload_ns.response(200, "Uploaded", upload_response)
    @upload_ns.response(400, "Bad Request", error_response)
    @upload_ns.response(502, "Remote Fetch Failed", error_response)
    @handle_domain_errors
    def post(self):
        """
        Fetch a URL and store its body

        The remote request times out after 10 seconds and is capped at the
        maximum upload size.
        """
        return handlers.handle_remote_upload(force_json=True)


# =============================================================================
# File Namespace - Reading, deleting and protecting files
# =============================================================================

file_ns = Namespace("files", description="Stored file operations")


@file_ns.route("/<string:name>")
@file_ns.param("name", "Storage key")
class File(Resource):
    """File information and deletion"""

    @file_ns.doc("get_file_info")
    @file_ns.response(200, "Success", file_info_response)
    @file_ns.response(401, "Access Key Required", error_response)
    @file_ns.response(404, "File Not Found", error_response)
    @handle_domain_errors
    def get(self, name):
        """
        Get file information

        Protected files need the access key as cookie, Filedrop-Access-Key
        header, or access_key query parameter.
        """
        return handlers.handle_view(name, allow_direct=False)

    @file_ns.doc("post_file_info")
    @file_ns.response(200, "Success", file_info_response)
    @file_ns.response(401, "Access Key Required", error_response)
    @file_ns.response(404, "File Not Found", error_response)
    @handle_domain_errors
    def post(self, name):
        """Get file information, taking the access key from a form field"""
        return handlers.handle_view(name, allow_direct=False)

    @file_ns.doc("delete_file")
    @file_ns.header("Filedrop-Delete-Key", "Delete key returned at upload")
    @file_ns.response(200, "Deleted", delete_response)
    @file_ns.response(401, "Invalid Delete Key", error_response)
    @file_ns.response(404, "File Not Found", error_response)
    @handle_domain_errors
    def delete(self, name):
        """Delete a file"""
        return handlers.handle_delete(name, force_json=True)


@file_ns.route("/<string:name>/download")
@file_ns.param("name", "Storage key")
class FileDownload(Resource):
    """File content"""

    @file_ns.doc("download_file")
    @file_ns.response(200, "File content")
    @file_ns.response(206, "Partial content")
    @file_ns.response(401, "Access Key Required", error_response)
    @file_ns.response(404, "File Not Found", error_response)
    @handle_domain_errors
    def get(self, name):
        """
        Download file content

        Honors Range requests. Cross-site referers are redirected to the
        file page unless hotlinking is allowed.
        """
        return handlers.handle_serve(name)


@file_ns.route("/<string:name>/access-key")
@file_ns.param("name", "Storage key")
class FileAccessKey(Resource):
    """File access key"""

    @file_ns.doc("set_access_key")
    @file_ns.expect(access_key_request)
    @file_ns.header("Filedrop-Delete-Key", "Delete key returned at upload")
    @file_ns.response(200, "Updated", file_info_response)
    @file_ns.response(401, "Invalid Delete Key", error_response)
    @file_ns.response(404, "File Not Found", error_response)
    @handle_domain_errors
    def patch(self, name):
        """Replace or clear the access key of a file"""
        return handlers.handle_set_access_key(name)


# =============================================================================
# System Namespace - System health and monitoring
# =============================================================================

system_ns = Namespace("system", description="System health and monitoring operations")


@system_ns.route("/health")
class Health(Resource):
    """System health check"""

    @system_ns.doc("health_check")
    @system_ns.response(200, "Healthy", health_response)
    @system_ns.response(503, "Service Degraded", health_response)
    def get(self):
        """
        Check system health and service availability

        Reports the storage backend, Celery and the periodic cleanup thread.
        """
        from filedrop.app_factory import get_health_status

        return get_health_status(current_app)
