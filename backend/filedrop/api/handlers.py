"""
Request Handlers

Request parsing and response building shared by the site routes and the
versioned API. Handlers raise DomainError subclasses; callers wrap them in
handle_domain_errors.
"""

import io
import logging
import re
from typing import Optional
from urllib.parse import quote, urlparse

from flask import Response, current_app, jsonify, make_response, redirect, request

from filedrop.application.file_service import FileService
from filedrop.application.upload_service import UploadService
from filedrop.config.settings import Settings
from filedrop.domain.access_control.services import (
    ACCESS_KEY_COOKIE_NAME,
    ACCESS_KEY_HEADER_NAME,
    ACCESS_KEY_PARAM_NAME,
    CookieInstruction,
    Credentials,
)
from filedrop.domain.errors import ErrorCategory
from filedrop.domain.file_storage.entities import Metadata, UploadResult
from filedrop.domain.file_storage.expiry import parse_expiry_seconds
from filedrop.domain.file_storage.streams import BoundedReader
from filedrop.domain.file_storage.value_objects import UploadRequest

from .error_decorator import json_error

logger = logging.getLogger(__name__)

DELETE_KEY_HEADER_NAME = "Filedrop-Delete-Key"
EXPIRY_HEADER_NAME = "Filedrop-Expiry"

CLI_USER_AGENT_RE = re.compile(r"(lib)?curl|wget|java|python|go-http-client", re.IGNORECASE)


# =============================================================================
# Service access
# =============================================================================

def get_settings() -> Settings:
    return current_app.container.resolve(Settings)


def get_upload_service() -> UploadService:
    return current_app.container.resolve(UploadService)


def get_file_service() -> FileService:
    return current_app.container.resolve(FileService)


# =============================================================================
# Request inspection
# =============================================================================

def wants_json() -> bool:
    """True when the client asked for exactly application/json."""
    return request.headers.get("Accept", "").strip().lower() == "application/json"


def is_cli_agent() -> bool:
    """True for scripted clients (curl, wget, java, python, go)."""
    return bool(CLI_USER_AGENT_RE.search(request.headers.get("User-Agent", "")))


def credentials_from_request() -> Credentials:
    form_value = None
    if request.method == "POST":
        form_value = request.form.get(ACCESS_KEY_PARAM_NAME)
    return Credentials(
        cookie=request.cookies.get(ACCESS_KEY_COOKIE_NAME),
        header=request.headers.get(ACCESS_KEY_HEADER_NAME),
        form=form_value,
        query=request.args.get(ACCESS_KEY_PARAM_NAME),
    )


def site_url() -> str:
    """Public base URL of the site, always ending in '/'."""
    settings = get_settings()
    if settings.site_url:
        return settings.site_url.rstrip("/") + "/"
    scheme = request.headers.get("X-Forwarded-Proto") or request.scheme
    return f"{scheme}://{request.host}{settings.site_path}"


def file_url(key: str) -> str:
    return site_url() + key


def direct_url(key: str) -> str:
    return f"{site_url()}{get_settings().selif_path}/{key}"


def same_origin(first: str, second: str) -> bool:
    a, b = urlparse(first), urlparse(second)
    return (a.scheme, a.hostname, a.port) == (b.scheme, b.hostname, b.port)


# =============================================================================
# Response building
# =============================================================================

def apply_cookie(response: Response, instruction: Optional[CookieInstruction]) -> Response:
    """Emit one Set-Cookie per path of a cookie instruction."""
    if instruction is None:
        return response
    domain = urlparse(get_settings().site_url).hostname or None
    for path in instruction.paths:
        response.set_cookie(
            instruction.name,
            instruction.value,
            path=path,
            expires=instruction.expires,
            domain=domain,
            httponly=True,
        )
    return response


def content_disposition(original_name: str) -> str:
    name = original_name.replace('"', "")
    try:
        name.encode("latin-1")
    except UnicodeEncodeError:
        fallback = name.encode("ascii", "ignore").decode("ascii") or "file"
        return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name)}"
    return f'attachment; filename="{name}"'


def file_info(key: str, metadata: Metadata) -> dict:
    info = metadata.to_public_dict(key)
    info["url"] = file_url(key)
    info["direct_url"] = direct_url(key)
    return info


def upload_response(result: UploadResult, force_json: bool = False, redirect_html: bool = False):
    """
    Respond to a successful upload.

    JSON clients get the full upload record; others get the file URL as
    plain text, or a redirect to it for browser form posts.
    """
    if force_json or wants_json():
        body = result.to_dict()
        body["url"] = file_url(result.key)
        body["direct_url"] = direct_url(result.key)
        return make_response(jsonify(body), 200)
    if redirect_html:
        return redirect(get_settings().site_path + result.key, 303)
    return Response(file_url(result.key) + "\n", mimetype="text/plain")


def _unauthorized(instruction: Optional[CookieInstruction]):
    return apply_cookie(json_error(ErrorCategory.INVALID_ACCESS_KEY), instruction)


# =============================================================================
# Handlers
# =============================================================================

def handle_put_upload(name: str = "", force_json: bool = False):
    """Raw-body upload: the request body is the file."""
    settings = get_settings()
    upload_request = UploadRequest(
        src=BoundedReader(request.stream, settings.max_size),
        filename=name or "",
        size=request.content_length,
        expiry=parse_expiry_seconds(request.headers.get(EXPIRY_HEADER_NAME)),
        delete_key=request.headers.get(DELETE_KEY_HEADER_NAME, ""),
        access_key=request.headers.get(ACCESS_KEY_HEADER_NAME, ""),
        cli=is_cli_agent(),
    )
    result = get_upload_service().process_upload(upload_request)
    return upload_response(result, force_json=force_json)


def handle_post_upload(force_json: bool = False):
    """Multipart file upload, or a paste form with content/filename/extension."""
    settings = get_settings()

    access_key = request.form.get(ACCESS_KEY_PARAM_NAME) or request.headers.get(
        ACCESS_KEY_HEADER_NAME, ""
    )
    expiry = parse_expiry_seconds(
        request.form.get("expires") or request.headers.get(EXPIRY_HEADER_NAME)
    )
    delete_key = request.headers.get(DELETE_KEY_HEADER_NAME, "")

    if request.mimetype == "multipart/form-data":
        upload = request.files.get("file")
        if upload is None:
            return json_error(ErrorCategory.INVALID_REQUEST, "Missing 'file' field")
        src = upload.stream
        size = upload.content_length or None
        filename = upload.filename or ""
    else:
        content = request.form.get("content", "")
        if not content:
            return json_error(ErrorCategory.FILE_EMPTY, "Empty paste")
        data = content.encode("utf-8")
        src = io.BytesIO(data)
        size = len(data)
        extension = request.form.get("extension") or "txt"
        filename = f"{request.form.get('filename', '')}.{extension}"

    upload_request = UploadRequest(
        src=BoundedReader(src, settings.max_size),
        filename=filename,
        size=size,
        expiry=expiry,
        delete_key=delete_key,
        access_key=access_key,
        cli=is_cli_agent(),
    )
    result = get_upload_service().process_upload(upload_request)
    return upload_response(result, force_json=force_json, redirect_html=True)


def handle_remote_upload(force_json: bool = False):
    """Fetch a URL server-side and store its body."""
    url = (request.form.get("url") or "").strip()
    if not url:
        return json_error(ErrorCategory.INVALID_REQUEST, "Missing 'url' field")

    result = get_upload_service().upload_from_url(
        url,
        delete_key=request.form.get("deletekey", ""),
        access_key=request.form.get(ACCESS_KEY_PARAM_NAME, ""),
        expiry=parse_expiry_seconds(request.form.get("expiry")),
    )

    if force_json or wants_json():
        return upload_response(result, force_json=True)
    settings = get_settings()
    if request.form.get("direct_url") == "yes":
        return redirect(f"{settings.site_path}{settings.selif_path}/{result.key}", 303)
    return redirect(settings.site_path + result.key, 303)


def handle_view(name: str, allow_direct: bool = True):
    """JSON description of a file behind the access gate."""
    settings = get_settings()
    if allow_direct and not settings.no_direct_agents and is_cli_agent() and not wants_json():
        return handle_serve(name)

    metadata, decision = get_file_service().check_access(name, credentials_from_request())
    if not decision.authorized:
        return _unauthorized(decision.cookie)

    response = make_response(jsonify(file_info(name, metadata)), 200)
    return apply_cookie(response, decision.cookie)


def handle_serve(name: str):
    """Stream file content behind the access gate."""
    settings = get_settings()
    file_service = get_file_service()

    metadata, decision = file_service.check_access(name, credentials_from_request())
    if not decision.authorized:
        return _unauthorized(decision.cookie)

    if not settings.allow_hotlink:
        referer = request.headers.get("Referer")
        if referer and not same_origin(referer, site_url()):
            return redirect(settings.site_path + name, 303)

    etag = metadata.content_hash
    if etag and request.if_none_match.contains(etag):
        response = Response(status=304)
    elif request.method == "HEAD":
        response = Response(status=200, mimetype=metadata.mimetype or None)
        response.headers["Content-Length"] = str(metadata.size)
        response.headers["Accept-Ranges"] = "bytes"
    else:
        response = file_service.serve(name, request.environ)

    if settings.file_content_security_policy:
        response.headers["Content-Security-Policy"] = settings.file_content_security_policy
    if settings.file_referrer_policy:
        response.headers["Referrer-Policy"] = settings.file_referrer_policy
    if metadata.original_name:
        response.headers["Content-Disposition"] = content_disposition(metadata.original_name)
    if etag:
        response.set_etag(etag)
    response.headers["Cache-Control"] = "public, no-cache"

    return apply_cookie(response, decision.cookie)


def handle_delete(name: str, force_json: bool = False):
    """Delete a file; the delete key travels in a header."""
    get_file_service().delete(name, request.headers.get(DELETE_KEY_HEADER_NAME))
    if force_json or wants_json():
        return make_response(jsonify({"filename": name, "status": "DELETED"}), 200)
    return Response("DELETED", mimetype="text/plain")


def handle_set_access_key(name: str):
    """Replace or clear the access key of a file, proven by its delete key."""
    payload = request.get_json(silent=True) or {}
    if ACCESS_KEY_PARAM_NAME in payload:
        access_key = payload.get(ACCESS_KEY_PARAM_NAME) or ""
    else:
        access_key = request.form.get(ACCESS_KEY_PARAM_NAME) or request.headers.get(
            ACCESS_KEY_HEADER_NAME, ""
        )
    if not isinstance(access_key, str):
        return json_error(ErrorCategory.INVALID_REQUEST, "access_key must be a string")

    metadata = get_file_service().set_access_key(
        name, request.headers.get(DELETE_KEY_HEADER_NAME), access_key
    )
    body = file_info(name, metadata)
    body["access_key"] = metadata.access_key
    return make_response(jsonify(body), 200)
