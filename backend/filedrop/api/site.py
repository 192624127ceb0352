"""
Site Routes

The short, root-level paths scripted clients and share links use:
/upload, /<name>, /<selif>/<name> and /<name>/access-key. Built per app
because the direct-download segment is configurable.
"""

from flask import Blueprint

from filedrop.config.settings import Settings

from . import handlers
from .error_decorator import handle_domain_errors


def create_site_blueprint(settings: Settings) -> Blueprint:
    """
    Create the blueprint serving the root-level routes.

    Args:
        settings: Application settings (selif path)

    Returns:
        Blueprint to register at the site path
    """
    site_bp = Blueprint("site", __name__)

    @site_bp.route("/upload", methods=["PUT"], strict_slashes=False)
    @site_bp.route("/upload/<string:name>", methods=["PUT"])
    @handle_domain_errors
    def upload_put(name: str = ""):
        return handlers.handle_put_upload(name)

    @site_bp.route("/upload", methods=["POST"], strict_slashes=False)
    @handle_domain_errors
    def upload_post():
        return handlers.handle_post_upload()

    @site_bp.route("/upload/remote", methods=["POST"])
    @handle_domain_errors
    def upload_remote():
        return handlers.handle_remote_upload()

    @site_bp.route(f"/{settings.selif_path}/<string:name>", methods=["GET"])
    @handle_domain_errors
    def serve_file(name: str):
        return handlers.handle_serve(name)

    @site_bp.route("/<string:name>", methods=["GET", "POST"])
    @handle_domain_errors
    def view_file(name: str):
        return handlers.handle_view(name)

    @site_bp.route("/<string:name>", methods=["DELETE"])
    @handle_domain_errors
    def delete_file(name: str):
        return handlers.handle_delete(name)

    @site_bp.route("/<string:name>/access-key", methods=["PATCH"])
    @handle_domain_errors
    def set_access_key(name: str):
        return handlers.handle_set_access_key(name)

    return site_bp
