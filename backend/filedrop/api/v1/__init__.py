"""
API v1 - filedrop REST API

This module contains the versioned API endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

API_VERSION = os.getenv("API_VERSION", "v1")

api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

api = Api(
    api_v1_bp,
    version="1.0",
    title="filedrop API",
    description="Temporary file drop with expiring, optionally access-key protected links",
    doc="/docs",  # Swagger UI will be available at /api/v1/docs
    license="MIT",
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import file_ns, system_ns, upload_ns  # noqa: E402

# Site routes mirrored as documented resources
api.add_namespace(upload_ns, path="/upload")
api.add_namespace(file_ns, path="/files")
api.add_namespace(system_ns, path="/system")
