"""
main.py

Flask entry point for the filedrop service.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, boto3, python-magic,
    rarfile, httpx, celery
  - System: libmagic (for mimetype detection), unrar or bsdtar (for rar listings)
  - Optional infrastructure: Redis (Celery broker for the beat sweep)

Notes:
  - Root routes (/upload, /<name>, /<selif>/<name>) serve scripted clients
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
  - Configuration comes from FILEDROP_* environment variables
"""

import os

from filedrop.app_factory import create_app

app = create_app()


def run() -> None:
    """Run the development server (FLASK_HOST, FLASK_PORT, FLASK_DEBUG)."""
    host = os.getenv("FLASK_HOST", "127.0.0.1")
    port = int(os.getenv("FLASK_PORT", 8080))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    run()
