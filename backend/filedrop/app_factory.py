"""
Application Factory

Creates and configures Flask application with all dependencies.
This factory pattern improves testability by allowing dependency injection
and configuration overrides.
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from filedrop.application.cleanup_service import CleanupService, PeriodicCleanup
from filedrop.application.dependency_container import DependencyContainer
from filedrop.application.file_service import FileService
from filedrop.application.upload_service import UploadPolicy, UploadService
from filedrop.config.celery_config import make_celery
from filedrop.config.settings import Settings
from filedrop.domain.access_control.services import AccessKeyGate
from filedrop.domain.file_storage.storage_repository import (
    IEnumerableStorageBackend,
    IStorageBackend,
)
from filedrop.infrastructure.storage_factory import StorageFactory

logger = logging.getLogger(__name__)

# Key probed by the health check; never a valid upload key (no extension)
HEALTH_PROBE_KEY = "filedrop-health-probe"

NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "httpcore")


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[IStorageBackend] = None,
    enable_celery: bool = True,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        settings: Application settings, read from the environment if None
        storage: Storage backend, built from settings if None
        enable_celery: Attach a Celery instance for the beat sweep

    Returns:
        Configured Flask application
    """
    if settings is None:
        settings = Settings.from_env()

    _configure_logging(settings)

    app = Flask(__name__)

    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
                "allow_headers": [
                    "Content-Type",
                    "Filedrop-Access-Key",
                    "Filedrop-Delete-Key",
                    "Filedrop-Expiry",
                ],
                "expose_headers": ["Content-Type", "Content-Disposition", "ETag"],
                "max_age": 3600,
            }
        },
    )

    _initialize_services(app, settings, storage)

    _initialize_infrastructure(app, settings, enable_celery)

    _register_blueprints(app, settings)

    _register_security_headers(app, settings)

    _register_health_endpoint(app)

    return app


def _configure_logging(settings: Settings) -> None:
    """
    Configure stdlib logging once for the process.

    Args:
        settings: Application settings (level and request logging switch)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    # Per-request access lines come from werkzeug
    if settings.no_logs:
        logging.getLogger("werkzeug").setLevel(logging.WARNING)


def _initialize_services(
    app: Flask, settings: Settings, storage: Optional[IStorageBackend]
) -> None:
    """
    Build application services and register them in the DependencyContainer.

    Args:
        app: Flask application
        settings: Application settings
        storage: Pre-built storage backend, or None to use StorageFactory
    """
    container = DependencyContainer()
    container.register_singleton(Settings, settings)

    if storage is None:
        storage = StorageFactory.create_storage(settings)
    container.register_singleton(IStorageBackend, storage)

    gate = AccessKeyGate(settings.cookie_policy())
    container.register_singleton(AccessKeyGate, gate)

    upload_policy = UploadPolicy.build(
        max_size=settings.max_size,
        forbidden_extensions=settings.forbidden_extensions,
        expiry=settings.expiry_policy(),
    )
    upload_service = UploadService(storage, upload_policy)
    container.register_singleton(UploadService, upload_service)

    file_service = FileService(
        storage, gate, anyone_can_delete=settings.anyone_can_delete
    )
    container.register_singleton(FileService, file_service)

    # Only enumerable backends can be swept; others rely on lazy expiry
    if isinstance(storage, IEnumerableStorageBackend):
        container.register_singleton(IEnumerableStorageBackend, storage)
        container.register_singleton(CleanupService, CleanupService(storage))

    app.container = container

    logger.info(
        f"Application services initialized with DependencyContainer "
        f"({len(container)} registrations)"
    )


def _initialize_infrastructure(app: Flask, settings: Settings, enable_celery: bool) -> None:
    """
    Start the periodic cleanup thread and attach Celery.

    Args:
        app: Flask application
        settings: Application settings
        enable_celery: Whether to build a Celery instance
    """
    app.periodic_cleanup = None
    container = app.container
    if settings.cleanup_every_minutes > 0:
        if container.is_registered(CleanupService):
            periodic = PeriodicCleanup(
                container.resolve(CleanupService),
                settings.cleanup_every_minutes * 60,
            )
            periodic.start()
            app.periodic_cleanup = periodic
        else:
            logger.warning(
                "Periodic cleanup requested but the storage backend cannot be "
                "enumerated; expired files are removed when accessed"
            )

    app.celery = None
    if enable_celery:
        try:
            app.celery = make_celery(app)
            logger.info("Celery initialized successfully")
        except Exception as e:
            logger.warning(f"Could not initialize Celery: {e}")


def _register_blueprints(app: Flask, settings: Settings) -> None:
    """
    Register the versioned API and the root-level site routes.

    Args:
        app: Flask application
        settings: Application settings
    """
    from filedrop.api.site import create_site_blueprint
    from filedrop.api.v1 import API_VERSION, api_v1_bp

    app.register_blueprint(api_v1_bp)

    site_prefix = settings.site_path.rstrip("/") or None
    app.register_blueprint(create_site_blueprint(settings), url_prefix=site_prefix)

    logger.info(
        f"API {API_VERSION} registered at /api/{API_VERSION} "
        f"with Swagger UI at /api/{API_VERSION}/docs"
    )


def _register_security_headers(app: Flask, settings: Settings) -> None:
    """
    Add the configured security and custom headers to every response.

    File downloads set their own Content-Security-Policy and
    Referrer-Policy, which are left alone.

    Args:
        app: Flask application
        settings: Application settings
    """
    extra_headers = []
    for header in settings.add_headers:
        name, sep, value = header.partition(": ")
        if sep:
            extra_headers.append((name, value))
        else:
            logger.warning(f"Ignoring malformed extra header: {header!r}")

    @app.after_request
    def add_security_headers(response):
        if settings.content_security_policy:
            response.headers.setdefault("Content-Security-Policy", settings.content_security_policy)
        if settings.referrer_policy:
            response.headers.setdefault("Referrer-Policy", settings.referrer_policy)
        if settings.x_frame_options:
            response.headers.setdefault("X-Frame-Options", settings.x_frame_options)
        for name, value in extra_headers:
            response.headers.add(name, value)
        return response


def get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Args:
        app: Flask application instance

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "filedrop ready",
        "storage": "unknown",
        "celery": "unknown",
        "cleanup": "unknown",
    }

    # Check storage reachability
    try:
        storage = app.container.resolve(IStorageBackend)
        storage.exists(HEALTH_PROBE_KEY)
        health_status["storage"] = "available"
    except Exception as e:
        health_status["storage"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    # Celery is optional: the in-process thread can sweep without it
    if getattr(app, "celery", None) is not None:
        health_status["celery"] = "available"
    else:
        health_status["celery"] = "not_configured"

    periodic = getattr(app, "periodic_cleanup", None)
    if periodic is None:
        health_status["cleanup"] = "not_configured"
    elif periodic.running:
        health_status["cleanup"] = "running"
    else:
        health_status["cleanup"] = "stopped"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    """
    Register health check endpoint.

    Args:
        app: Flask application
    """

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the application and its dependencies.
        """
        health_status, status_code = get_health_status(app)
        return jsonify(health_status), status_code
