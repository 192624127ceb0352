"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory to ensure all services are properly initialized.
"""

from filedrop.app_factory import create_app

# Create Flask app with all services initialized (including dependency container)
flask_app = create_app()

celery_app = flask_app.celery
if celery_app is None:
    raise RuntimeError(
        "Celery could not be initialized; check CELERY_BROKER_URL and the "
        "app factory log for the underlying error"
    )

# Task modules are imported by name when the worker starts, at which point
# `celery_app` already exists for the task decorators
celery_app.conf.imports = ("filedrop.tasks.cleanup_task",)
