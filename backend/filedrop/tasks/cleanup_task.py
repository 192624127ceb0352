"""
Cleanup Task

Celery beat task for periodic removal of expired and orphaned files.
"""

import logging

from flask import current_app

from filedrop.application.cleanup_service import CleanupService
from filedrop.celery_app import celery_app
from filedrop.config.celery_config import CLEANUP_TASK_NAME

logger = logging.getLogger(__name__)


def run_cleanup(app) -> dict:
    """
    Run one sweep using the services registered on a Flask app.

    Args:
        app: Flask application carrying the dependency container

    Returns:
        dict: Cleanup statistics with counts and errors
    """
    container = app.container
    if not container.is_registered(CleanupService):
        message = "Storage backend cannot be enumerated; relying on lazy expiry"
        logger.info(message)
        return {
            "scanned": 0,
            "expired_files_removed": 0,
            "orphaned_files_cleaned": 0,
            "errors": [],
            "skipped": message,
        }

    try:
        stats = container.resolve(CleanupService).cleanup_expired_files()
    except Exception as e:
        error_msg = f"Cleanup task failed: {e}"
        logger.error(error_msg, exc_info=True)
        return {
            "scanned": 0,
            "expired_files_removed": 0,
            "orphaned_files_cleaned": 0,
            "errors": [error_msg],
        }

    if stats.errors:
        logger.warning(f"Cleanup errors: {stats.errors}")
    return stats.to_dict()


@celery_app.task(bind=True, name=CLEANUP_TASK_NAME)
def cleanup_expired_files(self):
    """
    Periodic cleanup task removing expired files.

    Runs on the Celery beat schedule and:
    1. Deletes every file whose expiry has passed
    2. Removes content left without metadata for over an hour
    3. Logs cleanup activities for monitoring

    Returns:
        dict: Cleanup statistics with counts and errors
    """
    logger.info("Starting cleanup task")
    return run_cleanup(current_app)
