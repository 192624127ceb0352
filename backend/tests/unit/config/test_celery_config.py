"""
Unit tests for the Celery configuration

Tests the beat schedule for the cleanup sweep and the Flask app context
wrapping of tasks.
"""

from unittest.mock import MagicMock

import pytest

from filedrop.config.celery_config import (
    CLEANUP_TASK_NAME,
    CeleryConfig,
    _cleanup_interval_seconds,
    make_celery,
)


@pytest.mark.unit
class TestCeleryConfig:
    """Test CeleryConfig and helpers."""

    def test_beat_schedule_runs_cleanup(self):
        entry = CeleryConfig.beat_schedule["cleanup-expired-files"]

        assert entry["task"] == CLEANUP_TASK_NAME

    def test_cleanup_routed_to_own_queue(self):
        assert CeleryConfig.task_routes[CLEANUP_TASK_NAME] == {"queue": "cleanup_queue"}

    def test_interval_from_environment(self, monkeypatch):
        monkeypatch.setenv("FILEDROP_CLEANUP_EVERY_MINUTES", "10")

        assert _cleanup_interval_seconds() == 600.0

    def test_interval_default(self, monkeypatch):
        monkeypatch.delenv("FILEDROP_CLEANUP_EVERY_MINUTES", raising=False)

        assert _cleanup_interval_seconds() == 300.0


@pytest.mark.unit
class TestMakeCelery:
    """Test make_celery()."""

    def test_tasks_run_inside_app_context(self):
        # Arrange
        flask_app = MagicMock()
        flask_app.import_name = "filedrop.app_factory"
        celery = make_celery(flask_app)

        @celery.task
        def ping():
            return "pong"

        # Act
        result = ping()

        # Assert
        assert result == "pong"
        flask_app.app_context.assert_called()
