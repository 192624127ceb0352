"""
Shared pytest fixtures and configuration for the filedrop backend test suite.

This module provides:
- Hypothesis configuration for property-based testing
- Sample payloads with well-known magic numbers
- In-memory and local filesystem storage backends
- A Flask application and test client wired to a temporary directory
"""

import pytest

# Hypothesis configuration
from hypothesis import HealthCheck, Phase, settings

from filedrop.app_factory import create_app
from filedrop.config.settings import Settings
from filedrop.infrastructure.local_file_storage_repository import LocalFilesystemBackend

from tests.fixtures import InMemoryStorageBackend

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")


# =============================================================================
# Sample Payloads
# =============================================================================

# Smallest valid PNG: signature plus IHDR, enough for libmagic
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
    b"\x1f\x15\xc4\x89"
    b"\x00\x00\x00\rIDATx\x9cc\xf8\xff\xff?\x00\x05\xfe\x02\xfe\xa75\x81\x84"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture
def png_bytes() -> bytes:
    """Provide a 1x1 PNG image."""
    return PNG_BYTES


@pytest.fixture
def text_bytes() -> bytes:
    """Provide a short plain-text payload."""
    return b"hello world, this is a plain text upload\n"


# =============================================================================
# Storage Backends
# =============================================================================

@pytest.fixture
def memory_backend() -> InMemoryStorageBackend:
    """Provide an empty in-memory storage backend."""
    return InMemoryStorageBackend()


@pytest.fixture
def local_backend(tmp_path) -> LocalFilesystemBackend:
    """Provide a local backend rooted in a pytest-managed temporary directory."""
    return LocalFilesystemBackend(
        files_path=str(tmp_path / "files"),
        meta_path=str(tmp_path / "meta"),
    )


# =============================================================================
# Flask Application
# =============================================================================

@pytest.fixture
def app_settings(tmp_path) -> Settings:
    """Settings pointing at a temporary directory, no background sweep."""
    return Settings(
        files_path=str(tmp_path / "files"),
        meta_path=str(tmp_path / "meta"),
        cleanup_every_minutes=0,
        no_logs=True,
    )


@pytest.fixture
def app(app_settings):
    """Create a Flask app backed by the local filesystem."""
    flask_app = create_app(settings=app_settings, enable_celery=False)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
