"""
Unit tests for the API error decorator.

Tests that domain errors raised inside views become structured JSON
responses with the category's status code.
"""

import pytest
from flask import Flask

from filedrop.api.error_decorator import handle_domain_errors, json_error
from filedrop.domain.errors import (
    ErrorCategory,
    InvalidAccessKeyError,
    NotFoundError,
    StorageError,
)


@pytest.fixture
def flask_app():
    """Create Flask app with views raising domain errors."""
    app = Flask(__name__)
    app.config["TESTING"] = True

    @app.route("/missing")
    @handle_domain_errors
    def missing():
        raise NotFoundError("no such key: abc.txt")

    @app.route("/protected")
    @handle_domain_errors
    def protected():
        raise InvalidAccessKeyError("wrong key")

    @app.route("/broken")
    @handle_domain_errors
    def broken():
        raise StorageError("disk failure", OSError("EIO"))

    @app.route("/ok")
    @handle_domain_errors
    def ok():
        return "fine"

    @app.route("/bad")
    def bad():
        return json_error(ErrorCategory.INVALID_REQUEST, "missing field")

    return app


@pytest.fixture
def client(flask_app):
    """Create test client."""
    return flask_app.test_client()


@pytest.mark.unit
class TestHandleDomainErrors:
    """Test handle_domain_errors."""

    @pytest.mark.parametrize(
        "path,status,category",
        [
            ("/missing", 404, "file_not_found"),
            ("/protected", 401, "invalid_access_key"),
            ("/broken", 500, "storage_error"),
            ("/bad", 400, "invalid_request"),
        ],
    )
    def test_error_mapping(self, client, path, status, category):
        response = client.get(path)

        assert response.status_code == status
        assert response.is_json
        assert response.get_json()["error"] == category

    def test_error_body_shape(self, client):
        body = client.get("/missing").get_json()

        assert set(body) == {"error", "title", "message", "action"}
        assert "abc.txt" not in body["message"]

    def test_success_passes_through(self, client):
        response = client.get("/ok")

        assert response.status_code == 200
        assert response.get_data(as_text=True) == "fine"
