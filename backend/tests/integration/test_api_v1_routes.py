"""
Integration tests for the versioned REST API.

Tests the /api/v1 namespaces end to end: uploads always answer JSON,
files can be inspected, downloaded, protected and deleted.
"""

import io

import pytest


@pytest.fixture
def uploaded(client, text_bytes):
    response = client.put("/api/v1/upload/notes.txt", data=text_bytes)
    assert response.status_code == 200
    return response.get_json()


@pytest.mark.integration
class TestUploadNamespace:
    """Test /api/v1/upload."""

    def test_named_put(self, uploaded, text_bytes):
        assert uploaded["filename"].endswith(".txt")
        assert uploaded["original_name"] == "notes.txt"
        assert uploaded["size"] == str(len(text_bytes))

    def test_raw_put(self, client, png_bytes):
        response = client.put("/api/v1/upload", data=png_bytes)

        assert response.get_json()["filename"].endswith(".png")

    def test_multipart_post_answers_json(self, client, png_bytes):
        response = client.post(
            "/api/v1/upload",
            data={"file": (io.BytesIO(png_bytes), "photo.png"), "expires": "600"},
            content_type="multipart/form-data",
        )

        assert response.status_code == 200
        record = response.get_json()
        assert record["mimetype"] == "image/png"
        assert record["expiry"] != "-1"

    def test_paste(self, client):
        response = client.post("/api/v1/upload", data={"content": "hello", "filename": "greeting"})

        record = response.get_json()
        assert record["filename"].endswith(".txt")
        assert record["original_name"] == "greeting.txt"

    def test_error_body(self, client):
        response = client.put("/api/v1/upload/empty.txt", data=b"")

        assert response.status_code == 400
        assert response.get_json()["error"] == "file_empty"


@pytest.mark.integration
class TestFileNamespace:
    """Test /api/v1/files."""

    def test_info(self, client, uploaded):
        response = client.get(f"/api/v1/files/{uploaded['filename']}")

        info = response.get_json()
        assert info["sha256sum"] == uploaded["sha256sum"]
        assert info["url"] == uploaded["url"]

    def test_cli_agent_still_gets_info(self, client, uploaded):
        response = client.get(
            f"/api/v1/files/{uploaded['filename']}", headers={"User-Agent": "curl/8.5.0"}
        )

        assert response.is_json

    def test_download(self, client, uploaded, text_bytes):
        response = client.get(f"/api/v1/files/{uploaded['filename']}/download")

        assert response.get_data() == text_bytes

    def test_delete_answers_json(self, client, uploaded):
        response = client.delete(
            f"/api/v1/files/{uploaded['filename']}",
            headers={"Filedrop-Delete-Key": uploaded["delete_key"]},
        )

        assert response.status_code == 200
        assert response.get_json() == {"filename": uploaded["filename"], "status": "DELETED"}
        assert client.get(f"/api/v1/files/{uploaded['filename']}").status_code == 404

    def test_access_key(self, client, uploaded):
        key = uploaded["filename"]

        response = client.patch(
            f"/api/v1/files/{key}/access-key",
            json={"access_key": "s3cret"},
            headers={"Filedrop-Delete-Key": uploaded["delete_key"]},
        )

        assert response.status_code == 200
        assert client.get(f"/api/v1/files/{key}").status_code == 401
        assert client.get(f"/api/v1/files/{key}?access_key=s3cret").status_code == 200


@pytest.mark.integration
class TestSystemNamespace:
    """Test /api/v1/system."""

    def test_health(self, client):
        response = client.get("/api/v1/system/health")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert body["storage"] == "available"

    def test_swagger_spec(self, client):
        response = client.get("/api/v1/swagger.json")

        assert response.status_code == 200
        paths = response.get_json()["paths"]
        assert "/upload/remote" in paths
        assert "/files/{name}/access-key" in paths
