"""Tests for the connection check endpoint."""

import io

from fastapi.testclient import TestClient

from tests.conftest import FakeBackend


class TestConnectionCheck:
    """Tests for GET /api/test-connection."""

    def test_empty_table(self, client: TestClient):
        response = client.get("/api/test-connection")
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": []}

    def test_lists_records(self, client: TestClient):
        client.post(
            "/api/v1/voice-files/",
            files={"file": ("test.mp3", io.BytesIO(b"\x00" * 256), "audio/mpeg")},
            data={"text": "Hello"},
        )
        response = client.get("/api/test-connection")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert len(data["data"]) == 1
        record = data["data"][0]
        assert record["original_filename"] == "test.mp3"
        assert record["text_input"] == "Hello"
        assert record["status"] == "completed"
        assert record["processed_filename"] == "processed_test.mp3"

    def test_backend_error(self, fake_client: TestClient, fake_backend: FakeBackend):
        fake_backend.fail_on["select"] = 'relation "voice_files" does not exist'
        response = fake_client.get("/api/test-connection")
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": 'relation "voice_files" does not exist'}

    def test_backend_throws(self, fake_client: TestClient, fake_backend: FakeBackend):
        fake_backend.crash_on["select"] = ConnectionError("connection refused")
        response = fake_client.get("/api/test-connection")
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "connection refused"}
