"""Unit tests for the health check endpoint."""

from fastapi.testclient import TestClient

from lamachine import __version__


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_returns_healthy(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["model"] == "openai/gpt-4o-mini"
        assert "timestamp" in data

    def test_unknown_path_is_404(self, client: TestClient) -> None:
        assert client.get("/nope").status_code == 404
