"""Tests for the health endpoint and app wiring."""

from skilltrack import __version__


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_ok(self, client):
        """Health check returns ok status."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == __version__
        assert "timestamp" in data

    def test_health_needs_no_token(self, client):
        assert client.get("/health", headers={"Authorization": "Bearer nope"}).status_code == 200


class TestOpenAPI:
    """Tests for the generated API docs."""

    def test_openapi_lists_routes(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        for path in (
            "/api/auth/signin",
            "/api/skills/{skill_id}/questions/import",
            "/api/assignments/export",
            "/api/reports/logs/export",
        ):
            assert path in paths

    def test_lifespan_initializes_database(self, isolated_db):
        """Starting the app runs init_db on the configured path."""
        from fastapi.testclient import TestClient

        from skilltrack.web.api import create_app

        with TestClient(create_app()) as client:
            assert client.get("/health").status_code == 200
        assert isolated_db.exists()
