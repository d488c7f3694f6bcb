"""Integration tests for health endpoints.

This module contains integration tests for the health check endpoints,
including database connectivity checks and the readiness and liveness endpoints.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient


class TestHealthEndpoints:
    """Integration tests for health endpoints."""

    def test_health_check_success(self, client: TestClient):
        """Test successful basic health check."""
        response = client.get("/api/health/")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert data["service"] == "bookswap-api"
        assert "timestamp" in data
        assert "version" in data

    def test_detailed_health_check(self, client: TestClient):
        """Test detailed health check reports the database."""
        response = client.get("/api/health/detailed")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert data["environment"] == "testing"
        assert data["database"]["status"] == "connected"
        assert "url" in data["database"]["info"]

    def test_detailed_health_check_database_error(self, client: TestClient):
        """Test detailed health check with database connection error."""
        with patch("bookswap.routers.health.check_database_connection") as mock_check:
            mock_check.return_value = False

            response = client.get("/api/health/detailed")

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "external_service_error"
        assert "database" in error["message"]

    def test_readiness_check(self, client: TestClient):
        response = client.get("/api/health/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_readiness_check_database_down(self, client: TestClient):
        with patch("bookswap.routers.health.check_database_connection", return_value=False):
            response = client.get("/api/health/ready")

        assert response.status_code == 503

    def test_liveness_check(self, client: TestClient):
        response = client.get("/api/health/live")

        assert response.status_code == 200
        assert response.json()["alive"] is True

    def test_health_check_headers(self, client: TestClient):
        """Test health check response headers."""
        response = client.get("/api/health/")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert "x-request-id" in response.headers
        assert "x-process-time" in response.headers
        assert response.headers["x-content-type-options"] == "nosniff"


class TestRootEndpoints:
    """Tests for the root and version endpoints."""

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert "BookSwap" in response.json()["message"]

    def test_version(self, client: TestClient):
        response = client.get("/version")

        assert response.status_code == 200
        assert response.json()["version"] == "1.0.0"

    def test_unknown_route_uses_error_envelope(self, client: TestClient):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "not_found_error"
        assert error["status_code"] == 404
