"""Tests for health check endpoints."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from campusconnect.api.routers import health


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_basic_health_check(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert "timestamp" in data

    def test_liveness_probe(self, client: TestClient):
        response = client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness_probe(self, client: TestClient):
        response = client.get("/health/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"]["status"] == "healthy"
        assert data["checks"]["database"]["dialect"] == "sqlite"

    def test_readiness_probe_database_down(self, client: TestClient):
        with patch.object(health, "check_database", return_value={"status": "unhealthy", "error": "gone"}):
            response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["failed"] == ["database"]

    def test_health_detailed(self, client: TestClient):
        response = client.get("/health/detailed")
        assert response.status_code in [200, 503]
        data = response.json()
        assert set(data["checks"]) == {"database", "disk", "memory"}
        assert data["modules"] == {"clearance": True, "notifications": True}

    def test_health_detailed_degraded(self, client: TestClient):
        warning = {"status": "warning", "percent_used": 90}
        with patch.object(health, "check_disk", return_value=warning), \
                patch.object(health, "check_memory", return_value={"status": "healthy"}):
            response = client.get("/health/detailed")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    def test_level_thresholds(self):
        assert health._level(50, 85, 95) == "healthy"
        assert health._level(85, 85, 95) == "warning"
        assert health._level(99, 85, 95) == "critical"
