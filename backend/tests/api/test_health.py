"""Tests for health check endpoints."""

from fastapi.testclient import TestClient

from api import app


client = TestClient(app)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self):
        """Health endpoint should return 200 with status."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"

    def test_health_response_structure(self):
        """Health response should have correct structure."""
        response = client.get("/api/health")
        assert set(response.json().keys()) == {"status", "version"}

    def test_readiness_without_credentials(self, monkeypatch):
        """Readiness should report degraded when payments and storage are unset."""
        monkeypatch.setenv("STRIPE_SECRET_KEY", "")
        monkeypatch.setenv("S3_BUCKET", "")
        from shared.config import get_settings
        get_settings.cache_clear()

        response = client.get("/api/ready")
        assert response.status_code == 200
        data = response.json()
        assert data == {
            "status": "degraded",
            "database": "in_memory",
            "payments": "not_configured",
            "storage": "not_configured",
        }

    def test_readiness_with_credentials(self, monkeypatch):
        """Readiness should report ready when every upstream has credentials."""
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
        monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_123")
        monkeypatch.setenv("S3_BUCKET", "emotes")
        from shared.config import get_settings
        get_settings.cache_clear()

        data = client.get("/api/ready").json()
        assert data["status"] == "ready"
        assert data["payments"] == "configured"
        assert data["storage"] == "configured"
