"""
Tests for the health check API router.

Validates the health endpoint response shape and store status reporting.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

from fastapi.testclient import TestClient


class TestHealthCheck:
    def test_health_returns_200(self, client: TestClient):
        resp = client.get("/health")
        assert resp.status_code == 200

    def test_healthy_stores(self, client: TestClient):
        data = client.get("/health").json()
        assert data == {
            "status": "healthy",
            "services": {"database": "healthy", "object_store": "healthy"},
        }

    def test_unreachable_store_degrades(self, client: TestClient, service):
        service.health = AsyncMock(return_value={"metadata": False, "content": True})
        data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["services"]["database"] == "unhealthy"

    def test_not_configured(self, unconfigured_client: TestClient):
        data = unconfigured_client.get("/health").json()
        assert data["status"] == "degraded"
        assert set(data["services"].values()) == {"not_configured"}
