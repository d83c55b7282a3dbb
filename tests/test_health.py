"""Tests for health and metrics endpoints."""

import pytest
from httpx import AsyncClient


class TestHealthCheck:
    """Tests for /health endpoint."""

    @pytest.mark.asyncio
    async def test_health_endpoint_exists(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code in [200, 503]

    @pytest.mark.asyncio
    async def test_health_response_structure(self, client: AsyncClient):
        response = await client.get("/health")
        data = response.json()

        assert "status" in data
        assert "timestamp" in data
        assert "uptime_seconds" in data
        assert "version" in data
        assert "checks" in data

    @pytest.mark.asyncio
    async def test_health_reports_database(self, client: AsyncClient):
        """The test database is reachable, so the service is healthy."""
        response = await client.get("/health")
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["checks"]["database"] == {"status": "healthy"}


class TestMetrics:
    """Tests for /metrics endpoint."""

    @pytest.mark.asyncio
    async def test_metrics_exposition(self, client: AsyncClient):
        await client.get("/health")
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        body = response.text
        assert "# TYPE http_requests_total counter" in body
        assert 'path="/health"' in body
        assert "# TYPE recommendation_streams_total counter" in body
        assert "# TYPE llm_stream_duration_seconds histogram" in body
