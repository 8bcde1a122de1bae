"""Health endpoint tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    """GET /api/health returns 200 with status, uptime and version."""
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["environment"] == "test"
    assert data["version"] == "1.0.0"
    assert data["uptime"] >= 0
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_health_trailing_slash(client: AsyncClient) -> None:
    response = await client.get("/api/health/")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_detailed_degraded_without_redis(client: AsyncClient) -> None:
    """Redis is not initialised in tests, so the detailed check reports 503."""
    response = await client.get("/api/health/detailed")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "DEGRADED"
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["redis"].startswith("error")
