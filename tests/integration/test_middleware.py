"""Middleware tests: request ID, auth, rate limiting, CORS and error envelopes."""

from collections import Counter

import pytest
from httpx import AsyncClient

from qiclife.config import get_settings
from tests.conftest import make_user


@pytest.fixture
def fake_redis_counter(monkeypatch):
    """Replace the Redis window counter with an in-process one."""
    counts: Counter[str] = Counter()

    async def hit(key: str, window_seconds: int) -> int:
        counts[key] += 1
        return counts[key]

    monkeypatch.setattr("qiclife.middleware.rate_limit.hit", hit)
    return counts


@pytest.fixture
def production_settings(monkeypatch):
    monkeypatch.setenv("QIC_ENVIRONMENT", "production")
    get_settings.cache_clear()
    yield get_settings()
    monkeypatch.undo()
    get_settings.cache_clear()


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/api/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    response = await client.get("/api/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_missing_auth_returns_401(client: AsyncClient) -> None:
    response = await client.get("/api/profile")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Authorization required. Please sign in."}


@pytest.mark.asyncio
async def test_session_header_maps_to_dev_user(authed_client: AsyncClient) -> None:
    response = await authed_client.get("/api/profile")
    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["email"] == "user@qiclife.com"
    assert user["username"] == "qicuser"


@pytest.mark.asyncio
async def test_session_header_rejected_in_production(client: AsyncClient, production_settings) -> None:
    response = await client.get("/api/profile", headers={"X-Session-Id": "abc"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_bearer_token(client: AsyncClient) -> None:
    user_id, token = await make_user("jwt@example.com", "jwtuser")
    response = await client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["id"] == user_id


@pytest.mark.asyncio
async def test_invalid_token(client: AsyncClient) -> None:
    response = await client.get("/api/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_validation_error_envelope(authed_client: AsyncClient) -> None:
    response = await authed_client.post("/api/analytics/events", json={})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert any(d["field"] == "name" for d in body["error"])


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient, fake_redis_counter) -> None:
    response = await client.get("/api/onboarding/integrations")
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "99"


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient, fake_redis_counter) -> None:
    """101st request returns 429 with Retry-After header."""
    for _ in range(100):
        await client.get("/api/onboarding/integrations")
    response = await client.get("/api/onboarding/integrations")
    assert response.status_code == 429
    assert response.headers["retry-after"] == "900"
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(client: AsyncClient, fake_redis_counter) -> None:
    for _ in range(120):
        response = await client.get("/api/health")
        assert response.status_code == 200
    assert not fake_redis_counter


@pytest.mark.asyncio
async def test_strict_rate_limit(authed_client: AsyncClient, fake_redis_counter) -> None:
    """Mutating routes allow 10 requests per window per session."""
    for _ in range(10):
        response = await authed_client.post("/api/referrals/share", json={})
        assert response.status_code == 200
    response = await authed_client.post("/api/referrals/share", json={})
    assert response.status_code == 429
    assert response.json()["message"] == "Too many requests. Please slow down and try again later."


@pytest.mark.asyncio
async def test_roulette_rate_limit(authed_client: AsyncClient, fake_redis_counter) -> None:
    """Roulette spins allow 3 requests per minute per session."""
    for _ in range(3):
        response = await authed_client.post("/api/play/roulette/spin")
        assert response.status_code == 200
    response = await authed_client.post("/api/play/roulette/spin")
    assert response.status_code == 429
    assert response.json()["message"] == "Too many spins. Please wait a minute."
    assert response.headers["retry-after"] == "60"


@pytest.mark.asyncio
async def test_limiter_passes_through_without_redis(client: AsyncClient) -> None:
    response = await client.get("/api/onboarding/integrations")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    response = await client.options(
        "/api/health",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert "access-control-allow-origin" in response.headers
