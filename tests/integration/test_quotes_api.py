"""Integration tests for quote sessions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from qiclife.database import get_session
from qiclife.db.models import QuoteSession
from tests.conftest import make_user


async def _start(client: AsyncClient, product_id: str = "auto_plus") -> dict:
    response = await client.post("/api/quotes/start", json={"product_id": product_id, "inputs": {"car_year": 2021}})
    assert response.status_code == 200
    return response.json()["data"]


async def _expire(quote_id: str) -> None:
    async for db in get_session():
        await db.execute(
            update(QuoteSession)
            .where(QuoteSession.id == quote_id)
            .values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        await db.commit()
        return


class TestQuotes:
    @pytest.mark.asyncio
    async def test_start_quote(self, authed_client: AsyncClient):
        data = await _start(authed_client)
        assert data["product_id"] == "auto_plus"
        assert data["price_range"] == [84, 144]
        assert data["next_step"] == "provide_details"
        assert data["quote_session_id"]

    @pytest.mark.asyncio
    async def test_low_premium_range_is_floored(self, authed_client: AsyncClient):
        data = await _start(authed_client, "travel_easy")
        assert data["price_range"] == [50, 50]

    @pytest.mark.asyncio
    async def test_status_then_complete(self, authed_client: AsyncClient):
        quote_id = (await _start(authed_client))["quote_session_id"]

        status = (await authed_client.get(f"/api/quotes/{quote_id}/status")).json()["data"]
        assert status["status"] == "in_progress"
        assert status["next_step"] == "review"

        response = await authed_client.post(f"/api/quotes/{quote_id}/complete")
        assert response.status_code == 200
        assert response.json()["data"] == {"status": "complete", "final_price": 114}

        status = (await authed_client.get(f"/api/quotes/{quote_id}/status")).json()["data"]
        assert status["status"] == "complete"
        assert status["final_price"] == 114
        assert status["next_step"] == "complete"

    @pytest.mark.asyncio
    async def test_complete_twice_keeps_price(self, authed_client: AsyncClient):
        quote_id = (await _start(authed_client, "home_secure"))["quote_session_id"]
        first = (await authed_client.post(f"/api/quotes/{quote_id}/complete")).json()["data"]
        second = (await authed_client.post(f"/api/quotes/{quote_id}/complete")).json()["data"]
        assert first == second == {"status": "complete", "final_price": 91}

    @pytest.mark.asyncio
    async def test_product_id_required(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/quotes/start", json={"inputs": {}})
        assert response.status_code == 400
        assert response.json()["message"] == "product_id required"

    @pytest.mark.asyncio
    async def test_unknown_product(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/quotes/start", json={"product_id": "yacht_max"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid product_id"

    @pytest.mark.asyncio
    async def test_ineligible_product(self, authed_client: AsyncClient):
        await authed_client.put("/api/profile", json={"profile_json": {"step1": {"driving_habits": "aggressive"}}})
        response = await authed_client.post("/api/quotes/start", json={"product_id": "auto_plus"})
        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "User not eligible for selected product"}

    @pytest.mark.asyncio
    async def test_unknown_quote(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/quotes/missing/status")
        assert response.status_code == 404
        assert response.json()["message"] == "Not found"
        assert (await authed_client.post("/api/quotes/missing/complete")).status_code == 404

    @pytest.mark.asyncio
    async def test_quote_is_private(self, authed_client: AsyncClient):
        quote_id = (await _start(authed_client))["quote_session_id"]
        _, token = await make_user("other@example.com", "other")
        response = await authed_client.get(
            f"/api/quotes/{quote_id}/status",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_expired_quote(self, authed_client: AsyncClient):
        quote_id = (await _start(authed_client))["quote_session_id"]
        await _expire(quote_id)

        response = await authed_client.post(f"/api/quotes/{quote_id}/complete")
        assert response.status_code == 410
        assert response.json()["message"] == "Quote session expired"

        status = (await authed_client.get(f"/api/quotes/{quote_id}/status")).json()["data"]
        assert status["status"] == "expired"
        assert status["next_step"] == "complete"
        assert status["final_price"] is None
