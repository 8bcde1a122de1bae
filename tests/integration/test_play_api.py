"""Integration tests for Road-Trip Roulette."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import delete

from qiclife.ai.engine import ROULETTE_DESTINATIONS
from qiclife.database import get_session
from qiclife.db.models import UserProfile


async def _me(client: AsyncClient) -> dict:
    return (await client.get("/api/profile")).json()["data"]


class TestRoulette:
    @pytest.mark.asyncio
    async def test_fresh_user_has_three_spins(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/play/roulette/spins-remaining")
        assert response.status_code == 200
        assert response.json()["data"] == {"remaining": 3, "canSpin": True, "spinCount": 0, "maxSpins": 3}

    @pytest.mark.asyncio
    async def test_spin_pays_out(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/play/roulette/spin")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["wheel_spin_result"] in ROULETTE_DESTINATIONS
        assert len(data["itinerary"]) == 5
        assert len(data["ctas"]) == 3
        assert data["coins_earned"] == 100
        assert data["xp_earned"] == 50
        assert data["remaining"] == 2
        assert data["spinCount"] == 1

        stats = (await _me(authed_client))["stats"]
        assert stats["coins"] == 1100
        assert stats["xp"] == 50
        assert stats["current_streak"] == 1

    @pytest.mark.asyncio
    async def test_itinerary_starts_with_fuel_stop_for_drivers(self, authed_client: AsyncClient):
        await authed_client.put("/api/profile", json={"profile_json": {"insurance_preferences": ["car"]}})
        data = (await authed_client.post("/api/play/roulette/spin")).json()["data"]
        assert data["itinerary"][0].startswith("Fuel up at Al Sadd station")

    @pytest.mark.asyncio
    async def test_fourth_spin_rejected(self, authed_client: AsyncClient):
        for expected_remaining in (2, 1, 0):
            response = await authed_client.post("/api/play/roulette/spin")
            assert response.status_code == 200
            assert response.json()["data"]["remaining"] == expected_remaining

        response = await authed_client.post("/api/play/roulette/spin")
        assert response.status_code == 429
        assert response.json() == {
            "success": False,
            "message": "Daily spin limit reached (3 spins/day). Try again tomorrow!",
        }

        remaining = (await authed_client.get("/api/play/roulette/spins-remaining")).json()["data"]
        assert remaining == {"remaining": 0, "canSpin": False, "spinCount": 3, "maxSpins": 3}
        assert (await _me(authed_client))["stats"]["coins"] == 1300

    @pytest.mark.asyncio
    async def test_spin_without_profile(self, authed_client: AsyncClient):
        user_id = (await _me(authed_client))["user"]["id"]
        async for db in get_session():
            await db.execute(delete(UserProfile).where(UserProfile.user_id == user_id))
            await db.commit()
            break

        response = await authed_client.post("/api/play/roulette/spin")
        assert response.status_code == 404
        assert response.json()["message"] == "User profile not found"
        remaining = (await authed_client.get("/api/play/roulette/spins-remaining")).json()["data"]
        assert remaining["spinCount"] == 0

    @pytest.mark.asyncio
    async def test_history_lists_spins(self, authed_client: AsyncClient):
        await authed_client.post("/api/play/roulette/spin")
        await authed_client.post("/api/play/roulette/spin")
        activities = (await authed_client.get("/api/play/history")).json()["data"]["activities"]
        assert len(activities) == 2
        assert {a["activity_type"] for a in activities} == {"roulette_spin"}
        assert all(a["coins_earned"] == 100 for a in activities)

    @pytest.mark.asyncio
    async def test_spin_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/play/roulette/spin")
        assert response.status_code == 401
