"""Integration tests for achievement listing and unlocks."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestAchievements:
    @pytest.mark.asyncio
    async def test_catalog(self, authed_client: AsyncClient):
        achievements = (await authed_client.get("/api/achievements")).json()["data"]["achievements"]
        assert len(achievements) == 10
        assert achievements[0]["slug"] == "first_steps"

    @pytest.mark.asyncio
    async def test_nothing_unlocked_initially(self, authed_client: AsyncClient):
        data = (await authed_client.get("/api/achievements/user")).json()["data"]
        assert data["user_achievements"] == []

    @pytest.mark.asyncio
    async def test_first_completion_unlocks_once(self, authed_client: AsyncClient):
        await authed_client.post("/api/missions/start", json={"missionId": "hydration-champion"})
        await authed_client.post("/api/missions/complete", json={"missionId": "hydration-champion"})
        await authed_client.post("/api/missions/start", json={"missionId": "steps-10k-daily"})
        response = await authed_client.post("/api/missions/complete", json={"missionId": "steps-10k-daily"})
        assert response.json()["data"]["achievements_unlocked"] == []

        unlocked = (await authed_client.get("/api/achievements/user")).json()["data"]["user_achievements"]
        assert [a["slug"] for a in unlocked] == ["first_steps"]
        assert "unlocked_at" in unlocked[0]
