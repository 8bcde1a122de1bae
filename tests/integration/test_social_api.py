"""Integration tests for friends, leaderboards and collaborative missions."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from qiclife.database import get_session
from qiclife.db.models import UserMission
from tests.conftest import make_user, set_user_fields


async def _my_id(client: AsyncClient) -> str:
    return (await client.get("/api/profile")).json()["data"]["user"]["id"]


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _befriend(client: AsyncClient, friend_id: str, friend_token: str) -> None:
    me = await _my_id(client)
    assert (await client.post("/api/social/invite", json={"friendId": friend_id})).status_code == 201
    response = await client.post("/api/social/accept", json={"friendId": me}, headers=_bearer(friend_token))
    assert response.status_code == 200


class TestFriends:
    @pytest.mark.asyncio
    async def test_invite_and_accept(self, authed_client: AsyncClient):
        me = await _my_id(authed_client)
        friend_id, token = await make_user("layla@example.com", "layla")

        response = await authed_client.post("/api/social/invite", json={"friendId": friend_id})
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Invitation sent"
        assert body["data"] == {"friendId": friend_id, "status": "pending"}

        # Pending invitations are not friends yet
        assert (await authed_client.get("/api/social/friends")).json()["data"]["friends"] == []
        pending = (await authed_client.get("/api/social/friends", headers=_bearer(token))).json()["data"]["pending"]
        assert [p["from"]["id"] for p in pending] == [me]

        response = await authed_client.post("/api/social/accept", json={"friendId": me}, headers=_bearer(token))
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "accepted"

        mine = (await authed_client.get("/api/social/friends")).json()["data"]["friends"]
        theirs = (await authed_client.get("/api/social/friends", headers=_bearer(token))).json()["data"]["friends"]
        assert [f["username"] for f in mine] == ["layla"]
        assert [f["id"] for f in theirs] == [me]

    @pytest.mark.asyncio
    async def test_cannot_invite_self(self, authed_client: AsyncClient):
        me = await _my_id(authed_client)
        response = await authed_client.post("/api/social/invite", json={"friendId": me})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_friend(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/social/invite", json={"friendId": "nobody"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_invite_in_either_direction(self, authed_client: AsyncClient):
        me = await _my_id(authed_client)
        friend_id, token = await make_user("omar@example.com", "omar")
        assert (await authed_client.post("/api/social/invite", json={"friendId": friend_id})).status_code == 201
        assert (await authed_client.post("/api/social/invite", json={"friendId": friend_id})).status_code == 409
        response = await authed_client.post("/api/social/invite", json={"friendId": me}, headers=_bearer(token))
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_declined_invite_can_be_resent(self, authed_client: AsyncClient):
        me = await _my_id(authed_client)
        friend_id, token = await make_user("sara@example.com", "sara")
        await authed_client.post("/api/social/invite", json={"friendId": friend_id})
        response = await authed_client.post("/api/social/decline", json={"friendId": me}, headers=_bearer(token))
        assert response.json()["data"]["status"] == "declined"

        response = await authed_client.post("/api/social/invite", json={"friendId": friend_id})
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_accept_without_invite(self, authed_client: AsyncClient):
        friend_id, _ = await make_user("yusuf@example.com", "yusuf")
        response = await authed_client.post("/api/social/accept", json={"friendId": friend_id})
        assert response.status_code == 404
        assert response.json()["message"] == "Invitation not found"


class TestLeaderboard:
    @pytest.mark.asyncio
    async def test_ordered_by_lifescore_with_own_rank(self, authed_client: AsyncClient):
        me = await _my_id(authed_client)
        await set_user_fields(me, lifescore=40, xp=100)
        amina, _ = await make_user("amina@example.com", "amina")
        await set_user_fields(amina, lifescore=90, xp=1200)
        yusuf, _ = await make_user("yusuf@example.com", "yusuf")
        await set_user_fields(yusuf, lifescore=87, xp=1150)

        data = (await authed_client.get("/api/social/leaderboard")).json()["data"]
        assert data["by"] == "lifescore"
        assert [e["username"] for e in data["leaderboard"]] == ["amina", "yusuf", "qicuser"]
        assert [e["rank"] for e in data["leaderboard"]] == [1, 2, 3]
        assert data["you"]["rank"] == 3
        assert data["you"]["id"] == me

    @pytest.mark.asyncio
    async def test_by_xp_with_limit(self, authed_client: AsyncClient):
        me = await _my_id(authed_client)
        await set_user_fields(me, lifescore=95, xp=10)
        top, _ = await make_user("top@example.com", "top")
        await set_user_fields(top, lifescore=10, xp=5000)

        data = (await authed_client.get("/api/social/leaderboard", params={"by": "xp", "limit": 1})).json()["data"]
        assert [e["username"] for e in data["leaderboard"]] == ["top"]
        assert data["you"]["rank"] == 2

    @pytest.mark.asyncio
    async def test_unknown_ordering_rejected(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/social/leaderboard", params={"by": "coins"})
        assert response.status_code == 400


class TestCollaborativeMissions:
    @pytest.mark.asyncio
    async def test_lists_collaborative_missions(self, authed_client: AsyncClient):
        missions = (await authed_client.get("/api/social/missions")).json()["data"]["missions"]
        assert {m["id"] for m in missions} == {"family-emergency-plan", "community-service", "steps-10k-daily"}
        assert all(m["participant_count"] == 0 and not m["joined"] for m in missions)

    @pytest.mark.asyncio
    async def test_shows_friends_who_joined(self, authed_client: AsyncClient):
        friend_id, token = await make_user("layla@example.com", "layla")
        stranger_id, _ = await make_user("stranger@example.com", "stranger")
        await _befriend(authed_client, friend_id, token)
        async for db in get_session():
            for user_id in (friend_id, stranger_id):
                db.add(UserMission(
                    user_id=user_id,
                    mission_id="community-service",
                    status="active",
                    started_at=datetime.now(timezone.utc),
                ))
            await db.commit()
            break

        missions = {m["id"]: m for m in (await authed_client.get("/api/social/missions")).json()["data"]["missions"]}
        assert missions["community-service"]["participant_count"] == 2
        assert missions["community-service"]["friends"] == ["layla"]
        assert missions["community-service"]["max_participants"] == 10
        assert missions["family-emergency-plan"]["friends"] == []
