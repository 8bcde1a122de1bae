"""Social router: friends, invitations, leaderboards and group missions."""

from __future__ import annotations

from typing import Any, Literal

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.middleware.rate_limit import strict_rate_limit
from qiclife.responses import ok
from qiclife.social import service

logger = structlog.get_logger()

router = APIRouter(prefix="/api/social", tags=["Social"])


class FriendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    friend_id: str = Field(alias="friendId", min_length=1)


@router.get("/friends")
async def list_friends(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({
        "friends": await service.list_friends(db, user.id),
        "pending": await service.pending_invites(db, user.id),
    })


@router.get("/leaderboard")
async def leaderboard(
    by: Literal["lifescore", "xp"] = Query(default="lifescore"),
    limit: int = Query(default=10, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.leaderboard(db, user, by, limit))


@router.get("/missions")
async def collaborative_missions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({"missions": await service.collaborative_missions(db, user.id)})


@router.post("/invite", status_code=201, dependencies=[Depends(strict_rate_limit)])
async def invite_friend(
    body: FriendRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await service.invite(db, user, body.friend_id)
    await db.commit()
    logger.info("friend_invited", user_id=user.id, friend_id=body.friend_id)
    return ok(result, "Invitation sent")


@router.post("/accept")
async def accept_invite(
    body: FriendRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await service.respond(db, user, body.friend_id, accept=True)
    await db.commit()
    return ok(result, "Invitation accepted")


@router.post("/decline")
async def decline_invite(
    body: FriendRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await service.respond(db, user, body.friend_id, accept=False)
    await db.commit()
    return ok(result, "Invitation declined")
