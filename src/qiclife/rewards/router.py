"""Rewards router: catalog, redemption, badges and prequalified offers."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.middleware.rate_limit import strict_rate_limit
from qiclife.products.service import prequalified_offers
from qiclife.profile.service import get_profile_json
from qiclife.responses import ok
from qiclife.rewards import service

logger = structlog.get_logger()

router = APIRouter(prefix="/api/rewards", tags=["Rewards"])


class RedeemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reward_id: str = Field(alias="rewardId", min_length=1)


@router.get("")
@router.get("/")
async def list_rewards(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({"rewards": await service.list_active_rewards(db)})


@router.post("/redeem", status_code=201, dependencies=[Depends(strict_rate_limit)])
async def redeem_reward(
    body: RedeemRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await service.redeem(db, user, body.reward_id)
    await db.commit()
    logger.info("reward_redeemed", user_id=user.id, reward_id=body.reward_id, balance=result["new_balance"])
    return ok(result, "Reward redeemed")


@router.get("/user")
async def get_user_rewards(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({"rewards": await service.user_rewards(db, user.id)})


@router.get("/badges")
async def get_badges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({"badges": await service.badges(db, user.id)})


@router.get("/offers")
async def get_offers(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Offers for the user's eligible products, discounted by LifeScore."""
    profile_json = await get_profile_json(db, user.id)
    return ok({"offers": prequalified_offers(profile_json, user.lifescore)})
