"""Referrals router: share codes, click/install tracking and stats."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.middleware.rate_limit import strict_rate_limit
from qiclife.referrals import service
from qiclife.responses import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/referrals", tags=["Referrals"])


@router.post("/share", dependencies=[Depends(strict_rate_limit)])
async def share(
    context: dict[str, Any] | None = Body(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Create a referral code. ``recent_mission`` or ``challenge`` tailor the message."""
    result = await service.create_share(db, user, context or {})
    await db.commit()
    logger.info("referral_shared", user_id=user.id, code=result["code"])
    return ok(result)


@router.post("/track/{code}", dependencies=[Depends(strict_rate_limit)])
async def track_click(code: str, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    clicks = await service.track_click(db, code)
    await db.commit()
    logger.info("referral_click", code=code, clicks=clicks)
    return ok({"clicks": clicks})


@router.post("/install/{code}", dependencies=[Depends(strict_rate_limit)])
async def track_install(code: str, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    rewards = await service.track_install(db, code)
    await db.commit()
    logger.info("referral_install", code=code, **rewards)
    return ok(rewards)


@router.get("/stats")
async def get_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.stats(db, user.id))
