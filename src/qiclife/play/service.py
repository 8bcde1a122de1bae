"""Road-Trip Roulette: daily spin quota, spin rewards and play history."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.ai.service import AIService
from qiclife.analytics.service import record_event
from qiclife.config import get_settings
from qiclife.db.models import PlayActivity, User
from qiclife.errors import LimitExceededError, NotFoundError
from qiclife.gamification.service import award_coins, award_xp, update_streak
from qiclife.profile.service import ai_context, find_profile

logger = logging.getLogger(__name__)

ROULETTE_SPIN = "roulette_spin"

DAILY_LIMIT_MESSAGE = "Daily spin limit reached (3 spins/day). Try again tomorrow!"


def _today() -> date:
    return datetime.now(timezone.utc).date()


async def spins_today(db: AsyncSession, user_id: str, today: date) -> int:
    result = await db.execute(
        select(func.count(PlayActivity.id)).where(
            PlayActivity.user_id == user_id,
            PlayActivity.activity_type == ROULETTE_SPIN,
            PlayActivity.activity_date == today,
        )
    )
    return int(result.scalar_one())


async def remaining_spins(db: AsyncSession, user_id: str, today: date | None = None) -> dict[str, Any]:
    max_spins = get_settings().daily_roulette_spins
    spin_count = await spins_today(db, user_id, today or _today())
    remaining = max(0, max_spins - spin_count)
    return {"remaining": remaining, "canSpin": remaining > 0, "spinCount": spin_count, "maxSpins": max_spins}


async def spin(db: AsyncSession, user: User, ai: AIService, today: date | None = None) -> dict[str, Any]:
    """Spin the wheel once, record it and pay out the spin reward.

    Each spin takes the next per-day sequence number; the unique key on
    ``(user, type, date, sequence)`` turns a concurrent duplicate into the
    same 429 as an exhausted quota.
    """
    settings = get_settings()
    today = today or _today()
    spin_count = await spins_today(db, user.id, today)
    if spin_count >= settings.daily_roulette_spins:
        raise LimitExceededError(DAILY_LIMIT_MESSAGE)

    profile = await find_profile(db, user.id)
    if profile is None:
        raise NotFoundError("User profile not found")

    roulette = await ai.road_trip_roulette(ai_context(user, profile.profile_json or {}))
    roulette.update({"coins_earned": settings.roulette_coins, "xp_earned": settings.roulette_xp})

    try:
        async with db.begin_nested():
            db.add(PlayActivity(
                user_id=user.id,
                activity_type=ROULETTE_SPIN,
                activity_data=roulette,
                coins_earned=settings.roulette_coins,
                xp_earned=settings.roulette_xp,
                activity_date=today,
                sequence=spin_count + 1,
            ))
    except IntegrityError as e:
        raise LimitExceededError(DAILY_LIMIT_MESSAGE) from e

    coins_result = await award_coins(db, user, settings.roulette_coins, ROULETTE_SPIN)
    xp_result = await award_xp(db, user, settings.roulette_xp, ROULETTE_SPIN)
    await update_streak(db, user, today)
    await record_event(db, user.id, ROULETTE_SPIN, {"result": roulette["wheel_spin_result"]})

    logger.info("Roulette spin user=%s spin=%d result=%s", user.id, spin_count + 1, roulette["wheel_spin_result"])
    return {
        **roulette,
        "remaining": settings.daily_roulette_spins - spin_count - 1,
        "spinCount": spin_count + 1,
        "new_coins": coins_result["new_coins"],
        "level_up": xp_result["level_up"],
    }


async def history(db: AsyncSession, user_id: str, limit: int = 20) -> list[dict[str, Any]]:
    result = await db.execute(
        select(PlayActivity)
        .where(PlayActivity.user_id == user_id)
        .order_by(PlayActivity.created_at.desc())
        .limit(limit)
    )
    return [
        {
            "id": a.id,
            "activity_type": a.activity_type,
            "activity_data": a.activity_data,
            "coins_earned": a.coins_earned,
            "xp_earned": a.xp_earned,
            "activity_date": a.activity_date.isoformat(),
        }
        for a in result.scalars()
    ]
