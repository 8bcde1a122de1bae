"""Achievement unlocking with duplicate prevention."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.analytics.service import count_events
from qiclife.db.models import Achievement, User, UserAchievement, UserMission, UserReward
from qiclife.gamification.service import award_coins, award_xp, get_user_or_404, update_lifescore

logger = logging.getLogger(__name__)

# condition_type -> key in the stats dict
CONDITION_STATS = {
    "missions_completed": "total_missions_completed",
    "streak_count": "current_streak",
    "lifescore_milestone": "lifescore",
    "xp_milestone": "xp",
    "coins_earned": "coins",
    "days_active": "days_active",
    "scenarios_completed": "scenarios_completed",
    "rewards_redeemed": "rewards_redeemed",
}


def condition_met(achievement: Achievement, stats: dict[str, int]) -> bool:
    stat_key = CONDITION_STATS.get(achievement.condition_type)
    if stat_key is None:
        return False
    return stats.get(stat_key, 0) >= achievement.condition_value


async def achievement_stats(db: AsyncSession, user: User) -> dict[str, int]:
    missions_completed = await db.scalar(
        select(func.count(UserMission.id)).where(UserMission.user_id == user.id, UserMission.status == "completed")
    )
    rewards_redeemed = await db.scalar(
        select(func.count(UserReward.id)).where(UserReward.user_id == user.id, UserReward.status == "redeemed")
    )
    created = user.created_at
    if created is not None and created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    days_active = (datetime.now(timezone.utc) - created).days if created else 0
    return {
        "lifescore": user.lifescore,
        "xp": user.xp,
        "coins": user.coins or 0,
        "current_streak": user.current_streak,
        "total_missions_completed": int(missions_completed or 0),
        "rewards_redeemed": int(rewards_redeemed or 0),
        "scenarios_completed": await count_events(db, user.id, "scenario_simulated"),
        "days_active": days_active,
    }


async def check_and_unlock(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    """Unlock every achievement whose condition the user now meets.

    Each achievement is granted at most once; its XP, coin and LifeScore
    rewards are applied in the caller's transaction.
    """
    user = await get_user_or_404(db, user_id)
    stats = await achievement_stats(db, user)

    earned = set(
        (await db.execute(select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id))).scalars()
    )
    candidates = (
        await db.execute(
            select(Achievement).where(Achievement.is_active.is_(True)).order_by(Achievement.sort_order)
        )
    ).scalars().all()

    unlocked: list[dict[str, Any]] = []
    for achievement in candidates:
        if achievement.id in earned or not condition_met(achievement, stats):
            continue
        try:
            async with db.begin_nested():
                db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id))
        except IntegrityError:
            # Unlocked concurrently
            continue

        if achievement.xp_reward > 0:
            await award_xp(db, user, achievement.xp_reward, "achievement")
        if achievement.coin_reward > 0:
            await award_coins(db, user, achievement.coin_reward, "achievement")
        if achievement.lifescore_boost > 0:
            await update_lifescore(db, user, achievement.lifescore_boost, "achievement")

        logger.info("Achievement unlocked user=%s achievement=%s", user_id, achievement.slug)
        unlocked.append({
            "id": achievement.id,
            "slug": achievement.slug,
            "name_en": achievement.name_en,
            "xp_reward": achievement.xp_reward,
            "coin_reward": achievement.coin_reward,
            "lifescore_boost": achievement.lifescore_boost,
        })
    return unlocked


def achievement_dict(achievement: Achievement) -> dict[str, Any]:
    return {
        "id": achievement.id,
        "slug": achievement.slug,
        "name_en": achievement.name_en,
        "description_en": achievement.description_en,
        "condition_type": achievement.condition_type,
        "condition_value": achievement.condition_value,
        "xp_reward": achievement.xp_reward,
        "coin_reward": achievement.coin_reward,
        "lifescore_boost": achievement.lifescore_boost,
    }


async def list_achievements(db: AsyncSession) -> list[dict[str, Any]]:
    result = await db.execute(
        select(Achievement).where(Achievement.is_active.is_(True)).order_by(Achievement.sort_order)
    )
    return [achievement_dict(a) for a in result.scalars()]


async def user_achievements(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.unlocked_at.desc())
    )
    return [
        {**achievement_dict(ua.achievement), "unlocked_at": ua.unlocked_at.isoformat()}
        for ua in result.scalars()
    ]


async def unlocked_slugs(db: AsyncSession, user_id: str) -> set[str]:
    result = await db.execute(
        select(Achievement.slug)
        .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
        .where(UserAchievement.user_id == user_id)
    )
    return set(result.scalars())
