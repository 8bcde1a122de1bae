"""Reward catalog and coin redemption."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.achievements.service import check_and_unlock, unlocked_slugs
from qiclife.analytics.service import record_event
from qiclife.db.models import Reward, User, UserReward
from qiclife.errors import NotFoundError
from qiclife.gamification.service import award_xp, spend_coins

logger = logging.getLogger(__name__)

# Display badges, each earned through an achievement
BADGES: tuple[dict[str, Any], ...] = (
    {"id": "badge-starter", "title": "Starter", "description": "Complete first mission",
     "rarity": "common", "icon": "footprints", "achievement": "first_steps"},
    {"id": "badge-streak", "title": "Silver Streak Master", "description": "Maintain a 7-day streak",
     "rarity": "rare", "icon": "trophy", "achievement": "streak_master"},
    {"id": "badge-lifescore", "title": "Gold LifeScore Champion", "description": "Reach 80 LifeScore",
     "rarity": "epic", "icon": "crown", "achievement": "lifescore_champion"},
    {"id": "badge-safety", "title": "Platinum Safety Expert", "description": "Complete 5 missions",
     "rarity": "legendary", "icon": "shield", "achievement": "safety_expert"},
    {"id": "badge-redeemer", "title": "Reward Redeemer", "description": "Redeem 5 rewards",
     "rarity": "common", "icon": "gift", "achievement": "reward_redeemer"},
)


def reward_dict(reward: Reward) -> dict[str, Any]:
    return {
        "id": reward.id,
        "title": reward.title,
        "description": reward.description,
        "category": reward.category,
        "coins_cost": reward.coins_cost,
        "xp_reward": reward.xp_reward,
        "partner": reward.partner,
    }


async def list_active_rewards(db: AsyncSession) -> list[dict[str, Any]]:
    result = await db.execute(select(Reward).where(Reward.is_active.is_(True)).order_by(Reward.coins_cost))
    return [reward_dict(r) for r in result.scalars()]


async def redeem(db: AsyncSession, user: User, reward_id: str) -> dict[str, Any]:
    """Spend coins on a reward.

    The deduction is a conditional UPDATE, so an unaffordable reward raises
    ``InsufficientCoinsError`` and leaves the balance untouched.
    """
    reward = await db.get(Reward, reward_id)
    if reward is None or not reward.is_active:
        raise NotFoundError("Reward not found")

    await spend_coins(db, user, reward.coins_cost, f"reward:{reward.id}")
    if reward.xp_reward:
        await award_xp(db, user, reward.xp_reward, "reward_redemption")

    user_reward = UserReward(user_id=user.id, reward_id=reward.id, status="redeemed")
    db.add(user_reward)
    await db.flush()
    await record_event(db, user.id, "reward_redeemed", {"reward_id": reward.id})
    unlocked = await check_and_unlock(db, user.id)

    logger.info("Reward redeemed user=%s reward=%s cost=%d", user.id, reward.id, reward.coins_cost)
    return {
        "reward": reward_dict(reward),
        "redemption_id": user_reward.id,
        "coins_spent": reward.coins_cost,
        "new_balance": user.coins or 0,
        "xp": user.xp,
        "achievements_unlocked": unlocked,
    }


async def user_rewards(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    result = await db.execute(
        select(UserReward).where(UserReward.user_id == user_id).order_by(UserReward.redeemed_at.desc())
    )
    return [
        {
            **reward_dict(ur.reward),
            "redemption_id": ur.id,
            "status": ur.status,
            "redeemed_at": ur.redeemed_at.isoformat(),
        }
        for ur in result.scalars()
    ]


async def badges(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    earned = await unlocked_slugs(db, user_id)
    return [
        {
            **{k: v for k, v in badge.items() if k != "achievement"},
            "unlocked": badge["achievement"] in earned,
        }
        for badge in BADGES
    ]
