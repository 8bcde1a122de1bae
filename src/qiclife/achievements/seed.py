"""Achievement seed data."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.db.models import Achievement

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    {
        "slug": "first_steps",
        "name_en": "First Steps",
        "description_en": "Complete your first mission",
        "condition_type": "missions_completed",
        "condition_value": 1,
        "xp_reward": 50,
        "coin_reward": 25,
        "lifescore_boost": 5,
        "sort_order": 1,
    },
    {
        "slug": "safety_expert",
        "name_en": "Safety Expert",
        "description_en": "Complete 5 missions",
        "condition_type": "missions_completed",
        "condition_value": 5,
        "xp_reward": 150,
        "coin_reward": 75,
        "lifescore_boost": 15,
        "sort_order": 2,
    },
    {
        "slug": "mission_marathon",
        "name_en": "Mission Marathon",
        "description_en": "Complete 25 missions",
        "condition_type": "missions_completed",
        "condition_value": 25,
        "xp_reward": 200,
        "coin_reward": 100,
        "lifescore_boost": 20,
        "sort_order": 3,
    },
    {
        "slug": "streak_master",
        "name_en": "Streak Master",
        "description_en": "Maintain a 7-day streak",
        "condition_type": "streak_count",
        "condition_value": 7,
        "xp_reward": 100,
        "coin_reward": 50,
        "lifescore_boost": 10,
        "sort_order": 4,
    },
    {
        "slug": "lifescore_champion",
        "name_en": "LifeScore Champion",
        "description_en": "Reach 80 LifeScore",
        "condition_type": "lifescore_milestone",
        "condition_value": 80,
        "xp_reward": 150,
        "coin_reward": 75,
        "lifescore_boost": 15,
        "sort_order": 5,
    },
    {
        "slug": "xp_collector",
        "name_en": "XP Collector",
        "description_en": "Earn 1000 XP",
        "condition_type": "xp_milestone",
        "condition_value": 1000,
        "xp_reward": 120,
        "coin_reward": 60,
        "lifescore_boost": 12,
        "sort_order": 6,
    },
    {
        "slug": "coin_hoarder",
        "name_en": "Coin Hoarder",
        "description_en": "Accumulate 5000 coins",
        "condition_type": "coins_earned",
        "condition_value": 5000,
        "xp_reward": 80,
        "coin_reward": 40,
        "lifescore_boost": 8,
        "sort_order": 7,
    },
    {
        "slug": "active_explorer",
        "name_en": "Active Explorer",
        "description_en": "Be active for 30 days",
        "condition_type": "days_active",
        "condition_value": 30,
        "xp_reward": 300,
        "coin_reward": 150,
        "lifescore_boost": 25,
        "sort_order": 8,
    },
    {
        "slug": "scenario_master",
        "name_en": "Scenario Master",
        "description_en": "Complete 10 scenario simulations",
        "condition_type": "scenarios_completed",
        "condition_value": 10,
        "xp_reward": 100,
        "coin_reward": 50,
        "lifescore_boost": 10,
        "sort_order": 9,
    },
    {
        "slug": "reward_redeemer",
        "name_en": "Reward Redeemer",
        "description_en": "Redeem 5 rewards",
        "condition_type": "rewards_redeemed",
        "condition_value": 5,
        "xp_reward": 60,
        "coin_reward": 30,
        "lifescore_boost": 6,
        "sort_order": 10,
    },
]


async def seed_achievements(db: AsyncSession) -> int:
    """Insert missing definitions and refresh existing ones by slug."""
    existing = {a.slug: a for a in (await db.execute(select(Achievement))).scalars()}
    for data in ACHIEVEMENT_SEED_DATA:
        achievement = existing.get(data["slug"])
        if achievement is None:
            db.add(Achievement(**data))
        else:
            for key, value in data.items():
                setattr(achievement, key, value)
    await db.commit()
    logger.info("Seeded %d achievement definitions", len(ACHIEVEMENT_SEED_DATA))
    return len(ACHIEVEMENT_SEED_DATA)
