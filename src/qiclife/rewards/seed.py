"""Reward catalog seed data."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.db.models import Reward

logger = logging.getLogger(__name__)

REWARD_SEED_DATA: list[dict] = [
    {
        "id": "weekend-warrior",
        "title": "Weekend Warrior",
        "description": "2x coins for weekend missions",
        "category": "coin_boost",
        "coins_cost": 100,
        "xp_reward": 10,
    },
    {
        "id": "fuel-discount",
        "title": "Fuel Discount",
        "description": "10% discount on fuel purchases",
        "category": "partner_offer",
        "coins_cost": 200,
        "xp_reward": 20,
        "partner": "Woqod",
    },
    {
        "id": "restaurant-voucher",
        "title": "Restaurant Voucher",
        "description": "QR 50 voucher for partner restaurants",
        "category": "partner_offer",
        "coins_cost": 150,
        "xp_reward": 15,
        "partner": "QIC Dining Partners",
    },
    {
        "id": "gym-membership",
        "title": "Gym Membership",
        "description": "1 month free gym membership",
        "category": "partner_offer",
        "coins_cost": 500,
        "xp_reward": 50,
        "partner": "QIC Fitness Partners",
    },
    {
        "id": "spa-day",
        "title": "QIC Partner Spa",
        "description": "20% off spa treatments",
        "category": "partner_offer",
        "coins_cost": 300,
        "xp_reward": 25,
        "partner": "QIC Spa",
    },
    {
        "id": "premium-discount",
        "title": "Policy Renewal Discount",
        "description": "5% off your next QIC policy renewal",
        "category": "insurance",
        "coins_cost": 1500,
        "xp_reward": 100,
        "partner": "QIC",
    },
]


async def seed_rewards(db: AsyncSession) -> int:
    """Upsert the reward catalog by id."""
    for data in REWARD_SEED_DATA:
        await db.merge(Reward(**data))
    await db.commit()
    logger.info("Seeded %d rewards", len(REWARD_SEED_DATA))
    return len(REWARD_SEED_DATA)
