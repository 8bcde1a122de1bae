"""Referral codes, funnel tracking and install rewards for the code owner."""

from __future__ import annotations

import logging
import math
import secrets
import string
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.config import get_settings
from qiclife.db.models import Referral, User
from qiclife.errors import NotFoundError
from qiclife.gamification.service import award_coins, award_xp, get_user_or_404, update_lifescore

logger = logging.getLogger(__name__)

CODE_PREFIX = "QIC"
CODE_CHARSET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6

MAX_MULTIPLIER = 2.0
MULTIPLIER_STEP = 0.1
MAX_LIFESCORE_BOOST = 5

DEFAULT_SUBJECT = "Join QIC Life - Exclusive Insurance Rewards!"


def generate_code() -> str:
    """Generate ``QIC`` followed by 6 cryptographically random characters."""
    return CODE_PREFIX + "".join(secrets.choice(CODE_CHARSET) for _ in range(CODE_LENGTH))


async def generate_unique_code(db: AsyncSession) -> str:
    """Generate a referral code that doesn't already exist in the database."""
    for _ in range(10):
        code = generate_code()
        existing = await db.execute(select(Referral.id).where(Referral.code == code))
        if existing.scalar_one_or_none() is None:
            return code
    raise RuntimeError("Failed to generate unique referral code after 10 attempts")


def share_message(code: str, context: dict[str, Any]) -> tuple[str, str]:
    """Return ``(message, email_subject)`` for the share context."""
    mission = context.get("recent_mission")
    if isinstance(mission, dict) and mission.get("name"):
        name = mission["name"]
        return (
            f'I just completed "{name}" with {mission.get("coins") or 0} coins and my LifeScore '
            f'went up {mission.get("lifescore") or 0} points! Join QIC Life and beat me 1v1 on missions! '
            f"Use my code: {code}",
            f"I just completed {name} on QIC Life!",
        )
    if context.get("challenge"):
        return (
            f"I'll beat you 1v1 on the QIC app missions! Log in to accept challenge. Use my code: {code}",
            "Challenge: QIC Life Missions 1v1!",
        )
    return f"Join QIC Life and get exclusive insurance rewards! Use my code: {code}", DEFAULT_SUBJECT


def install_rewards(installs: int) -> dict[str, Any]:
    """Owner rewards for an install, given the installs recorded before it."""
    multiplier = min(MAX_MULTIPLIER, 1 + installs * MULTIPLIER_STEP)
    coins = math.floor(get_settings().referral_base_coins * multiplier)
    if multiplier > 1.5:
        tier = "gold"
    elif multiplier > 1.2:
        tier = "silver"
    else:
        tier = "bronze"
    return {
        "coins_awarded": coins,
        "xp_bonus": math.floor(coins * 0.5),
        "lifescore_boost": min(MAX_LIFESCORE_BOOST, coins // 20),
        "loyalty_multiplier": round(multiplier, 2),
        "loyalty_tier": tier,
    }


async def create_share(db: AsyncSession, user: User, context: dict[str, Any]) -> dict[str, Any]:
    code = await generate_unique_code(db)
    db.add(Referral(user_id=user.id, code=code, context=context or None))
    await db.flush()

    message, subject = share_message(code, context)
    logger.info("Referral code created user=%s code=%s", user.id, code)
    return {
        "code": code,
        "share_url": f"{get_settings().referral_base_url.rstrip('/')}/{code}",
        "referral_message": message,
        "email_subject": subject,
    }


async def _get_referral(db: AsyncSession, code: str) -> Referral:
    result = await db.execute(select(Referral).where(Referral.code == code.upper()))
    referral = result.scalar_one_or_none()
    if referral is None:
        raise NotFoundError("Invalid referral code")
    return referral


async def track_click(db: AsyncSession, code: str) -> int:
    referral = await _get_referral(db, code)
    await db.execute(
        update(Referral)
        .where(Referral.id == referral.id)
        .values(clicks=Referral.clicks + 1)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(referral, ["clicks"])
    return referral.clicks


async def track_install(db: AsyncSession, code: str) -> dict[str, Any]:
    """Count an install and credit the code owner."""
    referral = await _get_referral(db, code)
    rewards = install_rewards(referral.installs)
    await db.execute(
        update(Referral)
        .where(Referral.id == referral.id)
        .values(installs=Referral.installs + 1)
        .execution_options(synchronize_session=False)
    )

    owner = await get_user_or_404(db, referral.user_id)
    await award_coins(db, owner, rewards["coins_awarded"], "referral_install")
    await award_xp(db, owner, rewards["xp_bonus"], "referral_install")
    await update_lifescore(db, owner, rewards["lifescore_boost"], "referral_install")

    logger.info(
        "Referral install code=%s owner=%s coins=%d tier=%s",
        referral.code, owner.id, rewards["coins_awarded"], rewards["loyalty_tier"],
    )
    return rewards


async def stats(db: AsyncSession, user_id: str) -> dict[str, Any]:
    result = await db.execute(
        select(Referral).where(Referral.user_id == user_id).order_by(Referral.created_at)
    )
    rows = result.scalars().all()
    return {
        "shares": sum(r.share_count or 0 for r in rows),
        "clicks": sum(r.clicks or 0 for r in rows),
        "installs": sum(r.installs or 0 for r in rows),
        "purchases": sum(r.purchases or 0 for r in rows),
        "codes": [r.code for r in rows],
    }
