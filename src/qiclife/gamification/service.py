"""XP, coin, LifeScore and streak updates on the user row."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.config import get_settings
from qiclife.db.models import LifeScoreHistory, Mission, User
from qiclife.errors import InsufficientCoinsError, NotFoundError
from qiclife.gamification.lifescore import (
    MAX_LIFESCORE,
    clamp_lifescore,
    level_from_xp,
    lifescore_percentage,
    lifescore_status,
    xp_progress,
)

logger = logging.getLogger(__name__)


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


def ensure_coins(user: User) -> bool:
    """Backfill a missing coin balance. Returns True if the row changed."""
    if user.coins is None:
        user.coins = get_settings().default_coins
        return True
    return False


async def award_xp(db: AsyncSession, user: User, amount: int, reason: str = "mission_completion") -> dict[str, Any]:
    """Add XP and recompute the level."""
    old_level = user.level
    user.xp = max(0, user.xp + amount)
    user.level = level_from_xp(user.xp)
    await db.flush()

    level_up = user.level > old_level
    logger.info("XP awarded user=%s amount=%d xp=%d level=%d reason=%s", user.id, amount, user.xp, user.level, reason)
    return {
        "xp_gained": amount,
        "new_xp": user.xp,
        "new_level": user.level,
        "level_up": level_up,
        "progress": xp_progress(user.xp, user.level),
    }


async def spend_coins(db: AsyncSession, user: User, cost: int, reason: str) -> int:
    """Atomically deduct ``cost`` coins; never lets the balance go negative.

    The check and the write are one conditional UPDATE, so concurrent spends
    cannot overdraw. Returns the new balance.
    """
    if ensure_coins(user):
        await db.flush()
    if cost <= 0:
        return user.coins or 0

    result = await db.execute(
        update(User)
        .where(User.id == user.id, User.coins >= cost)
        .values(coins=User.coins - cost)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.refresh(user, ["coins"])
        raise InsufficientCoinsError(cost, user.coins)

    await db.refresh(user, ["coins"])
    logger.info("Coins spent user=%s cost=%d balance=%s reason=%s", user.id, cost, user.coins, reason)
    return user.coins or 0


async def award_coins(db: AsyncSession, user: User, amount: int, reason: str = "mission_completion") -> dict[str, int]:
    """Credit coins. Negative amounts are treated as a spend."""
    if amount < 0:
        new_balance = await spend_coins(db, user, -amount, reason)
        return {"coins_gained": amount, "new_coins": new_balance}

    ensure_coins(user)
    await db.flush()
    await db.execute(
        update(User)
        .where(User.id == user.id)
        .values(coins=User.coins + amount)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(user, ["coins"])
    logger.info("Coins awarded user=%s amount=%d balance=%s reason=%s", user.id, amount, user.coins, reason)
    return {"coins_gained": amount, "new_coins": user.coins or 0}


async def update_lifescore(db: AsyncSession, user: User, change: int, reason: str = "mission_completion") -> dict[str, int]:
    """Apply a clamped LifeScore change and record it in the history table."""
    old_score = user.lifescore
    user.lifescore = clamp_lifescore(old_score + change)
    if user.lifescore != old_score:
        db.add(LifeScoreHistory(
            user_id=user.id,
            old_score=old_score,
            new_score=user.lifescore,
            change_amount=user.lifescore - old_score,
            reason=reason,
        ))
    await db.flush()
    return {
        "change": change,
        "new_lifescore": user.lifescore,
        "percentage": lifescore_percentage(user.lifescore),
    }


async def update_streak(db: AsyncSession, user: User, today: date | None = None) -> dict[str, int | bool]:
    """Count today as an active day.

    Activity on consecutive days extends the streak; a missed day restarts it.
    Repeated activity on the same day leaves it unchanged.
    """
    today = today or datetime.now(timezone.utc).date()
    last = user.last_activity_date
    previous = user.current_streak

    if last == today:
        return {"current_streak": user.current_streak, "longest_streak": user.longest_streak, "streak_broken": False}
    if last == today - timedelta(days=1):
        user.current_streak += 1
    else:
        user.current_streak = 1

    user.longest_streak = max(user.longest_streak, user.current_streak)
    user.last_activity_date = today
    await db.flush()
    return {
        "current_streak": user.current_streak,
        "longest_streak": user.longest_streak,
        "streak_broken": previous > 0 and user.current_streak == 1,
    }


async def process_mission_completion(db: AsyncSession, user: User, mission: Mission) -> dict[str, Any]:
    """Apply a completed mission's XP, LifeScore and coin rewards plus streak."""
    rewards = {
        "xp": mission.xp_reward or 0,
        "lifescore": mission.lifescore_impact or 0,
        "coins": mission.coin_reward or 0,
    }
    xp_result = await award_xp(db, user, rewards["xp"], "mission_completion")
    lifescore_result = await update_lifescore(db, user, rewards["lifescore"], "mission_completion")
    coins_result = await award_coins(db, user, rewards["coins"], "mission_completion")
    streak_result = await update_streak(db, user)

    logger.info("Mission completion processed user=%s mission=%s rewards=%s", user.id, mission.id, rewards)
    return {
        "rewards": rewards,
        "xp_result": xp_result,
        "lifescore_result": lifescore_result,
        "coins_result": coins_result,
        "streak_result": streak_result,
        "level_up": xp_result["level_up"],
    }


def user_stats(user: User) -> dict[str, Any]:
    return {
        "xp": user.xp,
        "level": user.level,
        "xp_progress": xp_progress(user.xp, user.level),
        "lifescore": user.lifescore,
        "lifescore_percentage": lifescore_percentage(user.lifescore),
        "lifescore_status": lifescore_status(user.lifescore),
        "coins": user.coins if user.coins is not None else get_settings().default_coins,
        "current_streak": user.current_streak,
        "longest_streak": user.longest_streak,
    }


def suggestions(user: User) -> list[dict[str, Any]]:
    """Next milestones worth chasing."""
    items: list[dict[str, Any]] = []
    if user.level < 5:
        items.append({
            "type": "level",
            "title": "Rising Star",
            "description": "Reach level 5 to unlock new missions",
            "progress": user.level,
            "target": 5,
        })
    half = MAX_LIFESCORE // 2
    if user.lifescore < half:
        items.append({
            "type": "lifescore",
            "title": "Health Champion",
            "description": f"Reach {half} LifeScore for better insurance rates",
            "progress": user.lifescore,
            "target": half,
        })
    if user.current_streak < 7:
        items.append({
            "type": "streak",
            "title": "Consistency King",
            "description": "Maintain a 7-day streak for bonus rewards",
            "progress": user.current_streak,
            "target": 7,
        })
    return items
