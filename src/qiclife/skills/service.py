"""Skill trees per mission category and per-user unlocks."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.analytics.service import record_event
from qiclife.db.models import User, UserSkill
from qiclife.errors import ConflictError, DomainValidationError, NotFoundError
from qiclife.gamification.service import award_xp, update_lifescore

logger = logging.getLogger(__name__)

DEFAULT_TREE = "safe_driving"

UNLOCK_XP = 30
UNLOCK_LIFESCORE = 8

# xp_cost is shown to the player; unlocking does not spend XP
SKILL_TREES: dict[str, list[dict[str, Any]]] = {
    "safe_driving": [
        {"id": "sd-l1", "level": 1, "description": "Basics", "skills": [
            {"id": "sd-s1", "title": "Seatbelt Habit", "xp_cost": 20, "xp_reward": 30,
             "lifescore_impact": 10, "requirements": []},
            {"id": "sd-s2", "title": "Speed Awareness", "xp_cost": 30, "xp_reward": 40,
             "lifescore_impact": 12, "requirements": ["sd-s1"]},
        ]},
    ],
    "health": [
        {"id": "h-l1", "level": 1, "description": "Foundation", "skills": [
            {"id": "h-s1", "title": "Daily Hydration", "xp_cost": 10, "xp_reward": 20,
             "lifescore_impact": 8, "requirements": []},
        ]},
    ],
    "financial_guardian": [
        {"id": "f-l1", "level": 1, "description": "Awareness", "skills": [
            {"id": "f-s1", "title": "Emergency Fund", "xp_cost": 40, "xp_reward": 60,
             "lifescore_impact": 20, "requirements": []},
        ]},
    ],
}

SKILLS: dict[str, dict[str, Any]] = {
    skill["id"]: {**skill, "category": category}
    for category, levels in SKILL_TREES.items()
    for level in levels
    for skill in level["skills"]
}


async def unlocked_ids(db: AsyncSession, user_id: str) -> set[str]:
    result = await db.execute(select(UserSkill.skill_id).where(UserSkill.user_id == user_id))
    return set(result.scalars())


def _skill_state(skill: dict[str, Any], unlocked: set[str], category: str) -> dict[str, Any]:
    return {
        **skill,
        "category": category,
        "requirements": list(skill["requirements"]),
        "isUnlocked": skill["id"] in unlocked,
        "canUnlock": skill["id"] not in unlocked and all(r in unlocked for r in skill["requirements"]),
    }


async def get_tree(db: AsyncSession, user_id: str, category: str | None = None) -> dict[str, Any]:
    """The tree for ``category`` (unknown categories fall back to safe driving)."""
    tree_id = category if category in SKILL_TREES else DEFAULT_TREE
    unlocked = await unlocked_ids(db, user_id)
    levels = [
        {
            "id": level["id"],
            "level": level["level"],
            "description": level["description"],
            "skills": [_skill_state(s, unlocked, tree_id) for s in level["skills"]],
        }
        for level in SKILL_TREES[tree_id]
    ]
    return {"id": tree_id, "levels": levels, "skills": [s for level in levels for s in level["skills"]]}


async def user_skills(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    result = await db.execute(
        select(UserSkill).where(UserSkill.user_id == user_id).order_by(UserSkill.unlocked_at)
    )
    return [
        {
            "skill_id": row.skill_id,
            "category": row.category,
            "title": SKILLS.get(row.skill_id, {}).get("title"),
            "unlocked_at": row.unlocked_at.isoformat() if row.unlocked_at else None,
        }
        for row in result.scalars()
    ]


async def unlock(db: AsyncSession, user: User, skill_id: str) -> dict[str, Any]:
    skill = SKILLS.get(skill_id)
    if skill is None:
        raise NotFoundError("Skill not found")

    unlocked = await unlocked_ids(db, user.id)
    if skill_id in unlocked:
        raise ConflictError("Skill already unlocked")
    missing = [r for r in skill["requirements"] if r not in unlocked]
    if missing:
        raise DomainValidationError("Unlock the required skills first", {"missing": missing})

    try:
        async with db.begin_nested():
            db.add(UserSkill(user_id=user.id, skill_id=skill_id, category=skill["category"]))
    except IntegrityError as e:
        raise ConflictError("Skill already unlocked") from e

    xp_result = await award_xp(db, user, UNLOCK_XP, "skill_unlock")
    lifescore_result = await update_lifescore(db, user, UNLOCK_LIFESCORE, "skill_unlock")
    await record_event(db, user.id, "skill_unlocked", {"skill_id": skill_id})
    logger.info("Skill unlocked user=%s skill=%s", user.id, skill_id)
    return {
        "skill": {"id": skill_id, "unlocked": True},
        "updated_user": {
            "xp": xp_result["new_xp"],
            "level": xp_result["new_level"],
            "lifescore": lifescore_result["new_lifescore"],
        },
        "level_up": xp_result["level_up"],
    }
