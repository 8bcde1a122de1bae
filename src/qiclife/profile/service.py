"""Profile document storage, merging and integration selection."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.db.models import User, UserProfile
from qiclife.errors import DomainValidationError

logger = logging.getLogger(__name__)

REQUIRED_INTEGRATIONS = 3

INTEGRATIONS: dict[str, str] = {
    "QIC Mobile App": "Access your insurance on the go",
    "QIC Health Portal": "Track your health and wellness",
    "QIC Claims Portal": "Manage your insurance claims",
    "QIC Rewards Program": "Earn rewards for healthy habits",
    "QIC Family Dashboard": "Protect your entire family",
    "QIC Financial Planner": "Plan your financial future",
}

# One level deep-merge; every other key (arrays included) is replaced
MERGED_SECTIONS = ("preferences", "settings")


def validate_integrations(
    integrations: Any,  # noqa: ANN401
    message: str = "Exactly 3 integrations must be selected",
) -> list[str]:
    """Return the selection if it is exactly three known integrations."""
    if (
        not isinstance(integrations, list)
        or len(integrations) != REQUIRED_INTEGRATIONS
        or not all(isinstance(name, str) for name in integrations)
    ):
        raise DomainValidationError(message)
    invalid = [name for name in integrations if name not in INTEGRATIONS]
    if invalid:
        raise DomainValidationError("Invalid integrations selected", {"invalid": invalid}, extra={"invalid": invalid})
    return list(integrations)


def merge_profile_json(current: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Merge ``updates`` into ``current``. An empty update clears the document."""
    if not updates:
        return {}
    merged = dict(current or {})
    for key, value in updates.items():
        if key in MERGED_SECTIONS and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


async def find_profile(db: AsyncSession, user_id: str) -> UserProfile | None:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_profile(db: AsyncSession, user_id: str) -> UserProfile:
    profile = await find_profile(db, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id, profile_json={})
        db.add(profile)
        await db.flush()
    return profile


async def get_profile_json(db: AsyncSession, user_id: str) -> dict[str, Any]:
    result = await db.execute(select(UserProfile.profile_json).where(UserProfile.user_id == user_id))
    return dict(result.scalar_one_or_none() or {})


async def update_profile_json(db: AsyncSession, user_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    profile = await get_or_create_profile(db, user_id)
    # Reassign rather than mutate so the JSON column is flagged dirty
    profile.profile_json = merge_profile_json(profile.profile_json, updates)
    await db.flush()
    logger.info("Profile updated user=%s keys=%s", user_id, sorted(updates))
    return profile.profile_json


async def merge_section(db: AsyncSession, user_id: str, section: str, values: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge ``values`` into one top-level section of the profile."""
    profile = await get_or_create_profile(db, user_id)
    document = dict(profile.profile_json or {})
    document[section] = {**(document.get(section) or {}), **values}
    profile.profile_json = document
    await db.flush()
    return document[section]


async def set_integrations(db: AsyncSession, user_id: str, integrations: Any) -> list[str]:  # noqa: ANN401
    selected = validate_integrations(integrations)
    profile = await get_or_create_profile(db, user_id)
    profile.profile_json = {**(profile.profile_json or {}), "integrations": selected}
    await db.flush()
    return selected


def ai_context(user: User, profile_json: dict[str, Any]) -> dict[str, Any]:
    """Profile document enriched with the fields the AI rules read."""
    context = dict(profile_json)
    context.setdefault("name", user.username or "Friend")
    context["lifescore"] = user.lifescore
    context["current_streak"] = user.current_streak
    return context
