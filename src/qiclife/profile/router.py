"""Profile router: /api/profile endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.gamification.service import ensure_coins, suggestions, user_stats
from qiclife.profile.schemas import (
    IntegrationsUpdateRequest,
    PreferencesUpdateRequest,
    ProfileUpdateRequest,
    SettingsUpdateRequest,
)
from qiclife.profile.service import (
    INTEGRATIONS,
    get_profile_json,
    merge_section,
    set_integrations,
    update_profile_json,
)
from qiclife.responses import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/profile", tags=["Profile"])


def _user_summary(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@router.get("")
@router.get("/")
async def get_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """User, profile document, stats and milestone suggestions."""
    if ensure_coins(user):
        await db.commit()
        logger.info("coins_backfilled", user_id=user.id, coins=user.coins)
    profile_json = await get_profile_json(db, user.id)
    return ok({
        "user": _user_summary(user),
        "profile_json": profile_json,
        "stats": user_stats(user),
        "suggestions": suggestions(user),
    })


@router.put("")
@router.put("/")
async def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    profile_json = await update_profile_json(db, user.id, body.profile_json)
    await db.commit()
    return ok({"profile_json": profile_json}, "Profile updated successfully")


@router.get("/stats")
async def get_stats(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return ok({"stats": user_stats(user), "suggestions": suggestions(user)})


@router.put("/preferences")
async def update_preferences(
    body: PreferencesUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    preferences = await merge_section(db, user.id, "preferences", body.preferences)
    await db.commit()
    return ok({"preferences": preferences}, "Preferences updated successfully")


@router.put("/settings")
async def update_settings(
    body: SettingsUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    settings = await merge_section(db, user.id, "settings", body.settings)
    await db.commit()
    return ok({"settings": settings}, "Settings updated successfully")


@router.get("/integrations")
async def get_integrations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    profile_json = await get_profile_json(db, user.id)
    return ok({
        "selected": profile_json.get("integrations") or [],
        "available": list(INTEGRATIONS),
    })


@router.put("/integrations")
async def update_integrations(
    body: IntegrationsUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    selected = await set_integrations(db, user.id, body.integrations)
    await db.commit()
    logger.info("integrations_updated", user_id=user.id, integrations=selected)
    return ok({"integrations": selected}, "Integrations updated successfully")
