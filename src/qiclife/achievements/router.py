"""Achievements router."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.achievements.service import list_achievements, user_achievements
from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.responses import ok

router = APIRouter(prefix="/api/achievements", tags=["Achievements"])


@router.get("")
@router.get("/")
async def get_achievements(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({"achievements": await list_achievements(db)})


@router.get("/user")
async def get_user_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({"user_achievements": await user_achievements(db, user.id)})
