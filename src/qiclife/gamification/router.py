"""Gamification endpoints: stats and LifeScore history."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import LifeScoreHistory, User
from qiclife.gamification.service import suggestions, user_stats
from qiclife.responses import ok

router = APIRouter(prefix="/api/gamification", tags=["Gamification"])


@router.get("/stats")
async def get_stats(user: User = Depends(get_current_user)) -> dict[str, Any]:
    """Current XP, level, LifeScore, coins and streak with next milestones."""
    return ok({"stats": user_stats(user), "suggestions": suggestions(user)})


@router.get("/lifescore/history")
async def get_lifescore_history(
    limit: int = Query(default=30, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await db.execute(
        select(LifeScoreHistory)
        .where(LifeScoreHistory.user_id == user.id)
        .order_by(LifeScoreHistory.created_at.desc())
        .limit(limit)
    )
    history = [
        {
            "old_score": row.old_score,
            "new_score": row.new_score,
            "change_amount": row.change_amount,
            "reason": row.reason,
            "created_at": row.created_at.isoformat(),
        }
        for row in result.scalars()
    ]
    return ok({"history": history})
