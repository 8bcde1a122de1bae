"""Play router: Road-Trip Roulette."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.ai.service import AIService, get_ai_service
from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.middleware.rate_limit import roulette_rate_limit
from qiclife.play import service
from qiclife.responses import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/play", tags=["Play"])


@router.get("/roulette/spins-remaining")
async def spins_remaining(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.remaining_spins(db, user.id))


@router.post("/roulette/spin", dependencies=[Depends(roulette_rate_limit)])
async def spin_roulette(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    result = await service.spin(db, user, ai)
    await db.commit()
    logger.info("roulette_spun", user_id=user.id, spin_count=result["spinCount"], result=result["wheel_spin_result"])
    return ok(result)


@router.get("/history")
async def play_history(
    limit: int = Query(default=20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({"activities": await service.history(db, user.id, limit)})
