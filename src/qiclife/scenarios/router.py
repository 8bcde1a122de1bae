"""Scenarios router: templates and deterministic simulation."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.ai.service import AIService, get_ai_service
from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.middleware.rate_limit import strict_rate_limit
from qiclife.responses import ok
from qiclife.scenarios import service

logger = structlog.get_logger()

router = APIRouter(prefix="/api/scenarios", tags=["Scenarios"])


@router.get("")
@router.get("/")
async def list_scenarios(_user: User = Depends(get_current_user)) -> dict[str, Any]:
    return ok({"scenarios": service.list_scenarios()})


@router.post("/simulate", dependencies=[Depends(strict_rate_limit)])
async def simulate(
    inputs: dict[str, Any] | None = Body(default=None),
    apply: bool = Query(default=False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    """Free, explainable simulation. ``apply=true`` also starts the first suggested mission."""
    prediction = await service.simulate(db, user, inputs or {}, ai)
    applied = await service.apply_first_suggestion(db, user, prediction, ai) if apply else None
    await db.commit()
    logger.info("scenario_simulated", user_id=user.id, risk_level=prediction["risk_level"], applied=bool(applied))
    return ok({**prediction, "applied": applied})
