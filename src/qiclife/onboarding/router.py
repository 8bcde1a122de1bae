"""Onboarding router: /api/onboarding endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.ai.service import AIService, get_ai_service
from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.errors import DomainValidationError
from qiclife.middleware.rate_limit import strict_rate_limit
from qiclife.onboarding import service
from qiclife.profile.service import INTEGRATIONS
from qiclife.responses import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/onboarding", tags=["Onboarding"])


@router.post("/submit", status_code=201, dependencies=[Depends(strict_rate_limit)])
async def submit_onboarding(
    payload: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    """Accepts ``{"responses": {"step1": ...}}`` or the steps at the top level."""
    responses = payload.get("responses", payload)
    if not isinstance(responses, dict):
        raise DomainValidationError("responses must be an object")

    result = await service.submit(db, user, responses, ai)
    await db.commit()
    logger.info("onboarding_completed", user_id=user.id, integrations=result["profile"]["integrations"])
    return ok(result, "Onboarding completed successfully")


@router.get("/progress")
async def get_progress(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.progress(db, user.id))


@router.get("/integrations")
async def get_integrations() -> dict[str, Any]:
    return ok([
        {"id": name, "name": name, "description": description}
        for name, description in INTEGRATIONS.items()
    ])


@router.delete("/reset")
async def reset_onboarding(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    removed = await service.reset(db, user.id)
    await db.commit()
    logger.info("onboarding_reset", user_id=user.id, removed=removed)
    return ok({"removed_steps": removed}, "Onboarding reset successfully")
