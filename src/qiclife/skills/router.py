"""Skill tree router: /api/skill-tree endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.responses import ok
from qiclife.skills import service

logger = structlog.get_logger()

router = APIRouter(prefix="/api/skill-tree", tags=["Skill tree"])


class UnlockRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    skill_id: str = Field(alias="skillId", min_length=1)


@router.get("")
@router.get("/")
async def get_tree(
    category: str | None = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.get_tree(db, user.id, category))


@router.get("/user")
async def get_user_skills(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({"skills": await service.user_skills(db, user.id)})


@router.post("/unlock", status_code=201)
async def unlock_skill(
    body: UnlockRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await service.unlock(db, user, body.skill_id)
    await db.commit()
    logger.info("skill_unlocked", user_id=user.id, skill_id=body.skill_id)
    return ok(result, "Skill unlocked")
