"""Missions router: catalog, lifecycle and generated missions."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.ai.service import AIService, get_ai_service
from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.middleware.rate_limit import strict_rate_limit
from qiclife.missions import service
from qiclife.missions.schemas import CompleteMissionRequest, JoinMissionRequest, StartMissionRequest
from qiclife.responses import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/missions", tags=["Missions"])


@router.get("")
@router.get("/")
async def list_missions(
    category: str | None = Query(default=None),
    difficulty: str | None = Query(default=None, pattern="^(easy|medium|hard)$"),
    status: str | None = Query(default=None, pattern="^(available|active|completed|failed|locked)$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.list_missions(db, user.id, category, difficulty, status, page, limit))


@router.get("/daily-brief")
async def get_daily_brief(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    return ok({"daily_brief": await service.daily_brief(db, user, ai)})


@router.get("/user/active")
async def get_active_missions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.user_missions(db, user.id, "active"))


@router.get("/user/completed")
async def get_completed_missions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.user_missions(db, user.id, "completed"))


@router.post("/generate", status_code=201, dependencies=[Depends(strict_rate_limit)])
async def generate_missions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    missions = await service.generate_missions(db, user, ai)
    await db.commit()
    logger.info("missions_generated", user_id=user.id, count=len(missions))
    return ok({"missions": missions})


@router.post("/generate-daily", dependencies=[Depends(strict_rate_limit)])
async def generate_daily_missions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    result = await service.generate_daily(db, user, ai)
    await db.commit()
    return ok(result)


@router.post("/start", status_code=201, dependencies=[Depends(strict_rate_limit)])
async def start_mission(
    body: StartMissionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    result = await service.start_mission(db, user, body.mission_id, ai)
    await db.commit()
    logger.info("mission_started", user_id=user.id, mission_id=body.mission_id)
    return ok({"steps": result["steps"]}, "Mission started")


@router.post("/complete", dependencies=[Depends(strict_rate_limit)])
async def complete_mission(
    body: CompleteMissionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await service.complete_mission(db, user, body.mission_id, body.completion_data)
    await db.commit()
    logger.info(
        "mission_completed",
        user_id=user.id,
        mission_id=body.mission_id,
        level_up=result["level_up"],
        achievements=len(result["achievements_unlocked"]),
    )
    return ok(result)


@router.post("/join", status_code=201)
async def join_mission(
    body: JoinMissionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    result = await service.join_mission(db, user, body.mission_id, ai)
    await db.commit()
    return ok(result, "Joined mission successfully")


@router.get("/{mission_id}/steps")
async def get_mission_steps(
    mission_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok({"steps": await service.active_steps(db, user.id, mission_id)})


@router.get("/{mission_id}")
async def get_mission(
    mission_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.get_mission_detail(db, user.id, mission_id))
