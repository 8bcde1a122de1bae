"""AI router: recommendations, profiling, scenario simulation, insights and chat."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.ai import engine
from qiclife.ai.schemas import ChatRequest, ProfileRequest, RecommendationsRequest
from qiclife.ai.service import AIService, get_ai_service
from qiclife.auth.dependencies import get_current_user
from qiclife.config import get_settings
from qiclife.database import get_session
from qiclife.db.models import User, UserMission
from qiclife.errors import DomainValidationError
from qiclife.gamification.service import spend_coins
from qiclife.middleware.rate_limit import strict_rate_limit
from qiclife.profile.service import ai_context, get_profile_json
from qiclife.responses import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/ai", tags=["AI"])


def _filter_by_type(recommendations: list[dict[str, Any]], rec_type: str) -> list[dict[str, Any]]:
    if rec_type == "all":
        return recommendations
    return [r for r in recommendations if r.get("type", "mission") == rec_type]


@router.get("/recommendations")
async def get_recommendations(
    rec_type: str = Query(default="mission", alias="type"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    context = ai_context(user, await get_profile_json(db, user.id))
    recommendations = _filter_by_type(await ai.recommendations(context), rec_type)
    return ok({"recommendations": recommendations, "type": rec_type})


@router.post("/recommendations", dependencies=[Depends(strict_rate_limit)])
async def post_recommendations(
    body: RecommendationsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    """Recommendations for an explicit context layered over the stored profile."""
    context = {**ai_context(user, await get_profile_json(db, user.id)), **body.context}
    recommendations = _filter_by_type(await ai.recommendations(context), body.type)
    return ok({"recommendations": recommendations, "type": body.type})


@router.post("/profile", dependencies=[Depends(strict_rate_limit)])
async def generate_profile(
    body: ProfileRequest,
    user: User = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    if not body.onboarding_data:
        raise DomainValidationError("Onboarding data is required")
    profile = await ai.generate_profile(body.onboarding_data)
    logger.info("ai_profile_generated", user_id=user.id, risk_level=profile.get("risk_level"))
    return ok({"profile": profile})


@router.post("/scenarios/simulate", dependencies=[Depends(strict_rate_limit)])
async def simulate_scenario(
    payload: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    """Charge the simulation fee, then run the AI prediction.

    The charge and the prediction share one transaction: if the prediction
    raises, nothing is committed and the user keeps their coins.
    """
    if not (payload.get("type") or payload.get("category")):
        raise DomainValidationError("Scenario type or category is required")

    cost = get_settings().ai_simulation_cost
    remaining = await spend_coins(db, user, cost, "ai_scenario_simulation")
    context = ai_context(user, await get_profile_json(db, user.id))
    prediction = await ai.predict_scenario_outcome(payload, context)
    await db.commit()

    logger.info(
        "scenario_simulated",
        user_id=user.id,
        category=engine.normalize_category(payload.get("category") or payload.get("type")),
        coins_deducted=cost,
        remaining_coins=remaining,
    )
    return ok({**prediction, "coins_deducted": cost, "remaining_coins": remaining})


@router.get("/insights")
async def get_insights(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    profile_json = await get_profile_json(db, user.id)
    completed = await db.scalar(
        select(func.count(UserMission.id)).where(UserMission.user_id == user.id, UserMission.status == "completed")
    )
    items = engine.insights(profile_json, user.lifescore, user.current_streak, completed or 0)
    return ok({"insights": items})


@router.post("/chat", dependencies=[Depends(strict_rate_limit)])
async def chat(
    body: ChatRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    ai: AIService = Depends(get_ai_service),
) -> dict[str, Any]:
    if not body.message or not body.message.strip():
        raise DomainValidationError("Message is required")
    context = ai_context(user, await get_profile_json(db, user.id))
    reply = await ai.chat(body.message, context, body.context)
    return ok({"response": reply, "message": body.message})
