"""What-if scenario templates and deterministic simulation."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.ai.service import AIService
from qiclife.analytics.service import record_event
from qiclife.db.models import User
from qiclife.errors import ConflictError, DomainValidationError, NotFoundError
from qiclife.missions.service import start_mission, store_generated_mission
from qiclife.profile.service import ai_context, get_profile_json

logger = logging.getLogger(__name__)

MISSION_ID_LENGTH = 64

SCENARIOS: tuple[dict[str, Any], ...] = (
    {
        "id": "scenario-1",
        "title": "Daily Commute Safety",
        "description": "Estimate risk and impact of commute changes",
        "category": "safe_driving",
        "difficulty": "easy",
        "inputs": [
            {"name": "commute_distance", "label": "Commute Distance (km)", "type": "number", "placeholder": "15"},
            {"name": "driving_hours", "label": "Daily Driving Hours", "type": "number", "placeholder": "1.5"},
            {
                "name": "seatbelt_usage",
                "label": "Seatbelt Usage",
                "type": "select",
                "options": [
                    {"value": "always", "label": "Always"},
                    {"value": "often", "label": "Often"},
                    {"value": "rarely", "label": "Rarely"},
                ],
            },
        ],
    },
    {
        "id": "scenario-2",
        "title": "Health Routine Change",
        "description": "What if you add daily walking?",
        "category": "health",
        "difficulty": "medium",
        "inputs": [
            {"name": "walk_minutes", "label": "Walk Minutes/Day", "type": "number", "placeholder": "30"},
            {
                "name": "diet_quality",
                "label": "Diet Quality",
                "type": "select",
                "options": [
                    {"value": "excellent", "label": "Excellent"},
                    {"value": "good", "label": "Good"},
                    {"value": "fair", "label": "Fair"},
                    {"value": "poor", "label": "Poor"},
                ],
            },
        ],
    },
)


def scoped_mission_id(suggestion_id: str, user_id: str) -> str:
    """Mission id for a suggestion started by one user, fitted to the id column."""
    return f"{suggestion_id[: MISSION_ID_LENGTH - len(user_id) - 1]}-{user_id}"


def list_scenarios() -> list[dict[str, Any]]:
    return [dict(s) for s in SCENARIOS]


async def simulate(db: AsyncSession, user: User, inputs: dict[str, Any], ai: AIService) -> dict[str, Any]:
    """Run the deterministic prediction and record it as a behavior event."""
    profile = ai_context(user, await get_profile_json(db, user.id))
    prediction = ai.scenario_prediction(inputs, inputs.get("category") or inputs.get("type"), profile)
    await record_event(
        db,
        user.id,
        "scenario_simulated",
        {"inputs": inputs, "lifescore_impact": prediction["lifescore_impact"], "risk_level": prediction["risk_level"]},
    )
    return prediction


async def apply_first_suggestion(
    db: AsyncSession, user: User, prediction: dict[str, Any], ai: AIService
) -> dict[str, Any] | None:
    """Start the first suggested mission. Returns ``None`` when nothing was suggested."""
    suggestions = prediction.get("suggested_missions") or []
    if not suggestions:
        return None
    suggestion = suggestions[0]
    data = {
        **suggestion,
        # Suggestion ids are templates; scope the stored mission to this user
        "id": scoped_mission_id(str(suggestion.get("id") or "ai-suggestion"), user.id),
        "title_en": suggestion.get("title_en") or suggestion.get("title") or "Suggested mission",
    }
    try:
        async with db.begin_nested():
            mission = await store_generated_mission(db, data, user.id)
            await start_mission(db, user, mission.id, ai)
    except (ConflictError, DomainValidationError, NotFoundError) as e:
        logger.info("Scenario suggestion not applied user=%s reason=%s", user.id, e)
        return {"error": "Failed to apply missions", "reason": str(e)}
    return {"started": [mission.id]}
