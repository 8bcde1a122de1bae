"""Seven-step onboarding: persistence, AI profiling and the completion bonus."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.ai.service import AIService
from qiclife.analytics.service import record_event
from qiclife.config import get_settings
from qiclife.db.models import OnboardingResponse, User
from qiclife.errors import DomainValidationError
from qiclife.gamification.service import award_xp, update_lifescore, update_streak
from qiclife.profile.service import get_or_create_profile, validate_integrations

logger = logging.getLogger(__name__)

TOTAL_STEPS = 7

# profile_json section -> onboarding step
PROFILE_SECTIONS = {
    "risk_profile": "step1",
    "lifestyle": "step2",
    "family": "step3",
    "financial": "step4",
    "insurance": "step5",
}

ONBOARDING_FLAGS = ("onboarding_completed", "onboarding_completed_at", "ai_profile", *PROFILE_SECTIONS)

STEP6_MESSAGE = "Exactly 3 integrations must be selected in Step 6"


def check_step_shapes(responses: dict[str, Any]) -> None:
    """Every answered step must be a JSON object."""
    for step in range(1, TOTAL_STEPS + 1):
        data = responses.get(f"step{step}")
        if data is None or isinstance(data, dict):
            continue
        if step == 6:
            raise DomainValidationError(STEP6_MESSAGE)
        raise DomainValidationError(f"Step {step} must be an object", {"step": step})


async def save_responses(db: AsyncSession, user_id: str, responses: dict[str, Any]) -> int:
    """Upsert each answered step. Returns the number of steps saved."""
    existing = {
        r.step_number: r
        for r in (
            await db.execute(select(OnboardingResponse).where(OnboardingResponse.user_id == user_id))
        ).scalars()
    }
    saved = 0
    for step in range(1, TOTAL_STEPS + 1):
        data = responses.get(f"step{step}")
        if not data:
            continue
        row = existing.get(step)
        if row is None:
            db.add(OnboardingResponse(user_id=user_id, step_number=step, response_json=data))
        else:
            row.response_json = data
        saved += 1
    await db.flush()
    return saved


async def submit(db: AsyncSession, user: User, responses: dict[str, Any], ai: AIService) -> dict[str, Any]:
    """Store the answers, build the AI profile and award the completion bonus.

    The bonus is granted the first time onboarding completes; later
    resubmissions only refresh the stored answers and profile.
    """
    check_step_shapes(responses)
    integrations = validate_integrations(
        (responses.get("step6") or {}).get("integrations"),
        STEP6_MESSAGE,
    )
    await save_responses(db, user.id, responses)
    ai_profile = await ai.generate_profile(responses)

    profile = await get_or_create_profile(db, user.id)
    document = dict(profile.profile_json or {})
    first_completion = not document.get("onboarding_completed")
    document.update({section: responses.get(step) for section, step in PROFILE_SECTIONS.items()})
    document.update({
        "integrations": integrations,
        "ai_profile": ai_profile,
        "onboarding_completed": True,
        "onboarding_completed_at": datetime.now(timezone.utc).isoformat(),
    })
    profile.profile_json = document
    await db.flush()

    rewards: dict[str, Any] = {"xp": 0, "lifescore": 0}
    if first_completion:
        settings = get_settings()
        xp_result = await award_xp(db, user, settings.onboarding_xp_bonus, "onboarding")
        lifescore_result = await update_lifescore(db, user, settings.onboarding_lifescore_bonus, "onboarding")
        streak_result = await update_streak(db, user)
        rewards = {
            "xp": settings.onboarding_xp_bonus,
            "lifescore": settings.onboarding_lifescore_bonus,
            "xp_result": xp_result,
            "lifescore_result": lifescore_result,
            "streak_result": streak_result,
            "level_up": xp_result["level_up"],
        }
    await record_event(db, user.id, "onboarding_completed", {"integrations": integrations})
    logger.info("Onboarding completed user=%s first=%s", user.id, first_completion)
    return {"profile": document, "rewards": rewards, "ai_profile": ai_profile}


async def progress(db: AsyncSession, user_id: str) -> dict[str, Any]:
    result = await db.execute(
        select(OnboardingResponse)
        .where(OnboardingResponse.user_id == user_id)
        .order_by(OnboardingResponse.step_number)
    )
    rows = result.scalars().all()
    return {
        "completed_steps": len(rows),
        "total_steps": TOTAL_STEPS,
        "is_complete": len(rows) == TOTAL_STEPS,
        "responses": [
            {
                "step": r.step_number,
                "data": r.response_json,
                "completed_at": r.created_at.isoformat() if r.created_at else None,
            }
            for r in rows
        ],
    }


async def reset(db: AsyncSession, user_id: str) -> int:
    """Delete stored answers and clear the onboarding sections of the profile."""
    result = await db.execute(delete(OnboardingResponse).where(OnboardingResponse.user_id == user_id))
    profile = await get_or_create_profile(db, user_id)
    profile.profile_json = {k: v for k, v in (profile.profile_json or {}).items() if k not in ONBOARDING_FLAGS}
    await db.flush()
    logger.info("Onboarding reset user=%s removed=%d", user_id, result.rowcount or 0)
    return result.rowcount or 0
