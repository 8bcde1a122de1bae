"""Mission catalog, lifecycle (start -> complete) and generated missions."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.achievements.service import check_and_unlock
from qiclife.ai.service import AIService
from qiclife.analytics.service import record_event
from qiclife.db.models import Mission, MissionStep, User, UserMission
from qiclife.errors import ConflictError, DomainValidationError, NotFoundError
from qiclife.gamification.service import process_mission_completion
from qiclife.products.service import product_spotlight
from qiclife.profile.service import ai_context, find_profile

logger = logging.getLogger(__name__)

REQUIRED_PROFILE_FIELDS = ("name", "age", "gender", "nationality")
DAILY_MISSION_COUNT = 3

_PROFILE_INCOMPLETE = (
    "Profile incomplete. Please complete your profile (name, age, gender, nationality, "
    "and at least one insurance preference) before generating missions."
)


def mission_dict(mission: Mission) -> dict[str, Any]:
    return {
        "id": mission.id,
        "title_en": mission.title_en,
        "title_ar": mission.title_ar,
        "description_en": mission.description_en,
        "description_ar": mission.description_ar,
        "category": mission.category,
        "difficulty": mission.difficulty,
        "xp_reward": mission.xp_reward,
        "lifescore_impact": mission.lifescore_impact,
        "coin_reward": mission.coin_reward,
        "is_collaborative": mission.is_collaborative,
        "max_participants": mission.max_participants,
        "recurrence_type": mission.recurrence_type,
        "badge": mission.badge,
        "ai_generated": mission.ai_generated,
    }


def progress_dict(user_mission: UserMission | None) -> dict[str, Any]:
    if user_mission is None:
        return {"status": "available", "progress": 0, "started_at": None, "completed_at": None}
    return {
        "status": user_mission.status or "available",
        "progress": user_mission.progress or 0,
        "started_at": user_mission.started_at.isoformat() if user_mission.started_at else None,
        "completed_at": user_mission.completed_at.isoformat() if user_mission.completed_at else None,
    }


def step_dict(step: MissionStep) -> dict[str, Any]:
    return {
        "id": step.id,
        "step_number": step.step_number,
        "title": step.title,
        "description": step.description,
        "status": step.status,
    }


def _visible_to(user_id: str):  # noqa: ANN202
    return or_(Mission.generated_for.is_(None), Mission.generated_for == user_id)


async def get_mission(db: AsyncSession, mission_id: str) -> Mission:
    mission = await db.get(Mission, mission_id)
    if mission is None or not mission.is_active:
        raise NotFoundError("Mission not found")
    return mission


async def _latest_runs(db: AsyncSession, user_id: str) -> dict[str, UserMission]:
    """Most recent run of each mission for this user."""
    result = await db.execute(
        select(UserMission).where(UserMission.user_id == user_id).order_by(UserMission.started_at)
    )
    return {um.mission_id: um for um in result.scalars()}


async def _active_runs(db: AsyncSession, user_id: str) -> list[UserMission]:
    result = await db.execute(
        select(UserMission).where(UserMission.user_id == user_id, UserMission.status == "active")
    )
    return list(result.scalars())


async def list_missions(
    db: AsyncSession,
    user_id: str,
    category: str | None = None,
    difficulty: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    """Active missions with the user's progress and a product spotlight, paginated."""
    query = select(Mission).where(Mission.is_active.is_(True), _visible_to(user_id))
    if category:
        query = query.where(Mission.category == category)
    if difficulty:
        query = query.where(Mission.difficulty == difficulty)
    missions = (await db.execute(query.order_by(Mission.created_at, Mission.id))).scalars().all()

    runs = await _latest_runs(db, user_id)
    items = []
    for mission in missions:
        progress = progress_dict(runs.get(mission.id))
        if status and progress["status"] != status:
            continue
        items.append({
            **mission_dict(mission),
            "product_spotlight": product_spotlight(mission.category),
            "user_progress": progress,
        })

    start = (page - 1) * limit
    return {
        "missions": items[start:start + limit],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": len(items),
            "pages": math.ceil(len(items) / limit),
        },
    }


async def get_mission_detail(db: AsyncSession, user_id: str, mission_id: str) -> dict[str, Any]:
    mission = await get_mission(db, mission_id)
    runs = await _latest_runs(db, user_id)
    run = runs.get(mission_id)
    return {
        **mission_dict(mission),
        "product_spotlight": product_spotlight(mission.category),
        "user_progress": progress_dict(run) if run else None,
    }


def _check_profile_complete(profile_json: dict[str, Any]) -> None:
    if not any(profile_json.get(field) for field in (*REQUIRED_PROFILE_FIELDS, "insurance_preferences")):
        raise DomainValidationError(_PROFILE_INCOMPLETE)
    for field in REQUIRED_PROFILE_FIELDS:
        if not profile_json.get(field):
            raise DomainValidationError(f"Profile incomplete: {field} is required. Please complete your profile first.")
    preferences = profile_json.get("insurance_preferences")
    if not isinstance(preferences, list) or not preferences:
        raise DomainValidationError(_PROFILE_INCOMPLETE)


async def store_generated_mission(db: AsyncSession, data: dict[str, Any], user_id: str, **extra: Any) -> Mission:  # noqa: ANN401
    """Persist a generated mission unless a mission with that id already exists."""
    existing = await db.get(Mission, data["id"])
    if existing is not None:
        if existing.generated_for not in (None, user_id):
            raise ConflictError("Mission id already in use")
        return existing
    mission = Mission(
        id=data["id"],
        title_en=data["title_en"],
        title_ar=data.get("title_ar"),
        description_en=data.get("description_en"),
        description_ar=data.get("description_ar"),
        category=data.get("category") or "health",
        difficulty=data.get("difficulty") or "easy",
        xp_reward=data.get("xp_reward") or 0,
        lifescore_impact=data.get("lifescore_impact") or 0,
        coin_reward=data.get("coin_reward") or 0,
        recurrence_type=data.get("recurrence_type") or "none",
        badge=data.get("badge"),
        ai_generated=True,
        generated_for=user_id,
        **extra,
    )
    db.add(mission)
    await db.flush()
    return mission


async def generate_missions(db: AsyncSession, user: User, ai: AIService) -> list[dict[str, Any]]:
    """Generate and persist personalised missions from a complete profile."""
    profile = await find_profile(db, user.id)
    if profile is None:
        raise NotFoundError("User profile not found. Please complete your profile first.")
    profile_json = dict(profile.profile_json or {})
    _check_profile_complete(profile_json)

    generated = await ai.missions_for_user(ai_context(user, profile_json))
    stored = [await store_generated_mission(db, data, user.id) for data in generated]
    logger.info("Missions generated user=%s count=%d", user.id, len(stored))
    return [mission_dict(m) for m in stored]


async def start_mission(db: AsyncSession, user: User, mission_id: str, ai: AIService) -> dict[str, Any]:
    """Start a mission and create its three-step plan.

    Only one mission may be active per user at a time.
    """
    mission = await get_mission(db, mission_id)
    active = await _active_runs(db, user.id)
    if active:
        if any(run.mission_id == mission_id for run in active):
            raise ConflictError("Mission already started")
        raise ConflictError("You already have an active mission. Complete it first before starting a new one.")

    user_mission = UserMission(
        user_id=user.id,
        mission_id=mission.id,
        status="active",
        progress=0,
        started_at=datetime.now(timezone.utc),
    )
    db.add(user_mission)
    await db.flush()

    profile = await find_profile(db, user.id)
    context = ai_context(user, dict(profile.profile_json or {}) if profile else {})
    steps = await ai.mission_steps(mission_dict(mission), context)
    rows = [
        MissionStep(
            user_mission_id=user_mission.id,
            step_number=step["step_number"],
            title=step["title"],
            description=step.get("description"),
        )
        for step in steps
    ]
    db.add_all(rows)
    await db.flush()

    await record_event(db, user.id, "mission_started", {"mission_id": mission.id})
    logger.info("Mission started user=%s mission=%s steps=%d", user.id, mission.id, len(rows))
    return {"user_mission_id": user_mission.id, "steps": [step_dict(s) for s in rows]}


async def complete_mission(
    db: AsyncSession,
    user: User,
    mission_id: str,
    completion_data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Finish the user's active run, apply rewards and check achievements."""
    mission = await get_mission(db, mission_id)
    run = next((r for r in await _active_runs(db, user.id) if r.mission_id == mission_id), None)
    if run is None:
        raise DomainValidationError("Mission not started or already completed")

    run.status = "completed"
    run.progress = 100
    run.completed_at = datetime.now(timezone.utc)
    run.completion_data = completion_data or {}
    steps = (await db.execute(select(MissionStep).where(MissionStep.user_mission_id == run.id))).scalars()
    for step in steps:
        step.status = "completed"
    await db.flush()

    results = await process_mission_completion(db, user, mission)
    await record_event(db, user.id, "mission_completed", {"mission_id": mission.id})
    unlocked = await check_and_unlock(db, user.id)
    return {
        **results,
        "achievements_unlocked": unlocked,
        "coins": user.coins or 0,
        "xp": user.xp,
        "level": user.level,
    }


async def join_mission(db: AsyncSession, user: User, mission_id: str, ai: AIService) -> dict[str, Any]:
    mission = await get_mission(db, mission_id)
    if not mission.is_collaborative:
        raise DomainValidationError("Mission is not collaborative")
    existing = await db.scalar(
        select(UserMission.id).where(UserMission.user_id == user.id, UserMission.mission_id == mission_id).limit(1)
    )
    if existing is not None:
        raise ConflictError("Already joined this mission")

    await start_mission(db, user, mission_id, ai)
    return {
        "missionId": mission_id,
        "status": "active",
        "joined_at": datetime.now(timezone.utc).isoformat(),
    }


async def user_missions(db: AsyncSession, user_id: str, status: str) -> list[dict[str, Any]]:
    result = await db.execute(
        select(UserMission)
        .where(UserMission.user_id == user_id, UserMission.status == status)
        .order_by(UserMission.started_at.desc())
    )
    return [
        {**mission_dict(um.mission), "user_progress": progress_dict(um)}
        for um in result.scalars()
    ]


async def active_steps(db: AsyncSession, user_id: str, mission_id: str) -> list[dict[str, Any]]:
    run = await db.scalar(
        select(UserMission).where(
            UserMission.user_id == user_id,
            UserMission.mission_id == mission_id,
            UserMission.status == "active",
        )
    )
    if run is None:
        raise NotFoundError("Active mission not found")
    result = await db.execute(
        select(MissionStep).where(MissionStep.user_mission_id == run.id).order_by(MissionStep.step_number)
    )
    return [step_dict(s) for s in result.scalars()]


async def daily_brief(db: AsyncSession, user: User, ai: AIService) -> str:
    profile = await find_profile(db, user.id)
    if profile is None:
        raise NotFoundError("User profile not found")
    return await ai.daily_brief(ai_context(user, dict(profile.profile_json or {})))


async def generate_daily(db: AsyncSession, user: User, ai: AIService, today: date | None = None) -> dict[str, Any]:
    """Three adaptive daily missions, generated at most once per day."""
    today = today or datetime.now(timezone.utc).date()
    profile = await find_profile(db, user.id)
    if profile is None:
        raise NotFoundError("User profile not found")

    result = await db.execute(
        select(Mission)
        .where(
            Mission.generated_for == user.id,
            Mission.recurrence_type == "daily",
            Mission.generated_on == today,
        )
        .order_by(Mission.id)
    )
    existing = result.scalars().all()
    if len(existing) >= DAILY_MISSION_COUNT:
        logger.info("Daily missions already generated user=%s date=%s", user.id, today)
        return {"missions": [mission_dict(m) for m in existing], "alreadyReset": True}

    generated = await ai.adaptive_missions(ai_context(user, dict(profile.profile_json or {})), user.id, today)
    stored = [await store_generated_mission(db, data, user.id, generated_on=today) for data in generated]
    logger.info("Daily missions generated user=%s date=%s count=%d", user.id, today, len(stored))
    return {"missions": [mission_dict(m) for m in stored], "alreadyReset": False}
