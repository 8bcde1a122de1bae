"""Friends, invitations, leaderboards and collaborative missions."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.analytics.service import record_event
from qiclife.db.models import Mission, SocialConnection, User, UserMission
from qiclife.errors import ConflictError, DomainValidationError, NotFoundError
from qiclife.gamification.service import get_user_or_404

logger = logging.getLogger(__name__)

LEADERBOARD_COLUMNS = {"lifescore": User.lifescore, "xp": User.xp}


def user_summary(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "level": user.level,
        "lifescore": user.lifescore,
        "xp": user.xp,
        "current_streak": user.current_streak,
    }


def _between(a: str, b: str):  # noqa: ANN202
    return or_(
        and_(SocialConnection.user_id == a, SocialConnection.friend_id == b),
        and_(SocialConnection.user_id == b, SocialConnection.friend_id == a),
    )


async def friend_ids(db: AsyncSession, user_id: str) -> set[str]:
    """Users with an accepted connection to ``user_id`` in either direction."""
    result = await db.execute(
        select(SocialConnection.user_id, SocialConnection.friend_id).where(
            SocialConnection.status == "accepted",
            or_(SocialConnection.user_id == user_id, SocialConnection.friend_id == user_id),
        )
    )
    return {friend if owner == user_id else owner for owner, friend in result.all()}


async def list_friends(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    ids = await friend_ids(db, user_id)
    if not ids:
        return []
    result = await db.execute(select(User).where(User.id.in_(ids)).order_by(User.lifescore.desc(), User.id))
    return [user_summary(u) for u in result.scalars()]


async def pending_invites(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    result = await db.execute(
        select(SocialConnection, User)
        .join(User, User.id == SocialConnection.user_id)
        .where(SocialConnection.friend_id == user_id, SocialConnection.status == "pending")
        .order_by(SocialConnection.created_at.desc())
    )
    return [
        {"from": user_summary(sender), "created_at": conn.created_at.isoformat() if conn.created_at else None}
        for conn, sender in result.all()
    ]


async def invite(db: AsyncSession, user: User, friend_id: str) -> dict[str, Any]:
    if friend_id == user.id:
        raise DomainValidationError("You cannot invite yourself")
    await get_user_or_404(db, friend_id)

    existing = await db.scalar(select(SocialConnection).where(_between(user.id, friend_id)))
    if existing is not None and existing.status != "declined":
        raise ConflictError("Connection already exists")

    if existing is not None:
        existing.user_id, existing.friend_id, existing.status = user.id, friend_id, "pending"
        await db.flush()
    else:
        try:
            async with db.begin_nested():
                db.add(SocialConnection(user_id=user.id, friend_id=friend_id, status="pending"))
        except IntegrityError as e:
            raise ConflictError("Connection already exists") from e

    await record_event(db, user.id, "friend_invited", {"friend_id": friend_id})
    logger.info("Friend invited user=%s friend=%s", user.id, friend_id)
    return {"friendId": friend_id, "status": "pending"}


async def respond(db: AsyncSession, user: User, sender_id: str, accept: bool) -> dict[str, Any]:
    """Accept or decline a pending invitation sent to ``user``."""
    result = await db.execute(
        select(SocialConnection).where(
            SocialConnection.user_id == sender_id,
            SocialConnection.friend_id == user.id,
            SocialConnection.status == "pending",
        )
    )
    connection = result.scalar_one_or_none()
    if connection is None:
        raise NotFoundError("Invitation not found")
    connection.status = "accepted" if accept else "declined"
    await db.flush()
    logger.info("Invitation %s user=%s sender=%s", connection.status, user.id, sender_id)
    return {"friendId": sender_id, "status": connection.status}


async def leaderboard(db: AsyncSession, user: User, by: str = "lifescore", limit: int = 10) -> dict[str, Any]:
    """Top users by LifeScore or XP, plus the caller's own rank."""
    column = LEADERBOARD_COLUMNS.get(by)
    if column is None:
        raise DomainValidationError("Invalid leaderboard", {"allowed": sorted(LEADERBOARD_COLUMNS)})

    result = await db.execute(select(User).order_by(column.desc(), User.xp.desc(), User.id).limit(limit))
    entries = [{"rank": i, **user_summary(u)} for i, u in enumerate(result.scalars(), start=1)]

    ahead = await db.scalar(select(func.count(User.id)).where(column > getattr(user, by)))
    return {"by": by, "leaderboard": entries, "you": {"rank": int(ahead or 0) + 1, **user_summary(user)}}


async def collaborative_missions(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    """Collaborative missions with who has joined, friends listed by name."""
    missions = (
        await db.execute(
            select(Mission)
            .where(
                Mission.is_collaborative.is_(True),
                Mission.is_active.is_(True),
                or_(Mission.generated_for.is_(None), Mission.generated_for == user_id),
            )
            .order_by(Mission.id)
        )
    ).scalars().all()
    if not missions:
        return []

    runs = (
        await db.execute(
            select(UserMission.mission_id, UserMission.user_id, User.username)
            .join(User, User.id == UserMission.user_id)
            .where(UserMission.mission_id.in_([m.id for m in missions]))
        )
    ).all()
    friends = await friend_ids(db, user_id)

    joined: dict[str, set[str]] = {}
    friend_names: dict[str, set[str]] = {}
    for mission_id, member_id, username in runs:
        joined.setdefault(mission_id, set()).add(member_id)
        if member_id in friends:
            friend_names.setdefault(mission_id, set()).add(username or member_id)

    return [
        {
            "id": m.id,
            "title": m.title_en,
            "description": m.description_en,
            "difficulty": m.difficulty,
            "xp_reward": m.xp_reward,
            "max_participants": m.max_participants,
            "participant_count": len(joined.get(m.id, ())),
            "friends": sorted(friend_names.get(m.id, ())),
            "joined": user_id in joined.get(m.id, ()),
        }
        for m in missions
    ]
