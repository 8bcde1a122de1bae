"""Behavior event recording and engagement summaries."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.db.models import BehaviorEvent

logger = logging.getLogger(__name__)


async def record_event(
    db: AsyncSession,
    user_id: str,
    event_type: str,
    event_data: dict[str, Any] | None = None,
    created_at: datetime | None = None,
) -> BehaviorEvent:
    """Stage one behavior event in the current transaction."""
    event = BehaviorEvent(user_id=user_id, event_type=event_type, event_data=event_data or {})
    if created_at is not None:
        event.created_at = created_at
    db.add(event)
    await db.flush()
    return event


async def record_events(db: AsyncSession, user_id: str, events: list[dict[str, Any]]) -> int:
    for event in events:
        db.add(BehaviorEvent(
            user_id=user_id,
            event_type=event["event_type"],
            event_data=event.get("event_data") or {},
            **({"created_at": event["created_at"]} if event.get("created_at") else {}),
        ))
    await db.flush()
    logger.info("Recorded %d events for user=%s", len(events), user_id)
    return len(events)


async def count_events(db: AsyncSession, user_id: str, event_type: str) -> int:
    result = await db.scalar(
        select(func.count(BehaviorEvent.id)).where(
            BehaviorEvent.user_id == user_id, BehaviorEvent.event_type == event_type
        )
    )
    return int(result or 0)


async def engagement_summary(db: AsyncSession, user_id: str) -> dict[str, Any]:
    """Distinct active days, event totals and the latest activity timestamp."""
    rows = (
        await db.execute(
            select(BehaviorEvent.event_type, BehaviorEvent.created_at).where(BehaviorEvent.user_id == user_id)
        )
    ).all()
    if not rows:
        return {
            "user_id": user_id,
            "active_days": 0,
            "total_events": 0,
            "last_activity": None,
            "unique_event_types": 0,
        }
    last_activity = max(created_at for _, created_at in rows)
    return {
        "user_id": user_id,
        "active_days": len({created_at.date() for _, created_at in rows}),
        "total_events": len(rows),
        "last_activity": last_activity.isoformat(),
        "unique_event_types": len({event_type for event_type, _ in rows}),
    }
