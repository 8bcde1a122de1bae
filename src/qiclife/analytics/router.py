"""Analytics router: client event ingestion and engagement summary."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends
from pydantic import AliasChoices, BaseModel, Field, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.analytics.service import engagement_summary, record_event, record_events
from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.errors import DomainValidationError
from qiclife.responses import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


class EventIn(BaseModel):
    name: str = Field(min_length=1)
    ts: datetime | None = None
    properties: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("properties", "props")
    )


@router.post("/events")
async def post_event(
    body: EventIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await record_event(db, user.id, body.name, body.properties, body.ts)
    await db.commit()
    logger.info("analytics_event", user_id=user.id, event_type=body.name)
    return ok()


@router.post("/events/batch")
async def post_events_batch(
    payload: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Insert every valid event in the batch; invalid entries are skipped."""
    events = payload.get("events")
    if not isinstance(events, list):
        raise DomainValidationError("events array required")

    valid = []
    for raw in events:
        try:
            event = EventIn.model_validate(raw)
        except ValidationError:
            continue
        valid.append({"event_type": event.name, "event_data": event.properties, "created_at": event.ts})

    inserted = await record_events(db, user.id, valid)
    await db.commit()
    return ok({"inserted": inserted})


@router.get("/events/summary")
async def get_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await engagement_summary(db, user.id))
