"""Quotes router: /api/quotes endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.middleware.rate_limit import strict_rate_limit
from qiclife.quotes import service
from qiclife.responses import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/quotes", tags=["Quotes"])


class StartQuoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Checked by the service so a missing id gets its own message
    product_id: str | None = Field(default=None, alias="productId")
    inputs: dict[str, Any] = Field(default_factory=dict)


@router.post("/start", dependencies=[Depends(strict_rate_limit)])
async def start_quote(
    body: StartQuoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await service.start_quote(db, user, body.product_id, body.inputs)
    await db.commit()
    logger.info("quote_started", user_id=user.id, product_id=body.product_id)
    return ok(result)


@router.get("/{quote_id}/status")
async def quote_status(
    quote_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await service.quote_status(db, user.id, quote_id)
    await db.commit()
    return ok(result)


@router.post("/{quote_id}/complete", dependencies=[Depends(strict_rate_limit)])
async def complete_quote(
    quote_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    result = await service.complete_quote(db, user.id, quote_id)
    await db.commit()
    logger.info("quote_completed", user_id=user.id, quote_id=quote_id, final_price=result["final_price"])
    return ok(result)
