"""Multi-product router: purchases, cross-sell and conversion analytics."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.middleware.rate_limit import strict_rate_limit
from qiclife.multiproduct import service
from qiclife.responses import ok

logger = structlog.get_logger()

router = APIRouter(prefix="/api/multiproduct", tags=["Multi-product"])


@router.post("/purchase", dependencies=[Depends(strict_rate_limit)])
async def record_purchase(
    data: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Fields are checked by the service so missing ones are reported together."""
    result = await service.record_purchase(db, user, data)
    await db.commit()
    logger.info("purchase_recorded", user_id=user.id, product_id=result["purchase"]["product_id"])
    return ok(result)


@router.get("/purchases")
async def list_purchases(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.user_purchases(db, user.id))


@router.get("/recommendations")
async def cross_sell(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.cross_sell(db, user.id))


@router.get("/analytics")
async def conversion_analytics(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(await service.conversion_analytics(db))
