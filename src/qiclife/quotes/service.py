"""Quote sessions: price range on start, final price on completion."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.analytics.service import record_event
from qiclife.config import get_settings
from qiclife.db.models import QuoteSession, User
from qiclife.errors import DomainValidationError, ForbiddenError, GoneError, NotFoundError
from qiclife.products.service import eligible_products, find_product
from qiclife.profile.service import get_profile_json

logger = logging.getLogger(__name__)

MIN_QUOTE = 50
# Percent of the base premium
RANGE_LOW = 70
RANGE_HIGH = 120


def _percent(base: int, percent: int) -> int:
    # Integer math, rounding half up
    return (base * percent + 50) // 100


def _aware(value: datetime) -> datetime:
    # SQLite returns naive datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def price_range(base_premium: int) -> tuple[int, int]:
    """Quoted band around the base premium. The floor never exceeds the ceiling."""
    low = max(MIN_QUOTE, _percent(base_premium, RANGE_LOW))
    high = max(low, _percent(base_premium, RANGE_HIGH))
    return low, high


def final_price(low: int, high: int) -> int:
    return (low + high + 1) // 2


async def get_quote(db: AsyncSession, user_id: str, quote_id: str) -> QuoteSession:
    result = await db.execute(
        select(QuoteSession).where(QuoteSession.id == quote_id, QuoteSession.user_id == user_id)
    )
    quote = result.scalar_one_or_none()
    if quote is None:
        raise NotFoundError("Not found")
    return quote


def _expire_if_due(quote: QuoteSession, now: datetime) -> None:
    if quote.status == "in_progress" and _aware(quote.expires_at) <= now:
        quote.status = "expired"


async def start_quote(db: AsyncSession, user: User, product_id: str | None,
                      inputs: dict[str, Any] | None = None) -> dict[str, Any]:
    if not product_id:
        raise DomainValidationError("product_id required")
    product = find_product(product_id)
    if product is None:
        raise DomainValidationError("Invalid product_id")

    profile_json = await get_profile_json(db, user.id)
    eligibility = {p["id"]: p["eligible"] for p in eligible_products(profile_json)}
    if not eligibility.get(product_id):
        raise ForbiddenError("User not eligible for selected product")

    low, high = price_range(product["base_premium"])
    quote = QuoteSession(
        user_id=user.id,
        product_id=product_id,
        inputs=inputs or {},
        price_low=low,
        price_high=high,
        status="in_progress",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=get_settings().quote_ttl_hours),
    )
    db.add(quote)
    await db.flush()
    await record_event(db, user.id, "quote_started", {"quote_id": quote.id, "product_id": product_id})
    logger.info("Quote started user=%s product=%s range=%d-%d", user.id, product_id, low, high)
    return {
        "quote_session_id": quote.id,
        "product_id": product_id,
        "price_range": [low, high],
        "expires_at": _aware(quote.expires_at).isoformat(),
        "next_step": "provide_details",
    }


async def quote_status(db: AsyncSession, user_id: str, quote_id: str) -> dict[str, Any]:
    quote = await get_quote(db, user_id, quote_id)
    _expire_if_due(quote, datetime.now(timezone.utc))
    await db.flush()
    return {
        "status": quote.status,
        "product_id": quote.product_id,
        "price_range": [quote.price_low, quote.price_high],
        "final_price": quote.final_price,
        "next_step": "review" if quote.status == "in_progress" else "complete",
    }


async def complete_quote(db: AsyncSession, user_id: str, quote_id: str) -> dict[str, Any]:
    """Fix the final price. Completing twice returns the same price."""
    quote = await get_quote(db, user_id, quote_id)
    now = datetime.now(timezone.utc)
    _expire_if_due(quote, now)
    if quote.status == "expired":
        await db.flush()
        raise GoneError("Quote session expired")

    if quote.status != "complete":
        quote.final_price = final_price(quote.price_low, quote.price_high)
        quote.status = "complete"
        quote.completed_at = now
        await db.flush()
        await record_event(db, user_id, "quote_completed", {"quote_id": quote.id, "final_price": quote.final_price})
        logger.info("Quote completed user=%s quote=%s price=%d", user_id, quote.id, quote.final_price)
    return {"status": "complete", "final_price": quote.final_price}
