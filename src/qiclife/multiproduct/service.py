"""Product purchases, customer tiers and cross-sell suggestions."""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.analytics.service import record_event
from qiclife.db.models import User, UserPurchase
from qiclife.errors import DomainValidationError
from qiclife.gamification.service import award_coins, award_xp, update_lifescore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("product_id", "product_type", "product_name", "purchase_amount")

MULTI_PRODUCT_BONUS_XP = 50

# (minimum product types, minimum total value, tier), checked top-down
CUSTOMER_TIERS: tuple[tuple[int, float, str], ...] = (
    (4, 5000, "platinum"),
    (3, 3000, "gold"),
    (2, 1000, "silver"),
    (1, 0, "bronze"),
)

STARTER_PRODUCTS = (
    {"product_type": "motor_insurance", "priority": 1, "reason": "Most popular starting product"},
    {"product_type": "health_insurance", "priority": 2, "reason": "Essential protection"},
)

CROSS_SELL = (
    {"product_type": "motor_insurance", "priority": 1, "reason": "Complements your existing coverage"},
    {"product_type": "home_insurance", "priority": 2, "reason": "Protect your biggest asset"},
    {"product_type": "travel_insurance", "priority": 3, "reason": "Travel with confidence"},
    {"product_type": "life_insurance", "priority": 4, "reason": "Secure your family's future"},
)


def customer_tier(product_types: int, total_value: float) -> str:
    for min_types, min_value, tier in CUSTOMER_TIERS:
        if product_types >= min_types and total_value >= min_value:
            return tier
    return "prospect"


def purchase_rewards(amount: float) -> dict[str, int]:
    return {
        "xp": math.floor(amount * 0.1),
        "coins": math.floor(amount * 0.05),
        "lifescore": min(10, math.floor(amount / 100)),
    }


def purchase_dict(p: UserPurchase) -> dict[str, Any]:
    return {
        "id": p.id,
        "product_id": p.product_id,
        "product_type": p.product_type,
        "product_name": p.product_name,
        "purchase_amount": p.purchase_amount,
        "currency": p.currency,
        "policy_number": p.policy_number,
        "status": p.status,
        "metadata": p.purchase_metadata or {},
        "purchase_date": p.purchase_date.isoformat() if p.purchase_date else None,
    }


def summarize(purchases: list[UserPurchase]) -> dict[str, Any]:
    """Metrics over active purchases, newest first."""
    active = [p for p in purchases if p.status == "active"]
    breakdown = Counter(p.product_type for p in active)
    total_value = sum(p.purchase_amount for p in active)
    return {
        "totalPurchases": len(active),
        "uniqueProductTypes": len(breakdown),
        "isMultiProductCustomer": len(breakdown) > 1,
        "totalValue": total_value,
        "averagePurchaseValue": total_value / len(active) if active else 0,
        "productTypeBreakdown": dict(breakdown),
        "lastPurchaseDate": active[0].purchase_date.isoformat() if active and active[0].purchase_date else None,
        "customerTier": customer_tier(len(breakdown), total_value),
    }


async def _purchases(db: AsyncSession, user_id: str) -> list[UserPurchase]:
    result = await db.execute(
        select(UserPurchase)
        .where(UserPurchase.user_id == user_id)
        .order_by(UserPurchase.purchase_date.desc(), UserPurchase.id)
    )
    return list(result.scalars())


def _validate(data: dict[str, Any]) -> float:
    missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
    if missing:
        raise DomainValidationError(f"Missing required fields: {', '.join(missing)}")
    amount = data["purchase_amount"]
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
        raise DomainValidationError("purchase_amount must be a positive number")
    return float(amount)


async def record_purchase(db: AsyncSession, user: User, data: dict[str, Any]) -> dict[str, Any]:
    """Store a purchase and pay out its XP, coin and LifeScore rewards.

    The multi-product bonus is paid once, on the purchase that takes the
    user from one product type to two.
    """
    amount = _validate(data)
    types_before = summarize(await _purchases(db, user.id))["uniqueProductTypes"]

    purchase = UserPurchase(
        user_id=user.id,
        product_id=str(data["product_id"]),
        product_type=str(data["product_type"]),
        product_name=str(data["product_name"]),
        purchase_amount=amount,
        currency=data.get("currency") or "QAR",
        policy_number=data.get("policy_number"),
        status="active",
        purchase_metadata=data.get("metadata") if isinstance(data.get("metadata"), dict) else {},
    )
    db.add(purchase)
    await db.flush()
    summary = summarize(await _purchases(db, user.id))

    rewards = purchase_rewards(amount)
    if rewards["xp"]:
        await award_xp(db, user, rewards["xp"], "purchase")
    if rewards["coins"]:
        await award_coins(db, user, rewards["coins"], "purchase")
    if rewards["lifescore"]:
        await update_lifescore(db, user, rewards["lifescore"], "purchase")
    await record_event(db, user.id, "purchase_reward", {
        "product_id": purchase.product_id,
        "purchase_amount": amount,
        "xp_reward": rewards["xp"],
        "coin_reward": rewards["coins"],
        "lifescore_boost": rewards["lifescore"],
    })

    bonus = 0
    if types_before <= 1 < summary["uniqueProductTypes"]:
        bonus = MULTI_PRODUCT_BONUS_XP
        await award_xp(db, user, bonus, "multi_product_bonus")
        await record_event(db, user.id, "multi_product_bonus", {
            "bonus_xp": bonus,
            "product_types": summary["uniqueProductTypes"],
        })

    logger.info("Purchase recorded user=%s product=%s amount=%.2f", user.id, purchase.product_id, amount)
    return {
        "purchase": purchase_dict(purchase),
        "rewards": {**rewards, "multi_product_bonus_xp": bonus},
        "summary": summary,
    }


async def user_purchases(db: AsyncSession, user_id: str) -> dict[str, Any]:
    purchases = await _purchases(db, user_id)
    return {"purchases": [purchase_dict(p) for p in purchases], "summary": summarize(purchases)}


async def cross_sell(db: AsyncSession, user_id: str) -> dict[str, Any]:
    summary = summarize(await _purchases(db, user_id))
    count = summary["totalPurchases"]
    if count == 0:
        recommendations = [dict(r) for r in STARTER_PRODUCTS]
    else:
        owned = set(summary["productTypeBreakdown"])
        recommendations = [dict(r) for r in CROSS_SELL if r["product_type"] not in owned]
    return {
        "recommendations": recommendations[:3],
        "rationale": f"Based on your {count} existing product{'' if count == 1 else 's'}",
        "customerTier": summary["customerTier"],
        "isMultiProduct": summary["isMultiProductCustomer"],
    }


async def conversion_analytics(db: AsyncSession) -> dict[str, Any]:
    """Share of purchasing customers that hold more than one active product type."""
    result = await db.execute(select(UserPurchase.user_id, UserPurchase.product_type, UserPurchase.status))
    types_by_user: dict[str, set[str]] = {}
    for user_id, product_type, status in result.all():
        types = types_by_user.setdefault(user_id, set())
        if status == "active":
            types.add(product_type)

    total = len(types_by_user)
    multi = sum(1 for types in types_by_user.values() if len(types) > 1)
    return {
        "conversionRate": round(multi / total * 100, 2) if total else 0,
        "totalCustomers": total,
        "multiProductCustomers": multi,
        "singleProductCustomers": total - multi,
    }
