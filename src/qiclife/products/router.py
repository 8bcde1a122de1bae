"""Products router: /api/products endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.dependencies import get_current_user
from qiclife.database import get_session
from qiclife.db.models import User
from qiclife.products.service import calculate_bundle_savings, eligible_products
from qiclife.profile.service import get_profile_json
from qiclife.responses import ok

router = APIRouter(prefix="/api/products", tags=["Products"])


class BundleSavingsRequest(BaseModel):
    product_ids: list[str] = Field(default_factory=list)


@router.get("/catalog")
async def get_catalog(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Catalog with per-user eligibility."""
    profile_json = await get_profile_json(db, user.id)
    return ok({"products": eligible_products(profile_json)})


@router.post("/bundle-savings")
async def bundle_savings(
    body: BundleSavingsRequest,
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return ok(calculate_bundle_savings(body.product_ids))
