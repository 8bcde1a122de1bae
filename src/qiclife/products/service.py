"""Insurance product catalog, eligibility and bundle pricing."""

from __future__ import annotations

from typing import Any

CATALOG: tuple[dict[str, Any], ...] = (
    {"id": "auto_plus", "name": "Auto Plus", "type": "auto", "base_premium": 120, "category": "auto"},
    {"id": "home_secure", "name": "Home Secure", "type": "home", "base_premium": 95, "category": "home"},
    {"id": "travel_easy", "name": "Travel Easy", "type": "travel", "base_premium": 18, "category": "travel"},
)

# Minimum product count -> discount fraction, checked top-down
BUNDLE_DISCOUNTS: tuple[tuple[int, float], ...] = ((3, 0.18), (2, 0.12))

# Mission categories map onto the nearest product line
MISSION_PRODUCT_CATEGORY = {
    "safe_driving": "auto",
    "family_protection": "home",
    "lifestyle": "travel",
}


def get_catalog() -> list[dict[str, Any]]:
    return [dict(p) for p in CATALOG]


def eligible_products(profile_json: dict[str, Any]) -> list[dict[str, Any]]:
    """Catalog entries flagged with whether this profile may buy them."""
    driving_habits = (profile_json.get("step1") or {}).get("driving_habits") or "moderate"
    family_size = (profile_json.get("step3") or {}).get("family_size")
    if family_size is None:
        family_size = 1

    products = []
    for product in CATALOG:
        eligible = True
        if product["type"] == "auto" and driving_habits == "aggressive":
            eligible = False
        try:
            if product["type"] == "home" and float(family_size) < 1:
                eligible = False
        except (TypeError, ValueError):
            pass
        products.append({**product, "eligible": eligible})
    return products


def find_product(product_id: str | None) -> dict[str, Any] | None:
    return next((dict(p) for p in CATALOG if p["id"] == product_id), None)


def bundle_discount(count: int) -> float:
    for minimum, discount in BUNDLE_DISCOUNTS:
        if count >= minimum:
            return discount
    return 0.0


def calculate_bundle_savings(product_ids: Any) -> dict[str, Any]:  # noqa: ANN401
    """Price a bundle. Unknown ids are ignored; duplicates count once."""
    ids = set(product_ids) if isinstance(product_ids, list) else set()
    selected = [p for p in CATALOG if p["id"] in ids]
    subtotal = sum(p["base_premium"] for p in selected)
    savings_percent = bundle_discount(len(selected))
    # Round half up
    savings_amount = int(subtotal * savings_percent + 0.5)
    return {
        "products": [p["id"] for p in selected],
        "subtotal": subtotal,
        "savings_percent": savings_percent,
        "savings_amount": savings_amount,
        "total": subtotal - savings_amount,
    }


def product_spotlight(category: str | None) -> dict[str, Any]:
    """The product to feature next to a mission of ``category``."""
    product_category = MISSION_PRODUCT_CATEGORY.get(category or "", category)
    match = next((p for p in CATALOG if p["category"] == product_category), CATALOG[0])
    return {"product_id": match["id"], "name": match["name"], "type": match["type"]}


def offer_discount(lifescore: int) -> float:
    if lifescore >= 70:
        return 0.15
    if lifescore >= 50:
        return 0.10
    return 0.05


def prequalified_offers(profile_json: dict[str, Any], lifescore: int) -> list[dict[str, Any]]:
    """Discounted offers for the first three products the user is eligible for."""
    discount = offer_discount(lifescore)
    eligible = [p for p in eligible_products(profile_json) if p["eligible"]]
    return [
        {
            "product_id": p["id"],
            "name": p["name"],
            "type": p["type"],
            "discount": discount,
            "cta": "Get Quote",
        }
        for p in eligible[:3]
    ]
