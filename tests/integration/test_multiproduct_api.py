"""Integration tests for purchases, cross-sell and conversion analytics."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import make_user

MOTOR = {
    "product_id": "motor-comprehensive",
    "product_type": "motor_insurance",
    "product_name": "Motor Comprehensive",
    "purchase_amount": 1500,
}
HOME = {
    "product_id": "home-contents",
    "product_type": "home_insurance",
    "product_name": "Home Contents",
    "purchase_amount": 800,
}


async def _buy(client: AsyncClient, purchase: dict, **kwargs) -> dict:
    response = await client.post("/api/multiproduct/purchase", json=purchase, **kwargs)
    assert response.status_code == 200
    return response.json()["data"]


class TestPurchases:
    @pytest.mark.asyncio
    async def test_first_purchase_rewards(self, authed_client: AsyncClient):
        data = await _buy(authed_client, MOTOR)
        assert data["purchase"]["currency"] == "QAR"
        assert data["purchase"]["status"] == "active"
        assert data["rewards"] == {"xp": 150, "coins": 75, "lifescore": 10, "multi_product_bonus_xp": 0}
        assert data["summary"]["customerTier"] == "bronze"
        assert not data["summary"]["isMultiProductCustomer"]

        stats = (await authed_client.get("/api/profile")).json()["data"]["stats"]
        assert stats["xp"] == 150
        assert stats["coins"] == 1075
        assert stats["lifescore"] == 10

    @pytest.mark.asyncio
    async def test_multi_product_bonus_paid_once(self, authed_client: AsyncClient):
        await _buy(authed_client, MOTOR)
        second = await _buy(authed_client, HOME)
        assert second["rewards"]["multi_product_bonus_xp"] == 50
        assert second["summary"]["isMultiProductCustomer"]
        assert second["summary"]["customerTier"] == "silver"

        third = await _buy(authed_client, {**HOME, "product_type": "travel_insurance", "purchase_amount": 100})
        assert third["rewards"] == {"xp": 10, "coins": 5, "lifescore": 1, "multi_product_bonus_xp": 0}

        stats = (await authed_client.get("/api/profile")).json()["data"]["stats"]
        assert stats["xp"] == 150 + 80 + 50 + 10

    @pytest.mark.asyncio
    async def test_missing_fields_reported_together(self, authed_client: AsyncClient):
        response = await authed_client.post(
            "/api/multiproduct/purchase", json={"product_id": "x", "product_name": "X"}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Missing required fields: product_type, purchase_amount"

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/multiproduct/purchase", json={**MOTOR, "purchase_amount": -5})
        assert response.status_code == 400
        response = await authed_client.post("/api/multiproduct/purchase", json={**MOTOR, "purchase_amount": "lots"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_purchase_history_summary(self, authed_client: AsyncClient):
        empty = (await authed_client.get("/api/multiproduct/purchases")).json()["data"]
        assert empty["purchases"] == []
        assert empty["summary"]["customerTier"] == "prospect"
        assert empty["summary"]["lastPurchaseDate"] is None

        await _buy(authed_client, MOTOR)
        await _buy(authed_client, {**MOTOR, "purchase_amount": 500})
        data = (await authed_client.get("/api/multiproduct/purchases")).json()["data"]
        assert len(data["purchases"]) == 2
        summary = data["summary"]
        assert summary["totalPurchases"] == 2
        assert summary["uniqueProductTypes"] == 1
        assert summary["totalValue"] == 2000
        assert summary["averagePurchaseValue"] == 1000
        assert summary["productTypeBreakdown"] == {"motor_insurance": 2}


class TestCrossSell:
    @pytest.mark.asyncio
    async def test_starter_products_without_purchases(self, authed_client: AsyncClient):
        data = (await authed_client.get("/api/multiproduct/recommendations")).json()["data"]
        assert [r["product_type"] for r in data["recommendations"]] == ["motor_insurance", "health_insurance"]
        assert data["rationale"] == "Based on your 0 existing products"
        assert data["customerTier"] == "prospect"

    @pytest.mark.asyncio
    async def test_missing_lines_recommended(self, authed_client: AsyncClient):
        await _buy(authed_client, MOTOR)
        data = (await authed_client.get("/api/multiproduct/recommendations")).json()["data"]
        assert [(r["product_type"], r["priority"]) for r in data["recommendations"]] == [
            ("home_insurance", 2),
            ("travel_insurance", 3),
            ("life_insurance", 4),
        ]
        assert data["rationale"] == "Based on your 1 existing product"
        assert data["isMultiProduct"] is False


class TestConversionAnalytics:
    @pytest.mark.asyncio
    async def test_conversion_rate(self, authed_client: AsyncClient):
        empty = (await authed_client.get("/api/multiproduct/analytics")).json()["data"]
        assert empty["conversionRate"] == 0
        assert empty["totalCustomers"] == 0

        await _buy(authed_client, MOTOR)
        await _buy(authed_client, HOME)
        _, token = await make_user("single@example.com", "single")
        await _buy(authed_client, MOTOR, headers={"Authorization": f"Bearer {token}"})
        _, token = await make_user("single2@example.com", "single2")
        await _buy(authed_client, HOME, headers={"Authorization": f"Bearer {token}"})

        data = (await authed_client.get("/api/multiproduct/analytics")).json()["data"]
        assert data == {
            "conversionRate": 33.33,
            "totalCustomers": 3,
            "multiProductCustomers": 1,
            "singleProductCustomers": 2,
        }
