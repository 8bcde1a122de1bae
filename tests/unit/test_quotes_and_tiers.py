"""Unit tests for quote pricing, customer tiers and purchase rewards."""

from qiclife.multiproduct.service import customer_tier, purchase_rewards
from qiclife.quotes.service import final_price, price_range


class TestQuotePricing:
    def test_range_around_base_premium(self):
        assert price_range(120) == (84, 144)

    def test_halves_round_up(self):
        assert price_range(95) == (67, 114)
        assert final_price(67, 114) == 91

    def test_floor_applies_to_both_ends(self):
        assert price_range(18) == (50, 50)
        assert price_range(40) == (50, 50)
        assert price_range(45) == (50, 54)


class TestCustomerTier:
    def test_needs_both_breadth_and_value(self):
        assert customer_tier(4, 5000) == "platinum"
        assert customer_tier(4, 4999) == "gold"
        assert customer_tier(3, 3000) == "gold"
        assert customer_tier(2, 1000) == "silver"
        assert customer_tier(5, 999) == "bronze"
        assert customer_tier(1, 0) == "bronze"
        assert customer_tier(0, 10000) == "prospect"


class TestPurchaseRewards:
    def test_rewards_scale_with_amount(self):
        assert purchase_rewards(1500) == {"xp": 150, "coins": 75, "lifescore": 10}
        assert purchase_rewards(250.5) == {"xp": 25, "coins": 12, "lifescore": 2}

    def test_small_purchase(self):
        assert purchase_rewards(9) == {"xp": 0, "coins": 0, "lifescore": 0}
