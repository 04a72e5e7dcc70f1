"""
Unit tests for purchase points.

Tests cover:
- One point per full currency block
- Fractional amounts are floored
- Zero and negative amounts
"""

from decimal import Decimal

import pytest

from ecommerce_api.services.rewards_service import RewardsService, calculate_purchase_points


class TestPurchasePoints:
    """Test points earned from a purchase amount."""

    @pytest.mark.parametrize(
        "amount, expected",
        [
            (Decimal("1500"), 150),
            (Decimal("10"), 1),
            (Decimal("9.99"), 0),
            (Decimal("19.99"), 1),
            (Decimal("125.50"), 12),
            (0, 0),
        ],
    )
    def test_floor_of_amount_over_block(self, amount, expected):
        assert calculate_purchase_points(amount) == expected

    def test_negative_amount_gives_no_points(self):
        assert calculate_purchase_points(Decimal("-50")) == 0

    def test_accepts_strings_and_floats(self):
        assert calculate_purchase_points("250.00") == 25
        assert calculate_purchase_points(99.9) == 9

    def test_service_exposes_same_rule(self):
        assert RewardsService.calculate_purchase_points(Decimal("1500")) == 150
