"""Unit tests for commission amount calculation."""

from decimal import Decimal

from ecommerce_api.services.commission_service import calculate_commission_amount, REFERRAL_DEPTH


class TestCommissionAmount:
    """unit_price x quantity x percentage / 100, rounded half-up to cents."""

    def test_direct_sale_percentage(self):
        # 80.00 * 2 * 20 / 100 = 32.00
        assert calculate_commission_amount(Decimal("80.00"), 2, 20) == Decimal("32.00")

    def test_referral_percentage(self):
        # 100.00 * 1 * 10 / 100 = 10.00
        assert calculate_commission_amount(Decimal("100.00"), 1, 10) == Decimal("10.00")

    def test_rounds_half_up(self):
        # 1.25 * 1 * 10 / 100 = 0.125 -> 0.13
        assert calculate_commission_amount(Decimal("1.25"), 1, 10) == Decimal("0.13")

    def test_rounds_down_below_half(self):
        # 33.33 * 1 * 10 / 100 = 3.333 -> 3.33
        assert calculate_commission_amount(Decimal("33.33"), 1, 10) == Decimal("3.33")

    def test_fractional_percentage(self):
        # 59.90 * 3 * 12.5 / 100 = 22.4625 -> 22.46
        assert calculate_commission_amount(Decimal("59.90"), 3, Decimal("12.5")) == Decimal("22.46")

    def test_zero_percentage(self):
        assert calculate_commission_amount(Decimal("100.00"), 5, 0) == Decimal("0.00")

    def test_result_has_two_decimals(self):
        result = calculate_commission_amount(Decimal("10"), 1, 15)
        assert result.as_tuple().exponent == -2


def test_referral_chain_depth_is_single_level():
    assert REFERRAL_DEPTH == 1
