"""Unit tests for money, month and validation helpers."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from ecommerce_api.utils.helpers import (
    generate_slug,
    month_label,
    month_start,
    next_month_start,
    parse_month,
    previous_month_start,
    quantize_money,
)
from ecommerce_api.utils.pagination import pagination_meta
from ecommerce_api.utils.validators import validate_dni, validate_phone_number, validate_sku


class TestMonthHelpers:
    """Test calendar month boundaries."""

    def test_month_start(self):
        assert month_start(date(2024, 3, 17)) == date(2024, 3, 1)
        assert month_start(datetime(2024, 3, 31, 23, 59)) == date(2024, 3, 1)

    def test_next_month_wraps_year(self):
        assert next_month_start(date(2024, 12, 5)) == date(2025, 1, 1)
        assert next_month_start(date(2024, 1, 31)) == date(2024, 2, 1)

    def test_previous_month_wraps_year(self):
        assert previous_month_start(date(2025, 1, 1)) == date(2024, 12, 1)
        assert previous_month_start(date(2024, 3, 31)) == date(2024, 2, 1)

    def test_month_label(self):
        assert month_label(date(2024, 2, 1)) == "2024-02"

    def test_parse_month(self):
        assert parse_month("2024-07") == date(2024, 7, 1)

    def test_parse_month_rejects_bad_input(self):
        with pytest.raises(ValueError):
            parse_month("2024-13")


class TestMoney:
    """Test currency rounding."""

    def test_quantize_half_up(self):
        assert quantize_money(Decimal("2.345")) == Decimal("2.35")
        assert quantize_money(Decimal("2.344")) == Decimal("2.34")

    def test_quantize_float_input(self):
        assert quantize_money(15.0) == Decimal("15.00")


class TestValidators:
    """Test input normalization."""

    def test_valid_dni(self):
        assert validate_dni(" 12345678 ") == "12345678"

    @pytest.mark.parametrize("dni", ["1234567", "12345678A", ""])
    def test_invalid_dni(self, dni):
        with pytest.raises(ValueError):
            validate_dni(dni)

    def test_phone_is_normalized(self):
        assert validate_phone_number("(01) 999-888-777") == "01999888777"

    def test_invalid_phone(self):
        with pytest.raises(ValueError):
            validate_phone_number("12345")

    def test_sku_is_uppercased(self):
        assert validate_sku("prot-001") == "PROT-001"

    def test_slug(self):
        assert generate_slug("Proteínas y Suplementos") == "proteinas-y-suplementos"


class TestPaginationMeta:
    """Test the pagination block."""

    def test_middle_page(self):
        meta = pagination_meta(45, 2, 20)
        assert meta == {
            "currentPage": 2,
            "totalPages": 3,
            "totalItems": 45,
            "itemsPerPage": 20,
            "hasNextPage": True,
            "hasPrevPage": True,
        }

    def test_empty_result(self):
        meta = pagination_meta(0, 1, 20)
        assert meta["totalPages"] == 0
        assert meta["hasNextPage"] is False
        assert meta["hasPrevPage"] is False
