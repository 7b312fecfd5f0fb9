"""Tests for amount parsing and presentation rounding."""

from decimal import Decimal

import pytest

from expense_ledger.money import MAX_AMOUNT, format_money, parse_amount, round_cents


class TestParseAmount:

    @pytest.mark.parametrize("value, expected", [
        ("12.50", Decimal("12.50")),
        (" 1,250 ", Decimal("1250")),
        (7, Decimal("7")),
        (0.1, Decimal("0.1")),
        ("-3", Decimal("-3")),
    ])
    def test_numbers(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "NaN", "inf", True, None, {"a": 1}, [1]])
    def test_unparsable_is_zero(self, value):
        assert parse_amount(value) == Decimal("0")

    @pytest.mark.parametrize("value", ["1e30", "-1e30", "1000000000000000", 1e20])
    def test_too_large_to_store_is_zero(self, value):
        assert parse_amount(value) == Decimal("0")

    def test_largest_storable_amount_kept(self):
        value = MAX_AMOUNT - Decimal("0.0001")
        assert parse_amount(str(value)) == value


class TestRounding:

    def test_half_up(self):
        assert round_cents(Decimal("2.345")) == Decimal("2.35")
        assert round_cents(Decimal("-2.345")) == Decimal("-2.35")

    def test_no_negative_zero(self):
        assert format_money(Decimal("-0.001")) == "0.00"

    def test_amount_beyond_default_precision(self):
        assert round_cents(Decimal("1e30")) == Decimal("1e30")
        assert format_money(Decimal("1e30")) == "1" + "0" * 30 + ".00"

    def test_many_digits(self):
        value = Decimal("123456789012345678901234567890.125")
        assert format_money(value) == "123456789012345678901234567890.13"
