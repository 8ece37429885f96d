"""Decimal helper tests (billing_kernel/domain/values.py)."""

from decimal import Decimal

import pytest

from billing_kernel.domain.values import (
    ZERO,
    percentage,
    quantize_money,
    strip_scale,
    to_decimal,
)


class TestToDecimal:

    def test_strings_and_ints_are_converted(self):
        assert to_decimal("12.50") == Decimal("12.50")
        assert to_decimal(3) == Decimal("3")

    def test_decimal_passes_through(self):
        value = Decimal("1.005")
        assert to_decimal(value) is value

    def test_float_rejected(self):
        with pytest.raises(ValueError, match="Float"):
            to_decimal(0.1)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError, match="Invalid amount"):
            to_decimal("ten dollars")

    @pytest.mark.parametrize("value", ["NaN", Decimal("Infinity"), "-inf"])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValueError, match="finite"):
            to_decimal(value)


class TestRounding:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("0.005", "0.01"),
            ("2.675", "2.68"),
            ("1.004", "1.00"),
            ("-0.005", "-0.01"),
        ],
    )
    def test_money_rounds_half_up(self, raw, expected):
        assert quantize_money(Decimal(raw)) == Decimal(expected)

    def test_percentage_of_zero_whole_is_zero(self):
        assert percentage(Decimal("5"), ZERO) == Decimal("0.00")

    def test_percentage_rounds_to_two_places(self):
        assert percentage(Decimal("1"), Decimal("3")) == Decimal("33.33")
        assert percentage(Decimal("2"), Decimal("3")) == Decimal("66.67")


class TestStripScale:

    def test_integral_value_loses_fraction(self):
        assert str(strip_scale(Decimal("10.0000"))) == "10"

    def test_large_integral_value_has_no_exponent(self):
        assert str(strip_scale(Decimal("100.0000"))) == "100"

    def test_fraction_keeps_significant_digits(self):
        assert str(strip_scale(Decimal("7.2500"))) == "7.25"
