"""Tests for the Money value object."""

from decimal import Decimal

import pytest

from clinic_desk.exceptions import CurrencyMismatchError
from clinic_desk.money import Money, get_currency_symbol, sum_money


class TestMoney:
    def test_amount_normalized_to_decimal(self):
        """Floats and ints become Decimal via str()."""
        assert Money(10.5, "MYR").amount == Decimal("10.5")
        assert Money(3, "MYR").amount == Decimal("3")

    def test_quantized_uses_bankers_rounding(self):
        assert Money(Decimal("2.125"), "MYR").quantized().amount == Decimal("2.12")
        assert Money(Decimal("2.135"), "MYR").quantized().amount == Decimal("2.14")

    def test_format_uses_ringgit_symbol(self):
        assert Money(Decimal("10"), "MYR").format() == "RM10.00"
        assert str(Money(Decimal("1234.5"), "MYR")) == "RM1,234.50"

    def test_unknown_currency_symbol_falls_back_to_code(self):
        assert get_currency_symbol("XYZ") == "XYZ"

    def test_arithmetic(self):
        rate = Money(Decimal("10.00"), "MYR")
        assert (rate * 3).amount == Decimal("30.00")
        assert (3 * rate).amount == Decimal("30.00")
        assert (rate - Money(Decimal("4"), "MYR")).amount == Decimal("6.00")
        assert (-rate).amount == Decimal("-10.00")

    def test_currency_mismatch_raises(self):
        with pytest.raises(CurrencyMismatchError):
            Money(Decimal("1"), "MYR") + Money(Decimal("1"), "SGD")

    def test_sum_money_accepts_decimals(self):
        total = sum_money([Decimal("30.00"), Money(Decimal("20.00"), "MYR")], "MYR")
        assert total == Money(Decimal("50.00"), "MYR")

    def test_sum_money_empty_is_zero(self):
        assert sum_money([], "MYR").is_zero()
