"""Tests for money helpers."""

from decimal import Decimal

import pytest

from pos_edge.core.errors import ValidationError
from pos_edge.core.money import clamp, percent_of, quantize, to_money


class TestToMoney:
    def test_float_goes_through_its_decimal_repr(self):
        assert to_money(57.3) == Decimal("57.3")
        assert to_money(0.1) + to_money(0.2) == Decimal("0.3")

    def test_strings_and_ints_are_exact(self):
        assert to_money("10.05") == Decimal("10.05")
        assert to_money(7) == Decimal("7")

    @pytest.mark.parametrize("bad", ["abc", "NaN", "Infinity", None, True])
    def test_invalid_values_raise_validation_error(self, bad):
        with pytest.raises(ValidationError):
            to_money(bad)


class TestRounding:
    def test_quantize_rounds_half_up_to_cents(self):
        assert quantize(Decimal("2.675")) == Decimal("2.68")
        assert quantize(Decimal("2.674")) == Decimal("2.67")
        assert quantize(Decimal("9")) == Decimal("9.00")

    def test_percent_of_keeps_full_precision(self):
        assert percent_of(Decimal("10"), Decimal("33.3333")) == Decimal("3.333330")

    def test_clamp(self):
        assert clamp(Decimal("150"), Decimal("0"), Decimal("100")) == Decimal("100")
        assert clamp(Decimal("-1"), Decimal("0"), Decimal("100")) == Decimal("0")
