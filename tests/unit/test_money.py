"""Unit tests for amount parsing and rounding"""

import pytest
from decimal import Decimal
from minibus_ledger.domain.exceptions import InvalidInputError
from minibus_ledger.utils.money import parse_amount, quantize_cents, to_decimal


def test_parse_amount_accepts_numbers_and_strings():
    assert parse_amount("1852.50", "coop") == Decimal("1852.50")
    assert parse_amount(" 600 ", "share") == Decimal("600")
    assert parse_amount(800, "base") == Decimal("800")
    assert parse_amount(Decimal("0.10"), "x") == Decimal("0.10")


def test_float_goes_through_its_repr():
    assert to_decimal(0.1) == Decimal("0.1")


def test_absent_amount_uses_default():
    assert parse_amount(None, "diesel_cost") == 0
    assert parse_amount("", "diesel_cost") == 0
    assert parse_amount(None, "coop", default=Decimal("1852")) == Decimal("1852")


@pytest.mark.parametrize("value", ["abc", "12,000", "NaN", "Infinity", True])
def test_unparsable_amount_rejected(value):
    with pytest.raises(InvalidInputError) as exc:
        parse_amount(value, "gross_collection")

    assert exc.value.field == "gross_collection"


def test_quantize_cents_rounds_half_up():
    assert quantize_cents(Decimal("849.385")) == Decimal("849.39")
    assert quantize_cents(Decimal("-692")) == Decimal("-692.00")
