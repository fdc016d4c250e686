"""Unit tests for the settlement engine"""

import pytest
from dataclasses import replace
from datetime import date
from decimal import Decimal
from minibus_ledger.domain.exceptions import InvalidInputError
from minibus_ledger.domain.models import (
    BRANCH_BELOW_MINIMUM,
    BRANCH_STANDARD,
    BelowMinimumInput,
    StandardInput,
)
from minibus_ledger.domain.settlement import (
    build_settlement_input,
    minimum_collection_for,
    requires_manual_driver_share,
    settle,
    validate_share_split,
)

MONDAY = date(2024, 11, 18)
TUESDAY = date(2024, 11, 19)
SUNDAY = date(2024, 11, 17)


def test_weekday_above_minimum(rates):
    """Weekday 6300 against a 6000 minimum splits the 300 excess 60/40"""
    entry = StandardInput(
        date=TUESDAY,
        gross_collection=Decimal("6300"),
        diesel_cost=Decimal("2277"),
        cooperative_contribution=Decimal("1852"),
    )

    result = settle(entry, rates)

    assert result.branch == BRANCH_STANDARD
    assert result.minimum_collection == Decimal("6000")
    assert result.excess_collection == Decimal("300")
    assert result.driver_share == Decimal("920")
    assert result.operator_share == Decimal("1251")
    assert result.net_residual == 0


def test_weekday_below_minimum_uses_manual_share(rates):
    entry = BelowMinimumInput(
        date=TUESDAY,
        gross_collection=Decimal("5000"),
        diesel_cost=Decimal("2203"),
        cooperative_contribution=Decimal("1852"),
        manual_driver_share=Decimal("600"),
    )

    result = settle(entry, rates)

    assert result.branch == BRANCH_BELOW_MINIMUM
    assert result.is_below_minimum
    assert result.excess_collection == 0
    assert result.driver_share == Decimal("600")
    assert result.operator_share == Decimal("345")
    assert result.net_residual == 0


def test_below_minimum_operator_share_can_be_negative(rates):
    """Operator absorbs the shortfall when deductions exceed the collection"""
    entry = BelowMinimumInput(
        date=TUESDAY,
        gross_collection=Decimal("3400"),
        diesel_cost=Decimal("2240"),
        cooperative_contribution=Decimal("1852"),
        manual_driver_share=Decimal("0"),
    )

    result = settle(entry, rates)

    assert result.operator_share == Decimal("-692")
    assert result.net_residual == 0


def test_sunday_above_minimum(rates):
    entry = StandardInput(date=SUNDAY, gross_collection=Decimal("5700"), diesel_cost=Decimal("2640"))

    result = settle(entry, rates)

    assert result.minimum_collection == Decimal("5000")
    assert result.excess_collection == Decimal("700")
    assert result.driver_share == Decimal("1080")
    assert result.operator_share == Decimal("1980")


def test_exactly_at_minimum_is_standard(rates):
    entry = StandardInput(date=MONDAY, gross_collection=Decimal("6000"))

    result = settle(entry, rates)

    assert result.branch == BRANCH_STANDARD
    assert result.excess_collection == 0
    assert result.driver_share == Decimal("800")
    assert result.operator_share == Decimal("5200")


def test_other_expenses_show_up_in_residual(rates):
    """Other expenses are not taken out of the standard operator share"""
    entry = StandardInput(
        date=MONDAY,
        gross_collection=Decimal("7000"),
        diesel_cost=Decimal("2000"),
        other_expenses=Decimal("150"),
    )

    result = settle(entry, rates)

    assert result.driver_share == Decimal("1200")
    assert result.operator_share == Decimal("3800")
    assert result.net_residual == Decimal("-150")


def test_zero_collection_requires_manual_share(rates):
    assert requires_manual_driver_share(MONDAY, Decimal("0"), rates)

    with pytest.raises(InvalidInputError) as exc:
        settle(StandardInput(date=MONDAY, gross_collection=Decimal("0")), rates)

    assert exc.value.field == "manual_driver_share"


def test_below_minimum_without_manual_share_rejected(rates):
    with pytest.raises(InvalidInputError):
        settle(StandardInput(date=MONDAY, gross_collection=Decimal("4500")), rates)


def test_manual_share_is_required_keyword():
    with pytest.raises(TypeError):
        BelowMinimumInput(date=MONDAY, gross_collection=Decimal("4500"))


@pytest.mark.parametrize(
    "gross",
    ["0", "1", "5999.99", "6000", "6000.01", "12345.67"],
)
def test_excess_never_negative(rates, gross):
    entry = build_settlement_input(MONDAY, rates, gross_collection=gross, manual_driver_share="100")

    result = settle(entry, rates)

    assert result.excess_collection >= 0


@pytest.mark.parametrize("gross", ["1", "4999.99", "5000", "5999.99", "6000", "9000"])
def test_branch_follows_minimum_only(rates, gross):
    amount = Decimal(gross)
    entry = build_settlement_input(MONDAY, rates, gross_collection=gross, manual_driver_share="0")

    result = settle(entry, rates)

    assert result.is_below_minimum == (amount < Decimal("6000"))


def test_balanced_split_leaves_no_residual(rates):
    entry = StandardInput(
        date=TUESDAY,
        gross_collection=Decimal("8123.45"),
        diesel_cost=Decimal("2311.10"),
        cooperative_contribution=Decimal("1852"),
    )

    assert settle(entry, rates).net_residual == 0


def test_unbalanced_split_reports_residual(rates):
    lopsided = replace(rates, operator_share_percent=Decimal("50"), driver_share_percent=Decimal("40"))
    entry = StandardInput(date=TUESDAY, gross_collection=Decimal("7000"))

    result = settle(entry, lopsided)

    # 10% of the 1000 excess is unallocated
    assert result.net_residual == Decimal("100")


def test_minimum_depends_only_on_sunday(rates):
    assert minimum_collection_for(date(2023, 1, 2), rates) == minimum_collection_for(date(2025, 6, 17), rates)
    assert minimum_collection_for(date(2023, 1, 1), rates) == Decimal("5000")
    assert minimum_collection_for(date(2026, 3, 8), rates) == Decimal("5000")


def test_build_input_chooses_variant(rates):
    standard = build_settlement_input(MONDAY, rates, gross_collection="6500", manual_driver_share="700")
    below = build_settlement_input(MONDAY, rates, gross_collection="4000", manual_driver_share="700")

    assert type(standard) is StandardInput
    assert isinstance(below, BelowMinimumInput)
    assert below.manual_driver_share == Decimal("700")


def test_build_input_rejects_unparsable_amount(rates):
    with pytest.raises(InvalidInputError) as exc:
        build_settlement_input(MONDAY, rates, gross_collection="12abc")

    assert exc.value.field == "gross_collection"


def test_build_input_rejects_negative_amount(rates):
    with pytest.raises(InvalidInputError) as exc:
        build_settlement_input(MONDAY, rates, gross_collection="7000", diesel_cost="-1")

    assert exc.value.field == "diesel_cost"


def test_build_input_missing_manual_share(rates):
    with pytest.raises(InvalidInputError) as exc:
        build_settlement_input(MONDAY, rates, gross_collection="3000", manual_driver_share="  ")

    assert exc.value.field == "manual_driver_share"


def test_coop_defaults_on_weekdays_only(rates):
    with_coop = replace(rates, default_cooperative_contribution=Decimal("1852"))

    weekday = build_settlement_input(MONDAY, with_coop, gross_collection="7000")
    sunday = build_settlement_input(SUNDAY, with_coop, gross_collection="7000")

    assert weekday.cooperative_contribution == Decimal("1852")
    assert sunday.cooperative_contribution == 0


def test_sunday_coop_rejected(rates):
    with pytest.raises(InvalidInputError) as exc:
        build_settlement_input(SUNDAY, rates, gross_collection="7000", cooperative_contribution="100")

    assert exc.value.field == "cooperative_contribution"


def test_validate_share_split():
    validate_share_split(Decimal("60"), Decimal("40"))
    validate_share_split(Decimal("100"), Decimal("0"))

    with pytest.raises(InvalidInputError):
        validate_share_split(Decimal("60"), Decimal("30"))

    with pytest.raises(InvalidInputError) as exc:
        validate_share_split(Decimal("120"), Decimal("-20"))
    assert exc.value.field == "operator_share_percent"
