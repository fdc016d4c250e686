"""Settlement engine - splits a day's gross collection between driver and operator"""

from datetime import date
from decimal import Decimal

from minibus_ledger.domain.exceptions import InvalidInputError
from minibus_ledger.domain.models import (
    BRANCH_BELOW_MINIMUM,
    BRANCH_STANDARD,
    BelowMinimumInput,
    DailySettlementInput,
    DailySettlementResult,
    RateConfiguration,
    StandardInput,
)
from minibus_ledger.utils.date_utils import is_sunday
from minibus_ledger.utils.money import HUNDRED, ZERO, parse_amount


def minimum_collection_for(day: date, rates: RateConfiguration) -> Decimal:
    """Minimum required gross collection: the Sunday rate on Sundays, the weekday rate otherwise"""
    return rates.sunday_minimum if is_sunday(day) else rates.weekday_minimum


def requires_manual_driver_share(day: date, gross_collection: Decimal, rates: RateConfiguration) -> bool:
    """
    True when the below-minimum branch applies and the caller must supply
    the driver's share by hand.

    A zero collection always counts as below minimum.
    """
    return gross_collection == ZERO or gross_collection < minimum_collection_for(day, rates)


def settle(entry: DailySettlementInput, rates: RateConfiguration) -> DailySettlementResult:
    """
    Compute driver/operator shares for one daily record.

    Below minimum (0 <= gross < minimum):
    - Driver share is the manual amount on the entry
    - Operator takes what is left after diesel, coop, other expenses and driver;
      this may be negative (the operator absorbs the shortfall)

    At or above minimum:
    - excess = gross - minimum
    - driver = base pay + excess * driver%
    - operator = minimum - base pay - diesel - coop + excess * operator%
    - net residual = gross - driver - operator - diesel - coop - other

    Amounts are exact Decimals; quantizing for storage is the caller's job.

    Raises:
        InvalidInputError: below-minimum day submitted without a manual driver share
    """
    minimum = minimum_collection_for(entry.date, rates)
    gross = entry.gross_collection
    deductions = entry.diesel_cost + entry.cooperative_contribution + entry.other_expenses

    if requires_manual_driver_share(entry.date, gross, rates):
        if not isinstance(entry, BelowMinimumInput):
            raise InvalidInputError(
                f"Collection {gross} is below the minimum of {minimum}; "
                "a manual driver share is required",
                field="manual_driver_share",
            )
        driver_share = entry.manual_driver_share
        operator_share = gross - deductions - driver_share

        return DailySettlementResult(
            branch=BRANCH_BELOW_MINIMUM,
            minimum_collection=minimum,
            excess_collection=ZERO,
            driver_share=driver_share,
            operator_share=operator_share,
            net_residual=gross - driver_share - operator_share - deductions,
        )

    excess = gross - minimum

    driver_extra = excess * (rates.driver_share_percent / HUNDRED)
    driver_share = rates.driver_base_pay + driver_extra

    operator_extra = excess * (rates.operator_share_percent / HUNDRED)
    operator_share = (
        minimum
        - rates.driver_base_pay
        - entry.diesel_cost
        - entry.cooperative_contribution
        + operator_extra
    )

    return DailySettlementResult(
        branch=BRANCH_STANDARD,
        minimum_collection=minimum,
        excess_collection=excess,
        driver_share=driver_share,
        operator_share=operator_share,
        net_residual=gross - driver_share - operator_share - deductions,
    )


def build_settlement_input(
    day: date,
    rates: RateConfiguration,
    gross_collection=None,
    diesel_cost=None,
    cooperative_contribution=None,
    other_expenses=None,
    manual_driver_share=None,
) -> DailySettlementInput:
    """
    Build the input variant the settlement branch needs from raw request fields.

    Absent amounts default to 0. An absent coop contribution defaults to the
    route's configured amount on weekdays and to 0 on Sundays; a non-zero coop
    contribution on a Sunday is rejected.

    Raises:
        InvalidInputError: unparsable or negative amount, Sunday coop,
            or missing manual share on a below-minimum day
    """
    gross = parse_amount(gross_collection, "gross_collection")
    diesel = parse_amount(diesel_cost, "diesel_cost")
    other = parse_amount(other_expenses, "other_expenses")

    sunday = is_sunday(day)
    coop_default = ZERO if sunday else rates.default_cooperative_contribution
    coop = parse_amount(cooperative_contribution, "cooperative_contribution", default=coop_default)

    for name, amount in (
        ("gross_collection", gross),
        ("diesel_cost", diesel),
        ("cooperative_contribution", coop),
        ("other_expenses", other),
    ):
        if amount < ZERO:
            raise InvalidInputError(f"{name} must not be negative", field=name)

    if sunday and coop != ZERO:
        raise InvalidInputError(
            "Cooperative contribution must be zero on Sundays",
            field="cooperative_contribution",
        )

    if not requires_manual_driver_share(day, gross, rates):
        return StandardInput(
            date=day,
            gross_collection=gross,
            diesel_cost=diesel,
            cooperative_contribution=coop,
            other_expenses=other,
        )

    if manual_driver_share is None or (isinstance(manual_driver_share, str) and not manual_driver_share.strip()):
        raise InvalidInputError(
            "A manual driver share is required when collection is below the minimum",
            field="manual_driver_share",
        )

    return BelowMinimumInput(
        date=day,
        gross_collection=gross,
        diesel_cost=diesel,
        cooperative_contribution=coop,
        other_expenses=other,
        manual_driver_share=parse_amount(manual_driver_share, "manual_driver_share"),
    )


def validate_share_split(operator_share_percent: Decimal, driver_share_percent: Decimal) -> None:
    """
    Reject a rate split that does not divide the excess exactly.

    Raises:
        InvalidInputError: a percentage outside 0-100, or the pair not summing to 100
    """
    for name, pct in (
        ("operator_share_percent", operator_share_percent),
        ("driver_share_percent", driver_share_percent),
    ):
        if pct < ZERO or pct > HUNDRED:
            raise InvalidInputError(f"{name} must be between 0 and 100", field=name)

    if operator_share_percent + driver_share_percent != HUNDRED:
        raise InvalidInputError(
            f"Operator and driver share must sum to 100 "
            f"(got {operator_share_percent} + {driver_share_percent})",
            field="operator_share_percent",
        )
