"""Decimal helpers for peso amounts"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from minibus_ledger.domain.exceptions import InvalidInputError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

AmountLike = Union[None, str, int, float, Decimal]


def to_decimal(value: Union[str, int, float, Decimal]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    # str() first so 0.1 becomes Decimal("0.1") rather than its binary expansion
    return Decimal(str(value))


def parse_amount(value: AmountLike, field: str, default: Decimal = ZERO) -> Decimal:
    """
    Parse a monetary amount.

    Fallback policy: an absent value (None or blank string) yields ``default``.
    Anything present but unparsable is rejected; it is never coerced to zero.

    Raises:
        InvalidInputError: value is present but not a finite decimal
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return default
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number", field=field)
    try:
        amount = to_decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, ValueError) as e:
        raise InvalidInputError(f"{field} is not a valid amount: {value!r}", field=field) from e
    if not amount.is_finite():
        raise InvalidInputError(f"{field} is not a valid amount: {value!r}", field=field)
    return amount


def quantize_cents(amount: Decimal) -> Decimal:
    """Round to centavos, half up, for storage"""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
