"""
Lemonade Backend: Fixed-Point Money Helpers
============================================

What:  Parsing, validation and arithmetic for prices.
How:   Every amount is a `decimal.Decimal` with exactly two fractional digits.
       Binary floats never take part in arithmetic; a float input is converted
       through its shortest repr (2.5 → Decimal("2.5")) and then validated
       like any other input.

Used by the price matrix (validating prices before any write), the order
processor (line totals and order totals) and the response schemas
(serializing amounts as "6.00").
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

from lemonade.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest value a Numeric(7, 2) price column holds
MAX_PRICE = Decimal("99999.99")
# Largest value a Numeric(9, 2) line_total or total_price column holds
MAX_LINE_TOTAL = Decimal("9999999.99")

PriceInput = Union[Decimal, int, float, str]


def quantize(amount: Decimal) -> Decimal:
    """Round to cents (half-up) and pin the exponent to two places."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal) -> str:
    """Render an amount with exactly two fractional digits, e.g. "6.00"."""
    return str(quantize(Decimal(amount)))


def parse_price(value: PriceInput, field: str = "price") -> Decimal:
    """
    Validate and normalize a price.

    Rules:
        - must be a number (Decimal, int, float or numeric string; not bool)
        - must be finite
        - must be >= 0 and <= MAX_PRICE
        - at most two fractional digits ("2.5" and "2.50" are fine, "2.505" is not)

    Returns:
        The price quantized to two places.

    Raises:
        ValidationError: For any rule violation. Nothing has been written yet
        when this is raised.
    """
    if isinstance(value, bool):
        raise ValidationError(message=f"{field} must be a number", field=field)

    try:
        if isinstance(value, float):
            amount = Decimal(repr(value))
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(message=f"{field} must be a number", field=field)

    if not amount.is_finite():
        raise ValidationError(message=f"{field} must be a finite number", field=field)
    if amount < 0:
        raise ValidationError(
            message=f"{field} must not be negative (got {amount})",
            field=field,
            context={"value": str(amount)},
        )
    if amount > MAX_PRICE:
        raise ValidationError(
            message=f"{field} must not exceed {MAX_PRICE} (got {amount})",
            field=field,
            context={"value": str(amount)},
        )
    if amount != amount.quantize(CENT, rounding=ROUND_HALF_UP):
        raise ValidationError(
            message=f"{field} must have at most 2 decimal places (got {amount})",
            field=field,
            context={"value": str(amount)},
        )
    # Non-negative from here on; copy_abs drops the sign of "-0.00"
    return quantize(amount).copy_abs()


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    """unit_price × quantity, in cents."""
    return quantize(unit_price * quantity)


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Exact sum of already-quantized amounts (ZERO for an empty iterable)."""
    return quantize(sum(amounts, ZERO))
