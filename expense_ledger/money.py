"""
Decimal helpers for amounts.

Amounts are accumulated as Decimal and only rounded to cents
when they are presented.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Largest magnitude a Numeric(19, 4) column holds
MAX_AMOUNT = Decimal("1e15")


def to_decimal(value) -> Decimal:
    """
    Convert a stored or computed amount to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"),
    not its binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def parse_amount(value) -> Decimal:
    """
    Parse user-supplied numeric input permissively.

    Anything that is not a finite number (blank strings, "abc",
    NaN, booleans, nested objects) becomes zero instead of failing.
    So does a number too large to store, such as "1e30".
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
    else:
        return ZERO
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return ZERO
    if not amount.is_finite() or abs(amount) >= MAX_AMOUNT:
        return ZERO
    return amount


def round_cents(value) -> Decimal:
    """Round half-up to two decimal places, whatever the magnitude."""
    value = to_decimal(value)
    with localcontext() as ctx:
        # quantize needs every integer digit plus two decimals
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    # No "-0.00" in reports
    return rounded.copy_abs() if rounded.is_zero() else rounded


def format_money(value) -> str:
    """Render an amount with exactly two decimal places."""
    return f"{round_cents(value):f}"


def convert(amount, rate) -> Decimal:
    """Display-time currency conversion. Not rounded."""
    return to_decimal(amount) * to_decimal(rate)
