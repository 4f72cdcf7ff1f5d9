"""Money helpers: Decimal quantization and integer-cent conversion."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')


def to_money(value: Union[int, float, Decimal, str, None]) -> Decimal:
    """
    Convert a value to a Decimal rounded to the cent (ROUND_HALF_UP).

    Floats go through str() so 0.1 becomes Decimal('0.10'), not its
    binary expansion. None and empty strings are zero.

    Raises:
        ValueError: if the value is not a finite number (NaN and Infinity
            included).
    """
    if value is None or value == '':
        return ZERO
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise ValueError(f'Invalid amount: {value!r}')
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f'Invalid amount: {value!r}')


def to_cents(value: Decimal) -> int:
    """Money -> integer cents."""
    return int(to_money(value) * 100)


def from_cents(cents: int) -> Decimal:
    """Integer cents -> money."""
    return (Decimal(cents) / 100).quantize(CENT)


def percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """amount * percentage / 100, rounded to the cent."""
    return to_money(Decimal(amount) * Decimal(percentage) / HUNDRED)


def clamp(value: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
    return max(lower, min(value, upper))
