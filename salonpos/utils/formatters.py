"""
Formatting helpers for receipts and exports.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union


def money_fmt(value: Union[int, float, Decimal, str, None], symbol: str = '') -> str:
    """
    Format an amount with thousands separators and exactly 2 decimals.

    Args:
        value: Amount to format
        symbol: Currency symbol prefix (e.g. '₹')

    Returns:
        Formatted string, "-" if the value is not a number

    Examples:
        money_fmt(1500) -> "1,500.00"
        money_fmt(Decimal('91.835'), '₹') -> "₹91.84"
        money_fmt(-5) -> "-5.00"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    return f"{sign}{symbol}{abs(num):,.2f}"


def date_fmt(value: Union[date, datetime, None]) -> str:
    """
    Format a date as DD/MM/YYYY.

    Examples:
        date_fmt(date(2026, 1, 12)) -> "12/01/2026"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%d/%m/%Y")


def datetime_fmt(value: Union[datetime, None], with_time: bool = True) -> str:
    """
    Format a datetime as DD/MM/YYYY HH:MM.

    Examples:
        datetime_fmt(datetime(2026, 1, 12, 15, 30)) -> "12/01/2026 15:30"
        datetime_fmt(datetime(2026, 1, 12, 15, 30), with_time=False) -> "12/01/2026"
    """
    if value is None:
        return "-"

    if not isinstance(value, datetime):
        return "-"

    if with_time:
        return value.strftime("%d/%m/%Y %H:%M")
    return value.strftime("%d/%m/%Y")


def payment_mode_label(value: Union[str, None]) -> str:
    """'upi' -> 'UPI', 'cash' -> 'Cash'."""
    if not value:
        return "Cash"
    if value.lower() == 'upi':
        return "UPI"
    return value.capitalize()


def parse_date(value: Union[str, None]) -> Union[date, None]:
    """
    Parse YYYY-MM-DD query values. Empty values are None.

    Raises:
        ValueError: if the value is not a valid date
    """
    if not value:
        return None
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()
