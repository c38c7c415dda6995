"""
Display Formatting

Pure helpers that turn server values into display text. They never
raise: malformed or missing input degrades to a default display value.
"""

from datetime import date, datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional


DEFAULT_CURRENCY_SYMBOL = "₹"
TWO_PLACES = Decimal("0.01")


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a number the way a form field would; None if not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(value.strip() if isinstance(value, str) else str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite():
        return None
    return number


def group_indian(digits: str) -> str:
    """
    Group an integer digit string the Indian way.

    The last three digits form one group, every group before that has two:
    1234567 -> 12,34,567.
    """
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(value: Any, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """
    Format an amount as rupees with exactly two decimals.

    >>> format_currency("4.5")
    '₹4.50'
    >>> format_currency(1234567.891)
    '₹12,34,567.89'
    >>> format_currency("abc")
    '₹0.00'
    """
    number = _to_decimal(value)
    if number is None:
        return f"{symbol}0.00"

    rounded = number.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    whole, fraction = f"{abs(rounded):.2f}".split(".")
    return f"{symbol}{sign}{group_indian(whole)}.{fraction}"


def ordinal_suffix(day: int) -> str:
    """Suffix for a day of the month: 1st, 2nd, 3rd, 4th ... 21st, 22nd, 23rd, 31st."""
    if day in (1, 21, 31):
        return "st"
    if day in (2, 22):
        return "nd"
    if day in (3, 23):
        return "rd"
    return "th"


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    # fromisoformat only learned the "Z" suffix in 3.11
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_date(value: Any, tz: Optional[tzinfo] = None) -> str:
    """
    Format a timestamp as "Jan 5th, 2024, 3:07 PM".

    Accepts ISO 8601 strings, datetimes and dates. Aware timestamps are
    converted to `tz` when given. Missing or unparseable input gives "".
    """
    moment = _to_datetime(value)
    if moment is None:
        return ""
    if tz is not None and moment.tzinfo is not None:
        moment = moment.astimezone(tz)

    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return (
        f"{moment:%b} {moment.day}{ordinal_suffix(moment.day)}, {moment.year}, "
        f"{hour}:{moment.minute:02d} {meridiem}"
    )
