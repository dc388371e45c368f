"""
Shared text helpers for the parsers and the ledger models.

Everything here is pure: no I/O, no state, no exceptions for bad input.
A value that cannot be interpreted comes back as None.
"""

import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")
_KES_PREFIX_RE = re.compile(r"KES\s*", re.IGNORECASE)


def normalize_whitespace(value: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", value).strip()


def normalize_name(name: str) -> str:
    """Display form of a person's name."""
    return normalize_whitespace(name)


def name_key(name: str) -> str:
    """Case-insensitive grouping key for a name."""
    return normalize_name(name).lower()


def normalize_ref(ref: Optional[str]) -> Optional[str]:
    """Trim a reference code; blank references become None."""
    if not ref:
        return None
    value = ref.strip()
    return value or None


def round_amount(value: Decimal) -> int:
    """Round to whole currency units, halves away from zero."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def parse_amount(raw: str) -> Optional[int]:
    """
    Parse a money token into positive whole units.

    Strips a KES prefix and thousands separators. Zero, negative and
    non-numeric tokens yield None.

    Examples:
        >>> parse_amount("KES 5,000.00")
        5000
        >>> parse_amount("10,000")
        10000
        >>> parse_amount("0.00") is None
        True
    """
    cleaned = _KES_PREFIX_RE.sub("", raw).replace(",", "").strip()
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0:
        return None
    amount = round_amount(value)
    return amount if amount > 0 else None


def to_24_hour(hour: int, meridiem: Optional[str]) -> int:
    """
    Convert a 12-hour clock reading.

    12 AM is midnight, 12 PM stays noon, any other PM hour gains 12.
    Without a meridiem the hour is returned unchanged.
    """
    if not meridiem:
        return hour
    upper = meridiem.upper()
    if upper == "PM" and hour < 12:
        return hour + 12
    if upper == "AM" and hour == 12:
        return 0
    return hour


def expand_year(year: int) -> int:
    """Two-digit years belong to the 2000s."""
    return year + 2000 if year < 100 else year


def build_local_datetime(
    year: str,
    month: str,
    day: str,
    hour: str,
    minute: str,
    second: Optional[str] = None,
    meridiem: Optional[str] = None,
) -> Optional[datetime]:
    """
    Build a local (naive) datetime from captured regex groups.

    Returns None when the components do not form a real calendar
    date and clock time (e.g. 31/2/26 or 25:00).
    """
    try:
        return datetime(
            expand_year(int(year)),
            int(month),
            int(day),
            to_24_hour(int(hour), meridiem),
            int(minute),
            int(second or 0),
        )
    except ValueError:
        return None


def as_local(value: datetime) -> datetime:
    """Express a datetime as naive local time."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
