"""Display formatting shared by the dashboard, messages and UI."""

from datetime import datetime


def format_amount(amount: int) -> str:
    """Whole shillings with thousands separators: 1234567 -> "1,234,567"."""
    return f"{amount:,}"


def format_kes(amount: int) -> str:
    return f"KES {format_amount(amount)}"


def format_datetime(value: datetime) -> str:
    """Minute-precision local timestamp, e.g. "2026-02-11 17:02"."""
    return value.strftime("%Y-%m-%d %H:%M")
