"""Display formatting for amounts, dates and times."""

from datetime import date, datetime, time
from typing import Any

from cakeout.services.pricing import format_money

LONG_DATE_FORMAT = "%B %d, %Y"
SHORT_DATE_FORMAT = "%b %d, %Y"


def format_currency(amount: Any) -> str:
    """Format an amount as dollars; anything non-numeric shows as $0.00."""
    return f"${format_money(amount)}"


def format_date(value: date | datetime | str | None, fmt: str = LONG_DATE_FORMAT) -> str:
    """Format a date, falling back to the raw text if it cannot be parsed."""
    if value is None:
        return ""
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return value.strftime(fmt)


def format_time(value: time | str | None) -> str:
    """Format a time on a 12-hour clock, e.g. 14:30 -> 2:30 PM."""
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        try:
            value = time.fromisoformat(value)
        except ValueError:
            return value
    hour = value.hour % 12 or 12
    suffix = "PM" if value.hour >= 12 else "AM"
    return f"{hour}:{value.minute:02d} {suffix}"
