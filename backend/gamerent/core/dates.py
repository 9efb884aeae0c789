"""
Calendar-date normalization shared by availability checks and the
reservation lifecycle.

Reservations live at day granularity. Whatever a client sends
("2025-12-01", "2025-12-01T03:00:00.000Z", a datetime, a date) is reduced to
its calendar date before it is compared or stored. The wall-clock date of
the value is kept as-is; no timezone conversion is applied, so an offset
artifact never shifts a booking to the neighbouring day.
"""

from datetime import date, datetime
from functools import lru_cache
from zoneinfo import ZoneInfo

from gamerent.core.config import get_settings


@lru_cache()
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def today() -> date:
    """Current calendar day in the configured business timezone."""
    return datetime.now(_zone(get_settings().TIMEZONE)).date()


def normalize_date(value: date | datetime | str) -> date:
    """
    Reduce a date-like value to a calendar date.

    Raises ValueError for strings that are neither ISO dates nor ISO
    datetimes.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        # fromisoformat in 3.11+ accepts "Z" and fractional seconds
        return datetime.fromisoformat(text).date()
    raise ValueError(f"Unsupported date value: {value!r}")


def is_past(day: date) -> bool:
    return day < today()
