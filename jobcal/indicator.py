"""Current-time marker for today's column."""

from datetime import date, datetime
from typing import Optional

from .layout import HOUR_UNIT


def is_today(day: date, now: datetime) -> bool:
    return now.date() == day


def now_offset(now: datetime, day: date, unit: float = HOUR_UNIT) -> Optional[float]:
    """Offset of the "now" line in the column for `day`, or None if `day` is not today.

    `now` comes from the caller, which also decides how often to refresh it.
    """
    if not is_today(day, now):
        return None
    return (now.hour + now.minute / 60) * unit
