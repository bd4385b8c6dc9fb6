"""Week window resolution and visible-week filtering."""

from datetime import date, datetime, timedelta
from typing import Iterable, Union

from .models import CalendarEvent, WeekWindow

DAYS_IN_WEEK = 7


def as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def week_window(anchor: Union[date, datetime]) -> WeekWindow:
    """Return the Monday-to-Sunday window containing `anchor`."""
    day = as_date(anchor)
    start = day - timedelta(days=day.weekday())
    days = tuple(start + timedelta(days=i) for i in range(DAYS_IN_WEEK))
    return WeekWindow(start=start, end=days[-1], days=days)


def sort_key(event: CalendarEvent) -> tuple[date, int, str]:
    # Untimed events lead their day; HH:MM strings sort lexically
    if event.start_time is None:
        return (event.day, 0, "")
    return (event.day, 1, event.start_time)


def sort_events(events: Iterable[CalendarEvent]) -> list[CalendarEvent]:
    """Display order: by day, untimed first, then start time. Ties keep input order."""
    return sorted(events, key=sort_key)


def events_in_week(events: Iterable[CalendarEvent], window: WeekWindow) -> list[CalendarEvent]:
    """Events starting inside the window, in display order."""
    return sort_events(e for e in events if window.contains(e.day))


def week_label(window: WeekWindow) -> str:
    """Header text such as 'March 4 - 10, 2024'."""
    start, end = window.start, window.end
    if start.year != end.year:
        return f"{start:%B} {start.day}, {start.year} - {end:%B} {end.day}, {end.year}"
    if start.month != end.month:
        return f"{start:%B} {start.day} - {end:%B} {end.day}, {end.year}"
    return f"{start:%B} {start.day} - {end.day}, {end.year}"
