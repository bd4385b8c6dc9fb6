"""Time grid layout for a single day of the week view.

Positions are expressed in grid units: `HOUR_UNIT` units per hour, so an event
at 09:30 sits at 28.5 units from the top of its day column. Only timed events
are placed on the grid; untimed ones are returned separately so the caller can
list them above the grid.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from .models import CalendarEvent, GridPosition, PositionedEvent
from .week import sort_events

logger = logging.getLogger(__name__)

HOUR_UNIT = 3.0
MIN_EVENT_HOURS = 1.5
STACK_OFFSET = 0.5

NO_TIME_LABEL = "No Time Specified"

# Hour rows of the grid, closed by a final midnight row
TIME_SLOTS = tuple(f"{hour:02d}:00" for hour in range(24)) + ("00:00",)


def parse_hhmm(value: str) -> tuple[int, int]:
    hours, _, minutes = value.partition(":")
    return int(hours), int(minutes)


def event_position(
    event: CalendarEvent,
    day: date,
    unit: float = HOUR_UNIT,
    min_hours: float = MIN_EVENT_HOURS,
) -> Optional[GridPosition]:
    """Vertical offset and height of `event` in the column for `day`.

    Returns None for untimed events and for events on another day.
    """
    if event.start_time is None or event.day != day:
        return None

    start_hour, start_minute = parse_hhmm(event.start_time)
    if event.end_time:
        end_hour, end_minute = parse_hhmm(event.end_time)
    else:
        end_hour, end_minute = start_hour + 1, start_minute

    top = (start_hour + start_minute / 60) * unit
    duration = (end_hour - start_hour) + (end_minute - start_minute) / 60
    # An end past midnight gives a negative duration; the floor keeps it visible
    height = max(duration * unit, min_hours * unit)
    return GridPosition(top_offset=top, height=height)


def layout_day(
    day: date,
    events: Iterable[CalendarEvent],
    unit: float = HOUR_UNIT,
    min_hours: float = MIN_EVENT_HOURS,
    stack_offset: float = STACK_OFFSET,
) -> tuple[list[PositionedEvent], list[CalendarEvent]]:
    """Place the events of one day on the grid.

    Events sharing a start time are nudged down by `stack_offset` per earlier
    event at that time, in display order. This does not prevent overlap between
    events that start at different times.

    Returns the positioned timed events and the untimed events, both in
    display order. Events on other days are ignored.
    """
    positioned: list[PositionedEvent] = []
    untimed: list[CalendarEvent] = []
    seen_at: dict[str, int] = {}

    for event in sort_events(e for e in events if e.day == day):
        position = event_position(event, day, unit, min_hours)
        if position is None:
            untimed.append(event)
            continue

        rank = seen_at.get(event.start_time, 0)
        seen_at[event.start_time] = rank + 1
        positioned.append(
            PositionedEvent(
                event=event,
                top_offset=position.top_offset + rank * stack_offset,
                height=position.height,
                stack_rank=rank,
            )
        )

    if untimed:
        logger.debug(f"{len(untimed)} untimed events on {day.isoformat()} kept off the grid")

    return positioned, untimed


def agenda_for_date(
    events: Iterable[CalendarEvent], day: date
) -> list[tuple[str, list[CalendarEvent]]]:
    """Events of one day grouped by start time, for the day sidebar."""
    groups: dict[str, list[CalendarEvent]] = {}
    for event in sort_events(e for e in events if e.day == day):
        groups.setdefault(event.start_time or NO_TIME_LABEL, []).append(event)
    return list(groups.items())


def event_days(events: Iterable[CalendarEvent]) -> set[date]:
    """Dates that carry at least one event."""
    return {event.day for event in events}
