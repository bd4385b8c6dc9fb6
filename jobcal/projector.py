"""Projection of application records onto calendar events."""

import logging
import re
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from .models import ApplicationRecord, CalendarEvent

logger = logging.getLogger(__name__)

DEFAULT_PALETTE = ("blue", "red", "green", "purple", "yellow", "pink")
DEFAULT_EVENT_DURATION = timedelta(hours=1)
SUBMISSION_TITLE = "Application Submitted"

# Non-ISO formats seen in hand-entered dates
HUMAN_DATE_FORMATS = ("%m/%d/%Y", "%m-%d-%Y", "%B %d, %Y", "%b %d, %Y", "%B %d %Y", "%b %d %Y")

# Date part followed by a time part, in extended (2024-03-06T14:00) or basic (20240306T1400) form
_ISO_TIME_SEPARATOR = re.compile(r"^\d{4}-?\d{2}-?\d{2}[Tt ]\d")


def parse_event_date(value: str) -> tuple[datetime, bool]:
    """Parse a loosely formatted date string.

    Returns the parsed value and whether it carried a time of day. UTC offsets
    are dropped and the wall-clock value is kept as written.

    Raises:
        ValueError: if the string matches no known format.
    """
    text = (value or "").strip()
    if not text:
        raise ValueError("empty date string")

    iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(iso_text)
    except ValueError:
        parsed = None

    if parsed is not None:
        has_time = _ISO_TIME_SEPARATOR.search(text) is not None
        return parsed.replace(tzinfo=None), has_time

    for fmt in HUMAN_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt), False
        except ValueError:
            continue

    raise ValueError(f"Unrecognized date: {value!r}")


def assign_company_colors(
    records: Iterable[ApplicationRecord], palette: Sequence[str] = DEFAULT_PALETTE
) -> dict[str, str]:
    """Bind each company to the next palette color in first-seen order."""
    if not palette:
        raise ValueError("palette must contain at least one color")

    colors: dict[str, str] = {}
    for record in records:
        if record.company not in colors:
            colors[record.company] = palette[len(colors) % len(palette)]
    return colors


def _make_event(
    record: ApplicationRecord,
    title: str,
    description: Optional[str],
    raw_date: str,
    color: str,
) -> CalendarEvent:
    start_date, has_time = parse_event_date(raw_date)
    end_date = None
    start_time = None
    end_time = None

    if has_time:
        end_date = start_date + DEFAULT_EVENT_DURATION
        start_time = start_date.strftime("%H:%M")
        end_time = end_date.strftime("%H:%M")

    return CalendarEvent(
        source_id=record.id,
        company=record.company,
        position=record.position,
        title=title,
        description=description,
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
        color=color,
    )


def project_record(record: ApplicationRecord, color: str) -> list[CalendarEvent]:
    """Project one record: its timeline entries, then the submission event."""
    events: list[CalendarEvent] = []

    for entry in record.events:
        try:
            events.append(_make_event(record, entry.title, entry.description, entry.date, color))
        except ValueError as e:
            logger.warning(
                f"Skipping timeline entry '{entry.title}' for {record.company} ({record.id}): {e}"
            )

    if record.applied_date:
        try:
            events.append(
                _make_event(
                    record,
                    SUBMISSION_TITLE,
                    f"Applied for {record.position} at {record.company}",
                    record.applied_date,
                    color,
                )
            )
        except ValueError as e:
            logger.warning(f"Skipping application date for {record.company} ({record.id}): {e}")

    return events


def project_events(
    records: Sequence[ApplicationRecord], palette: Sequence[str] = DEFAULT_PALETTE
) -> list[CalendarEvent]:
    """Map application records to a flat list of calendar events.

    The result depends only on the records and their order.
    """
    colors = assign_company_colors(records, palette)

    events: list[CalendarEvent] = []
    for record in records:
        events.extend(project_record(record, colors[record.company]))

    logger.debug(f"Projected {len(events)} events from {len(records)} records")
    return events
