"""Calendar view: projection, week layout and navigation over one record snapshot."""

import hashlib
import json
import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Iterable, Iterator, Optional, Sequence

from .config import Config
from .indicator import is_today, now_offset
from .layout import agenda_for_date, event_days, layout_day
from .models import ApplicationRecord, CalendarEvent, DayLayout, WeekLayout, WeekWindow
from .navigation import CalendarController, KeyboardHub, bind_keyboard
from .projector import project_events
from .week import events_in_week, week_label

logger = logging.getLogger(__name__)


def records_digest(records: Iterable[ApplicationRecord]) -> str:
    """Content hash of a record list, order included."""
    payload = [record.model_dump(mode="json") for record in records]
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def build_week_layout(
    events: Sequence[CalendarEvent],
    window: WeekWindow,
    selected_date: Optional[date] = None,
    now: Optional[datetime] = None,
    config: Optional[Config] = None,
) -> WeekLayout:
    """Lay out every day of `window`, with the live marker on today's column."""
    config = config or Config()
    week_events = events_in_week(events, window)

    days = []
    for day in window.days:
        positioned, untimed = layout_day(
            day,
            week_events,
            unit=config.hour_unit,
            min_hours=config.min_event_hours,
            stack_offset=config.stack_offset,
        )
        days.append(
            DayLayout(
                day=day,
                is_today=now is not None and is_today(day, now),
                is_selected=day == selected_date,
                events=tuple(positioned),
                untimed=tuple(untimed),
                now_offset=now_offset(now, day, config.hour_unit) if now is not None else None,
            )
        )

    return WeekLayout(window=window, label=week_label(window), days=tuple(days))


class CalendarView:
    """Week calendar over a snapshot of application records.

    Projection is cached by the content digest of the records; the week layout
    is cached by digest, visible week and selected date. The live marker is
    recomputed on every render.
    """

    def __init__(
        self,
        records: Iterable[ApplicationRecord] = (),
        config: Optional[Config] = None,
        controller: Optional[CalendarController] = None,
        on_event_selected: Optional[Callable[[str], None]] = None,
    ):
        self.config = config or Config()
        self.controller = controller or CalendarController()
        if on_event_selected is not None:
            self.controller.on_event_selected = on_event_selected

        self._records: list[ApplicationRecord] = []
        self._digest = ""
        self._events: Optional[list[CalendarEvent]] = None
        self._layout_key: Optional[tuple] = None
        self._layout: Optional[WeekLayout] = None
        self.set_records(records)

    def set_records(self, records: Iterable[ApplicationRecord]) -> None:
        records = list(records)
        digest = records_digest(records)
        if digest == self._digest:
            return

        self._records = records
        self._digest = digest
        self._events = None
        self._layout = None
        self._layout_key = None
        logger.debug(f"Calendar records changed ({len(records)} applications)")

    @property
    def digest(self) -> str:
        return self._digest

    @property
    def events(self) -> list[CalendarEvent]:
        if self._events is None:
            self._events = project_events(self._records, self.config.palette)
        return self._events

    @property
    def window(self) -> WeekWindow:
        return self.controller.window

    def week_events(self) -> list[CalendarEvent]:
        return events_in_week(self.events, self.window)

    def render(self, now: datetime) -> WeekLayout:
        """Layout of the visible week as of `now`."""
        selection = self.controller.selection
        window = self.window
        key = (self._digest, window.start, selection.selected_date)

        if self._layout is None or self._layout_key != key:
            self._layout = build_week_layout(
                self.events, window, selection.selected_date, None, self.config
            )
            self._layout_key = key

        days = tuple(
            day.model_copy(
                update={
                    "is_today": is_today(day.day, now),
                    "now_offset": now_offset(now, day.day, self.config.hour_unit),
                }
            )
            for day in self._layout.days
        )
        return self._layout.model_copy(update={"days": days})

    def agenda(self) -> list[tuple[str, list[CalendarEvent]]]:
        """Events of the selected date grouped by start time."""
        return agenda_for_date(self.events, self.controller.selection.selected_date)

    def highlighted_days(self) -> set[date]:
        return event_days(self.events)

    def open_event(self, source_id: str) -> None:
        """Select the application behind an event, notifying the detail view."""
        self.controller.select_event(source_id)

    @contextmanager
    def activate(self, hub: KeyboardHub) -> Iterator["CalendarView"]:
        """Keep keyboard navigation bound while the view is active."""
        with bind_keyboard(self.controller, hub):
            yield self
