"""Week navigation, date/event selection and keyboard handling."""

import logging
from contextlib import contextmanager
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Iterator, Optional

from .models import Selection, WeekWindow
from .week import as_date, week_window

logger = logging.getLogger(__name__)

ONE_WEEK = timedelta(days=7)


class Key(str, Enum):
    """Logical keys understood by the calendar, named after DOM key values."""

    LEFT = "ArrowLeft"
    RIGHT = "ArrowRight"
    UP = "ArrowUp"
    DOWN = "ArrowDown"
    HOME = "Home"


KeyHandler = Callable[[str], bool]


class CalendarController:
    """Owns the anchor week, the selected date and the selected event.

    Every transition replaces `selection` with a new snapshot and returns it.
    """

    def __init__(
        self,
        today: Optional[date] = None,
        clock: Callable[[], date] = date.today,
        on_event_selected: Optional[Callable[[str], None]] = None,
    ):
        self._clock = clock
        self.on_event_selected = on_event_selected
        start = as_date(today if today is not None else clock())
        self.selection = Selection(anchor_week=start, selected_date=start)

    @property
    def window(self) -> WeekWindow:
        return week_window(self.selection.anchor_week)

    def _update(self, **changes) -> Selection:
        self.selection = self.selection.model_copy(update=changes)
        logger.debug(f"Calendar selection: {self.selection}")
        return self.selection

    def go_to_next_week(self) -> Selection:
        return self._update(anchor_week=self.selection.anchor_week + ONE_WEEK)

    def go_to_previous_week(self) -> Selection:
        return self._update(anchor_week=self.selection.anchor_week - ONE_WEEK)

    def go_to_today(self, today: Optional[date] = None) -> Selection:
        today = as_date(today if today is not None else self._clock())
        return self._update(anchor_week=today, selected_date=today)

    def select_date(self, day: date) -> Selection:
        """Select `day`, moving the visible week only when `day` lies outside it."""
        day = as_date(day)
        if self.window.contains(day):
            return self._update(selected_date=day)
        return self._update(selected_date=day, anchor_week=day)

    def select_event(self, source_id: str) -> Selection:
        selection = self._update(selected_event_source_id=source_id)
        if self.on_event_selected is not None:
            self.on_event_selected(source_id)
        return selection

    def clear_event(self) -> Selection:
        return self._update(selected_event_source_id=None)

    def handle_key(self, key: str) -> bool:
        """Apply the transition bound to `key`. Returns False for unbound keys."""
        try:
            key = Key(key)
        except ValueError:
            return False

        if key is Key.LEFT:
            self.go_to_previous_week()
        elif key is Key.RIGHT:
            self.go_to_next_week()
        elif key is Key.UP:
            self.select_date(self.selection.selected_date - ONE_WEEK)
        elif key is Key.DOWN:
            self.select_date(self.selection.selected_date + ONE_WEEK)
        elif key is Key.HOME:
            self.go_to_today()
        return True


class KeyboardHub:
    """Process-wide registry of key listeners, standing in for a window-level key event."""

    def __init__(self):
        self._listeners: list[KeyHandler] = []

    def add_listener(self, handler: KeyHandler) -> None:
        self._listeners.append(handler)

    def remove_listener(self, handler: KeyHandler) -> None:
        try:
            self._listeners.remove(handler)
        except ValueError:
            logger.warning("Removing a key listener that was never registered")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, key: str) -> bool:
        """Deliver `key` to every listener. Returns True if any listener handled it."""
        handled = False
        for handler in list(self._listeners):
            handled = handler(key) or handled
        return handled


@contextmanager
def bind_keyboard(controller: CalendarController, hub: KeyboardHub) -> Iterator[CalendarController]:
    """Route keys from `hub` to `controller` for the duration of the block."""
    handler = controller.handle_key
    hub.add_listener(handler)
    logger.debug("Keyboard navigation bound")
    try:
        yield controller
    finally:
        hub.remove_listener(handler)
        logger.debug("Keyboard navigation released")
