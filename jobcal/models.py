"""Data models for the application calendar."""

from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TimelineEntry(BaseModel):
    """A dated step in an application's history (interview, call, deadline)."""

    title: str
    description: Optional[str] = None
    date: str

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> str:
        # YAML hands back date objects for bare YYYY-MM-DD values
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if value is None:
            return ""
        return str(value)


class ApplicationRecord(BaseModel):
    """A tracked job application as supplied by the data store."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    company: str
    position: str
    applied_date: Optional[str] = Field(default=None, alias="appliedDate")
    events: list[TimelineEntry] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("applied_date", mode="before")
    @classmethod
    def _coerce_applied_date(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return str(value)

    @field_validator("events", mode="before")
    @classmethod
    def _coerce_events(cls, value: Any) -> Any:
        return [] if value is None else value


class CalendarEvent(BaseModel):
    """An immutable projection of a timeline entry or submission onto the calendar."""

    model_config = ConfigDict(frozen=True)

    source_id: str
    company: str
    position: str
    title: str
    description: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    start_time: Optional[str] = None  # HH:MM, timed events only
    end_time: Optional[str] = None
    color: str

    @property
    def is_timed(self) -> bool:
        return self.start_time is not None

    @property
    def day(self) -> date:
        return self.start_date.date()


class WeekWindow(BaseModel):
    """The Monday-to-Sunday range currently visible."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date
    days: tuple[date, ...]

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def end_at(self) -> datetime:
        return datetime.combine(self.end, time.max)

    def contains(self, day: date) -> bool:
        if isinstance(day, datetime):
            day = day.date()
        return self.start <= day <= self.end


class GridPosition(BaseModel):
    """Vertical placement of a timed event, in grid units."""

    model_config = ConfigDict(frozen=True)

    top_offset: float
    height: float


class PositionedEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: CalendarEvent
    top_offset: float
    height: float
    stack_rank: int = 0


class DayLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    is_today: bool = False
    is_selected: bool = False
    events: tuple[PositionedEvent, ...] = ()
    untimed: tuple[CalendarEvent, ...] = ()
    now_offset: Optional[float] = None


class WeekLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    window: WeekWindow
    label: str
    days: tuple[DayLayout, ...]

    def day(self, value: date) -> Optional[DayLayout]:
        for layout in self.days:
            if layout.day == value:
                return layout
        return None


class Selection(BaseModel):
    """Navigation state of a calendar view."""

    model_config = ConfigDict(frozen=True)

    anchor_week: date
    selected_date: date
    selected_event_source_id: Optional[str] = None
