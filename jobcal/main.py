"""Command-line week view for the job application calendar."""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from .config import get_config, load_config
from .models import WeekLayout
from .navigation import CalendarController
from .store import StoreError, load_records
from .view import CalendarView

LOG_DIR = Path(__file__).parent.parent / "logs"


def setup_logging() -> None:
    """Configure logging for the application."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / "app.log"

    config = get_config()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stderr),
        ],
    )


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from None


def format_week(layout: WeekLayout) -> str:
    """Plain-text rendering of a week layout."""
    lines = [layout.label, ""]
    for day in layout.days:
        marker = ""
        if day.is_today:
            marker += " (today)"
        if day.is_selected:
            marker += " *"
        lines.append(f"{day.day:%a %d %b}{marker}")

        for event in day.untimed:
            lines.append(f"    --:--        {event.title} - {event.company} [{event.color}]")
        for item in day.events:
            event = item.event
            lines.append(
                f"    {event.start_time}-{event.end_time}  {event.title} - {event.company} "
                f"[{event.color}] top={item.top_offset:g} h={item.height:g}"
            )
        if day.now_offset is not None:
            lines.append(f"    now at {day.now_offset:g}")
    return "\n".join(lines)


def format_agenda(view: CalendarView) -> str:
    selected = view.controller.selection.selected_date
    groups = view.agenda()
    lines = [f"{selected:%A, %B} {selected.day}"]
    if not groups:
        lines.append("    No events scheduled for this day")
    for time_key, events in groups:
        lines.append(f"  {time_key}")
        for event in events:
            lines.append(f"    {event.title} - {event.company} - {event.position}")
            if event.description:
                lines.append(f"      {event.description}")
    return "\n".join(lines)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Show the application calendar for one week")
    parser.add_argument("--week", type=_parse_day, help="any date in the week to show")
    parser.add_argument("--select", type=_parse_day, help="date to show in the day agenda")
    parser.add_argument("--config", type=Path, help="path to config.yaml")
    args = parser.parse_args(argv)

    try:
        if args.config is not None:
            load_config(args.config)
        setup_logging()
    except FileNotFoundError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    logger = logging.getLogger(__name__)
    config = get_config()

    try:
        records = load_records(config)
    except StoreError as e:
        logger.error(f"Could not load applications: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Loading applications failed: {e}")
        return 1

    try:
        controller = CalendarController()
        if args.week is not None:
            controller.select_date(args.week)
        if args.select is not None:
            controller.select_date(args.select)

        view = CalendarView(records, config=config, controller=controller)
        print(format_week(view.render(datetime.now())))
        print()
        print(format_agenda(view))
        return 0

    except Exception as e:
        logger.exception(f"Calendar rendering failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
