#!/usr/bin/env python3
"""
Gridcal - a personal month-grid calendar kept in a local JSON store.

This is the command line entry point for the application.
"""

import sys
import argparse
from datetime import date
from pathlib import Path

from gridcal.config import Config, resolve_color
from gridcal.errors import ConflictDetected, DomainError
from gridcal.event_store import EventStore
from gridcal.event_storage import create_storage_backend
from gridcal.ics_export import export_ics
from gridcal.models import EventDraft, RecurrenceRule, RecurrenceType
from gridcal.timezone_utils import set_timezone


DAY_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}")


def parse_days(value: str) -> tuple[int, ...]:
    """Parse "mon,fri" or "1,5" into Sunday=0 weekday indices."""
    days = []
    for part in value.split(','):
        part = part.strip().lower()
        if not part:
            continue
        if part.isdigit():
            days.append(int(part))
        elif part[:3] in DAY_NAMES:
            days.append(DAY_NAMES.index(part[:3]))
        else:
            raise argparse.ArgumentTypeError(f"unknown weekday: {part!r}")
    return tuple(days)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Gridcal - a personal month-grid calendar"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    add = commands.add_parser("add", help="Create an event")
    add.add_argument("title")
    add.add_argument("date", type=parse_date)
    add.add_argument("time", help="Start time, HH:MM")
    add.add_argument("--end", help="End time, HH:MM")
    add.add_argument("--description")
    add.add_argument("--category")
    add.add_argument("--color")
    add.add_argument("--repeat", choices=[t.value for t in RecurrenceType], default="none")
    add.add_argument("--interval", type=int, default=1)
    add.add_argument("--days", type=parse_days, default=(), help="Weekdays for weekly repeats, e.g. mon,fri")
    add.add_argument("--until", type=parse_date, help="Last date of the series (inclusive)")
    add.add_argument("--count", type=int, help="Number of occurrences including the first")
    add.add_argument("--force", action="store_true", help="Create even if it conflicts")

    month = commands.add_parser("month", help="List events in a month")
    month.add_argument("date", type=parse_date, nargs="?")

    day = commands.add_parser("day", help="List events on a day")
    day.add_argument("date", type=parse_date)

    search = commands.add_parser("search", help="Search events by text and category")
    search.add_argument("query", nargs="?", default="")
    search.add_argument("--category")

    update = commands.add_parser("update", help="Change fields of one event")
    update.add_argument("id")
    update.add_argument("--title")
    update.add_argument("--time")
    update.add_argument("--end")
    update.add_argument("--description")
    update.add_argument("--category")
    update.add_argument("--color")

    move = commands.add_parser("move", help="Move one event to another day")
    move.add_argument("id")
    move.add_argument("date", type=parse_date)

    delete = commands.add_parser("delete", help="Delete one event")
    delete.add_argument("id")

    conflicts = commands.add_parser("conflicts", help="Show events overlapping a time slot")
    conflicts.add_argument("date", type=parse_date)
    conflicts.add_argument("time")
    conflicts.add_argument("--end")

    categories = commands.add_parser("categories", help="List categories in use")
    categories.add_argument("--configured", action="store_true", help="List the categories events may use")

    export = commands.add_parser("export", help="Export all events to an .ics file")
    export.add_argument("path", type=Path)

    return parser.parse_args(argv)


def load_config(config_path) -> Config:
    """Load the given config, or the default one if it exists."""
    if config_path is not None:
        return Config.load(config_path)
    default_path = Config.get_default_config_path()
    if default_path.exists():
        return Config.load(default_path)
    return Config.default()


def format_event(event) -> str:
    times = event.time
    if event.end_time and event.end_time != event.time:
        times = f"{event.time}-{event.end_time}"
    line = f"{event.date.isoformat()} {times} {event.title}"
    if event.category:
        line += f" [{event.category}]"
    return f"{line} ({event.id})"


def print_events(events) -> None:
    if not events:
        print("No events")
    for event in events:
        print(format_event(event))


def event_options(args, config: Config) -> dict:
    """Resolve the --color and --category options against the configuration."""
    options = {}
    if args.color:
        options["color"] = resolve_color(args.color)
    if args.category:
        options["category"] = config.events.match_category(args.category)
    return options


def run_command(args, store: EventStore, config: Config) -> int:
    if args.command == "add":
        options = event_options(args, config)
        recurrence = None
        if args.repeat != "none":
            recurrence = RecurrenceRule(
                type=RecurrenceType(args.repeat),
                interval=args.interval,
                days_of_week=args.days,
                end_date=args.until,
                occurrences=args.count,
            )
        draft = EventDraft(
            title=args.title,
            date=args.date,
            time=args.time,
            end_time=args.end,
            description=args.description,
            color=options.get("color", config.events.default_color),
            category=options.get("category"),
            recurrence=recurrence,
        )
        before = len(store)
        store.submit(draft, allow_conflicts=args.force)
        print(f"Created {len(store) - before} event(s)")

    elif args.command == "month":
        print_events(store.events_in_month(args.date or store.current_date))

    elif args.command == "day":
        print_events(store.events_on_date(args.date))

    elif args.command == "search":
        print_events(store.filtered(args.query, args.category))

    elif args.command == "update":
        changes = {
            name: value for name, value in (
                ("title", args.title),
                ("time", args.time),
                ("end_time", args.end),
                ("description", args.description),
            ) if value is not None
        }
        changes.update(event_options(args, config))
        store.update(args.id, **changes)

    elif args.command == "move":
        store.move(args.id, args.date)

    elif args.command == "delete":
        store.delete(args.id)

    elif args.command == "conflicts":
        candidate = EventDraft(title="", date=args.date, time=args.time, end_time=args.end)
        print_events(store.check_conflict(candidate))

    elif args.command == "categories":
        names = config.events.categories if args.configured else store.categories()
        for category in names:
            print(category)

    elif args.command == "export":
        written = export_ics(store.all_events(), args.path)
        print(f"Exported {written} event(s) to {args.path}")

    return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nPlease create a configuration file at:")
        print(f"  - {Config.get_default_config_path()}")
        print("\nExample configuration:")
        print("""
[General]
storage_dir = "~/.local/share/gridcal"
timezone = "Europe/Amsterdam"

[Recurrence]
max_occurrences = 365
horizon_months = 12

[Events]
categories = "Work Personal Health"
""")
        return 1
    except Exception as e:
        print(f"Error loading configuration: {e}")
        return 1

    if args.debug:
        print(f"Loaded configuration from: {args.config or Config.get_default_config_path()}")
        print(f"  Storage: {config.storage_dir} ({config.storage_key})")
        print(f"  Timezone: {config.timezone}")

    set_timezone(config.timezone)
    store = EventStore(create_storage_backend(config.storage_dir), config)
    store.load()

    try:
        return run_command(args, store, config)
    except ConflictDetected as e:
        print(f"Error: {e.message}")
        for event in e.conflicts:
            print(f"  {format_event(event)}")
        print("Use --force to create it anyway.")
        return 1
    except DomainError as e:
        print(f"Error: {e.message}")
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
