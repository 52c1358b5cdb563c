"""
iCalendar export for Gridcal.

Writes the stored collection as a VCALENDAR. Each stored instance becomes
its own VEVENT; no RRULE is emitted because stored occurrences are
independent once created. Times are floating (no TZID).
"""

from datetime import datetime, time as dt_time
from pathlib import Path
from typing import Iterable
import pytz
from icalendar import Calendar as ICalCalendar, Event as ICalEvent

from .models import EventInstance


PRODID = '-//Gridcal//gridcal//EN'


def _parse_time(value: str) -> dt_time:
    hours, minutes = value.split(':')
    return dt_time(int(hours), int(minutes))


def event_to_vevent(event: EventInstance, stamp: datetime) -> ICalEvent:
    """Build a VEVENT for a single stored instance."""
    vevent = ICalEvent()
    vevent.add('uid', event.id)
    vevent.add('summary', event.title)
    vevent.add('dtstamp', stamp)
    vevent.add('dtstart', datetime.combine(event.date, _parse_time(event.time)))
    vevent.add('dtend', datetime.combine(event.date, _parse_time(event.effective_end_time)))

    if event.description:
        vevent.add('description', event.description)
    if event.category:
        vevent.add('categories', [event.category])
    if event.color:
        vevent.add('color', event.color)
    if event.original_date is not None:
        vevent.add('x-gridcal-original-date', event.original_date.isoformat())

    return vevent


def build_calendar(events: Iterable[EventInstance]) -> ICalCalendar:
    """Build a VCALENDAR containing every given instance."""
    vcal = ICalCalendar()
    vcal.add('prodid', PRODID)
    vcal.add('version', '2.0')

    stamp = datetime.now(pytz.UTC)
    for event in events:
        vcal.add_component(event_to_vevent(event, stamp))
    return vcal


def export_ics(events: Iterable[EventInstance], path: Path) -> int:
    """
    Write instances to an .ics file.

    Returns:
        Number of events written
    """
    vcal = build_calendar(events)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'wb') as f:
        f.write(vcal.to_ical())
    return len(vcal.subcomponents)
