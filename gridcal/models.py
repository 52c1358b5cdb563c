"""
Event data model for Gridcal.

EventDraft is what the user authors, EventInstance is what the store holds.
Dates are plain datetime.date values; times of day are "HH:MM" strings so
that lexicographic comparison matches chronological order.
"""

from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Optional


DEFAULT_EVENT_COLOR = "#3B82F6"

# Weekday indices as stored in event data: 0 = Sunday ... 6 = Saturday
SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)


def weekday_index(d: date) -> int:
    """Weekday of a date in the Sunday=0 convention."""
    return (d.weekday() + 1) % 7


class RecurrenceType(Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


@dataclass(frozen=True)
class RecurrenceRule:
    """
    How an event repeats.

    interval is in days (daily, custom), weeks (weekly) or months (monthly).
    For weekly rules a non-empty days_of_week overrides interval.
    end_date and occurrences are both inclusive; occurrences counts the seed.
    """
    type: RecurrenceType = RecurrenceType.NONE
    interval: int = 1
    days_of_week: tuple[int, ...] = ()
    end_date: Optional[date] = None
    occurrences: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.type, str):
            object.__setattr__(self, 'type', RecurrenceType(self.type))
        object.__setattr__(self, 'days_of_week', tuple(sorted(set(self.days_of_week))))
        for day in self.days_of_week:
            if not 0 <= day <= 6:
                raise ValueError(f"Weekday index out of range: {day}")

    @property
    def is_recurring(self) -> bool:
        return self.type is not RecurrenceType.NONE


@dataclass(frozen=True)
class EventDraft:
    """An event as entered by the user, before the store gives it an id."""
    title: str
    date: date
    time: str
    end_time: Optional[str] = None
    description: Optional[str] = None
    color: str = DEFAULT_EVENT_COLOR
    category: Optional[str] = None
    recurrence: Optional[RecurrenceRule] = None


@dataclass(frozen=True)
class EventInstance:
    """
    A concrete, addressable event in the store.

    Seeds carry no original_date and is_recurring=False. Occurrences produced
    by recurrence expansion point back at the seed's date via original_date.
    """
    id: str
    title: str
    date: date
    time: str
    end_time: Optional[str] = None
    description: Optional[str] = None
    color: str = DEFAULT_EVENT_COLOR
    category: Optional[str] = None
    recurrence: Optional[RecurrenceRule] = None
    original_date: Optional[date] = field(default=None)
    is_recurring: bool = False

    @classmethod
    def from_draft(cls, draft: EventDraft, event_id: str) -> 'EventInstance':
        values = {f.name: getattr(draft, f.name) for f in fields(EventDraft)}
        return cls(id=event_id, **values)

    @property
    def effective_end_time(self) -> str:
        """End time, falling back to the start time."""
        return self.end_time or self.time


# Fields an update may touch; id is owned by the store.
EDITABLE_FIELDS = frozenset(f.name for f in fields(EventInstance)) - {'id'}
