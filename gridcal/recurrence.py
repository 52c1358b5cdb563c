"""
Recurrence expansion for Gridcal.

Turns a seed EventInstance carrying a RecurrenceRule into the concrete list
of instances it stands for. Expansion is bounded twice: by an occurrence
count and by an end date. When the rule gives neither, the defaults below
apply, and whichever bound is reached first stops the series.
"""

import calendar
import sys
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

from .models import EventInstance, RecurrenceRule, RecurrenceType, weekday_index
from .timezone_utils import local_today


DEFAULT_MAX_OCCURRENCES = 365
DEFAULT_HORIZON_MONTHS = 12


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] RECUR: {msg}", file=sys.stderr)


def add_months(d: date, months: int) -> date:
    """
    Shift a date by whole months, clamping to the last day of shorter months.

    add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    """
    month_index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(month_index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(d.day, last_day))


def occurrence_id(seed_id: str, occurrence_date: date) -> str:
    """Identity of a generated occurrence: seed id plus its ISO date."""
    return f"{seed_id}-{occurrence_date.isoformat()}"


def _next_date(rule: RecurrenceRule, seed_date: date, cursor: date, step: int) -> date:
    """
    Date of the occurrence following cursor.

    step is the 1-based index of the occurrence being computed (the seed is 0).
    """
    interval = max(rule.interval or 1, 1)

    if rule.type in (RecurrenceType.DAILY, RecurrenceType.CUSTOM):
        return cursor + timedelta(days=interval)

    if rule.type is RecurrenceType.WEEKLY:
        if rule.days_of_week:
            candidate = cursor + timedelta(days=1)
            while weekday_index(candidate) not in rule.days_of_week:
                candidate += timedelta(days=1)
            return candidate
        return cursor + timedelta(weeks=interval)

    if rule.type is RecurrenceType.MONTHLY:
        # Anchored on the seed so a 31st keeps returning to month ends
        return add_months(seed_date, step * interval)

    raise ValueError(f"Unsupported recurrence type: {rule.type}")


def expand(
    seed: EventInstance,
    today: Optional[date] = None,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
) -> list[EventInstance]:
    """
    Expand a seed event into its occurrences.

    Args:
        seed: The stored seed instance (already has its id)
        today: Anchor for the default end date; local today if omitted
        max_occurrences: Count cap used when the rule sets none
        horizon_months: Months after today used when the rule has no end date

    Returns:
        List of EventInstance, the seed first, in increasing date order
    """
    rule = seed.recurrence
    if rule is None or not rule.is_recurring:
        return [seed]

    # Resolve the effective bounds once
    effective_max = rule.occurrences or max_occurrences
    if rule.end_date is not None:
        effective_end = rule.end_date
    else:
        effective_end = add_months(today or local_today(), horizon_months)

    instances = [seed]
    cursor = seed.date
    count = 1

    while count < effective_max and cursor < effective_end:
        next_date = _next_date(rule, seed.date, cursor, count)
        if next_date > effective_end:
            break

        instances.append(replace(
            seed,
            id=occurrence_id(seed.id, next_date),
            date=next_date,
            original_date=seed.date,
            is_recurring=True,
        ))
        cursor = next_date
        count += 1

    _debug_print(f"expand({seed.id}): {len(instances)} instances until {effective_end}")
    return instances
