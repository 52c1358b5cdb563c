"""
Timezone utilities for Gridcal.

Events themselves are date-only and carry no timezone. The local timezone
only decides what "today" is, which anchors the default recurrence horizon.
"""

from datetime import date, datetime
from typing import Optional
import pytz


# Default timezone - can be overridden by config
_local_timezone_name: str = "UTC"


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Unknown names fall back to UTC.
    """
    try:
        return pytz.timezone(_local_timezone_name)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def local_now(now: Optional[datetime] = None) -> datetime:
    """Current time (or the given aware UTC datetime) in the local timezone."""
    if now is None:
        now = datetime.now(pytz.UTC)
    elif now.tzinfo is None:
        now = pytz.UTC.localize(now)
    return now.astimezone(get_local_timezone())


def local_today() -> date:
    """Today's calendar date in the local timezone."""
    return local_now().date()
