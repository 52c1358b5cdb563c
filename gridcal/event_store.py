"""
Event Store for Gridcal.

Holds every EventInstance of the running session, expands recurrences when
events are added, and answers the date, conflict and filter queries the
month grid needs. The in-memory collection is authoritative; after each
mutation the whole collection is written to the storage backend, and a
failed write never undoes the change.
"""

import re
import sys
import uuid
from dataclasses import fields, replace
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from .config import Config
from .errors import ConflictDetected, ErrorCode, ValidationError
from .event_storage import EventStorageBackend, MemoryStorage, load_events, save_events
from .models import EDITABLE_FIELDS, EventDraft, EventInstance
from .recurrence import add_months, expand
from .timezone_utils import local_today


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] STORE: {msg}", file=sys.stderr)


_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

Candidate = Union[EventDraft, EventInstance]


def validate_draft(draft: EventDraft, check_order: bool = True) -> EventDraft:
    """
    Check a draft before it reaches the collection.

    Returns the draft with its title stripped. The end-before-start check
    belongs to form submission and is skipped when check_order is False.

    Raises:
        ValidationError: empty title, malformed time, or end before start
    """
    title = (draft.title or "").strip()
    if not title:
        raise ValidationError(ErrorCode.TITLE_REQUIRED, "Event title is required", field="title")

    if not _TIME_PATTERN.match(draft.time or ""):
        raise ValidationError(ErrorCode.INVALID_TIME, f"Invalid start time: {draft.time!r}", field="time")
    if draft.end_time:
        if not _TIME_PATTERN.match(draft.end_time):
            raise ValidationError(ErrorCode.INVALID_TIME, f"Invalid end time: {draft.end_time!r}", field="end_time")
        if check_order and draft.end_time < draft.time:
            raise ValidationError(ErrorCode.INVALID_TIME, "End time is before start time", field="end_time")

    return replace(draft, title=title)


def _as_date(day: date) -> date:
    return day.date() if isinstance(day, datetime) else day


def times_overlap(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """Closed-interval overlap on "HH:MM" strings; touching ends overlap."""
    return a_start <= b_end and a_end >= b_start


class EventStore:
    """
    Authoritative collection of event instances plus month-grid UI state.

    Identity misses on update, delete and move are silent no-ops.
    """

    def __init__(
        self,
        storage: Optional[EventStorageBackend] = None,
        config: Optional[Config] = None,
        id_factory: Optional[Callable[[], str]] = None,
        today: Optional[date] = None,
    ):
        self.config = config or Config.default()
        self._storage = storage if storage is not None else MemoryStorage()
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._today = today

        self._events: list[EventInstance] = []

        # UI-facing state
        self.current_date: date = today or local_today()
        self.selected_date: Optional[date] = None
        self.view: str = "month"
        self.is_event_form_open: bool = False
        self.editing_event: Optional[EventInstance] = None
        self.search_query: str = ""
        self.selected_category: Optional[str] = None

    def __len__(self) -> int:
        return len(self._events)

    # ==================== Persistence ====================

    def load(self) -> int:
        """
        Replace the collection with what storage holds.

        Returns number of events loaded.
        """
        self._events = load_events(self._storage, self.config.storage_key)
        return len(self._events)

    def _persist(self) -> None:
        """Write the whole collection; failures are logged, never rolled back."""
        try:
            save_events(self._storage, self._events, self.config.storage_key)
        except OSError as e:
            _debug_print(f"Error saving events: {e}")

    # ==================== CRUD Operations ====================

    def add(self, draft: EventDraft) -> None:
        """
        Create an event and all of its recurrences.

        Raises:
            ValidationError: if the draft has no title or a malformed time
        """
        draft = validate_draft(draft, check_order=False)
        seed = EventInstance.from_draft(draft, self._id_factory())
        instances = expand(
            seed,
            today=self._today,
            max_occurrences=self.config.recurrence.max_occurrences,
            horizon_months=self.config.recurrence.horizon_months,
        )

        self._events.extend(instances)
        self.close_event_form()
        _debug_print(f"add({seed.id}): {len(instances)} instances")
        self._persist()

    def _index_of(self, event_id: str) -> Optional[int]:
        for i, event in enumerate(self._events):
            if event.id == event_id:
                return i
        return None

    def update(self, event_id: str, **changes) -> None:
        """
        Merge changes into a single instance.

        Recurrence is not re-expanded; siblings of a generated instance are
        left alone.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown event fields: {', '.join(sorted(unknown))}")

        index = self._index_of(event_id)
        if index is None:
            _debug_print(f"update({event_id}): no such event")
        else:
            self._events[index] = replace(self._events[index], **changes)

        self.close_event_form()
        self._persist()

    def delete(self, event_id: str) -> None:
        """Remove a single instance."""
        remaining = [e for e in self._events if e.id != event_id]
        if len(remaining) == len(self._events):
            _debug_print(f"delete({event_id}): no such event")
        self._events = remaining

        self.close_event_form()
        self._persist()

    def move(self, event_id: str, new_date: date) -> None:
        """Relocate a single instance to another day (drag and drop)."""
        index = self._index_of(event_id)
        if index is None:
            _debug_print(f"move({event_id}): no such event")
        else:
            self._events[index] = replace(self._events[index], date=new_date)

        self._persist()

    def submit(
        self,
        draft: EventDraft,
        editing_id: Optional[str] = None,
        allow_conflicts: bool = False,
    ) -> None:
        """
        Validate, conflict-check, then create or update.

        When editing_id is given the matching instance is updated with the
        draft's fields; otherwise the draft is added as a new event.

        Raises:
            ValidationError: if the draft is invalid
            ConflictDetected: if the draft overlaps other events and
                allow_conflicts is False
        """
        draft = validate_draft(draft)

        conflicts = self.check_conflict(draft, exclude_id=editing_id)
        if conflicts and not allow_conflicts:
            raise ConflictDetected(conflicts)

        if editing_id is not None:
            changes = {f.name: getattr(draft, f.name) for f in fields(EventDraft)}
            self.update(editing_id, **changes)
        else:
            self.add(draft)

    # ==================== Queries ====================

    def all_events(self) -> list[EventInstance]:
        """Snapshot of the collection in insertion order."""
        return list(self._events)

    def get_event(self, event_id: str) -> Optional[EventInstance]:
        index = self._index_of(event_id)
        return None if index is None else self._events[index]

    def events_on_date(self, day: date) -> list[EventInstance]:
        day = _as_date(day)
        return [e for e in self._events if e.date == day]

    def events_in_month(self, day: date) -> list[EventInstance]:
        """Events from the first to the last day of day's month, inclusive."""
        start = _as_date(day).replace(day=1)
        end = add_months(start, 1) - timedelta(days=1)
        return [e for e in self._events if start <= e.date <= end]

    def check_conflict(self, candidate: Candidate, exclude_id: Optional[str] = None) -> list[EventInstance]:
        """
        Find same-day events whose time range overlaps the candidate's.

        Ranges are closed: an event ending at 10:00 conflicts with one
        starting at 10:00.
        """
        start = candidate.time
        end = candidate.end_time or candidate.time

        conflicts = []
        for event in self._events:
            if exclude_id is not None and event.id == exclude_id:
                continue
            if event.date != candidate.date:
                continue
            if times_overlap(event.time, event.effective_end_time, start, end):
                conflicts.append(event)
        return conflicts

    def filtered(self, search_query: str = "", category: Optional[str] = None) -> list[EventInstance]:
        """Events matching the search text (title or description) and the category."""
        query = (search_query or "").lower()

        def matches(event: EventInstance) -> bool:
            matches_search = (
                not query
                or query in event.title.lower()
                or (event.description is not None and query in event.description.lower())
            )
            matches_category = not category or event.category == category
            return matches_search and matches_category

        return [e for e in self._events if matches(e)]

    @property
    def filtered_events(self) -> list[EventInstance]:
        """Events passing the current search and category filters."""
        return self.filtered(self.search_query, self.selected_category)

    def categories(self) -> list[str]:
        """Distinct categories in use, in first-seen order."""
        seen: dict[str, None] = {}
        for event in self._events:
            if event.category:
                seen.setdefault(event.category, None)
        return list(seen)

    # ==================== UI State ====================

    def set_current_date(self, day: date) -> None:
        self.current_date = day

    def next_month(self) -> None:
        self.current_date = add_months(self.current_date, 1)

    def previous_month(self) -> None:
        self.current_date = add_months(self.current_date, -1)

    def set_selected_date(self, day: Optional[date]) -> None:
        self.selected_date = day

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    def set_selected_category(self, category: Optional[str]) -> None:
        self.selected_category = category

    def open_event_form(self, event: Optional[EventInstance] = None) -> None:
        self.is_event_form_open = True
        self.editing_event = event

    def close_event_form(self) -> None:
        self.is_event_form_open = False
        self.editing_event = None
