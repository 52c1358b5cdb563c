"""
Persistent Event Storage for Gridcal.

The store keeps its whole collection as a single blob under one key and
rewrites it after every change. This module provides the blob backends and
the record format used inside the blob.
"""

import json
import os
import sys
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from .errors import PersistenceReadError
from .models import EventInstance, RecurrenceRule, RecurrenceType


DEFAULT_STORAGE_KEY = "calendar-events"


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] STORAGE: {msg}", file=sys.stderr)


# ==================== Record Format ====================

def _parse_date(value: str) -> date:
    """Parse a stored date, accepting full ISO timestamps as well."""
    if not isinstance(value, str):
        raise ValueError(f"Expected date string, got {type(value).__name__}")
    if len(value) > 10:
        # e.g. "2024-03-05T00:00:00.000Z" from older data
        value = value[:10]
    return date.fromisoformat(value)


def rule_to_dict(rule: RecurrenceRule) -> dict:
    data = {
        "type": rule.type.value,
        "interval": rule.interval,
    }
    if rule.days_of_week:
        data["daysOfWeek"] = list(rule.days_of_week)
    if rule.end_date is not None:
        data["endDate"] = rule.end_date.isoformat()
    if rule.occurrences is not None:
        data["occurrences"] = rule.occurrences
    return data


def rule_from_dict(data: dict) -> RecurrenceRule:
    end_date = None
    if data.get("endDate"):
        end_date = _parse_date(data["endDate"])
    occurrences = data.get("occurrences")
    if occurrences is not None and not isinstance(occurrences, int):
        raise ValueError(f"occurrences must be an integer, got {occurrences!r}")

    return RecurrenceRule(
        type=RecurrenceType(data.get("type", "none")),
        interval=int(data.get("interval") or 1),
        days_of_week=tuple(data.get("daysOfWeek") or ()),
        end_date=end_date,
        occurrences=occurrences,
    )


def event_to_dict(event: EventInstance) -> dict:
    """Convert an EventInstance to its stored record. Unset fields are omitted."""
    data = {
        "id": event.id,
        "title": event.title,
        "date": event.date.isoformat(),
        "time": event.time,
        "color": event.color,
    }
    if event.description is not None:
        data["description"] = event.description
    if event.end_time is not None:
        data["endTime"] = event.end_time
    if event.category is not None:
        data["category"] = event.category
    if event.recurrence is not None:
        data["recurrence"] = rule_to_dict(event.recurrence)
    if event.original_date is not None:
        data["originalDate"] = event.original_date.isoformat()
    if event.is_recurring:
        data["isRecurring"] = True
    return data


def _text(data: dict, name: str, required: bool = False) -> Optional[str]:
    """Fetch a string field; optional fields may be absent or null."""
    value = data[name] if required else data.get(name)
    if value is None and not required:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Field {name!r} must be a string, got {type(value).__name__}")
    return value


def event_from_dict(data: dict) -> EventInstance:
    recurrence = None
    if data.get("recurrence"):
        recurrence = rule_from_dict(data["recurrence"])

    original_date = None
    if data.get("originalDate"):
        original_date = _parse_date(data["originalDate"])

    return EventInstance(
        id=str(data["id"]),
        title=_text(data, "title", required=True),
        date=_parse_date(data["date"]),
        time=_text(data, "time", required=True),
        end_time=_text(data, "endTime") or None,
        description=_text(data, "description"),
        color=_text(data, "color") or EventInstance.color,
        category=_text(data, "category") or None,
        recurrence=recurrence,
        original_date=original_date,
        is_recurring=bool(data.get("isRecurring", False)),
    )


def serialize_events(events: list[EventInstance]) -> str:
    """Serialize the full collection, preserving order."""
    return json.dumps([event_to_dict(e) for e in events], ensure_ascii=False)


def deserialize_events(payload: str) -> list[EventInstance]:
    """
    Rebuild the collection from a stored blob.

    Raises:
        PersistenceReadError: if the blob is not a list of valid records
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise PersistenceReadError(str(e)) from e

    if not isinstance(data, list):
        raise PersistenceReadError(f"Expected a list of events, got {type(data).__name__}")

    events = []
    for record in data:
        try:
            events.append(event_from_dict(record))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceReadError(f"Bad event record {record!r}: {e}") from e
    return events


# ==================== Backends ====================

class EventStorageBackend(ABC):
    """
    Abstract base class for blob storage backends.

    Implementations only move strings; the record format lives above.
    """

    @abstractmethod
    def load_blob(self, key: str) -> Optional[str]:
        """Return the stored payload for key, or None if nothing is stored."""
        pass

    @abstractmethod
    def save_blob(self, key: str, payload: str) -> None:
        """Replace the payload stored under key."""
        pass


class MemoryStorage(EventStorageBackend):
    """In-memory storage, for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.blobs: dict[str, str] = dict(initial or {})

    def load_blob(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def save_blob(self, key: str, payload: str) -> None:
        self.blobs[key] = payload


class JsonFileStorage(EventStorageBackend):
    """
    JSON file-based storage.

    Structure:
    - {storage_dir}/{key}.json - the serialized collection for each key
    """

    def __init__(self, storage_dir: Path):
        self.storage_dir = Path(storage_dir)

    def _key_to_filename(self, key: str) -> str:
        """Convert key to safe filename."""
        return key.replace(":", "_").replace("/", "_") + ".json"

    def _file(self, key: str) -> Path:
        return self.storage_dir / self._key_to_filename(key)

    def load_blob(self, key: str) -> Optional[str]:
        file_path = self._file(key)
        if not file_path.exists():
            return None
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()

    def save_blob(self, key: str, payload: str) -> None:
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        file_path = self._file(key)
        # Write then rename so a crash never leaves half a collection behind
        tmp_path = file_path.with_suffix(".json.tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(payload)
        os.replace(tmp_path, file_path)
        _debug_print(f"Saved {key} to {file_path}")


def load_events(storage: EventStorageBackend, key: str = DEFAULT_STORAGE_KEY) -> list[EventInstance]:
    """
    Load the collection stored under key.

    Missing or unreadable data yields an empty collection.
    """
    try:
        payload = storage.load_blob(key)
    except (OSError, UnicodeDecodeError) as e:
        _debug_print(f"Error reading {key}: {e}")
        return []

    if not payload:
        return []

    try:
        events = deserialize_events(payload)
    except PersistenceReadError as e:
        _debug_print(f"Discarding unreadable {key}: {e.detail}")
        return []

    _debug_print(f"Loaded {len(events)} events from {key}")
    return events


def save_events(storage: EventStorageBackend, events: list[EventInstance], key: str = DEFAULT_STORAGE_KEY) -> None:
    """Rewrite the whole collection under key."""
    storage.save_blob(key, serialize_events(events))


def get_default_storage_dir() -> Path:
    """Get the default storage directory respecting XDG."""
    xdg_data = os.environ.get('XDG_DATA_HOME', os.path.expanduser('~/.local/share'))
    return Path(xdg_data) / 'gridcal'


def create_storage_backend(storage_dir: Optional[Path] = None) -> EventStorageBackend:
    """Factory function to create a storage backend."""
    if storage_dir is None:
        storage_dir = get_default_storage_dir()

    return JsonFileStorage(storage_dir)
