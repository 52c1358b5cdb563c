"""Tests for the stored record format and storage backends."""

import json
from datetime import date

import pytest

from gridcal.errors import PersistenceReadError
from gridcal.event_storage import (
    JsonFileStorage, MemoryStorage, deserialize_events, event_from_dict, event_to_dict,
    load_events, save_events, serialize_events,
)
from gridcal.models import EventInstance, RecurrenceRule, RecurrenceType


def seed_and_occurrence():
    rule = RecurrenceRule(type=RecurrenceType.MONTHLY, interval=2, occurrences=3)
    seed = EventInstance(
        id="1700000000000", title="Book club", date=date(2024, 3, 5), time="19:00",
        end_time="21:00", description="Chapter 4", category="Social", recurrence=rule,
    )
    occurrence = EventInstance(
        id="1700000000000-2024-05-05", title="Book club", date=date(2024, 5, 5), time="19:00",
        end_time="21:00", description="Chapter 4", category="Social", recurrence=rule,
        original_date=date(2024, 3, 5), is_recurring=True,
    )
    return seed, occurrence


class TestRecordFormat:
    """Record field names and optional fields."""

    def test_seed_record_omits_occurrence_fields(self):
        seed, _ = seed_and_occurrence()
        record = event_to_dict(seed)
        assert record["date"] == "2024-03-05"
        assert record["endTime"] == "21:00"
        assert record["recurrence"] == {"type": "monthly", "interval": 2, "occurrences": 3}
        assert "originalDate" not in record
        assert "isRecurring" not in record

    def test_occurrence_record_carries_origin(self):
        _, occurrence = seed_and_occurrence()
        record = event_to_dict(occurrence)
        assert record["originalDate"] == "2024-03-05"
        assert record["isRecurring"] is True

    def test_round_trip(self):
        events = list(seed_and_occurrence())
        restored = deserialize_events(serialize_events(events))
        assert restored == events
        assert isinstance(restored[1].original_date, date)

    def test_accepts_full_timestamps(self):
        record = {
            "id": "1", "title": "Imported", "date": "2024-03-05T23:00:00.000Z", "time": "08:00",
            "color": "#10B981",
            "recurrence": {"type": "weekly", "interval": 1, "daysOfWeek": [1, 3], "endDate": "2024-06-30T00:00:00.000Z"},
        }
        event = event_from_dict(record)
        assert event.date == date(2024, 3, 5)
        assert event.recurrence.end_date == date(2024, 6, 30)
        assert event.recurrence.days_of_week == (1, 3)

    def test_empty_optional_strings_become_none(self):
        event = event_from_dict({"id": "1", "title": "T", "date": "2024-03-05", "time": "08:00", "endTime": "", "category": ""})
        assert event.end_time is None
        assert event.category is None


class TestDeserializeErrors:
    """Malformed payloads."""

    @pytest.mark.parametrize("payload", [
        "{not json",
        json.dumps({"events": []}),
        json.dumps([{"title": "no id"}]),
        json.dumps([{"id": "1", "title": "T", "date": "yesterday", "time": "08:00"}]),
        json.dumps([{"id": "1", "title": None, "date": "2024-03-06", "time": "09:00"}]),
        json.dumps([{"id": "1", "title": "T", "date": "2024-03-06", "time": 900}]),
        json.dumps([{"id": "1", "title": "T", "date": "2024-03-06", "time": "09:00", "endTime": 10}]),
        json.dumps([{"id": "1", "title": "T", "date": "2024-03-06", "time": "09:00", "description": ["x"]}]),
        json.dumps([{"id": "1", "title": "T", "date": "2024-03-06", "time": "09:00", "category": 3}]),
        json.dumps([{"id": "1", "title": "T", "date": "2024-03-06", "time": "09:00",
                     "recurrence": {"type": "daily", "occurrences": "3"}}]),
    ])
    def test_malformed_payload_raises(self, payload):
        with pytest.raises(PersistenceReadError):
            deserialize_events(payload)

    def test_load_events_recovers_empty(self):
        storage = MemoryStorage({"calendar-events": "[{]"})
        assert load_events(storage) == []

    def test_load_events_missing_key(self):
        assert load_events(MemoryStorage()) == []

    def test_optional_fields_may_be_null(self):
        record = {"id": "1", "title": "T", "date": "2024-03-06", "time": "09:00",
                  "endTime": None, "description": None, "category": None}
        event = event_from_dict(record)
        assert event.end_time is None
        assert event.description is None
        assert event.category is None
        assert event.color == "#3B82F6"


class TestJsonFileStorage:
    """File backend."""

    def test_save_and_load(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data")
        events = list(seed_and_occurrence())
        save_events(storage, events)
        assert (tmp_path / "data" / "calendar-events.json").exists()
        assert load_events(storage) == events

    def test_missing_file_loads_nothing(self, tmp_path):
        assert JsonFileStorage(tmp_path).load_blob("calendar-events") is None

    def test_keys_map_to_safe_filenames(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.save_blob("work/events", "[]")
        assert (tmp_path / "work_events.json").read_text() == "[]"

    def test_undecodable_file_loads_nothing(self, tmp_path):
        (tmp_path / "calendar-events.json").write_bytes(b"\xff\xfe[garbage")
        assert load_events(JsonFileStorage(tmp_path)) == []
