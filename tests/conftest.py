"""Pytest configuration and shared fixtures."""

import itertools
from datetime import date

import pytest

from gridcal.event_storage import MemoryStorage
from gridcal.event_store import EventStore

TODAY = date(2024, 3, 6)  # a Wednesday


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"evt{next(counter)}"


@pytest.fixture
def store(storage, id_factory) -> EventStore:
    return EventStore(storage=storage, id_factory=id_factory, today=TODAY)
