"""
Gridcal Backend Module

This module provides the core functionality for the month-grid calendar:
- Configuration parsing (config.py)
- Event data model (models.py)
- Recurrence expansion (recurrence.py)
- Event store with conflict and filter queries (event_store.py)
- Blob storage and record format (event_storage.py)
- iCalendar export (ics_export.py)
"""

from .config import Config
from .errors import ConflictDetected, DomainError, ErrorCode, PersistenceReadError, ValidationError
from .models import EventDraft, EventInstance, RecurrenceRule, RecurrenceType
from .recurrence import expand
from .event_store import EventStore
from .event_storage import JsonFileStorage, MemoryStorage, create_storage_backend

__all__ = [
    'Config',
    'EventStore',
    'EventDraft',
    'EventInstance',
    'RecurrenceRule',
    'RecurrenceType',
    'expand',
    'JsonFileStorage',
    'MemoryStorage',
    'create_storage_backend',
    'DomainError',
    'ErrorCode',
    'ValidationError',
    'ConflictDetected',
    'PersistenceReadError',
]
