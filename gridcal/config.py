"""
Configuration parser for Gridcal.

Handles TOML file parsing into typed configuration sections.
"""

import tomllib
import os
import re
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from .event_storage import DEFAULT_STORAGE_KEY, get_default_storage_dir
from .models import DEFAULT_EVENT_COLOR
from .recurrence import DEFAULT_HORIZON_MONTHS, DEFAULT_MAX_OCCURRENCES


DEFAULT_CATEGORIES = ["Work", "Personal", "Health", "Social", "Family", "Travel", "Education"]


@dataclass
class RecurrenceConfig:
    """Safety caps applied when a recurrence rule leaves a bound open."""
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES
    horizon_months: int = DEFAULT_HORIZON_MONTHS  # Default end date, months after today

    def __post_init__(self):
        if self.max_occurrences < 1:
            raise ValueError(f"max_occurrences must be positive, got {self.max_occurrences}")
        if self.horizon_months < 1:
            raise ValueError(f"horizon_months must be positive, got {self.horizon_months}")


@dataclass
class EventsConfig:
    """Defaults offered when composing events."""
    default_color: str = DEFAULT_EVENT_COLOR
    categories: list[str] = None

    def __post_init__(self):
        if self.categories is None:
            self.categories = list(DEFAULT_CATEGORIES)

    def match_category(self, value: str) -> str:
        """Return the configured spelling of a category, matched case-insensitively."""
        for category in self.categories:
            if category.lower() == value.strip().lower():
                return category
        raise ValueError(f"Unknown category {value!r}; choose from: {', '.join(self.categories)}")


@dataclass
class Config:
    """Main configuration container for Gridcal."""

    storage_dir: Path = field(default_factory=get_default_storage_dir)
    storage_key: str = DEFAULT_STORAGE_KEY
    timezone: str = "UTC"
    recurrence: RecurrenceConfig = field(default_factory=RecurrenceConfig)
    events: EventsConfig = field(default_factory=EventsConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'gridcal' / 'gridcal.toml'

    @classmethod
    def default(cls) -> 'Config':
        return cls()

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """Load configuration from TOML file."""
        if config_path is None:
            config_path = cls.get_default_config_path()

        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        # Parse General section
        general = data.get('General', {})
        storage_dir_str = general.get('storage_dir')
        if storage_dir_str:
            storage_dir = Path(os.path.expanduser(storage_dir_str))
        else:
            storage_dir = get_default_storage_dir()

        # Parse Recurrence section
        recurrence_data = data.get('Recurrence', {})
        recurrence = RecurrenceConfig(
            max_occurrences=recurrence_data.get('max_occurrences', RecurrenceConfig.max_occurrences),
            horizon_months=recurrence_data.get('horizon_months', RecurrenceConfig.horizon_months),
        )

        # Parse Events section; categories are space-separated
        events_data = data.get('Events', {})
        categories_str = events_data.get('categories', '')
        events = EventsConfig(
            default_color=resolve_color(events_data.get('default_color', EventsConfig.default_color)),
            categories=categories_str.split() if categories_str else None,
        )

        return cls(
            storage_dir=storage_dir,
            storage_key=general.get('storage_key', DEFAULT_STORAGE_KEY),
            timezone=general.get('timezone', 'UTC'),
            recurrence=recurrence,
            events=events,
        )


# Colors palette offered for events
EVENT_COLORS = {
    'blue': '#3B82F6',
    'red': '#EF4444',
    'green': '#10B981',
    'purple': '#8B5CF6',
    'orange': '#F59E0B',
    'pink': '#EC4899',
    'teal': '#14B8A6',
    'indigo': '#6366F1',
}

_HEX_COLOR = re.compile(r'^#[0-9A-Fa-f]{6}$')


def resolve_color(value: str) -> str:
    """Turn a palette name or a #RRGGBB value into a color."""
    named = EVENT_COLORS.get(value.strip().lower())
    if named:
        return named
    if _HEX_COLOR.match(value.strip()):
        return value.strip().upper()
    raise ValueError(f"Unknown color {value!r}; use #RRGGBB or one of: {', '.join(EVENT_COLORS)}")
