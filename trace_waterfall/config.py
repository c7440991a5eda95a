"""
config.py

Display options and default file locations.
"""

import enum
import os
from dataclasses import dataclass

APP_NAME = "trace-waterfall"

DEFAULT_SESSIONS_PATH = "sessions.csv"
DEFAULT_EVENTS_PATH = "events.csv"
DEFAULT_WATERFALL_WIDTH = 100
DEFAULT_MIN_DURATION_WIDTH = 6
DEFAULT_MAX_ACTIVITY_WIDTH = 300


class DurationFormat(enum.Enum):
    """Unit used for the per-span duration column."""

    MILLIS = "millis"
    MICROS = "micros"

    def convert(self, micros: int) -> int:
        if self is DurationFormat.MILLIS:
            return micros // 1000
        return micros


@dataclass(frozen=True)
class DisplayConfig:
    waterfall_width: int = DEFAULT_WATERFALL_WIDTH
    duration_format: DurationFormat = DurationFormat.MICROS
    min_duration_width: int = DEFAULT_MIN_DURATION_WIDTH
    max_activity_width: int = DEFAULT_MAX_ACTIVITY_WIDTH
    show_event_id: bool = False
    show_span_ids: bool = False
    show_thread: bool = False

    def __post_init__(self):
        if self.waterfall_width < 1:
            raise ValueError("waterfall_width must be at least 1")
        if self.min_duration_width < 0 or self.max_activity_width < 0:
            raise ValueError("column widths must not be negative")


def data_dir() -> str:
    """Per-user data directory, following XDG_DATA_HOME."""
    xdg_data_home = os.environ.get("XDG_DATA_HOME", os.path.expanduser("~/.local/share"))
    return os.path.join(xdg_data_home, APP_NAME)


def default_db_path() -> str:
    return os.path.join(data_dir(), "traces.db")
