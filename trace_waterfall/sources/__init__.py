"""
Record sources: CSV exports and a local SQLite copy of system_traces.
"""

from .base import Source, parse_session_id
from .csv_source import CsvSource
from .sqlite_source import SqliteSource

__all__ = ["Source", "CsvSource", "SqliteSource", "parse_session_id"]
