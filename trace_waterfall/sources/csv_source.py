"""
csv_source.py

Read a session and its events from a pair of CSV exports, e.g. produced by

    COPY system_traces.sessions TO 'sessions.csv' WITH HEADER = true;
    COPY system_traces.events TO 'events.csv' WITH HEADER = true;
"""

import csv
import logging
from typing import Iterator, List, Mapping, Tuple

from ..errors import (
    EventDeserializationError,
    RecordParseError,
    SessionDeserializationError,
    SessionNotFound,
    SourceIOError,
)
from ..records import EventRecord, SessionRecord
from .base import Source

logger = logging.getLogger(__name__)


def read_rows(path) -> Iterator[Tuple[int, Mapping[str, str]]]:
    """Yield ``(line_number, row)`` for every data row of a CSV with a header."""
    try:
        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            for row in reader:
                yield reader.line_num, row
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise SourceIOError(f"there were issues reading {path}: {exc}") from exc


def parse_rows(path, record_type):
    """Parse every row of ``path``; returns ``(records, errors)``."""
    records, errors = [], []
    for line, row in read_rows(path):
        try:
            records.append(record_type.from_row(row))
        except RecordParseError as exc:
            errors.append(RecordParseError(str(exc), row=line))
    return records, errors


class CsvSource(Source):
    def __init__(self, sessions_path, events_path, session_id):
        super().__init__(session_id)
        self.sessions_path = sessions_path
        self.events_path = events_path

    def _find_session(self) -> SessionRecord:
        errors = []
        found = None
        for line, row in read_rows(self.sessions_path):
            try:
                record = SessionRecord.from_row(row)
            except RecordParseError as exc:
                errors.append(RecordParseError(str(exc), row=line))
                continue
            if record.session_id == self.session_id:
                found = record
                break
        if errors:
            raise SessionDeserializationError(errors)
        if found is None:
            raise SessionNotFound(self.session_id)
        return found

    def _session_events(self) -> List[EventRecord]:
        records, errors = parse_rows(self.events_path, EventRecord)
        if errors:
            raise EventDeserializationError(errors)
        return [r for r in records if r.session_id == self.session_id]

    def get_data(self) -> Tuple[SessionRecord, List[EventRecord]]:
        session_record = self._find_session()
        events = self._session_events()
        logger.info(
            "loaded session %s with %d events from %s",
            self.session_id,
            len(events),
            self.events_path,
        )
        return session_record, events
