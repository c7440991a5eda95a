"""
sqlite_source.py

A local SQLite copy of ``system_traces``: one ``sessions`` table and one
``events`` table with the same columns Scylla uses, so CSV exports can be
imported once and browsed later.
"""

import logging
import os
import sqlite3
from datetime import timezone
from typing import List, Tuple

from ..errors import (
    EventDeserializationError,
    RecordParseError,
    SessionDeserializationError,
    SessionNotFound,
    SourceIOError,
)
from ..records import EventRecord, SessionRecord
from .base import Source
from .csv_source import parse_rows

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
  session_id TEXT PRIMARY KEY,
  client TEXT NOT NULL,
  command TEXT NOT NULL,
  coordinator TEXT NOT NULL,
  duration INTEGER NOT NULL,
  parameters TEXT NOT NULL DEFAULT '',
  request TEXT NOT NULL DEFAULT '',
  started_at TEXT NOT NULL,
  request_size INTEGER,
  response_size INTEGER,
  username TEXT
);
CREATE TABLE IF NOT EXISTS events (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  session_id TEXT NOT NULL,
  event_id TEXT NOT NULL,
  activity TEXT NOT NULL,
  scylla_parent_id INTEGER,
  scylla_span_id INTEGER,
  source TEXT NOT NULL,
  source_elapsed INTEGER NOT NULL,
  thread TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS events_by_session ON events (session_id);
"""


def init_db(db_file: str) -> sqlite3.Connection:
    """Open (creating if needed) the database at ``db_file`` and its tables."""
    directory = os.path.dirname(db_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_file)
    conn.executescript(SCHEMA)
    conn.commit()
    return conn


def _open_existing(db_file: str) -> sqlite3.Connection:
    if not os.path.isfile(db_file):
        raise SourceIOError(f"no trace database at {db_file}")
    conn = sqlite3.connect(db_file)
    conn.row_factory = sqlite3.Row
    return conn


def insert_session(conn: sqlite3.Connection, record: SessionRecord) -> None:
    conn.execute(
        """
INSERT OR REPLACE INTO sessions
  (session_id, client, command, coordinator, duration, parameters,
   request, started_at, request_size, response_size, username)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
""",
        (
            str(record.session_id),
            str(record.client),
            record.command,
            str(record.coordinator),
            record.duration,
            record.parameters,
            record.request,
            record.started_at.astimezone(timezone.utc).isoformat(timespec="microseconds"),
            record.request_size,
            record.response_size,
            record.username,
        ),
    )


def insert_event(conn: sqlite3.Connection, record: EventRecord) -> None:
    conn.execute(
        """
INSERT INTO events
  (session_id, event_id, activity, scylla_parent_id, scylla_span_id,
   source, source_elapsed, thread)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
""",
        (
            str(record.session_id),
            str(record.event_id),
            record.activity,
            int(record.parent_span_id),
            int(record.span_id),
            str(record.source),
            record.source_elapsed,
            record.thread,
        ),
    )


def import_csv(db_file: str, sessions_path, events_path) -> Tuple[int, int]:
    """Copy a sessions/events CSV pair into the database.

    Sessions that are already stored are replaced along with their events.
    Returns the number of sessions and events written.
    """
    sessions, errors = parse_rows(sessions_path, SessionRecord)
    if errors:
        raise SessionDeserializationError(errors)
    events, errors = parse_rows(events_path, EventRecord)
    if errors:
        raise EventDeserializationError(errors)

    try:
        conn = init_db(db_file)
    except (OSError, sqlite3.Error) as exc:
        raise SourceIOError(f"could not open {db_file}: {exc}") from exc
    try:
        with conn:
            replaced = {str(r.session_id) for r in sessions} | {str(e.session_id) for e in events}
            conn.executemany("DELETE FROM events WHERE session_id = ?", [(s,) for s in replaced])
            for record in sessions:
                insert_session(conn, record)
            for record in events:
                insert_event(conn, record)
    except sqlite3.Error as exc:
        raise SourceIOError(f"could not import into {db_file}: {exc}") from exc
    finally:
        conn.close()
    logger.info("imported %d sessions and %d events into %s", len(sessions), len(events), db_file)
    return len(sessions), len(events)


def list_sessions(db_file: str, limit: int = 10) -> List[Tuple[str, int, str]]:
    """Most recent sessions as ``(session_id, event_count, started_at)``."""
    conn = _open_existing(db_file)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT s.session_id, COUNT(e.id) AS event_count, s.started_at
              FROM sessions s
              LEFT JOIN events e ON e.session_id = s.session_id
          GROUP BY s.session_id
          ORDER BY s.started_at DESC
             LIMIT ?
            """,
            (limit,),
        )
        return [tuple(row) for row in cur.fetchall()]
    except sqlite3.Error as exc:
        raise SourceIOError(f"could not read {db_file}: {exc}") from exc
    finally:
        conn.close()


class SqliteSource(Source):
    def __init__(self, db_path: str, session_id):
        super().__init__(session_id)
        self.db_path = db_path

    def _fetch(self):
        conn = _open_existing(self.db_path)
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM sessions WHERE session_id = ?", (str(self.session_id),))
            session_row = cur.fetchone()
            cur.execute(
                "SELECT * FROM events WHERE session_id = ? ORDER BY id",
                (str(self.session_id),),
            )
            event_rows = cur.fetchall()
        except sqlite3.Error as exc:
            raise SourceIOError(f"could not read {self.db_path}: {exc}") from exc
        finally:
            conn.close()
        return session_row, event_rows

    def get_data(self) -> Tuple[SessionRecord, List[EventRecord]]:
        session_row, event_rows = self._fetch()
        if session_row is None:
            raise SessionNotFound(self.session_id)
        try:
            session_record = SessionRecord.from_row(dict(session_row))
        except RecordParseError as exc:
            raise SessionDeserializationError([exc]) from exc

        events, errors = [], []
        for row in event_rows:
            try:
                events.append(EventRecord.from_row(dict(row)))
            except RecordParseError as exc:
                errors.append(RecordParseError(str(exc), row=row["id"]))
        if errors:
            raise EventDeserializationError(errors)

        logger.info("loaded session %s with %d events from %s", self.session_id, len(events), self.db_path)
        return session_record, events
