"""Pytest configuration and fixtures."""

import ipaddress
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest

from trace_waterfall.records import EventRecord, SessionRecord, SpanId

DATA_DIR = Path(__file__).parent / "data"

SESSION_ID = "74ff67c0-397b-11ee-8ca4-9688db6cc0f1"
CASSANDRA_SESSION_ID = "5a1f0d40-3a00-11ee-9b2a-0242ac110002"
TEST_SESSION = uuid.UUID("11111111-2222-3333-4444-555555555555")


@pytest.fixture
def sessions_csv():
    return DATA_DIR / "sessions.csv"


@pytest.fixture
def events_csv():
    return DATA_DIR / "events.csv"


@pytest.fixture
def expected_chart():
    """Load one of the reference charts from tests/data."""

    def load(name):
        return (DATA_DIR / name).read_text(encoding="utf-8").splitlines()

    return load


@pytest.fixture
def make_event():
    """Build an EventRecord with only the fields a test cares about."""

    def factory(span_id, parent_span_id=0, elapsed=0, activity=None, source="127.0.0.1"):
        return EventRecord(
            session_id=TEST_SESSION,
            event_id=uuid.uuid4(),
            activity=activity or f"span {span_id}",
            source=ipaddress.ip_address(source),
            source_elapsed=elapsed,
            thread="shard 0",
            span_id=SpanId(span_id),
            parent_span_id=SpanId(parent_span_id),
        )

    return factory


@pytest.fixture
def session_record():
    return SessionRecord(
        session_id=TEST_SESSION,
        client=ipaddress.ip_address("10.0.0.7"),
        command="QUERY",
        coordinator=ipaddress.ip_address("10.0.0.1"),
        duration=30,
        parameters="{}",
        request="Execute CQL3 query",
        started_at=datetime(2023, 8, 13, 1, 48, 10, 172000, tzinfo=timezone.utc),
    )
