"""
base.py

What every record source provides: a session record and that session's events.
"""

import uuid
from typing import List, Tuple

from ..errors import InvalidSessionId
from ..records import EventRecord, SessionRecord
from ..session import Session


def parse_session_id(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        raise InvalidSessionId(str(value)) from None


class Source:
    """Somewhere session and event rows can be read from."""

    def __init__(self, session_id):
        self.session_id = parse_session_id(session_id)

    def get_data(self) -> Tuple[SessionRecord, List[EventRecord]]:
        raise NotImplementedError

    def load_session(self) -> Session:
        session_record, event_records = self.get_data()
        return Session(session_record, event_records)
