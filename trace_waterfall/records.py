"""
records.py

Immutable session and event records, shaped like the rows of
``system_traces.sessions`` and ``system_traces.events``.

Sources hand rows over as plain ``{column: text}`` mappings; ``from_row``
turns them into typed records so the rest of the package never sees raw text.
"""

import ipaddress
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional, Union

from .errors import RecordParseError

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class SpanId(int):
    """Signed 64-bit span identifier; zero means "no parent"."""

    ROOT: "SpanId"

    def __new__(cls, value=0):
        value = int(value)
        if not _I64_MIN <= value <= _I64_MAX:
            raise ValueError(f"span id {value} does not fit in 64 bits")
        return super().__new__(cls, value)

    def is_root(self) -> bool:
        return self == 0

    def __repr__(self):
        return f"SpanId({int(self)})"


SpanId.ROOT = SpanId(0)


def _field(row: Mapping[str, str], name: str) -> str:
    try:
        value = row[name]
    except KeyError:
        raise RecordParseError(f"missing column {name!r}") from None
    if value is None:
        raise RecordParseError(f"column {name!r} is empty")
    return value


def _optional(row: Mapping[str, str], name: str) -> Optional[str]:
    value = row.get(name)
    if value is None or str(value).strip() == "":
        return None
    return value


def _parse(name: str, convert, value):
    try:
        return convert(value)
    except (TypeError, ValueError) as exc:
        raise RecordParseError(f"bad {name} {value!r}: {exc}") from exc


def _int(value) -> int:
    if isinstance(value, str):
        value = value.strip()
    return int(value)


def _uuid(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value).strip())


def _ip(value) -> IPAddress:
    return ipaddress.ip_address(str(value).strip())


def _span_id(row: Mapping[str, str], name: str) -> SpanId:
    # Cassandra does not record span ids; those events are all roots.
    value = _optional(row, name)
    if value is None:
        return SpanId.ROOT
    return _parse(name, lambda v: SpanId(_int(v)), value)


def parse_timestamp(value) -> datetime:
    """Parse a trace timestamp, treating naive values as UTC.

    Accepts ISO 8601 as well as the ``2023-08-13 01:48:10.172000+0000``
    form that cqlsh's ``COPY TO`` writes.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = None
            for fmt in ("%Y-%m-%d %H:%M:%S.%f%z", "%Y-%m-%d %H:%M:%S%z"):
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
            if parsed is None:
                raise ValueError(f"unrecognised timestamp {text!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class EventRecord:
    session_id: uuid.UUID
    event_id: uuid.UUID
    activity: str
    source: IPAddress
    source_elapsed: int
    thread: str
    span_id: SpanId = SpanId.ROOT
    parent_span_id: SpanId = SpanId.ROOT

    def __post_init__(self):
        if self.source_elapsed < 0:
            raise ValueError(f"source_elapsed must not be negative, got {self.source_elapsed}")

    @classmethod
    def from_row(cls, row: Mapping[str, str]) -> "EventRecord":
        elapsed = _parse("source_elapsed", _int, _field(row, "source_elapsed"))
        if elapsed < 0:
            raise RecordParseError(f"source_elapsed must not be negative, got {elapsed}")
        return cls(
            session_id=_parse("session_id", _uuid, _field(row, "session_id")),
            event_id=_parse("event_id", _uuid, _field(row, "event_id")),
            activity=_field(row, "activity"),
            source=_parse("source", _ip, _field(row, "source")),
            source_elapsed=elapsed,
            thread=row.get("thread") or "",
            span_id=_span_id(row, "scylla_span_id"),
            parent_span_id=_span_id(row, "scylla_parent_id"),
        )


@dataclass(frozen=True)
class SessionRecord:
    session_id: uuid.UUID
    client: IPAddress
    command: str
    coordinator: IPAddress
    duration: int
    parameters: str
    request: str
    started_at: datetime
    request_size: Optional[int] = None
    response_size: Optional[int] = None
    username: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, str]) -> "SessionRecord":
        request_size = _optional(row, "request_size")
        response_size = _optional(row, "response_size")
        return cls(
            session_id=_parse("session_id", _uuid, _field(row, "session_id")),
            client=_parse("client", _ip, _field(row, "client")),
            command=_field(row, "command"),
            coordinator=_parse("coordinator", _ip, _field(row, "coordinator")),
            duration=_parse("duration", _int, _field(row, "duration")),
            parameters=row.get("parameters") or "",
            request=row.get("request") or "",
            started_at=_parse("started_at", parse_timestamp, _field(row, "started_at")),
            request_size=None if request_size is None else _parse("request_size", _int, request_size),
            response_size=None if response_size is None else _parse("response_size", _int, response_size),
            username=_optional(row, "username"),
        )
