"""
render.py

Lay out a session as plain text: a header describing the session, then one
line per span with its waterfall bar and the columns chosen in DisplayConfig.

    ##  waterfall chart   dur    node            activity
     1 [█─────┤      ]    0      172.17.0.2      ├┬─ Parsing a statement
     2 [█            ]    5      172.17.0.3      │├─ Message received from /172.17.0.2
"""

import json
from typing import Iterator

from .config import DisplayConfig
from .session import Session, SpanNode


def columns(
    config: DisplayConfig,
    min_activity_width: int,
    duration: str,
    source: str,
    tree: str,
    activity: str,
    event_id: str = "",
    span_id: str = "",
    parent_span_id: str = "",
    thread: str = "",
) -> str:
    """Format the text columns that follow the waterfall bar.

    Shared by the span lines and the header/footer so they all line up.
    """
    d_min = config.min_duration_width
    a_max = config.max_activity_width
    a_min = min(min_activity_width, a_max)

    output = f"{duration:<{d_min}} {source:<15} {tree} {activity:<{a_min}.{a_max}}"
    if config.show_event_id:
        output += f" {event_id:<37}"
    if config.show_span_ids:
        output += f" {span_id:<20} {parent_span_id:<20}"
    if config.show_thread:
        output += f" {thread}"
    return output


def tree_column(node: SpanNode, depth: int, max_depth: int) -> str:
    tree = "│" * depth + "├"
    if node.is_parent:
        tree += "┬"
    return tree.ljust(max_depth + 2, "─")


def span_columns(config: DisplayConfig, node: SpanNode, depth: int, max_depth: int, activity_width: int) -> str:
    event = node.event
    return columns(
        config,
        activity_width,
        str(config.duration_format.convert(node.own_duration())),
        str(event.source),
        tree_column(node, depth, max_depth),
        event.activity,
        str(event.event_id),
        str(int(event.span_id)),
        str(int(event.parent_span_id)),
        event.thread,
    )


def _or_na(value) -> str:
    return "N/A" if value is None else str(value)


def session_header(session: Session) -> Iterator[str]:
    record = session.record
    yield f"Session ID: {record.session_id}"
    yield record.started_at.isoformat(timespec="milliseconds")
    yield f"{str(record.client):<15} ({_or_na(record.username)}) -> {str(record.coordinator):<15}"
    yield f"Request Size:  {_or_na(record.request_size)}"
    yield f"Response Size: {_or_na(record.response_size)}"
    yield record.request
    yield json.dumps(record.parameters, ensure_ascii=False)


def render_session(session: Session, config: DisplayConfig) -> Iterator[str]:
    """Yield the lines of the full waterfall report for ``session``."""
    yield from session_header(session)

    events = session.events()
    activity_width = max((len(node.event.activity) for node, _ in events), default=0)
    max_depth = session.max_depth()
    i_width = len(str(session.event_count()))
    w_width = config.waterfall_width + 2

    yield ""
    header = columns(
        config,
        activity_width,
        "dur",
        "node",
        " " * (max_depth + 2),
        "activity",
        "event id",
        "span id",
        "parent span id",
        "thread name",
    )
    yield f"{'':<{i_width}} {'waterfall chart':<{w_width}} {header}"

    for i, row in enumerate(session.rows(config.waterfall_width), start=1):
        line = span_columns(config, row.node, row.depth, max_depth, activity_width)
        yield f"{i:>{i_width}} {row.bar} {line}"

    total = str(config.duration_format.convert(session.total_duration()))
    for cell in ("-" * len(total), total):
        yield f"{'':<{i_width}} {'':<{w_width}} {columns(config, activity_width, cell, '', '', '')}"
