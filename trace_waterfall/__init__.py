"""
Render Scylla/Cassandra tracing sessions as text waterfall charts.
"""

from .config import DisplayConfig, DurationFormat
from .errors import DurationOverflow, SourceError, WaterfallError
from .records import EventRecord, SessionRecord, SpanId
from .render import render_session
from .session import ChartRow, Session, SpanForest, SpanNode, assemble
from .waterfall import waterfall

__version__ = "0.1.0"

__all__ = [
    "ChartRow",
    "DisplayConfig",
    "DurationFormat",
    "DurationOverflow",
    "EventRecord",
    "Session",
    "SessionRecord",
    "SourceError",
    "SpanForest",
    "SpanId",
    "SpanNode",
    "WaterfallError",
    "assemble",
    "render_session",
    "waterfall",
]
