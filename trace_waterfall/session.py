"""
session.py

Rebuild a trace session's span tree from its flat list of events and walk it
for display.

Events only know their own span id and their parent's span id, so the tree is
assembled by repeatedly offering each pending event to the forest built so
far. Nodes live in a flat arena and refer to their children by index; a node
is attached at most once and never moved afterwards.
"""

import logging
from collections import deque
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

from .errors import DurationOverflow
from .records import EventRecord, SessionRecord, SpanId
from .waterfall import waterfall

logger = logging.getLogger(__name__)

_I64_MAX = 2**63 - 1

COMPLAIN_ABOUT_TRACE_SIZE = "what are you doing with 2^63 microseconds in a single trace!"


def _checked(micros: int) -> int:
    if not -_I64_MAX - 1 <= micros <= _I64_MAX:
        raise DurationOverflow(COMPLAIN_ABOUT_TRACE_SIZE)
    return micros


class SpanNode:
    """One event plus the indices of the events nested directly under it."""

    __slots__ = ("index", "event", "children", "_arena")

    def __init__(self, index: int, event: EventRecord, arena: List["SpanNode"]):
        self.index = index
        self.event = event
        self.children: List[int] = []
        self._arena = arena

    def __repr__(self):
        return f"SpanNode({self.index}, span_id={int(self.span_id)}, activity={self.event.activity!r})"

    @property
    def span_id(self) -> SpanId:
        return self.event.span_id

    @property
    def parent_span_id(self) -> SpanId:
        return self.event.parent_span_id

    @property
    def child_nodes(self) -> List["SpanNode"]:
        return [self._arena[i] for i in self.children]

    @property
    def is_parent(self) -> bool:
        return bool(self.children)

    def walk(self, depth: int = 0) -> Iterator[Tuple["SpanNode", int]]:
        """Pre-order walk of this subtree, yielding ``(node, depth)``."""
        stack = [(self, depth)]
        while stack:
            node, level = stack.pop()
            yield node, level
            stack.extend((node._arena[i], level + 1) for i in reversed(node.children))

    def count_including_children(self) -> int:
        return sum(1 for _ in self.walk())

    def own_duration(self) -> int:
        """Microseconds spent in this span alone."""
        return _checked(self.event.source_elapsed)

    def total_duration(self) -> int:
        """Microseconds spent in this span and everything nested under it."""
        return _checked(sum(node.own_duration() for node, _ in self.walk()))

    def durations(self) -> Tuple[int, int]:
        """``(total, own)``, the pair the waterfall needs."""
        return self.total_duration(), self.own_duration()


class SpanForest:
    def __init__(self):
        self.nodes: List[SpanNode] = []
        self.roots: List[int] = []
        # Events whose parent span never showed up; they are also in roots.
        self.orphans: List[int] = []

    def __len__(self):
        return len(self.nodes)

    @property
    def root_nodes(self) -> List[SpanNode]:
        return [self.nodes[i] for i in self.roots]

    @property
    def orphan_nodes(self) -> List[SpanNode]:
        return [self.nodes[i] for i in self.orphans]

    def walk(self) -> Iterator[Tuple[SpanNode, int]]:
        for root in self.root_nodes:
            yield from root.walk()

    def add(self, event: EventRecord) -> int:
        index = len(self.nodes)
        self.nodes.append(SpanNode(index, event, self.nodes))
        return index

    def find_parent(self, candidate: SpanNode) -> Optional[SpanNode]:
        """First node, in pre-order across the roots, whose span the candidate belongs to."""
        for node, _ in self.walk():
            if node.span_id == candidate.parent_span_id:
                return node
        return None


def _stuck(forest: SpanForest, pending: deque) -> int:
    """Pick which unplaceable event to promote to a root.

    Prefer the first one whose parent is not waiting in the queue either, so
    that a chain of events under a missing span keeps its shape.
    """
    waiting = {forest.nodes[i].span_id for i in pending}
    for index in pending:
        if forest.nodes[index].parent_span_id not in waiting:
            return index
    return pending[0]


def assemble(events: Iterable[EventRecord]) -> SpanForest:
    """Build the span forest for a session's events.

    Events whose parent is the root sentinel start the forest, in input order.
    Every other event is offered to the forest and, if nothing adopts it yet,
    requeued behind the others. Once a full pass over the queue places
    nothing, the remaining events can never be placed as they are: one of them
    becomes a root of its own and the rest get another chance to attach.
    """
    forest = SpanForest()
    pending = deque()
    for event in events:
        index = forest.add(event)
        if event.parent_span_id.is_root():
            forest.roots.append(index)
        else:
            pending.append(index)

    misses = 0
    while pending:
        index = pending.popleft()
        candidate = forest.nodes[index]
        parent = forest.find_parent(candidate)
        if parent is not None:
            parent.children.append(index)
            misses = 0
            continue

        pending.append(index)
        misses += 1
        if misses < len(pending):
            continue

        orphan = forest.nodes[_stuck(forest, pending)]
        pending.remove(orphan.index)
        logger.warning(
            "event %s has parent span %d which is not in this session; showing it as a root",
            orphan.event.event_id,
            orphan.parent_span_id,
        )
        forest.roots.append(orphan.index)
        forest.orphans.append(orphan.index)
        misses = 0

    logger.debug(
        "assembled %d events into %d roots (%d orphaned)",
        len(forest),
        len(forest.roots),
        len(forest.orphans),
    )
    return forest


class ChartRow(NamedTuple):
    node: SpanNode
    depth: int
    offset: int
    own_duration: int
    total_duration: int
    bar: str


class Session:
    """All of the tracing information for a single session.

    Events are presented depth-first: the whole subtree of the first root
    comes before the second root.
    """

    def __init__(self, session_record: SessionRecord, event_records: Iterable[EventRecord]):
        self.record = session_record
        self.forest = assemble(event_records)

    @property
    def id(self):
        return self.record.session_id

    @property
    def roots(self) -> List[SpanNode]:
        return self.forest.root_nodes

    @property
    def orphan_count(self) -> int:
        return len(self.forest.orphans)

    def event_count(self) -> int:
        return len(self.forest)

    def events(self) -> List[Tuple[SpanNode, int]]:
        return list(self.forest.walk())

    def max_depth(self) -> int:
        return max((depth for _, depth in self.forest.walk()), default=1)

    def total_duration(self) -> int:
        """Sum of every root's roll-up duration.

        This is rebuilt from the events and may differ from the duration
        stored on the session record.
        """
        return _checked(sum(root.total_duration() for root in self.roots))

    def rows(self, width: int) -> Iterator[ChartRow]:
        """Chart rows in presentation order.

        Each span starts where the previously listed span's own time ended,
        so offsets follow the depth-first listing rather than wall-clock time.
        """
        session_total = self.total_duration()
        offset = 0
        for node, depth in self.forest.walk():
            total, own = node.durations()
            bar = waterfall(offset, own, total, session_total, width)
            yield ChartRow(node, depth, offset, own, total, bar)
            offset = _checked(offset + own)
