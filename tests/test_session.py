"""Tests for span tree assembly, durations and traversal."""

import random

import pytest

from trace_waterfall.errors import DurationOverflow
from trace_waterfall.session import Session, assemble


def _count(forest):
    return sum(root.count_including_children() for root in forest.root_nodes)


def _parents(forest):
    """Map every non-root node index to its parent node."""
    parents = {}
    for node in forest.nodes:
        for child in node.child_nodes:
            parents[child.index] = node
    return parents


class TestAssemble:
    """Tests for building the span forest."""

    def test_two_level_trace(self, make_event):
        a = make_event(1, elapsed=10)
        b = make_event(2, parent_span_id=1, elapsed=20)
        forest = assemble([a, b])
        assert [n.event for n in forest.root_nodes] == [a]
        assert [n.event for n in forest.root_nodes[0].child_nodes] == [b]
        assert forest.orphans == []

    def test_child_listed_before_parent(self, make_event):
        child = make_event(2, parent_span_id=1)
        grandchild = make_event(3, parent_span_id=2)
        root = make_event(1)
        forest = assemble([grandchild, child, root])
        (top,) = forest.root_nodes
        assert top.event is root
        assert top.child_nodes[0].event is child
        assert top.child_nodes[0].child_nodes[0].event is grandchild

    def test_roots_keep_input_order(self, make_event):
        events = [make_event(7), make_event(3), make_event(5)]
        forest = assemble(events)
        assert [n.event for n in forest.root_nodes] == events

    def test_first_matching_node_in_depth_first_order_adopts(self, make_event):
        # Two roots share span 10; the first root in order wins.
        first = make_event(10, activity="first")
        second = make_event(10, activity="second")
        child = make_event(20, parent_span_id=10)
        forest = assemble([first, second, child])
        assert [n.event for n in forest.root_nodes[0].child_nodes] == [child]
        assert forest.root_nodes[1].child_nodes == []

    def test_siblings_in_attachment_order(self, make_event):
        root = make_event(1)
        kids = [make_event(100 + i, parent_span_id=1) for i in range(4)]
        forest = assemble([root] + kids)
        assert [n.event for n in forest.root_nodes[0].child_nodes] == kids

    def test_missing_parent_becomes_extra_root(self, make_event):
        root = make_event(1)
        orphan = make_event(5, parent_span_id=999)
        forest = assemble([root, orphan])
        assert [n.event for n in forest.root_nodes] == [root, orphan]
        assert [n.event for n in forest.orphan_nodes] == [orphan]

    def test_children_can_attach_under_a_promoted_orphan(self, make_event):
        orphan = make_event(5, parent_span_id=999)
        under_orphan = make_event(6, parent_span_id=5)
        forest = assemble([under_orphan, orphan])
        assert len(forest.orphans) == 1
        (top,) = forest.root_nodes
        assert top.event is orphan
        assert [n.event for n in top.child_nodes] == [under_orphan]

    def test_event_that_names_itself_as_parent_terminates(self, make_event):
        loop = make_event(8, parent_span_id=8)
        forest = assemble([loop])
        assert len(forest.root_nodes) == 1
        assert len(forest.orphans) == 1

    def test_two_event_parent_cycle_terminates(self, make_event):
        a = make_event(1, parent_span_id=2)
        b = make_event(2, parent_span_id=1)
        forest = assemble([a, b])
        assert len(forest) == 2
        assert len(forest.root_nodes) == 1
        assert len(forest.orphans) == 1
        (top,) = forest.root_nodes
        assert len(top.child_nodes) == 1
        assert {top.event, top.child_nodes[0].event} == {a, b}

    def test_orphan_promotion_is_logged(self, make_event, caplog):
        assemble([make_event(5, parent_span_id=999)])
        assert "999" in caplog.text

    def test_empty_input(self):
        forest = assemble([])
        assert len(forest) == 0
        assert forest.root_nodes == []

    def test_every_event_placed_once_with_matching_parent(self, make_event):
        rng = random.Random(1234)
        events = [make_event(1)]
        for span in range(2, 200):
            parent = rng.randrange(1, span)
            events.append(make_event(span, parent_span_id=parent, elapsed=rng.randrange(50)))
        # a few that can never attach
        events += [make_event(1000 + i, parent_span_id=5000 + i) for i in range(3)]
        rng.shuffle(events)

        forest = assemble(events)

        assert _count(forest) == len(events)
        placed = [node.event for node, _ in forest.walk()]
        assert sorted(id(e) for e in placed) == sorted(id(e) for e in events)
        for index, parent in _parents(forest).items():
            assert forest.nodes[index].parent_span_id == parent.span_id
        assert len(forest.orphans) == 3


class TestDurations:
    """Tests for own and roll-up durations."""

    def test_roll_up(self, make_event):
        forest = assemble(
            [
                make_event(1, elapsed=10),
                make_event(2, parent_span_id=1, elapsed=20),
                make_event(3, parent_span_id=2, elapsed=5),
                make_event(4, parent_span_id=1, elapsed=7),
            ]
        )
        root = forest.root_nodes[0]
        assert root.own_duration() == 10
        assert root.total_duration() == 42
        for node, _ in forest.walk():
            assert node.total_duration() == node.own_duration() + sum(
                c.total_duration() for c in node.child_nodes
            )

    def test_leaf_total_equals_own(self, make_event):
        leaf = assemble([make_event(1, elapsed=9)]).root_nodes[0]
        assert leaf.durations() == (9, 9)

    def test_deep_chain_does_not_recurse(self, make_event):
        events = [make_event(1, elapsed=1)]
        events += [make_event(i, parent_span_id=i - 1, elapsed=1) for i in range(2, 1501)]
        root = assemble(events).root_nodes[0]
        assert root.total_duration() == 1500

    def test_overflow_is_fatal(self, make_event):
        forest = assemble(
            [
                make_event(1, elapsed=2**62),
                make_event(2, parent_span_id=1, elapsed=2**62),
            ]
        )
        with pytest.raises(DurationOverflow):
            forest.root_nodes[0].total_duration()


class TestSession:
    """Tests for the session view."""

    def test_scenario_two_events(self, make_event, session_record):
        a = make_event(1, elapsed=10)
        b = make_event(2, parent_span_id=1, elapsed=20)
        session = Session(session_record, [a, b])

        assert [(n.event, depth) for n, depth in session.events()] == [(a, 0), (b, 1)]
        assert session.total_duration() == 30

        rows = list(session.rows(10))
        assert rows[0].total_duration == 30
        assert rows[1].total_duration == 20
        assert rows[0].bar == "[███──────┤]"
        assert rows[1].bar == "[   ███████]"

    def test_offsets_follow_listing_order(self, make_event, session_record):
        session = Session(
            session_record,
            [
                make_event(1, elapsed=4),
                make_event(2, parent_span_id=1, elapsed=6),
                make_event(3, elapsed=5),
            ],
        )
        assert [row.offset for row in session.rows(15)] == [0, 4, 10]

    def test_total_is_rebuilt_not_copied(self, make_event, session_record):
        session = Session(session_record, [make_event(1, elapsed=3), make_event(2, elapsed=4)])
        assert session.record.duration == 30
        assert session.total_duration() == 7

    def test_pre_order_traversal(self, make_event, session_record):
        events = [
            make_event(1),
            make_event(2, parent_span_id=1),
            make_event(3, parent_span_id=2),
            make_event(4, parent_span_id=1),
            make_event(5),
        ]
        session = Session(session_record, events)
        order = [(int(n.span_id), depth) for n, depth in session.events()]
        assert order == [(1, 0), (2, 1), (3, 2), (4, 1), (5, 0)]
        assert session.max_depth() == 2
        assert session.event_count() == 5

    def test_orphan_count(self, make_event, session_record):
        session = Session(session_record, [make_event(1), make_event(2, parent_span_id=77)])
        assert session.orphan_count == 1
        assert session.event_count() == 2

    def test_single_instant_event(self, make_event, session_record):
        session = Session(session_record, [make_event(1, elapsed=0)])
        (row,) = session.rows(8)
        assert row.bar == "[████████]"
