"""End-to-end tests of the text report against a real Scylla trace."""

from trace_waterfall.config import DisplayConfig, DurationFormat
from trace_waterfall.render import columns, render_session, tree_column
from trace_waterfall.sources import CsvSource

from .conftest import CASSANDRA_SESSION_ID, SESSION_ID


def _render(sessions_csv, events_csv, config, session_id=SESSION_ID):
    session = CsvSource(sessions_csv, events_csv, session_id).load_session()
    return list(render_session(session, config))


def _rstripped(lines):
    return [line.rstrip() for line in lines]


class TestRenderSession:
    """Tests for render_session()."""

    def test_default_chart(self, sessions_csv, events_csv, expected_chart):
        expected = expected_chart("chart_width_100.txt")
        output = _render(sessions_csv, events_csv, DisplayConfig())
        assert _rstripped(output[: len(expected)]) == _rstripped(expected)

    def test_narrow_chart_with_all_columns(self, sessions_csv, events_csv, expected_chart):
        expected = expected_chart("chart_width_50_all_columns.txt")
        config = DisplayConfig(
            waterfall_width=50,
            show_event_id=True,
            show_span_ids=True,
            show_thread=True,
        )
        output = _render(sessions_csv, events_csv, config)
        assert _rstripped(output[: len(expected)]) == _rstripped(expected)

    def test_bars_have_fixed_width(self, sessions_csv, events_csv):
        output = _render(sessions_csv, events_csv, DisplayConfig(waterfall_width=37))
        bars = [line[line.index("[") : line.index("]") + 1] for line in output[9:21]]
        assert all(len(bar) == 39 for bar in bars)

    def test_footer_shows_rebuilt_total(self, sessions_csv, events_csv):
        output = _render(sessions_csv, events_csv, DisplayConfig())
        assert len(output) == 23
        assert output[-2].split() == ["----"]
        assert output[-1].split() == ["1633"]

    def test_millisecond_durations(self, sessions_csv, events_csv):
        config = DisplayConfig(duration_format=DurationFormat.MILLIS)
        output = _render(sessions_csv, events_csv, config)
        durations = [line.split("]", 1)[1].split()[0] for line in output[9:21]]
        assert set(durations) == {"0"}
        assert output[-1].split() == ["1"]

    def test_absent_fields_print_na(self, sessions_csv, events_csv):
        output = _render(sessions_csv, events_csv, DisplayConfig(), CASSANDRA_SESSION_ID)
        assert output[2].startswith("10.0.0.7        (N/A) -> 10.0.0.1")
        assert output[3] == "Request Size:  N/A"
        assert output[4] == "Response Size: N/A"

    def test_activity_truncated_to_max_width(self, sessions_csv, events_csv):
        output = _render(sessions_csv, events_csv, DisplayConfig(max_activity_width=8))
        assert output[9].endswith("├┬─ Parsing ")
        assert "statement" not in output[9]


class TestColumns:
    """Tests for the column helpers."""

    def test_optional_columns(self):
        config = DisplayConfig(show_thread=True)
        line = columns(config, 4, "12", "10.0.0.1", "├─", "read", thread="shard 3")
        assert line == "12     10.0.0.1        ├─ read shard 3"

    def test_tree_column(self, make_event, session_record):
        from trace_waterfall.session import Session

        session = Session(session_record, [make_event(1), make_event(2, parent_span_id=1)])
        (parent, _), (child, _) = session.events()
        assert tree_column(parent, 0, 2) == "├┬──"
        assert tree_column(child, 1, 2) == "│├──"
