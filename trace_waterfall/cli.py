#!/usr/bin/env python3
"""
cli.py

Command-line interface for charting Scylla/Cassandra tracing sessions, read
either from a pair of CSV exports or from a local SQLite trace database.
"""
from dataclasses import dataclass

import click
from rich import print

from . import __version__
from .config import (
    APP_NAME,
    DEFAULT_EVENTS_PATH,
    DEFAULT_MAX_ACTIVITY_WIDTH,
    DEFAULT_MIN_DURATION_WIDTH,
    DEFAULT_SESSIONS_PATH,
    DEFAULT_WATERFALL_WIDTH,
    DisplayConfig,
    DurationFormat,
    default_db_path,
)
from .errors import WaterfallError
from .exporters import speedscope, view_flame
from .logging_config import level_for, setup_logging
from .render import render_session
from .sources import CsvSource, SqliteSource
from .sources.sqlite_source import import_csv, list_sessions


VIEWS = ("waterfall", "tree", "folded")


@dataclass
class Options:
    config: DisplayConfig
    view: str = "waterfall"


def _fail(message: str):
    click.echo(message, err=True)
    raise SystemExit(1)


def _show(options: Options, make_source):
    try:
        session = make_source().load_session()
        if options.view == "tree":
            print(view_flame.build_tree(session))
        elif options.view == "folded":
            for line in speedscope.folded_lines(session):
                click.echo(line)
        else:
            for line in render_session(session, options.config):
                click.echo(line)
    except WaterfallError as exc:
        _fail(f"Error: {exc}")
    if session.orphan_count:
        click.echo(
            f"{session.orphan_count} event(s) referenced a parent span missing from this session.",
            err=True,
        )


@click.group()
@click.option(
    "-w", "--waterfall-width",
    type=click.IntRange(min=1), default=DEFAULT_WATERFALL_WIDTH, show_default=True,
    envvar="TRACE_WATERFALL_WIDTH",
    help="Width of the waterfall chart in characters",
)
@click.option(
    "-d", "--duration-format",
    type=click.Choice([f.value for f in DurationFormat]), default=DurationFormat.MICROS.value,
    show_default=True,
    help="Show span durations in milliseconds or microseconds",
)
@click.option(
    "--min-duration-width",
    type=click.IntRange(min=0), default=DEFAULT_MIN_DURATION_WIDTH, show_default=True,
    help="Minimum print width of the duration column",
)
@click.option(
    "--max-activity-width",
    type=click.IntRange(min=0), default=DEFAULT_MAX_ACTIVITY_WIDTH, show_default=True,
    help="Maximum print width of the activity column; longer text is truncated",
)
@click.option("--show-event-id", is_flag=True, help="Show the event uuid")
@click.option("--show-span-ids", is_flag=True, help="Show the span and parent span ids")
@click.option("--show-thread", is_flag=True, help="Show the thread name")
@click.option(
    "--view",
    type=click.Choice(VIEWS), default="waterfall", show_default=True,
    help="waterfall chart, Rich roll-up tree, or folded stacks for Speedscope",
)
@click.option("-v", "--verbose", count=True, help="Log more (repeat for debug output)")
@click.version_option(__version__, prog_name=APP_NAME)
@click.pass_context
def main(
    ctx,
    waterfall_width,
    duration_format,
    min_duration_width,
    max_activity_width,
    show_event_id,
    show_span_ids,
    show_thread,
    view,
    verbose,
):
    """
    Visualise the tracing sessions emitted by Scylla or Cassandra.
    """
    setup_logging(level_for(verbose) if verbose else None)
    ctx.obj = Options(
        config=DisplayConfig(
            waterfall_width=waterfall_width,
            duration_format=DurationFormat(duration_format),
            min_duration_width=min_duration_width,
            max_activity_width=max_activity_width,
            show_event_id=show_event_id,
            show_span_ids=show_span_ids,
            show_thread=show_thread,
        ),
        view=view,
    )


@main.command(name="csv")
@click.argument("session_id")
@click.option(
    "-s", "--sessions-path",
    type=click.Path(dir_okay=False), default=DEFAULT_SESSIONS_PATH, show_default=True,
    help="CSV export of system_traces.sessions",
)
@click.option(
    "-e", "--events-path",
    type=click.Path(dir_okay=False), default=DEFAULT_EVENTS_PATH, show_default=True,
    help="CSV export of system_traces.events",
)
@click.pass_obj
def csv_mode(options, session_id, sessions_path, events_path):
    """Chart SESSION_ID from a pair of CSV exports."""
    _show(options, lambda: CsvSource(sessions_path, events_path, session_id))


def _pick_session(db_file):
    try:
        sessions = list_sessions(db_file)
    except WaterfallError as exc:
        _fail(f"Error: {exc}")
    if not sessions:
        _fail("No sessions found in the selected database.")
    click.echo("Available sessions:")
    for idx, (session_id, count, started_at) in enumerate(sessions, start=1):
        click.echo(f"  [{idx}] {session_id} ({count} events, started at {started_at})")
    choice = click.prompt("Select session", type=click.IntRange(1, len(sessions)))
    return sessions[choice - 1][0]


@main.command(name="db")
@click.argument("session_id", required=False)
@click.option("--db", "db_file", type=click.Path(dir_okay=False), default=None,
              help="Trace database (defaults to $XDG_DATA_HOME/trace-waterfall/traces.db)")
@click.pass_obj
def db_mode(options, session_id, db_file):
    """Chart SESSION_ID from the SQLite trace database; prompts when omitted."""
    db_file = db_file or default_db_path()
    if session_id is None:
        session_id = _pick_session(db_file)
    _show(options, lambda: SqliteSource(db_file, session_id))


@main.command(name="sessions")
@click.option("--db", "db_file", type=click.Path(dir_okay=False), default=None,
              help="Trace database (defaults to $XDG_DATA_HOME/trace-waterfall/traces.db)")
@click.option("--limit", type=click.IntRange(min=1), default=10, show_default=True)
def sessions_cmd(db_file, limit):
    """List the most recent sessions in the trace database."""
    db_file = db_file or default_db_path()
    try:
        rows = list_sessions(db_file, limit=limit)
    except WaterfallError as exc:
        _fail(f"Error: {exc}")
    click.echo("SESSION_ID\tEVENTS\tSTARTED_AT")
    for session_id, count, started_at in rows:
        click.echo(f"{session_id}\t{count}\t{started_at}")


@main.command(name="import")
@click.argument("sessions_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("events_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--db", "db_file", type=click.Path(dir_okay=False), default=None,
              help="Trace database (defaults to $XDG_DATA_HOME/trace-waterfall/traces.db)")
def import_cmd(sessions_path, events_path, db_file):
    """Copy a sessions/events CSV pair into the trace database."""
    db_file = db_file or default_db_path()
    try:
        n_sessions, n_events = import_csv(db_file, sessions_path, events_path)
    except WaterfallError as exc:
        _fail(f"Error: {exc}")
    click.echo(f"Imported {n_sessions} sessions and {n_events} events into {db_file}")


if __name__ == "__main__":
    main()
