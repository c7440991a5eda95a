"""
errors.py

Exceptions raised while loading and charting a trace session.
"""


class WaterfallError(Exception):
    """Base class for everything this package raises on purpose."""


class DurationOverflow(WaterfallError, OverflowError):
    """A span duration does not fit in a signed 64-bit count of microseconds."""


class RecordParseError(ValueError):
    """A single session or event row could not be turned into a record."""

    def __init__(self, message: str, row: int = None):
        self.row = row
        if row is not None:
            message = f"row {row}: {message}"
        super().__init__(message)


class SourceError(WaterfallError):
    """Raised by record sources (CSV files, SQLite database)."""


class InvalidSessionId(SourceError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"{value!r} is not a valid session id")


class SessionNotFound(SourceError):
    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"the provided session id {session_id} could not be found")


class _RowErrors(SourceError):
    what = "records"

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(f"there were issues deserializing the {self.what} data")

    def __str__(self):
        lines = [super().__str__()]
        lines.extend(f"  {err}" for err in self.errors)
        return "\n".join(lines)


class SessionDeserializationError(_RowErrors):
    what = "session"


class EventDeserializationError(_RowErrors):
    what = "event"


class SourceIOError(SourceError):
    """The underlying file or database could not be opened or read."""
