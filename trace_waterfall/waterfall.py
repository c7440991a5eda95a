"""
waterfall.py

Project a span's time interval onto a fixed-width character canvas:

    [  <blank>  █████<own duration>█████───<children>───┤   <blank>   ]

``offset`` is the number of microseconds between the start of the session and
the start of the span; every position is a floor of ``time * width / total``.
"""

from typing import NamedTuple

BLOCK = "█"
TAIL = "─"
TICK = "┤"


class Geometry(NamedTuple):
    start_pos: int
    block_width: int
    tail_width: int
    remainder_width: int

    @property
    def cells(self) -> int:
        return self.start_pos + self.block_width + self.tail_width + self.remainder_width


def _cell(point: int, width: int, session_total: int) -> int:
    return point * width // session_total


def project(offset: int, own: int, total: int, session_total: int, width: int) -> Geometry:
    """Return the cell layout for one span.

    Every span gets at least one block cell, even if its duration rounds to
    nothing. That clamp can push the bar past ``width`` for spans right at the
    end of a heavily skewed session; the remainder then saturates at zero and
    the bar comes out slightly wider than nominal.
    """
    if width < 1:
        raise ValueError(f"waterfall width must be at least 1, got {width}")
    if session_total <= 0:
        return Geometry(0, width, 0, 0)

    start_pos = _cell(offset, width, session_total)
    end_pos = max(start_pos + 1, _cell(offset + own, width, session_total))
    tail_pos = max(start_pos + 1, _cell(offset + total, width, session_total))

    block_width = end_pos - start_pos
    tail_width = tail_pos - end_pos
    remainder_width = max(0, width - start_pos - block_width - tail_width)
    return Geometry(start_pos, block_width, tail_width, remainder_width)


def draw(geometry: Geometry) -> str:
    tail = ""
    if geometry.tail_width:
        tail = TAIL * (geometry.tail_width - 1) + TICK
    return "[{}{}{}{}]".format(
        " " * geometry.start_pos,
        BLOCK * geometry.block_width,
        tail,
        " " * geometry.remainder_width,
    )


def waterfall(offset: int, own: int, total: int, session_total: int, width: int) -> str:
    """Render the bracketed bar for one span; ``width + 2`` characters long."""
    return draw(project(offset, own, total, session_total, width))
