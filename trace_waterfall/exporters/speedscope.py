"""
speedscope.py

Turn a session's span forest into FlameGraph-style folded stacks:

    root;child;subchild <duration_us>

The result can be loaded into Speedscope
(via “Import” → “Text (FlameGraph)”).
"""

from typing import Iterator, List

from ..session import Session


def frame_name(activity: str) -> str:
    # ';' separates frames and the trailing space separates the count
    return activity.replace(";", ",").replace("\n", " ").strip() or "?"


def folded_lines(session: Session, min_us: int = 1) -> Iterator[str]:
    """
    For each span, yields:
      root;child;...;thisspan <own duration_us>
    """
    path: List[str] = []
    for node, depth in session.events():
        del path[depth:]
        path.append(frame_name(node.event.activity))
        dur = node.own_duration()
        if dur < min_us:
            continue
        yield f"{';'.join(path)} {dur}"
