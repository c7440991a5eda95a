"""
view_flame.py

Render a session's span forest as a collapsible tree in the terminal using
Rich, with each span's roll-up time in human-friendly units and its share of
the whole session.
"""

from rich.markup import escape
from rich.tree import Tree

from ..session import Session, SpanNode


def format_time(us: int) -> str:
    """Convert microseconds to a human-friendly string."""
    if us >= 1_000_000:
        return f"{us / 1_000_000:.2f}s"
    elif us >= 1_000:
        return f"{us / 1_000:.2f}ms"
    else:
        return f"{us}μs"


def _share(dur: int, total_time: int) -> float:
    if total_time <= 0:
        return 100.0
    return dur / total_time * 100


def label(node: SpanNode, total_time: int) -> str:
    dur = node.total_duration()
    human = format_time(dur)
    return f"[bold]{escape(node.event.activity)}[/] • {human} ({_share(dur, total_time):.1f}%) [dim]{node.event.source}[/]"


def render(node: SpanNode, tree: Tree, total_time: int):
    # Children stay in attachment order, matching the waterfall listing.
    stack = [(node, tree)]
    while stack:
        current, branch = stack.pop()
        added = [(child, branch.add(label(child, total_time))) for child in current.child_nodes]
        stack.extend(reversed(added))


def build_tree(session: Session) -> Tree:
    total = session.total_duration()
    title = escape(session.record.request or str(session.id))
    tree = Tree(f"[b]{title}[/] • {format_time(total)} (100%)")
    for root in session.roots:
        branch = tree.add(label(root, total))
        render(root, branch, total)
    return tree
