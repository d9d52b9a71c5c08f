from __future__ import annotations

from talkvn.engine.navigation import resolve_next
from talkvn.script.index import build_index
from talkvn.script.model import Episode, Line


def index(*lines):
    return build_index(Episode(episode_id="ep", lines=tuple(lines)))


def test_linear_fallthrough():
    idx = index(Line("a", order=1), Line("b", order=2), Line("c", order=3))
    a = idx.lookup("a")
    b = resolve_next(idx, a)
    c = resolve_next(idx, b)
    assert (b.node_id, c.node_id) == ("b", "c")
    assert resolve_next(idx, c) is None


def test_explicit_next_node_wins():
    idx = index(Line("a", order=1, next_node="C"), Line("b", order=2), Line("c", order=3))
    assert resolve_next(idx, idx.lookup("a")).node_id == "c"


def test_unknown_next_node_falls_through():
    idx = index(Line("a", order=1, next_node="nowhere"), Line("b", order=2))
    assert resolve_next(idx, idx.lookup("a")).node_id == "b"


def test_backward_branch_loops():
    idx = index(Line("A", order=1), Line("B", order=2), Line("C", order=3, next_node="A"))
    seen = []
    line = idx.first()
    for _ in range(7):
        seen.append(line.node_id)
        line = resolve_next(idx, line)
    assert seen == ["A", "B", "C", "A", "B", "C", "A"]


def test_no_current_line():
    idx = index(Line("a"))
    assert resolve_next(idx, None) is None
