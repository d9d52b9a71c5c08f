from __future__ import annotations

import logging

import pytest

from talkvn.script.errors import EmptyScript
from talkvn.script.index import build_index
from talkvn.script.model import Episode, Line


def episode(*lines):
    return Episode(episode_id="ep", lines=tuple(lines))


def test_sorted_by_order_stable_on_ties():
    idx = build_index(episode(
        Line("b", order=2), Line("a", order=1), Line("c", order=2),
    ))
    assert [ln.node_id for ln in idx.lines] == ["a", "b", "c"]
    assert idx.first().node_id == "a"


def test_lookup_is_trimmed_and_case_insensitive():
    idx = build_index(episode(Line("Node1", order=1)))
    assert idx.lookup(" node1 ").node_id == "Node1"
    assert idx.lookup("") is None
    assert idx.lookup(None) is None
    assert idx.lookup("other") is None


def test_empty_node_ids_are_dropped(caplog):
    with caplog.at_level(logging.WARNING):
        idx = build_index(episode(Line("", order=1), Line("a", order=2)))
    assert len(idx) == 1
    assert "empty nodeId" in caplog.text


def test_duplicate_node_last_wins(caplog):
    first = Line("a", order=1, text="first")
    second = Line("A", order=2, text="second")
    with caplog.at_level(logging.WARNING):
        idx = build_index(episode(first, second))
    assert idx.lookup("a").text == "second"
    assert idx.position_of(first) == 1
    assert "Duplicate nodeId" in caplog.text


def test_no_usable_lines():
    with pytest.raises(EmptyScript):
        build_index(episode(Line(" ", order=1)))


def test_at_bounds():
    idx = build_index(episode(Line("a"), Line("b")))
    assert idx.at(1).node_id == "b"
    assert idx.at(2) is None
    assert idx.at(-1) is None
