"""Tests for the playback event system."""
import pytest

from talkvn.engine.events import (
    EpisodeFinishedEvent, EpisodeLoadedEvent, EventSystem, LinePresentedEvent, Priority,
)
from talkvn.script.model import Line


class TestEventSystem:
    """Test the typed event system."""

    def test_basic_subscribe_emit(self):
        events = EventSystem()
        received = []
        events.subscribe(LinePresentedEvent, received.append)
        events.emit(LinePresentedEvent(line=Line("a", speaker="bob")))
        assert len(received) == 1
        assert received[0].line.speaker == "bob"

    def test_events_are_delivered_by_type(self):
        events = EventSystem()
        received = []
        events.subscribe(EpisodeFinishedEvent, received.append)
        events.emit(EpisodeLoadedEvent(episode_id="ep"))
        assert received == []

    def test_unsubscribe(self):
        events = EventSystem()
        received = []

        def handler(event):
            received.append(event)

        events.subscribe(EpisodeLoadedEvent, handler)
        events.emit(EpisodeLoadedEvent(episode_id="1"))
        assert events.unsubscribe(EpisodeLoadedEvent, handler) is True
        events.emit(EpisodeLoadedEvent(episode_id="2"))
        assert [e.episode_id for e in received] == ["1"]
        assert events.unsubscribe(EpisodeLoadedEvent, handler) is False

    def test_unsubscribe_via_returned_function(self):
        events = EventSystem()
        received = []
        unsub = events.subscribe(EpisodeLoadedEvent, received.append)
        unsub()
        events.emit(EpisodeLoadedEvent())
        assert received == []

    def test_priority_order(self):
        events = EventSystem()
        order = []
        events.subscribe(EpisodeFinishedEvent, lambda e: order.append("normal1"))
        events.subscribe(EpisodeFinishedEvent, lambda e: order.append("low"), priority=Priority.LOW)
        events.subscribe(EpisodeFinishedEvent, lambda e: order.append("high"), priority=Priority.HIGH)
        events.subscribe(EpisodeFinishedEvent, lambda e: order.append("normal2"))
        events.emit(EpisodeFinishedEvent())
        assert order == ["high", "normal1", "normal2", "low"]

    def test_once(self):
        events = EventSystem()
        received = []
        events.once(EpisodeFinishedEvent, received.append)
        events.emit(EpisodeFinishedEvent())
        events.emit(EpisodeFinishedEvent())
        assert len(received) == 1
        assert events.listener_count(EpisodeFinishedEvent) == 0

    def test_failing_listener_does_not_stop_others(self, caplog):
        events = EventSystem()
        received = []

        def bad(event):
            raise ValueError("listener failure")

        events.subscribe(EpisodeFinishedEvent, bad, priority=Priority.HIGH)
        events.subscribe(EpisodeFinishedEvent, received.append)
        events.emit(EpisodeFinishedEvent(episode_id="ep"))
        assert len(received) == 1
        assert "listener failure" in caplog.text

    def test_stats_and_clear(self):
        events = EventSystem(debug=True)
        events.subscribe(EpisodeLoadedEvent, lambda e: None)
        events.emit(EpisodeLoadedEvent())
        events.emit(EpisodeLoadedEvent())
        stats = events.get_stats()
        assert stats["events"] == {"EpisodeLoadedEvent": 2}
        assert stats["listeners"] == {"EpisodeLoadedEvent": 1}
        assert stats["total_emits"] == 2
        events.clear()
        assert events.get_stats()["total_emits"] == 0
        assert events.listener_count(EpisodeLoadedEvent) == 0


@pytest.mark.parametrize("event", [EpisodeLoadedEvent(), LinePresentedEvent(), EpisodeFinishedEvent()])
def test_emit_returns_event(event):
    assert EventSystem().emit(event) is event
