"""
Typed synchronous events raised by the playback core.

Listeners are plain callables subscribed per event class. ``emit`` calls
them in priority order (then subscription order) before returning; a
listener that raises is logged and the remaining listeners still run.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, DefaultDict, Dict, List, Optional, Type, TypeVar

from ..script.model import Line

logger = logging.getLogger(__name__)


class Priority(IntEnum):
    """Higher priorities run first; ties run in subscription order."""
    LOWEST = 0
    LOW = 25
    NORMAL = 50
    HIGH = 75
    HIGHEST = 100
    MONITOR = 200


@dataclass
class Event:
    """Base class for playback events."""


@dataclass
class EpisodeLoadedEvent(Event):
    """Fired when an episode has been indexed and is ready to begin."""
    episode_id: str = ""
    line_count: int = 0


@dataclass
class LinePresentedEvent(Event):
    """Fired after a line's presentation has been applied."""
    line: Optional[Line] = None


@dataclass
class EpisodeFinishedEvent(Event):
    """Fired once when playback runs past the last line."""
    episode_id: str = ""


T = TypeVar("T", bound=Event)


@dataclass
class Listener:
    callback: Callable[[Any], None]
    priority: Priority = Priority.NORMAL
    once: bool = False


class EventSystem:
    def __init__(self, debug: bool = False) -> None:
        self._listeners: DefaultDict[Type[Event], List[Listener]] = defaultdict(list)
        self._emit_count: DefaultDict[Type[Event], int] = defaultdict(int)
        self._debug = debug

    def subscribe(
        self,
        event_type: Type[T],
        callback: Callable[[T], None],
        priority: Priority = Priority.NORMAL,
        once: bool = False,
    ) -> Callable[[], None]:
        """Subscribe to an event type. Returns an unsubscribe function."""
        listeners = self._listeners[event_type]
        listeners.append(Listener(callback=callback, priority=priority, once=once))
        # stable: equal priorities keep subscription order
        listeners.sort(key=lambda l: l.priority, reverse=True)
        if self._debug:
            logger.debug(f"Listener added for {event_type.__name__} ({priority.name})")

        def unsubscribe() -> None:
            self.unsubscribe(event_type, callback)
        return unsubscribe

    def unsubscribe(self, event_type: Type[T], callback: Callable[[T], None]) -> bool:
        listeners = self._listeners.get(event_type, [])
        for i, listener in enumerate(listeners):
            if listener.callback == callback:
                listeners.pop(i)
                return True
        return False

    def once(self, event_type: Type[T], callback: Callable[[T], None], priority: Priority = Priority.NORMAL) -> Callable[[], None]:
        return self.subscribe(event_type, callback, priority=priority, once=True)

    def emit(self, event: Event) -> Event:
        event_type = type(event)
        self._emit_count[event_type] += 1
        if self._debug:
            logger.debug(f"emit {event!r}")
        for listener in list(self._listeners.get(event_type, [])):
            if listener.once:
                self._remove(event_type, listener)
            try:
                listener.callback(event)
            except Exception as e:
                logger.error(f"{event_type.__name__} listener failed: {e}", exc_info=True)
        return event

    def _remove(self, event_type: Type[Event], listener: Listener) -> None:
        try:
            self._listeners[event_type].remove(listener)
        except ValueError:
            pass

    def listener_count(self, event_type: Type[Event]) -> int:
        return len(self._listeners.get(event_type, []))

    def get_stats(self) -> Dict[str, Any]:
        return {
            "events": {k.__name__: v for k, v in self._emit_count.items()},
            "listeners": {k.__name__: len(v) for k, v in self._listeners.items()},
            "total_emits": sum(self._emit_count.values()),
        }

    def clear(self) -> None:
        self._listeners.clear()
        self._emit_count.clear()
