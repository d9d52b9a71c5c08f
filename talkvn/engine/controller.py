from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..script.errors import NoStartLine
from ..script.index import IndexedScript, build_index
from ..script.loader import Payload, parse_episode
from ..script.model import Episode, Line
from .config_io import PlayerConfig
from .diagnostics import Diagnostics
from .events import EpisodeFinishedEvent, EpisodeLoadedEvent, EventSystem
from .navigation import resolve_next
from .portraits import PortraitSlotManager
from .presenter import PresentationBinder
from .productions import ProductionDispatcher
from .registry import AssetRegistry
from .sequences import SequenceRunner
from .surface import DummySurface, ISurface

logger = logging.getLogger(__name__)


class PlaybackStatus(Enum):
    IDLE = "idle"            # nothing loaded
    READY = "ready"          # loaded, not started
    PRESENTING = "presenting"
    FINISHED = "finished"


@dataclass
class PlaybackState:
    current_line: Optional[Line] = None
    typing: bool = False
    skip_requested: bool = False


class PlaybackController:
    """Top-level dialogue state machine.

    The host drives it with ``advance()`` (tap/click) and ``tick(dt)`` (once
    per frame) and listens on ``events`` for LinePresentedEvent and
    EpisodeFinishedEvent.
    """

    def __init__(
        self,
        surface: Optional[ISurface] = None,
        registry: Optional[AssetRegistry] = None,
        config: Optional[PlayerConfig] = None,
        events: Optional[EventSystem] = None,
        diagnostics: Optional[Diagnostics] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.surface = surface or DummySurface()
        self.registry = registry or AssetRegistry()
        self.config = config or PlayerConfig()
        self.events = events or EventSystem()
        self.diagnostics = diagnostics or Diagnostics()
        self.runner = SequenceRunner()
        self.portraits = PortraitSlotManager(self.surface, self.registry, self.diagnostics)
        self.binder = PresentationBinder(
            self.surface, self.registry, self.portraits, self.runner, self.events,
            config=self.config, diagnostics=self.diagnostics,
        )
        self.productions = ProductionDispatcher(
            self.binder, self.runner, self.events, self.config,
            shake_target=getattr(self.surface, "root", None), rng=rng,
        )
        self.portraits.add_evict_listener(self.productions.on_portrait_evicted)
        self.index: Optional[IndexedScript] = None
        self.start_node = ""
        self.status = PlaybackStatus.IDLE
        self.state = PlaybackState()

    # --- inspection ---
    @property
    def current_line(self) -> Optional[Line]:
        return self.state.current_line

    @property
    def is_typing(self) -> bool:
        return self.binder.is_typing

    @property
    def episode_id(self) -> str:
        return self.index.episode_id if self.index else ""

    # --- loading ---
    def load(self, episode: Episode) -> IndexedScript:
        """Index ``episode``; on failure the previous episode stays active."""
        index = build_index(episode)
        if self.status is PlaybackStatus.PRESENTING:
            self.binder.halt()
        self.index = index
        self.status = PlaybackStatus.READY
        self.state = PlaybackState()
        logger.info(f"Loaded episode '{index.episode_id}' ({len(index)} lines)")
        self.events.emit(EpisodeLoadedEvent(episode_id=index.episode_id, line_count=len(index)))
        return index

    def load_source(self, payload: Payload) -> IndexedScript:
        return self.load(parse_episode(payload))

    def begin(self, start_node: Optional[str] = None) -> Line:
        if self.index is None:
            raise NoStartLine("no episode loaded")
        node = self.start_node if start_node is None else start_node
        line = None
        if node and node.strip():
            line = self.index.lookup(node)
            if line is None:
                logger.warning(f"Start node '{node}' not found in '{self.index.episode_id}'; starting from the first line")
        line = line or self.index.first()
        if line is None:
            raise NoStartLine(f"episode '{self.index.episode_id}' has no start line")
        logger.debug(f"Beginning '{self.index.episode_id}' at '{line.node_id}'")
        self._present(line)
        return line

    def set_episode(self, episode: Union[Episode, Payload], start_node: Optional[str] = None) -> Line:
        """Replace the running episode and start it, whatever the current state."""
        if not isinstance(episode, Episode):
            episode = parse_episode(episode)
        self.load(episode)
        if self.config.cleanup_on_set_episode:
            self.productions.stop_all()
            self.portraits.cleanup_all()
        self.start_node = start_node or ""
        return self.begin()

    # --- input / time ---
    def advance(self) -> bool:
        """Tap/click: finish the running reveal, else move to the next line.

        Returns False when there is nothing to advance (not presenting).
        """
        if self.status is not PlaybackStatus.PRESENTING:
            return False
        if self.binder.is_typing:
            self.state.skip_requested = True
            self.binder.skip_reveal()
            self._sync()
            return True
        nxt = resolve_next(self.index, self.state.current_line) if self.index else None
        if nxt is not None:
            self._present(nxt)
        else:
            self._finish()
        return True

    def tick(self, dt: float) -> None:
        self.runner.tick(dt)
        self._sync()

    def shutdown(self) -> None:
        """Stop playback and release every visual; the controller can be loaded again."""
        self.productions.stop_all()
        self.runner.cancel_all()
        self.portraits.cleanup_all()
        self.binder.halt()
        self.index = None
        self.status = PlaybackStatus.IDLE
        self.state = PlaybackState()

    # --- internals ---
    def _present(self, line: Line) -> None:
        self.status = PlaybackStatus.PRESENTING
        self.state = PlaybackState(current_line=line)
        self.binder.present(line)
        self._sync()

    def _finish(self) -> None:
        self.productions.stop_all()
        self.portraits.cleanup_all()
        self.binder.restore_default_background()
        self.binder.halt()
        self.status = PlaybackStatus.FINISHED
        self.state = PlaybackState()
        episode_id = self.episode_id
        logger.info(f"Episode '{episode_id}' finished")
        self.events.emit(EpisodeFinishedEvent(episode_id=episode_id))

    def _sync(self) -> None:
        self.state.typing = self.binder.is_typing
