from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..script.errors import ScriptError
from ..script.loader import load_episode_file
from ..script.model import Episode, fold_key
from .controller import PlaybackController

logger = logging.getLogger(__name__)


class EpisodeLibrary:
    """Episodes available to a scene, addressable by id or by registration order.

    Duplicate episode ids replace the earlier entry in the id lookup (with a
    warning); both stay reachable by index.
    """

    def __init__(self, controller: PlaybackController) -> None:
        self.controller = controller
        self._by_id: Dict[str, Episode] = {}
        self._by_index: List[Episode] = []

    def add(self, episode: Episode) -> None:
        key = fold_key(episode.episode_id)
        if key:
            if key in self._by_id:
                logger.warning(f"Duplicate episodeId '{episode.episode_id}'; the last one wins")
            self._by_id[key] = episode
        self._by_index.append(episode)

    def load_directory(self, directory: str | Path, pattern: str = "*.json") -> int:
        """Add every episode file in ``directory`` (sorted by name); bad files are logged and skipped."""
        added = 0
        for path in sorted(Path(directory).glob(pattern)):
            try:
                self.add(load_episode_file(path))
                added += 1
            except ScriptError as e:
                logger.error(f"Skipping {path.name}: {e}")
        return added

    def get(self, episode_id: str) -> Optional[Episode]:
        return self._by_id.get(fold_key(episode_id))

    def ids(self) -> List[str]:
        return [ep.episode_id for ep in self._by_id.values()]

    def __len__(self) -> int:
        return len(self._by_index)

    def play_by_id(self, episode_id: str, start_node: Optional[str] = None) -> bool:
        if not (episode_id or "").strip():
            logger.warning("play_by_id called with an empty episodeId")
            return False
        episode = self.get(episode_id)
        if episode is None:
            logger.warning(f"No episode registered for episodeId '{episode_id}'")
            return False
        return self._play(episode, start_node)

    def play_by_index(self, index: int, start_node: Optional[str] = None) -> bool:
        if index < 0 or index >= len(self._by_index):
            logger.warning(f"Episode index {index} out of range (0..{len(self._by_index) - 1})")
            return False
        return self._play(self._by_index[index], start_node)

    def _play(self, episode: Episode, start_node: Optional[str]) -> bool:
        try:
            self.controller.set_episode(episode, start_node)
        except ScriptError as e:
            logger.error(f"Cannot play episode '{episode.episode_id}': {e}")
            return False
        return True
