from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .errors import EmptyScript
from .model import Episode, Line, fold_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexedScript:
    """Lookup structures over one loaded episode.

    ``lines`` is the playback order (sorted by ``order``, stable on ties).
    ``by_node`` and ``position_by_node`` are keyed by folded node id; on
    duplicate ids the line indexed last wins in both maps.
    """

    episode: Episode
    lines: Tuple[Line, ...]
    by_node: Dict[str, Line] = field(default_factory=dict)
    position_by_node: Dict[str, int] = field(default_factory=dict)

    @property
    def episode_id(self) -> str:
        return self.episode.episode_id

    def __len__(self) -> int:
        return len(self.lines)

    def lookup(self, node_id: str | None) -> Optional[Line]:
        key = fold_key(node_id)
        if not key:
            return None
        return self.by_node.get(key)

    def position_of(self, line: Line) -> Optional[int]:
        return self.position_by_node.get(fold_key(line.node_id))

    def first(self) -> Optional[Line]:
        return self.lines[0] if self.lines else None

    def at(self, position: int) -> Optional[Line]:
        if 0 <= position < len(self.lines):
            return self.lines[position]
        return None


def build_index(episode: Episode) -> IndexedScript:
    """Index an episode for playback; raises EmptyScript if nothing survives."""
    kept = []
    for line in episode.lines:
        if not fold_key(line.node_id):
            logger.warning(f"Skipping line with empty nodeId (order: {line.order}, lineId: {line.line_id!r})")
            continue
        kept.append(line)
    if not kept:
        raise EmptyScript(f"episode '{episode.episode_id}' has no line with a nodeId")

    ordered = tuple(sorted(kept, key=lambda ln: ln.order))
    by_node: Dict[str, Line] = {}
    position_by_node: Dict[str, int] = {}
    for pos, line in enumerate(ordered):
        key = fold_key(line.node_id)
        if key in by_node:
            logger.warning(f"Duplicate nodeId '{line.node_id}' in episode '{episode.episode_id}'; last one wins")
        by_node[key] = line
        position_by_node[key] = pos
    logger.debug(f"Indexed episode '{episode.episode_id}': {len(ordered)} lines, {len(by_node)} nodes")
    return IndexedScript(episode=episode, lines=ordered, by_node=by_node, position_by_node=position_by_node)
