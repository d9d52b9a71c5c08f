from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


PORTRAIT_KEY_SPLIT_RE = re.compile(r"[,|;]")


def fold_key(value: str | None) -> str:
    """Normalise a node id / asset key for case-insensitive lookups."""
    return (value or "").strip().casefold()


@dataclass(frozen=True)
class Line:
    node_id: str
    line_id: str = ""
    order: int = 0
    speaker: str = ""
    portrait_key: str = ""
    position: int = 0
    production_key: str = ""
    bgi_code: str = ""
    bgm_code: str = ""
    sprite_type: str = ""
    text: str = ""
    tags: str = ""
    next_node: str = ""

    def portrait_keys(self) -> List[str]:
        """All portrait tokens in field order, trimmed, empties dropped."""
        raw = self.portrait_key or ""
        keys = [k.strip() for k in PORTRAIT_KEY_SPLIT_RE.split(raw)]
        keys = [k for k in keys if k]
        if not keys and raw.strip():
            keys = [raw.strip()]
        return keys

    def primary_portrait_key(self) -> str:
        keys = self.portrait_keys()
        return keys[0] if keys else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "lineId": self.line_id,
            "order": self.order,
            "speaker": self.speaker,
            "portraitKey": self.portrait_key,
            "position": self.position,
            "productionKey": self.production_key,
            "BGICode": self.bgi_code,
            "BGMCode": self.bgm_code,
            "spriteType": self.sprite_type,
            "text": self.text,
            "tags": self.tags,
            "nextNode": self.next_node,
        }


@dataclass(frozen=True)
class Episode:
    episode_id: str
    lines: Tuple[Line, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "episodeId": self.episode_id,
            "lines": [ln.to_dict() for ln in self.lines],
        }
