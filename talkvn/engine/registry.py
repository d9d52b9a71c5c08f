"""Configuration-time lookups supplied by the host: portrait templates,
position anchors, sprite variants and backgrounds.

String keys are trimmed and compared case-insensitively. The first
registration of a key wins; later duplicates are logged and ignored.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..script.model import fold_key
from .surface import Anchor, PortraitTemplate

logger = logging.getLogger(__name__)

LOGICAL_SIZE: Tuple[int, int] = (1280, 720)


class AssetRegistry:
    def __init__(self) -> None:
        self._templates: Dict[str, PortraitTemplate] = {}
        self._anchors: Dict[int, Anchor] = {}
        self._sprites: Dict[str, Any] = {}
        self._portrait_sprites: Dict[Tuple[str, str], Any] = {}
        self._backgrounds: Dict[str, Any] = {}

    # --- registration ---
    def register_portrait(self, key: str, sprite: Any = None) -> bool:
        k = fold_key(key)
        if not k:
            return False
        if k in self._templates:
            logger.warning(f"Duplicate portrait key '{key.strip()}' ignored (first registration wins)")
            return False
        self._templates[k] = PortraitTemplate(key=key.strip(), sprite=sprite)
        return True

    def register_anchor(self, slot: int, origin: Tuple[float, float] = (0.0, 0.0)) -> bool:
        slot = int(slot)
        if slot in self._anchors:
            logger.warning(f"Duplicate anchor for slot {slot} ignored (first registration wins)")
            return False
        self._anchors[slot] = Anchor(slot=slot, origin=(float(origin[0]), float(origin[1])))
        return True

    def register_sprite(self, sprite_type: str, sprite: Any, portrait_key: Optional[str] = None) -> bool:
        """Register a sprite variant, globally or scoped to one portrait key."""
        k = fold_key(sprite_type)
        if not k or sprite is None:
            return False
        if portrait_key:
            scoped = (fold_key(portrait_key), k)
            if scoped in self._portrait_sprites:
                logger.warning(f"Duplicate sprite '{sprite_type.strip()}' for '{portrait_key}' ignored")
                return False
            self._portrait_sprites[scoped] = sprite
            return True
        if k in self._sprites:
            logger.warning(f"Duplicate sprite type '{sprite_type.strip()}' ignored (first registration wins)")
            return False
        self._sprites[k] = sprite
        return True

    def register_background(self, code: str, visual: Any) -> bool:
        k = fold_key(code)
        if not k or visual is None:
            return False
        if k in self._backgrounds:
            logger.warning(f"Duplicate background code '{code.strip()}' ignored (first registration wins)")
            return False
        self._backgrounds[k] = visual
        return True

    # --- lookups ---
    def template(self, key: str) -> Optional[PortraitTemplate]:
        return self._templates.get(fold_key(key))

    def anchor(self, slot: int) -> Optional[Anchor]:
        return self._anchors.get(int(slot))

    def sprite(self, sprite_type: str, portrait_key: Optional[str] = None) -> Optional[Any]:
        k = fold_key(sprite_type)
        if not k:
            return None
        if portrait_key:
            scoped = self._portrait_sprites.get((fold_key(portrait_key), k))
            if scoped is not None:
                return scoped
        return self._sprites.get(k)

    def background(self, code: str) -> Optional[Any]:
        return self._backgrounds.get(fold_key(code))

    def counts(self) -> Dict[str, int]:
        return {
            "portraits": len(self._templates),
            "anchors": len(self._anchors),
            "sprites": len(self._sprites) + len(self._portrait_sprites),
            "backgrounds": len(self._backgrounds),
        }

    # --- manifest ---
    @classmethod
    def from_manifest(cls, data: Mapping[str, Any], logical_size: Tuple[int, int] = LOGICAL_SIZE) -> "AssetRegistry":
        """Build a registry from a manifest mapping.

        Sections (all optional)::

            {"portraits": {"bob": "ch/bob.png"},
             "anchors": {"0": [0.2, 0.36], "1": [640, 260]},
             "sprites": {"smile": "ch/smile.png"},
             "portrait_sprites": {"bob": {"angry": "ch/bob_angry.png"}},
             "backgrounds": {"park": "bg/park.png"}}

        Sections may also be lists of ``[key, value]`` pairs to keep
        registration order explicit. Anchor coordinates in (0, 1] are
        fractions of ``logical_size``.
        """
        reg = cls()
        for key, sprite in _pairs(data.get("portraits")):
            reg.register_portrait(str(key), sprite)
        for slot, pos in _pairs(data.get("anchors")):
            try:
                x, y = pos
                x, y = float(x), float(y)
                if 0 < x <= 1 and 0 < y <= 1:
                    x, y = logical_size[0] * x, logical_size[1] * y
                reg.register_anchor(int(slot), (x, y))
            except (TypeError, ValueError):
                logger.warning(f"Ignoring malformed anchor {slot!r}: {pos!r}")
        for key, sprite in _pairs(data.get("sprites")):
            reg.register_sprite(str(key), sprite)
        for portrait, variants in _pairs(data.get("portrait_sprites")):
            for key, sprite in _pairs(variants):
                reg.register_sprite(str(key), sprite, portrait_key=str(portrait))
        for code, visual in _pairs(data.get("backgrounds")):
            reg.register_background(str(code), visual)
        return reg

    @classmethod
    def load_manifest(cls, path: str | Path, logical_size: Tuple[int, int] = LOGICAL_SIZE) -> "AssetRegistry":
        p = Path(path)
        data = json.loads(p.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"manifest {p} must be a JSON object")
        return cls.from_manifest(data, logical_size)


def _pairs(section: Any) -> Iterable[Tuple[Any, Any]]:
    if not section:
        return []
    if isinstance(section, Mapping):
        return list(section.items())
    out = []
    for item in section:
        if isinstance(item, (list, tuple)) and len(item) == 2:
            out.append((item[0], item[1]))
        else:
            logger.warning(f"Ignoring malformed manifest entry {item!r}")
    return out
