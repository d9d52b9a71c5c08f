from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "presentation": {
        "char_interval": 0.02,
        "full_alpha": 1.0,
        "inactive_alpha": 0.35,
    },
    "jump": {
        "height": 40.0,
        "duration": 0.25,
    },
    "shake": {
        "duration": 0.4,
        "strength": 20.0,
        "affect_x": True,
        "affect_y": True,
    },
    "playback": {
        "cleanup_on_set_episode": False,
        "advance_on_pointer": True,
    },
}


def _merge(data: Optional[dict]) -> dict:
    out = copy.deepcopy(DEFAULTS)
    if not isinstance(data, dict):
        return out
    for section, values in out.items():
        extra = data.get(section)
        if isinstance(extra, dict):
            # shallow per-section merge; unknown keys are dropped
            values.update({k: v for k, v in extra.items() if k in values})
    return out


def load_config(path: Optional[str | Path] = None) -> dict:
    """Read a JSON config and merge it over DEFAULTS.

    A missing, unreadable or malformed file yields the defaults.
    """
    if path is None:
        return _merge(None)
    p = Path(path)
    try:
        if p.exists():
            return _merge(json.loads(p.read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read config {p}: {e}; using defaults")
    return _merge(None)


def save_config(cfg: dict, path: str | Path) -> bool:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(_merge(cfg), ensure_ascii=False, indent=2), encoding="utf-8")
        return True
    except OSError as e:
        logger.error(f"Failed to write config {p}: {e}")
        return False


def _clamp01(value: Any) -> float:
    return max(0.0, min(1.0, float(value)))


def _non_negative(value: Any) -> float:
    return max(0.0, float(value))


@dataclass
class PlayerConfig:
    char_interval: float = 0.02
    full_alpha: float = 1.0
    inactive_alpha: float = 0.35
    jump_height: float = 40.0
    jump_duration: float = 0.25
    shake_duration: float = 0.4
    shake_strength: float = 20.0
    shake_affect_x: bool = True
    shake_affect_y: bool = True
    cleanup_on_set_episode: bool = False
    advance_on_pointer: bool = True

    @classmethod
    def from_dict(cls, cfg: Optional[dict] = None) -> "PlayerConfig":
        merged = _merge(cfg)

        def get(section: str, key: str, conv: Callable[[Any], Any]) -> Any:
            try:
                return conv(merged[section][key])
            except (TypeError, ValueError):
                logger.warning(f"Invalid config value {section}.{key}={merged[section][key]!r}; using default")
                return conv(DEFAULTS[section][key])

        return cls(
            char_interval=get("presentation", "char_interval", _non_negative),
            full_alpha=get("presentation", "full_alpha", _clamp01),
            inactive_alpha=get("presentation", "inactive_alpha", _clamp01),
            jump_height=get("jump", "height", float),
            jump_duration=get("jump", "duration", _non_negative),
            shake_duration=get("shake", "duration", _non_negative),
            shake_strength=get("shake", "strength", float),
            shake_affect_x=get("shake", "affect_x", bool),
            shake_affect_y=get("shake", "affect_y", bool),
            cleanup_on_set_episode=get("playback", "cleanup_on_set_episode", bool),
            advance_on_pointer=get("playback", "advance_on_pointer", bool),
        )

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> "PlayerConfig":
        return cls.from_dict(load_config(path))

    def to_dict(self) -> dict:
        return {
            "presentation": {
                "char_interval": self.char_interval,
                "full_alpha": self.full_alpha,
                "inactive_alpha": self.inactive_alpha,
            },
            "jump": {"height": self.jump_height, "duration": self.jump_duration},
            "shake": {
                "duration": self.shake_duration,
                "strength": self.shake_strength,
                "affect_x": self.shake_affect_x,
                "affect_y": self.shake_affect_y,
            },
            "playback": {
                "cleanup_on_set_episode": self.cleanup_on_set_episode,
                "advance_on_pointer": self.advance_on_pointer,
            },
        }
