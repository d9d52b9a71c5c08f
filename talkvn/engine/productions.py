"""
Production effects triggered by a line's ``productionKey``.

Tokens are split on commas, semicolons and whitespace and lower-cased. A
token is looked up as-is first, then as ``<name><count>`` (``jump2`` runs
the ``jump`` effect with a count of 2). Unknown tokens are ignored so
scripts can carry tags for effects this build does not know yet.

Built in:
    jump[N]   primary portrait hops N times (default 1)
    shake[N]  screen root shakes with decaying random offsets (N unused)
"""
from __future__ import annotations

import logging
import random
import re
from typing import Callable, Dict, List, Optional

from ..script.model import Line
from .config_io import PlayerConfig
from .events import EventSystem, LinePresentedEvent
from .portraits import PortraitInstance
from .presenter import TYPEWRITER_KEY, PresentationBinder
from .sequences import Sequence, SequenceRunner, smoothstep
from .surface import Vec2, VisualHandle

logger = logging.getLogger(__name__)

TOKEN_SPLIT_RE = re.compile(r"[,;\s]+")
TOKEN_COUNT_RE = re.compile(r"^([^\d]+?)(\d+)$")

EffectHandler = Callable[["ProductionDispatcher", Line, Optional[int]], None]


class JumpSequence(Sequence):
    """``count`` up-down cycles, each leg eased over half of ``duration``."""

    kind = "jump"

    def __init__(self, target: VisualHandle, count: int, height: float, duration: float) -> None:
        super().__init__()
        self.target = target
        self.count = int(count)
        self.height = float(height)
        self.half = max(0.01, float(duration) * 0.5)
        self.original: Vec2 = target.position

    def start(self) -> None:
        self.original = self.target.position
        if self.count <= 0:
            self._stop(cancelled=False)

    def update(self, dt: float) -> bool:
        self.elapsed += dt
        if self.elapsed >= self.half * 2 * self.count:
            return False
        leg = int(self.elapsed // self.half)
        t = (self.elapsed - leg * self.half) / self.half
        eased = smoothstep(t)
        rise = eased if leg % 2 == 0 else 1.0 - eased
        ox, oy = self.original
        self.target.position = (ox, oy + self.height * rise)
        return True

    def on_stop(self, cancelled: bool) -> None:
        self.target.position = self.original


class ShakeSequence(Sequence):
    """Random offsets on the enabled axes, shrinking linearly to zero."""

    kind = "shake"

    def __init__(
        self,
        target: VisualHandle,
        duration: float,
        strength: float,
        affect_x: bool = True,
        affect_y: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__()
        self.target = target
        self.duration = max(0.01, float(duration))
        self.strength = float(strength)
        self.affect_x = affect_x
        self.affect_y = affect_y
        self.rng = rng or random.Random()
        self.original: Vec2 = target.position

    def start(self) -> None:
        self.original = self.target.position

    def magnitude(self) -> float:
        return self.strength * (1.0 - min(1.0, self.elapsed / self.duration))

    def update(self, dt: float) -> bool:
        self.elapsed += dt
        if self.elapsed >= self.duration:
            return False
        mag = self.magnitude()
        dx = self.rng.uniform(-1.0, 1.0) * mag if self.affect_x else 0.0
        dy = self.rng.uniform(-1.0, 1.0) * mag if self.affect_y else 0.0
        ox, oy = self.original
        self.target.position = (ox + dx, oy + dy)
        return True

    def on_stop(self, cancelled: bool) -> None:
        self.target.position = self.original


def _jump_effect(dispatcher: "ProductionDispatcher", line: Line, count: Optional[int]) -> None:
    dispatcher.trigger_jump(line, count if count is not None else 1)


def _shake_effect(dispatcher: "ProductionDispatcher", line: Line, count: Optional[int]) -> None:
    dispatcher.trigger_shake()


BUILTIN_EFFECTS: Dict[str, EffectHandler] = {
    "jump": _jump_effect,
    "shake": _shake_effect,
}


def tokenize(production_key: Optional[str]) -> List[str]:
    if not production_key:
        return []
    return [t.strip().lower() for t in TOKEN_SPLIT_RE.split(production_key) if t.strip()]


class ProductionDispatcher:
    def __init__(
        self,
        binder: PresentationBinder,
        runner: SequenceRunner,
        events: EventSystem,
        config: Optional[PlayerConfig] = None,
        shake_target: Optional[VisualHandle] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.binder = binder
        self.runner = runner
        self.config = config or binder.config
        self.shake_target = shake_target
        self.rng = rng or random.Random()
        self._effects: Dict[str, EffectHandler] = dict(BUILTIN_EFFECTS)
        self._unsubscribe = events.subscribe(LinePresentedEvent, self.on_line_presented)

    def register_effect(self, name: str, handler: EffectHandler) -> None:
        key = name.strip().lower()
        if key in self._effects:
            logger.debug(f"Replacing production effect '{key}'")
        self._effects[key] = handler

    def effects(self) -> List[str]:
        return sorted(self._effects)

    def on_line_presented(self, event: LinePresentedEvent) -> None:
        line = event.line
        if line is None or not (line.production_key or "").strip():
            return
        for token in tokenize(line.production_key):
            self.dispatch(token, line)

    def dispatch(self, token: str, line: Line) -> bool:
        handler = self._effects.get(token)
        count: Optional[int] = None
        if handler is None:
            m = TOKEN_COUNT_RE.match(token)
            if m:
                handler = self._effects.get(m.group(1))
                count = int(m.group(2))
        if handler is None:
            logger.debug(f"Ignoring unknown production token '{token}'")
            return False
        try:
            handler(self, line, count)
        except Exception as e:
            logger.error(f"Production effect '{token}' failed: {e}", exc_info=True)
            return False
        return True

    def trigger_jump(self, line: Line, count: int = 1) -> Optional[JumpSequence]:
        target = self.binder.primary_portrait(line)
        if target is None or not target.alive:
            return None
        seq = JumpSequence(target, count, self.config.jump_height, self.config.jump_duration)
        self.runner.start((JumpSequence.kind, target), seq)
        return seq

    def trigger_shake(self) -> Optional[ShakeSequence]:
        target = self.shake_target
        if target is None or not target.alive:
            return None
        seq = ShakeSequence(
            target,
            self.config.shake_duration,
            self.config.shake_strength,
            self.config.shake_affect_x,
            self.config.shake_affect_y,
            rng=self.rng,
        )
        self.runner.start((ShakeSequence.kind, target), seq)
        return seq

    def cancel_target(self, target: Optional[VisualHandle]) -> int:
        if target is None:
            return 0
        return self.runner.cancel_where(lambda key, seq: key != TYPEWRITER_KEY and key[1] is target)

    def on_portrait_evicted(self, instance: PortraitInstance) -> None:
        self.cancel_target(instance.handle)

    def stop_all(self) -> int:
        return self.runner.cancel_where(lambda key, seq: key != TYPEWRITER_KEY)

    def close(self) -> None:
        self._unsubscribe()
        self.stop_all()
