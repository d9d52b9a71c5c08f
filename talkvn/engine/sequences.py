"""Cooperative timed sequences driven by the host's per-frame tick.

Each sequence is an explicit state object advanced with ``step(dt)``. The
runner keys sequences by ``(kind, target)``: starting a sequence under a key
that is already running cancels the previous one first, and cancellation
always runs the sequence's restore hook before anything else proceeds.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

SequenceKey = Tuple[str, Hashable]


class StepResult(Enum):
    CONTINUE = "continue"
    DONE = "done"


def smoothstep(t: float) -> float:
    """Ease-in/ease-out on [0, 1] (input clamped)."""
    tt = 0.0 if t <= 0.0 else (1.0 if t >= 1.0 else t)
    return tt * tt * (3 - 2 * tt)


class Sequence:
    kind = "sequence"

    def __init__(self) -> None:
        self.elapsed = 0.0
        self.finished = False
        self.cancelled = False

    # hooks for subclasses
    def start(self) -> None:
        """Called once by the runner after any same-key predecessor was cancelled."""

    def update(self, dt: float) -> bool:
        """Advance by ``dt`` seconds; return False once the sequence is over."""
        raise NotImplementedError

    def on_stop(self, cancelled: bool) -> None:
        """Restore invariant state; runs exactly once, on completion or cancel."""

    # driving
    def step(self, dt: float) -> StepResult:
        if self.finished:
            return StepResult.DONE
        if self.update(max(0.0, float(dt))):
            return StepResult.CONTINUE
        self._stop(cancelled=False)
        return StepResult.DONE

    def cancel(self) -> None:
        if not self.finished:
            self._stop(cancelled=True)

    def _stop(self, cancelled: bool) -> None:
        self.finished = True
        self.cancelled = cancelled
        self.on_stop(cancelled)


class SequenceRunner:
    def __init__(self) -> None:
        self._active: Dict[SequenceKey, Sequence] = {}

    def start(self, key: SequenceKey, seq: Sequence) -> Sequence:
        prev = self._active.pop(key, None)
        if prev is not None:
            logger.debug(f"Cancelling running {key[0]} sequence before restart")
            prev.cancel()
        self._active[key] = seq
        seq.start()
        if seq.finished:
            self._drop(key, seq)
        return seq

    def get(self, key: SequenceKey) -> Optional[Sequence]:
        return self._active.get(key)

    def is_running(self, key: SequenceKey) -> bool:
        return key in self._active

    def cancel(self, key: SequenceKey) -> bool:
        seq = self._active.pop(key, None)
        if seq is None:
            return False
        seq.cancel()
        return True

    def cancel_where(self, predicate: Callable[[SequenceKey, Sequence], bool]) -> int:
        keys = [k for k, s in self._active.items() if predicate(k, s)]
        for k in keys:
            self.cancel(k)
        return len(keys)

    def cancel_all(self) -> int:
        return self.cancel_where(lambda k, s: True)

    def tick(self, dt: float) -> None:
        for key, seq in list(self._active.items()):
            # a sequence cancelled or replaced earlier in this tick is skipped
            if self._active.get(key) is not seq:
                continue
            if seq.step(dt) is StepResult.DONE:
                self._drop(key, seq)

    def _drop(self, key: SequenceKey, seq: Sequence) -> None:
        if self._active.get(key) is seq:
            del self._active[key]

    def __len__(self) -> int:
        return len(self._active)

    # debug helpers
    def counts(self) -> dict:
        """Compact summary of running sequences, e.g. ``{'total': 2, 'kinds': {'jump': 1, 'typewriter': 1}}``."""
        kinds: Dict[str, int] = {}
        for key in self._active:
            kinds[key[0]] = kinds.get(key[0], 0) + 1
        return {"total": len(self._active), "kinds": kinds}
