"""Typewriter reveal: one character of the line text per fixed interval."""
from __future__ import annotations

from typing import Callable

from .sequences import Sequence


class TypewriterReveal(Sequence):
    """Reveals ``text`` left to right through ``on_text``.

    The first character appears as soon as the reveal starts, the next one
    after each ``interval`` seconds; the reveal ends one interval after the
    last character. ``skip()`` shows the full text at once. Characters are
    Python code points, so multi-byte text is never split mid-character.
    """

    kind = "typewriter"

    def __init__(self, text: str, interval: float, on_text: Callable[[str], None]) -> None:
        super().__init__()
        self.text = text or ""
        self.interval = max(0.0, float(interval))
        self.revealed = 0
        self.skipped = False
        self._on_text = on_text

    @property
    def total(self) -> int:
        return len(self.text)

    def visible_text(self) -> str:
        return self.text[: self.revealed]

    def start(self) -> None:
        self._on_text("")
        if not self.text or self.interval <= 0.0:
            self.revealed = self.total
            self._stop(cancelled=False)
            return
        self._reveal(1)

    def update(self, dt: float) -> bool:
        self.elapsed += dt
        if self.elapsed >= self.total * self.interval:
            return False
        self._reveal(min(self.total, 1 + int(self.elapsed / self.interval)))
        return True

    def skip(self) -> None:
        if self.finished:
            return
        self.skipped = True
        self._stop(cancelled=False)

    def on_stop(self, cancelled: bool) -> None:
        # a reveal superseded by the next line leaves the display to its successor
        if not cancelled:
            self.revealed = self.total
            self._on_text(self.text)

    def _reveal(self, count: int) -> None:
        if count != self.revealed:
            self.revealed = count
            self._on_text(self.text[:count])
