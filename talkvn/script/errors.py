from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScriptError(Exception):
    message: str
    line: int | None = None
    context: str | None = None

    def __str__(self) -> str:  # pragma: no cover - formatting
        loc = f" (line {self.line})" if self.line else ""
        ctx = f"\n  >> {self.context}" if self.context else ""
        return f"{self.message}{loc}{ctx}"


class ScriptParseError(ScriptError):
    """Episode source is not a well-formed episode document."""


class EmptyScript(ScriptError):
    """Episode has no usable lines."""


class NoStartLine(ScriptError):
    """Playback cannot pick a line to start from."""
