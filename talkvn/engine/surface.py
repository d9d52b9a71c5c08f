from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

Vec2 = Tuple[float, float]


@dataclass(frozen=True)
class Anchor:
    """A position slot's reference frame.

    ``origin`` is in surface pixels (y down, like the screen). A visual's
    local position is an offset from it with y pointing up, so a positive
    vertical offset raises the visual.
    """
    slot: int
    origin: Vec2 = (0.0, 0.0)


@dataclass(frozen=True)
class PortraitTemplate:
    key: str
    sprite: Any = None


@dataclass(eq=False)
class VisualHandle:
    """A positionable visual owned by the surface that created it.

    Compared and hashed by identity so it can key per-target animation state.
    """
    name: str
    sprite: Any = None
    position: Vec2 = (0.0, 0.0)
    rotation: float = 0.0
    scale: float = 1.0
    alpha: float = 1.0
    anchor: Optional[Anchor] = None
    alive: bool = True

    def attach(self, anchor: Optional[Anchor]) -> None:
        """Re-parent to ``anchor`` at a neutral local transform."""
        self.anchor = anchor
        self.position = (0.0, 0.0)
        self.rotation = 0.0
        self.scale = 1.0

    def screen_position(self, default_origin: Vec2 = (0.0, 0.0)) -> Vec2:
        ox, oy = self.anchor.origin if self.anchor else default_origin
        return (ox + self.position[0], oy - self.position[1])


class ISurface:
    """Abstract presentation surface supplied by the host.

    The playback core only talks to the host through this interface.
    """

    root: VisualHandle

    def set_speaker(self, text: str) -> None:
        raise NotImplementedError

    def set_line_text(self, text: str) -> None:
        raise NotImplementedError

    def get_background(self) -> Any:
        raise NotImplementedError

    def set_background(self, visual: Any) -> None:
        raise NotImplementedError

    def create_visual(self, template: PortraitTemplate) -> VisualHandle:
        raise NotImplementedError

    def destroy_visual(self, handle: VisualHandle) -> None:
        raise NotImplementedError


class DummySurface(ISurface):
    """Headless surface that only records state; useful for tests and CLI."""

    def __init__(self, background: Any = None, echo: bool = False) -> None:
        self.root = VisualHandle(name="<root>")
        self.speaker = ""
        self.line_text = ""
        self.background = background
        self.visuals: List[VisualHandle] = []
        self.destroyed: List[VisualHandle] = []
        self.text_writes = 0
        self._echo = echo

    def set_speaker(self, text: str) -> None:
        self.speaker = text

    def set_line_text(self, text: str) -> None:
        self.line_text = text
        self.text_writes += 1

    def get_background(self) -> Any:
        return self.background

    def set_background(self, visual: Any) -> None:
        self.background = visual
        if self._echo:
            print(f"> BG {visual}")  # noqa: T201

    def create_visual(self, template: PortraitTemplate) -> VisualHandle:
        handle = VisualHandle(name=template.key, sprite=template.sprite)
        self.visuals.append(handle)
        return handle

    def destroy_visual(self, handle: VisualHandle) -> None:
        handle.alive = False
        handle.sprite = None
        handle.anchor = None
        try:
            self.visuals.remove(handle)
        except ValueError:
            pass
        self.destroyed.append(handle)

    def live_visuals(self) -> List[VisualHandle]:
        return list(self.visuals)
