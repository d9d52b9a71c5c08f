from __future__ import annotations

import logging
from typing import Any, Optional, Set

from ..script.model import Line, fold_key
from .config_io import PlayerConfig
from .diagnostics import DiagnosticKind, Diagnostics
from .events import EventSystem, LinePresentedEvent
from .portraits import PortraitInstance, PortraitSlotManager
from .registry import AssetRegistry
from .sequences import SequenceRunner
from .surface import ISurface, VisualHandle
from .typewriter import TypewriterReveal

logger = logging.getLogger(__name__)

TYPEWRITER_KEY = ("typewriter", "line")


class PresentationBinder:
    """Applies a line to the surface: speaker, text reveal, portraits,
    slot position, background and sprite variant, then emits
    LinePresentedEvent."""

    def __init__(
        self,
        surface: ISurface,
        registry: AssetRegistry,
        portraits: PortraitSlotManager,
        runner: SequenceRunner,
        events: EventSystem,
        config: Optional[PlayerConfig] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self.surface = surface
        self.registry = registry
        self.portraits = portraits
        self.runner = runner
        self.events = events
        self.config = config or PlayerConfig()
        self.diagnostics = diagnostics or portraits.diagnostics
        self.current_line: Optional[Line] = None
        # whatever the host showed before any line; restored at episode end
        self._default_background: Any = surface.get_background()

    def present(self, line: Line) -> None:
        self.current_line = line
        self.surface.set_speaker(line.speaker or "")
        self.surface.set_line_text("")
        primary = self._update_portraits(line)
        self._apply_position(line, primary)
        self._apply_background(line)
        self._apply_sprite(line, primary)
        self._start_reveal(line.text)
        self.events.emit(LinePresentedEvent(line=line))

    # --- typewriter ---
    @property
    def is_typing(self) -> bool:
        seq = self.runner.get(TYPEWRITER_KEY)
        return seq is not None and not seq.finished

    def skip_reveal(self) -> bool:
        seq = self.runner.get(TYPEWRITER_KEY)
        if not isinstance(seq, TypewriterReveal) or seq.finished:
            return False
        seq.skip()
        self.runner.cancel(TYPEWRITER_KEY)  # already finished; just unregisters
        return True

    def halt(self) -> None:
        """Stop any running reveal without touching the displayed text."""
        self.runner.cancel(TYPEWRITER_KEY)
        self.current_line = None

    def _start_reveal(self, text: str) -> None:
        self.runner.start(TYPEWRITER_KEY, TypewriterReveal(text or "", self.config.char_interval, self.surface.set_line_text))

    # --- portraits ---
    def primary_portrait(self, line: Line) -> Optional[VisualHandle]:
        """Visual of the line's first portrait token, if it is on screen."""
        inst = self.portraits.get(line.primary_portrait_key())
        return inst.handle if inst is not None and inst.alive else None

    def _update_portraits(self, line: Line) -> Optional[PortraitInstance]:
        """Ensure every token's portrait and dim the inactive ones; returns the primary."""
        active: Set[str] = set()
        primary: Optional[PortraitInstance] = None
        for i, key in enumerate(line.portrait_keys()):
            active.add(fold_key(key))
            inst = self.portraits.ensure(key)
            if i == 0:
                primary = inst
        for inst in self.portraits.live():
            if inst.handle is None:
                continue
            is_active = fold_key(inst.key) in active
            inst.handle.alpha = self.config.full_alpha if is_active else self.config.inactive_alpha
        return primary

    def _apply_position(self, line: Line, inst: Optional[PortraitInstance]) -> None:
        if inst is None:
            return
        anchor = self.registry.anchor(line.position)
        if anchor is None:
            self.diagnostics.report(DiagnosticKind.MISSING_ANCHOR, f"No anchor registered for position {line.position}", slot=line.position, node=line.node_id)
            return
        self.portraits.assign_slot(inst, line.position, anchor)

    def _apply_background(self, line: Line) -> None:
        code = (line.bgi_code or "").strip()
        if not code:
            return
        visual = self.registry.background(code)
        if visual is None:
            self.diagnostics.report(DiagnosticKind.MISSING_ASSET, f"No background registered for '{code}'", background=code, node=line.node_id)
            return
        self.surface.set_background(visual)

    def _apply_sprite(self, line: Line, inst: Optional[PortraitInstance]) -> None:
        if inst is None or inst.handle is None:
            return
        sprite = None
        sprite_type = (line.sprite_type or "").strip()
        if sprite_type:
            sprite = self.registry.sprite(sprite_type, portrait_key=inst.key)
            if sprite is None:
                self.diagnostics.report(DiagnosticKind.MISSING_ASSET, f"No sprite '{sprite_type}' for portrait '{inst.key}'", sprite=sprite_type, portrait=inst.key)
        if sprite is None:
            template = self.registry.template(inst.key)
            sprite = template.sprite if template is not None else None
        if sprite is not None and inst.handle.sprite is not sprite:
            inst.handle.sprite = sprite

    def restore_default_background(self) -> None:
        if self._default_background is not None:
            self.surface.set_background(self._default_background)
