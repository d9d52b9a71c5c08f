from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..script.model import fold_key
from .diagnostics import DiagnosticKind, Diagnostics
from .registry import AssetRegistry
from .surface import Anchor, ISurface, VisualHandle

logger = logging.getLogger(__name__)

UNASSIGNED = None


@dataclass(eq=False)
class PortraitInstance:
    key: str
    handle: Optional[VisualHandle]
    slot: Optional[int] = UNASSIGNED

    @property
    def alive(self) -> bool:
        return self.handle is not None and self.handle.alive


class PortraitSlotManager:
    """Owns live portrait instances and the slots they occupy.

    Invariants: at most one live instance per (case-insensitive) key, at most
    one instance per slot, and ``instance.slot`` is set exactly when the slot
    map points back at that instance.
    """

    def __init__(self, surface: ISurface, registry: AssetRegistry, diagnostics: Optional[Diagnostics] = None) -> None:
        self.surface = surface
        self.registry = registry
        self.diagnostics = diagnostics or Diagnostics()
        self._by_key: Dict[str, PortraitInstance] = {}
        self._by_slot: Dict[int, PortraitInstance] = {}
        self._evict_listeners: List[Callable[[PortraitInstance], None]] = []

    def add_evict_listener(self, fn: Callable[[PortraitInstance], None]) -> Callable[[], None]:
        """Call ``fn(instance)`` just before an instance's visual is released."""
        if fn not in self._evict_listeners:
            self._evict_listeners.append(fn)

        def unsubscribe() -> None:
            try:
                self._evict_listeners.remove(fn)
            except ValueError:
                pass
        return unsubscribe

    def get(self, key: str) -> Optional[PortraitInstance]:
        return self._by_key.get(fold_key(key))

    def occupant(self, slot: int) -> Optional[PortraitInstance]:
        return self._by_slot.get(slot)

    def live(self) -> List[PortraitInstance]:
        return list(self._by_key.values())

    def ensure(self, key: str) -> Optional[PortraitInstance]:
        k = fold_key(key)
        if not k:
            return None
        existing = self._by_key.get(k)
        if existing is not None:
            if existing.alive:
                return existing
            # visual released behind our back; drop the stale records
            self._forget(existing)
        template = self.registry.template(key)
        if template is None:
            self.diagnostics.report(DiagnosticKind.MISSING_TEMPLATE, f"No portrait template registered for '{key.strip()}'", key=key.strip())
            return None
        handle = self.surface.create_visual(template)
        inst = PortraitInstance(key=template.key, handle=handle)
        self._by_key[k] = inst
        logger.debug(f"Created portrait '{template.key}'")
        return inst

    def assign_slot(self, instance: PortraitInstance, slot: int, anchor: Anchor) -> None:
        if not instance.alive or self._by_key.get(fold_key(instance.key)) is not instance:
            logger.debug(f"Ignoring slot assignment for dead portrait '{instance.key}'")
            return
        previous = self._by_slot.get(slot)
        if previous is not None and previous is not instance:
            logger.debug(f"Slot {slot}: evicting '{previous.key}' for '{instance.key}'")
            self.evict(previous)
        if instance.slot is not UNASSIGNED and instance.slot != slot and self._by_slot.get(instance.slot) is instance:
            del self._by_slot[instance.slot]
        instance.handle.attach(anchor)
        instance.slot = slot
        self._by_slot[slot] = instance

    def evict(self, instance: PortraitInstance) -> None:
        for fn in list(self._evict_listeners):
            try:
                fn(instance)
            except Exception as e:
                logger.error(f"Evict listener failed for '{instance.key}': {e}", exc_info=True)
        self._forget(instance)
        if instance.handle is not None:
            self.surface.destroy_visual(instance.handle)
        instance.handle = None
        instance.slot = UNASSIGNED

    def cleanup_all(self) -> int:
        instances = list(self._by_key.values())
        for inst in instances:
            self.evict(inst)
        self._by_key.clear()
        self._by_slot.clear()
        if instances:
            logger.debug(f"Cleaned up {len(instances)} portrait(s)")
        return len(instances)

    def _forget(self, instance: PortraitInstance) -> None:
        k = fold_key(instance.key)
        if self._by_key.get(k) is instance:
            del self._by_key[k]
        if instance.slot is not UNASSIGNED and self._by_slot.get(instance.slot) is instance:
            del self._by_slot[instance.slot]

    def check_consistency(self) -> bool:
        """True when the key and slot maps agree (used by tests and debug HUDs)."""
        for slot, inst in self._by_slot.items():
            if inst.slot != slot or self._by_key.get(fold_key(inst.key)) is not inst:
                return False
        for inst in self._by_key.values():
            if inst.slot is not UNASSIGNED and self._by_slot.get(inst.slot) is not inst:
                return False
        return True
