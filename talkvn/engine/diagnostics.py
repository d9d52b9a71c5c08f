"""Non-fatal presentation problems (missing templates, anchors, assets).

They degrade a single presentation step and are never raised to callers.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class DiagnosticKind(Enum):
    MISSING_TEMPLATE = "missing_template"
    MISSING_ANCHOR = "missing_anchor"
    MISSING_ASSET = "missing_asset"


@dataclass
class Diagnostic:
    kind: DiagnosticKind
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


class Diagnostics:
    """Bounded log of recent diagnostics; every report is also logged."""

    def __init__(self, capacity: int = 200) -> None:
        self._entries: Deque[Diagnostic] = deque(maxlen=max(1, int(capacity)))

    def report(self, kind: DiagnosticKind, message: str, **context: Any) -> Diagnostic:
        entry = Diagnostic(kind=kind, message=message, context=dict(context))
        self._entries.append(entry)
        logger.warning(f"[{kind.value}] {message}")
        return entry

    def entries(self, kind: Optional[DiagnosticKind] = None) -> List[Diagnostic]:
        if kind is None:
            return list(self._entries)
        return [e for e in self._entries if e.kind == kind]

    def counts(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for e in self._entries:
            out[e.kind.value] = out.get(e.kind.value, 0) + 1
        return out

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
