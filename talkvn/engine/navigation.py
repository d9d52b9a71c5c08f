from __future__ import annotations

from typing import Optional

from ..script.index import IndexedScript
from ..script.model import Line


def resolve_next(index: IndexedScript, current: Optional[Line]) -> Optional[Line]:
    """Pick the line that follows ``current``.

    An explicit ``nextNode`` that names a known node wins; otherwise playback
    falls through to the next line in sequence order; ``None`` ends the
    episode. Backward ``nextNode`` targets loop and are not guarded against.
    """
    if current is None:
        return None
    if current.next_node.strip():
        target = index.lookup(current.next_node)
        if target is not None:
            return target
    pos = index.position_of(current)
    if pos is not None:
        return index.at(pos + 1)
    return None
