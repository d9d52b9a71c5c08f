"""Parse episode documents (the JSON produced by the CSV export tool)."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from .errors import EmptyScript, ScriptParseError
from .model import Episode, Line

logger = logging.getLogger(__name__)

# document field -> (Line attribute, accepted spellings)
STRING_FIELDS = {
    "node_id": ("nodeId",),
    "line_id": ("lineId",),
    "speaker": ("speaker",),
    "portrait_key": ("portraitKey",),
    "production_key": ("productionKey",),
    "bgi_code": ("BGICode", "bgiCode"),
    "bgm_code": ("BGMCode", "bgmCode"),
    "sprite_type": ("spriteType", "SpriteType"),
    "text": ("text",),
    "tags": ("tags",),
    "next_node": ("nextNode",),
}

Payload = Union[str, bytes, bytearray, Mapping[str, Any]]


def _pick(data: Mapping[str, Any], names: tuple) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return None


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise TypeError(f"expected string, got {type(value).__name__}")


def _as_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise TypeError("expected integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f"expected integer, got {type(value).__name__}")


def parse_line(data: Any, index: int = 0) -> Line:
    """Build a Line from one entry of an episode's ``lines`` array.

    ``index`` is the 0-based position in the array and only feeds error
    messages.
    """
    if not isinstance(data, Mapping):
        raise ScriptParseError("line entry must be an object", line=index + 1, context=repr(data)[:80])
    kwargs: Dict[str, Any] = {}
    for attr, names in STRING_FIELDS.items():
        try:
            kwargs[attr] = _as_str(_pick(data, names))
        except TypeError as e:
            raise ScriptParseError(f"field '{names[0]}': {e}", line=index + 1) from e
    for attr, name in (("order", "order"), ("position", "position")):
        try:
            kwargs[attr] = _as_int(data.get(name))
        except (TypeError, ValueError) as e:
            raise ScriptParseError(f"field '{name}' is not an integer", line=index + 1, context=repr(data.get(name))) from e
    return Line(**kwargs)


def parse_episode(payload: Payload) -> Episode:
    """Parse an episode document.

    Accepts JSON text, UTF-8 bytes (BOM tolerated) or an already decoded
    mapping. Raises ScriptParseError for malformed documents and EmptyScript
    when the ``lines`` array is empty.
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ScriptParseError("episode payload is not valid UTF-8") from e
    if isinstance(payload, str):
        try:
            data = json.loads(payload.lstrip("\ufeff"))
        except json.JSONDecodeError as e:
            raise ScriptParseError(f"invalid JSON: {e.msg}", line=e.lineno) from e
    else:
        data = payload
    if not isinstance(data, Mapping):
        raise ScriptParseError("episode document must be an object")
    try:
        episode_id = _as_str(data.get("episodeId"))
    except TypeError as e:
        raise ScriptParseError(f"field 'episodeId': {e}") from e
    raw_lines = data.get("lines")
    if raw_lines is None:
        raw_lines = []
    if not isinstance(raw_lines, list):
        raise ScriptParseError("field 'lines' must be an array")
    if not raw_lines:
        raise EmptyScript(f"episode '{episode_id}' has no lines")
    lines: List[Line] = [parse_line(item, i) for i, item in enumerate(raw_lines)]
    logger.debug(f"Parsed episode '{episode_id}' with {len(lines)} lines")
    return Episode(episode_id=episode_id, lines=tuple(lines))


def load_episode_file(path: str | Path) -> Episode:
    p = Path(path)
    try:
        raw = p.read_bytes()
    except OSError as e:
        raise ScriptParseError(f"cannot read episode file: {e.strerror or e}", context=str(p)) from e
    return parse_episode(raw)
