"""Authoring pipeline: convert the dialogue spreadsheet (CSV) into episode JSON.

Build-time tool; the runtime only ever reads the JSON it produces.

Columns (positional, first row is a header):
    episodeId, nodeId, lineId, order, speaker, portraitKey, position,
    productionKey, text, tags, nextNode
Optional columns, located by header name after the eleven positional ones:
    BGICode, BGMCode, SpriteType
"""
from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .model import Episode, Line, fold_key

logger = logging.getLogger(__name__)

CSV_FILE_NAME = "dialogue_lines.csv"
REQUIRED_COLUMNS = (
    "episodeId", "nodeId", "lineId", "order", "speaker", "portraitKey",
    "position", "productionKey", "text", "tags", "nextNode",
)
OPTIONAL_COLUMNS = {
    "bgicode": "bgi_code",
    "bgmcode": "bgm_code",
    "spritetype": "sprite_type",
}


def _clean(value: str) -> str:
    return value.replace("\r", "").strip()


def _optional_columns(header: Sequence[str]) -> Dict[str, int]:
    found: Dict[str, int] = {}
    for idx, name in enumerate(header):
        attr = OPTIONAL_COLUMNS.get(_clean(name).casefold())
        if attr and idx >= len(REQUIRED_COLUMNS) and attr not in found:
            found[attr] = idx
    return found


def rows_to_episodes(rows: Iterable[Sequence[str]]) -> List[Episode]:
    """Group spreadsheet rows into episodes, lines sorted by ``order``.

    The first row is treated as the header. Blank rows are ignored; rows with
    too few columns or a non-integer ``order`` are skipped with a warning.
    """
    it = iter(rows)
    header = next(it, None)
    if header is None:
        logger.warning("CSV has no header row; nothing to convert")
        return []
    extra = _optional_columns(header)

    grouped: Dict[str, List[Line]] = {}
    episode_ids: Dict[str, str] = {}
    for row_no, raw in enumerate(it, start=2):
        fields = [_clean(f) for f in raw]
        if not any(fields):
            continue
        if len(fields) < len(REQUIRED_COLUMNS):
            logger.warning(f"Row {row_no}: expected at least {len(REQUIRED_COLUMNS)} columns, got {len(fields)}")
            continue
        try:
            order = int(fields[3])
        except ValueError:
            logger.warning(f"Row {row_no}: order is not an integer ({fields[3]!r})")
            continue
        position = 0
        if fields[6]:
            try:
                position = int(fields[6])
            except ValueError:
                logger.warning(f"Row {row_no}: position is not an integer ({fields[6]!r}); using 0")
        optional = {attr: (fields[idx] if idx < len(fields) else "") for attr, idx in extra.items()}
        line = Line(
            node_id=fields[1],
            line_id=fields[2],
            order=order,
            speaker=fields[4],
            portrait_key=fields[5],
            position=position,
            production_key=fields[7],
            text=fields[8],
            tags=fields[9],
            next_node=fields[10],
            **optional,
        )
        key = fold_key(fields[0])
        episode_ids.setdefault(key, fields[0])
        grouped.setdefault(key, []).append(line)

    episodes = []
    for key, lines in grouped.items():
        lines.sort(key=lambda ln: ln.order)
        episodes.append(Episode(episode_id=episode_ids[key], lines=tuple(lines)))
    return episodes


def parse_csv_text(text: str) -> List[Episode]:
    return rows_to_episodes(csv.reader(io.StringIO(text)))


def write_episode(episode: Episode, out_dir: str | Path) -> Path:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    target = out / f"{episode.episode_id}.json"
    target.write_text(json.dumps(episode.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    return target


def export_csv(csv_path: str | Path, out_dir: str | Path) -> List[Path]:
    """Convert ``csv_path`` into one ``<episodeId>.json`` per episode under ``out_dir``."""
    src = Path(csv_path)
    text = src.read_text(encoding="utf-8-sig")
    episodes = parse_csv_text(text)
    if not episodes:
        logger.warning(f"No dialogue rows to convert in {src}")
        return []
    written = [write_episode(ep, out_dir) for ep in episodes]
    logger.info(f"Converted {src.name}: {len(written)} episode(s)")
    return written


def find_default_csv(base_dir: str | Path) -> Optional[Path]:
    """Locate ``dialogue_lines.csv`` in ``base_dir`` or its ``csv``/``CSV`` folder."""
    base = Path(base_dir)
    for cand in (base / CSV_FILE_NAME, base / "csv" / CSV_FILE_NAME, base / "CSV" / CSV_FILE_NAME):
        if cand.exists():
            return cand
    return None
