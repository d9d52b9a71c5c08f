from __future__ import annotations

import json

from talkvn.script.csv_export import export_csv, find_default_csv, parse_csv_text
from talkvn.script.loader import load_episode_file

HEADER = "episodeId,nodeId,lineId,order,speaker,portraitKey,position,productionKey,text,tags,nextNode"


def csv_text(*rows, header=HEADER):
    return "\n".join([header, *rows]) + "\n"


def test_rows_grouped_and_sorted():
    episodes = parse_csv_text(csv_text(
        "ep1,b,L2,2,bob,bob,0,,Bye,,",
        "ep2,x,L9,1,alice,alice,1,shake,Yo,,",
        "EP1,a,L1,1,bob,bob,0,jump,\"Hi, there\",greeting,",
    ))
    assert [ep.episode_id for ep in episodes] == ["ep1", "ep2"]
    ep1 = episodes[0]
    assert [ln.node_id for ln in ep1.lines] == ["a", "b"]
    assert ep1.lines[0].text == "Hi, there"
    assert ep1.lines[0].production_key == "jump"
    assert ep1.lines[0].tags == "greeting"


def test_bad_rows_are_skipped(caplog):
    episodes = parse_csv_text(csv_text(
        "ep1,a,L1,1,bob",
        "ep1,b,L2,first,bob,bob,0,,text,,",
        "",
        "ep1,c,L3,3,bob,bob,left,,kept,,",
    ))
    [ep] = episodes
    assert [ln.node_id for ln in ep.lines] == ["c"]
    assert ep.lines[0].position == 0
    assert "expected at least 11 columns" in caplog.text
    assert "order is not an integer" in caplog.text
    assert "using 0" in caplog.text


def test_optional_columns_by_header():
    episodes = parse_csv_text(csv_text(
        "ep1,a,L1,1,bob,bob,0,,Hi,,,park,theme,smile",
        "ep1,b,L2,2,bob,bob,0,,Bye,,",
        header=HEADER + ",BGICode,BGMCode,SpriteType",
    ))
    a, b = episodes[0].lines
    assert (a.bgi_code, a.bgm_code, a.sprite_type) == ("park", "theme", "smile")
    assert (b.bgi_code, b.sprite_type) == ("", "")


def test_header_only():
    assert parse_csv_text(HEADER + "\n") == []
    assert parse_csv_text("") == []


def test_export_writes_one_file_per_episode(tmp_path):
    src = tmp_path / "dialogue_lines.csv"
    src.write_text("\ufeff" + csv_text(
        "ep1,a,L1,1,민수,minsu,0,,안녕하세요,,",
        "ep2,x,L1,1,bob,bob,0,,Hi,,",
    ), encoding="utf-8")
    out = tmp_path / "out"
    written = export_csv(src, out)
    assert sorted(p.name for p in written) == ["ep1.json", "ep2.json"]
    raw = (out / "ep1.json").read_text(encoding="utf-8")
    assert "안녕하세요" in raw
    assert json.loads(raw)["episodeId"] == "ep1"
    ep = load_episode_file(out / "ep1.json")
    assert ep.lines[0].speaker == "민수"


def test_find_default_csv(tmp_path):
    assert find_default_csv(tmp_path) is None
    (tmp_path / "csv").mkdir()
    target = tmp_path / "csv" / "dialogue_lines.csv"
    target.write_text(HEADER + "\n", encoding="utf-8")
    assert find_default_csv(tmp_path) == target


def test_optional_names_in_positional_columns_stay_positional():
    header = "episodeId,nodeId,lineId,order,speaker,portraitKey,position,productionKey,text,BGICode,nextNode"
    [ep] = parse_csv_text(csv_text("ep1,a,L1,1,bob,bob,0,,Hi,park,", header=header))
    line = ep.lines[0]
    assert line.tags == "park"
    assert line.bgi_code == ""
