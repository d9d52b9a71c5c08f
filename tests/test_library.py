from __future__ import annotations

import json

from talkvn.engine.config_io import PlayerConfig
from talkvn.engine.controller import PlaybackController, PlaybackStatus
from talkvn.engine.library import EpisodeLibrary
from talkvn.script.model import Episode, Line


def make_library():
    return EpisodeLibrary(PlaybackController(config=PlayerConfig(char_interval=0)))


def ep(episode_id, text="x"):
    return Episode(episode_id=episode_id, lines=(Line("a", text=text),))


def test_play_by_id_is_case_insensitive():
    lib = make_library()
    lib.add(ep("Intro", "hello"))
    assert lib.play_by_id(" intro ") is True
    assert lib.controller.episode_id == "Intro"
    assert lib.controller.status is PlaybackStatus.PRESENTING
    assert lib.controller.surface.line_text == "hello"


def test_duplicate_id_last_wins(caplog):
    lib = make_library()
    lib.add(ep("intro", "first"))
    lib.add(ep("INTRO", "second"))
    assert "Duplicate episodeId" in caplog.text
    assert lib.get("intro").lines[0].text == "second"
    assert len(lib) == 2
    assert lib.ids() == ["INTRO"]


def test_unknown_and_empty_ids():
    lib = make_library()
    lib.add(ep("intro"))
    assert lib.play_by_id("outro") is False
    assert lib.play_by_id("  ") is False
    assert lib.controller.status is PlaybackStatus.IDLE


def test_play_by_index():
    lib = make_library()
    lib.add(ep("one"))
    lib.add(ep("two"))
    assert lib.play_by_index(1) is True
    assert lib.controller.episode_id == "two"
    assert lib.play_by_index(2) is False
    assert lib.play_by_index(-1) is False


def test_unplayable_episode_returns_false():
    lib = make_library()
    lib.add(Episode(episode_id="blank", lines=(Line(""),)))
    assert lib.play_by_id("blank") is False


def test_load_directory_skips_bad_files(tmp_path, caplog):
    (tmp_path / "a.json").write_text(json.dumps({"episodeId": "a", "lines": [{"nodeId": "n"}]}), encoding="utf-8")
    (tmp_path / "b.json").write_text("{broken", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    lib = make_library()
    assert lib.load_directory(tmp_path) == 1
    assert lib.ids() == ["a"]
    assert "Skipping b.json" in caplog.text
