from __future__ import annotations

from talkvn.engine.sequences import SequenceRunner, StepResult
from talkvn.engine.typewriter import TypewriterReveal


def make(text, interval=0.5):
    writes = []
    return TypewriterReveal(text, interval, writes.append), writes


def test_first_character_is_shown_immediately():
    tw, writes = make("Hello")
    tw.start()
    assert writes == ["", "H"]
    assert tw.visible_text() == "H"


def test_one_character_per_interval_then_done():
    tw, writes = make("abc")
    tw.start()
    assert tw.step(0.5) is StepResult.CONTINUE
    assert writes[-1] == "ab"
    assert tw.step(0.5) is StepResult.CONTINUE
    assert writes[-1] == "abc"
    # the reveal lasts one interval past the last character
    assert tw.step(0.5) is StepResult.DONE
    assert tw.finished and not tw.cancelled
    assert writes[-1] == "abc"


def test_large_step_catches_up():
    tw, writes = make("abcdef")
    tw.start()
    tw.step(1.25)
    assert writes[-1] == "abc"


def test_skip_shows_full_text():
    tw, writes = make("Hello there")
    tw.start()
    tw.skip()
    assert writes[-1] == "Hello there"
    assert tw.finished and tw.skipped and not tw.cancelled


def test_cancel_leaves_text_alone():
    tw, writes = make("Hello")
    tw.start()
    tw.cancel()
    assert tw.cancelled
    assert writes[-1] == "H"


def test_empty_text_finishes_at_once():
    tw, writes = make("")
    tw.start()
    assert tw.finished
    assert writes[-1] == ""


def test_zero_interval_shows_everything():
    tw, writes = make("Hello", interval=0)
    tw.start()
    assert tw.finished
    assert writes[-1] == "Hello"


def test_multibyte_text_is_revealed_per_code_point():
    tw, writes = make("안녕하세요")
    tw.start()
    assert writes[-1] == "안"
    tw.step(0.5)
    assert writes[-1] == "안녕"
    assert tw.total == 5


def test_driven_by_runner():
    runner = SequenceRunner()
    tw, writes = make("Hi")
    runner.start(("typewriter", "line"), tw)
    runner.tick(0.5)
    assert writes[-1] == "Hi"
    assert runner.is_running(("typewriter", "line"))
    runner.tick(0.5)
    assert not runner.is_running(("typewriter", "line"))
