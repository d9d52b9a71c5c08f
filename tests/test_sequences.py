from __future__ import annotations

import pytest

from talkvn.engine.sequences import Sequence, SequenceRunner, StepResult, smoothstep


class Countdown(Sequence):
    kind = "countdown"

    def __init__(self, duration, log=None, name=""):
        super().__init__()
        self.duration = duration
        self.log = log if log is not None else []
        self.name = name

    def update(self, dt):
        self.elapsed += dt
        return self.elapsed < self.duration

    def on_stop(self, cancelled):
        self.log.append((self.name, "cancelled" if cancelled else "done"))


def test_smoothstep_endpoints_and_clamp():
    assert smoothstep(0.0) == 0.0
    assert smoothstep(1.0) == 1.0
    assert smoothstep(0.5) == pytest.approx(0.5)
    assert smoothstep(-3) == 0.0
    assert smoothstep(7) == 1.0


def test_sequence_completes_once():
    log = []
    seq = Countdown(1.0, log)
    assert seq.step(0.5) is StepResult.CONTINUE
    assert seq.step(0.5) is StepResult.DONE
    assert seq.step(0.5) is StepResult.DONE
    seq.cancel()
    assert log == [("", "done")]


def test_restart_same_key_cancels_predecessor_first():
    log = []
    runner = SequenceRunner()
    first = runner.start(("jump", "bob"), Countdown(1.0, log, "first"))
    second = runner.start(("jump", "bob"), Countdown(1.0, log, "second"))
    assert first.cancelled
    assert log == [("first", "cancelled")]
    assert runner.get(("jump", "bob")) is second
    assert len(runner) == 1


def test_different_targets_run_side_by_side():
    runner = SequenceRunner()
    runner.start(("jump", "bob"), Countdown(1.0))
    runner.start(("jump", "alice"), Countdown(1.0))
    runner.start(("shake", "root"), Countdown(1.0))
    assert runner.counts() == {"total": 3, "kinds": {"jump": 2, "shake": 1}}


def test_tick_drops_finished():
    log = []
    runner = SequenceRunner()
    runner.start(("a", 1), Countdown(0.5, log, "short"))
    runner.start(("b", 1), Countdown(2.0, log, "long"))
    runner.tick(1.0)
    assert not runner.is_running(("a", 1))
    assert runner.is_running(("b", 1))
    assert log == [("short", "done")]


def test_cancel_where_and_cancel_all():
    log = []
    runner = SequenceRunner()
    runner.start(("jump", 1), Countdown(1.0, log, "j"))
    runner.start(("shake", 1), Countdown(1.0, log, "s"))
    assert runner.cancel_where(lambda key, seq: key[0] == "jump") == 1
    assert log == [("j", "cancelled")]
    assert runner.cancel_all() == 1
    assert len(runner) == 0
    assert runner.cancel(("jump", 1)) is False


def test_sequence_replaced_during_tick_is_not_stepped():
    runner = SequenceRunner()
    replaced = Countdown(5.0, name="old")

    class Replacer(Countdown):
        def update(self, dt):
            runner.start(("x", 1), Countdown(5.0, name="new"))
            return super().update(dt)

    runner.start(("r", 1), Replacer(5.0))
    runner.start(("x", 1), replaced)
    runner.tick(1.0)
    assert replaced.cancelled
    assert replaced.elapsed == 0.0
    assert runner.get(("x", 1)).elapsed == 0.0
