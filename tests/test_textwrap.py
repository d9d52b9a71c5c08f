from __future__ import annotations

from talkvn.ui.textwrap import wrap_text


def fake_measure_factory(char_widths: dict, default: int = 10):
    def measure(s: str) -> int:
        w = 0
        for ch in s:
            w += char_widths.get(ch, default)
        return w
    return measure


def test_wrap_cjk_char_based():
    # 12px per char, 36px wide -> 3 chars per row
    measure = fake_measure_factory({}, default=12)
    assert wrap_text("你好世界再见", measure, 36) == ["你好世", "界再见"]


def test_wrap_word_based():
    measure = fake_measure_factory({" ": 5}, default=5)
    assert wrap_text("hello world test", measure, 25) == ["hello", "world", "test"]


def test_hangul_wraps_by_word():
    measure = fake_measure_factory({}, default=10)
    assert wrap_text("안녕 하세요", measure, 30) == ["안녕", "하세요"]


def test_overlong_word_is_broken():
    measure = fake_measure_factory({}, default=10)
    assert wrap_text("hi abcdefgh", measure, 30) == ["hi", "abc", "def", "gh"]


def test_wrap_mixed_newlines():
    measure = fake_measure_factory({}, default=10)
    assert wrap_text("第一行\n\nthird line", measure, 100) == ["第一行", "", "third line"]


def test_empty_text():
    assert wrap_text("", lambda s: len(s), 10) == [""]
