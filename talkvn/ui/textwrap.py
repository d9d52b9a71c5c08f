from __future__ import annotations

from typing import Callable, List


def _is_char_wrapped(ch: str) -> bool:
    # Han ideographs, kana and full-width forms break anywhere
    return (
        "\u4e00" <= ch <= "\u9fff"
        or "\u3040" <= ch <= "\u30ff"
        or "\uff00" <= ch <= "\uffef"
    )


def _break_chars(word: str, measure: Callable[[str], int], max_width: int) -> List[str]:
    out: List[str] = []
    cur = ""
    for ch in word:
        if cur and measure(cur + ch) > max_width:
            out.append(cur)
            cur = ch
        else:
            cur += ch
    if cur:
        out.append(cur)
    return out


def wrap_text(text: str, measure: Callable[[str], int], max_width: int) -> List[str]:
    """Wrap dialogue text to ``max_width`` pixels using ``measure``.

    Paragraphs containing Han/kana are wrapped per character; everything
    else (Latin, Hangul) per space-separated word, with words wider than a
    whole line broken by character. Explicit newlines are kept, blank
    paragraphs included.
    """
    out: List[str] = []
    for para in (text or "").split("\n"):
        if para == "":
            out.append("")
            continue
        if any(_is_char_wrapped(ch) for ch in para):
            out.extend(_break_chars(para, measure, max_width))
            continue
        cur = ""
        for word in para.split():
            test = f"{cur} {word}" if cur else word
            if measure(test) <= max_width:
                cur = test
                continue
            if cur:
                out.append(cur)
            if measure(word) <= max_width:
                cur = word
            else:
                pieces = _break_chars(word, measure, max_width)
                out.extend(pieces[:-1])
                cur = pieces[-1]
        if cur:
            out.append(cur)
    return out
