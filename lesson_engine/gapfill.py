"""Encode and decode ``{{answer}}`` gap tokens in question text.

"The sky is {{blue}}."  ->  answers ["blue"]
                        ->  segments ["The sky is ", "blue", "."]
"""
from __future__ import annotations

import random
import re

GAP_RE = re.compile(r"\{\{(.*?)\}\}")

DEFAULT_PLACEHOLDER = "___"


def extract_answers(text: str | None) -> list[str]:
    """Answers of every gap token, left to right, whitespace trimmed."""
    if not text:
        return []
    return [m.strip() for m in GAP_RE.findall(text)]


def split_for_display(text: str | None) -> list[str]:
    """Split *text* into literal segments (even indices) and answers (odd).

    Always returns ``2k + 1`` segments for ``k`` gaps; with no gaps the
    whole text is the only segment.
    """
    return GAP_RE.split(text or "")


def blank_count(text: str | None) -> int:
    return len(extract_answers(text))


def clue_chips(text: str | None, rng: random.Random | None = None) -> list[str]:
    """The answers in shuffled order, shown as clues for ``gap_with_clues``."""
    chips = extract_answers(text)
    (rng or random).shuffle(chips)
    return chips


def mask_blanks(text: str | None, placeholder: str = DEFAULT_PLACEHOLDER) -> str:
    return GAP_RE.sub(lambda _m: placeholder, text or "")


def fill_blanks(
    text: str | None,
    answers: list[str],
    placeholder: str = DEFAULT_PLACEHOLDER,
) -> str:
    """Replace gap *i* with ``answers[i]``; missing answers keep the placeholder."""
    segments = split_for_display(text)
    out: list[str] = []
    for i, segment in enumerate(segments):
        if i % 2 == 0:
            out.append(segment)
            continue
        idx = i // 2
        value = answers[idx] if idx < len(answers) else ""
        out.append(value if value else placeholder)
    return "".join(out)
