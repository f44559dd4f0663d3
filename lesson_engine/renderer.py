"""Compose parsed lessons into JSON-ready slides and speech text."""
from __future__ import annotations

import re

from lesson_engine.models import Block
from lesson_engine.parsers.inline_parser import parse_inline
from lesson_engine.parsers.lesson_parser import parse_blocks, to_slides

_SPEECH_STRIP_RE = re.compile(r"[#*`_]")


def render_block(block: Block, vocab: dict[str, str] | None = None) -> dict:
    """``block.to_dict()`` plus parsed inline spans for each text field."""
    d = block.to_dict()

    def spans(text: str) -> list[dict]:
        return [s.to_dict() for s in parse_inline(text, vocab)]

    if block.kind in ("header", "paragraph", "blockquote"):
        d["spans"] = spans(block.text)
    elif block.kind == "list":
        d["item_spans"] = [spans(item) for item in block.items]
    elif block.kind == "table":
        d["header_spans"] = [spans(h) for h in block.headers]
        d["row_spans"] = [[spans(cell) for cell in row] for row in block.rows]
    elif block.kind == "qa":
        d["question_spans"] = spans(block.question)
        d["answer_spans"] = spans(block.answer)
    return d


def render_lesson(source: str | None, vocab: dict[str, str] | None = None) -> dict:
    """Parse, slide and inline-render a lesson in one pass.

    Returns ``{"slides": [[block, ...], ...], "slide_count": n,
    "narration": [text per slide]}``.
    """
    slides = to_slides(parse_blocks(source))
    return {
        "slides": [[render_block(b, vocab) for b in slide] for slide in slides],
        "slide_count": len(slides),
        "narration": [narration_text(slide) for slide in slides],
    }


def narration_text(blocks: list[Block]) -> str:
    """Plain text for reading a slide aloud, markdown characters removed."""
    parts = []
    for b in blocks:
        text = b.text or b.question or ". ".join(b.items)
        if text:
            parts.append(text)
    return _SPEECH_STRIP_RE.sub("", ". ".join(parts))
