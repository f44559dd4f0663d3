"""Parse inline lesson markup into a tree of spans.

Stages run outermost first, and each stage only sees the plain text the
previous stage left behind:

  1. inline math        $...$
  2. glossary           {{word|meaning}}
  3. bold               **text**
  4. italic             *text*
  5. vocabulary words   looked up in the caller's vocabulary map

Unmatched delimiters are never split out, so they stay literal text.
"""
from __future__ import annotations

import re
from collections.abc import Iterator

from lesson_engine.models import Span

MATH_RE = re.compile(r"(\$[^$]+\$)")
GLOSSARY_RE = re.compile(r"(\{\{.*?\}\})")
BOLD_RE = re.compile(r"(\*\*[^*]+\*\*)")
ITALIC_RE = re.compile(r"(\*[^*]+\*)")
# Letters with an optional interior straight apostrophe ("it's", "don't")
WORD_RE = re.compile(r"(\b[a-zA-Z]+(?:'[a-z]+)?\b)")


def parse_inline(text: str | None, vocab: dict[str, str] | None = None) -> list[Span]:
    if not text:
        return []
    spans: list[Span] = []
    for matched, part in _split(MATH_RE, text):
        if matched:
            spans.append(Span("math", text=part[1:-1], source=part))
        else:
            spans.extend(_parse_glossary(part, vocab))
    return _merge_text(spans)


def _split(pattern: re.Pattern, text: str) -> Iterator[tuple[bool, str]]:
    """Yield ``(is_match, segment)`` pairs, skipping empty segments.

    *pattern* has exactly one capture group, so ``re.split`` puts the
    matches at odd indices.
    """
    for i, part in enumerate(pattern.split(text)):
        if part:
            yield i % 2 == 1, part


def _parse_glossary(text: str, vocab: dict[str, str] | None) -> list[Span]:
    spans: list[Span] = []
    for matched, part in _split(GLOSSARY_RE, text):
        if not matched:
            spans.extend(_parse_bold(part, vocab))
            continue
        word, sep, meaning = part[2:-2].partition("|")
        if sep:
            spans.append(Span("glossary", word=word, meaning=meaning))
        else:
            spans.append(Span("text", text=part))
    return spans


def _parse_bold(text: str, vocab: dict[str, str] | None) -> list[Span]:
    spans: list[Span] = []
    for matched, part in _split(BOLD_RE, text):
        if matched:
            spans.append(Span("bold", children=_merge_text(_parse_italic(part[2:-2], vocab))))
        else:
            spans.extend(_parse_italic(part, vocab))
    return spans


def _parse_italic(text: str, vocab: dict[str, str] | None) -> list[Span]:
    spans: list[Span] = []
    for matched, part in _split(ITALIC_RE, text):
        if matched:
            spans.append(Span("italic", children=highlight_vocabulary(part[1:-1], vocab)))
        else:
            spans.extend(highlight_vocabulary(part, vocab))
    return spans


def highlight_vocabulary(text: str, vocab: dict[str, str] | None) -> list[Span]:
    """Turn known vocabulary words in *text* into glossary spans.

    The displayed word keeps its original casing; lookups use the
    lower-cased form.
    """
    if not text:
        return []
    if not vocab:
        return [Span("text", text=text)]
    spans: list[Span] = []
    for matched, part in _split(WORD_RE, text):
        meaning = vocab.get(part.lower()) if matched else None
        if meaning:
            spans.append(Span("glossary", word=part, meaning=meaning))
        else:
            spans.append(Span("text", text=part))
    return _merge_text(spans)


def spans_to_text(spans: list[Span]) -> str:
    """Flatten a span tree back to plain text (markup removed)."""
    out: list[str] = []
    for span in spans:
        if span.kind in ("bold", "italic"):
            out.append(spans_to_text(span.children))
        elif span.kind == "glossary":
            out.append(span.word)
        else:
            out.append(span.text)
    return "".join(out)


def _merge_text(spans: list[Span]) -> list[Span]:
    merged: list[Span] = []
    for span in spans:
        if span.kind == "text" and merged and merged[-1].kind == "text":
            merged[-1] = Span("text", text=merged[-1].text + span.text)
        else:
            merged.append(span)
    return merged
