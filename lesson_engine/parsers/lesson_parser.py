"""Parse lesson text into content blocks and split blocks into slides.

Supported line syntax:
  # .. ######        headers
  $$ ... $$          math block (may span lines)
  | a | b |          table rows, with a |---|---| separator under the header
  --- / ***          slide break
  > text             blockquote
  - item / * item    list
  Q: ... / A: ...    question-and-answer pair
  // text            comment (ignored)

Anything else is paragraph text; consecutive lines join into one paragraph.
"""
from __future__ import annotations

import logging
import re

from lesson_engine.models import Block

_log = logging.getLogger("lesson_engine.parser")

MAX_HEADER_LEVEL = 6

_LIST_RE = re.compile(r"^[-*]\s")
_QUESTION_RE = re.compile(r"^Q:\s")
_SEPARATOR_CELL_RE = re.compile(r"^-+$")


def parse_blocks(source: str | None) -> list[Block]:
    if not source:
        return []

    lines = source.splitlines()
    blocks: list[Block] = []
    current: Block | None = None

    def flush() -> None:
        nonlocal current
        if current is not None:
            blocks.append(current)
            current = None

    i = 0
    while i < len(lines):
        line = lines[i]
        trim = line.strip()

        # Comments never close the open block
        if trim.startswith("//"):
            i += 1
            continue

        if trim.startswith("$$"):
            flush()
            math_lines = [trim]
            if not trim.endswith("$$") or trim == "$$":
                i += 1
                while i < len(lines):
                    math_lines.append(lines[i])
                    if lines[i].strip().endswith("$$"):
                        break
                    i += 1
                else:
                    _log.debug("Unterminated math block at end of input")
            blocks.append(Block("math", text=_strip_math_delimiters("\n".join(math_lines))))
            i += 1
            continue

        if _is_table_row(trim):
            if current is None or current.kind != "table":
                flush()
                current = Block("table")
            cells = _split_cells(trim)
            if all(_SEPARATOR_CELL_RE.match(c) for c in cells):
                if current.rows and not current.headers:
                    current.headers = current.rows.pop(0)
            else:
                current.rows.append(cells)
            i += 1
            continue
        if current is not None and current.kind == "table":
            flush()

        if trim.startswith("#"):
            flush()
            hashes = len(trim) - len(trim.lstrip("#"))
            blocks.append(Block(
                "header",
                level=min(hashes, MAX_HEADER_LEVEL),
                text=trim[hashes:].strip(),
            ))
            i += 1
            continue

        if trim in ("---", "***"):
            flush()
            blocks.append(Block("hr"))
            i += 1
            continue

        if trim.startswith(">"):
            content = trim[1:].strip()
            if current is not None and current.kind == "blockquote":
                current.text += "\n" + content
            else:
                flush()
                current = Block("blockquote", text=content)
            i += 1
            continue

        if _LIST_RE.match(trim):
            content = trim[2:].strip()
            if current is not None and current.kind == "list":
                current.items.append(content)
            else:
                flush()
                current = Block("list", items=[content])
            i += 1
            continue

        if _QUESTION_RE.match(trim):
            flush()
            question = trim[2:].strip()
            answer = ""
            if i + 1 < len(lines):
                following = lines[i + 1].strip()
                if following.startswith("A:"):
                    answer = following[2:].strip()
                    i += 1
            blocks.append(Block("qa", question=question, answer=answer))
            i += 1
            continue

        if not trim:
            flush()
            i += 1
            continue

        if current is not None and current.kind == "paragraph":
            current.text += "\n" + trim
        else:
            flush()
            current = Block("paragraph", text=trim)
        i += 1

    flush()
    return blocks


def to_slides(blocks: list[Block]) -> list[list[Block]]:
    """Group blocks into slides separated by ``hr`` blocks.

    The separators themselves are dropped. If grouping leaves nothing
    (e.g. the lesson is only slide breaks), all blocks become one slide so
    content is never hidden.
    """
    slides: list[list[Block]] = []
    buffer: list[Block] = []
    for block in blocks:
        if block.kind == "hr":
            if buffer:
                slides.append(buffer)
            buffer = []
        else:
            buffer.append(block)
    if buffer:
        slides.append(buffer)
    if not slides and blocks:
        slides.append(list(blocks))
    return slides


def _is_table_row(trim: str) -> bool:
    return trim.startswith("|") and "|" in trim[1:]


def _split_cells(trim: str) -> list[str]:
    cells = [c.strip() for c in trim.split("|")]
    while cells and cells[0] == "":
        cells.pop(0)
    while cells and cells[-1] == "":
        cells.pop()
    return cells


def _strip_math_delimiters(raw: str) -> str:
    text = raw.strip()
    if text.startswith("$$"):
        text = text[2:]
    if text.endswith("$$"):
        text = text[:-2]
    return text
