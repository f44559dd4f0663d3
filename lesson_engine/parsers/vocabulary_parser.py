"""Load vocabulary word lists from markdown tables or bulk JSON.

Markdown layout:
  ## Section 1
  ### Unit 1
  | Word | Meaning | Pronunciation |
  |------|---------|---------------|
  | **apple** | আপেল | /ˈæp.əl/ |

The pronunciation column is optional. JSON files hold an array of
``{"en", "bn", "pronunciation", "section", "unit"}`` objects.
"""
from __future__ import annotations

import json
import re
from pathlib import Path

from lesson_engine.models import VocabularyEntry

DEFAULT_SECTION = "General"
DEFAULT_UNIT = "Unit 1"

_ROW_RE = re.compile(r"\|\s*\*\*(.+?)\*\*\s*\|\s*(.+?)\s*\|(?:\s*(.*?)\s*\|)?")


def parse_vocabulary_file(
    path: Path,
    default_section: str = DEFAULT_SECTION,
    default_unit: str = DEFAULT_UNIT,
) -> list[VocabularyEntry]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return entries_from_records(
            json.loads(text), path.name, default_section, default_unit
        )
    return parse_vocabulary_markdown(text, path.name, default_section, default_unit)


def parse_vocabulary_markdown(
    text: str,
    source_file: str = "",
    default_section: str = DEFAULT_SECTION,
    default_unit: str = DEFAULT_UNIT,
) -> list[VocabularyEntry]:
    entries: list[VocabularyEntry] = []
    section = default_section
    unit = default_unit

    for line in text.splitlines():
        stripped = line.strip()

        m = re.match(r"^### (.+)", stripped)
        if m:
            unit = m.group(1).strip()
            continue
        m = re.match(r"^## (.+)", stripped)
        if m:
            section = m.group(1).strip()
            unit = default_unit
            continue

        # Only bold-word rows are entries; header and separator rows fall through
        if not stripped.startswith("|"):
            continue
        m = _ROW_RE.match(stripped)
        if m:
            entries.append(VocabularyEntry(
                en=m.group(1).strip(),
                bn=m.group(2).strip(),
                pronunciation=(m.group(3) or "").strip(),
                section=section,
                unit=unit,
                source_file=source_file,
            ))

    return entries


def parse_vocabulary_json(text: str, source_file: str = "") -> list[VocabularyEntry]:
    """Parse a bulk-upload JSON array.

    Raises ``ValueError`` when the payload is not valid JSON or not an array.
    """
    data = json.loads(text)
    return entries_from_records(data, source_file=source_file)


def entries_from_records(
    data,
    source_file: str = "",
    default_section: str = DEFAULT_SECTION,
    default_unit: str = DEFAULT_UNIT,
) -> list[VocabularyEntry]:
    if not isinstance(data, list):
        raise ValueError("vocabulary JSON must be an array of word objects")
    entries: list[VocabularyEntry] = []
    for item in data:
        if not isinstance(item, dict):
            raise ValueError(f"expected a word object, got {type(item).__name__}")
        entries.append(VocabularyEntry(
            en=str(item.get("en") or ""),
            bn=str(item.get("bn") or ""),
            pronunciation=str(item.get("pronunciation") or ""),
            section=str(item.get("section") or default_section),
            unit=str(item.get("unit") or default_unit),
            source_file=source_file,
        ))
    return entries


def build_vocab_map(entries) -> dict[str, str]:
    """Map lower-cased English words to their meanings.

    Accepts ``VocabularyEntry`` objects or ``{"en", "bn"}`` dicts; entries
    missing either side are skipped. Later duplicates win.
    """
    vocab: dict[str, str] = {}
    for e in entries:
        en = e.get("en") if isinstance(e, dict) else e.en
        bn = e.get("bn") if isinstance(e, dict) else e.bn
        if en and bn:
            vocab[str(en).strip().lower()] = str(bn)
    return vocab
