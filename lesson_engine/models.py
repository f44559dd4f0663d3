from __future__ import annotations

from dataclasses import dataclass, field

QUESTION_TYPES = ("mcq", "gap_with_clues", "gap_no_clues", "rewrite", "classification")


@dataclass
class Block:
    kind: str  # header | paragraph | list | blockquote | math | table | hr | qa
    text: str = ""
    level: int = 0
    items: list[str] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    question: str = ""
    answer: str = ""

    def to_dict(self) -> dict:
        d: dict = {"kind": self.kind}
        if self.kind == "header":
            d["level"] = self.level
            d["text"] = self.text
        elif self.kind in ("paragraph", "blockquote", "math"):
            d["text"] = self.text
        elif self.kind == "list":
            d["items"] = list(self.items)
        elif self.kind == "table":
            d["headers"] = list(self.headers)
            d["rows"] = [list(r) for r in self.rows]
        elif self.kind == "qa":
            d["question"] = self.question
            d["answer"] = self.answer
        return d


@dataclass
class Span:
    kind: str  # text | bold | italic | math | glossary
    text: str = ""
    children: list[Span] = field(default_factory=list)
    word: str = ""
    meaning: str = ""
    source: str = ""  # delimited literal for math leaves, e.g. "$x^2$"

    def to_dict(self) -> dict:
        if self.kind in ("bold", "italic"):
            return {"kind": self.kind, "children": [c.to_dict() for c in self.children]}
        if self.kind == "glossary":
            return {"kind": "glossary", "word": self.word, "meaning": self.meaning}
        if self.kind == "math":
            return {"kind": "math", "text": self.text, "source": self.source}
        return {"kind": "text", "text": self.text}


@dataclass
class VocabularyEntry:
    en: str
    bn: str
    pronunciation: str = ""
    section: str = "General"
    unit: str = "Unit 1"
    source_file: str = ""

    def to_dict(self) -> dict:
        return {
            "en": self.en,
            "bn": self.bn,
            "pronunciation": self.pronunciation,
            "section": self.section,
            "unit": self.unit,
            "source_file": self.source_file,
        }


@dataclass
class Question:
    text: str
    type: str = "mcq"  # mcq | gap_with_clues | gap_no_clues | rewrite | classification
    options: list[str] = field(default_factory=list)
    correct_answer: int | str | None = None  # 1-based index for mcq/classification
    explanation: str = ""
    id: str = ""
    chapter_id: str = ""
    topic_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        """Build a Question from an API body or a stored question document.

        Accepts both the snake_case field names and the document keys
        (``question``, ``correctAnswer``, ``chapterId``, ``topicId``).
        """
        options = data.get("options") or []
        return cls(
            text=str(data.get("text", data.get("question", "")) or ""),
            type=data.get("type") or "mcq",
            options=[str(o) for o in options] if isinstance(options, list) else [],
            correct_answer=data.get("correct_answer", data.get("correctAnswer")),
            explanation=data.get("explanation") or "",
            id=str(data.get("id") or ""),
            chapter_id=str(data.get("chapter_id", data.get("chapterId", "")) or ""),
            topic_id=data.get("topic_id", data.get("topicId")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "text": self.text,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
            "chapter_id": self.chapter_id,
            "topic_id": self.topic_id,
        }


@dataclass
class Evaluation:
    is_correct: bool
    question_type: str
    correct_index: int | None = None  # 0-based, choice questions only
    expected: list[str] = field(default_factory=list)
    per_blank: list[bool] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "is_correct": self.is_correct,
            "question_type": self.question_type,
            "correct_index": self.correct_index,
            "expected": list(self.expected),
            "per_blank": list(self.per_blank),
        }


@dataclass
class LatexIssue:
    severity: str  # error | warning
    message: str

    def __str__(self) -> str:
        return f"{self.severity.capitalize()}: {self.message}"
