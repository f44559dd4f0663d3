from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from lesson_engine.models import Question, VocabularyEntry
from lesson_engine.parsers.vocabulary_parser import build_vocab_map

SCHEMA = """
CREATE TABLE IF NOT EXISTS vocabulary (
    en TEXT PRIMARY KEY COLLATE NOCASE,
    bn TEXT NOT NULL,
    pronunciation TEXT,
    section TEXT,
    unit TEXT,
    source_file TEXT
);

CREATE TABLE IF NOT EXISTS topics (
    id TEXT PRIMARY KEY,
    chapter_id TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS questions (
    id TEXT PRIMARY KEY,
    chapter_id TEXT NOT NULL,
    topic_id TEXT,
    question_type TEXT NOT NULL,
    text TEXT NOT NULL,
    options_json TEXT NOT NULL DEFAULT '[]',
    correct_answer_json TEXT,
    explanation TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS attempts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    question_id TEXT NOT NULL,
    answer_json TEXT,
    is_correct INTEGER NOT NULL,
    answered_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS file_mtimes (
    file_path TEXT PRIMARY KEY,
    mtime_ns INTEGER NOT NULL
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_question(row: sqlite3.Row) -> Question:
    raw_answer = row["correct_answer_json"]
    return Question(
        id=row["id"],
        chapter_id=row["chapter_id"],
        topic_id=row["topic_id"],
        type=row["question_type"],
        text=row["text"],
        options=json.loads(row["options_json"] or "[]"),
        correct_answer=json.loads(raw_answer) if raw_answer is not None else None,
        explanation=row["explanation"] or "",
    )


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ── Vocabulary ────────────────────────────────────────────────────────

    def delete_vocabulary_by_source(self, source_file: str) -> int:
        """Remove all words originally imported from *source_file*."""
        cur = self.conn.execute(
            "DELETE FROM vocabulary WHERE source_file = ?", (source_file,)
        )
        self.conn.commit()
        return cur.rowcount

    def import_vocabulary(self, entries: list[VocabularyEntry]) -> int:
        """Insert or update words; a re-imported word takes the new meaning."""
        count = 0
        for e in entries:
            if not e.en.strip() or not e.bn.strip():
                continue
            self.conn.execute(
                "INSERT OR REPLACE INTO vocabulary "
                "(en, bn, pronunciation, section, unit, source_file) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (e.en.strip(), e.bn, e.pronunciation, e.section, e.unit, e.source_file),
            )
            count += 1
        self.conn.commit()
        return count

    def get_vocabulary_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM vocabulary").fetchone()
        return row[0]

    def get_all_vocabulary(self, section: str | None = None) -> list[VocabularyEntry]:
        if section is None:
            rows = self.conn.execute(
                "SELECT * FROM vocabulary ORDER BY section, unit, en"
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM vocabulary WHERE section = ? ORDER BY unit, en",
                (section,),
            ).fetchall()
        return [
            VocabularyEntry(
                en=r["en"],
                bn=r["bn"],
                pronunciation=r["pronunciation"] or "",
                section=r["section"] or "",
                unit=r["unit"] or "",
                source_file=r["source_file"] or "",
            )
            for r in rows
        ]

    def delete_word(self, en: str) -> bool:
        cur = self.conn.execute("DELETE FROM vocabulary WHERE en = ?", (en,))
        self.conn.commit()
        return cur.rowcount > 0

    def get_vocab_map(self) -> dict[str, str]:
        return build_vocab_map(self.get_all_vocabulary())

    # ── File mtimes ─────────────────────────────────────────────────────

    def get_file_mtime(self, file_path: str) -> int | None:
        row = self.conn.execute(
            "SELECT mtime_ns FROM file_mtimes WHERE file_path = ?", (file_path,)
        ).fetchone()
        return row[0] if row else None

    def set_file_mtime(self, file_path: str, mtime_ns: int) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO file_mtimes (file_path, mtime_ns) VALUES (?, ?)",
            (file_path, mtime_ns),
        )
        self.conn.commit()

    # ── Topics ────────────────────────────────────────────────────────────

    def save_topic(self, topic_id: str, chapter_id: str, title: str, content: str) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO topics (id, chapter_id, title, content, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (topic_id, chapter_id, title, content, _now()),
        )
        self.conn.commit()

    def get_topic(self, topic_id: str) -> dict | None:
        row = self.conn.execute(
            "SELECT * FROM topics WHERE id = ?", (topic_id,)
        ).fetchone()
        return dict(row) if row else None

    def get_topics(self, chapter_id: str) -> list[dict]:
        rows = self.conn.execute(
            "SELECT * FROM topics WHERE chapter_id = ? ORDER BY title", (chapter_id,)
        ).fetchall()
        return [dict(r) for r in rows]

    # ── Questions ─────────────────────────────────────────────────────────

    def save_question(self, q: Question) -> str:
        """Store *q*, assigning an id when it has none. Returns the id."""
        if not q.id:
            q.id = uuid.uuid4().hex
        self.conn.execute(
            "INSERT OR REPLACE INTO questions "
            "(id, chapter_id, topic_id, question_type, text, options_json, "
            "correct_answer_json, explanation, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                q.id,
                q.chapter_id,
                q.topic_id,
                q.type or "mcq",
                q.text,
                json.dumps(q.options, ensure_ascii=False),
                json.dumps(q.correct_answer, ensure_ascii=False)
                if q.correct_answer is not None else None,
                q.explanation,
                _now(),
            ),
        )
        self.conn.commit()
        return q.id

    def get_question(self, question_id: str) -> Question | None:
        row = self.conn.execute(
            "SELECT * FROM questions WHERE id = ?", (question_id,)
        ).fetchone()
        return _row_to_question(row) if row else None

    def get_questions(
        self, chapter_id: str | None = None, topic_id: str | None = None
    ) -> list[Question]:
        clauses: list[str] = []
        params: list[str] = []
        if chapter_id is not None:
            clauses.append("chapter_id = ?")
            params.append(chapter_id)
        if topic_id is not None:
            clauses.append("topic_id = ?")
            params.append(topic_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.conn.execute(
            f"SELECT * FROM questions {where} ORDER BY created_at, id", params
        ).fetchall()
        return [_row_to_question(r) for r in rows]

    def delete_question(self, question_id: str) -> bool:
        cur = self.conn.execute("DELETE FROM questions WHERE id = ?", (question_id,))
        self.conn.commit()
        return cur.rowcount > 0

    def get_question_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM questions").fetchone()
        return row[0]

    # ── Attempts ──────────────────────────────────────────────────────────

    def record_attempt(self, question_id: str, answer, is_correct: bool) -> None:
        self.conn.execute(
            "INSERT INTO attempts (question_id, answer_json, is_correct, answered_at) "
            "VALUES (?, ?, ?, ?)",
            (question_id, json.dumps(answer, ensure_ascii=False),
             1 if is_correct else 0, _now()),
        )
        self.conn.commit()

    def get_stats(self) -> dict:
        answered = self.conn.execute(
            "SELECT COUNT(*), COALESCE(SUM(is_correct), 0) FROM attempts"
        ).fetchone()
        total, correct = answered[0], answered[1]
        topic_count = self.conn.execute("SELECT COUNT(*) FROM topics").fetchone()[0]
        return {
            "total_words": self.get_vocabulary_count(),
            "total_topics": topic_count,
            "total_questions": self.get_question_count(),
            "questions_answered": total,
            "questions_correct": correct,
            "accuracy": round(correct / total * 100, 1) if total else 0,
        }
