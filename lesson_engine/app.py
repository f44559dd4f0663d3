"""FastAPI application with all routes."""
from __future__ import annotations

import json
import logging
import os

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from lesson_engine.config import Settings, load_settings, save_settings
from lesson_engine.db import Database
from lesson_engine.evaluator import CHOICE_TYPES, GAP_TYPES, evaluate
from lesson_engine.gapfill import clue_chips, extract_answers, mask_blanks, split_for_display
from lesson_engine.latex import lint_lesson, validate_latex
from lesson_engine.models import QUESTION_TYPES, Question
from lesson_engine.parsers.vocabulary_parser import entries_from_records, parse_vocabulary_file
from lesson_engine.renderer import render_lesson

app = FastAPI(title="Lesson Engine")

# Global state (initialized in startup)
_db: Database | None = None
_settings: Settings | None = None

_log = logging.getLogger("lesson_engine.app")


def get_db() -> Database:
    assert _db is not None
    return _db


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def _current_vocab_map() -> dict[str, str]:
    """Vocabulary map for one content load; empty when highlighting is off."""
    if not get_settings().highlight_vocabulary:
        return {}
    return get_db().get_vocab_map()


async def _json_body(request: Request):
    if not await request.body():
        return {}
    try:
        return await request.json()
    except json.JSONDecodeError as e:
        raise HTTPException(400, f"Invalid JSON: {e}")


def _import_vocab_file(db: Database, settings: Settings, vf) -> int:
    # Parse before deleting so a broken file keeps its previous words
    entries = parse_vocabulary_file(vf, settings.default_section, settings.default_unit)
    db.delete_vocabulary_by_source(vf.name)
    n = db.import_vocabulary(entries)
    db.set_file_mtime(str(vf), vf.stat().st_mtime_ns)
    return n


def _auto_import_if_changed(db: Database, settings: Settings) -> None:
    """Re-import vocabulary files whose mtime has changed since the last import."""
    log = logging.getLogger("lesson_engine.import")
    for vf in settings.resolved_vocab_files():
        if not vf.exists():
            continue
        if db.get_file_mtime(str(vf)) == vf.stat().st_mtime_ns:
            continue
        log.info("Changed: %s, re-importing", vf.name)
        try:
            n = _import_vocab_file(db, settings, vf)
        except ValueError as e:
            log.warning("  %s skipped: %s", vf.name, e)
            continue
        log.info("  %d words imported", n)


@app.on_event("startup")
async def startup():
    global _db, _settings
    if _db is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    _db = Database(_settings.db_full_path)
    if not os.environ.get("LESSON_ENGINE_NO_AUTO_IMPORT"):
        _auto_import_if_changed(_db, _settings)


@app.on_event("shutdown")
async def shutdown():
    if _db:
        _db.close()


# ── API: Stats ────────────────────────────────────────────────────────────

@app.get("/api/stats")
async def api_stats():
    return get_db().get_stats()


# ── API: Vocabulary ───────────────────────────────────────────────────────

@app.post("/api/import")
async def api_import():
    db = get_db()
    s = get_settings()

    total = 0
    skipped: list[str] = []
    for vf in s.resolved_vocab_files():
        if not vf.exists():
            continue
        try:
            total += _import_vocab_file(db, s, vf)
        except ValueError as e:
            _log.warning("Import of %s failed: %s", vf.name, e)
            skipped.append(vf.name)

    return {
        "words_imported": total,
        "skipped_files": skipped,
        "total_words": db.get_vocabulary_count(),
    }


@app.get("/api/vocabulary")
async def api_vocabulary(section: str | None = None):
    return [e.to_dict() for e in get_db().get_all_vocabulary(section)]


@app.post("/api/vocabulary/bulk")
async def api_vocabulary_bulk(request: Request):
    body = await _json_body(request)
    s = get_settings()
    try:
        entries = entries_from_records(
            body, default_section=s.default_section, default_unit=s.default_unit
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    n = get_db().import_vocabulary(entries)
    return {"words_uploaded": n, "total_words": get_db().get_vocabulary_count()}


@app.delete("/api/vocabulary/{word}")
async def api_vocabulary_delete(word: str):
    if not get_db().delete_word(word):
        raise HTTPException(404, "Word not found")
    return {"ok": True}


# ── API: Lessons ──────────────────────────────────────────────────────────

@app.post("/api/render")
async def api_render(request: Request):
    """Preview a lesson draft exactly as learners will see it."""
    body = await _json_body(request)
    text = body.get("text", "") if isinstance(body, dict) else ""
    return render_lesson(text, _current_vocab_map())


@app.post("/api/latex/validate")
async def api_latex_validate(request: Request):
    body = await _json_body(request)
    text = body.get("text", "") if isinstance(body, dict) else ""
    issue = validate_latex(text)
    return {
        "issue": str(issue) if issue else None,
        "severity": issue.severity if issue else None,
        "blocks": [
            {"location": loc, "severity": i.severity, "message": i.message}
            for loc, i in lint_lesson(text)
        ],
    }


@app.get("/api/topics")
async def api_topics(chapter_id: str | None = None):
    """Topics of one chapter, title order, without their lesson content."""
    if not chapter_id:
        raise HTTPException(400, "chapter_id is required")
    return [
        {"id": t["id"], "chapter_id": t["chapter_id"], "title": t["title"],
         "updated_at": t["updated_at"]}
        for t in get_db().get_topics(chapter_id)
    ]


@app.put("/api/topics/{topic_id}")
async def api_topic_save(topic_id: str, request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict) or not body.get("chapter_id"):
        raise HTTPException(400, "chapter_id is required")
    title = (body.get("title") or "").strip() or topic_id
    content = body.get("content") or ""
    get_db().save_topic(topic_id, body["chapter_id"], title, content)
    issues = lint_lesson(content)
    return {
        "id": topic_id,
        "title": title,
        "latex_issues": [str(i) for _, i in issues],
    }


@app.get("/api/topics/{topic_id}")
async def api_topic_get(topic_id: str):
    topic = get_db().get_topic(topic_id)
    if topic is None:
        raise HTTPException(404, "Topic not found")
    return topic


@app.get("/api/topics/{topic_id}/slides")
async def api_topic_slides(topic_id: str):
    topic = get_db().get_topic(topic_id)
    if topic is None:
        raise HTTPException(404, "Topic not found")
    rendered = render_lesson(topic["content"], _current_vocab_map())
    rendered["topic_id"] = topic_id
    rendered["title"] = topic["title"]
    return rendered


# ── API: Questions ────────────────────────────────────────────────────────

def _validate_question(q: Question) -> str | None:
    """Return a reason string when *q* cannot be stored, else None."""
    if q.type not in QUESTION_TYPES:
        return f"unknown question type: {q.type}"
    if not q.text.strip():
        return "question text is required"
    if not q.chapter_id:
        return "chapter_id is required"
    if q.type in CHOICE_TYPES:
        if len(q.options) < 2:
            return "choice questions need at least two options"
        idx = q.correct_answer
        if not isinstance(idx, int) or isinstance(idx, bool) or not 1 <= idx <= len(q.options):
            return "correct_answer must be a 1-based option number"
    elif q.type in GAP_TYPES:
        if not extract_answers(q.text):
            return "gap questions need at least one {{answer}} token"
    elif q.type == "rewrite":
        if not isinstance(q.correct_answer, str) or not q.correct_answer.strip():
            return "rewrite questions need a correct_answer string"
    return None


def _question_for_display(q: Question) -> dict:
    d = q.to_dict()
    # Answers are never sent before checking, except as clue chips
    d.pop("correct_answer")
    if q.type in GAP_TYPES:
        segments = split_for_display(q.text)
        d["text"] = mask_blanks(q.text)
        d["segments"] = segments[::2]
        d["blank_count"] = len(segments) // 2
        if q.type == "gap_with_clues":
            d["clues"] = clue_chips(q.text) if get_settings().shuffle_clues else extract_answers(q.text)
    return d


@app.post("/api/questions")
async def api_question_add(request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict):
        raise HTTPException(400, "Expected a question object")
    q = Question.from_dict(body)
    if q.type in CHOICE_TYPES:
        q.options = [o.strip() for o in q.options]
    elif q.type == "rewrite" and isinstance(q.correct_answer, str):
        q.correct_answer = q.correct_answer.strip()
    q.text = q.text.strip()
    reason = _validate_question(q)
    if reason:
        raise HTTPException(400, reason)
    qid = get_db().save_question(q)
    return {"id": qid}


@app.post("/api/questions/bulk")
async def api_questions_bulk(request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict) or not isinstance(body.get("questions"), list):
        raise HTTPException(400, "Expected {chapter_id, topic_id?, questions: [...]}")
    db = get_db()
    questions: list[Question] = []
    for i, item in enumerate(body["questions"]):
        if not isinstance(item, dict):
            raise HTTPException(400, f"Question {i + 1} is not an object")
        q = Question.from_dict({
            **item,
            "chapter_id": body.get("chapter_id", ""),
            "topic_id": body.get("topic_id"),
        })
        reason = _validate_question(q)
        if reason:
            raise HTTPException(400, f"Question {i + 1}: {reason}")
        questions.append(q)
    ids = [db.save_question(q) for q in questions]
    return {"uploaded": len(ids), "ids": ids}


@app.get("/api/questions")
async def api_questions(chapter_id: str | None = None, topic_id: str | None = None):
    return [_question_for_display(q) for q in get_db().get_questions(chapter_id, topic_id)]


@app.delete("/api/questions/{question_id}")
async def api_question_delete(question_id: str):
    if not get_db().delete_question(question_id):
        raise HTTPException(404, "Question not found")
    return {"ok": True}


@app.post("/api/questions/{question_id}/check")
async def api_question_check(question_id: str, request: Request):
    body = await _json_body(request)
    db = get_db()
    q = db.get_question(question_id)
    if q is None:
        raise HTTPException(404, "Question not found")
    if not isinstance(body, dict) or body.get("answer") is None:
        raise HTTPException(400, "No answer provided")

    answer = body["answer"]
    result = evaluate(q, answer)
    db.record_attempt(question_id, answer, result.is_correct)

    return {
        **result.to_dict(),
        "question_id": question_id,
        "explanation": q.explanation,
    }


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await _json_body(request)
    if not isinstance(body, dict):
        raise HTTPException(400, "Expected a settings object")
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    for k, v in body.items():
        if k in known:
            setattr(s, k, v)
    save_settings(s)
    return s.to_dict()
