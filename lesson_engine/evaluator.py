"""Decide whether a learner's answer to a practice question is correct.

Stored choice answers are 1-based (option 1 is ``correct_answer == 1``)
while selections arrive 0-based from the UI. That offset is part of the
stored question format and is kept as is.

Evaluation never raises: any malformed question or input is simply wrong.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from lesson_engine.gapfill import extract_answers
from lesson_engine.models import Evaluation, Question

_log = logging.getLogger("lesson_engine.eval")

CHOICE_TYPES = ("mcq", "classification")
GAP_TYPES = ("gap_with_clues", "gap_no_clues")

_REWRITE_PUNCTUATION_RE = re.compile(r"[.,!?;]")


def evaluate(question: Question | dict, user_input) -> Evaluation:
    if isinstance(question, dict):
        question = Question.from_dict(question)
    if not isinstance(question, Question):
        _log.debug("Cannot evaluate %r", type(question).__name__)
        return Evaluation(False, "mcq")
    qtype = question.type or "mcq"

    if qtype in GAP_TYPES:
        return _evaluate_gaps(question, qtype, user_input)
    if qtype == "rewrite":
        return _evaluate_rewrite(question, user_input)
    if qtype not in CHOICE_TYPES:
        _log.debug("Unknown question type %r, evaluating as mcq", qtype)
        qtype = "mcq"
    return _evaluate_choice(question, qtype, user_input)


def normalize_rewrite(text: str) -> str:
    return _REWRITE_PUNCTUATION_RE.sub("", text.lower()).strip()


def score(results: Sequence[Evaluation | bool]) -> dict:
    """Summarise a practice run: ``{"total", "correct", "accuracy"}``."""
    total = len(results)
    correct = sum(
        1 for r in results if (r.is_correct if isinstance(r, Evaluation) else bool(r))
    )
    return {
        "total": total,
        "correct": correct,
        "accuracy": round(correct / max(total, 1) * 100, 1),
    }


def _evaluate_choice(question: Question, qtype: str, user_input) -> Evaluation:
    options = question.options or []
    stored = _as_index(question.correct_answer)
    correct_index = stored - 1 if stored is not None else None
    expected: list[str] = []
    if correct_index is not None and 0 <= correct_index < len(options):
        expected = [str(options[correct_index])]

    if stored is None:
        _log.debug("Question %r has no usable correct answer: %r",
                   question.id, question.correct_answer)
    selected = _as_index(user_input)
    is_correct = stored is not None and selected is not None and selected + 1 == stored
    return Evaluation(
        is_correct=is_correct,
        question_type=qtype,
        correct_index=correct_index,
        expected=expected,
    )


def _evaluate_gaps(question: Question, qtype: str, user_input) -> Evaluation:
    answers = extract_answers(question.text)
    if isinstance(user_input, str) or not isinstance(user_input, Sequence):
        return Evaluation(False, qtype, expected=answers, per_blank=[False] * len(answers))

    per_blank = []
    for i, expected in enumerate(answers):
        given = user_input[i] if i < len(user_input) else None
        per_blank.append(
            isinstance(given, str) and given.strip().lower() == expected.lower()
        )
    is_correct = len(user_input) == len(answers) and all(per_blank)
    return Evaluation(is_correct, qtype, expected=answers, per_blank=per_blank)


def _evaluate_rewrite(question: Question, user_input) -> Evaluation:
    if question.correct_answer is None or isinstance(question.correct_answer, bool):
        return Evaluation(False, "rewrite")
    canonical = str(question.correct_answer).strip()
    if not isinstance(user_input, str):
        return Evaluation(False, "rewrite", expected=[canonical])
    is_correct = normalize_rewrite(user_input) == normalize_rewrite(canonical)
    return Evaluation(is_correct, "rewrite", expected=[canonical])


def _as_index(value) -> int | None:
    """Coerce an int, integral float or numeric string to int; else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None
