"""Shared test fixtures."""
from __future__ import annotations

import pytest

from lesson_engine.db import Database
from lesson_engine.models import Question, VocabularyEntry


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def sample_vocab():
    """A small set of VocabularyEntry objects for testing."""
    return [
        VocabularyEntry("sun", "সূর্য", "/sʌn/", "Section 1", "Unit 1", "vocabulary.md"),
        VocabularyEntry("moon", "চাঁদ", "/muːn/", "Section 1", "Unit 1", "vocabulary.md"),
        VocabularyEntry("river", "নদী", "", "Section 1", "Unit 2", "vocabulary.md"),
        VocabularyEntry("Energy", "শক্তি", "", "Section 2", "Unit 1", "vocabulary.md"),
        VocabularyEntry("don't", "করো না", "", "Section 2", "Unit 1", "vocabulary.md"),
    ]


@pytest.fixture
def vocab_map():
    return {"sun": "সূর্য", "moon": "চাঁদ", "energy": "শক্তি"}


@pytest.fixture
def sample_questions():
    """One question of each type, all in chapter ch-1."""
    return [
        Question(
            id="q-mcq",
            type="mcq",
            text="What is the SI unit of force?",
            options=["Joule", "Newton", "Watt", "Pascal"],
            correct_answer=2,
            explanation="Force is measured in newtons.",
            chapter_id="ch-1",
            topic_id="t-1",
        ),
        Question(
            id="q-gap",
            type="gap_with_clues",
            text="The {{sky}} is {{blue}}.",
            chapter_id="ch-1",
            topic_id="t-1",
        ),
        Question(
            id="q-gap-plain",
            type="gap_no_clues",
            text="{{cat}} and {{dog}}",
            chapter_id="ch-1",
            topic_id="t-2",
        ),
        Question(
            id="q-rewrite",
            type="rewrite",
            text="Change the voice: I eat rice.",
            correct_answer="Rice is eaten by me.",
            chapter_id="ch-1",
        ),
        Question(
            id="q-class",
            type="classification",
            text="'Quickly' is a ...",
            options=["noun", "verb", "adverb"],
            correct_answer=3,
            chapter_id="ch-1",
        ),
    ]


@pytest.fixture
def populated_db(tmp_db, sample_vocab, sample_questions):
    """A database pre-loaded with sample data."""
    tmp_db.import_vocabulary(sample_vocab)
    for q in sample_questions:
        tmp_db.save_question(q)
    tmp_db.save_topic("t-1", "ch-1", "Forces", LESSON_SOURCE)
    return tmp_db


LESSON_SOURCE = """\
# Forces

A force is a push or a pull. The **sun** pulls on the *moon*.

$$
F = ma
$$

---

## Units

| Quantity | Unit |
|---|---|
| Force | Newton |
| Energy | Joule |

- Mass in $kg$
- Time in seconds

// authors: keep this slide short

---

> Every action has an
> equal and opposite reaction.

Q: What is a force?
A: A push or a pull.
"""


@pytest.fixture
def lesson_source():
    return LESSON_SOURCE


@pytest.fixture
def vocab_md_content():
    """Minimal vocabulary markdown for parser testing."""
    return """\
# Vocabulary

## Section 1

### Unit 1

| Word | Meaning | Pronunciation |
|------|---------|---------------|
| **sun** | সূর্য | /sʌn/ |
| **moon** | চাঁদ | /muːn/ |

### Unit 2

| Word | Meaning |
|------|---------|
| **river** | নদী |

## Section 2

| Word | Meaning |
|------|---------|
| **energy** | শক্তি |
"""
