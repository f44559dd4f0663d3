"""CLI entry point for lesson-engine.

Usage:
  python -m lesson_engine serve [--host HOST] [--port PORT] [--no-auto-import]
  python -m lesson_engine import
  python -m lesson_engine render FILE [--json]
  python -m lesson_engine check FILE
  python -m lesson_engine stats
"""
from __future__ import annotations

import json
import os
import sys
from pathlib import Path


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "import":
        _import_vocab()
    elif command == "render":
        _render(args[1:])
    elif command == "check":
        _check(args[1:])
    elif command == "stats":
        _stats()
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, import, render, check, stats")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _read_lesson(args: list[str]) -> str:
    paths = [a for a in args if not a.startswith("--")]
    if not paths:
        print("Missing lesson file.")
        sys.exit(1)
    path = Path(paths[0])
    if not path.exists():
        print(f"File not found: {path}")
        sys.exit(1)
    return path.read_text(encoding="utf-8")


def _serve(args: list[str]):
    import uvicorn

    if "--no-auto-import" in args:
        os.environ["LESSON_ENGINE_NO_AUTO_IMPORT"] = "1"

    port = int(_parse_flag(args, "--port", "8765"))
    host = _parse_flag(args, "--host", "127.0.0.1")

    print(f"Starting Lesson Engine on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    try:
        uvicorn.run(
            "lesson_engine.app:app",
            host=host,
            port=port,
            reload=False,
            timeout_graceful_shutdown=5,
        )
    finally:
        os.environ.pop("LESSON_ENGINE_NO_AUTO_IMPORT", None)


def _import_vocab():
    from lesson_engine.config import load_settings
    from lesson_engine.db import Database
    from lesson_engine.parsers.vocabulary_parser import parse_vocabulary_file

    settings = load_settings()
    db = Database(settings.db_full_path)

    total = 0
    for vf in settings.resolved_vocab_files():
        if not vf.exists():
            print(f"  Skipping (not found): {vf}")
            continue
        print(f"  Parsing: {vf.name}")
        try:
            entries = parse_vocabulary_file(
                vf, settings.default_section, settings.default_unit
            )
        except ValueError as e:
            print(f"    failed: {e}")
            continue
        db.delete_vocabulary_by_source(vf.name)
        n = db.import_vocabulary(entries)
        total += n
        print(f"    {n} words")
        db.set_file_mtime(str(vf), vf.stat().st_mtime_ns)

    print(f"\nImported {total} words; total in DB: {db.get_vocabulary_count()}")
    db.close()


def _render(args: list[str]):
    from lesson_engine.config import load_settings
    from lesson_engine.db import Database
    from lesson_engine.parsers.inline_parser import parse_inline, spans_to_text
    from lesson_engine.parsers.lesson_parser import parse_blocks, to_slides
    from lesson_engine.renderer import render_lesson

    source = _read_lesson(args)
    settings = load_settings()
    vocab: dict[str, str] = {}
    if settings.highlight_vocabulary and settings.db_full_path.exists():
        db = Database(settings.db_full_path)
        vocab = db.get_vocab_map()
        db.close()

    if "--json" in args:
        print(json.dumps(render_lesson(source, vocab), indent=2, ensure_ascii=False))
        return

    slides = to_slides(parse_blocks(source))
    for n, slide in enumerate(slides, 1):
        print(f"── Slide {n}/{len(slides)} " + "─" * 30)
        for block in slide:
            if block.kind == "list":
                for item in block.items:
                    print(f"  • {spans_to_text(parse_inline(item, vocab))}")
            elif block.kind == "table":
                if block.headers:
                    print("  | " + " | ".join(block.headers) + " |")
                for row in block.rows:
                    print("  | " + " | ".join(row) + " |")
            elif block.kind == "qa":
                print(f"  Q: {block.question}")
                print(f"  A: {block.answer}")
            elif block.kind == "math":
                print(f"  $${block.text}$$")
            else:
                label = f"h{block.level}" if block.kind == "header" else block.kind
                print(f"  [{label}] {spans_to_text(parse_inline(block.text, vocab))}")
        print()


def _check(args: list[str]):
    from lesson_engine.latex import lint_lesson

    issues = lint_lesson(_read_lesson(args))
    if not issues:
        print("No LaTeX issues found.")
        return
    for location, issue in issues:
        print(f"  {location}: {issue}")
    if any(i.severity == "error" for _, i in issues):
        sys.exit(1)


def _stats():
    from lesson_engine.config import load_settings
    from lesson_engine.db import Database

    settings = load_settings()
    db = Database(settings.db_full_path)
    stats = db.get_stats()

    print("Lesson Engine Stats")
    print("=" * 40)
    print(f"Vocabulary words:   {stats['total_words']}")
    print(f"Topics:             {stats['total_topics']}")
    print(f"Questions:          {stats['total_questions']}")
    print(f"Questions answered: {stats['questions_answered']}")
    print(f"Overall accuracy:   {stats['accuracy']}%")
    db.close()


if __name__ == "__main__":
    main()
