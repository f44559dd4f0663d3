"""Advisory LaTeX balance checks for content authors.

Nothing here blocks rendering; the admin surfaces the issues so authors
can fix formulas before saving.
"""
from __future__ import annotations

from lesson_engine.models import LatexIssue
from lesson_engine.parsers.lesson_parser import parse_blocks


def validate_latex(text: str | None) -> LatexIssue | None:
    """Check brace balance and ``$`` parity.

    A backslash escapes the next character, so ``\\{`` and ``\\$`` are not
    counted. Brace problems are errors; an odd number of ``$`` is a warning.
    """
    if not text:
        return None
    depth = 0
    dollars = 0
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return LatexIssue("error", "Unexpected closing brace '}'")
        elif ch == "$":
            dollars += 1

    if depth > 0:
        return LatexIssue("error", "Missing closing brace '}'")
    if dollars % 2:
        return LatexIssue("warning", "Uneven number of '$' delimiters.")
    return None


def lint_lesson(source: str | None) -> list[tuple[str, LatexIssue]]:
    """Check a whole lesson and each of its math blocks.

    Returns ``(location, issue)`` pairs where location is ``"lesson"`` or
    ``"math block N"`` (1-based).
    """
    issues: list[tuple[str, LatexIssue]] = []
    overall = validate_latex(source)
    if overall:
        issues.append(("lesson", overall))
    math_blocks = [b for b in parse_blocks(source) if b.kind == "math"]
    for n, block in enumerate(math_blocks, 1):
        issue = validate_latex(block.text)
        if issue:
            issues.append((f"math block {n}", issue))
    return issues
