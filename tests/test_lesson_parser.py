"""Tests for the lesson block parser and slide segmenter."""
from __future__ import annotations

from lesson_engine.models import Block
from lesson_engine.parsers.lesson_parser import parse_blocks, to_slides


def kinds(blocks):
    return [b.kind for b in blocks]


class TestHeadersAndParagraphs:
    def test_title_and_paragraph(self):
        blocks = parse_blocks("# Title\n\nHello world")
        assert blocks == [
            Block("header", level=1, text="Title"),
            Block("paragraph", text="Hello world"),
        ]

    def test_header_levels(self):
        blocks = parse_blocks("# One\n### Three\n###### Six")
        assert [b.level for b in blocks] == [1, 3, 6]
        assert blocks[1].text == "Three"

    def test_header_level_capped(self):
        blocks = parse_blocks("######## Deep")
        assert blocks[0].level == 6
        assert blocks[0].text == "Deep"

    def test_header_never_merges(self):
        blocks = parse_blocks("# Title\nText right after")
        assert kinds(blocks) == ["header", "paragraph"]

    def test_paragraph_lines_join(self):
        blocks = parse_blocks("first line\n  second line  \nthird")
        assert len(blocks) == 1
        assert blocks[0].text == "first line\nsecond line\nthird"

    def test_blank_line_splits_paragraphs(self):
        blocks = parse_blocks("one\n\ntwo")
        assert [b.text for b in blocks] == ["one", "two"]

    def test_empty_source(self):
        assert parse_blocks("") == []
        assert parse_blocks(None) == []
        assert parse_blocks("\n\n   \n") == []

    def test_windows_line_endings(self):
        blocks = parse_blocks("# Title\r\n\r\nBody")
        assert kinds(blocks) == ["header", "paragraph"]
        assert blocks[1].text == "Body"


class TestLists:
    def test_dash_and_star_items_merge(self):
        blocks = parse_blocks("- apples\n* pears\n- plums")
        assert len(blocks) == 1
        assert blocks[0].items == ["apples", "pears", "plums"]

    def test_list_interrupted_by_paragraph(self):
        blocks = parse_blocks("- a\n- b\nafter")
        assert kinds(blocks) == ["list", "paragraph"]

    def test_bullet_without_space_is_paragraph(self):
        blocks = parse_blocks("-not a list")
        assert kinds(blocks) == ["paragraph"]

    def test_blank_line_splits_lists(self):
        blocks = parse_blocks("- a\n\n- b")
        assert kinds(blocks) == ["list", "list"]


class TestBlockquotes:
    def test_multiline_quote(self):
        blocks = parse_blocks("> first\n>second\n> third")
        assert len(blocks) == 1
        assert blocks[0].kind == "blockquote"
        assert blocks[0].text == "first\nsecond\nthird"

    def test_quote_then_paragraph(self):
        blocks = parse_blocks("> quoted\nplain")
        assert kinds(blocks) == ["blockquote", "paragraph"]


class TestMath:
    def test_single_line(self):
        blocks = parse_blocks("$$E = mc^2$$")
        assert blocks == [Block("math", text="E = mc^2")]

    def test_multi_line(self):
        blocks = parse_blocks("$$\na + b\n= c\n$$\nafter")
        assert kinds(blocks) == ["math", "paragraph"]
        assert "a + b\n= c" in blocks[0].text
        assert "$$" not in blocks[0].text

    def test_math_lines_verbatim(self):
        blocks = parse_blocks("$$\n# not a header\n- not a list\n$$")
        assert len(blocks) == 1
        assert "# not a header" in blocks[0].text

    def test_unterminated_consumes_to_end(self):
        blocks = parse_blocks("$$\nx = 1\n\nmore text")
        assert len(blocks) == 1
        assert blocks[0].kind == "math"
        assert "more text" in blocks[0].text

    def test_math_closes_open_paragraph(self):
        blocks = parse_blocks("intro\n$$x$$")
        assert kinds(blocks) == ["paragraph", "math"]


class TestTables:
    def test_header_and_rows(self):
        blocks = parse_blocks("| A | B |\n|---|---|\n| 1 | 2 |")
        assert len(blocks) == 1
        table = blocks[0]
        assert table.kind == "table"
        assert table.headers == ["A", "B"]
        assert table.rows == [["1", "2"]]

    def test_without_separator_has_no_headers(self):
        blocks = parse_blocks("| a | b |\n| c | d |")
        assert blocks[0].headers == []
        assert blocks[0].rows == [["a", "b"], ["c", "d"]]

    def test_separator_promotes_first_row(self):
        blocks = parse_blocks("| h1 | h2 |\n| x | y |\n|--|--|\n| 1 | 2 |")
        assert blocks[0].headers == ["h1", "h2"]
        assert blocks[0].rows == [["x", "y"], ["1", "2"]]

    def test_inner_empty_cells_kept(self):
        blocks = parse_blocks("| a | | c |")
        assert blocks[0].rows == [["a", "", "c"]]

    def test_non_table_line_closes_table(self):
        blocks = parse_blocks("| a | b |\nafter the table")
        assert kinds(blocks) == ["table", "paragraph"]

    def test_single_pipe_is_paragraph(self):
        blocks = parse_blocks("| just one pipe")
        assert kinds(blocks) == ["paragraph"]


class TestHorizontalRules:
    def test_dash_and_star_rules(self):
        blocks = parse_blocks("one\n---\ntwo\n***\nthree")
        assert kinds(blocks) == ["paragraph", "hr", "paragraph", "hr", "paragraph"]

    def test_hr_closes_list(self):
        blocks = parse_blocks("- a\n---\n- b")
        assert kinds(blocks) == ["list", "hr", "list"]


class TestComments:
    def test_comment_skipped(self):
        blocks = parse_blocks("// hidden note\nvisible")
        assert blocks == [Block("paragraph", text="visible")]

    def test_comment_does_not_close_paragraph(self):
        blocks = parse_blocks("line one\n// note\nline two")
        assert len(blocks) == 1
        assert blocks[0].text == "line one\nline two"

    def test_comment_does_not_close_table(self):
        blocks = parse_blocks("| A |\n|---|\n// note\n| 1 |")
        assert len(blocks) == 1
        assert blocks[0].rows == [["1"]]


class TestQA:
    def test_question_with_answer(self):
        blocks = parse_blocks("Q: What is 2+2?\nA: 4")
        assert blocks == [Block("qa", question="What is 2+2?", answer="4")]

    def test_question_without_answer(self):
        blocks = parse_blocks("Q: Open question\nNext paragraph")
        assert kinds(blocks) == ["qa", "paragraph"]
        assert blocks[0].answer == ""

    def test_consecutive_pairs(self):
        blocks = parse_blocks("Q: one\nA: 1\nQ: two\nA: 2")
        assert [(b.question, b.answer) for b in blocks] == [("one", "1"), ("two", "2")]

    def test_question_needs_whitespace(self):
        blocks = parse_blocks("Q:no space")
        assert kinds(blocks) == ["paragraph"]


class TestFullLesson:
    def test_block_order(self, lesson_source):
        blocks = parse_blocks(lesson_source)
        assert kinds(blocks) == [
            "header", "paragraph", "math", "hr",
            "header", "table", "list", "hr",
            "blockquote", "qa",
        ]

    def test_block_contents(self, lesson_source):
        blocks = parse_blocks(lesson_source)
        assert blocks[5].headers == ["Quantity", "Unit"]
        assert blocks[5].rows == [["Force", "Newton"], ["Energy", "Joule"]]
        assert blocks[6].items == ["Mass in $kg$", "Time in seconds"]
        assert blocks[8].text == "Every action has an\nequal and opposite reaction."
        assert blocks[9].answer == "A push or a pull."


class TestSlides:
    def test_two_slides(self):
        slides = to_slides(parse_blocks("P1\n\n---\n\nP2"))
        assert len(slides) == 2
        assert slides[0] == [Block("paragraph", text="P1")]
        assert slides[1] == [Block("paragraph", text="P2")]

    def test_no_hr_single_slide(self):
        blocks = parse_blocks("# A\n\ntext\n\n- item")
        slides = to_slides(blocks)
        assert slides == [blocks]

    def test_hr_never_inside_slide(self, lesson_source):
        slides = to_slides(parse_blocks(lesson_source))
        assert len(slides) == 3
        for slide in slides:
            assert slide
            assert all(b.kind != "hr" for b in slide)

    def test_leading_and_repeated_rules_skip_empty_slides(self):
        slides = to_slides(parse_blocks("---\n---\nonly\n---"))
        assert len(slides) == 1
        assert slides[0][0].text == "only"

    def test_only_rules_fall_back_to_all_blocks(self):
        blocks = parse_blocks("---\n***")
        slides = to_slides(blocks)
        assert slides == [blocks]

    def test_no_blocks_no_slides(self):
        assert to_slides([]) == []

    def test_restartable(self, lesson_source):
        blocks = parse_blocks(lesson_source)
        assert to_slides(blocks) == to_slides(blocks)
        assert parse_blocks(lesson_source) == blocks
