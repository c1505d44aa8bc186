"""
Tests for chapter detection.

Covers title recognition, title cleaning, span boundaries and the fallbacks
for documents with no headings or that cannot be read.
"""

import unittest
from unittest.mock import patch

from reader.detector import (
    ChapterSpan,
    clean_title,
    detect_chapters,
    detect_document_chapters,
    is_chapter_title,
    is_skippable_line,
)
from reader.document import FileDocument, InMemoryDocument


def assert_full_coverage(test: unittest.TestCase, spans, total_lines: int) -> None:
    """Spans are contiguous, ordered, and cover [0, total_lines - 1]."""
    test.assertTrue(spans, "Expected at least one span")
    test.assertEqual(spans[0].start_line, 0)
    test.assertEqual(spans[-1].end_line, total_lines - 1)
    for span in spans:
        test.assertLessEqual(span.start_line, span.end_line)
        test.assertEqual(span.line_count, span.end_line - span.start_line + 1)
    for current, following in zip(spans, spans[1:]):
        test.assertEqual(current.end_line + 1, following.start_line)
    test.assertEqual(sum(span.line_count for span in spans), total_lines)


class TestTitleRecognition(unittest.TestCase):
    """Which lines count as chapter headings."""

    def test_common_heading_styles(self):
        titles = [
            "# Intro",
            "### Deep heading",
            "Chapter 12",
            "CHAPTER 3: The Storm",
            "section 2",
            "第十二章 风起云涌",
            "第3节",
            "十二章",
            "一、开端",
            "1. The Beginning",
            "3.Arrival",
            "=== Part One ===",
            "--- Interlude ---",
            "[Book Two]",
            "08:30 Morning",
        ]
        for line in titles:
            with self.subTest(line=line):
                self.assertTrue(is_chapter_title(line))

    def test_prose_is_not_a_title(self):
        prose = [
            "hello",
            "It was a dark and stormy night.",
            "#hashtag without a space",
            "Chapters are long.",
            "The year 1999 was strange.",
        ]
        for line in prose:
            with self.subTest(line=line):
                self.assertFalse(is_chapter_title(line))

    def test_surrounding_whitespace_is_ignored(self):
        self.assertTrue(is_chapter_title("   Chapter 1   "))

    def test_length_limit(self):
        """Titles must be shorter than 100 characters once trimmed."""
        self.assertTrue(is_chapter_title("1. " + "x" * 96))   # 99 chars
        self.assertFalse(is_chapter_title("1. " + "x" * 97))  # 100 chars

    def test_separator_lines_are_skipped(self):
        for line in ["", "   ", "---", "=====", "- - -", "___", " = _ - "]:
            with self.subTest(line=line):
                self.assertTrue(is_skippable_line(line))
                self.assertFalse(is_chapter_title(line))


class TestCleanTitle(unittest.TestCase):
    """Heading markers and decorations are stripped from titles."""

    def test_markdown_marker_removed(self):
        self.assertEqual(clean_title("## The Road"), "The Road")

    def test_trailing_decoration_removed(self):
        self.assertEqual(clean_title("Part One ====="), "Part One")
        self.assertEqual(clean_title("Part Two -----"), "Part Two")

    def test_brackets_removed(self):
        self.assertEqual(clean_title("[ Book Two ]"), "Book Two")

    def test_truncated_to_80_characters(self):
        cleaned = clean_title("Chapter 1 " + "a" * 120)
        self.assertEqual(len(cleaned), 80)
        self.assertTrue(cleaned.startswith("Chapter 1 "))

    def test_idempotent(self):
        samples = [
            "## The Road",
            "[[nested]]",
            "# [Mixed] ---",
            "Part One =====",
            "Chapter 1 " + "word " * 30,
            "第一章 开端",
            "plain",
        ]
        for raw in samples:
            with self.subTest(raw=raw):
                once = clean_title(raw)
                self.assertEqual(clean_title(once), once)


class TestDetectChapters(unittest.TestCase):
    """Span construction over whole documents."""

    def test_markdown_example(self):
        lines = ["# Intro", "hello", "world", "# Next", "foo"]
        spans = detect_chapters(lines, "doc.txt")
        self.assertEqual(spans, [
            ChapterSpan("Intro", 0, 2, "doc.txt"),
            ChapterSpan("Next", 3, 4, "doc.txt"),
        ])
        self.assertEqual([s.line_count for s in spans], [3, 2])
        self.assertEqual([s.line_range for s in spans], ["1-3", "4-5"])

    def test_no_titles_gives_full_text(self):
        lines = ["just", "some", "prose", ""]
        spans = detect_chapters(lines)
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].title, "Full Text")
        self.assertEqual(spans[0].start_line, 0)
        self.assertEqual(spans[0].end_line, 3)

    def test_empty_input_gives_no_spans(self):
        self.assertEqual(detect_chapters([]), [])

    def test_text_before_first_title_becomes_introduction(self):
        lines = ["A foreword.", "", "Chapter 1", "body", "Chapter 2", "more"]
        spans = detect_chapters(lines)
        self.assertEqual([s.title for s in spans], ["Introduction", "Chapter 1", "Chapter 2"])
        self.assertEqual((spans[0].start_line, spans[0].end_line), (0, 1))
        assert_full_coverage(self, spans, len(lines))

    def test_blank_lines_before_first_title_fold_into_it(self):
        lines = ["", "   ", "Chapter 1", "body"]
        spans = detect_chapters(lines)
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].title, "Chapter 1")
        self.assertEqual((spans[0].start_line, spans[0].end_line), (0, 3))

    def test_separator_rules_before_first_title_fold_into_it(self):
        for banner in (["-----"], ["==========", ""], ["", "- - -", "   "]):
            with self.subTest(banner=banner):
                lines = banner + ["# A", "x"]
                spans = detect_chapters(lines)
                self.assertEqual(spans, [ChapterSpan("A", 0, len(lines) - 1)])

    def test_marker_only_headings_get_numbered_titles(self):
        spans = detect_chapters(["# ###", "x", "[]", "y"])
        self.assertEqual([s.title for s in spans], ["Chapter 1", "Chapter 2"])
        for span in spans:
            self.assertEqual(clean_title(span.title), span.title)

    def test_separators_stay_inside_chapters(self):
        lines = ["# One", "text", "-----", "=====", "more", "# Two", "end"]
        spans = detect_chapters(lines)
        self.assertEqual([s.title for s in spans], ["One", "Two"])
        self.assertEqual(spans[0].end_line, 4)

    def test_consecutive_titles_make_one_line_chapters(self):
        lines = ["# A", "# B", "# C"]
        spans = detect_chapters(lines)
        self.assertEqual([(s.start_line, s.end_line) for s in spans], [(0, 0), (1, 1), (2, 2)])

    def test_titles_are_cleaned(self):
        spans = detect_chapters(["[Prologue]", "text", "## Chapter 1 ===", "text"])
        self.assertEqual([s.title for s in spans], ["Prologue", "Chapter 1"])

    def test_coverage_across_documents(self):
        documents = [
            ["# Intro", "hello", "world", "# Next", "foo"],
            ["preface", "Chapter 1", "a", "b", "Chapter 2", "c", ""],
            ["", "", "第一章", "内容", "第二章", "更多内容", "", ""],
            ["no", "headings", "here"],
            ["# only"],
            [""],
            ["x", "1. item", "y", "[Side note]", "z", "---", "Section 4"],
        ]
        for lines in documents:
            with self.subTest(lines=lines):
                assert_full_coverage(self, detect_chapters(lines), len(lines))

    def test_document_id_stamped_on_spans(self):
        spans = detect_chapters(["# A", "b"], document_id="/books/a.txt")
        self.assertTrue(all(s.document_id == "/books/a.txt" for s in spans))

    def test_internal_failure_falls_back_to_full_text(self):
        with patch("reader.detector._scan", side_effect=RuntimeError("boom")):
            spans = detect_chapters(["# A", "b", "c"])
        self.assertEqual(spans, [ChapterSpan("Full Text", 0, 2)])


class TestDetectDocumentChapters(unittest.TestCase):
    """Detection straight from a document source."""

    def test_in_memory_document(self):
        document = InMemoryDocument.from_text("mem", "# A\nx\n# B\ny\n")
        spans = detect_document_chapters(document)
        self.assertEqual([s.title for s in spans], ["A", "B"])
        # Trailing newline leaves a final empty line in the last chapter
        self.assertEqual(spans[-1].end_line, 4)

    def test_unreadable_file_degrades_to_single_span(self):
        document = FileDocument("/nonexistent/dir/book.txt")
        spans = detect_document_chapters(document)
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].title, "Full Text")
        self.assertEqual((spans[0].start_line, spans[0].end_line, spans[0].line_count), (0, 0, 1))


if __name__ == '__main__':
    unittest.main()
