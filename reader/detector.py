"""
Stealth Reader - Chapter Detector
Splits a document's lines into contiguous, titled chapter spans.

Detection is a single forward pass. Each line is trimmed, separator-only lines
are skipped, and a line becomes a chapter boundary when any of the title
patterns matches. The patterns are an unordered set: a line is a title if
at least one of them says so, which favors recall across mixed conventions
(Chinese web novels, "Chapter N" plain text, markdown, decorated banners).

When nothing matches, the whole document is one "Full Text" span.
"""

import re
from dataclasses import dataclass, replace
from typing import Dict, List, Sequence

import config
from core.logger import log_info, log_warning
from reader.errors import DocumentReadError


@dataclass(frozen=True)
class ChapterSpan:
    """A contiguous, inclusive line range of a document with a title."""
    title: str
    start_line: int       # 0-indexed, inclusive
    end_line: int         # 0-indexed, inclusive
    document_id: str = ""

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def line_range(self) -> str:
        """1-indexed range for display, e.g. "1-120"."""
        return f"{self.start_line + 1}-{self.end_line + 1}"


# =============================================================================
# TITLE PATTERNS
# =============================================================================

# Arabic or Chinese numerals, as used in "第十二章" or "12."
_NUMERAL = r"[0-9一二三四五六七八九十百千]"

TITLE_PATTERNS: Dict[str, re.Pattern] = {
    # "第12章", "第十二篇 标题", "第3节"
    "numbered_chinese_chapter": re.compile(rf"^第{_NUMERAL}+[章篇节]"),
    # "12章", "十二节"
    "bare_chinese_chapter": re.compile(rf"^{_NUMERAL}+[章篇节]"),
    # "1. Title", "一、标题", "12 Title"
    "numbered_item": re.compile(rf"^{_NUMERAL}+[.、\s]"),
    # "Chapter 3", "CHAPTER 3: The Storm"
    "chapter_keyword": re.compile(r"^chapter\s+[0-9]+", re.IGNORECASE),
    # "Section 2"
    "section_keyword": re.compile(r"^section\s+[0-9]+", re.IGNORECASE),
    # "3.Title", "3. 标题"
    "numbered_heading": re.compile(r"^[0-9]+\.\s*[\u4e00-\u9fa5a-zA-Z]"),
    # "# Title", "### Title"
    "markdown_heading": re.compile(r"^#+\s+"),
    # "=== Title ==="
    "equals_banner": re.compile(r"^={3,}\s*.*\s*={3,}$"),
    # "--- Title ---"
    "dashes_banner": re.compile(r"^-{3,}\s*.*\s*-{3,}$"),
    # "[Part One]"
    "bracketed": re.compile(r"^\[.*\]$"),
    # "08:30 Morning", "12 noon"
    "time_prefix": re.compile(r"^[0-9]{1,2}[:\s]"),
}

_SEPARATOR_RUN = re.compile(r"^[-=]{3,}$")
_SEPARATOR_CHARS = re.compile(r"^[\s\-_=]+$")

_LEADING_HEADING = re.compile(r"^#+\s*")
_TRAILING_EQUALS = re.compile(r"={3,}\s*$")
_TRAILING_DASHES = re.compile(r"-{3,}\s*$")
_LEADING_BRACKET = re.compile(r"^\[\s*")
_TRAILING_BRACKET = re.compile(r"\s*\]$")


def is_skippable_line(line: str) -> bool:
    """True for blank lines and separator rules like "-----" or "= = =" ."""
    stripped = line.strip()
    if not stripped:
        return True
    return bool(_SEPARATOR_RUN.match(stripped) or _SEPARATOR_CHARS.match(stripped))


def is_chapter_title(line: str) -> bool:
    """Whether a line (trimmed here) reads as a chapter heading."""
    stripped = line.strip()
    if is_skippable_line(stripped):
        return False
    if len(stripped) >= config.CHAPTER_TITLE_MAX_LENGTH:
        return False
    return any(pattern.search(stripped) for pattern in TITLE_PATTERNS.values())


def _clean_once(title: str) -> str:
    title = _LEADING_HEADING.sub("", title)
    title = _TRAILING_EQUALS.sub("", title)
    title = _TRAILING_DASHES.sub("", title)
    title = _LEADING_BRACKET.sub("", title)
    title = _TRAILING_BRACKET.sub("", title)
    return title.strip()[:config.CHAPTER_TITLE_DISPLAY_LENGTH].strip()


def clean_title(raw: str) -> str:
    """
    Strip heading markers and decorations from a title line.

    Removes a leading "#..." marker, trailing "===" / "---" runs and
    surrounding brackets, then truncates to the display length. Repeats until
    nothing changes, so clean_title(clean_title(x)) == clean_title(x).
    """
    title = raw.strip()
    while True:
        cleaned = _clean_once(title)
        if cleaned == title:
            return title
        title = cleaned


def _full_text_span(total_lines: int, document_id: str) -> ChapterSpan:
    return ChapterSpan(
        title=config.FULL_TEXT_TITLE,
        start_line=0,
        end_line=max(total_lines - 1, 0),
        document_id=document_id,
    )


def _scan(lines: Sequence[str], document_id: str) -> List[ChapterSpan]:
    total_lines = len(lines)
    chapters: List[ChapterSpan] = []
    current = None

    for i, line in enumerate(lines):
        if not is_chapter_title(line):
            continue

        if current is not None:
            chapters.append(replace(current, end_line=i - 1))

        title = clean_title(line) or config.UNTITLED_CHAPTER_TITLE.format(number=len(chapters) + 1)
        current = ChapterSpan(
            title=title,
            start_line=i,
            end_line=total_lines - 1,
            document_id=document_id,
        )

    if current is not None:
        chapters.append(replace(current, end_line=total_lines - 1))

    if chapters and chapters[0].start_line > 0:
        first = chapters[0]
        preamble = lines[:first.start_line]
        if any(not is_skippable_line(line) for line in preamble):
            chapters.insert(0, ChapterSpan(
                title=config.PREAMBLE_TITLE,
                start_line=0,
                end_line=first.start_line - 1,
                document_id=document_id,
            ))
        else:
            # Only blanks and separator rules above the first heading: fold them into it
            chapters[0] = replace(first, start_line=0)

    return chapters


def detect_chapters(lines: Sequence[str], document_id: str = "") -> List[ChapterSpan]:
    """
    Detect chapter spans in a document's lines.

    Never raises. Spans are ordered, contiguous, and together cover every
    line exactly once. A document with no recognizable titles comes back as a
    single "Full Text" span; an empty line list comes back as no spans.

    Args:
        lines: The document's lines, in order
        document_id: Identifier stamped on every span

    Returns:
        List of ChapterSpan, in document order
    """
    if not lines:
        return []

    try:
        chapters = _scan(lines, document_id)
    except Exception as e:
        log_warning(f"Chapter detection failed for '{document_id}', using full text: {e}")
        return [_full_text_span(len(lines), document_id)]

    if not chapters:
        log_info(
            f"No chapter markers in '{document_id}' ({len(lines)} lines), "
            f"reading as {config.FULL_TEXT_TITLE}",
            prefix="📖"
        )
        return [_full_text_span(len(lines), document_id)]

    log_info(
        f"Detected {len(chapters)} chapters in '{document_id}' ({len(lines)} lines)",
        prefix="📖"
    )
    return chapters


def detect_document_chapters(document) -> List[ChapterSpan]:
    """
    Read a document and detect its chapters.

    An unreadable document yields a single one-line "Full Text" span instead
    of an error, so a chapter list can always be shown. The failure surfaces
    later, when the session tries to load the chapter.
    """
    try:
        lines = document.read_lines()
    except DocumentReadError as e:
        log_warning(f"{e}; showing it as a single section")
        return [_full_text_span(1, document.document_id)]
    return detect_chapters(lines, document.document_id)
