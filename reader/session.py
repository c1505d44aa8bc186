"""
Stealth Reader - Reading Session
Cursor over one document's chapters, with paging inside the active chapter.

The session owns no copy of the whole document. Each chapter change re-reads
the document and keeps only the active chapter's lines, so the text shown
always matches the file as it is now. A failed read leaves the cursor where
it was.
"""

import math
from enum import Enum
from typing import List, Optional, Sequence

import config
from core.logger import log_info, log_warning
from reader.detector import ChapterSpan
from reader.progress import ProgressStore


class Direction(Enum):
    """Chapter navigation direction."""
    FORWARD = 1
    BACKWARD = -1


def find_chapter_index(chapters: Sequence[ChapterSpan], target: Optional[ChapterSpan]) -> Optional[int]:
    """
    Index of the chapter matching target by title and start line.

    The start line disambiguates repeated titles ("Notes", "***").
    """
    if target is None:
        return None
    for i, chapter in enumerate(chapters):
        if chapter.title == target.title and chapter.start_line == target.start_line:
            return i
    return None


class ReadingSession:
    """
    The active document, its chapter list, and the reader's position.

    Use ReadingSession.open() to create one; it loads the target chapter
    before returning, so a session always has content for current_index.
    """

    def __init__(
        self,
        document,
        chapters: Sequence[ChapterSpan],
        progress_store: Optional[ProgressStore] = None,
        lines_per_page: int = config.READER_LINES_PER_PAGE,
    ):
        if not chapters:
            raise ValueError(f"Cannot open '{document.document_id}': no chapters")
        if lines_per_page < 1:
            raise ValueError(f"lines_per_page must be at least 1, got {lines_per_page}")

        self.document = document
        self.chapters: List[ChapterSpan] = list(chapters)
        self.progress_store = progress_store
        self.lines_per_page = lines_per_page

        self.current_index: int = 0
        self.current_lines: List[str] = []
        self.page: int = 0

    @classmethod
    def open(
        cls,
        document,
        chapters: Sequence[ChapterSpan],
        target: Optional[ChapterSpan] = None,
        progress_store: Optional[ProgressStore] = None,
        lines_per_page: int = config.READER_LINES_PER_PAGE,
    ) -> "ReadingSession":
        """
        Open a document at target (or the first chapter).

        Raises:
            ValueError: If chapters is empty
            DocumentReadError: If the document cannot be read
            ProgressStoreError: If the opened position cannot be saved
        """
        session = cls(document, chapters, progress_store, lines_per_page)
        index = find_chapter_index(session.chapters, target)
        session._activate(0 if index is None else index)
        log_info(
            f"Opened '{document.document_id}' at chapter {session.current_index + 1}/"
            f"{len(session.chapters)}: {session.current_chapter.title}",
            prefix="📖"
        )
        return session

    # -------------------------------------------------------------------------
    # Chapters
    # -------------------------------------------------------------------------

    @property
    def document_id(self) -> str:
        return self.document.document_id

    @property
    def current_chapter(self) -> ChapterSpan:
        return self.chapters[self.current_index]

    @property
    def is_first_chapter(self) -> bool:
        return self.current_index == 0

    @property
    def is_last_chapter(self) -> bool:
        return self.current_index == len(self.chapters) - 1

    def current_content(self) -> List[str]:
        """Lines of the active chapter."""
        return list(self.current_lines)

    def advance(self, direction: Direction) -> bool:
        """
        Move one chapter forward or backward.

        Does nothing at the first/last chapter (no read, no progress write).

        Returns:
            True if the session moved

        Raises:
            DocumentReadError: If the document cannot be re-read; the session
                stays on its current chapter
            ProgressStoreError: If the new position cannot be saved; the
                session has already moved
        """
        target = self.current_index + direction.value
        if not 0 <= target < len(self.chapters):
            return False

        self._activate(target)
        log_info(
            f"Chapter {self.current_index + 1}/{len(self.chapters)}: {self.current_chapter.title}",
            prefix="📖"
        )
        return True

    def _activate(self, index: int) -> None:
        chapter = self.chapters[index]

        # Read before touching state so a failure leaves the cursor unchanged
        lines = self.document.read_lines()
        chapter_lines = lines[chapter.start_line:chapter.end_line + 1]
        if len(chapter_lines) != chapter.line_count:
            log_warning(
                f"'{self.document_id}' changed since chapters were detected: "
                f"'{chapter.title}' expected {chapter.line_count} lines, found {len(chapter_lines)}"
            )

        self.current_index = index
        self.current_lines = chapter_lines
        self.page = 0

        if self.progress_store is not None:
            self.progress_store.set(self.document_id, chapter.title, chapter.start_line)

    # -------------------------------------------------------------------------
    # Pages
    # -------------------------------------------------------------------------

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.current_lines) / self.lines_per_page))

    @property
    def page_start_line(self) -> int:
        """Document line number of the first line on the current page."""
        return self.current_chapter.start_line + self.page * self.lines_per_page

    def page_lines(self) -> List[str]:
        start = self.page * self.lines_per_page
        return self.current_lines[start:start + self.lines_per_page]

    def next_page(self) -> bool:
        if self.page >= self.total_pages - 1:
            return False
        self.page += 1
        return True

    def previous_page(self) -> bool:
        if self.page <= 0:
            return False
        self.page -= 1
        return True
