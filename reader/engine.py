"""
Stealth Reader - Reader Engine
Single entry point for a host: reading list, chapter lists, navigation,
resume, and the page view to render.

An engine owns its session, progress store, mixer and settings; nothing is
module-global, so independent engines can coexist (one per window, one per
test). Navigation is serialized by a lock, and the progress write for one
navigation completes before the next navigation starts.
"""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

import config
from core.database import init_database
from core.logger import log_info, log_section, log_warning, setup_logging
from reader.detector import ChapterSpan, detect_document_chapters
from reader.disguise import DisguiseMixer, MixedLine, filler_lines_per_content_line, plain_lines
from reader.document import FileDocument
from reader.errors import NoActiveSessionError, ProgressStoreError, ResumeStatus
from reader.progress import ProgressStore, ReadingListEntry, SqliteProgressStore
from reader.session import Direction, ReadingSession

PathLike = Union[str, Path]


@dataclass
class ReaderSettings:
    """Reader preferences that shape what a page looks like."""
    disguise_enabled: bool = False
    disguise_ratio: float = 0.3
    lines_per_page: int = 50
    encoding: str = "utf-8"

    def __post_init__(self):
        # Validates the ratio up front rather than on the first render
        filler_lines_per_content_line(self.disguise_ratio)
        if self.lines_per_page < 1:
            raise ValueError(f"lines_per_page must be at least 1, got {self.lines_per_page}")

    @classmethod
    def from_config(cls) -> "ReaderSettings":
        return cls(
            disguise_enabled=config.READER_DISGUISE_ENABLED,
            disguise_ratio=config.READER_DISGUISE_RATIO,
            lines_per_page=config.READER_LINES_PER_PAGE,
            encoding=config.READER_FILE_ENCODING,
        )


@dataclass
class ChapterView:
    """Everything a presenter needs to draw the current page."""
    chapter: ChapterSpan
    chapter_index: int
    chapter_count: int
    display_name: str
    page: int                # 0-indexed
    total_pages: int
    page_start_line: int     # Document line of the first genuine line
    page_end_line: int       # Document line of the last genuine line
    lines: List[MixedLine]
    disguised: bool

    @property
    def genuine_lines(self) -> List[MixedLine]:
        return [line for line in self.lines if line.is_genuine]


@dataclass
class ResumeResult:
    """Outcome of resume_last_read()."""
    view: ChapterView
    status: ResumeStatus
    message: str

    @property
    def resumed(self) -> bool:
        return self.status == ResumeStatus.RESUMED


class ReaderEngine:
    """
    Reading subsystem for one host instance.

    Args:
        progress_store: Where reading list and progress are kept
        settings: Page and disguise preferences (defaults from config)
        mixer: Disguise mixer; inject one with a seeded rng for
            reproducible pages
        document_factory: Builds a document from a path; defaults to
            FileDocument with the configured encoding
    """

    def __init__(
        self,
        progress_store: ProgressStore,
        settings: Optional[ReaderSettings] = None,
        mixer: Optional[DisguiseMixer] = None,
        document_factory: Optional[Callable[[str], object]] = None,
    ):
        self.progress_store = progress_store
        self.settings = settings or ReaderSettings.from_config()
        self.mixer = mixer or DisguiseMixer()
        self._document_factory = document_factory or (
            lambda path: FileDocument(path, encoding=self.settings.encoding)
        )
        self.session: Optional[ReadingSession] = None
        self._lock = threading.RLock()

    def _document(self, path: PathLike):
        return self._document_factory(str(path))

    # -------------------------------------------------------------------------
    # Reading list
    # -------------------------------------------------------------------------

    def add_document(self, path: PathLike, display_name: Optional[str] = None) -> ReadingListEntry:
        document = self._document(path)
        return self.progress_store.add(document.document_id, display_name)

    def remove_document(self, path: PathLike) -> bool:
        """Drop a document and its progress; closes it if it is open."""
        document = self._document(path)
        with self._lock:
            if self.session is not None and self.session.document_id == document.document_id:
                self.close()
            removed = self.progress_store.remove(document.document_id)
        if removed:
            log_info(f"Removed '{document.document_id}' from the reading list", prefix="📚")
        return removed

    def rename_document(self, path: PathLike, display_name: str) -> bool:
        document = self._document(path)
        return self.progress_store.set_display_name(document.document_id, display_name)

    def reading_list(self) -> List[ReadingListEntry]:
        return self.progress_store.entries()

    def list_chapters(self, path: PathLike) -> List[ChapterSpan]:
        """Chapters of a document, freshly detected from its current contents."""
        return detect_document_chapters(self._document(path))

    # -------------------------------------------------------------------------
    # Opening
    # -------------------------------------------------------------------------

    def open_document(self, path: PathLike, target: Optional[ChapterSpan] = None) -> ChapterView:
        """
        Open a document at target (matched by title and start line) or at
        its first chapter. Replaces any open session.

        Raises:
            DocumentReadError: If the document cannot be read; the previous
                session, if any, stays open
        """
        document = self._document(path)
        with self._lock:
            chapters = detect_document_chapters(document)
            self._open(document, chapters, target)
            return self._view()

    def resume_last_read(self, path: PathLike) -> ResumeResult:
        """
        Open a document at its saved chapter.

        Missing or unusable progress starts at the first chapter. So does a
        saved title that no longer appears in the document, reported as
        ResumeStatus.CHAPTER_NOT_FOUND.

        Raises:
            DocumentReadError: If the document cannot be read
        """
        document = self._document(path)
        with self._lock:
            try:
                progress = self.progress_store.get(document.document_id)
            except ProgressStoreError as e:
                log_warning(f"Ignoring unreadable progress for '{document.document_id}': {e}")
                progress = None

            chapters = detect_document_chapters(document)

            if progress is None:
                self._open(document, chapters, None)
                return ResumeResult(
                    view=self._view(),
                    status=ResumeStatus.NO_PROGRESS,
                    message="No saved progress, starting from the beginning.",
                )

            target = self._match_saved_chapter(chapters, progress.chapter_title, progress.line_number)
            if target is None:
                log_warning(
                    f"Saved chapter '{progress.chapter_title}' not found in "
                    f"'{document.document_id}', resuming from the start"
                )
                self._open(document, chapters, None)
                return ResumeResult(
                    view=self._view(),
                    status=ResumeStatus.CHAPTER_NOT_FOUND,
                    message=f"Chapter '{progress.chapter_title}' not found, resumed from start.",
                )

            self._open(document, chapters, target)
            return ResumeResult(
                view=self._view(),
                status=ResumeStatus.RESUMED,
                message=f"Resumed at '{target.title}'.",
            )

    @staticmethod
    def _match_saved_chapter(
        chapters: List[ChapterSpan],
        title: str,
        line_number: int,
    ) -> Optional[ChapterSpan]:
        matches = [chapter for chapter in chapters if chapter.title == title]
        if not matches:
            return None
        # Repeated titles: prefer the one that still starts where we left off
        for chapter in matches:
            if chapter.start_line == line_number:
                return chapter
        return matches[0]

    def _open(self, document, chapters: List[ChapterSpan], target: Optional[ChapterSpan]) -> None:
        self.session = ReadingSession.open(
            document,
            chapters,
            target=target,
            progress_store=self.progress_store,
            lines_per_page=self.settings.lines_per_page,
        )

    def close(self) -> None:
        with self._lock:
            if self.session is not None:
                log_info(f"Closed '{self.session.document_id}'", prefix="📖")
            self.session = None

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def _require_session(self) -> ReadingSession:
        if self.session is None:
            raise NoActiveSessionError()
        return self.session

    def next_chapter(self) -> ChapterView:
        with self._lock:
            self._require_session().advance(Direction.FORWARD)
            return self._view()

    def previous_chapter(self) -> ChapterView:
        with self._lock:
            self._require_session().advance(Direction.BACKWARD)
            return self._view()

    def next_page(self) -> ChapterView:
        with self._lock:
            self._require_session().next_page()
            return self._view()

    def previous_page(self) -> ChapterView:
        with self._lock:
            self._require_session().previous_page()
            return self._view()

    def current_view(self) -> ChapterView:
        with self._lock:
            return self._view()

    def _view(self) -> ChapterView:
        session = self._require_session()
        page_lines = session.page_lines()
        start = session.page_start_line

        if self.settings.disguise_enabled:
            lines = self.mixer.mix(page_lines, self.settings.disguise_ratio, start_line=start)
        else:
            lines = plain_lines(page_lines, start_line=start)

        return ChapterView(
            chapter=session.current_chapter,
            chapter_index=session.current_index,
            chapter_count=len(session.chapters),
            display_name=self.progress_store.get_display_name(session.document_id),
            page=session.page,
            total_pages=session.total_pages,
            page_start_line=start,
            page_end_line=start + max(len(page_lines), 1) - 1,
            lines=lines,
            disguised=self.settings.disguise_enabled,
        )


def create_engine(
    db_path: Optional[Path] = None,
    settings: Optional[ReaderSettings] = None,
    mixer: Optional[DisguiseMixer] = None,
    log_path: Optional[Path] = None,
) -> ReaderEngine:
    """
    Build an engine backed by the SQLite reading list.

    Sets up logging first (diagnostic log file and/or console, per config).

    Raises:
        RuntimeError: If the database cannot be initialized
    """
    setup_logging(
        log_file_path=log_path or config.DIAGNOSTIC_LOG_PATH,
        level=config.LOG_LEVEL,
        log_to_file=config.LOG_TO_FILE,
        log_to_console=config.LOG_TO_CONSOLE,
    )
    log_section(f"{config.PROJECT_NAME} v{config.VERSION}", "📖")

    db = init_database(
        db_path=db_path or config.DATABASE_PATH,
        busy_timeout_ms=config.DB_BUSY_TIMEOUT_MS,
    )
    return ReaderEngine(SqliteProgressStore(db), settings=settings, mixer=mixer)
