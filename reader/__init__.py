"""
Stealth Reader - Reading System
Reads long text files chapter by chapter inside a log-viewer style host.

Architecture:
    detector.py  - Detects chapter spans from a document's lines
    document.py  - File and in-memory document sources
    session.py   - Chapter cursor with paging and progress writes
    disguise.py  - Mixes synthetic log lines with the genuine text
    progress.py  - Reading list and per-document progress persistence
    engine.py    - Host-facing engine tying the pieces together
"""

from reader.detector import ChapterSpan, clean_title, detect_chapters, detect_document_chapters
from reader.disguise import DisguiseMixer, MixedLine
from reader.document import FileDocument, InMemoryDocument
from reader.engine import ChapterView, ReaderEngine, ReaderSettings, ResumeResult, create_engine
from reader.errors import (
    DocumentReadError,
    NoActiveSessionError,
    ProgressStoreError,
    ReaderError,
    ResumeStatus,
)
from reader.progress import (
    InMemoryProgressStore,
    ProgressStore,
    ReadingListEntry,
    ReadingProgress,
    SqliteProgressStore,
)
from reader.session import Direction, ReadingSession
