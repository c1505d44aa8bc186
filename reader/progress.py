"""
Stealth Reader - Progress Store
Durable per-document record: display name, last-read chapter, last-read line.

The reading list and reading progress share one record per document, keyed
by document id (the file path). Writes are idempotent: storing a value equal
to the current one issues no write at all.
"""

import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from concurrency.db_retry import db_retry, DatabaseRetryExhausted
from core.database import Database
from core.logger import log_info, log_error
from reader.errors import ProgressStoreError


@dataclass(frozen=True)
class ReadingProgress:
    """Where the reader left off in a document."""
    document_id: str
    chapter_title: str
    line_number: int


@dataclass(frozen=True)
class ReadingListEntry:
    """A document on the reading list, with its saved progress (if any)."""
    document_id: str
    display_name: str
    last_read_chapter: Optional[str] = None
    last_read_line: Optional[int] = None

    def progress(self) -> Optional[ReadingProgress]:
        """Saved progress, or None if absent or unusable."""
        if not isinstance(self.last_read_chapter, str) or not self.last_read_chapter:
            return None
        if isinstance(self.last_read_line, bool) or not isinstance(self.last_read_line, int):
            return None
        if self.last_read_line < 0:
            return None
        return ReadingProgress(
            document_id=self.document_id,
            chapter_title=self.last_read_chapter,
            line_number=self.last_read_line,
        )


def default_display_name(document_id: str) -> str:
    """The file's base name, or the id itself when it has none."""
    return Path(document_id).name or document_id


class ProgressStore(ABC):
    """
    Abstract base class for progress stores.

    Subclasses provide raw record access; the idempotence rules and reading
    list semantics live here so every backend behaves the same.
    """

    def __init__(self):
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Backend interface
    # -------------------------------------------------------------------------

    @abstractmethod
    def _load_entry(self, document_id: str) -> Optional[ReadingListEntry]:
        """Fetch the stored record for a document, or None."""
        pass

    @abstractmethod
    def _save_entry(self, entry: ReadingListEntry) -> None:
        """Insert or replace the record for entry.document_id."""
        pass

    @abstractmethod
    def _delete_entry(self, document_id: str) -> bool:
        """Delete the record; True if one existed."""
        pass

    @abstractmethod
    def entries(self) -> List[ReadingListEntry]:
        """All records, in the order documents were added."""
        pass

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def get(self, document_id: str) -> Optional[ReadingProgress]:
        """Saved progress for a document; None when absent or malformed."""
        entry = self._load_entry(document_id)
        return entry.progress() if entry else None

    def set(self, document_id: str, chapter_title: str, line_number: int) -> bool:
        """
        Record the last-read chapter for a document.

        Creates the record (with the default display name) if needed.

        Returns:
            True if a write was issued, False if the stored value already matched

        Raises:
            ProgressStoreError: If the backend write fails
        """
        with self._lock:
            entry = self._load_entry(document_id)
            if entry is None:
                entry = ReadingListEntry(
                    document_id=document_id,
                    display_name=default_display_name(document_id),
                )
            elif entry.last_read_chapter == chapter_title and entry.last_read_line == line_number:
                return False

            self._save_entry(replace(
                entry,
                last_read_chapter=chapter_title,
                last_read_line=line_number,
            ))
            return True

    def remove(self, document_id: str) -> bool:
        """Forget a document entirely. Returns True if it was stored."""
        with self._lock:
            return self._delete_entry(document_id)

    # -------------------------------------------------------------------------
    # Reading list
    # -------------------------------------------------------------------------

    def add(self, document_id: str, display_name: Optional[str] = None) -> ReadingListEntry:
        """
        Put a document on the reading list; existing records are left alone
        apart from an explicitly given display name.
        """
        with self._lock:
            entry = self._load_entry(document_id)
            if entry is None:
                entry = ReadingListEntry(
                    document_id=document_id,
                    display_name=display_name or default_display_name(document_id),
                )
                self._save_entry(entry)
                log_info(f"Added '{entry.display_name}' to the reading list", prefix="📚")
            elif display_name and entry.display_name != display_name:
                entry = replace(entry, display_name=display_name)
                self._save_entry(entry)
            return entry

    def get_display_name(self, document_id: str) -> str:
        entry = self._load_entry(document_id)
        return entry.display_name if entry else default_display_name(document_id)

    def set_display_name(self, document_id: str, display_name: str) -> bool:
        """Rename a document. Returns True if a write was issued."""
        with self._lock:
            entry = self._load_entry(document_id)
            if entry is None:
                entry = ReadingListEntry(document_id=document_id, display_name=display_name)
            elif entry.display_name == display_name:
                return False
            else:
                entry = replace(entry, display_name=display_name)
            self._save_entry(entry)
            return True

    def has_custom_name(self, document_id: str) -> bool:
        entry = self._load_entry(document_id)
        return entry is not None and entry.display_name != default_display_name(document_id)


class InMemoryProgressStore(ProgressStore):
    """Dictionary-backed store for tests and hosts that persist elsewhere."""

    def __init__(self):
        super().__init__()
        self._entries: Dict[str, ReadingListEntry] = {}

    def _load_entry(self, document_id: str) -> Optional[ReadingListEntry]:
        return self._entries.get(document_id)

    def _save_entry(self, entry: ReadingListEntry) -> None:
        self._entries[entry.document_id] = entry

    def _delete_entry(self, document_id: str) -> bool:
        return self._entries.pop(document_id, None) is not None

    def entries(self) -> List[ReadingListEntry]:
        return list(self._entries.values())


class SqliteProgressStore(ProgressStore):
    """Store backed by the reading_list table."""

    def __init__(self, db: Database):
        super().__init__()
        self._db = db

    @db_retry()
    def _execute(self, sql: str, params: tuple = (), fetch: bool = False):
        return self._db.execute(sql, params, fetch=fetch)

    def _query(self, action: str, sql: str, params: tuple = (), fetch: bool = False):
        try:
            return self._execute(sql, params, fetch)
        except (sqlite3.Error, DatabaseRetryExhausted) as e:
            log_error(f"Progress store could not {action}: {e}")
            raise ProgressStoreError(f"Could not {action}: {e}") from e

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> ReadingListEntry:
        line = row["last_read_line"]
        if isinstance(line, str) and line.strip().lstrip("-").isdigit():
            line = int(line)
        return ReadingListEntry(
            document_id=row["document_id"],
            display_name=row["display_name"],
            last_read_chapter=row["last_read_chapter"],
            last_read_line=line,
        )

    def _load_entry(self, document_id: str) -> Optional[ReadingListEntry]:
        rows = self._query(
            f"load progress for '{document_id}'",
            """
            SELECT document_id, display_name, last_read_chapter, last_read_line
            FROM reading_list WHERE document_id = ?
            """,
            (document_id,),
            fetch=True
        )
        return self._row_to_entry(rows[0]) if rows else None

    def _save_entry(self, entry: ReadingListEntry) -> None:
        now = datetime.now().isoformat()
        self._query(
            f"save progress for '{entry.document_id}'",
            """
            INSERT INTO reading_list
                (document_id, display_name, last_read_chapter, last_read_line, added_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(document_id) DO UPDATE SET
                display_name = excluded.display_name,
                last_read_chapter = excluded.last_read_chapter,
                last_read_line = excluded.last_read_line,
                updated_at = excluded.updated_at
            """,
            (
                entry.document_id, entry.display_name,
                entry.last_read_chapter, entry.last_read_line,
                now, now,
            )
        )

    def _delete_entry(self, document_id: str) -> bool:
        rows = self._query(
            f"look up '{document_id}'",
            "SELECT 1 FROM reading_list WHERE document_id = ?",
            (document_id,),
            fetch=True
        )
        if not rows:
            return False
        self._query(
            f"remove '{document_id}'",
            "DELETE FROM reading_list WHERE document_id = ?",
            (document_id,)
        )
        return True

    def entries(self) -> List[ReadingListEntry]:
        rows = self._query(
            "list the reading list",
            """
            SELECT document_id, display_name, last_read_chapter, last_read_line
            FROM reading_list ORDER BY rowid
            """,
            fetch=True
        )
        return [self._row_to_entry(row) for row in rows]
