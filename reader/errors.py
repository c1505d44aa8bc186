"""
Stealth Reader - Reader Error Types
Exceptions raised at the reading-session boundary
"""

from enum import Enum


class ReaderError(Exception):
    """Base class for recoverable reader failures."""


class DocumentReadError(ReaderError):
    """
    A document could not be read (missing, permission denied, bad encoding).

    Attributes:
        document_id: The document that failed to load
        reason: Short description of the underlying failure
    """

    def __init__(self, document_id: str, reason: str):
        self.document_id = document_id
        self.reason = reason
        super().__init__(f"Cannot read '{document_id}': {reason}")


class ProgressStoreError(ReaderError):
    """The progress store failed to read or write a record."""


class NoActiveSessionError(ReaderError):
    """A navigation was requested while no document is open."""

    def __init__(self, message: str = "No document is currently open. Open one first."):
        super().__init__(message)


class ResumeStatus(Enum):
    """Outcome of resuming a document from its saved progress."""
    RESUMED = "resumed"                      # Saved chapter found and opened
    NO_PROGRESS = "no_progress"              # Nothing saved (or record unusable), started at chapter 1
    CHAPTER_NOT_FOUND = "chapter_not_found"  # Saved title no longer detected, started at chapter 1
