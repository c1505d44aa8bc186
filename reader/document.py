"""
Stealth Reader - Documents
Line-oriented sources for the text being read.

A document is re-read on demand instead of cached: the reading session asks
for fresh lines on every chapter change so it always slices the file as it is
on disk now.
"""

from pathlib import Path
from typing import List, Sequence, Union

import config
from reader.errors import DocumentReadError


def split_lines(text: str) -> List[str]:
    """
    Split raw text into lines, keeping blank lines in place.

    Splits on "\\n" only, so a trailing newline yields a final empty line and
    an empty string yields one empty line. Carriage returns from CRLF files
    are dropped.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    return [line.rstrip("\r") for line in text.split("\n")]


class FileDocument:
    """A plain-text file on disk, identified by its path."""

    def __init__(
        self,
        path: Union[str, Path],
        encoding: str = config.READER_FILE_ENCODING
    ):
        self.path = Path(path)
        self.encoding = encoding

    @property
    def document_id(self) -> str:
        return str(self.path)

    @property
    def name(self) -> str:
        return self.path.name

    def read_lines(self) -> List[str]:
        """
        Read the whole file and split it into lines.

        Raises:
            DocumentReadError: If the file is missing, unreadable, or not
                valid in the configured encoding
        """
        try:
            text = self.path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise DocumentReadError(self.document_id, f"not valid {self.encoding}: {e.reason}") from e
        except OSError as e:
            raise DocumentReadError(self.document_id, e.strerror or str(e)) from e
        return split_lines(text)

    def __repr__(self) -> str:
        return f"FileDocument({self.document_id!r})"


class InMemoryDocument:
    """A document whose lines are already held in memory."""

    def __init__(self, document_id: str, lines: Sequence[str]):
        self.document_id = document_id
        self._lines = list(lines)

    @classmethod
    def from_text(cls, document_id: str, text: str) -> "InMemoryDocument":
        return cls(document_id, split_lines(text))

    @property
    def name(self) -> str:
        return self.document_id

    def read_lines(self) -> List[str]:
        return list(self._lines)

    def __repr__(self) -> str:
        return f"InMemoryDocument({self.document_id!r}, {len(self._lines)} lines)"
