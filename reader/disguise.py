"""
Stealth Reader - Disguise Mixer
Interleaves synthetic log lines with genuine text so a page reads like
service output.

Each genuine line is preceded by k filler lines, where
k = max(1, round(ratio * 10)). The ratio is a coarse dial, not the fraction
of output that is filler: 0.3 means three filler lines per genuine line.

Every output line carries an explicit is_genuine flag. Renderers must use it
rather than re-deriving genuineness from the text, since a document may well
contain lines that look like log output.
"""

import math
import random
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence

LOG_LEVELS = ("INFO", "DEBUG", "WARN", "ERROR")

LOG_COMPONENTS = (
    "DatabaseManager", "UserService", "FileProcessor", "CacheManager",
    "NetworkClient", "DataValidator", "AuthService", "LogManager",
    "ConfigLoader", "APIHandler", "StorageService", "TaskScheduler",
)

LOG_ACTIONS = (
    "initialized successfully", "processing request", "data validation passed",
    "cache updated", "connection established", "operation completed",
    "warning threshold reached", "error occurred during processing",
    "user authenticated", "file loaded", "database query executed",
    "memory usage optimized", "service restarted", "timeout detected",
)

# Advisory only: used for coloring, never to decide what is genuine
_FILLER_SHAPE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \w+ \w+:")


@dataclass(frozen=True)
class MixedLine:
    """One line of mixer output."""
    text: str
    is_genuine: bool
    line_number: Optional[int] = None  # Original 0-indexed document line, None for filler


def filler_lines_per_content_line(ratio: float) -> int:
    """
    Number of filler lines emitted before each genuine line.

    Rounds half up, so 0.25 gives 3 and 0.05 gives 1.

    Raises:
        ValueError: If ratio is outside [0, 1]
    """
    if not 0.0 <= ratio <= 1.0:
        raise ValueError(f"Disguise ratio must be between 0 and 1, got {ratio}")
    return max(1, int(math.floor(ratio * 10 + 0.5)))


def looks_like_filler(text: str) -> bool:
    """Whether a line has the shape of a generated log line."""
    return bool(_FILLER_SHAPE.match(text))


class DisguiseMixer:
    """
    Generates filler log lines and mixes them with genuine content.

    Args:
        rng: Source of choices; anything with a random.Random-style
            choice(seq) method. Pass a seeded random.Random for
            reproducible output.
        clock: Zero-argument callable returning the datetime stamped on
            filler lines.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock if clock is not None else datetime.now

    def filler_line(self) -> str:
        """One synthetic line: "[YYYY-MM-DD HH:MM:SS] LEVEL Component: action"."""
        timestamp = self._clock().strftime("%Y-%m-%d %H:%M:%S")
        level = self._rng.choice(LOG_LEVELS)
        component = self._rng.choice(LOG_COMPONENTS)
        action = self._rng.choice(LOG_ACTIONS)
        return f"[{timestamp}] {level} {component}: {action}"

    def mix(
        self,
        content_lines: Sequence[str],
        ratio: float,
        start_line: int = 0,
    ) -> List[MixedLine]:
        """
        Interleave filler with genuine lines.

        Output order is filler x k, genuine, filler x k, genuine, ... so the
        result has len(content_lines) * (k + 1) lines. The i-th genuine line
        is tagged with line_number start_line + i.

        Args:
            content_lines: Genuine lines, in order
            ratio: Disguise ratio in [0, 1]
            start_line: Document line number of content_lines[0]

        Returns:
            List of MixedLine

        Raises:
            ValueError: If ratio is outside [0, 1]
        """
        per_line = filler_lines_per_content_line(ratio)
        mixed: List[MixedLine] = []

        for offset, text in enumerate(content_lines):
            for _ in range(per_line):
                mixed.append(MixedLine(text=self.filler_line(), is_genuine=False))
            mixed.append(MixedLine(text=text, is_genuine=True, line_number=start_line + offset))

        return mixed


def plain_lines(content_lines: Sequence[str], start_line: int = 0) -> List[MixedLine]:
    """Tag lines as genuine without adding filler (disguise turned off)."""
    return [
        MixedLine(text=text, is_genuine=True, line_number=start_line + offset)
        for offset, text in enumerate(content_lines)
    ]
