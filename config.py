"""
Stealth Reader - Configuration
Paths, feature flags, and reader defaults
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


# =============================================================================
# PATHS
# =============================================================================
PROJECT_ROOT = Path(__file__).parent
DATA_DIR = Path(os.getenv("READER_DATA_DIR", str(PROJECT_ROOT / "data")))
LOGS_DIR = Path(os.getenv("READER_LOGS_DIR", str(PROJECT_ROOT / "logs")))
DATABASE_PATH = DATA_DIR / "reader.db"
DIAGNOSTIC_LOG_PATH = LOGS_DIR / "diagnostic.log"

# =============================================================================
# VERSION
# =============================================================================
VERSION = "0.1.0"
PROJECT_NAME = "Stealth Reader"

# =============================================================================
# DATABASE CONFIGURATION
# =============================================================================
DB_BUSY_TIMEOUT_MS = 10000
DB_MAX_RETRIES = 5
DB_RETRY_INITIAL_DELAY = 0.1
DB_RETRY_BACKOFF_MULTIPLIER = 2.0
DB_RETRY_MAX_DELAY = 2.0

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_TO_FILE = _env_flag("LOG_TO_FILE", "true")
LOG_TO_CONSOLE = _env_flag("LOG_TO_CONSOLE", "true")

# =============================================================================
# CHAPTER DETECTION
# =============================================================================
# A trimmed line must be shorter than this to count as a chapter title.
# Long lines that happen to start with "1." are prose, not headings.
CHAPTER_TITLE_MAX_LENGTH = 100

# Cleaned titles are cut to this many characters (keeps the chapter number).
CHAPTER_TITLE_DISPLAY_LENGTH = 80

# Title used when no chapter markers are found.
FULL_TEXT_TITLE = "Full Text"

# Title for a heading line that is nothing but markers ("# ###", "[]"),
# numbered by its position among the detected headings.
UNTITLED_CHAPTER_TITLE = "Chapter {number}"

# Title of the span holding non-blank text that precedes the first chapter.
PREAMBLE_TITLE = "Introduction"

# =============================================================================
# READING CONFIGURATION
# =============================================================================
# Lines shown per page inside a chapter.
READER_LINES_PER_PAGE = max(1, int(os.getenv("READER_LINES_PER_PAGE", "50")))

# Encoding used to read documents from disk.
READER_FILE_ENCODING = os.getenv("READER_FILE_ENCODING", "utf-8")

# =============================================================================
# DISGUISE MODE
# =============================================================================
# When enabled, each genuine line is preceded by synthetic log lines so the
# page reads like service output. The ratio controls how many:
#   filler per line = max(1, round(ratio * 10))
# so 0.3 gives three filler lines per genuine line. A ratio of 0 still gives
# one; turn the mode off with READER_DISGUISE_ENABLED instead.
READER_DISGUISE_ENABLED = _env_flag("READER_DISGUISE_ENABLED", "false")
READER_DISGUISE_RATIO = min(1.0, max(0.0, float(os.getenv("READER_DISGUISE_RATIO", "0.3"))))
