"""
Stealth Reader - Database Module
SQLite with WAL mode, schema management, and connection handling
"""

import sqlite3
from pathlib import Path
from typing import Optional, List, Tuple
from contextlib import contextmanager

from core.logger import log_success, log_error, log_config, log_section

# Schema version for migrations
SCHEMA_VERSION = 1

# SQL schema definition
SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Reading list: one row per document the user has added or opened.
-- last_read_chapter is matched by exact title against freshly detected
-- chapters, so it stays meaningful after the file is edited.
CREATE TABLE IF NOT EXISTS reading_list (
    document_id TEXT PRIMARY KEY,
    display_name TEXT NOT NULL,
    last_read_chapter TEXT,
    last_read_line INTEGER,
    added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_reading_list_updated ON reading_list(updated_at DESC);
"""


class Database:
    """SQLite database manager with WAL mode and thread-safe connections."""

    def __init__(
        self,
        db_path: Path,
        busy_timeout_ms: int = 10000,
    ):
        """
        Initialize the database.

        Args:
            db_path: Path to the SQLite database file
            busy_timeout_ms: Timeout for busy/locked database
        """
        self.db_path = db_path
        self.busy_timeout_ms = busy_timeout_ms

    def initialize(self) -> bool:
        """
        Initialize the database: create file, set WAL mode, apply schema.

        Returns:
            True if successful, False otherwise
        """
        try:
            # Ensure data directory exists
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            log_section("Initializing database", "📁")
            log_config("Path", str(self.db_path), indent=1)

            with self.get_connection() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
                conn.execute(f"PRAGMA busy_timeout={self.busy_timeout_ms}")

                cursor = conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
                )
                if cursor.fetchone() is None:
                    # Fresh database, apply full schema
                    conn.executescript(SCHEMA_SQL)
                    conn.execute(
                        "INSERT INTO schema_version (version) VALUES (?)",
                        (SCHEMA_VERSION,)
                    )
                    log_config("Schema", f"Created (v{SCHEMA_VERSION})", indent=1)
                else:
                    cursor = conn.execute(
                        "SELECT MAX(version) FROM schema_version"
                    )
                    current_version = cursor.fetchone()[0] or 0
                    if current_version > SCHEMA_VERSION:
                        raise RuntimeError(
                            f"Database schema v{current_version} is newer than this "
                            f"release supports (v{SCHEMA_VERSION})"
                        )
                    log_config("Schema", f"Version {current_version}", indent=1)

                cursor = conn.execute("PRAGMA journal_mode")
                mode = cursor.fetchone()[0]
                log_config("Mode", f"{mode.upper()} (Write-Ahead Logging)", indent=1)

            log_success("Database ready")
            return True

        except (sqlite3.Error, OSError, RuntimeError) as e:
            log_error(f"Database initialization failed: {e}")
            return False

    @contextmanager
    def get_connection(self) -> sqlite3.Connection:
        """
        Get a database connection with proper configuration.

        Yields:
            Configured SQLite connection
        """
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout_ms / 1000,
            check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute(
        self,
        sql: str,
        params: Tuple = (),
        fetch: bool = False
    ) -> Optional[List[sqlite3.Row]]:
        """
        Execute a SQL statement.

        Args:
            sql: SQL statement
            params: Parameters for the statement
            fetch: Whether to fetch and return results

        Returns:
            List of rows if fetch=True, None otherwise
        """
        with self.get_connection() as conn:
            cursor = conn.execute(sql, params)
            if fetch:
                return cursor.fetchall()
            return None

    def get_stats(self) -> dict:
        """Get database statistics."""
        stats = {}

        with self.get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM reading_list")
            stats["documents"] = cursor.fetchone()[0]

            cursor = conn.execute(
                "SELECT COUNT(*) FROM reading_list WHERE last_read_chapter IS NOT NULL"
            )
            stats["documents_with_progress"] = cursor.fetchone()[0]

        return stats


def init_database(db_path: Path, busy_timeout_ms: int = 10000) -> Database:
    """
    Create and initialize a database.

    Raises:
        RuntimeError: If the database could not be created or migrated
    """
    db = Database(db_path, busy_timeout_ms)
    if not db.initialize():
        raise RuntimeError(f"Failed to initialize database at {db_path}")
    return db
