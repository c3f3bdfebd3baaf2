# ABOUTME: SQLite database connection management for the booklog catalog.
# ABOUTME: Opens or creates the database, applies schema, and provides connection context.

import logging
import sqlite3
from pathlib import Path

from booklog.db.schema import SCHEMA_V1, SCHEMA_VERSION

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".booklog" / "library.db"


def _schema_exists(conn: sqlite3.Connection) -> bool:
    """Check if the schema has already been applied."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    return cursor.fetchone() is not None


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the current schema version from the database."""
    cursor = conn.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
    row = cursor.fetchone()
    return row[0] if row else 0


def open_library(path: Path | None = None) -> sqlite3.Connection:
    """Open or create the booklog catalog database.

    Creates the database file and parent directories if they don't exist.
    Applies the schema on first creation. Sets WAL journal mode and
    sqlite3.Row factory for dict-like column access.

    Args:
        path: Path to the database file. Defaults to ~/.booklog/library.db.

    Returns:
        A configured sqlite3.Connection.
    """
    db_path = path or DEFAULT_DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")

    if not _schema_exists(conn):
        logger.debug("Creating catalog schema v%d in %s", SCHEMA_VERSION, db_path)
        conn.executescript(SCHEMA_V1)

    return conn
