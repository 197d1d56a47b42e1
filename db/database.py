import sqlite3
from contextlib import contextmanager
from pathlib import Path

from .schema import SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION

CONFIG_DIR = Path.home() / ".lecturelens"
DB_PATH = CONFIG_DIR / "lecturelens.db"

def init_db():
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)
        ensure_flashcard_version(conn)
        ensure_flashcard_source_content(conn)
        conn.executescript(INDEXES_SQL)
        ensure_schema_version(conn)
        conn.commit()

def ensure_flashcard_version(conn: sqlite3.Connection) -> None:
    """Ensure flashcards table has the version column used for compare-and-swap saves."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(flashcards)")
    columns = {row[1] for row in cursor.fetchall()}
    if "version" not in columns:
        cursor.execute("ALTER TABLE flashcards ADD COLUMN version INTEGER NOT NULL DEFAULT 0")

def ensure_flashcard_source_content(conn: sqlite3.Connection) -> None:
    """Ensure flashcards table has the tutor source_content column for existing installs."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(flashcards)")
    columns = {row[1] for row in cursor.fetchall()}
    if "source_content" not in columns:
        cursor.execute("ALTER TABLE flashcards ADD COLUMN source_content TEXT NOT NULL DEFAULT ''")

def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0

def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")

def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)

@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = sqlite3.connect(DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()

def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn
