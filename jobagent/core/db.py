"""SQLite persistence for parsed resumes, job listing batches and cover letters.

The store is insert-only. Stages write through ``emit_record``, which never
lets a storage failure reach the caller.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

PARSED_RESUMES = "parsed_resumes"
JOB_LISTINGS = "job_listings"
COVER_LETTERS = "cover_letters"

_PARSED_RESUMES_TABLE = """
CREATE TABLE IF NOT EXISTS parsed_resumes (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    resume_text     TEXT NOT NULL,
    parsed_data     TEXT NOT NULL,
    created_at      TEXT NOT NULL
);
"""

_JOB_LISTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS job_listings (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    query           TEXT NOT NULL,
    location        TEXT NOT NULL DEFAULT '',
    skills          TEXT NOT NULL,
    jobs            TEXT NOT NULL,
    created_at      TEXT NOT NULL
);
"""

_COVER_LETTERS_TABLE = """
CREATE TABLE IF NOT EXISTS cover_letters (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    job_description TEXT NOT NULL,
    resume_data     TEXT NOT NULL,
    cover_letter    TEXT NOT NULL,
    tone            TEXT NOT NULL,
    language        TEXT NOT NULL,
    created_at      TEXT NOT NULL
);
"""

_COLUMNS: dict[str, tuple[str, ...]] = {
    PARSED_RESUMES: ("resume_text", "parsed_data"),
    JOB_LISTINGS: ("query", "location", "skills", "jobs"),
    COVER_LETTERS: ("job_description", "resume_data", "cover_letter", "tone", "language"),
}

_JSON_COLUMNS = frozenset({"parsed_data", "skills", "jobs", "resume_data"})


class RecordSink(Protocol):
    """Insert-only record store keyed by logical table name."""

    def insert(self, table: str, record: dict[str, Any]) -> None: ...


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_PARSED_RESUMES_TABLE)
    conn.execute(_JOB_LISTINGS_TABLE)
    conn.execute(_COVER_LETTERS_TABLE)
    conn.commit()
    return conn


def insert_record(conn: sqlite3.Connection, table: str, record: dict[str, Any]) -> int:
    """Insert one record into a known table. Returns the row ID.

    JSON columns are stored as JSON text. Keys not belonging to the table
    are ignored; missing text columns are stored as empty strings.
    """
    if table not in _COLUMNS:
        msg = f"Unknown table '{table}'. Expected one of {sorted(_COLUMNS)}"
        raise ValueError(msg)

    columns = _COLUMNS[table]
    values = [
        json.dumps(record.get(col)) if col in _JSON_COLUMNS else _to_column(record.get(col))
        for col in columns
    ]
    placeholders = ", ".join("?" for _ in range(len(columns) + 1))
    cursor = conn.execute(
        f"INSERT INTO {table} ({', '.join(columns)}, created_at) VALUES ({placeholders})",
        (*values, datetime.now().isoformat()),
    )
    conn.commit()
    return cursor.lastrowid or 0


def fetch_records(conn: sqlite3.Connection, table: str) -> list[dict[str, Any]]:
    """Return all rows of a known table, oldest first, with JSON columns decoded."""
    if table not in _COLUMNS:
        msg = f"Unknown table '{table}'. Expected one of {sorted(_COLUMNS)}"
        raise ValueError(msg)
    rows = conn.execute(f"SELECT * FROM {table} ORDER BY id").fetchall()
    return [
        {key: json.loads(row[key]) if key in _JSON_COLUMNS else row[key] for key in row.keys()}
        for row in rows
    ]


class SqliteRecordSink:
    """RecordSink backed by a SQLite connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def insert(self, table: str, record: dict[str, Any]) -> None:
        row_id = insert_record(self._conn, table, record)
        logger.debug("Stored %s row %d", table, row_id)


def emit_record(sink: RecordSink | None, table: str, record: dict[str, Any]) -> None:
    """Hand a record to the sink without letting its failure escape."""
    if sink is None:
        return
    try:
        sink.insert(table, record)
    except Exception:
        logger.warning("Failed to store record in '%s' - continuing", table, exc_info=True)


def _to_column(value: Any) -> Any:
    if value is None:
        return ""
    return value

