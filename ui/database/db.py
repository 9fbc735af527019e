"""SQLite database connection + schema initialization.

The store is deliberately small:
- SQLite file stored locally (persists between restarts)
- schema created on first run
- a single `last_result` row holding the most recent generation

The Streamlit UI will import this module.

"""

from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_DB_FILENAME = "schedule_builder.db"


@dataclass(frozen=True)
class DBConfig:
    """Database configuration for the app."""

    db_path: Path


def default_db_path() -> Path:
    """Resolve DB path.

    Uses `SCHEDULE_BUILDER_DB` env var if set, else stores under `ui/database/`.
    """

    override = os.getenv("SCHEDULE_BUILDER_DB")
    if override:
        return Path(override).expanduser().resolve()

    # Keep DB next to this file for portability
    return (Path(__file__).resolve().parent / DEFAULT_DB_FILENAME).resolve()


def get_connection(config: Optional[DBConfig] = None) -> sqlite3.Connection:
    """Create a SQLite connection with sane defaults."""

    db_path = (config.db_path if config else default_db_path())
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create all required tables if they do not exist."""

    conn.executescript(
        """
        -- Most recent generation; at most one row
        CREATE TABLE IF NOT EXISTS last_result (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            schedules_json TEXT NOT NULL DEFAULT '[]',
            current_index INTEGER NOT NULL DEFAULT 0 CHECK (current_index >= 0),
            input_text TEXT NOT NULL DEFAULT '',
            fetched_stats_json TEXT NOT NULL DEFAULT '[]',
            saved_at TEXT NOT NULL -- ISO timestamp (UTC)
        );
        """
    )

    # --- Lightweight migrations (SQLite)
    # Databases created before run metadata was stored lack this column.
    cols = {r[1] for r in conn.execute("PRAGMA table_info(last_result)").fetchall()}
    if "metrics_json" not in cols:
        conn.execute("ALTER TABLE last_result ADD COLUMN metrics_json TEXT NOT NULL DEFAULT '{}'")
    conn.commit()


class db_session:
    """Context manager that opens a connection and ensures schema exists."""

    def __init__(self, config: Optional[DBConfig] = None):
        self._config = config
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> sqlite3.Connection:
        self._conn = get_connection(self._config)
        init_db(self._conn)
        return self._conn

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._conn is not None
        if exc_type is None:
            self._conn.commit()
        else:
            self._conn.rollback()
        self._conn.close()
        self._conn = None
