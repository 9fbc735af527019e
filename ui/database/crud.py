"""CRUD operations for the Streamlit UI.

All DB access is centralized here so pages remain clean.

We use simple `sqlite3` + parameterized queries. Schedules are stored as the
JSON records produced by `ui.utils.schedule_cache.schedules_to_records`.

"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import structlog


logger = structlog.get_logger()


DEFAULT_MAX_AGE = timedelta(days=7)


# -----------------
# Helper utilities
# -----------------


def _row(conn: sqlite3.Connection, query: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
    cur = conn.execute(query, params)
    r = cur.fetchone()
    return dict(r) if r is not None else None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -----------------
# Last result
# -----------------


def save_last_result(
    conn: sqlite3.Connection,
    *,
    schedules: List[Dict[str, Any]],
    input_text: str,
    fetched_stats: Optional[List[Dict[str, Any]]] = None,
    metrics: Optional[Dict[str, Any]] = None,
    current_index: int = 0,
    now: Optional[datetime] = None,
) -> None:
    """Replace the stored result with a fresh one (index reset unless given)."""

    saved_at = (now or _utcnow()).isoformat()
    conn.execute(
        """
        INSERT INTO last_result (
            id, schedules_json, current_index, input_text,
            fetched_stats_json, metrics_json, saved_at
        )
        VALUES (1, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            schedules_json=excluded.schedules_json,
            current_index=excluded.current_index,
            input_text=excluded.input_text,
            fetched_stats_json=excluded.fetched_stats_json,
            metrics_json=excluded.metrics_json,
            saved_at=excluded.saved_at
        """,
        (
            json.dumps(schedules),
            max(0, int(current_index)),
            str(input_text or ""),
            json.dumps(fetched_stats or []),
            json.dumps(metrics or {}, default=str),
            saved_at,
        ),
    )
    logger.info("last_result_saved", schedules=len(schedules), saved_at=saved_at)


def load_last_result(
    conn: sqlite3.Connection,
    *,
    max_age: timedelta = DEFAULT_MAX_AGE,
    now: Optional[datetime] = None,
) -> Optional[Dict[str, Any]]:
    """Return the stored result, or None if nothing is stored or it expired.

    Expired results are deleted on read.
    """

    r = _row(conn, "SELECT * FROM last_result WHERE id=1")
    if r is None:
        return None

    saved_at = datetime.fromisoformat(r["saved_at"])
    if saved_at.tzinfo is None:
        saved_at = saved_at.replace(tzinfo=timezone.utc)

    age = (now or _utcnow()) - saved_at
    if age > max_age:
        logger.info("last_result_expired", saved_at=r["saved_at"], age_days=age.days)
        clear_last_result(conn)
        return None

    r["schedules"] = json.loads(r.get("schedules_json") or "[]")
    r["fetched_stats"] = json.loads(r.get("fetched_stats_json") or "[]")
    r["metrics"] = json.loads(r.get("metrics_json") or "{}")
    r["saved_at"] = saved_at

    # clamp in case the stored list shrank
    if r["schedules"]:
        r["current_index"] = min(int(r["current_index"]), len(r["schedules"]) - 1)
    else:
        r["current_index"] = 0
    return r


def update_current_index(conn: sqlite3.Connection, index: int) -> bool:
    """Persist the viewed schedule index. Returns False if nothing is stored."""

    cur = conn.execute("UPDATE last_result SET current_index=? WHERE id=1", (max(0, int(index)),))
    return cur.rowcount > 0


def clear_last_result(conn: sqlite3.Connection) -> None:
    conn.execute("DELETE FROM last_result WHERE id=1")
