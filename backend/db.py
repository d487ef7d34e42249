from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from appconfig import get_settings


def _connect() -> sqlite3.Connection:
    db_path = get_settings().db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=30)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def init_db() -> None:
    with _connect() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS summaries (
                id TEXT PRIMARY KEY,
                created_at TEXT NOT NULL,
                user_id TEXT,
                original_text TEXT NOT NULL,
                summary TEXT NOT NULL,
                source TEXT NOT NULL,
                model TEXT,
                cost_estimate REAL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_summaries_user ON summaries (user_id, created_at)")


def save_summary(
    *,
    user_id: Optional[str],
    original_text: str,
    summary: str,
    source: str,
    model: Optional[str] = None,
    cost_estimate: Optional[float] = None,
) -> str:
    summary_id = uuid.uuid4().hex
    created_at = datetime.now(timezone.utc).isoformat()

    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO summaries (
                id,
                created_at,
                user_id,
                original_text,
                summary,
                source,
                model,
                cost_estimate
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (summary_id, created_at, user_id, original_text, summary, source, model, cost_estimate),
        )
    return summary_id


def list_summaries(user_id: Optional[str], limit: int = 50) -> List[Dict[str, Any]]:
    """Newest first. `user_id=None` lists the anonymous records."""
    with _connect() as conn:
        rows = conn.execute(
            """
            SELECT id, created_at, user_id, summary, source
            FROM summaries
            WHERE user_id IS ?
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()

    return [
        {
            "id": r["id"],
            "created_at": r["created_at"],
            "user_id": r["user_id"],
            "source": r["source"],
            "summary_preview": (r["summary"] or "")[:200],
        }
        for r in rows
    ]


def get_summary(summary_id: str) -> Optional[Dict[str, Any]]:
    with _connect() as conn:
        row = conn.execute(
            """
            SELECT
                id,
                created_at,
                user_id,
                original_text,
                summary,
                source,
                model,
                cost_estimate
            FROM summaries
            WHERE id = ?
            """,
            (summary_id,),
        ).fetchone()

    if not row:
        return None
    return dict(row)
