"""SQLite ledger of model runs, used for daily usage guardrails."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .llm.types import PromptResult
from .utils import hash_text, utc_now_iso

MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS prompt_runs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            created_at TEXT NOT NULL,
            prompt TEXT NOT NULL,
            prompt_hash TEXT NOT NULL,
            model_key TEXT NOT NULL,
            provider TEXT NOT NULL,
            model_wire_id TEXT NOT NULL,
            input_tokens INTEGER NOT NULL DEFAULT 0,
            output_tokens INTEGER NOT NULL DEFAULT 0,
            total_tokens INTEGER NOT NULL DEFAULT 0,
            duration_ms INTEGER NOT NULL DEFAULT 0,
            cost_estimate REAL NOT NULL DEFAULT 0,
            error_kind TEXT,
            error TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_prompt_runs_user_created ON prompt_runs(user_id, created_at);
        """,
    ),
]


def get_connection(db_path: str) -> sqlite3.Connection:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def apply_migrations(db_path: str) -> None:
    with get_connection(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
            """
        )
        applied = {
            row["version"]
            for row in conn.execute("SELECT version FROM schema_migrations").fetchall()
        }
        for version, sql in MIGRATIONS:
            if version in applied:
                continue
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?)",
                (version, utc_now_iso()),
            )
        conn.commit()


def record_results(
    conn: sqlite3.Connection,
    user_id: str,
    prompt: str,
    model_keys: Sequence[str],
    results: Sequence[PromptResult],
) -> int:
    """Stores one row per result; `model_keys` and `results` are index-aligned."""
    if len(model_keys) != len(results):
        raise ValueError("model_keys and results must have the same length")
    created_at = utc_now_iso()
    prompt_hash = hash_text(prompt)
    rows = [
        (
            user_id,
            created_at,
            prompt,
            prompt_hash,
            key,
            result.provider.value,
            result.model_wire_id,
            result.input_tokens,
            result.output_tokens,
            result.total_tokens,
            result.duration_ms,
            result.cost_estimate,
            result.error_kind.value if result.error_kind else None,
            result.error_message,
        )
        for key, result in zip(model_keys, results)
    ]
    conn.executemany(
        """
        INSERT INTO prompt_runs(
            user_id, created_at, prompt, prompt_hash, model_key, provider, model_wire_id,
            input_tokens, output_tokens, total_tokens, duration_ms, cost_estimate, error_kind, error
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    conn.commit()
    return len(rows)


def get_usage_since(conn: sqlite3.Connection, user_id: str, since_iso: str) -> Dict[str, Any]:
    row = conn.execute(
        """
        SELECT
          COUNT(*) AS attempts,
          COALESCE(SUM(cost_estimate), 0) AS cost_usd
        FROM prompt_runs
        WHERE user_id = ? AND created_at >= ?
        """,
        (user_id, since_iso),
    ).fetchone()
    return dict(row)


def list_recent_runs(conn: sqlite3.Connection, user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM prompt_runs WHERE user_id = ? ORDER BY id DESC LIMIT ?",
        (user_id, limit),
    ).fetchall()
    return [dict(row) for row in rows]
