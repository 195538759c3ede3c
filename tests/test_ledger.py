from prompt_playground.ledger import (
    apply_migrations,
    get_connection,
    get_usage_since,
    list_recent_runs,
    record_results,
)
from prompt_playground.llm.registry import MODELS
from prompt_playground.llm.types import ErrorKind, PromptResult, Provider


def test_db_migrations_are_idempotent(tmp_path):
    db_path = str(tmp_path / "runs.db")
    apply_migrations(db_path)
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        tables = {row["name"] for row in rows}

    assert {"schema_migrations", "prompt_runs"}.issubset(tables)


def test_recorded_results_feed_daily_usage(tmp_path):
    db_path = str(tmp_path / "runs.db")
    apply_migrations(db_path)

    ok = PromptResult(
        response_text="hi",
        model_wire_id="gpt-4o-mini",
        provider=Provider.OPENAI,
        total_tokens=30,
        input_tokens=20,
        output_tokens=10,
        duration_ms=12,
        cost_estimate=0.25,
    )
    failed = PromptResult.failed(MODELS["gemini-pro"], "quota exceeded", ErrorKind.RATE_LIMITED)

    with get_connection(db_path) as conn:
        written = record_results(conn, "u1", "Hello", ["gpt-4o-mini", "gemini-pro"], [ok, failed])
        assert written == 2

        usage = get_usage_since(conn, "u1", "1970-01-01T00:00:00+00:00")
        assert usage["attempts"] == 2
        assert usage["cost_usd"] == 0.25

        other = get_usage_since(conn, "someone-else", "1970-01-01T00:00:00+00:00")
        assert other == {"attempts": 0, "cost_usd": 0}

        rows = list_recent_runs(conn, "u1")
        assert rows[0]["model_key"] == "gemini-pro"
        assert rows[0]["error_kind"] == "rate_limited"
        assert rows[0]["error"] == "quota exceeded"
        assert rows[1]["provider"] == "openai"
