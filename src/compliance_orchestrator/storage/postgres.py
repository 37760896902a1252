"""PostgreSQL-backed run storage with automatic table migration."""

from __future__ import annotations

import json
import threading
from datetime import UTC, datetime
from typing import Any

from compliance_orchestrator.storage.models import RunRecord, run_status


class PostgresRunStorage:
    """Persist process runs in PostgreSQL."""

    def __init__(self, database_url: str) -> None:
        if not database_url:
            raise ValueError("COMPLIANCE_ORCHESTRATOR_DATABASE_URL is required")
        self.database_url = database_url
        self._lock = threading.Lock()
        self._psycopg, self._dict_row, self._json_wrapper = self._load_psycopg()

    def migrate(self) -> None:
        with self._lock, self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS process_runs (
                    run_id TEXT PRIMARY KEY,
                    process_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    success BOOLEAN NOT NULL,
                    failed_phase TEXT,
                    inputs_json JSONB NOT NULL DEFAULT '{}'::jsonb,
                    result_json JSONB NOT NULL DEFAULT '{}'::jsonb,
                    executor_json JSONB,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_process_runs_process_id
                ON process_runs(process_id)
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_process_runs_created_at
                ON process_runs(created_at DESC)
                """)
            conn.commit()

    def save_run(
        self,
        *,
        run_id: str,
        process_id: str,
        inputs: dict[str, Any],
        result: dict[str, Any],
        executor: dict[str, Any] | None,
    ) -> RunRecord:
        now = datetime.now(tz=UTC)
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO process_runs (
                    run_id,
                    process_id,
                    status,
                    success,
                    failed_phase,
                    inputs_json,
                    result_json,
                    executor_json,
                    created_at,
                    updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (run_id) DO UPDATE
                SET status = EXCLUDED.status,
                    success = EXCLUDED.success,
                    failed_phase = EXCLUDED.failed_phase,
                    result_json = EXCLUDED.result_json,
                    executor_json = EXCLUDED.executor_json,
                    updated_at = EXCLUDED.updated_at
                """,
                (
                    run_id,
                    process_id,
                    run_status(result),
                    bool(result.get("success")),
                    result.get("failedPhase"),
                    self._json_wrapper(inputs),
                    self._json_wrapper(result),
                    self._json_wrapper(executor) if executor is not None else None,
                    now,
                    now,
                ),
            )
            conn.commit()
        saved = self.get_run(run_id)
        if saved is None:
            raise RuntimeError("Failed to load saved run")
        return saved

    def get_run(self, run_id: str) -> RunRecord | None:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM process_runs WHERE run_id = %s",
                (run_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_run(row)

    def list_runs(self, *, process_id: str | None = None, limit: int = 50) -> list[RunRecord]:
        with self._lock, self._connect() as conn:
            if process_id is None:
                rows = conn.execute(
                    "SELECT * FROM process_runs ORDER BY created_at DESC LIMIT %s",
                    (limit,),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT *
                    FROM process_runs
                    WHERE process_id = %s
                    ORDER BY created_at DESC
                    LIMIT %s
                    """,
                    (process_id, limit),
                ).fetchall()
        return [self._row_to_run(row) for row in rows]

    def _connect(self) -> Any:
        return self._psycopg.connect(self.database_url, row_factory=self._dict_row)

    @staticmethod
    def _load_psycopg() -> tuple[Any, Any, Any]:
        try:
            import psycopg
            from psycopg.rows import dict_row
            from psycopg.types.json import Json
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError(
                "PostgreSQL storage requires psycopg. "
                'Install with: python -m pip install "compliance-orchestrator[postgres]"'
            ) from exc
        return psycopg, dict_row, Json

    @staticmethod
    def _parse_json_optional(raw: Any) -> dict[str, Any] | None:
        if raw is None:
            return None
        parsed = json.loads(raw) if isinstance(raw, str) else raw
        return parsed if isinstance(parsed, dict) else None

    @staticmethod
    def _parse_datetime(raw: Any) -> datetime:
        if isinstance(raw, datetime):
            return raw
        if isinstance(raw, str):
            return datetime.fromisoformat(raw)
        raise TypeError(f"Unsupported datetime value: {type(raw)!r}")

    @classmethod
    def _row_to_run(cls, row: Any) -> RunRecord:
        return RunRecord(
            run_id=str(row["run_id"]),
            process_id=str(row["process_id"]),
            status=str(row["status"]),
            success=bool(row["success"]),
            failed_phase=row.get("failed_phase"),
            inputs=cls._parse_json_optional(row["inputs_json"]) or {},
            result=cls._parse_json_optional(row["result_json"]) or {},
            executor=cls._parse_json_optional(row.get("executor_json")),
            created_at=cls._parse_datetime(row["created_at"]),
            updated_at=cls._parse_datetime(row["updated_at"]),
        )
