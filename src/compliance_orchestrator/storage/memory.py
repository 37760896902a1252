"""In-memory storage backend for tests and database-less runs."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from compliance_orchestrator.storage.models import RunRecord, run_status


class InMemoryRunStorage:
    """Keeps run records in a dict for the lifetime of the process."""

    def __init__(self) -> None:
        self._runs: dict[str, RunRecord] = {}

    def migrate(self) -> None:
        return None

    def save_run(
        self,
        *,
        run_id: str,
        process_id: str,
        inputs: dict[str, Any],
        result: dict[str, Any],
        executor: dict[str, Any] | None,
    ) -> RunRecord:
        now = datetime.now(UTC)
        current = self._runs.get(run_id)
        record = RunRecord(
            run_id=run_id,
            process_id=process_id,
            status=run_status(result),
            success=bool(result.get("success")),
            inputs=inputs,
            result=result,
            executor=executor,
            failed_phase=result.get("failedPhase"),
            created_at=current.created_at if current else now,
            updated_at=now,
        )
        self._runs[run_id] = record
        return record

    def get_run(self, run_id: str) -> RunRecord | None:
        return self._runs.get(run_id)

    def list_runs(self, *, process_id: str | None = None, limit: int = 50) -> list[RunRecord]:
        records = [
            record
            for record in reversed(self._runs.values())
            if process_id is None or record.process_id == process_id
        ]
        return records[:limit]
