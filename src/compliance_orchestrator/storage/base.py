"""Storage interface for process run records."""

from __future__ import annotations

from typing import Any, Protocol

from compliance_orchestrator.storage.models import RunRecord


class RunStorage(Protocol):
    def migrate(self) -> None: ...

    def save_run(
        self,
        *,
        run_id: str,
        process_id: str,
        inputs: dict[str, Any],
        result: dict[str, Any],
        executor: dict[str, Any] | None,
    ) -> RunRecord: ...

    def get_run(self, run_id: str) -> RunRecord | None: ...

    def list_runs(self, *, process_id: str | None = None, limit: int = 50) -> list[RunRecord]: ...
