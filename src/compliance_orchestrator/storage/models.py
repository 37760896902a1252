"""Storage models shared by API and persistence backends."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class RunRecord(BaseModel):
    """One finished workflow run with its ProcessResult."""

    run_id: str
    process_id: str
    status: str
    success: bool
    inputs: dict[str, Any]
    result: dict[str, Any]
    executor: dict[str, Any] | None = None
    failed_phase: str | None = None
    created_at: datetime
    updated_at: datetime


def run_status(result: dict[str, Any]) -> str:
    # A run can complete with success false (e.g. below threshold); only a phase failure fails it.
    return "failed" if result.get("failedPhase") else "completed"
