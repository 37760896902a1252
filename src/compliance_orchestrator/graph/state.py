"""Typed state contract for the phase graph."""

import operator
from datetime import datetime
from typing import Annotated, Any, TypedDict

from compliance_orchestrator.tasks.base import Artifact


def merge_results(left: dict[str, Any] | None, right: dict[str, Any] | None) -> dict[str, Any]:
    merged = dict(left or {})
    merged.update(right or {})
    return merged


class RunState(TypedDict, total=False):
    run_id: str
    process_id: str
    started_at: datetime
    inputs: Any
    # Phase results by phase name; skipped phases map to None.
    results: Annotated[dict[str, Any], merge_results]
    # Append-only: nodes return their batch and the reducer concatenates.
    artifacts: Annotated[list[Artifact], operator.add]
    trail: Annotated[list[dict[str, str]], operator.add]
    failure: dict[str, Any] | None
    output: dict[str, Any] | None


def initial_state(
    *,
    run_id: str,
    process_id: str,
    inputs: Any,
    started_at: datetime,
) -> RunState:
    return {
        "run_id": run_id,
        "process_id": process_id,
        "started_at": started_at,
        "inputs": inputs,
        "results": {},
        "artifacts": [],
        "trail": [],
        "failure": None,
        "output": None,
    }
