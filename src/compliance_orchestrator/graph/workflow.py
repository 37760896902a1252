"""LangGraph assembly and entry point for phase-sequenced workflows."""

from __future__ import annotations

import functools
import logging
from datetime import datetime
from typing import Any, Mapping

from langgraph.graph import END, StateGraph

from compliance_orchestrator.executor.base import (
    Executor,
    GateRequest,
    ParallelFailure,
    TaskFailure,
)
from compliance_orchestrator.graph.phases import (
    Gate,
    ParallelPhase,
    PhaseView,
    ProcessDefinition,
    Step,
    TaskPhase,
    files,
)
from compliance_orchestrator.graph.state import RunState, initial_state
from compliance_orchestrator.processes import get_process
from compliance_orchestrator.processes.base import ProcessInputError, resolve_inputs
from compliance_orchestrator.tasks.base import Artifact, jsonable

logger = logging.getLogger(__name__)


def build_graph(definition: ProcessDefinition, executor: Executor):
    """Compile one node per step, linked in order, short-circuiting to END on failure."""
    graph = StateGraph(RunState)
    names = [step.name for step in definition.steps]

    for step in definition.steps:
        graph.add_node(step.name, _node_for(step, executor))
    graph.add_node("finalize", _finalize_node(definition))

    graph.set_entry_point(names[0])
    for current, following in zip(names, [*names[1:], "finalize"]):
        graph.add_conditional_edges(current, _route, {"failed": END, "next": following})
    graph.add_edge("finalize", END)

    return graph.compile()


async def run_process(
    process: str | ProcessDefinition,
    inputs: Mapping[str, Any] | None,
    executor: Executor,
) -> dict[str, Any]:
    """Run a workflow to completion and return its ProcessResult.

    Workflow-level problems (missing input, failed phase, failed join) come
    back as `{"success": False, ...}`; they are never raised.
    """
    definition = process if isinstance(process, ProcessDefinition) else get_process(process)

    started_at = executor.now()
    executor.log("info", f"Starting {definition.process_id}")

    try:
        resolved = resolve_inputs(definition.inputs_model, definition.required, inputs or {})
    except ProcessInputError as exc:
        executor.log("error", str(exc))
        return _failure_result(
            definition,
            failure={"error": str(exc), "failedPhase": "inputs", "details": exc.details},
            inputs=None,
            run_id=executor.run_id,
            started_at=started_at,
            finished_at=executor.now(),
            trail=[],
        )

    graph = build_graph(definition, executor)
    state = initial_state(
        run_id=executor.run_id,
        process_id=definition.process_id,
        inputs=resolved,
        started_at=started_at,
    )
    final: dict[str, Any] = await graph.ainvoke(
        state,
        config={"recursion_limit": len(definition.steps) + 10},
    )
    finished_at = executor.now()

    failure = final.get("failure")
    if failure:
        logger.warning(
            "process_run event=failed run_id=%s process=%s phase=%s error=%s",
            executor.run_id,
            definition.process_id,
            failure.get("failedPhase"),
            failure.get("error"),
        )
        return _failure_result(
            definition,
            failure=failure,
            inputs=resolved,
            run_id=executor.run_id,
            started_at=started_at,
            finished_at=finished_at,
            trail=final.get("trail") or [],
        )

    output = jsonable(final.get("output") or {})
    artifacts: list[Artifact] = final.get("artifacts") or []
    logger.info(
        "process_run event=completed run_id=%s process=%s success=%s artifacts=%s",
        executor.run_id,
        definition.process_id,
        output.get("success"),
        len(artifacts),
    )
    return {
        **output,
        "artifacts": [artifact.model_dump(mode="json", exclude_none=True) for artifact in artifacts],
        "duration": _duration_ms(started_at, finished_at),
        "metadata": _metadata(
            definition, resolved, executor.run_id, started_at, final.get("trail") or []
        ),
    }


def _node_for(step: Step, executor: Executor):
    if isinstance(step, TaskPhase):
        return _task_node(step, executor)
    if isinstance(step, ParallelPhase):
        return _parallel_node(step, executor)
    if isinstance(step, Gate):
        return _gate_node(step, executor)
    raise TypeError(f"Unsupported step type: {type(step)!r}")


def _task_node(step: TaskPhase, executor: Executor):
    async def run(state: RunState) -> dict[str, Any]:
        view = PhaseView.from_state(state)
        if step.when is not None and not step.when(view):
            executor.log("info", f"Skipping {step.name}")
            return {"results": {step.name: None}, "trail": [_trail(step.name, "skipped")]}
        if step.announce:
            executor.log("info", step.announce)

        try:
            result = await executor.run_task(step.task, step.args(view))
        except TaskFailure as exc:
            return _failed(step.name, str(exc), exc.details)

        if getattr(result, "success", None) is False:
            return _failed(step.name, f"Phase '{step.name}' reported failure", jsonable(result))

        batch = list(result.artifacts)
        await _emit_gate(executor, step.gate, view.with_result(step.name, result, batch), batch)
        return {
            "results": {step.name: result},
            "artifacts": batch,
            "trail": [_trail(step.name, "completed")],
        }

    return run


def _parallel_node(step: ParallelPhase, executor: Executor):
    async def run(state: RunState) -> dict[str, Any]:
        view = PhaseView.from_state(state)
        if step.when is not None and not step.when(view):
            executor.log("info", f"Skipping {step.name}")
            return {"results": {step.name: None}, "trail": [_trail(step.name, "skipped")]}
        if step.announce:
            executor.log("info", step.announce)

        members = step.members(view)
        calls = [functools.partial(executor.run_task, member.task, member.args) for member in members]
        try:
            outcomes = await executor.run_parallel(calls)
        except ParallelFailure as exc:
            details = {members[index].key: str(error) for index, error in exc.failures}
            return _failed(step.name, str(exc), {"members": details})

        rejected = {
            member.key: jsonable(outcome)
            for member, outcome in zip(members, outcomes)
            if getattr(outcome, "success", None) is False
        }
        if rejected:
            return _failed(
                step.name,
                f"Parallel phase '{step.name}' failed for: {', '.join(rejected)}",
                {"members": rejected},
            )

        grouped = {member.key: outcome for member, outcome in zip(members, outcomes)}
        batch = [artifact for outcome in outcomes for artifact in outcome.artifacts]
        await _emit_gate(executor, step.gate, view.with_result(step.name, grouped, batch), batch)
        return {
            "results": {step.name: grouped},
            "artifacts": batch,
            "trail": [_trail(step.name, "completed")],
        }

    return run


def _gate_node(step: Gate, executor: Executor):
    async def run(state: RunState) -> dict[str, Any]:
        view = PhaseView.from_state(state)
        if step.when is not None and not step.when(view):
            return {"trail": [_trail(step.name, "skipped")]}
        await _emit_gate(executor, step.build, view, list(view.artifacts))
        return {"trail": [_trail(step.name, "gated")]}

    return run


def _finalize_node(definition: ProcessDefinition):
    def run(state: RunState) -> dict[str, Any]:
        return {"output": definition.finalize(PhaseView.from_state(state))}

    return run


async def _emit_gate(
    executor: Executor,
    builder: Any,
    view: PhaseView,
    batch: list[Artifact],
) -> None:
    if builder is None:
        return
    request: GateRequest | None = builder(view)
    if request is None:
        return
    context = {"runId": view.run_id, **jsonable(request.context)}
    context.setdefault("files", files(batch))
    request = request.model_copy(update={"context": context})
    if request.kind == "breakpoint":
        await executor.breakpoint(request)
    else:
        await executor.checkpoint(request)


def _route(state: RunState) -> str:
    return "failed" if state.get("failure") else "next"


def _failed(phase: str, error: str, details: Any) -> dict[str, Any]:
    return {
        "failure": {"error": error, "failedPhase": phase, "details": details},
        "trail": [_trail(phase, "failed")],
    }


def _trail(phase: str, status: str) -> dict[str, str]:
    return {"phase": phase, "status": status}


def _failure_result(
    definition: ProcessDefinition,
    *,
    failure: dict[str, Any],
    inputs: Any,
    run_id: str,
    started_at: datetime,
    finished_at: datetime,
    trail: list[dict[str, str]],
) -> dict[str, Any]:
    return {
        "success": False,
        "error": failure.get("error"),
        "failedPhase": failure.get("failedPhase"),
        "details": jsonable(failure.get("details")),
        "artifacts": [],
        "duration": _duration_ms(started_at, finished_at),
        "metadata": _metadata(definition, inputs, run_id, started_at, trail),
    }


def _metadata(
    definition: ProcessDefinition,
    inputs: Any,
    run_id: str,
    started_at: datetime,
    trail: list[dict[str, str]],
) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "processId": definition.process_id,
        "processSlug": definition.slug,
        "runId": run_id,
        "timestamp": started_at.isoformat(),
        # Per-step status in execution order: completed, skipped, gated or failed.
        "phases": list(trail),
    }
    if inputs is not None and definition.metadata is not None:
        metadata.update(jsonable(definition.metadata(inputs)))
    return metadata


def _duration_ms(started_at: datetime, finished_at: datetime) -> float:
    return round((finished_at - started_at).total_seconds() * 1000.0, 2)
