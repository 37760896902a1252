import asyncio

import pytest

from compliance_orchestrator.executor.scripted import ScriptedExecutor
from compliance_orchestrator.graph.workflow import run_process
from compliance_orchestrator.tasks import dast as dast_tasks

DAST = "security-compliance/dast-process"
APP = {"applicationUrl": "https://app.example.com"}


def _artifact_per_task(names):
    return {name: {"artifacts": [{"path": f"out/{name}.md", "label": name}]} for name in names}


def test_artifacts_accumulate_in_phase_order(run_workflow) -> None:
    names = [task.name for task in dast_tasks.TASKS]
    result, executor = run_workflow(
        DAST,
        {**APP, "continuousScanningEnabled": True},
        _artifact_per_task(names),
    )

    assert result["success"] is False
    assert [artifact["path"] for artifact in result["artifacts"]] == [
        f"out/{name}.md" for name in executor.task_names()
    ]
    assert all(artifact["format"] == "markdown" for artifact in result["artifacts"])


def test_gate_files_project_accumulated_artifacts(run_workflow) -> None:
    names = [task.name for task in dast_tasks.TASKS]
    _, executor = run_workflow(DAST, APP, _artifact_per_task(names))

    first, second = executor.gates[0], executor.gates[1]
    assert first.kind == "checkpoint"
    assert first.context["runId"] == "det-run-0001"
    assert first.context["files"] == [
        {"path": "out/assess-environment.md", "format": "markdown", "label": "assess-environment"}
    ]
    assert [item["path"] for item in second.context["files"]] == [
        "out/assess-environment.md",
        "out/setup-dast-tools.md",
    ]


def test_final_gate_is_a_breakpoint(run_workflow) -> None:
    _, executor = run_workflow(DAST, APP)

    kinds = [gate.kind for gate in executor.gates]
    assert kinds[-1] == "breakpoint"
    assert set(kinds[:-1]) == {"checkpoint"}


def test_skipped_phase_is_never_invoked(run_workflow) -> None:
    result, executor = run_workflow(DAST, {**APP, "continuousScanningEnabled": False})

    assert "setup-continuous-scanning" not in executor.task_names()
    assert result["continuousScanning"] == {"enabled": False}


def test_missing_required_input_fails_before_any_task(run_workflow) -> None:
    result, executor = run_workflow(DAST, {"toolChoice": "burp"})

    assert result["success"] is False
    assert result["failedPhase"] == "inputs"
    assert result["details"] == {"missing": ["applicationUrl"]}
    assert result["artifacts"] == []
    assert executor.calls == []
    assert executor.gates == []


def test_invalid_input_type_is_reported_as_input_failure(run_workflow) -> None:
    result, executor = run_workflow(
        "security-compliance/pci-dss-compliance",
        {"projectName": "checkout", "asvScan": "sometimes"},
    )

    assert result["failedPhase"] == "inputs"
    assert any("asvScan" in error for error in result["details"]["errors"])
    assert executor.calls == []


def test_snake_case_inputs_are_accepted(run_workflow) -> None:
    result, executor = run_workflow(DAST, {"application_url": "https://app.example.com"})

    assert "failedPhase" not in result
    assert result["metadata"]["applicationUrl"] == "https://app.example.com"
    assert executor.calls[0].args["applicationUrl"] == "https://app.example.com"


def test_schema_violation_stops_the_run(run_workflow) -> None:
    result, executor = run_workflow(DAST, APP, {"active-scan": {"criticalCount": -1}})

    assert result["success"] is False
    assert result["failedPhase"] == "active_scan"
    assert "active-scan" in result["error"]
    assert executor.task_names()[-1] == "active-scan"
    assert "api-security-testing" not in executor.task_names()


def test_reported_failure_stops_the_run(run_workflow) -> None:
    result, executor = run_workflow(
        "security-compliance/iac-security-review",
        {"projectName": "infra"},
        {"code-inventory": {"success": False, "error": "no terraform files"}},
    )

    assert result["failedPhase"] == "inventory"
    assert result["details"]["error"] == "no terraform files"
    assert executor.task_names() == ["code-inventory"]
    assert result["metadata"]["phases"] == [{"phase": "inventory", "status": "failed"}]


def test_parallel_member_failure_stops_the_run(run_workflow) -> None:
    result, executor = run_workflow(
        "security-compliance/iac-security-review",
        {"projectName": "infra"},
        {"network-security-scan": RuntimeError("scanner crashed")},
    )

    assert result["success"] is False
    assert result["failedPhase"] == "misconfiguration"
    assert "scanner crashed" in result["details"]["members"]["network"]
    assert "secrets-detection" not in executor.task_names()
    assert result["artifacts"] == []


def test_metadata_lists_phase_statuses_in_order(run_workflow) -> None:
    result, _ = run_workflow(DAST, {**APP, "continuousScanningEnabled": False})

    phases = result["metadata"]["phases"]
    assert phases[0] == {"phase": "environment", "status": "completed"}
    assert phases[-2:] == [
        {"phase": "continuous_scanning", "status": "skipped"},
        {"phase": "final_review", "status": "gated"},
    ]


def test_duration_and_metadata_use_the_executor_clock(run_workflow) -> None:
    result, _ = run_workflow(DAST, APP)

    assert result["duration"] == 1000.0
    assert result["metadata"]["timestamp"] == "2025-01-01T00:00:00+00:00"
    assert result["metadata"]["runId"] == "det-run-0001"
    assert result["metadata"]["processSlug"] == "dast-process"
    assert result["metadata"]["outputDir"] == "dast-output"


def test_unknown_process_raises_key_error() -> None:
    with pytest.raises(KeyError, match="unknown"):
        asyncio.run(run_process("security-compliance/unknown", {}, ScriptedExecutor()))
