import asyncio
import json

import pytest

import compliance_orchestrator.executor.llm as llm_module
from compliance_orchestrator.config.settings import Settings
from compliance_orchestrator.executor import (
    BaseExecutor,
    DryRunExecutor,
    GateRequest,
    LLMExecutor,
    ParallelFailure,
    ScriptedExecutor,
    TaskFailure,
    placeholder,
    resolve_executor,
)
from compliance_orchestrator.tasks import dast, iac_security, sca_dependency


class FlakyExecutor(BaseExecutor):
    implementation = "flaky"

    def __init__(self, failures, **kwargs):
        super().__init__(**kwargs)
        self.failures = failures
        self.attempts = 0

    async def _invoke(self, descriptor, rendered):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise RuntimeError(f"transient failure {self.attempts}")
        return placeholder(descriptor.output_model)


class SlowExecutor(BaseExecutor):
    async def _invoke(self, descriptor, rendered):
        await asyncio.sleep(1)
        return placeholder(descriptor.output_model)


def test_placeholder_satisfies_required_fields() -> None:
    payload = placeholder(iac_security.StandardStatus)

    assert payload == {"standard": "", "status": "compliant", "score": 0.0, "gaps": []}


def test_placeholder_fills_nested_models() -> None:
    payload = placeholder(sca_dependency.SbomGeneration)

    assert payload["artifacts"] == []
    assert payload["sbom"] == {}
    assert isinstance(payload["validation"], dict)
    sca_dependency.SbomGeneration.model_validate(payload)


def test_placeholder_uses_numeric_lower_bounds() -> None:
    payload = placeholder(iac_security.PolicyValidation)

    assert payload["policyScore"] == 0
    assert payload["success"] is True


def test_retries_until_success() -> None:
    executor = FlakyExecutor(failures=1, max_retries=2)
    result = asyncio.run(executor.run_task(dast.ACTIVE_SCAN, {"applicationUrl": "https://a"}))

    assert executor.attempts == 2
    assert result.critical_count == 0


def test_exhausted_retries_raise_task_failure() -> None:
    executor = FlakyExecutor(failures=5, max_retries=1)

    with pytest.raises(TaskFailure) as excinfo:
        asyncio.run(executor.run_task(dast.ACTIVE_SCAN, {}))

    assert excinfo.value.attempts == 2
    assert excinfo.value.task_name == "active-scan"
    assert "transient failure 2" in str(excinfo.value)


def test_timeout_is_reported_as_task_failure() -> None:
    executor = SlowExecutor(timeout_s=0.01)

    with pytest.raises(TaskFailure, match="timed out"):
        asyncio.run(executor.run_task(dast.ACTIVE_SCAN, {}))


def test_run_parallel_collects_every_failure() -> None:
    async def ok():
        return 1

    async def boom():
        raise RuntimeError("boom")

    with pytest.raises(ParallelFailure) as excinfo:
        asyncio.run(DryRunExecutor().run_parallel([ok, boom, boom]))

    assert [index for index, _ in excinfo.value.failures] == [1, 2]


def test_scripted_executor_is_deterministic() -> None:
    executor = ScriptedExecutor({"active-scan": {"criticalCount": 4}})

    first = asyncio.run(executor.run_task(dast.ACTIVE_SCAN, {}))
    asyncio.run(executor.run_task(dast.API_SECURITY_TESTING, {}))

    assert first.critical_count == 4
    assert [call.effect_id for call in executor.calls] == ["effect-0001", "effect-0002"]
    assert executor.run_id == "det-run-0001"
    assert executor.now().isoformat() == "2025-01-01T00:00:00+00:00"
    assert executor.now().isoformat() == "2025-01-01T00:00:01+00:00"


def test_gates_are_recorded_without_blocking() -> None:
    executor = DryRunExecutor(run_id="run-gates")
    asyncio.run(executor.breakpoint(GateRequest.breakpoint("Review", "Proceed?", summary={})))
    asyncio.run(executor.checkpoint(GateRequest.checkpoint("Done", "Phase complete")))

    assert [gate.kind for gate in executor.gates] == ["breakpoint", "checkpoint"]
    assert executor.gates[0].question == "Proceed?"


def test_materializes_task_io_under_runs_dir(tmp_path) -> None:
    executor = ScriptedExecutor(runs_dir=tmp_path)
    asyncio.run(executor.run_task(dast.ACTIVE_SCAN, {"applicationUrl": "https://a"}))

    task_dir = tmp_path / "det-run-0001" / "tasks" / "effect-0001"
    rendered = json.loads((task_dir / "input.json").read_text(encoding="utf-8"))
    stored = json.loads((task_dir / "result.json").read_text(encoding="utf-8"))
    assert rendered["agent"]["prompt"]["context"] == {"applicationUrl": "https://a"}
    assert stored["criticalCount"] == 0


def test_resolve_executor_falls_back_without_api_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    resolution = resolve_executor("llm", settings=Settings(openai_api_key=""))

    assert resolution.effective_mode == "dry-run"
    assert resolution.requested_mode == "llm"
    assert "OPENAI_API_KEY" in (resolution.fallback_reason or "")
    assert isinstance(resolution.executor, DryRunExecutor)


def test_resolve_executor_rejects_unknown_mode() -> None:
    resolution = resolve_executor("magic", settings=Settings())

    assert resolution.effective_mode == "dry-run"
    assert resolution.fallback_reason == "Unknown executor mode 'magic'"


def test_resolve_executor_builds_llm_executor() -> None:
    resolution = resolve_executor(
        "llm",
        settings=Settings(openai_api_key="sk-test", task_max_retries=3),
        run_id="run-llm",
    )

    assert resolution.effective_mode == "llm"
    assert isinstance(resolution.executor, LLMExecutor)
    assert resolution.executor.max_retries == 3
    assert resolution.describe()["implementation"] == "llm"


def test_llm_executor_parses_chat_completion(monkeypatch) -> None:
    captured = {}

    def fake_request_once(**kwargs):
        captured.update(kwargs)
        content = json.dumps(
            {
                "vulnerabilitiesFound": 5,
                "criticalCount": 2,
                "highCount": 1,
                "mediumCount": 2,
                "lowCount": 0,
            }
        )
        return {"choices": [{"message": {"content": content}}]}

    monkeypatch.setattr(llm_module, "_request_once", fake_request_once)
    executor = LLMExecutor(
        api_key="sk-test",
        model="gpt-4o-mini",
        base_url="https://api.openai.com/v1",
        request_timeout_s=5.0,
    )
    result = asyncio.run(executor.run_task(dast.ACTIVE_SCAN, {"applicationUrl": "https://a"}))

    assert result.critical_count == 2
    assert result.artifacts == []
    body = captured["request_body"]
    assert body["response_format"] == {"type": "json_object"}
    assert dast.ACTIVE_SCAN.prompt.role in body["messages"][0]["content"]
    assert "https://a" in body["messages"][1]["content"]


def test_llm_executor_rejects_non_json_content(monkeypatch) -> None:
    monkeypatch.setattr(
        llm_module,
        "_request_once",
        lambda **kwargs: {"choices": [{"message": {"content": "not json"}}]},
    )
    executor = LLMExecutor(
        api_key="sk-test",
        model="gpt-4o-mini",
        base_url="https://api.openai.com/v1",
        request_timeout_s=5.0,
    )

    with pytest.raises(TaskFailure, match="not valid JSON"):
        asyncio.run(executor.run_task(dast.ACTIVE_SCAN, {}))


def test_llm_executor_requires_api_key() -> None:
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        LLMExecutor(api_key="", model="m", base_url="https://x", request_timeout_s=1.0)


def test_executor_log_prefixes_run_id(caplog) -> None:
    executor = DryRunExecutor(run_id="run-log")
    with caplog.at_level("INFO", logger="compliance_orchestrator.executor.base"):
        executor.log("warning", "Skipping cicd")

    record = caplog.records[-1]
    assert record.levelname == "WARNING"
    assert record.getMessage() == "run_id=run-log Skipping cicd"
