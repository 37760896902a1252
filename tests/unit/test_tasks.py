from types import SimpleNamespace

import pytest

import compliance_orchestrator.tasks.registry as registry_module
from compliance_orchestrator.processes import PROCESSES
from compliance_orchestrator.tasks import pci_dss, security_policies
from compliance_orchestrator.tasks.base import TaskDescriptor, define_task, interpolate
from compliance_orchestrator.tasks.dast import ActiveScan
from compliance_orchestrator.tasks.iac_security import POLICY_VALIDATION, StandardStatus
from compliance_orchestrator.tasks.registry import build_registry, get_task, list_tasks


def test_render_builds_runtime_descriptor() -> None:
    rendered = security_policies.ASSESS_POLICY_FRAMEWORK.render(
        {"organization": "Acme", "frameworks": ["ISO-27001"]},
        effect_id="effect-0007",
    )

    assert rendered["kind"] == "agent"
    assert rendered["title"] == "Phase 1: Assess Policy Framework - Acme"
    assert rendered["agent"]["name"] == "general-purpose"
    prompt = rendered["agent"]["prompt"]
    assert prompt["role"] == "Security Policy Framework Architect"
    assert prompt["context"] == {"organization": "Acme", "frameworks": ["ISO-27001"]}
    assert prompt["outputFormat"].startswith("JSON object with success, policiesRequired")
    assert rendered["io"] == {
        "inputJsonPath": "tasks/effect-0007/input.json",
        "outputJsonPath": "tasks/effect-0007/result.json",
    }
    assert rendered["labels"] == ["agent", "security-policies", "framework-assessment"]


def test_missing_placeholders_render_empty() -> None:
    assert interpolate("Scan {projectName} with {tool}", {"tool": "trivy"}) == "Scan  with trivy"


def test_output_schema_keeps_required_enums_and_ranges() -> None:
    schema = POLICY_VALIDATION.output_schema()

    assert {"success", "policyScore", "violations", "artifacts"} <= set(schema["required"])
    assert schema["properties"]["policyScore"]["minimum"] == 0
    assert schema["properties"]["policyScore"]["maximum"] == 100

    status = StandardStatus.model_json_schema(by_alias=True)
    assert status["properties"]["status"]["enum"] == ["compliant", "partially-compliant", "non-compliant"]


def test_requirement_descriptors_are_table_driven() -> None:
    descriptor = pci_dss.REQUIREMENT_TASKS[3]

    assert descriptor.name == "assess-requirement-3"
    assert descriptor.render({"projectName": "checkout"}, effect_id="e")["title"].endswith("- checkout")


def test_registry_covers_every_process_task() -> None:
    registry = build_registry()

    for definition in PROCESSES.values():
        for name in definition.task_names():
            assert registry[name].name == name
    assert list_tasks() == sorted(registry)
    assert isinstance(get_task("active-scan"), TaskDescriptor)


def test_unknown_task_lookup_raises() -> None:
    with pytest.raises(KeyError, match="no-such-task"):
        get_task("no-such-task")


def test_registry_rejects_duplicate_names(monkeypatch) -> None:
    duplicate = SimpleNamespace(
        __name__="duplicate",
        TASKS=(
            define_task(
                "active-scan",
                ActiveScan,
                title="Rescan",
                role="penetration tester",
                task="Repeat the active scan",
                instructions=[],
            ),
        ),
    )
    monkeypatch.setattr(registry_module, "CATALOGUES", (*registry_module.CATALOGUES, duplicate))

    with pytest.raises(ValueError, match="Duplicate task name 'active-scan'"):
        registry_module.build_registry()
