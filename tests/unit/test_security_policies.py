from compliance_orchestrator.processes.security_policies import SecurityPoliciesInputs
from compliance_orchestrator.tasks.security_policies import POLICY_AREAS

POLICIES = "security-compliance/security-policies"
ACME = {"organization": "Acme"}


def _package(category, policies=1, procedures=2, standards=0, guidelines=0):
    def docs(kind, total):
        return [{"name": f"{category} {kind} {index}", "category": category} for index in range(total)]

    return {
        "policies": docs("policy", policies),
        "procedures": docs("procedure", procedures),
        "standards": docs("standard", standards),
        "guidelines": docs("guideline", guidelines),
    }


def test_default_scope_selects_matching_policy_areas(run_workflow) -> None:
    _, executor = run_workflow(POLICIES, ACME)

    created = [name for name in executor.task_names() if name.endswith("-policies")]
    assert created == [
        "create-access-control-policies",
        "create-data-protection-policies",
        "create-incident-response-policies",
        "create-acceptable-use-policies",
        "create-asset-management-policies",
        "create-vendor-management-policies",
        "create-change-management-policies",
    ]


def test_alternate_scope_names_enable_an_area(run_workflow) -> None:
    _, executor = run_workflow(POLICIES, {**ACME, "policyScope": ["privacy", "encryption"]})

    created = [name for name in executor.task_names() if name.endswith("-policies")]
    assert created == ["create-data-protection-policies", "create-cryptography-policies"]


def test_policy_areas_have_unique_task_names() -> None:
    names = [area.task_name for area in POLICY_AREAS]
    assert len(names) == len(set(names)) == 9


def test_document_totals_include_master_policy(run_workflow) -> None:
    result, executor = run_workflow(
        POLICIES,
        {**ACME, "policyScope": ["access-control", "acceptable-use"]},
        {
            "create-master-security-policy": {
                "policy": {"name": "Information Security Policy", "category": "master", "version": "1.0"},
                "policyPath": "security-policies-output/master.md",
            },
            "create-access-control-policies": _package("access-control", policies=2, standards=3),
            "create-acceptable-use-policies": _package("acceptable-use", guidelines=4),
        },
    )

    assert result["success"] is True
    assert result["policiesCreated"] == 4
    assert result["proceduresCreated"] == 4
    assert result["standardsCreated"] == 3
    assert result["guidelinesCreated"] == 4
    assert result["totalDocuments"] == 15
    assert result["policies"][0]["name"] == "Information Security Policy"

    core = next(gate for gate in executor.gates if gate.title == "Core Policies Review")
    assert core.context["policiesByCategory"] == {"master": 1, "access_control": 2, "acceptable_use": 1}


def test_governance_phases_follow_their_flags(run_workflow) -> None:
    result, executor = run_workflow(
        POLICIES,
        {
            **ACME,
            "approvalWorkflow": False,
            "versionControl": False,
            "employeeAcknowledgment": False,
            "policyTraining": False,
        },
    )

    names = executor.task_names()
    assert "setup-approval-workflow" not in names
    assert "create-training-program" not in names
    assert result["approvalWorkflow"] is None
    assert result["trainingProgram"] is None
    assert "Training Program Review" not in [gate.title for gate in executor.gates]


def test_final_gate_lists_deliverables(run_workflow) -> None:
    _, executor = run_workflow(
        POLICIES,
        ACME,
        {
            "create-policy-handbook": {"handbookPath": "out/handbook.pdf"},
            "map-policy-to-frameworks": {"mappingMatrixPath": "out/mapping.xlsx"},
        },
    )

    final = executor.gates[-1]
    assert final.title == "Final Policy Suite Review"
    assert [item["format"] for item in final.context["files"]] == ["pdf", "xlsx"]


def test_inputs_defaults() -> None:
    inputs = SecurityPoliciesInputs.model_validate(ACME)

    assert inputs.frameworks == ["ISO-27001", "NIST-CSF", "CIS-Controls"]
    assert len(inputs.policy_scope) == 10
    assert inputs.languages == ["en"]
    assert inputs.output_dir == "security-policies-output"
