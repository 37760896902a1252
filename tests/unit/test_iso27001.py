ISO = "security-compliance/iso27001-implementation"


def test_missing_organization_fails_fast(run_workflow) -> None:
    result, executor = run_workflow(ISO, {"industry": "finance"})

    assert result["failedPhase"] == "inputs"
    assert result["details"] == {"missing": ["organization"]}
    assert executor.calls == []


def test_readiness_comes_from_audit_preparation(run_workflow) -> None:
    result, _ = run_workflow(
        ISO,
        {"organization": "Acme"},
        {"prepare-certification-audit": {"readinessScore": 88}},
    )

    assert result["success"] is True
    assert result["certificationReadiness"] == 88


def test_readiness_is_zero_without_audit_preparation(run_workflow) -> None:
    result, executor = run_workflow(
        ISO,
        {"organization": "Acme", "includeAuditPreparation": False, "includeGapAnalysis": False},
    )

    names = executor.task_names()
    assert "prepare-certification-audit" not in names
    assert "conduct-gap-analysis" not in names
    assert result["certificationReadiness"] == 0
    assert executor.gates[-1].kind == "breakpoint"
