from compliance_orchestrator.processes.sca_dependency import ScaInputs

SCA = "security-compliance/sca-dependency-management"
PROJECT = {"projectName": "shop"}


def _vulnerabilities(critical=0, high=0):
    return [
        {"id": f"CVE-C-{index}", "package": "openssl", "severity": "critical"} for index in range(critical)
    ] + [{"id": f"CVE-H-{index}", "package": "lodash", "severity": "high"} for index in range(high)]


def _titles(executor):
    return [gate.title for gate in executor.gates]


def test_nested_options_accept_camel_case_and_keep_defaults() -> None:
    inputs = ScaInputs.model_validate(
        {
            "projectName": "shop",
            "qualityCriteria": {"maxHighVulnerabilities": 2, "requiredSBOM": False},
        }
    )

    assert inputs.quality_criteria.max_high_vulnerabilities == 2
    assert inputs.quality_criteria.required_sbom is False
    assert inputs.quality_criteria.max_critical_vulnerabilities == 0
    assert inputs.license_policies.denied == ["GPL-3.0", "AGPL-3.0"]


def test_one_scan_per_tool(run_workflow) -> None:
    _, executor = run_workflow(SCA, {**PROJECT, "scaTools": ["snyk", "trivy"]})

    scans = [call for call in executor.calls if call.task == "vulnerability-scanning"]
    assert [call.args["tool"] for call in scans] == ["snyk", "trivy"]
    assert [call.title for call in scans] == [
        "Run vulnerability scan with snyk",
        "Run vulnerability scan with trivy",
    ]
    setups = [call for call in executor.calls if call.task == "sca-tool-setup"]
    assert [call.args["automatedUpdates"] for call in setups] == [True, False]


def test_repeated_tools_are_scanned_once(run_workflow) -> None:
    result, executor = run_workflow(SCA, {**PROJECT, "scaTools": ["snyk", "snyk", "trivy"]})

    scans = [call for call in executor.calls if call.task == "vulnerability-scanning"]
    assert [call.args["tool"] for call in scans] == ["snyk", "trivy"]
    aggregation = next(call for call in executor.calls if call.task == "vulnerability-aggregation")
    assert len(aggregation.args["scanResults"]) == len(scans)
    assert result["metadata"]["scaTools"] == ["snyk", "trivy"]


def test_failed_tool_scan_stops_the_run(run_workflow) -> None:
    def scan(args):
        if args["tool"] == "trivy":
            raise RuntimeError("trivy database download failed")
        return {"tool": args["tool"]}

    result, executor = run_workflow(SCA, PROJECT, {"vulnerability-scanning": scan})

    assert result["failedPhase"] == "scanning"
    assert list(result["details"]["members"]) == ["trivy"]
    assert "vulnerability-aggregation" not in executor.task_names()


def test_threshold_gate_fires_on_critical_vulnerability(run_workflow) -> None:
    result, executor = run_workflow(
        SCA,
        PROJECT,
        {"vulnerability-aggregation": {"vulnerabilities": _vulnerabilities(critical=1, high=2)}},
    )

    gate = executor.gates[_titles(executor).index("Vulnerability Threshold Alert")]
    assert gate.context["summary"]["criticalCount"] == 1
    assert gate.context["summary"]["highCount"] == 2
    assert result["success"] is True
    assert result["vulnerabilities"]["total"] == 3
    assert result["vulnerabilities"]["critical"] == 1
    cicd = next(call for call in executor.calls if call.task == "cicd-integration")
    assert cicd.args["failBuildOnVulnerabilities"] is True


def test_high_vulnerabilities_within_limit_pass_quietly(run_workflow) -> None:
    _, executor = run_workflow(
        SCA,
        PROJECT,
        {"vulnerability-aggregation": {"vulnerabilities": _vulnerabilities(high=5)}},
    )

    assert "Vulnerability Threshold Alert" not in _titles(executor)
    cicd = next(call for call in executor.calls if call.task == "cicd-integration")
    assert cicd.args["failBuildOnVulnerabilities"] is False


def test_license_gate_respects_quality_criteria(run_workflow) -> None:
    violations = {"license-compliance": {"violations": [{"package": "readline", "license": "GPL-3.0"}]}}

    _, enforced = run_workflow(SCA, PROJECT, violations)
    _, relaxed = run_workflow(
        SCA,
        {**PROJECT, "qualityCriteria": {"licenseComplianceRequired": False}},
        violations,
    )

    assert "License Compliance Review" in _titles(enforced)
    assert "License Compliance Review" not in _titles(relaxed)


def test_optional_phases_are_skipped(run_workflow) -> None:
    result, executor = run_workflow(
        SCA,
        {
            **PROJECT,
            "supplyChainSecurity": False,
            "automatedUpdates": False,
            "cicdIntegration": False,
        },
    )

    names = executor.task_names()
    assert "supply-chain-security" not in names
    assert "automated-update-strategy" not in names
    assert "cicd-integration" not in names
    assert result["supplyChain"] is None
    assert result["tooling"]["automatedUpdates"] == 0
    assert result["tooling"]["cicdIntegration"] == []
    assert _titles(executor)[-1] == "Final SCA Report Review"


def test_sbom_gate_labels_unlabelled_artifacts(run_workflow) -> None:
    _, executor = run_workflow(
        SCA,
        PROJECT,
        {"sbom-generation": {"artifacts": [{"path": "sca-output/sbom.json", "format": "json"}]}},
    )

    gate = executor.gates[_titles(executor).index("SBOM Review")]
    assert gate.context["files"] == [
        {"path": "sca-output/sbom.json", "format": "json", "label": "SBOM"}
    ]
