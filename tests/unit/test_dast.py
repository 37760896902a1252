DAST = "security-compliance/dast-process"
APP = {"applicationUrl": "https://app.example.com"}


def test_critical_issues_sum_active_and_api_scans(run_workflow) -> None:
    result, _ = run_workflow(
        DAST,
        APP,
        {
            "active-scan": {"criticalCount": 2, "vulnerabilitiesFound": 9},
            "api-security-testing": {"criticalCount": 1},
            "validate-vulnerabilities": {"confirmedVulnerabilities": 7},
            "map-compliance": {"overallSecurityScore": 95},
        },
    )

    assert result["criticalIssues"] == 3
    assert result["vulnerabilitiesFound"] == 7
    assert result["securityScore"] == 95
    assert result["success"] is False


def test_clean_scan_above_baseline_succeeds(run_workflow) -> None:
    result, executor = run_workflow(
        DAST,
        {**APP, "continuousScanningEnabled": True},
        {
            "map-compliance": {"overallSecurityScore": 82},
            "setup-continuous-scanning": {"scanSchedule": "nightly", "cicdIntegrated": True},
        },
    )

    assert result["criticalIssues"] == 0
    assert result["success"] is True
    assert result["continuousScanning"]["enabled"] is True
    assert result["continuousScanning"]["schedule"] == "nightly"
    assert "Application meets security baseline!" in executor.gates[-1].question


def test_low_security_score_fails_without_critical_issues(run_workflow) -> None:
    result, _ = run_workflow(DAST, APP, {"map-compliance": {"overallSecurityScore": 69}})

    assert result["criticalIssues"] == 0
    assert result["success"] is False


def test_phase_arguments_thread_earlier_results(run_workflow) -> None:
    _, executor = run_workflow(
        DAST,
        {**APP, "toolChoice": "burp"},
        {"assess-environment": {"techStack": ["django", "postgres"]}},
    )

    tool_setup = executor.calls[1]
    assert tool_setup.task == "setup-dast-tools"
    assert tool_setup.args["toolChoice"] == "burp"
    assert tool_setup.args["environmentAssessment"]["techStack"] == ["django", "postgres"]
