DATA_CLASSIFICATION = "security-compliance/data-classification"


def test_classification_score_sums_executed_phases_and_caps_at_100(run_workflow) -> None:
    result, _ = run_workflow(
        DATA_CLASSIFICATION,
        {"projectName": "warehouse"},
        {
            "data-discovery": {"discoveryScore": 30},
            "classification-policy": {"policyScore": 40},
            "compliance-validation": {"complianceScore": 50},
        },
    )

    assert result["success"] is True
    assert result["classificationScore"] == 100


def test_skipped_phases_do_not_contribute_points(run_workflow) -> None:
    result, executor = run_workflow(
        DATA_CLASSIFICATION,
        {"projectName": "warehouse", "enableDLP": False, "enableDataLineage": False},
        {
            "data-discovery": {"discoveryScore": 10.4},
            "dlp-implementation": {"dlpScore": 40},
            "data-lineage": {"lineageScore": 20},
            "audit-logging": {"auditScore": 5},
        },
    )

    names = executor.task_names()
    assert "dlp-implementation" not in names
    assert "data-lineage" not in names
    assert result["classificationScore"] == 15
    assert result["summary"]["dlpConfigured"] is False
    assert result["summary"]["dataLineageTracked"] is False
    assert result["summary"]["auditLoggingEnabled"] is True


def test_score_rounds_half_up(run_workflow) -> None:
    result, _ = run_workflow(
        DATA_CLASSIFICATION,
        {"projectName": "warehouse"},
        {"data-discovery": {"discoveryScore": 72.5}},
    )

    assert result["classificationScore"] == 73
