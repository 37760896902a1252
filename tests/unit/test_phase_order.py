import pytest

DAST_ORDER = [
    "assess-environment",
    "setup-dast-tools",
    "define-scan-scope",
    "setup-authenticated-scanning",
    "passive-scan-spider",
    "active-scan",
    "api-security-testing",
    "validate-vulnerabilities",
    "map-compliance",
    "generate-reports",
    "setup-continuous-scanning",
]

PCI_ORDER = [
    "identify-cde-scope",
    "validate-network-segmentation",
    *[f"assess-requirement-{number}" for number in range(1, 13)],
    "execute-asv-scan",
    "execute-penetration-test",
    "calculate-compliance-score",
    "perform-gap-analysis",
    "generate-aoc",
    "generate-roc",
    "generate-pci-documentation",
]

ISO_ORDER = [
    "establish-organizational-context",
    "establish-leadership-policy",
    "conduct-gap-analysis",
    "conduct-risk-assessment",
    "develop-risk-treatment-plan",
    "create-statement-of-applicability",
    "create-isms-documentation",
    "create-controls-implementation-plan",
    "develop-competence-awareness-program",
    "establish-operational-planning",
    "establish-monitoring-measurement",
    "establish-internal-audit-program",
    "establish-management-review",
    "establish-continual-improvement",
    "prepare-certification-audit",
    "create-implementation-roadmap",
]

DATA_CLASSIFICATION_ORDER = [
    "data-discovery",
    "classification-policy",
    "automated-classification",
    "labeling-tagging",
    "access-control-implementation",
    "encryption-implementation",
    "dlp-implementation",
    "retention-disposal",
    "data-lineage",
    "audit-logging",
    "compliance-validation",
    "breach-notification",
    "training-documentation",
    "continuous-monitoring",
]

IAC_ORDER = [
    "code-inventory",
    "misconfiguration-scan",
    "network-security-scan",
    "iam-security-scan",
    "secrets-detection",
    "sensitive-data-scan",
    "policy-validation",
    "compliance-assessment",
    "encryption-review",
    "data-protection-review",
    "runtime-security-review",
    "remediation-plan",
    "auto-remediation",
    "security-report-generation",
]

SCA_ORDER = [
    "dependency-discovery",
    *["vulnerability-scanning"] * 3,
    "vulnerability-aggregation",
    "sbom-generation",
    "license-compliance",
    "supply-chain-security",
    *["sca-tool-setup"] * 3,
    "automated-update-strategy",
    "remediation-planning",
    "cicd-integration",
    "compliance-reporting",
]

POLICIES_ORDER = [
    "assess-policy-framework",
    "design-policy-structure",
    "create-master-security-policy",
    "create-access-control-policies",
    "create-data-protection-policies",
    "create-incident-response-policies",
    "create-acceptable-use-policies",
    "create-asset-management-policies",
    "create-vendor-management-policies",
    "create-change-management-policies",
    "create-cryptography-policies",
    "create-cloud-security-policies",
    "setup-approval-workflow",
    "create-training-program",
    "create-maintenance-schedule",
    "map-policy-to-frameworks",
    "create-policy-handbook",
]

ALL_POLICY_SCOPES = [
    "access-control",
    "data-protection",
    "incident-response",
    "acceptable-use",
    "asset-management",
    "vendor-management",
    "change-management",
    "cryptography",
    "cloud-security",
]


@pytest.mark.parametrize(
    ("process_id", "inputs", "responses", "expected"),
    [
        (
            "security-compliance/dast-process",
            {"applicationUrl": "https://app.example.com", "continuousScanningEnabled": True},
            None,
            DAST_ORDER,
        ),
        (
            "security-compliance/pci-dss-compliance",
            {"projectName": "checkout", "merchantLevel": "level-1"},
            None,
            PCI_ORDER,
        ),
        (
            "security-compliance/iso27001-implementation",
            {"organization": "Acme"},
            None,
            ISO_ORDER,
        ),
        (
            "security-compliance/data-classification",
            {"projectName": "warehouse"},
            None,
            DATA_CLASSIFICATION_ORDER,
        ),
        (
            "security-compliance/iac-security-review",
            {"projectName": "infra", "autoRemediation": True},
            {"remediation-plan": {"autoFixableCount": 2}},
            IAC_ORDER,
        ),
        (
            "security-compliance/sca-dependency-management",
            {"projectName": "shop"},
            None,
            SCA_ORDER,
        ),
        (
            "security-compliance/security-policies",
            {"organization": "Acme", "policyScope": ALL_POLICY_SCOPES},
            None,
            POLICIES_ORDER,
        ),
    ],
)
def test_tasks_run_in_documented_order(run_workflow, process_id, inputs, responses, expected) -> None:
    result, executor = run_workflow(process_id, inputs, responses)

    assert "failedPhase" not in result
    assert executor.task_names() == expected


def test_processes_resolve_by_slug(run_workflow) -> None:
    result, executor = run_workflow("dast-process", {"applicationUrl": "https://app.example.com"})

    assert result["metadata"]["processId"] == "security-compliance/dast-process"
    assert executor.task_names() == DAST_ORDER[:-1]
