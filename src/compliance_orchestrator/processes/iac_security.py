"""Infrastructure-as-code security review.

Inventory the IaC tree, then scan in three fork-join groups (misconfiguration,
network and IAM; secrets and sensitive data; encryption and data protection)
around policy validation and a compliance assessment. A runtime review and a
remediation plan follow, optionally applied automatically after approval,
before the final security report is scored against a depth-based threshold.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import Field

from compliance_orchestrator.executor.base import GateRequest
from compliance_orchestrator.graph.phases import (
    Gate,
    Member,
    ParallelPhase,
    PhaseView,
    ProcessDefinition,
    TaskPhase,
)
from compliance_orchestrator.processes.base import ProcessInputs, pick
from compliance_orchestrator.tasks import iac_security as tasks
from compliance_orchestrator.tasks.base import jsonable

PROCESS_ID = "security-compliance/iac-security-review"
SECURITY_THRESHOLDS = {"comprehensive": 85, "standard": 75}
DEFAULT_SECURITY_THRESHOLD = 65
REDACTED = "[REDACTED]"

# Steps contributing findings, in the order they run, with their member keys.
FINDING_SOURCES = (
    ("misconfiguration", ("misconfiguration", "network", "iam")),
    ("secrets", ("secrets", "sensitive_data")),
    ("encryption", ("encryption", "data_protection")),
    ("runtime", None),
)


class IacSecurityInputs(ProcessInputs):
    project_name: str | None = None
    iac_tool: str = "terraform"
    iac_path: str = "./infrastructure"
    cloud_provider: str = "aws"
    compliance_standards: list[str] = Field(default_factory=lambda: ["CIS", "OWASP"])
    policy_framework: str = "opa"
    scan_depth: str = "comprehensive"
    auto_remediation: bool = False
    severity_threshold: str = "medium"
    output_dir: str = "iac-security-review-output"
    custom_policies: list[Any] = Field(default_factory=list)
    exclude_paths: list[str] = Field(default_factory=list)
    suppressions: dict[str, Any] = Field(default_factory=dict)


def security_threshold(scan_depth: str) -> int:
    return SECURITY_THRESHOLDS.get(scan_depth, DEFAULT_SECURITY_THRESHOLD)


def collect_findings(view: PhaseView) -> list[Any]:
    """Every finding reported so far, in phase order."""
    collected: list[Any] = []
    for step, keys in FINDING_SOURCES:
        result = view.result(step)
        if result is None:
            continue
        if keys is None:
            collected.extend(result.findings)
        else:
            for key in keys:
                collected.extend(result[key].findings)
    return collected


def redact_secrets(secrets: list[Any]) -> list[dict[str, Any]]:
    return [{**jsonable(secret), "value": REDACTED} for secret in secrets]


def reported_findings(findings: list[Any]) -> list[Any]:
    """Findings as returned to callers; exposed secret values never leave the run."""
    return [
        redact_secrets([finding])[0] if finding.type == "exposed-secret" else finding
        for finding in findings
    ]


def _violations(view: PhaseView) -> list[Any]:
    policy = view.result("policy")
    return list(policy.violations) if policy is not None else []


def _inline(view: PhaseView, name: str, payload: Any, fmt: str = "json") -> dict[str, Any]:
    content = payload if fmt != "json" else json.dumps(jsonable(payload), indent=2)
    return {"path": f"{view.inputs.output_dir}/{name}", "format": fmt, "content": content}


def _exposed_secrets(findings: list[Any]) -> list[Any]:
    return [finding for finding in findings if finding.type == "exposed-secret"]


def _with_severity(findings: list[Any], *levels: str) -> list[Any]:
    return [finding for finding in findings if finding.severity in levels]


def _misconfiguration_gate(view: PhaseView) -> GateRequest | None:
    critical = _with_severity(collect_findings(view), "critical")
    if not critical:
        return None
    return GateRequest.breakpoint(
        "Critical Misconfigurations Gate",
        f"Phase 2 Quality Gate: Found {len(critical)} CRITICAL security misconfigurations. "
        "These MUST be fixed immediately. Review findings?",
        summary={"criticalCount": len(critical), "misconfigurations": critical[:10]},
        files=[_inline(view, "phase2-critical-misconfigurations.json", critical)],
    )


def _secrets_gate(view: PhaseView) -> GateRequest | None:
    exposed = _exposed_secrets(collect_findings(view))
    if not exposed:
        return None
    secret_types = list(dict.fromkeys(secret.secret_type for secret in exposed))
    return GateRequest.breakpoint(
        "Exposed Secrets Gate",
        f"Phase 3 Quality Gate: Found {len(exposed)} EXPOSED SECRETS. "
        "These are critical security risks. Immediate action required!",
        summary={"exposedSecretsCount": len(exposed), "secretTypes": secret_types},
        files=[_inline(view, "phase3-exposed-secrets.json", redact_secrets(exposed))],
    )


def _policy_gate(view: PhaseView) -> GateRequest | None:
    serious = _with_severity(_violations(view), "critical", "high")
    if not serious:
        return None
    policy = view.result("policy")
    return GateRequest.breakpoint(
        "Policy Violations Gate",
        f"Phase 4 Quality Gate: Found {len(serious)} critical/high policy violations. "
        "Review and address?",
        summary={
            "policyViolationCount": len(serious),
            "policyScore": policy.policy_score,
            "frameworks": policy.frameworks_evaluated,
        },
        files=[_inline(view, "phase4-policy-violations.json", serious)],
    )


def _compliance_gate(view: PhaseView) -> GateRequest | None:
    assessment = view.result("compliance")
    failed = [
        status
        for status in assessment.compliance_status.values()
        if status.status == "non-compliant" or status.critical_gaps > 0
    ]
    if not failed:
        return None
    return GateRequest.breakpoint(
        "Compliance Assessment Gate",
        f"Phase 5 Quality Gate: Non-compliant with {len(failed)} standards. "
        "Review compliance gaps?",
        summary={
            "nonCompliantStandards": [status.standard for status in failed],
            "overallComplianceScore": assessment.overall_score,
        },
        files=[_inline(view, "phase5-compliance-report.json", assessment.compliance_status)],
    )


def _encryption_gate(view: PhaseView) -> GateRequest | None:
    unencrypted = [
        finding
        for finding in _with_severity(collect_findings(view), "critical", "high")
        if finding.category == "encryption"
    ]
    if not unencrypted:
        return None
    reviews = view.result("encryption")
    return GateRequest.breakpoint(
        "Encryption Review Gate",
        f"Phase 6 Quality Gate: Found {len(unencrypted)} unencrypted sensitive resources. "
        "These may violate compliance requirements. Review?",
        summary={
            "unencryptedCount": len(unencrypted),
            "encryptionScore": reviews["encryption"].encryption_score,
            "dataProtectionScore": reviews["data_protection"].data_protection_score,
        },
        files=[_inline(view, "phase6-encryption-gaps.json", unencrypted)],
    )


def _wants_auto_remediation(view: PhaseView) -> bool:
    return view.inputs.auto_remediation and view.result("remediation").auto_fixable_count > 0


def _auto_remediation_gate(view: PhaseView) -> GateRequest:
    plan = view.result("remediation")
    return GateRequest.breakpoint(
        "Auto-Remediation Confirmation",
        f"Auto-remediation is enabled. Apply {plan.auto_fixable_count} automated fixes? "
        "This will modify IaC files.",
        summary={
            "autoFixableCount": plan.auto_fixable_count,
            "fixesByCategory": plan.fixes_by_category,
        },
        files=[_inline(view, "phase8-auto-remediation-preview.json", plan.auto_fixable_issues)],
    )


def summary_stats(view: PhaseView) -> dict[str, Any]:
    findings = collect_findings(view)
    return {
        "totalFindings": len(findings),
        "criticalFindings": len(_with_severity(findings, "critical")),
        "highFindings": len(_with_severity(findings, "high")),
        "mediumFindings": len(_with_severity(findings, "medium")),
        "lowFindings": len(_with_severity(findings, "low")),
        "exposedSecrets": len(_exposed_secrets(findings)),
        "policyViolations": len(_violations(view)),
        "complianceScore": view.result("compliance").overall_score,
        "securityScore": view.result("report").overall_security_score,
    }


def _passed(view: PhaseView, stats: dict[str, Any]) -> bool:
    threshold = security_threshold(view.inputs.scan_depth)
    return stats["securityScore"] >= threshold and stats["criticalFindings"] == 0


def _final_gate(view: PhaseView) -> GateRequest | None:
    stats = summary_stats(view)
    if _passed(view, stats):
        return None
    report = view.result("report")
    threshold = security_threshold(view.inputs.scan_depth)
    return GateRequest.breakpoint(
        "Final Security Assessment Gate",
        f"Final Security Gate: Security score is {stats['securityScore']}/100 "
        f"(threshold: {threshold}), with {stats['criticalFindings']} critical findings. "
        "Review complete report?",
        summary={
            "securityScore": stats["securityScore"],
            "securityThreshold": threshold,
            "summaryStats": stats,
            "topIssues": report.top_security_issues,
        },
        files=[
            _inline(view, "final-security-report.json", report),
            _inline(view, "executive-summary.md", report.executive_summary, fmt="markdown"),
        ],
    )


def _finalize(view: PhaseView) -> dict[str, Any]:
    stats = summary_stats(view)
    applied = view.result("auto_remediation")
    return {
        "success": True,
        "securityGatePassed": _passed(view, stats),
        **pick(view.inputs, "project_name", "iac_tool", "cloud_provider", "scan_depth"),
        "securityScore": stats["securityScore"],
        "securityThreshold": security_threshold(view.inputs.scan_depth),
        "complianceScore": stats["complianceScore"],
        "findings": reported_findings(collect_findings(view)),
        "policyViolations": _violations(view),
        "complianceStatus": view.result("compliance").compliance_status,
        "remediationPlan": view.result("remediation").plan,
        "autoRemediation": (
            {
                "applied": True,
                "fixesApplied": applied.fixes_applied,
                "modifiedFiles": applied.modified_files,
            }
            if applied is not None
            else {"applied": False}
        ),
        "summary": stats,
        "recommendations": view.result("report").top_recommendations,
    }


def _metadata(inputs: IacSecurityInputs) -> dict[str, Any]:
    return pick(
        inputs,
        "iac_tool",
        "cloud_provider",
        "scan_depth",
        "compliance_standards",
        "policy_framework",
        "output_dir",
    )


def _misconfiguration_members(view: PhaseView) -> list[Member]:
    inventory = view.result("inventory")
    base = pick(view.inputs, "project_name", "iac_path", "cloud_provider", "output_dir")
    return [
        Member(
            "misconfiguration",
            tasks.MISCONFIGURATION_SCAN,
            {
                **base,
                **pick(view.inputs, "iac_tool", "scan_depth"),
                "codeInventory": inventory,
            },
        ),
        Member("network", tasks.NETWORK_SECURITY_SCAN, {**base, "codeInventory": inventory}),
        Member("iam", tasks.IAM_SECURITY_SCAN, {**base, "codeInventory": inventory}),
    ]


def _secrets_members(view: PhaseView) -> list[Member]:
    return [
        Member(
            "secrets",
            tasks.SECRETS_DETECTION,
            pick(view.inputs, "project_name", "iac_path", "iac_tool", "output_dir"),
        ),
        Member(
            "sensitive_data",
            tasks.SENSITIVE_DATA_SCAN,
            pick(view.inputs, "project_name", "iac_path", "cloud_provider", "output_dir"),
        ),
    ]


def _encryption_members(view: PhaseView) -> list[Member]:
    base = {
        **pick(view.inputs, "project_name", "iac_path", "cloud_provider", "output_dir"),
        "codeInventory": view.result("inventory"),
    }
    return [
        Member("encryption", tasks.ENCRYPTION_REVIEW, base),
        Member(
            "data_protection",
            tasks.DATA_PROTECTION_REVIEW,
            {**base, **pick(view.inputs, "compliance_standards")},
        ),
    ]


DEFINITION = ProcessDefinition(
    process_id=PROCESS_ID,
    title="Infrastructure as Code Security Review",
    description="Static security review of Terraform, CloudFormation and similar IaC trees.",
    inputs_model=IacSecurityInputs,
    required=("project_name",),
    steps=(
        TaskPhase(
            "inventory",
            tasks.CODE_INVENTORY,
            lambda v: pick(
                v.inputs,
                "project_name",
                "iac_tool",
                "iac_path",
                "cloud_provider",
                "exclude_paths",
                "output_dir",
            ),
            announce="Phase 1: Discovering and inventorying infrastructure code",
        ),
        ParallelPhase(
            "misconfiguration",
            (tasks.MISCONFIGURATION_SCAN, tasks.NETWORK_SECURITY_SCAN, tasks.IAM_SECURITY_SCAN),
            _misconfiguration_members,
            gate=_misconfiguration_gate,
            announce="Phase 2: Scanning for security misconfigurations",
        ),
        ParallelPhase(
            "secrets",
            (tasks.SECRETS_DETECTION, tasks.SENSITIVE_DATA_SCAN),
            _secrets_members,
            gate=_secrets_gate,
            announce="Phase 3: Detecting secrets and sensitive data in IaC",
        ),
        TaskPhase(
            "policy",
            tasks.POLICY_VALIDATION,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "iac_tool",
                    "iac_path",
                    "cloud_provider",
                    "policy_framework",
                    "custom_policies",
                    "compliance_standards",
                    "output_dir",
                ),
                "codeInventory": v.result("inventory"),
            },
            gate=_policy_gate,
            announce="Phase 4: Validating policies as code",
        ),
        TaskPhase(
            "compliance",
            tasks.COMPLIANCE_ASSESSMENT,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "iac_path",
                    "cloud_provider",
                    "compliance_standards",
                    "output_dir",
                ),
                "findings": collect_findings(v),
                "policyViolations": _violations(v),
                "codeInventory": v.result("inventory"),
            },
            gate=_compliance_gate,
            announce="Phase 5: Assessing compliance with security standards",
        ),
        ParallelPhase(
            "encryption",
            (tasks.ENCRYPTION_REVIEW, tasks.DATA_PROTECTION_REVIEW),
            _encryption_members,
            gate=_encryption_gate,
            announce="Phase 6: Reviewing encryption and data protection configurations",
        ),
        TaskPhase(
            "runtime",
            tasks.RUNTIME_SECURITY_REVIEW,
            lambda v: {
                **pick(v.inputs, "project_name", "iac_path", "cloud_provider", "output_dir"),
                "codeInventory": v.result("inventory"),
            },
            announce="Phase 7: Validating container and runtime security configurations",
        ),
        TaskPhase(
            "remediation",
            tasks.REMEDIATION_PLAN,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "iac_tool",
                    "iac_path",
                    "auto_remediation",
                    "severity_threshold",
                    "output_dir",
                ),
                "findings": collect_findings(v),
                "policyViolations": _violations(v),
                "complianceStatus": v.result("compliance").compliance_status,
            },
            announce="Phase 8: Generating automated remediation recommendations",
        ),
        Gate("auto_remediation_approval", _auto_remediation_gate, when=_wants_auto_remediation),
        TaskPhase(
            "auto_remediation",
            tasks.AUTO_REMEDIATION,
            lambda v: {
                **pick(v.inputs, "project_name", "iac_path", "output_dir"),
                "remediationPlan": v.result("remediation").auto_fixable_issues,
            },
            when=_wants_auto_remediation,
            announce="Applying automated fixes from the remediation plan",
        ),
        TaskPhase(
            "report",
            tasks.SECURITY_REPORT,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "iac_tool",
                    "cloud_provider",
                    "compliance_standards",
                    "policy_framework",
                    "scan_depth",
                    "output_dir",
                ),
                "codeInventory": v.result("inventory"),
                "findings": collect_findings(v),
                "policyViolations": _violations(v),
                "complianceStatus": v.result("compliance").compliance_status,
                "remediationPlan": v.result("remediation"),
            },
            announce="Phase 9: Generating comprehensive security report",
        ),
        Gate("final_review", _final_gate),
    ),
    finalize=_finalize,
    metadata=_metadata,
    labels=("iac", "security", "compliance"),
)
