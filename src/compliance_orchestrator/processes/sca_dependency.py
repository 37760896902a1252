"""Software composition analysis and dependency management.

Dependencies are inventoried and scanned by every configured tool in parallel;
the per-tool results are merged by an aggregation task. SBOM generation,
license compliance and an optional supply chain assessment follow, then the
tools are configured in parallel and remediation, update automation and CI/CD
integration are planned before the compliance report.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from compliance_orchestrator.executor.base import GateRequest
from compliance_orchestrator.graph.phases import (
    Gate,
    Member,
    ParallelPhase,
    PhaseView,
    ProcessDefinition,
    TaskPhase,
    file_ref,
)
from compliance_orchestrator.processes.base import ProcessInputs, count, pick
from compliance_orchestrator.tasks import sca_dependency as tasks

PROCESS_ID = "security-compliance/sca-dependency-management"
AUTO_UPDATE_TOOLS = frozenset({"snyk", "dependabot"})


class _Options(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class LicensePolicies(_Options):
    allowed: list[str] = Field(
        default_factory=lambda: ["MIT", "Apache-2.0", "BSD-2-Clause", "BSD-3-Clause", "ISC"]
    )
    denied: list[str] = Field(default_factory=lambda: ["GPL-3.0", "AGPL-3.0"])
    review_required: list[str] = Field(
        default_factory=lambda: ["LGPL-2.1", "LGPL-3.0", "MPL-2.0"]
    )


class QualityCriteria(_Options):
    max_critical_vulnerabilities: int = Field(default=0, ge=0)
    max_high_vulnerabilities: int = Field(default=5, ge=0)
    required_sbom: bool = Field(default=True, alias="requiredSBOM")
    license_compliance_required: bool = True
    update_cadence: str = "weekly"


class ScaInputs(ProcessInputs):
    project_name: str | None = None
    repository_url: str | None = None
    package_managers: list[str] = Field(default_factory=lambda: ["npm", "maven", "pip"])
    sca_tools: list[str] = Field(default_factory=lambda: ["snyk", "dependabot", "trivy"])
    license_policies: LicensePolicies = Field(default_factory=LicensePolicies)
    severity_threshold: str = "high"
    automated_updates: bool = True
    sbom_format: str = "cyclonedx"
    cicd_integration: bool = True
    supply_chain_security: bool = True
    output_dir: str = "sca-output"
    quality_criteria: QualityCriteria = Field(default_factory=QualityCriteria)

    @field_validator("sca_tools")
    @classmethod
    def _unique_tools(cls, value: list[str]) -> list[str]:
        # Per-tool results are keyed by tool name.
        return list(dict.fromkeys(value))


def severity_counts(view: PhaseView) -> dict[str, int]:
    vulnerabilities = view.result("aggregation").vulnerabilities
    return {
        level: sum(1 for item in vulnerabilities if item.severity == level)
        for level in ("critical", "high", "medium", "low")
    }


def exceeds_thresholds(view: PhaseView) -> bool:
    counts = severity_counts(view)
    criteria = view.inputs.quality_criteria
    return (
        counts["critical"] > criteria.max_critical_vulnerabilities
        or counts["high"] > criteria.max_high_vulnerabilities
    )


def _fails_build(view: PhaseView) -> bool:
    counts = severity_counts(view)
    return (
        counts["critical"] > 0
        or counts["high"] > view.inputs.quality_criteria.max_high_vulnerabilities
    )


def _dependencies(view: PhaseView) -> list[Any]:
    return view.result("discovery").dependencies


def _vulnerabilities(view: PhaseView) -> list[Any]:
    return view.result("aggregation").vulnerabilities


def _scan_members(view: PhaseView) -> list[Member]:
    return [
        Member(
            tool,
            tasks.VULNERABILITY_SCANNING,
            {
                **pick(
                    view.inputs,
                    "project_name",
                    "repository_url",
                    "package_managers",
                    "severity_threshold",
                    "output_dir",
                ),
                "tool": tool,
                "dependencyInventory": _dependencies(view),
            },
        )
        for tool in view.inputs.sca_tools
    ]


def _tool_setup_members(view: PhaseView) -> list[Member]:
    inputs = view.inputs
    return [
        Member(
            tool,
            tasks.SCA_TOOL_SETUP,
            {
                **pick(
                    inputs,
                    "project_name",
                    "repository_url",
                    "package_managers",
                    "license_policies",
                    "severity_threshold",
                    "cicd_integration",
                    "output_dir",
                ),
                "tool": tool,
                "automatedUpdates": inputs.automated_updates and tool in AUTO_UPDATE_TOOLS,
            },
        )
        for tool in inputs.sca_tools
    ]


def _threshold_gate(view: PhaseView) -> GateRequest | None:
    if not exceeds_thresholds(view):
        return None
    counts = severity_counts(view)
    criteria = view.inputs.quality_criteria
    return GateRequest.breakpoint(
        "Vulnerability Threshold Alert",
        f"Vulnerability threshold exceeded: {counts['critical']} critical "
        f"(max: {criteria.max_critical_vulnerabilities}), {counts['high']} high "
        f"(max: {criteria.max_high_vulnerabilities}). Review vulnerabilities?",
        summary={
            "criticalCount": counts["critical"],
            "highCount": counts["high"],
            "mediumCount": counts["medium"],
            "lowCount": counts["low"],
            "topVulnerabilities": _vulnerabilities(view)[:10],
        },
        files=file_ref(view.result("aggregation").report_path, "Vulnerability Report", "json"),
    )


def _sbom_gate(view: PhaseView) -> GateRequest:
    generation = view.result("sbom")
    return GateRequest.breakpoint(
        "SBOM Review",
        f"SBOM generated with {generation.sbom.component_count} components in "
        f"{view.inputs.sbom_format} format. Review SBOM?",
        summary={
            "sbomFormat": view.inputs.sbom_format,
            "componentCount": generation.sbom.component_count,
        },
        files=[
            {
                "path": artifact.path,
                "format": artifact.format,
                "label": artifact.label or "SBOM",
            }
            for artifact in generation.artifacts
        ],
    )


def _license_gate(view: PhaseView) -> GateRequest | None:
    analysis = view.result("licenses")
    if not analysis.violations or not view.inputs.quality_criteria.license_compliance_required:
        return None
    return GateRequest.breakpoint(
        "License Compliance Review",
        f"Found {len(analysis.violations)} license policy violations. Review and approve?",
        summary={"violations": analysis.violations, "reviewRequired": analysis.review_required},
        files=file_ref(analysis.report_path, "License Report", "json"),
    )


def _remediation_gate(view: PhaseView) -> GateRequest:
    plan = view.result("remediation")
    return GateRequest.breakpoint(
        "Remediation Plan Review",
        f"Remediation plan created with {len(plan.actions)} actions. "
        f"{plan.critical_actions} critical actions require immediate attention. Review plan?",
        summary={
            "totalActions": len(plan.actions),
            "criticalActions": plan.critical_actions,
            "automatableActions": plan.automatable,
            "estimatedEffort": plan.estimated_effort,
        },
        files=file_ref(plan.report_path, "Remediation Plan"),
    )


def _final_gate(view: PhaseView) -> GateRequest:
    counts = severity_counts(view)
    licenses = view.result("licenses")
    reporting = view.result("reporting")
    supply_chain = view.result("supply_chain")
    return GateRequest.breakpoint(
        "Final SCA Report Review",
        f"SCA analysis complete. Compliance score: {reporting.status.score}/100. "
        f"{counts['critical']} critical vulnerabilities, {len(licenses.violations)} license "
        "violations. Review final report and approve?",
        summary={
            "complianceScore": reporting.status.score,
            "vulnerabilitySummary": {f"{level}Count": total for level, total in counts.items()},
            "licenseSummary": {
                "violations": len(licenses.violations),
                "reviewRequired": len(licenses.review_required),
            },
            "supplyChainRisk": supply_chain.risk_score if supply_chain is not None else "N/A",
        },
        files=[
            *file_ref(reporting.executive_report_path, "Executive Summary"),
            *file_ref(reporting.technical_report_path, "Technical Report"),
        ],
    )


def _finalize(view: PhaseView) -> dict[str, Any]:
    counts = severity_counts(view)
    inventory = view.result("discovery")
    sbom = view.result("sbom").sbom
    licenses = view.result("licenses")
    supply_chain = view.result("supply_chain")
    plan = view.result("remediation")
    strategy = view.result("update_strategy")
    cicd = view.result("cicd")
    status = view.result("reporting").status
    return {
        "success": True,
        **pick(view.inputs, "project_name"),
        "sbom": {
            "format": view.inputs.sbom_format,
            "componentCount": sbom.component_count,
            "paths": sbom.paths,
            "specification": sbom.specification,
        },
        "vulnerabilities": {
            "total": len(_vulnerabilities(view)),
            **counts,
            "details": [
                {
                    "id": item.id,
                    "package": item.package,
                    "severity": item.severity,
                    "cvss": item.cvss,
                    "fixAvailable": item.fix_available,
                }
                for item in _vulnerabilities(view)
            ],
        },
        "licenses": {
            "total": licenses.licenses.total_licenses,
            "compliance": {
                "compliant": licenses.licenses.compliant,
                "violations": len(licenses.violations),
                "reviewRequired": len(licenses.review_required),
            },
            "byLicense": licenses.licenses.by_license,
        },
        "dependencies": {
            "total": inventory.total_dependencies,
            "direct": inventory.direct_dependencies,
            "transitive": inventory.transitive_dependencies,
        },
        "supplyChain": (
            {
                "riskScore": supply_chain.risk_score,
                "risks": count(supply_chain.risks),
                "recommendations": count(supply_chain.recommendations),
            }
            if supply_chain is not None
            else None
        ),
        "remediation": {
            "totalActions": len(plan.actions),
            "criticalActions": plan.critical_actions,
            "automatableActions": plan.automatable,
            "estimatedEffort": plan.estimated_effort,
        },
        "tooling": {
            "configured": list(view.inputs.sca_tools),
            "automatedUpdates": count(strategy.update_rules) if strategy is not None else 0,
            "cicdIntegration": cicd.platforms if cicd is not None else [],
        },
        "complianceStatus": {
            "overall": status.overall,
            "score": status.score,
            "meetsThresholds": status.meets_thresholds,
        },
    }


def _metadata(inputs: ScaInputs) -> dict[str, Any]:
    return pick(inputs, "output_dir", "severity_threshold", "sca_tools", "sbom_format")


DEFINITION = ProcessDefinition(
    process_id=PROCESS_ID,
    title="SCA and Dependency Management",
    description="Dependency inventory, vulnerability scanning, SBOM, licenses and supply chain.",
    inputs_model=ScaInputs,
    required=("project_name",),
    steps=(
        TaskPhase(
            "discovery",
            tasks.DEPENDENCY_DISCOVERY,
            lambda v: pick(
                v.inputs, "project_name", "repository_url", "package_managers", "output_dir"
            ),
            announce="Phase 1: Discovering and inventorying dependencies",
        ),
        ParallelPhase(
            "scanning",
            (tasks.VULNERABILITY_SCANNING,),
            _scan_members,
            announce="Phase 2: Running vulnerability scans in parallel with multiple tools",
        ),
        TaskPhase(
            "aggregation",
            tasks.VULNERABILITY_AGGREGATION,
            lambda v: {
                **pick(v.inputs, "project_name", "severity_threshold", "output_dir"),
                "scanResults": list(v.result("scanning").values()),
            },
            gate=_threshold_gate,
        ),
        TaskPhase(
            "sbom",
            tasks.SBOM_GENERATION,
            lambda v: {
                **pick(v.inputs, "project_name", "package_managers", "output_dir"),
                "dependencyInventory": _dependencies(v),
                "format": v.inputs.sbom_format,
                "includeVulnerabilities": True,
                "vulnerabilities": _vulnerabilities(v),
            },
            gate=_sbom_gate,
            announce="Phase 3: Generating Software Bill of Materials (SBOM)",
        ),
        TaskPhase(
            "licenses",
            tasks.LICENSE_COMPLIANCE,
            lambda v: {
                **pick(
                    v.inputs, "project_name", "package_managers", "license_policies", "output_dir"
                ),
                "dependencyInventory": _dependencies(v),
            },
            gate=_license_gate,
            announce="Phase 4: Analyzing license compliance",
        ),
        TaskPhase(
            "supply_chain",
            tasks.SUPPLY_CHAIN_SECURITY,
            lambda v: {
                **pick(
                    v.inputs, "project_name", "repository_url", "package_managers", "output_dir"
                ),
                "dependencyInventory": _dependencies(v),
                "vulnerabilities": _vulnerabilities(v),
            },
            when=lambda v: v.inputs.supply_chain_security,
            announce="Phase 5: Assessing supply chain security risks",
        ),
        ParallelPhase(
            "tool_setup",
            (tasks.SCA_TOOL_SETUP,),
            _tool_setup_members,
            announce="Phase 6: Setting up and configuring SCA tools in parallel",
        ),
        TaskPhase(
            "update_strategy",
            tasks.AUTOMATED_UPDATE_STRATEGY,
            lambda v: {
                **pick(
                    v.inputs, "project_name", "package_managers", "cicd_integration", "output_dir"
                ),
                "dependencyInventory": _dependencies(v),
                "vulnerabilities": _vulnerabilities(v),
                "updateCadence": v.inputs.quality_criteria.update_cadence,
            },
            when=lambda v: v.inputs.automated_updates,
            announce="Phase 7: Designing automated dependency update strategy",
        ),
        TaskPhase(
            "remediation",
            tasks.REMEDIATION_PLANNING,
            lambda v: {
                **pick(v.inputs, "project_name", "automated_updates", "output_dir"),
                "vulnerabilities": _vulnerabilities(v),
                "dependencyInventory": _dependencies(v),
                "licenseViolations": v.result("licenses").violations,
                "supplyChainAssessment": v.result("supply_chain"),
            },
            gate=_remediation_gate,
            announce="Phase 8: Creating vulnerability remediation plan",
        ),
        TaskPhase(
            "cicd",
            tasks.CICD_INTEGRATION,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "repository_url",
                    "sca_tools",
                    "package_managers",
                    "severity_threshold",
                    "automated_updates",
                    "output_dir",
                ),
                "failBuildOnVulnerabilities": _fails_build(v),
            },
            when=lambda v: v.inputs.cicd_integration,
            announce="Phase 9: Creating CI/CD pipeline integration configuration",
        ),
        TaskPhase(
            "reporting",
            tasks.COMPLIANCE_REPORTING,
            lambda v: {
                **pick(v.inputs, "project_name", "quality_criteria", "output_dir"),
                "sbom": v.result("sbom").sbom,
                "vulnerabilities": _vulnerabilities(v),
                "licenses": v.result("licenses").licenses,
                "licenseViolations": v.result("licenses").violations,
                "licenseReviews": v.result("licenses").review_required,
                "supplyChainAssessment": v.result("supply_chain"),
                "remediationPlan": v.result("remediation"),
            },
            announce="Phase 10: Generating compliance reports and documentation",
        ),
        Gate("final_review", _final_gate),
    ),
    finalize=_finalize,
    metadata=_metadata,
    labels=("sca", "dependencies", "supply-chain"),
)
