"""PCI DSS compliance assessment across all twelve requirements.

CDE scoping and segmentation come first, then each requirement is assessed in
order. ASV scanning and penetration testing are optional, followed by scoring,
gap analysis and the attestation documents.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from compliance_orchestrator.executor.base import GateRequest
from compliance_orchestrator.graph.phases import Gate, PhaseView, ProcessDefinition, TaskPhase, file_ref
from compliance_orchestrator.processes.base import ProcessInputs, count, pick
from compliance_orchestrator.tasks import pci_dss as tasks

PROCESS_ID = "security-compliance/pci-dss-compliance"
REQUIREMENT_NUMBERS = tuple(range(1, 13))


class PciDssInputs(ProcessInputs):
    project_name: str | None = None
    merchant_level: str = "level-2"
    cde_scope: list[Any] = Field(default_factory=list)
    assessment_type: str = "saq-d"
    version: str = "v4.0"
    asv_scan: bool = True
    penetration_test: bool = False
    network_segmentation: bool = True
    quarterly_scans: bool = True
    automated_remediation: bool = False
    generate_aoc: bool = True
    generate_roc: bool = False
    output_dir: str = "pci-dss-compliance-output"
    environment: str = "production"

    @model_validator(mode="before")
    @classmethod
    def _merchant_level_defaults(cls, data: Any) -> Any:
        # Level 1 and 2 merchants need an annual pen test; only level 1 files a ROC.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        level = data.get("merchantLevel", data.get("merchant_level", "level-2"))
        if "penetrationTest" not in data and "penetration_test" not in data:
            data["penetrationTest"] = level in ("level-1", "level-2")
        if "generateRoc" not in data and "generate_roc" not in data:
            data["generateRoc"] = level == "level-1"
        return data


def requirement_step(number: int) -> str:
    return f"requirement_{number}"


def _assessed(view: PhaseView) -> list[tuple[int, Any]]:
    return [
        (number, view.result(requirement_step(number)))
        for number in REQUIREMENT_NUMBERS
        if view.ran(requirement_step(number))
    ]


def _requirement_results(view: PhaseView) -> list[dict[str, Any]]:
    return [
        {
            "requirement": number,
            **result.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"artifacts"}),
        }
        for number, result in _assessed(view)
    ]


def _gaps(view: PhaseView) -> list[Any]:
    return [gap for _, result in _assessed(view) for gap in result.gaps]


def _requirement_args(number: int):
    def build(view: PhaseView) -> dict[str, Any]:
        if number == 12:
            args = pick(view.inputs, "project_name", "merchant_level", "version", "output_dir")
        else:
            args = {
                **pick(view.inputs, "project_name", "version", "output_dir"),
                "cdeAssets": view.result("cde_scope").cde_assets,
            }
        if number == 6:
            args.update(pick(view.inputs, "quarterly_scans"))
        if number == 11:
            args.update(pick(view.inputs, "asv_scan", "penetration_test"))
        return args

    return build


def _cde_scope_gate(view: PhaseView) -> GateRequest:
    scope = view.result("cde_scope")
    return GateRequest.breakpoint(
        "CDE Scope Review",
        f"CDE scope identification complete for {view.inputs.project_name}. "
        f"{len(scope.cde_assets)} in-scope assets, {len(scope.connected_assets)} connected systems. "
        "Review scope before assessment?",
        cdeScope={
            "totalCdeAssets": len(scope.cde_assets),
            "connectedAssets": len(scope.connected_assets),
            "outOfScope": len(scope.out_of_scope_assets),
            "segmentationEffective": scope.segmentation_effective,
            "scopeReductionOpportunities": scope.scope_reduction_opportunities,
        },
        assetBreakdown=scope.asset_breakdown,
    )


def _segmentation_gate(view: PhaseView) -> GateRequest:
    segmentation = view.result("segmentation")
    return GateRequest.breakpoint(
        "Network Segmentation Review",
        f"Network segmentation validation complete. Segmentation Score: "
        f"{segmentation.segmentation_score}/100. {len(segmentation.issues)} issues found. "
        "Review segmentation?",
        segmentation={
            "segmentationScore": segmentation.segmentation_score,
            "effective": segmentation.effective,
            "issuesFound": len(segmentation.issues),
            "firewallRulesReviewed": segmentation.firewall_rules_reviewed,
            "isolationValidated": segmentation.isolation_validated,
        },
        issues=segmentation.issues,
    )


def _data_protection_gate(view: PhaseView) -> GateRequest:
    req3 = view.result(requirement_step(3))
    return GateRequest.breakpoint(
        "Requirement 3 - Data Protection Review",
        f"Requirement 3 (Data Protection) assessment complete. Compliance: "
        f"{'YES' if req3.compliant else 'NO'}. {len(req3.gaps)} gaps found. "
        "This is a critical requirement. Review findings?",
        requirement3={
            "compliant": req3.compliant,
            "score": req3.score,
            "gapsCount": len(req3.gaps),
            "encryptionValidated": req3.encryption_validated,
            "keyManagementValidated": req3.key_management_validated,
            "dataRetentionCompliant": req3.data_retention_compliant,
        },
        gaps=req3.gaps,
    )


def _security_testing_gate(view: PhaseView) -> GateRequest:
    req11 = view.result(requirement_step(11))
    return GateRequest.breakpoint(
        "Requirement 11 - Security Testing Review",
        f"Requirement 11 (Security Testing) assessment complete. ASV Scan: "
        f"{'PASS' if req11.asv_scan_compliant else 'FAIL'}, Penetration Test: "
        f"{'PASS' if req11.penetration_test_compliant else 'FAIL'}. Review findings?",
        requirement11={
            "compliant": req11.compliant,
            "score": req11.score,
            "asvScanCompliant": req11.asv_scan_compliant,
            "asvScanDate": req11.asv_scan_date,
            "penetrationTestCompliant": req11.penetration_test_compliant,
            "penetrationTestDate": req11.penetration_test_date,
            "vulnerabilitiesFound": req11.vulnerabilities_found,
        },
        gaps=req11.gaps,
    )


def _asv_gate(view: PhaseView) -> GateRequest:
    scan = view.result("asv_scan")
    return GateRequest.breakpoint(
        "ASV Scan Review",
        f"ASV quarterly vulnerability scan complete. Result: {'PASSED' if scan.passed else 'FAILED'}. "
        f"{scan.vulnerabilities_found} vulnerabilities found. Review ASV results?",
        asvScan={
            "passed": scan.passed,
            "vulnerabilitiesFound": scan.vulnerabilities_found,
            "criticalVulnerabilities": scan.critical_vulnerabilities,
            "scanDate": scan.scan_date,
            "nextScanDue": scan.next_scan_due,
            "scannerName": scan.scanner_name,
        },
        topVulnerabilities=scan.top_vulnerabilities,
    )


def _pen_test_gate(view: PhaseView) -> GateRequest:
    test = view.result("penetration_test")
    return GateRequest.breakpoint(
        "Penetration Test Review",
        f"Penetration testing complete. {test.issues_found} issues found "
        f"({test.critical_issues} critical). Review penetration test results?",
        penetrationTest={
            "issuesFound": test.issues_found,
            "criticalIssues": test.critical_issues,
            "highIssues": test.high_issues,
            "mediumIssues": test.medium_issues,
            "testDate": test.test_date,
            "nextTestDue": test.next_test_due,
            "segmentationValidated": test.segmentation_validated,
        },
        criticalFindings=test.critical_findings,
    )


def _gap_analysis_gate(view: PhaseView) -> GateRequest:
    analysis = view.result("gap_analysis")
    total = len(_gaps(view))
    return GateRequest.breakpoint(
        "Gap Analysis and Remediation Plan Review",
        f"Gap analysis complete. {total} gaps identified ({analysis.critical_gaps} critical). "
        "Review remediation plan?",
        gapAnalysis={
            "totalGaps": total,
            "criticalGaps": analysis.critical_gaps,
            "highGaps": analysis.high_gaps,
            "mediumGaps": analysis.medium_gaps,
            "lowGaps": analysis.low_gaps,
            "autoRemediableGaps": analysis.auto_remediable_gaps,
            "estimatedEffort": analysis.estimated_effort,
        },
        remediationPriorities=analysis.remediation_priorities,
    )


def _overall_compliant(view: PhaseView) -> bool:
    return view.result("scoring").compliance_score >= 100 and not _gaps(view)


def _final_gate(view: PhaseView) -> GateRequest:
    inputs = view.inputs
    score = view.result("scoring").compliance_score
    gaps = _gaps(view)
    analysis = view.result("gap_analysis")
    asv = view.result("asv_scan")
    pen_test = view.result("penetration_test")
    aoc = view.result("aoc")
    roc = view.result("roc")
    documentation = view.result("documentation")
    return GateRequest.breakpoint(
        "Final PCI DSS Compliance Review",
        f"PCI DSS {inputs.version} Compliance Assessment Complete for {inputs.project_name}. "
        f"Overall Score: {score}/100. {len(gaps)} gaps identified. Review final results?",
        summary={
            **pick(inputs, "project_name", "merchant_level", "assessment_type", "version"),
            "complianceScore": score,
            "overallCompliant": _overall_compliant(view),
            "totalRequirements": len(REQUIREMENT_NUMBERS),
            "compliantRequirements": sum(1 for _, result in _assessed(view) if result.compliant),
            "totalGaps": len(gaps),
            "criticalGaps": analysis.critical_gaps,
        },
        requirementSummary=[
            {
                "requirement": number,
                "name": result.name or tasks.REQUIREMENT_NAMES[number],
                "compliant": result.compliant,
                "score": result.score,
                "gaps": len(result.gaps),
            }
            for number, result in _assessed(view)
        ],
        securityTesting={
            "asvScanPassed": asv.passed if asv is not None else "N/A",
            "penetrationTestCompliant": pen_test.issues_found == 0 if pen_test is not None else "N/A",
        },
        deliverables={
            "aocGenerated": aoc is not None,
            "rocGenerated": roc is not None,
            "remediationPlanAvailable": bool(analysis.remediation_items),
        },
        files=[
            *file_ref(documentation.report_path, "PCI DSS Compliance Report"),
            *file_ref(aoc.aoc_path if aoc else None, "Attestation of Compliance", "pdf"),
            *file_ref(roc.roc_path if roc else None, "Report on Compliance", "pdf"),
            *file_ref(analysis.remediation_plan_path, "Remediation Plan", "json"),
        ],
    )


def _finalize(view: PhaseView) -> dict[str, Any]:
    inputs = view.inputs
    scope = view.result("cde_scope")
    analysis = view.result("gap_analysis")
    asv = view.result("asv_scan")
    pen_test = view.result("penetration_test")
    aoc = view.result("aoc")
    roc = view.result("roc")
    documentation = view.result("documentation")
    gaps = _gaps(view)
    items = analysis.remediation_items
    return {
        "success": True,
        **pick(inputs, "project_name", "merchant_level", "assessment_type", "version"),
        "complianceScore": view.result("scoring").compliance_score,
        "overallCompliant": _overall_compliant(view),
        "requirementResults": [
            {
                "requirement": number,
                "name": result.name or tasks.REQUIREMENT_NAMES[number],
                "compliant": result.compliant,
                "score": result.score,
                "gapsCount": len(result.gaps),
            }
            for number, result in _assessed(view)
        ],
        "gaps": {
            "total": len(gaps),
            "critical": analysis.critical_gaps,
            "high": analysis.high_gaps,
            "medium": analysis.medium_gaps,
            "low": analysis.low_gaps,
            "details": gaps,
        },
        "cdeScope": {
            "totalCdeAssets": len(scope.cde_assets),
            "connectedAssets": count(scope.connected_assets),
            "segmentationEffective": scope.segmentation_effective,
        },
        "securityTesting": {
            "asvScan": (
                {
                    "passed": asv.passed,
                    "vulnerabilitiesFound": asv.vulnerabilities_found,
                    "scanDate": asv.scan_date,
                }
                if asv is not None
                else None
            ),
            "penetrationTest": (
                {
                    "issuesFound": pen_test.issues_found,
                    "criticalIssues": pen_test.critical_issues,
                    "testDate": pen_test.test_date,
                }
                if pen_test is not None
                else None
            ),
        },
        "remediationPlan": {
            "totalItems": len(items),
            "criticalItems": sum(1 for item in items if item.priority == "critical"),
            "autoRemediableItems": analysis.auto_remediable_gaps,
            "estimatedEffort": analysis.estimated_effort,
            "items": items,
        },
        "documentation": {
            "reportPath": documentation.report_path,
            "aocPath": aoc.aoc_path if aoc else None,
            "rocPath": roc.roc_path if roc else None,
            "remediationPlanPath": analysis.remediation_plan_path,
        },
    }


def _metadata(inputs: PciDssInputs) -> dict[str, Any]:
    return pick(inputs, "environment", "output_dir", "merchant_level", "assessment_type", "version")


_REQUIREMENT_GATES = {3: _data_protection_gate, 11: _security_testing_gate}

_REQUIREMENT_PHASES = tuple(
    TaskPhase(
        requirement_step(number),
        tasks.REQUIREMENT_TASKS[number],
        _requirement_args(number),
        gate=_REQUIREMENT_GATES.get(number),
        announce=f"Phase {number + 2}: Assessing Requirement {number} - {tasks.REQUIREMENT_NAMES[number]}",
    )
    for number in REQUIREMENT_NUMBERS
)

DEFINITION = ProcessDefinition(
    process_id=PROCESS_ID,
    title="PCI DSS Compliance Assessment",
    description="Assessment of all twelve PCI DSS requirements with attestation deliverables.",
    inputs_model=PciDssInputs,
    required=("project_name",),
    steps=(
        TaskPhase(
            "cde_scope",
            tasks.IDENTIFY_CDE_SCOPE,
            lambda v: pick(
                v.inputs,
                "project_name",
                "cde_scope",
                "network_segmentation",
                "environment",
                "output_dir",
            ),
            gate=_cde_scope_gate,
            announce="Phase 1: Identifying and validating Cardholder Data Environment (CDE) scope",
        ),
        TaskPhase(
            "segmentation",
            tasks.VALIDATE_NETWORK_SEGMENTATION,
            lambda v: {
                **pick(v.inputs, "project_name", "version", "output_dir"),
                "cdeAssets": v.result("cde_scope").cde_assets,
                "connectedAssets": v.result("cde_scope").connected_assets,
            },
            when=lambda v: v.inputs.network_segmentation,
            gate=_segmentation_gate,
            announce="Phase 2: Validating network segmentation controls",
        ),
        *_REQUIREMENT_PHASES,
        TaskPhase(
            "asv_scan",
            tasks.EXECUTE_ASV_SCAN,
            lambda v: {
                **pick(v.inputs, "project_name", "merchant_level", "quarterly_scans", "output_dir"),
                "cdeAssets": v.result("cde_scope").cde_assets,
            },
            when=lambda v: v.inputs.asv_scan,
            gate=_asv_gate,
            announce="Phase 15: Executing ASV Quarterly Vulnerability Scan",
        ),
        TaskPhase(
            "penetration_test",
            tasks.EXECUTE_PENETRATION_TEST,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "merchant_level",
                    "network_segmentation",
                    "output_dir",
                ),
                "cdeAssets": v.result("cde_scope").cde_assets,
                "connectedAssets": v.result("cde_scope").connected_assets,
            },
            when=lambda v: v.inputs.penetration_test,
            gate=_pen_test_gate,
            announce="Phase 16: Executing Annual Penetration Testing",
        ),
        TaskPhase(
            "scoring",
            tasks.CALCULATE_COMPLIANCE_SCORE,
            lambda v: {
                **pick(v.inputs, "project_name", "merchant_level", "assessment_type", "version", "output_dir"),
                "requirementResults": _requirement_results(v),
                "asvScanResult": v.result("asv_scan"),
                "penetrationTestResult": v.result("penetration_test"),
            },
            announce="Phase 17: Calculating overall PCI DSS compliance score",
        ),
        TaskPhase(
            "gap_analysis",
            tasks.PERFORM_GAP_ANALYSIS,
            lambda v: {
                **pick(v.inputs, "project_name", "merchant_level", "automated_remediation", "output_dir"),
                "gaps": _gaps(v),
                "requirementResults": _requirement_results(v),
                "complianceScore": v.result("scoring").compliance_score,
            },
            gate=_gap_analysis_gate,
            announce="Phase 18: Performing gap analysis and generating remediation plan",
        ),
        TaskPhase(
            "aoc",
            tasks.GENERATE_AOC,
            lambda v: {
                **pick(v.inputs, "project_name", "merchant_level", "assessment_type", "version", "output_dir"),
                "requirementResults": _requirement_results(v),
                "complianceScore": v.result("scoring").compliance_score,
                "asvScanResult": v.result("asv_scan"),
                "penetrationTestResult": v.result("penetration_test"),
                "gaps": _gaps(v),
            },
            when=lambda v: v.inputs.generate_aoc,
            announce="Phase 19: Generating Attestation of Compliance (AOC)",
        ),
        TaskPhase(
            "roc",
            tasks.GENERATE_ROC,
            lambda v: {
                **pick(v.inputs, "project_name", "merchant_level", "version", "output_dir"),
                "requirementResults": _requirement_results(v),
                "complianceScore": v.result("scoring").compliance_score,
                "cdeScopeResult": v.result("cde_scope"),
                "asvScanResult": v.result("asv_scan"),
                "penetrationTestResult": v.result("penetration_test"),
                "gaps": _gaps(v),
            },
            when=lambda v: v.inputs.generate_roc and v.inputs.merchant_level == "level-1",
            announce="Phase 20: Generating Report on Compliance (ROC) for Level 1 Merchant",
        ),
        TaskPhase(
            "documentation",
            tasks.GENERATE_PCI_DOCUMENTATION,
            lambda v: {
                **pick(v.inputs, "project_name", "merchant_level", "assessment_type", "version", "output_dir"),
                "complianceScore": v.result("scoring").compliance_score,
                "requirementResults": _requirement_results(v),
                "cdeScopeResult": v.result("cde_scope"),
                "asvScanResult": v.result("asv_scan"),
                "penetrationTestResult": v.result("penetration_test"),
                "gaps": _gaps(v),
                "gapAnalysisResult": v.result("gap_analysis"),
                "aocResult": v.result("aoc"),
                "rocResult": v.result("roc"),
            },
            announce="Phase 21: Generating executive summary and compliance documentation",
        ),
        Gate("final_review", _final_gate),
    ),
    finalize=_finalize,
    metadata=_metadata,
    labels=("pci-dss", "compliance", "payment-security"),
)
