"""Dynamic application security testing workflow.

Assess the target, configure the scanner, scope and authenticate, then run
passive, active and API scans. Findings are validated, mapped to compliance
standards and reported; continuous scanning is optional.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from compliance_orchestrator.executor.base import GateRequest
from compliance_orchestrator.graph.phases import Gate, PhaseView, ProcessDefinition, TaskPhase, files
from compliance_orchestrator.processes.base import ProcessInputs, count, pick
from compliance_orchestrator.tasks import dast as tasks

PROCESS_ID = "security-compliance/dast-process"
PASSING_SECURITY_SCORE = 70


class DastInputs(ProcessInputs):
    application_url: str | None = None
    tool_choice: str = "owasp-zap"
    authentication_type: str = "form-based"
    scan_scope: dict[str, Any] = Field(default_factory=dict)
    compliance_standards: list[str] = Field(
        default_factory=lambda: ["OWASP-Top-10", "PCI-DSS", "CWE-Top-25"]
    )
    severity_threshold: str = "medium"
    credentials: dict[str, Any] = Field(default_factory=dict)
    scan_types: list[str] = Field(default_factory=lambda: ["passive", "active", "api"])
    max_scan_duration: str = "4 hours"
    report_formats: list[str] = Field(default_factory=lambda: ["html", "json", "pdf"])
    false_positive_handling: bool = True
    continuous_scanning_enabled: bool = False
    output_dir: str = "dast-output"


def _checkpoint(view: PhaseView, title: str, message: str, **summary: Any) -> GateRequest:
    return GateRequest.checkpoint(title, message, summary=summary, files=files(view.artifacts))


def _environment_gate(view: PhaseView) -> GateRequest:
    env = view.result("environment")
    return _checkpoint(
        view,
        "Phase 1: Environment Assessment Complete",
        f"Target application assessed. Technology stack: {', '.join(env.tech_stack)}. "
        f"Entry points identified: {env.entry_points_count}.",
        applicationUrl=view.inputs.application_url,
        techStack=env.tech_stack,
        entryPointsCount=env.entry_points_count,
        authRequired=env.auth_required,
    )


def _tool_setup_gate(view: PhaseView) -> GateRequest:
    setup = view.result("tool_setup")
    return _checkpoint(
        view,
        "Phase 2: DAST Tool Configuration Complete",
        f"{' and '.join(setup.tools_configured)} configured. "
        f"Proxy setup: {'Active' if setup.proxy_configured else 'N/A'}. "
        f"Authentication handler: {'Ready' if setup.auth_configured else 'Pending'}.",
        toolsConfigured=setup.tools_configured,
        proxyConfigured=setup.proxy_configured,
        authConfigured=setup.auth_configured,
    )


def _scope_gate(view: PhaseView) -> GateRequest:
    scope = view.result("scope")
    return GateRequest(
        kind="checkpoint",
        title="Phase 3: Scan Scope Approval",
        question=(
            f"Scan scope defined: {len(scope.urls_in_scope)} URLs in scope, "
            f"{len(scope.urls_excluded)} excluded. Estimated scan time: "
            f"{scope.estimated_duration}. Approve scope before proceeding?"
        ),
        context={
            "summary": {
                "urlsInScope": len(scope.urls_in_scope),
                "urlsExcluded": len(scope.urls_excluded),
                "estimatedDuration": scope.estimated_duration,
                "riskLevel": scope.risk_level,
            },
            "files": files(view.artifacts),
        },
    )


def _auth_gate(view: PhaseView) -> GateRequest:
    auth = view.result("auth_setup")
    return _checkpoint(
        view,
        "Phase 4: Authentication Setup Complete",
        f"Authentication configured for {view.inputs.authentication_type}. "
        f"Session management: {'Active' if auth.session_management_active else 'Manual'}. "
        f"Auth verification: {'Success' if auth.auth_verified else 'Needs Review'}.",
        authenticationType=view.inputs.authentication_type,
        authVerified=auth.auth_verified,
        sessionManagementActive=auth.session_management_active,
        authLevelsConfigured=auth.auth_levels_configured,
    )


def _passive_gate(view: PhaseView) -> GateRequest:
    scan = view.result("passive_scan")
    return _checkpoint(
        view,
        "Phase 5: Passive Scan Complete",
        f"Application spidered: {scan.urls_discovered} URLs discovered, "
        f"{scan.passive_issues_found} passive vulnerabilities identified. "
        f"Coverage: {scan.coverage_percent}%.",
        urlsDiscovered=scan.urls_discovered,
        passiveIssuesFound=scan.passive_issues_found,
        coveragePercent=scan.coverage_percent,
        spiderDepth=scan.spider_depth,
    )


def _active_gate(view: PhaseView) -> GateRequest:
    scan = view.result("active_scan")
    return _checkpoint(
        view,
        "Phase 6: Active Scan Complete",
        f"Active scan completed: {scan.vulnerabilities_found} vulnerabilities found "
        f"({scan.critical_count} critical, {scan.high_count} high, {scan.medium_count} medium).",
        vulnerabilitiesFound=scan.vulnerabilities_found,
        criticalCount=scan.critical_count,
        highCount=scan.high_count,
        mediumCount=scan.medium_count,
        lowCount=scan.low_count,
        scanProgress=scan.scan_progress,
    )


def _api_gate(view: PhaseView) -> GateRequest:
    scan = view.result("api_scan")
    return _checkpoint(
        view,
        "Phase 7: API Security Testing Complete",
        f"API endpoints tested: {scan.endpoints_tested}. API-specific vulnerabilities: "
        f"{scan.api_vulnerabilities_found}. OWASP API Top 10 coverage: {scan.api_top10_coverage}%.",
        endpointsTested=scan.endpoints_tested,
        apiVulnerabilitiesFound=scan.api_vulnerabilities_found,
        apiTop10Coverage=scan.api_top10_coverage,
        authIssues=scan.auth_issues,
    )


def _validation_gate(view: PhaseView) -> GateRequest:
    validation = view.result("validation")
    return _checkpoint(
        view,
        "Phase 8: Vulnerability Validation Complete",
        f"Validation complete: {validation.confirmed_vulnerabilities} confirmed vulnerabilities, "
        f"{validation.false_positives} false positives identified. "
        f"Validation accuracy: {validation.validation_accuracy}%.",
        confirmedVulnerabilities=validation.confirmed_vulnerabilities,
        falsePositives=validation.false_positives,
        requiresManualReview=validation.requires_manual_review,
        validationAccuracy=validation.validation_accuracy,
    )


def _compliance_gate(view: PhaseView) -> GateRequest:
    mapping = view.result("compliance")
    return _checkpoint(
        view,
        "Phase 9: Compliance Mapping Complete",
        f"Compliance assessment: OWASP Top 10 score: {mapping.owasp_score}/100, "
        f"PCI-DSS compliance: {'Pass' if mapping.pci_dss_compliant else 'Fail'}, "
        f"CWE coverage: {mapping.cwe_matches} CWEs matched.",
        owaspScore=mapping.owasp_score,
        pciDssCompliant=mapping.pci_dss_compliant,
        cweMatches=mapping.cwe_matches,
        standardsCovered=mapping.standards_covered,
    )


def _reporting_gate(view: PhaseView) -> GateRequest:
    reporting = view.result("reporting")
    return _checkpoint(
        view,
        "Phase 10: Reports Generated",
        f"Reports generated in {', '.join(reporting.formats_generated)} formats. "
        f"Executive summary: {'Created' if reporting.executive_summary_generated else 'Pending'}. "
        f"Remediation guidance: {reporting.remediation_items} items.",
        formatsGenerated=reporting.formats_generated,
        executiveSummaryGenerated=reporting.executive_summary_generated,
        remediationItems=reporting.remediation_items,
        reportLinks=reporting.report_links,
    )


def _continuous_gate(view: PhaseView) -> GateRequest:
    continuous = view.result("continuous_scanning")
    return _checkpoint(
        view,
        "Phase 11: Continuous Scanning Setup Complete",
        f"Continuous scanning configured: Schedule: {continuous.scan_schedule}, "
        f"CI/CD integration: {'Active' if continuous.cicd_integrated else 'Manual'}.",
        scanSchedule=continuous.scan_schedule,
        cicdIntegrated=continuous.cicd_integrated,
        automatedRemediation=continuous.automated_remediation,
    )


def _scores(view: PhaseView) -> tuple[int, int, float, bool]:
    total = view.result("validation").confirmed_vulnerabilities
    critical = view.result("active_scan").critical_count + view.result("api_scan").critical_count
    score = view.result("compliance").overall_security_score or 0
    return total, critical, score, critical == 0 and score >= PASSING_SECURITY_SCORE


def _final_gate(view: PhaseView) -> GateRequest:
    total, critical, score, success = _scores(view)
    verdict = (
        "Application meets security baseline!"
        if success
        else "Remediation required before production deployment."
    )
    reporting = view.result("reporting")
    return GateRequest.breakpoint(
        "DAST Process Complete - Review Required",
        f"DAST scan complete! Found {total} confirmed vulnerabilities ({critical} critical). "
        f"Security score: {score}/100. {verdict} Review findings and proceed?",
        summary={
            "success": success,
            "totalVulnerabilities": total,
            "criticalIssues": critical,
            "securityScore": score,
            "complianceStatus": view.result("compliance").compliance_status,
            "topFindings": reporting.top_findings,
            "reportPaths": reporting.report_links,
        },
        files=files(view.artifacts),
    )


def _finalize(view: PhaseView) -> dict[str, Any]:
    total, critical, score, success = _scores(view)
    passive = view.result("passive_scan")
    active = view.result("active_scan")
    api = view.result("api_scan")
    validation = view.result("validation")
    mapping = view.result("compliance")
    reporting = view.result("reporting")
    continuous = view.result("continuous_scanning")
    return {
        "success": success,
        "vulnerabilitiesFound": total,
        "criticalIssues": critical,
        "securityScore": score,
        "complianceStatus": mapping.compliance_status,
        "scanResults": {
            "passive": {
                "urlsDiscovered": passive.urls_discovered,
                "issuesFound": passive.passive_issues_found,
                "coverage": passive.coverage_percent,
            },
            "active": {
                "vulnerabilities": active.vulnerabilities_found,
                "criticalCount": active.critical_count,
                "highCount": active.high_count,
                "mediumCount": active.medium_count,
                "lowCount": active.low_count,
            },
            "api": {
                "endpointsTested": api.endpoints_tested,
                "vulnerabilities": api.api_vulnerabilities_found,
                "owaspApiTop10Coverage": api.api_top10_coverage,
            },
        },
        "validation": {
            "confirmedVulnerabilities": validation.confirmed_vulnerabilities,
            "falsePositives": validation.false_positives,
            "requiresManualReview": validation.requires_manual_review,
            "validationAccuracy": validation.validation_accuracy,
        },
        "compliance": {
            "owaspScore": mapping.owasp_score,
            "pciDssCompliant": mapping.pci_dss_compliant,
            "cweMatches": mapping.cwe_matches,
            "standardsCovered": mapping.standards_covered,
        },
        "reports": {
            "formatsGenerated": reporting.formats_generated,
            "reportLinks": reporting.report_links,
            "remediationItems": reporting.remediation_items,
            "executiveSummary": reporting.executive_summary_path,
            "topFindings": count(reporting.top_findings),
        },
        "continuousScanning": (
            {
                "enabled": True,
                "schedule": continuous.scan_schedule,
                "cicdIntegrated": continuous.cicd_integrated,
            }
            if continuous is not None
            else {"enabled": False}
        ),
    }


def _metadata(inputs: DastInputs) -> dict[str, Any]:
    return pick(
        inputs,
        "application_url",
        "tool_choice",
        "authentication_type",
        "scan_types",
        "compliance_standards",
        "output_dir",
    )


DEFINITION = ProcessDefinition(
    process_id=PROCESS_ID,
    title="Dynamic Application Security Testing",
    description="Black-box scanning of a running web application and its APIs.",
    inputs_model=DastInputs,
    required=("application_url",),
    steps=(
        TaskPhase(
            "environment",
            tasks.ASSESS_ENVIRONMENT,
            lambda v: pick(
                v.inputs,
                "application_url",
                "tool_choice",
                "authentication_type",
                "scan_scope",
                "output_dir",
            ),
            gate=_environment_gate,
            announce="Phase 1: Assessing target application and environment",
        ),
        TaskPhase(
            "tool_setup",
            tasks.SETUP_DAST_TOOLS,
            lambda v: {
                **pick(
                    v.inputs,
                    "tool_choice",
                    "application_url",
                    "authentication_type",
                    "credentials",
                    "output_dir",
                ),
                "environmentAssessment": v.result("environment"),
            },
            gate=_tool_setup_gate,
            announce="Phase 2: Setting up and configuring DAST tools",
        ),
        TaskPhase(
            "scope",
            tasks.DEFINE_SCAN_SCOPE,
            lambda v: {
                **pick(v.inputs, "application_url", "scan_scope", "output_dir"),
                "environmentAssessment": v.result("environment"),
                "toolSetup": v.result("tool_setup"),
            },
            gate=_scope_gate,
            announce="Phase 3: Defining scan scope and boundaries",
        ),
        TaskPhase(
            "auth_setup",
            tasks.SETUP_AUTHENTICATED_SCANNING,
            lambda v: {
                **pick(
                    v.inputs,
                    "authentication_type",
                    "credentials",
                    "application_url",
                    "output_dir",
                ),
                "toolSetup": v.result("tool_setup"),
                "environmentAssessment": v.result("environment"),
            },
            gate=_auth_gate,
            announce="Phase 4: Configuring authenticated scanning",
        ),
        TaskPhase(
            "passive_scan",
            tasks.PASSIVE_SCAN_SPIDER,
            lambda v: {
                **pick(v.inputs, "application_url", "max_scan_duration", "output_dir"),
                "scopeDefinition": v.result("scope"),
                "authSetup": v.result("auth_setup"),
                "toolSetup": v.result("tool_setup"),
            },
            gate=_passive_gate,
            announce="Phase 5: Executing passive scan and application spidering",
        ),
        TaskPhase(
            "active_scan",
            tasks.ACTIVE_SCAN,
            lambda v: {
                **pick(
                    v.inputs,
                    "application_url",
                    "scan_types",
                    "compliance_standards",
                    "max_scan_duration",
                    "output_dir",
                ),
                "scopeDefinition": v.result("scope"),
                "passiveScan": v.result("passive_scan"),
                "authSetup": v.result("auth_setup"),
                "toolSetup": v.result("tool_setup"),
            },
            gate=_active_gate,
            announce="Phase 6: Executing active security scan with attack payloads",
        ),
        TaskPhase(
            "api_scan",
            tasks.API_SECURITY_TESTING,
            lambda v: {
                **pick(v.inputs, "application_url", "output_dir"),
                "environmentAssessment": v.result("environment"),
                "scopeDefinition": v.result("scope"),
                "authSetup": v.result("auth_setup"),
                "toolSetup": v.result("tool_setup"),
                "passiveScan": v.result("passive_scan"),
            },
            gate=_api_gate,
            announce="Phase 7: Performing API-specific security testing",
        ),
        TaskPhase(
            "validation",
            tasks.VALIDATE_VULNERABILITIES,
            lambda v: {
                **pick(
                    v.inputs,
                    "severity_threshold",
                    "false_positive_handling",
                    "compliance_standards",
                    "output_dir",
                ),
                "passiveScan": v.result("passive_scan"),
                "activeScan": v.result("active_scan"),
                "apiScan": v.result("api_scan"),
            },
            gate=_validation_gate,
            announce="Phase 8: Validating vulnerabilities and filtering false positives",
        ),
        TaskPhase(
            "compliance",
            tasks.MAP_COMPLIANCE,
            lambda v: {
                **pick(v.inputs, "compliance_standards", "output_dir"),
                "vulnerabilityValidation": v.result("validation"),
                "environmentAssessment": v.result("environment"),
            },
            gate=_compliance_gate,
            announce="Phase 9: Mapping findings to compliance standards",
        ),
        TaskPhase(
            "reporting",
            tasks.GENERATE_REPORTS,
            lambda v: {
                **pick(
                    v.inputs,
                    "report_formats",
                    "severity_threshold",
                    "compliance_standards",
                    "output_dir",
                ),
                "environmentAssessment": v.result("environment"),
                "scopeDefinition": v.result("scope"),
                "passiveScan": v.result("passive_scan"),
                "activeScan": v.result("active_scan"),
                "apiScan": v.result("api_scan"),
                "vulnerabilityValidation": v.result("validation"),
                "complianceMapping": v.result("compliance"),
            },
            gate=_reporting_gate,
            announce="Phase 10: Generating reports and remediation guidance",
        ),
        TaskPhase(
            "continuous_scanning",
            tasks.SETUP_CONTINUOUS_SCANNING,
            lambda v: {
                **pick(
                    v.inputs,
                    "application_url",
                    "scan_types",
                    "compliance_standards",
                    "output_dir",
                ),
                "toolSetup": v.result("tool_setup"),
                "scopeDefinition": v.result("scope"),
                "authSetup": v.result("auth_setup"),
            },
            when=lambda v: v.inputs.continuous_scanning_enabled,
            gate=_continuous_gate,
            announce="Phase 11: Configuring continuous DAST scanning",
        ),
        Gate("final_review", _final_gate),
    ),
    finalize=_finalize,
    metadata=_metadata,
    labels=("dast", "security", "testing"),
)
