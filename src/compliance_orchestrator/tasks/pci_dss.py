"""Task catalogue for PCI DSS compliance assessment."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from compliance_orchestrator.tasks.base import CheckedOutput, ResultItem, TaskOutput, define_task


class CdeAsset(ResultItem):
    id: str = ""
    name: str = ""
    type: str = ""
    function: str = ""
    handles_chd: bool | None = None
    handles_sad: bool | None = None


class CdeScope(CheckedOutput):
    cde_assets: list[CdeAsset]
    connected_assets: list[dict[str, Any]]
    out_of_scope_assets: list[dict[str, Any]]
    data_flows: list[dict[str, Any]] = Field(default_factory=list)
    segmentation_effective: bool | None = None
    scope_reduction_opportunities: list[str] = Field(default_factory=list)
    asset_breakdown: dict[str, int] = Field(default_factory=dict)


class SegmentationIssue(ResultItem):
    severity: str = ""
    description: str = ""
    impact: str = ""


class SegmentationValidation(CheckedOutput):
    effective: bool
    segmentation_score: float = Field(ge=0, le=100)
    issues: list[SegmentationIssue]
    firewall_rules_reviewed: int | None = None
    isolation_validated: bool | None = None
    recommendations: list[str] = Field(default_factory=list)


class SubRequirement(ResultItem):
    id: str = ""
    description: str = ""
    compliant: bool | None = None
    evidence: list[str] = Field(default_factory=list)


class RequirementGap(ResultItem):
    requirement: str = ""
    description: str = ""
    severity: str = ""
    remediation: str = ""


class RequirementAssessment(CheckedOutput):
    compliant: bool
    score: float = Field(ge=0, le=100)
    gaps: list[RequirementGap]
    requirement: int | None = None
    name: str | None = None
    sub_requirements: list[SubRequirement] = Field(default_factory=list)


class DataProtectionAssessment(RequirementAssessment):
    encryption_validated: bool
    key_management_validated: bool
    data_retention_compliant: bool | None = None


class SecurityTestingAssessment(RequirementAssessment):
    asv_scan_compliant: bool
    penetration_test_compliant: bool
    asv_scan_date: str | None = None
    penetration_test_date: str | None = None
    vulnerabilities_found: int | None = None


class AsvVulnerability(ResultItem):
    cve: str = ""
    cvss: float | None = None
    description: str = ""
    affected_system: str = ""


class AsvScan(CheckedOutput):
    passed: bool
    vulnerabilities_found: int = Field(ge=0)
    scan_date: str
    critical_vulnerabilities: int | None = None
    next_scan_due: str | None = None
    scanner_name: str | None = None
    scanned_ips: list[str] = Field(default_factory=list)
    top_vulnerabilities: list[AsvVulnerability] = Field(default_factory=list)


class PenTestFinding(ResultItem):
    title: str = ""
    severity: str = ""
    description: str = ""
    exploitability: str = ""
    remediation: str = ""


class PenetrationTest(CheckedOutput):
    issues_found: int = Field(ge=0)
    critical_issues: int = Field(ge=0)
    test_date: str
    high_issues: int | None = None
    medium_issues: int | None = None
    low_issues: int | None = None
    next_test_due: str | None = None
    segmentation_validated: bool | None = None
    segmentation_effective: bool | None = None
    critical_findings: list[PenTestFinding] = Field(default_factory=list)


class ComplianceScoring(TaskOutput):
    compliance_score: float = Field(ge=0, le=100)
    overall_compliant: bool
    readiness: Literal[
        "ready-for-certification",
        "near-compliance",
        "significant-work-needed",
        "major-gaps",
    ]
    critical_requirements: list[int]
    compliant_requirements: int | None = None
    security_testing_compliant: bool | None = None
    certification_recommendation: str | None = None


class RemediationItem(ResultItem):
    id: str = ""
    requirement: str = ""
    description: str = ""
    priority: str = ""
    effort: str = ""
    phase: str = ""


class GapAnalysis(CheckedOutput):
    critical_gaps: int = Field(ge=0)
    remediation_items: list[RemediationItem]
    estimated_effort: str
    remediation_plan_path: str
    total_gaps: int | None = None
    high_gaps: int | None = None
    medium_gaps: int | None = None
    low_gaps: int | None = None
    auto_remediable_gaps: int | None = None
    remediation_priorities: dict[str, list[str]] = Field(default_factory=dict)
    quick_wins: list[str] = Field(default_factory=list)


class AttestationOfCompliance(CheckedOutput):
    aoc_path: str
    compliant_status: Literal["compliant", "non-compliant", "in-progress"]
    attestation_date: str | None = None
    compliance_summary: dict[str, bool] = Field(default_factory=dict)


class ReportOnCompliance(CheckedOutput):
    roc_path: str
    page_count: int = Field(ge=0)
    assessment_date: str | None = None
    next_assessment_due: str | None = None
    evidence_count: int | None = None


class PciDocumentation(CheckedOutput):
    report_path: str
    executive_summary: str
    executive_summary_path: str | None = None
    key_findings: list[str] = Field(default_factory=list)
    critical_gaps: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)


IDENTIFY_CDE_SCOPE = define_task(
    "identify-cde-scope",
    CdeScope,
    title="Phase 1: Identify Cardholder Data Environment (CDE) Scope - {projectName}",
    role="PCI DSS Scoping Specialist",
    task="Identify and validate the Cardholder Data Environment (CDE) scope",
    instructions=[
        "Identify systems that store, process or transmit cardholder data or provide security services to the CDE",
        "Categorize assets as CDE in-scope, connected-to-CDE, or out-of-scope",
        "Document how cardholder data enters, is stored, processed, transmitted and deleted",
        "Identify scope reduction opportunities (tokenization, P2PE, hosted payment pages)",
        "Assess whether network segmentation is effective when it is in place",
        "Produce a CDE inventory and data flow diagrams",
    ],
    labels=["agent", "pci-dss", "cde-scoping"],
)

VALIDATE_NETWORK_SEGMENTATION = define_task(
    "validate-network-segmentation",
    SegmentationValidation,
    title="Phase 2: Validate Network Segmentation - {projectName}",
    role="Network Security Architect",
    task="Validate network segmentation controls separating CDE from other networks",
    instructions=[
        "Review firewall placement, VLAN separation and router ACLs",
        "Validate default-deny firewall rules with justified allow rules in both directions",
        "Test that non-CDE and connected systems cannot reach CDE resources",
        "Review wireless, remote access and cloud security group controls",
        "Document segmentation weaknesses and calculate an effectiveness score",
    ],
    labels=["agent", "pci-dss", "network-segmentation"],
)

_REQUIREMENTS: tuple[tuple[int, str, str, type[RequirementAssessment], tuple[str, ...]], ...] = (
    (
        1,
        "Install and Maintain Network Security Controls",
        "PCI DSS Network Security Assessor",
        RequirementAssessment,
        (
            "Review network security control configuration standards and change control",
            "Verify inbound and outbound traffic to the CDE is restricted to what is necessary",
            "Verify controls between trusted and untrusted networks",
        ),
    ),
    (
        2,
        "Apply Secure Configurations",
        "PCI DSS Configuration Assessor",
        RequirementAssessment,
        (
            "Verify vendor defaults are changed and unnecessary services disabled",
            "Verify configuration standards exist for all system component types",
            "Verify non-console administrative access is encrypted",
        ),
    ),
    (
        3,
        "Protect Stored Cardholder Data",
        "PCI DSS Data Protection Specialist",
        DataProtectionAssessment,
        (
            "Verify sensitive authentication data is not stored after authorization",
            "Verify PAN is masked when displayed and unreadable wherever stored",
            "Validate cryptographic key management procedures",
            "Verify data retention and disposal limits storage to business need",
        ),
    ),
    (
        4,
        "Protect Cardholder Data in Transit",
        "PCI DSS Encryption Specialist",
        RequirementAssessment,
        (
            "Verify strong cryptography protects PAN over open public networks",
            "Verify certificates are valid and inventoried",
            "Verify PAN is never sent over end-user messaging unprotected",
        ),
    ),
    (
        5,
        "Protect All Systems and Networks from Malicious Software",
        "PCI DSS Anti-Malware Assessor",
        RequirementAssessment,
        (
            "Verify anti-malware is deployed, current and cannot be disabled by users",
            "Verify periodic scans and anti-phishing mechanisms",
        ),
    ),
    (
        6,
        "Develop and Maintain Secure Systems and Software",
        "PCI DSS Secure Development Assessor",
        RequirementAssessment,
        (
            "Verify secure development practices and code review",
            "Verify vulnerabilities are identified, ranked and patched on time",
            "Verify public-facing web applications are protected against attacks",
            "Verify change management for system components",
        ),
    ),
    (
        7,
        "Restrict Access to System Components and Cardholder Data",
        "PCI DSS Access Control Assessor",
        RequirementAssessment,
        (
            "Verify access is granted on least privilege and business need to know",
            "Verify access control systems default to deny",
            "Verify periodic review of user accounts and privileges",
        ),
    ),
    (
        8,
        "Identify Users and Authenticate Access",
        "PCI DSS Authentication Assessor",
        RequirementAssessment,
        (
            "Verify unique user IDs and management of shared accounts",
            "Verify strong authentication factors and password policies",
            "Verify MFA for all access into the CDE",
        ),
    ),
    (
        9,
        "Restrict Physical Access",
        "PCI DSS Physical Security Assessor",
        RequirementAssessment,
        (
            "Verify physical entry controls for facilities with CDE systems",
            "Verify media handling, storage and destruction",
            "Verify POI devices are protected from tampering",
        ),
    ),
    (
        10,
        "Log and Monitor All Access",
        "PCI DSS Logging Assessor",
        RequirementAssessment,
        (
            "Verify audit logs capture access to cardholder data and admin actions",
            "Verify logs are protected, reviewed daily and retained for twelve months",
            "Verify time synchronization and failure detection of security controls",
        ),
    ),
    (
        11,
        "Test Security of Systems and Networks",
        "PCI DSS Security Testing Assessor",
        SecurityTestingAssessment,
        (
            "Verify quarterly internal and external (ASV) vulnerability scans",
            "Verify annual penetration testing including segmentation testing",
            "Verify wireless access point detection, IDS/IPS and change detection",
        ),
    ),
    (
        12,
        "Support Information Security with Organizational Policies",
        "PCI DSS Governance Assessor",
        RequirementAssessment,
        (
            "Verify the information security policy is maintained and communicated",
            "Verify risk assessments, security awareness and third-party management",
            "Verify incident response plan and PCI DSS scope confirmation",
        ),
    ),
)

REQUIREMENT_TASKS = {
    number: define_task(
        f"assess-requirement-{number}",
        model,
        title=f"Assess Requirement {number}: {name} - {{projectName}}",
        role=role,
        task=f"Assess PCI DSS Requirement {number}: {name}",
        instructions=[
            *checks,
            "Record each sub-requirement with evidence and compliance status",
            "List gaps with severity and remediation, then score the requirement from 0 to 100",
        ],
        labels=["agent", "pci-dss", f"requirement-{number}"],
    )
    for number, name, role, model, checks in _REQUIREMENTS
}

REQUIREMENT_NAMES = {number: name for number, name, *_ in _REQUIREMENTS}

EXECUTE_ASV_SCAN = define_task(
    "execute-asv-scan",
    AsvScan,
    title="Execute ASV Quarterly Vulnerability Scan - {projectName}",
    role="PCI SSC Approved Scanning Vendor coordinator",
    task="Run the quarterly external vulnerability scan against internet-facing CDE systems",
    instructions=[
        "Scan all external IPs and domains in scope",
        "Treat any CVSS 4.0 or higher vulnerability as a failing result",
        "Document disputes and compensating controls",
        "Record the scan date, next due date and scanner name",
    ],
    labels=["agent", "pci-dss", "asv-scan"],
)

EXECUTE_PENETRATION_TEST = define_task(
    "execute-penetration-test",
    PenetrationTest,
    title="Execute Annual Penetration Test - {projectName}",
    role="PCI DSS Qualified Penetration Tester",
    task="Perform network and application layer penetration testing of the CDE",
    instructions=[
        "Test the CDE perimeter and critical systems from inside and outside",
        "Validate segmentation controls when segmentation reduces scope",
        "Exploit findings where safe to demonstrate impact",
        "Report issues by severity with remediation guidance",
    ],
    labels=["agent", "pci-dss", "penetration-test"],
)

CALCULATE_COMPLIANCE_SCORE = define_task(
    "calculate-compliance-score",
    ComplianceScoring,
    title="Calculate Overall PCI DSS Compliance Score - {projectName}",
    role="PCI DSS Qualified Security Assessor",
    task="Calculate the overall compliance score from all requirement assessments",
    instructions=[
        "Weight requirement scores, giving data protection and security testing extra weight",
        "Factor ASV and penetration test results into the score",
        "Identify requirements with critical gaps",
        "Classify readiness and give a certification recommendation",
    ],
    labels=["agent", "pci-dss", "compliance-scoring"],
)

PERFORM_GAP_ANALYSIS = define_task(
    "perform-gap-analysis",
    GapAnalysis,
    title="Perform Gap Analysis and Generate Remediation Plan - {projectName}",
    role="PCI DSS Remediation Planning Specialist",
    task="Perform comprehensive gap analysis and create prioritized remediation plan",
    instructions=[
        "Categorize gaps by requirement and severity and note dependencies",
        "Prioritize data protection and security testing failures",
        "Phase remediation into 0-30, 30-60, 60-90 and 90+ day windows",
        "Identify quick wins and auto-remediable gaps when automated remediation is enabled",
        "Estimate total effort and write the remediation tracking workbook",
    ],
    labels=["agent", "pci-dss", "gap-analysis"],
)

GENERATE_AOC = define_task(
    "generate-aoc",
    AttestationOfCompliance,
    title="Generate Attestation of Compliance (AOC) - {projectName}",
    role="PCI DSS Compliance Documentation Specialist",
    task="Generate the Attestation of Compliance for the assessment type and merchant level",
    instructions=[
        "Use the AOC template matching the assessment type",
        "Summarize compliance per requirement",
        "Record compliant, non-compliant or in-progress status with the attestation date",
    ],
    labels=["agent", "pci-dss", "aoc"],
)

GENERATE_ROC = define_task(
    "generate-roc",
    ReportOnCompliance,
    title="Generate Report on Compliance (ROC) - {projectName}",
    role="PCI DSS Qualified Security Assessor",
    task="Generate the Report on Compliance for a Level 1 merchant",
    instructions=[
        "Follow the ROC reporting template for the PCI DSS version",
        "Document scope, testing procedures and evidence for every requirement",
        "Include ASV and penetration test summaries",
        "Record page count, evidence count and the next assessment due date",
    ],
    labels=["agent", "pci-dss", "roc"],
)

GENERATE_PCI_DOCUMENTATION = define_task(
    "generate-pci-documentation",
    PciDocumentation,
    title="Generate PCI DSS Compliance Documentation - {projectName}",
    role="PCI DSS Compliance Reporting Specialist",
    task="Generate the compliance report and executive summary",
    instructions=[
        "Write an executive summary with score, readiness and critical gaps",
        "Summarize every requirement with its score and gaps",
        "Reference the AOC, ROC and remediation plan where they exist",
        "List key findings, recommendations and next steps",
    ],
    labels=["agent", "pci-dss", "documentation"],
)

TASKS = (
    IDENTIFY_CDE_SCOPE,
    VALIDATE_NETWORK_SEGMENTATION,
    *REQUIREMENT_TASKS.values(),
    EXECUTE_ASV_SCAN,
    EXECUTE_PENETRATION_TEST,
    CALCULATE_COMPLIANCE_SCORE,
    PERFORM_GAP_ANALYSIS,
    GENERATE_AOC,
    GENERATE_ROC,
    GENERATE_PCI_DOCUMENTATION,
)
