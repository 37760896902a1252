"""Task catalogue for software composition analysis and dependency management."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from compliance_orchestrator.tasks.base import CheckedOutput, ResultItem, TaskOutput, define_task


class Dependency(ResultItem):
    name: str = ""
    version: str = ""
    package_manager: str | None = None
    type: Literal["direct", "transitive"] | None = None
    scope: Literal["production", "development", "test"] | None = None
    latest_version: str | None = None
    deprecated: bool | None = None


class DependencyInventory(CheckedOutput):
    total_dependencies: int = Field(ge=0)
    direct_dependencies: int = Field(ge=0)
    transitive_dependencies: int = Field(ge=0)
    dependencies: list[Dependency]
    dependency_tree: dict[str, Any] = Field(default_factory=dict)
    outdated: list[Any] = Field(default_factory=list)
    duplicates: list[Any] = Field(default_factory=list)


class Vulnerability(ResultItem):
    id: str = ""
    package: str = ""
    version: str | None = None
    severity: str = "low"
    cvss: float | None = None
    cve: list[str] = Field(default_factory=list)
    cwe: list[str] = Field(default_factory=list)
    description: str | None = None
    fixed_version: str | None = None
    fix_available: bool | None = None
    exploit_available: bool | None = None
    priority_score: float | None = None
    detected_by: list[str] = Field(default_factory=list)


class SeveritySummary(ResultItem):
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    fixable: int | None = None


class VulnerabilityScan(TaskOutput):
    tool: str
    vulnerabilities: list[Vulnerability]
    summary: SeveritySummary
    scan_timestamp: str | None = None


class VulnerabilityAggregation(TaskOutput):
    vulnerabilities: list[Vulnerability]
    summary: SeveritySummary
    report_path: str
    prioritized: list[Any] = Field(default_factory=list)


class SbomPaths(ResultItem):
    json_path: str | None = Field(default=None, alias="json")
    xml: str | None = None
    summary: str | None = None


class Sbom(ResultItem):
    format: str = ""
    component_count: int = 0
    specification: str | None = None
    paths: SbomPaths | None = None
    signed: bool | None = None


class SbomValidation(ResultItem):
    valid: bool = True
    errors: list[Any] = Field(default_factory=list)
    warnings: list[Any] = Field(default_factory=list)


class SbomGeneration(TaskOutput):
    sbom: Sbom
    validation: SbomValidation


class LicenseInventory(ResultItem):
    total_licenses: int = 0
    compliant: int = 0
    by_license: dict[str, Any] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)


class LicenseFinding(ResultItem):
    package: str = ""
    version: str | None = None
    license: str = ""
    policy: str | None = None
    severity: str | None = None
    reason: str | None = None


class LicenseCompliance(TaskOutput):
    licenses: LicenseInventory
    violations: list[LicenseFinding]
    review_required: list[LicenseFinding]
    conflicts: list[Any] = Field(default_factory=list)
    report_path: str | None = None


class SupplyChainRisk(ResultItem):
    type: str = ""
    package: str = ""
    severity: str = ""
    description: str = ""
    mitigation: str | None = None


class SupplyChainAssessment(TaskOutput):
    risk_score: float = Field(ge=0, le=100)
    risks: list[SupplyChainRisk]
    recommendations: list[dict[str, Any]]
    metrics: dict[str, int] = Field(default_factory=dict)


class ConfigFile(ResultItem):
    path: str = ""
    type: str | None = None
    description: str | None = None


class ToolSetup(TaskOutput):
    tool: str
    configured: bool
    config_files: list[ConfigFile]
    documentation: dict[str, str] = Field(default_factory=dict)
    automation_enabled: bool | None = None
    integration: dict[str, Any] = Field(default_factory=dict)


class UpdateRule(ResultItem):
    type: str | None = None
    severity: str | None = None
    version_change: str | None = None
    automation: Literal["auto-merge", "pr-review", "manual"] = "pr-review"
    test_required: bool = True


class UpdateStrategy(TaskOutput):
    update_rules: list[UpdateRule]
    schedule: dict[str, Any]
    automation: dict[str, Any]
    pr_settings: dict[str, Any] = Field(default_factory=dict)


class RemediationAction(ResultItem):
    id: str = ""
    issue: str = ""
    type: str | None = None
    priority: str = "medium"
    approach: str | None = None
    steps: list[str] = Field(default_factory=list)
    automatable: bool = False
    effort: str | None = None
    phase: str | None = None


class RemediationPlanning(TaskOutput):
    actions: list[RemediationAction]
    critical_actions: int = Field(ge=0)
    automatable: int = Field(ge=0)
    estimated_effort: str
    report_path: str
    timeline: dict[str, int] = Field(default_factory=dict)


class CicdIntegration(TaskOutput):
    platforms: list[str]
    configured: bool
    pipeline_files: list[ConfigFile]
    security_gates: dict[str, bool] = Field(default_factory=dict)
    features: dict[str, bool] = Field(default_factory=dict)


class ComplianceVerdict(ResultItem):
    overall: Literal["compliant", "non-compliant", "partial"] = "partial"
    score: float = Field(default=0, ge=0, le=100)
    meets_thresholds: bool = False


class ComplianceReporting(TaskOutput):
    status: ComplianceVerdict
    executive_report_path: str
    technical_report_path: str
    scorecard: dict[str, float] = Field(default_factory=dict)
    standards: dict[str, str] = Field(default_factory=dict)


DEPENDENCY_DISCOVERY = define_task(
    "dependency-discovery",
    DependencyInventory,
    title="Discover and inventory all project dependencies",
    agent_name="dependency-analyzer",
    role="software composition analysis specialist",
    task="Discover and inventory all project dependencies across package managers",
    instructions=[
        "Scan the project for dependency manifests (package.json, pom.xml, requirements.txt, ...)",
        "Parse declarations for each package manager and resolve transitive dependencies",
        "Extract versions and constraints and separate production from dev/test scope",
        "Detect lock files and build the complete dependency tree",
        "Identify outdated, duplicate and deprecated packages",
        "Save the dependency inventory as JSON",
    ],
    labels=["agent", "sca", "dependency-discovery"],
)

VULNERABILITY_SCANNING = define_task(
    "vulnerability-scanning",
    VulnerabilityScan,
    title="Run vulnerability scan with {tool}",
    agent_name="vulnerability-scanner",
    role="security vulnerability analyst",
    task="Scan dependencies for known vulnerabilities using the requested tool",
    instructions=[
        "Configure and run the requested vulnerability scanner",
        "Scan direct and transitive dependencies against CVE databases (NVD, GitHub Advisory, ...)",
        "Record id, package, version, severity, CVSS, CWE and fixed version for each finding",
        "Note exploit availability and whether a fix exists",
        "Prioritize by severity and exploitability",
        "Save scan results in structured format",
    ],
    labels=["agent", "sca", "vulnerability-scanning", "{tool}"],
)

VULNERABILITY_AGGREGATION = define_task(
    "vulnerability-aggregation",
    VulnerabilityAggregation,
    title="Aggregate and deduplicate vulnerabilities from multiple tools",
    agent_name="vulnerability-aggregator",
    role="security data analyst",
    task="Aggregate, deduplicate, and prioritize vulnerabilities from multiple scanning tools",
    instructions=[
        "Deduplicate by CVE id, package and version, keeping the highest severity",
        "Normalize severity levels across tools",
        "Score priority from CVSS, exploitability, fix availability and exposure",
        "Group vulnerabilities by package and identify transitive chains",
        "Filter by the severity threshold",
        "Write a unified vulnerability report and return its path",
    ],
    labels=["agent", "sca", "vulnerability-aggregation"],
)

SBOM_GENERATION = define_task(
    "sbom-generation",
    SbomGeneration,
    title="Generate Software Bill of Materials (SBOM)",
    agent_name="sbom-generator",
    role="supply chain security specialist",
    task="Generate comprehensive SBOM in specified format(s)",
    instructions=[
        "Generate the SBOM following the requested standard (CycloneDX, SPDX, or both)",
        "Document name, version, purl, license, supplier and hash for every component",
        "Include vulnerability information when requested",
        "Validate the SBOM against its schema",
        "Save machine-readable and human-readable versions",
    ],
    labels=["agent", "sca", "sbom"],
)

LICENSE_COMPLIANCE = define_task(
    "license-compliance",
    LicenseCompliance,
    title="Analyze license compliance across dependencies",
    agent_name="license-compliance-analyst",
    role="open source license compliance specialist",
    task="Analyze dependency licenses and check against organizational policies",
    instructions=[
        "Extract license information from all dependencies",
        "Classify each license as permissive, copyleft, proprietary or unknown",
        "Check each license against the allowed, denied and review-required lists",
        "Detect license conflicts and missing license information",
        "Assess copyleft obligations and attribution requirements",
        "Write a license compliance report with remediation recommendations",
    ],
    labels=["agent", "sca", "license-compliance"],
)

SUPPLY_CHAIN_SECURITY = define_task(
    "supply-chain-security",
    SupplyChainAssessment,
    title="Assess software supply chain security risks",
    agent_name="supply-chain-analyst",
    role="software supply chain security specialist",
    task="Assess supply chain security risks and threats",
    instructions=[
        "Analyze supply chain risks following the SLSA framework",
        "Check for typosquatting, hijacking indicators and known malicious history",
        "Identify unmaintained and single-maintainer dependencies",
        "Assess build provenance, signing and package sources",
        "Calculate a supply chain risk score (0-100)",
        "Recommend mitigations",
    ],
    labels=["agent", "sca", "supply-chain-security"],
)

SCA_TOOL_SETUP = define_task(
    "sca-tool-setup",
    ToolSetup,
    title="Setup and configure {tool}",
    agent_name="sca-tool-configurator",
    role="DevSecOps engineer",
    task="Setup and configure the requested tool for continuous dependency scanning",
    instructions=[
        "Generate configuration files for the tool",
        "Configure severity thresholds and license policy enforcement",
        "Configure the scanning schedule, alerting and VCS integration",
        "Configure PR automation when automated updates are enabled",
        "Configure exception rules with justifications",
        "Document tool usage",
    ],
    labels=["agent", "sca", "tool-setup", "{tool}"],
)

AUTOMATED_UPDATE_STRATEGY = define_task(
    "automated-update-strategy",
    UpdateStrategy,
    title="Design automated dependency update strategy",
    agent_name="update-strategy-designer",
    role="software maintenance and automation specialist",
    task="Design comprehensive automated dependency update strategy",
    instructions=[
        "Define update cadence by dependency type",
        "Create update rules by severity: critical immediate, high with quick review, others batched",
        "Auto-merge patch updates when tests pass; review minor; manual review for major",
        "Configure testing requirements, rollback and approval workflows",
        "Configure PR grouping and notification rules",
        "Generate Dependabot or Renovate configuration",
    ],
    labels=["agent", "sca", "automated-updates"],
)

REMEDIATION_PLANNING = define_task(
    "remediation-planning",
    RemediationPlanning,
    title="Create vulnerability and compliance remediation plan",
    agent_name="remediation-planner",
    role="security remediation specialist",
    task="Create prioritized remediation plan for vulnerabilities and compliance issues",
    instructions=[
        "Consolidate vulnerabilities, license violations and supply chain risks",
        "Create one action per issue with approach, steps, effort, priority and automatability",
        "Prioritize by security risk, business impact, ease and compliance requirements",
        "Identify quick wins and a phased timeline",
        "Estimate total remediation effort",
        "Write a remediation runbook and return its path",
    ],
    labels=["agent", "sca", "remediation-planning"],
)

CICD_INTEGRATION = define_task(
    "cicd-integration",
    CicdIntegration,
    title="Create CI/CD pipeline integration for SCA",
    agent_name="cicd-integration-specialist",
    role="DevSecOps CI/CD specialist",
    task="Create CI/CD pipeline integration configuration for SCA tools",
    instructions=[
        "Identify the CI/CD platform",
        "Create stages for dependency, vulnerability and license scanning and SBOM generation",
        "Configure security gates and fail conditions",
        "Configure caching, parallel scanning and artifact publishing",
        "Configure PR comments and notifications",
        "Document the pipeline configuration",
    ],
    labels=["agent", "sca", "cicd-integration"],
)

COMPLIANCE_REPORTING = define_task(
    "compliance-reporting",
    ComplianceReporting,
    title="Generate compliance reports and documentation",
    agent_name="compliance-reporter",
    role="security compliance and reporting specialist",
    task="Generate comprehensive compliance reports and documentation",
    instructions=[
        "Write an executive summary with overall status, key metrics and critical findings",
        "Write a technical report covering vulnerabilities, SBOM, licenses and supply chain",
        "Score vulnerability management, license compliance and supply chain security",
        "Compute an overall compliance score (0-100) and whether thresholds are met",
        "Document alignment with NIST SSDF and SLSA",
    ],
    labels=["agent", "sca", "compliance-reporting"],
)

TASKS = (
    DEPENDENCY_DISCOVERY,
    VULNERABILITY_SCANNING,
    VULNERABILITY_AGGREGATION,
    SBOM_GENERATION,
    LICENSE_COMPLIANCE,
    SUPPLY_CHAIN_SECURITY,
    SCA_TOOL_SETUP,
    AUTOMATED_UPDATE_STRATEGY,
    REMEDIATION_PLANNING,
    CICD_INTEGRATION,
    COMPLIANCE_REPORTING,
)
