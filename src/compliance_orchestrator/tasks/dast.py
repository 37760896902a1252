"""Task catalogue for dynamic application security testing."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from compliance_orchestrator.tasks.base import ResultItem, TaskOutput, define_task


class SecurityHeaders(ResultItem):
    csp: bool | None = None
    hsts: bool | None = None
    x_frame_options: bool | None = None
    xss_protection: bool | None = None


class ScanChallenge(ResultItem):
    challenge: str = ""
    mitigation: str = ""


class EnvironmentAssessment(TaskOutput):
    tech_stack: list[str]
    entry_points_count: int = Field(ge=0)
    auth_required: bool
    security_headers: SecurityHeaders | None = None
    complexity_level: Literal["simple", "moderate", "complex", "highly-complex"] | None = None
    api_endpoints: list[str] = Field(default_factory=list)
    scan_challenges: list[ScanChallenge] = Field(default_factory=list)
    estimated_scope: dict[str, Any] | None = None


class ToolSetup(TaskOutput):
    tools_configured: list[str]
    proxy_configured: bool
    auth_configured: bool | None = None
    scan_policies: list[str] = Field(default_factory=list)
    configuration_files: list[str] = Field(default_factory=list)


class ScopeRule(ResultItem):
    pattern: str = ""
    action: Literal["include", "exclude"] = "include"
    reason: str = ""


class ScopeDefinition(TaskOutput):
    urls_in_scope: list[str]
    urls_excluded: list[str]
    estimated_duration: str
    risk_level: Literal["low", "medium", "high", "critical"]
    scope_rules: list[ScopeRule] = Field(default_factory=list)


class AuthSetup(TaskOutput):
    auth_verified: bool
    session_management_active: bool
    auth_levels_configured: list[str] = Field(default_factory=list)
    logout_detection: bool | None = None


class PassiveScan(TaskOutput):
    urls_discovered: int = Field(ge=0)
    passive_issues_found: int = Field(ge=0)
    coverage_percent: float = Field(ge=0, le=100)
    spider_depth: int | None = None
    forms_discovered: int | None = None
    passive_findings: list[dict[str, Any]] = Field(default_factory=list)


class Vulnerability(ResultItem):
    title: str = ""
    severity: str = ""
    url: str = ""
    category: str = ""
    cvss: float | None = None


class ActiveScan(TaskOutput):
    vulnerabilities_found: int = Field(ge=0)
    critical_count: int = Field(ge=0)
    high_count: int = Field(ge=0)
    medium_count: int = Field(ge=0)
    low_count: int = Field(ge=0)
    informational_count: int | None = None
    owasp_categories: dict[str, int] = Field(default_factory=dict)
    scan_progress: float | None = Field(default=None, ge=0, le=100)
    top_vulnerabilities: list[Vulnerability] = Field(default_factory=list)


class ApiFinding(ResultItem):
    endpoint: str = ""
    method: str = ""
    vulnerability: str = ""
    severity: str = ""


class ApiScan(TaskOutput):
    endpoints_tested: int = Field(ge=0)
    api_vulnerabilities_found: int = Field(ge=0)
    api_top10_coverage: float = Field(ge=0, le=100)
    auth_issues: int | None = None
    critical_count: int = Field(default=0, ge=0)
    high_count: int = Field(default=0, ge=0)
    api_types: dict[str, int] = Field(default_factory=dict)
    owasp_api_top10: dict[str, int] = Field(default_factory=dict)
    top_api_findings: list[ApiFinding] = Field(default_factory=list)


class VulnerabilityValidation(TaskOutput):
    confirmed_vulnerabilities: int = Field(ge=0)
    false_positives: int = Field(ge=0)
    requires_manual_review: int = Field(ge=0)
    validation_accuracy: float = Field(ge=0, le=100)
    severity_breakdown: dict[str, int] = Field(default_factory=dict)
    validated_findings: list[Vulnerability] = Field(default_factory=list)


class ComplianceGap(ResultItem):
    standard: str = ""
    requirement: str = ""
    status: str = ""
    findings: int | None = None


class ComplianceMapping(TaskOutput):
    owasp_score: float = Field(ge=0, le=100)
    cwe_matches: int = Field(ge=0)
    standards_covered: list[str]
    overall_security_score: float = Field(ge=0, le=100)
    pci_dss_compliant: bool | None = None
    compliance_status: dict[str, Any] = Field(default_factory=dict)
    compliance_gaps: list[ComplianceGap] = Field(default_factory=list)


class ReportLink(ResultItem):
    format: str = ""
    path: str = ""
    description: str = ""


class Finding(ResultItem):
    title: str = ""
    severity: str = ""
    category: str = ""
    remediation_effort: str = ""


class Reporting(TaskOutput):
    formats_generated: list[str]
    executive_summary_generated: bool
    remediation_items: int = Field(ge=0)
    report_links: list[ReportLink]
    executive_summary_path: str | None = None
    top_findings: list[Finding] = Field(default_factory=list)
    remediation_roadmap: dict[str, int] = Field(default_factory=dict)


class ContinuousScanning(TaskOutput):
    scan_schedule: str
    cicd_integrated: bool
    automated_remediation: bool | None = None
    pipeline_configs: list[str] = Field(default_factory=list)
    alerting_configured: bool | None = None


ASSESS_ENVIRONMENT = define_task(
    "assess-environment",
    EnvironmentAssessment,
    title="Assess target application environment and technology stack",
    agent_name="environment-assessor",
    role="application security specialist and penetration testing expert",
    task=(
        "Assess the target application to identify technology stack, entry points, "
        "authentication mechanisms and scanning constraints"
    ),
    instructions=[
        "Identify web server, framework and language from headers and footprints",
        "Identify authentication mechanisms and visible entry points",
        "Detect API endpoints, client-side libraries and third-party integrations",
        "Review robots.txt, sitemap.xml and security.txt",
        "Record security headers (CSP, HSTS, X-Frame-Options, X-XSS-Protection)",
        "Note scan challenges such as rate limiting, CAPTCHA or WAF and how to handle them",
        "Estimate initial scope and duration and write an environment assessment report",
    ],
    labels=["agent", "dast", "assessment", "security"],
)

SETUP_DAST_TOOLS = define_task(
    "setup-dast-tools",
    ToolSetup,
    title="Configure {toolChoice} for DAST scanning",
    agent_name="dast-tool-engineer",
    role="security engineer specializing in DAST tools (OWASP ZAP, Burp Suite)",
    task="Install and configure DAST tooling, proxy and authentication handling for the target",
    instructions=[
        "Configure the selected scanner and its intercepting proxy",
        "Create a scan context with the target URL and technology hints",
        "Prepare the authentication handler for the configured authentication type",
        "Tune scan policies to the technology stack and rate limits",
        "Store configuration files and note any manual follow-up",
    ],
    labels=["agent", "dast", "tool-setup", "configuration"],
)

DEFINE_SCAN_SCOPE = define_task(
    "define-scan-scope",
    ScopeDefinition,
    title="Define scan scope and boundaries",
    agent_name="scope-specialist",
    role="penetration testing lead specializing in scope definition and risk management",
    task="Define which URLs are scanned, which are excluded, and the risk of scanning them",
    instructions=[
        "List URL patterns in scope and explicitly excluded paths (logout, destructive actions)",
        "Exclude third-party domains and production payment flows unless approved",
        "Estimate scan duration for the resulting scope",
        "Rate the operational risk of the scan as low, medium, high or critical",
        "Document scope rules with the reason for each inclusion or exclusion",
    ],
    labels=["agent", "dast", "scope", "planning"],
)

SETUP_AUTHENTICATED_SCANNING = define_task(
    "setup-authenticated-scanning",
    AuthSetup,
    title="Configure authenticated scanning ({authenticationType})",
    agent_name="auth-testing-specialist",
    role="security tester specializing in authentication mechanisms and session management",
    task="Configure and verify authenticated sessions so the scanner reaches protected areas",
    instructions=[
        "Configure login sequence for the authentication type using the supplied credentials",
        "Set logged-in and logged-out indicators for session detection",
        "Configure session token handling and re-authentication",
        "Set up one user per authorization level where credentials allow",
        "Verify authentication by requesting a protected page",
    ],
    labels=["agent", "dast", "authentication", "session-management"],
)

PASSIVE_SCAN_SPIDER = define_task(
    "passive-scan-spider",
    PassiveScan,
    title="Spider application and run passive scan",
    agent_name="spider-specialist",
    role="web application security analyst specializing in passive reconnaissance",
    task="Crawl the application within scope and record issues detectable without attack traffic",
    instructions=[
        "Run the traditional spider and an AJAX spider for JavaScript-heavy pages",
        "Stay inside the approved scope and respect the maximum scan duration",
        "Record passive findings: missing headers, cookie flags, information disclosure",
        "Report discovered URLs, forms and estimated coverage percentage",
    ],
    labels=["agent", "dast", "passive-scan", "spidering"],
)

ACTIVE_SCAN = define_task(
    "active-scan",
    ActiveScan,
    title="Execute active security scanning with attack payloads",
    agent_name="active-scanner",
    role="penetration tester specializing in automated vulnerability scanning",
    task="Perform active testing with attack payloads to find exploitable vulnerabilities",
    instructions=[
        "Scan all discovered URLs within scope",
        "Test injection (SQL, command, XXE), XSS, CSRF, SSRF and file inclusion",
        "Test authentication bypass, broken access control and insecure deserialization",
        "Test security misconfiguration and sensitive data exposure",
        "Categorize findings by OWASP Top 10 and severity with proof of concept",
    ],
    labels=["agent", "dast", "active-scan", "vulnerability-detection"],
)

API_SECURITY_TESTING = define_task(
    "api-security-testing",
    ApiScan,
    title="Test API endpoints against OWASP API Security Top 10",
    agent_name="api-security-tester",
    role="API security specialist focusing on REST, GraphQL and SOAP security",
    task="Test discovered API endpoints for API-specific vulnerabilities",
    instructions=[
        "Import API definitions (OpenAPI, GraphQL introspection, WSDL) where available",
        "Test object and function level authorization",
        "Test excessive data exposure, mass assignment and rate limiting",
        "Test injection through API parameters and headers",
        "Report OWASP API Top 10 coverage and critical/high finding counts",
    ],
    labels=["agent", "dast", "api-security", "owasp-api-top-10"],
)

VALIDATE_VULNERABILITIES = define_task(
    "validate-vulnerabilities",
    VulnerabilityValidation,
    title="Validate findings and filter false positives",
    agent_name="vulnerability-analyst",
    role="senior security analyst specializing in vulnerability validation and triage",
    task="Confirm scanner findings, remove false positives and triage by severity",
    instructions=[
        "Deduplicate passive, active and API findings",
        "Re-test each finding above the severity threshold to confirm exploitability",
        "Mark false positives with justification when false positive handling is enabled",
        "Flag findings that need manual review",
        "Report confirmed counts by severity and the validation accuracy",
    ],
    labels=["agent", "dast", "validation", "triage"],
)

MAP_COMPLIANCE = define_task(
    "map-compliance",
    ComplianceMapping,
    title="Map findings to compliance standards",
    agent_name="compliance-mapper",
    role="security compliance specialist with expertise in OWASP, PCI-DSS and industry standards",
    task="Map validated findings to the requested compliance standards and score them",
    instructions=[
        "Map findings to OWASP Top 10 categories and compute an OWASP score",
        "Map findings to CWE identifiers and count CWE Top 25 matches",
        "Evaluate PCI-DSS requirement 6 and 11 implications",
        "List compliance gaps per standard",
        "Compute an overall security score from 0 to 100",
    ],
    labels=["agent", "dast", "compliance", "mapping"],
)

GENERATE_REPORTS = define_task(
    "generate-reports",
    Reporting,
    title="Generate DAST reports and remediation guidance",
    agent_name="report-generator",
    role="security reporting specialist and technical writer",
    task="Produce executive and technical reports with prioritized remediation guidance",
    instructions=[
        "Write an executive summary with risk rating and key metrics",
        "Write a technical report with reproduction steps per finding",
        "Provide remediation guidance and an immediate/short-term/long-term roadmap",
        "Generate every requested report format and list the report links",
    ],
    labels=["agent", "dast", "reporting", "remediation"],
)

SETUP_CONTINUOUS_SCANNING = define_task(
    "setup-continuous-scanning",
    ContinuousScanning,
    title="Configure continuous DAST scanning",
    agent_name="continuous-security-engineer",
    role="DevSecOps engineer specializing in security automation and CI/CD integration",
    task="Set up scheduled and pipeline-triggered DAST scans with alerting",
    instructions=[
        "Define a scan schedule (baseline per deploy, full scan weekly)",
        "Add pipeline stages that run the scanner against staging",
        "Configure failure thresholds and alert routing",
        "Document how to triage results from continuous scans",
    ],
    labels=["agent", "dast", "continuous-scanning", "devsecops"],
)

TASKS = (
    ASSESS_ENVIRONMENT,
    SETUP_DAST_TOOLS,
    DEFINE_SCAN_SCOPE,
    SETUP_AUTHENTICATED_SCANNING,
    PASSIVE_SCAN_SPIDER,
    ACTIVE_SCAN,
    API_SECURITY_TESTING,
    VALIDATE_VULNERABILITIES,
    MAP_COMPLIANCE,
    GENERATE_REPORTS,
    SETUP_CONTINUOUS_SCANNING,
)
