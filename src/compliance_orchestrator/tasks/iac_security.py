"""Task catalogue for infrastructure-as-code security review."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from compliance_orchestrator.tasks.base import CheckedOutput, ResultItem, define_task

Severity = Literal["critical", "high", "medium", "low", "info"]


class IacResource(ResultItem):
    type: str = ""
    name: str = ""
    file: str = ""
    sensitive: bool = False
    dependencies: list[str] = Field(default_factory=list)
    risk_level: Literal["critical", "high", "medium", "low"] | None = None


class CodeInventory(CheckedOutput):
    total_files: int = Field(ge=0)
    resource_count: int = Field(ge=0)
    resources: list[IacResource]
    sensitive_resources: list[Any] = Field(default_factory=list)
    external_dependencies: list[Any] = Field(default_factory=list)


class IacFinding(ResultItem):
    """One issue from any scanner; secrets findings carry `type` and `secret_type`."""

    id: str | None = None
    severity: str = "info"
    category: str | None = None
    type: str | None = None
    resource: str | None = None
    file: str | None = None
    line: int | None = None
    issue: str | None = None
    secret_type: str | None = None
    remediation: str | None = None
    auto_fixable: bool | None = None


class ScanResult(CheckedOutput):
    findings: list[IacFinding]


class MisconfigurationScan(ScanResult):
    scan_score: float | None = Field(default=None, ge=0, le=100)


class NetworkSecurityScan(ScanResult):
    network_security_score: float | None = Field(default=None, ge=0, le=100)


class IamSecurityScan(ScanResult):
    iam_security_score: float | None = Field(default=None, ge=0, le=100)


class SecretsDetection(ScanResult):
    exposed_secrets_count: int | None = None


class SensitiveDataScan(ScanResult):
    sensitive_resource_count: int | None = None


class PolicyViolation(ResultItem):
    severity: Severity = "info"
    policy_name: str = ""
    policy_framework: str | None = None
    resource: str = ""
    file: str | None = None
    violation: str = ""
    remediation: str = ""
    enforcement_action: Literal["deny", "warn", "audit"] | None = None


class PolicyValidation(CheckedOutput):
    policy_score: float = Field(ge=0, le=100)
    violations: list[PolicyViolation]
    frameworks_evaluated: list[str] = Field(default_factory=list)
    policies_evaluated: int | None = None


class StandardGap(ResultItem):
    requirement: str = ""
    description: str = ""
    severity: str = ""
    remediation: str = ""


class StandardStatus(ResultItem):
    standard: str
    status: Literal["compliant", "partially-compliant", "non-compliant"]
    score: float = Field(ge=0, le=100)
    gaps: list[StandardGap]
    requirements_met: int | None = None
    requirements_total: int | None = None
    critical_gaps: int = 0


class ComplianceAssessment(CheckedOutput):
    overall_score: float = Field(ge=0, le=100)
    compliance_status: dict[str, StandardStatus]


class EncryptionCoverage(ResultItem):
    enabled: bool = False
    coverage: float | None = None
    algorithms: list[str] = Field(default_factory=list)
    protocols: list[str] = Field(default_factory=list)


class EncryptionReview(ScanResult):
    encryption_score: float = Field(ge=0, le=100)
    encryption_at_rest: EncryptionCoverage | None = None
    encryption_in_transit: EncryptionCoverage | None = None


class DataProtectionReview(ScanResult):
    data_protection_score: float = Field(ge=0, le=100)


class RuntimeSecurityReview(ScanResult):
    runtime_security_score: float | None = Field(default=None, ge=0, le=100)


class RemediationStep(ResultItem):
    id: str = ""
    finding_ids: list[str] = Field(default_factory=list)
    priority: Literal["critical", "high", "medium", "low"] = "medium"
    phase: Literal["immediate", "short-term", "long-term"] = "short-term"
    action: str = ""
    description: str | None = None
    effort: Literal["low", "medium", "high"] = "medium"
    impact: str | None = None
    auto_fixable: bool = False
    code_patch: str | None = None
    testing_steps: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)


class RemediationPlan(CheckedOutput):
    plan: list[RemediationStep]
    auto_fixable_count: int = Field(ge=0)
    auto_fixable_issues: list[Any] = Field(default_factory=list)
    fixes_by_category: dict[str, Any] = Field(default_factory=dict)
    quick_wins: list[Any] = Field(default_factory=list)


class AutoRemediation(CheckedOutput):
    fixes_applied: int = Field(ge=0)
    modified_files: list[str]
    fixes_failed: int | None = None
    backup_path: str | None = None
    changes_summary: str | None = None


class SecurityIssue(ResultItem):
    severity: str = ""
    category: str = ""
    count: int | None = None
    description: str = ""


class Recommendation(ResultItem):
    priority: str = ""
    recommendation: str = ""
    impact: str | None = None
    effort: str | None = None


class SecurityPosture(ResultItem):
    status: Literal["excellent", "good", "fair", "poor", "critical"] | None = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    trends: dict[str, Any] = Field(default_factory=dict)


class SecurityReport(CheckedOutput):
    overall_security_score: float = Field(ge=0, le=100)
    executive_summary: str
    top_security_issues: list[SecurityIssue] = Field(default_factory=list)
    top_recommendations: list[Recommendation] = Field(default_factory=list)
    security_posture: SecurityPosture | None = None


CODE_INVENTORY = define_task(
    "code-inventory",
    CodeInventory,
    title="IaC Code Inventory: {projectName}",
    agent_name="iac-inventory-agent",
    role="Infrastructure Security Analyst specialized in IaC analysis",
    task="Discover and inventory all Infrastructure as Code files, resources, and dependencies",
    instructions=[
        "Scan the specified path for IaC files based on the tool type",
        "Identify all resource types and their configurations",
        "Map resource dependencies and relationships",
        "Identify sensitive resource types (databases, secrets managers, IAM, etc.)",
        "Catalog external module and provider dependencies",
        "Identify workspaces, environments, or deployment contexts",
        "Identify high-risk resources requiring special attention",
        "Create a dependency graph for security analysis",
    ],
    output_format="JSON with file list, resource inventory, dependencies, sensitive resources",
    labels=["iac-security", "inventory", "{iacTool}", "{cloudProvider}"],
)

MISCONFIGURATION_SCAN = define_task(
    "misconfiguration-scan",
    MisconfigurationScan,
    title="Security Misconfiguration Scan: {projectName}",
    agent_name="iac-misconfig-scanner",
    role="Cloud Security Engineer specialized in IaC security scanning",
    task="Scan Infrastructure as Code for security misconfigurations and vulnerabilities",
    instructions=[
        "Scan for publicly exposed resources (S3 buckets, databases, storage accounts)",
        "Check for missing encryption configurations",
        "Identify insecure network configurations (wide-open security groups, public IPs)",
        "Detect weak authentication and authorization settings",
        "Check for missing logging, monitoring and backup configurations",
        "Scan for insecure SSL/TLS settings and deprecated resource versions",
        "Identify missing security features such as MFA and versioning",
        "Validate resource tagging and flag resources in non-compliant regions",
    ],
    output_format="JSON with findings array (severity, category, resource, issue, remediation)",
    labels=["iac-security", "misconfiguration", "scanning"],
)

NETWORK_SECURITY_SCAN = define_task(
    "network-security-scan",
    NetworkSecurityScan,
    title="Network Security Scan: {projectName}",
    agent_name="network-security-scanner",
    role="Network Security Engineer specialized in cloud network security",
    task="Analyze network security configurations in Infrastructure as Code",
    instructions=[
        "Scan security groups, NACLs, and firewall rules",
        "Identify overly permissive ingress rules (0.0.0.0/0, ::/0) and unrestricted egress",
        "Validate network segmentation and isolation",
        "Check for missing VPC flow logs and unencrypted data flows",
        "Check for exposed management ports (SSH, RDP, databases)",
        "Identify missing DDoS protection and insecure protocols",
        "Validate VPN, peering and private subnet usage",
    ],
    output_format="JSON with network security findings",
    labels=["iac-security", "network-security", "firewall"],
)

IAM_SECURITY_SCAN = define_task(
    "iam-security-scan",
    IamSecurityScan,
    title="IAM Security Scan: {projectName}",
    agent_name="iam-security-scanner",
    role="Identity and Access Management Security Specialist",
    task="Analyze IAM and access control configurations for security issues",
    instructions=[
        "Scan IAM policies for wildcard permissions and admin access",
        "Check for missing MFA requirements and password policies",
        "Validate least privilege and service account permissions",
        "Identify unused or stale users and roles",
        "Check for hardcoded credentials in IAM policies",
        "Identify cross-account access risks and review assume-role trust relationships",
        "Check for public access to sensitive resources and missing access logging",
    ],
    output_format="JSON with IAM security findings",
    labels=["iac-security", "iam", "access-control"],
)

SECRETS_DETECTION = define_task(
    "secrets-detection",
    SecretsDetection,
    title="Secrets Detection: {projectName}",
    agent_name="secrets-detector",
    role="Security Engineer specialized in secrets detection and prevention",
    task="Scan Infrastructure as Code files for exposed secrets, credentials, and sensitive data",
    instructions=[
        "Scan for hardcoded passwords, API keys, and tokens",
        "Detect cloud provider credentials and service account keys",
        "Identify connection strings and URLs with embedded credentials",
        "Detect SSH private keys, certificates and encryption keys",
        "Check for OAuth, Slack and GitHub tokens",
        "Verify proper use of secrets management services",
        "Mark each exposed secret with type 'exposed-secret' and its secretType",
    ],
    output_format="JSON with exposed secrets findings (type, location, secretType, recommendation)",
    labels=["iac-security", "secrets-detection", "credentials"],
)

SENSITIVE_DATA_SCAN = define_task(
    "sensitive-data-scan",
    SensitiveDataScan,
    title="Sensitive Data Scan: {projectName}",
    agent_name="sensitive-data-scanner",
    role="Data Security Specialist",
    task="Identify resources handling sensitive data without proper protection",
    instructions=[
        "Identify databases, storage, and data resources",
        "Check for PII, PHI and PCI data handled without encryption",
        "Verify data classification tagging and retention policies",
        "Identify resources without backup configurations",
        "Validate data residency requirements",
        "Identify log configurations that might expose sensitive data",
        "Check for missing masking, disposal and DLP controls",
    ],
    output_format="JSON with sensitive data protection findings",
    labels=["iac-security", "sensitive-data", "data-protection"],
)

POLICY_VALIDATION = define_task(
    "policy-validation",
    PolicyValidation,
    title="Policy Validation ({policyFramework}): {projectName}",
    agent_name="policy-validator",
    role="Policy as Code Engineer specialized in security policy validation",
    task="Validate Infrastructure as Code against security policies using a policy as code framework",
    instructions=[
        "Validate IaC configurations against the selected policy framework",
        "Apply built-in security policies for the cloud provider",
        "Execute custom policies if provided",
        "Categorize violations by severity",
        "Validate naming, tagging, quota and region policies",
        "Provide specific remediation for each violation",
        "Calculate a policy compliance score",
    ],
    output_format="JSON with policy violations, compliance score, evaluated policies",
    labels=["iac-security", "policy-as-code", "{policyFramework}"],
)

COMPLIANCE_ASSESSMENT = define_task(
    "compliance-assessment",
    ComplianceAssessment,
    title="Compliance Assessment: {projectName}",
    agent_name="compliance-assessor",
    role="Compliance Auditor specialized in cloud infrastructure compliance",
    task="Assess Infrastructure as Code compliance with specified security standards",
    instructions=[
        "Evaluate compliance against each requested standard",
        "Map findings to specific compliance requirements",
        "Identify gaps and assess control effectiveness",
        "Calculate a compliance score per standard",
        "Identify compensating controls where applicable",
        "Generate an audit-ready compliance report",
    ],
    output_format="JSON with compliance status per standard, gaps, overall score",
    labels=["iac-security", "compliance", "audit"],
)

ENCRYPTION_REVIEW = define_task(
    "encryption-review",
    EncryptionReview,
    title="Encryption Review: {projectName}",
    agent_name="encryption-reviewer",
    role="Cryptography and Encryption Specialist",
    task="Review encryption configurations for data at rest and in transit",
    instructions=[
        "Identify all data storage resources",
        "Check encryption at rest and in transit",
        "Validate algorithms, key strengths and key management",
        "Check certificate management and key rotation policies",
        "Validate backup and log encryption",
        "Report every finding with category 'encryption'",
    ],
    output_format="JSON with encryption findings and score",
    labels=["iac-security", "encryption", "data-protection"],
)

DATA_PROTECTION_REVIEW = define_task(
    "data-protection-review",
    DataProtectionReview,
    title="Data Protection Review: {projectName}",
    agent_name="data-protection-reviewer",
    role="Data Protection and Privacy Specialist",
    task="Review data protection configurations and privacy controls",
    instructions=[
        "Identify resources handling regulated data (PII, PHI, PCI)",
        "Check retention, lifecycle, backup and recovery configurations",
        "Review data residency and classification tagging",
        "Validate access logging and audit trails",
        "Check anonymization and privacy controls (GDPR, CCPA)",
        "Check for data exfiltration prevention controls",
    ],
    output_format="JSON with data protection findings and score",
    labels=["iac-security", "data-protection", "privacy"],
)

RUNTIME_SECURITY_REVIEW = define_task(
    "runtime-security-review",
    RuntimeSecurityReview,
    title="Runtime Security Review: {projectName}",
    agent_name="runtime-security-reviewer",
    role="Container and Runtime Security Engineer",
    task="Review container, orchestration, and runtime security configurations",
    instructions=[
        "Review container security configurations (Kubernetes, ECS, etc.)",
        "Check for privileged containers and missing security contexts",
        "Validate pod security standards and service account permissions",
        "Check for missing resource limits and quotas",
        "Validate network policies and service mesh configurations",
        "Review secrets management, admission control and workload identity",
    ],
    output_format="JSON with runtime security findings",
    labels=["iac-security", "runtime-security", "containers"],
)

REMEDIATION_PLAN = define_task(
    "remediation-plan",
    RemediationPlan,
    title="Remediation Plan: {projectName}",
    agent_name="remediation-planner",
    role="Security Remediation Engineer",
    task="Generate prioritized remediation plan with automated fix recommendations",
    instructions=[
        "Consolidate all findings and policy violations",
        "Prioritize by severity, exploitability, and compliance impact",
        "Identify auto-fixable issues and generate IaC patches for them",
        "Estimate effort and group related findings",
        "Create a roadmap with immediate, short-term and long-term phases",
        "Identify quick wins and document rollback procedures",
    ],
    output_format="JSON with prioritized remediation plan, auto-fixable issues, code patches",
    labels=["iac-security", "remediation", "planning"],
)

AUTO_REMEDIATION = define_task(
    "auto-remediation",
    AutoRemediation,
    title="Auto-Remediation: {projectName}",
    agent_name="auto-remediator",
    role="Infrastructure Security Automation Engineer",
    task="Apply automated security fixes to Infrastructure as Code files",
    instructions=[
        "Back up original IaC files before modification",
        "Apply code patches for the auto-fixable issues",
        "Validate syntax and dependencies after applying fixes",
        "Generate a diff report and a commit-ready change summary",
        "Provide rollback instructions",
    ],
    output_format="JSON with fixes applied, modified files, diff report",
    labels=["iac-security", "auto-remediation", "automation"],
)

SECURITY_REPORT = define_task(
    "security-report-generation",
    SecurityReport,
    title="Security Report: {projectName}",
    agent_name="security-report-generator",
    role="Security Documentation and Reporting Specialist",
    task="Generate comprehensive Infrastructure as Code security review report",
    instructions=[
        "Synthesize findings from all scan phases",
        "Calculate an overall security score (0-100)",
        "Write an executive summary with key findings",
        "Highlight top security risks and compliance status",
        "Document remediation priorities and actionable recommendations",
        "Format the report as JSON, Markdown and HTML",
    ],
    output_format="JSON with comprehensive security report, executive summary, scores, recommendations",
    labels=["iac-security", "reporting", "documentation"],
)

TASKS = (
    CODE_INVENTORY,
    MISCONFIGURATION_SCAN,
    NETWORK_SECURITY_SCAN,
    IAM_SECURITY_SCAN,
    SECRETS_DETECTION,
    SENSITIVE_DATA_SCAN,
    POLICY_VALIDATION,
    COMPLIANCE_ASSESSMENT,
    ENCRYPTION_REVIEW,
    DATA_PROTECTION_REVIEW,
    RUNTIME_SECURITY_REVIEW,
    REMEDIATION_PLAN,
    AUTO_REMEDIATION,
    SECURITY_REPORT,
)
