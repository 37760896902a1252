"""Task catalogue for security policy documentation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import Field

from compliance_orchestrator.tasks.base import CheckedOutput, ResultItem, define_task


class PolicyGap(ResultItem):
    policy_area: str = ""
    severity: Literal["critical", "high", "medium", "low"] | None = None
    description: str = ""
    framework: str | None = None
    compliance_impact: str | None = None


class FrameworkAssessment(CheckedOutput):
    policies_required: int = Field(ge=0)
    gaps_identified: int = Field(ge=0)
    gaps: list[PolicyGap]
    recommendations: list[str]
    current_state: dict[str, Any] | None = None
    framework_requirements: dict[str, list[Any]] = Field(default_factory=dict)
    compliance_mapping: dict[str, Any] = Field(default_factory=dict)
    development_roadmap: dict[str, Any] | None = None


class PolicyStructure(CheckedOutput):
    hierarchy_levels: int = Field(ge=0)
    document_types: int = Field(ge=0)
    structure: dict[str, Any]
    relationship_map: dict[str, Any] = Field(default_factory=dict)


class PolicyDocument(ResultItem):
    name: str = ""
    category: str = ""
    version: str | None = None
    status: str | None = None
    path: str | None = None
    related_policy: str | None = None
    owner: str | None = None


class MasterPolicy(CheckedOutput):
    policy: PolicyDocument
    policy_path: str
    sections_count: int = Field(ge=0)
    word_count: int = Field(ge=0)
    security_principles: list[Any] = Field(default_factory=list)
    governance_structure: dict[str, Any] = Field(default_factory=dict)
    roles_responsibilities: list[Any] = Field(default_factory=list)


class PolicyPackage(CheckedOutput):
    """Documents produced for one policy area."""

    policies: list[PolicyDocument]
    procedures: list[PolicyDocument]
    standards: list[PolicyDocument] = Field(default_factory=list)
    guidelines: list[PolicyDocument] = Field(default_factory=list)


class StandardsPackage(PolicyPackage):
    standards: list[PolicyDocument]


class GuidelinesPackage(PolicyPackage):
    guidelines: list[PolicyDocument]


class ApprovalWorkflow(CheckedOutput):
    workflows_created: int = Field(ge=0)
    approvers_assigned: int = Field(ge=0)
    version_control: dict[str, Any] = Field(default_factory=dict)


class TrainingProgram(CheckedOutput):
    training_modules: int = Field(ge=0)
    acknowledgment_forms: int = Field(ge=0)
    estimated_duration: str
    delivery_methods: list[str] = Field(default_factory=list)


class MaintenanceSchedule(CheckedOutput):
    review_schedules: int = Field(ge=0)
    next_review_date: str
    review_owners: list[Any] = Field(default_factory=list)
    schedule_path: str | None = None


class FrameworkMapping(CheckedOutput):
    frameworks_mapped: list[str]
    compliance_coverage: float = Field(ge=0, le=100)
    controls_mapped: int = Field(ge=0)
    mapping_matrix_path: str | None = None


class PolicyHandbook(CheckedOutput):
    handbook_path: str
    handbook_pages: int = Field(ge=0)
    language_versions: int = Field(ge=0)
    executive_summary_path: str | None = None


@dataclass(frozen=True)
class PolicyArea:
    """One scope-gated policy package; runs when any of its scopes is requested."""

    key: str
    scopes: tuple[str, ...]
    phase: int
    title: str
    role: str
    task: str
    model: type[PolicyPackage]
    instructions: tuple[str, ...]
    extra_args: tuple[str, ...] = ()

    @property
    def task_name(self) -> str:
        return f"create-{self.key.replace('_', '-')}-policies"


CORE_AREAS = (
    PolicyArea(
        "access_control",
        ("access-control", "identity-management"),
        4,
        "Access Control",
        "Access Control Policy Specialist",
        "Create comprehensive access control and identity management policies",
        StandardsPackage,
        (
            "Create the Access Control Policy: least privilege, provisioning, reviews, revocation",
            "Create the Identity Management Policy: identity lifecycle, SSO, MFA",
            "Create the Authentication standard: password rules, session management, lockout",
            "Create the Privileged Access Management Policy with break-glass procedures",
            "Create onboarding, offboarding, access request and access review procedures",
            "Create RBAC, network and application access control standards",
        ),
        ("organization_size",),
    ),
    PolicyArea(
        "data_protection",
        ("data-protection", "privacy"),
        5,
        "Data Protection",
        "Data Protection Policy Specialist",
        "Create comprehensive data protection and privacy policies",
        StandardsPackage,
        (
            "Create the Data Protection and Privacy policies",
            "Create the Data Classification and Data Retention policies",
            "Create the Encryption standard",
            "Create supporting procedures and address GDPR where applicable",
        ),
        ("industry_vertical",),
    ),
    PolicyArea(
        "incident_response",
        ("incident-response", "business-continuity"),
        6,
        "Incident Response",
        "Incident Response Policy Specialist",
        "Create comprehensive incident response and business continuity policies",
        StandardsPackage,
        (
            "Create the Security Incident Response Policy",
            "Create the Business Continuity and Disaster Recovery policies",
            "Define incident severity levels, escalation and communication templates",
            "Document testing and exercise requirements",
        ),
        ("organization_size",),
    ),
    PolicyArea(
        "acceptable_use",
        ("acceptable-use", "security-awareness"),
        7,
        "Acceptable Use",
        "Acceptable Use Policy Specialist",
        "Create acceptable use and security awareness policies",
        GuidelinesPackage,
        (
            "Create the Acceptable Use Policy including BYOD and software installation rules",
            "Create the Email and Communication, Mobile Device and Social Media policies",
            "Create the Security Awareness Policy",
            "Create clean desk, password and remote work guidelines",
            "Define consequences for policy violations",
        ),
        ("industry_vertical", "include_guidelines", "organization_size"),
    ),
    PolicyArea(
        "asset_management",
        ("asset-management", "physical-security"),
        8,
        "Asset Management",
        "Asset Management Policy Specialist",
        "Create asset management and physical security policies",
        StandardsPackage,
        (
            "Create the Asset Management Policy",
            "Create the Physical Security Policy",
            "Create the Media Handling Policy",
            "Create supporting procedures and standards",
        ),
    ),
)

EXTENDED_AREAS = (
    PolicyArea(
        "vendor_management",
        ("vendor-management", "third-party"),
        9,
        "Vendor Management",
        "Vendor Management Policy Specialist",
        "Create vendor and third-party management policies",
        StandardsPackage,
        (
            "Create the Vendor Management Policy",
            "Create the Third-Party Risk Management Policy",
            "Create vendor security assessment procedures",
        ),
    ),
    PolicyArea(
        "change_management",
        ("change-management", "system-development"),
        10,
        "Change Management",
        "Change Management Policy Specialist",
        "Create change management and system development policies",
        StandardsPackage,
        (
            "Create the Change Management Policy",
            "Create the Secure Software Development Lifecycle (SDLC) Policy",
            "Create supporting procedures",
        ),
    ),
    PolicyArea(
        "cryptography",
        ("cryptography", "encryption"),
        11,
        "Cryptography",
        "Cryptography Policy Specialist",
        "Create cryptography and encryption policies",
        StandardsPackage,
        (
            "Create the Cryptography Policy",
            "Create the Key Management Standard",
            "Create supporting procedures",
        ),
    ),
    PolicyArea(
        "cloud_security",
        ("cloud-security", "remote-work"),
        12,
        "Cloud Security",
        "Cloud Security Policy Specialist",
        "Create cloud security and remote work policies",
        StandardsPackage,
        (
            "Create the Cloud Security Policy",
            "Create the Remote Work Policy",
            "Create supporting procedures and standards",
        ),
    ),
)

POLICY_AREAS = CORE_AREAS + EXTENDED_AREAS

ASSESS_POLICY_FRAMEWORK = define_task(
    "assess-policy-framework",
    FrameworkAssessment,
    title="Phase 1: Assess Policy Framework - {organization}",
    role="Security Policy Framework Architect",
    task="Assess current policy framework and identify gaps",
    instructions=[
        "Inventory existing policies and evaluate their coverage, currency and structure",
        "Map ISO 27001 Annex A, NIST CSF and CIS Controls policy requirements",
        "Evaluate SOC 2, GDPR, PCI DSS and HIPAA policy requirements where applicable",
        "Identify missing, outdated and conflicting policies with severity",
        "Recommend a development roadmap with an estimated timeline",
    ],
    labels=["agent", "security-policies", "framework-assessment"],
)

DESIGN_POLICY_STRUCTURE = define_task(
    "design-policy-structure",
    PolicyStructure,
    title="Phase 2: Design Policy Structure - {organization}",
    role="Security Policy Architect",
    task="Design policy hierarchy, structure, and document taxonomy",
    instructions=[
        "Define the hierarchy of policies, standards, procedures and guidelines",
        "Define the document taxonomy and naming conventions",
        "Create templates for each document type",
        "Map relationships between documents",
    ],
    labels=["agent", "security-policies", "policy-structure"],
)

CREATE_MASTER_SECURITY_POLICY = define_task(
    "create-master-security-policy",
    MasterPolicy,
    title="Phase 3: Create Information Security Master Policy - {organization}",
    role="Senior Security Policy Writer",
    task="Create comprehensive Information Security Master Policy",
    instructions=[
        "State purpose, scope and management commitment",
        "Define security principles and the governance structure",
        "Define roles and responsibilities",
        "Reference the supporting policy set and compliance obligations",
        "Record version, owner, approver, effective and review dates",
    ],
    labels=["agent", "security-policies", "master-policy"],
)

POLICY_TASKS = {
    area.key: define_task(
        area.task_name,
        area.model,
        title=f"Phase {area.phase}: Create {area.title} Policies - {{organization}}",
        role=area.role,
        task=area.task,
        instructions=[*area.instructions, f"Generate the {area.title.lower()} policy package"],
        labels=["agent", "security-policies", area.key.replace("_", "-")],
    )
    for area in POLICY_AREAS
}

SETUP_APPROVAL_WORKFLOW = define_task(
    "setup-approval-workflow",
    ApprovalWorkflow,
    title="Phase 13: Setup Approval Workflow - {organization}",
    role="Policy Governance Specialist",
    task="Setup policy approval workflow and version control",
    instructions=[
        "Design the approval workflow",
        "Assign policy owners and approvers",
        "Set up version control",
        "Create an approval tracking mechanism",
        "Generate workflow documentation",
    ],
    labels=["agent", "security-policies", "approval-workflow"],
)

CREATE_TRAINING_PROGRAM = define_task(
    "create-training-program",
    TrainingProgram,
    title="Phase 14: Create Training Program - {organization}",
    role="Security Training Specialist",
    task="Create policy acknowledgment and training program",
    instructions=[
        "Design the training curriculum and modules by policy area",
        "Create policy acknowledgment forms",
        "Choose delivery methods and a tracking system",
        "Generate training materials",
    ],
    labels=["agent", "security-policies", "training-program"],
)

CREATE_MAINTENANCE_SCHEDULE = define_task(
    "create-maintenance-schedule",
    MaintenanceSchedule,
    title="Phase 15: Create Maintenance Schedule - {organization}",
    role="Policy Lifecycle Management Specialist",
    task="Create policy review and maintenance schedule",
    instructions=[
        "Create a review schedule for all policies",
        "Assign review owners and define review triggers",
        "Create a maintenance tracking system",
        "Generate the maintenance schedule",
    ],
    labels=["agent", "security-policies", "maintenance-schedule"],
)

MAP_POLICY_TO_FRAMEWORKS = define_task(
    "map-policy-to-frameworks",
    FrameworkMapping,
    title="Phase 16: Map Policy to Frameworks - {organization}",
    role="Framework Mapping Specialist",
    task="Map policies to security frameworks and compliance requirements",
    instructions=[
        "Map policies to ISO 27001 controls, NIST CSF categories and CIS Controls",
        "Map policies to compliance requirements",
        "Calculate coverage percentages",
        "Generate the mapping matrix",
    ],
    labels=["agent", "security-policies", "framework-mapping"],
)

CREATE_POLICY_HANDBOOK = define_task(
    "create-policy-handbook",
    PolicyHandbook,
    title="Phase 17: Create Policy Handbook - {organization}",
    role="Policy Documentation Specialist",
    task="Create comprehensive policy handbook and executive summary",
    instructions=[
        "Compile all policies into the handbook with a table of contents and index",
        "Create the executive summary",
        "Generate a cross-reference matrix",
        "Create language versions when requested",
    ],
    labels=["agent", "security-policies", "policy-handbook"],
)

TASKS = (
    ASSESS_POLICY_FRAMEWORK,
    DESIGN_POLICY_STRUCTURE,
    CREATE_MASTER_SECURITY_POLICY,
    *POLICY_TASKS.values(),
    SETUP_APPROVAL_WORKFLOW,
    CREATE_TRAINING_PROGRAM,
    CREATE_MAINTENANCE_SCHEDULE,
    MAP_POLICY_TO_FRAMEWORKS,
    CREATE_POLICY_HANDBOOK,
)
