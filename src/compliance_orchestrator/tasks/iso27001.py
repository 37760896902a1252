"""Task catalogue for ISO/IEC 27001:2022 ISMS implementation."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from compliance_orchestrator.tasks.base import CheckedOutput, ResultItem, define_task


class Stakeholder(ResultItem):
    name: str = ""
    type: str = ""
    requirements: list[str] = Field(default_factory=list)


class ContextIssue(ResultItem):
    issue: str = ""
    impact: Literal["Low", "Medium", "High"] | None = None


class OrganizationalContext(CheckedOutput):
    isms_scope: str
    stakeholders: list[Stakeholder]
    internal_issues: list[ContextIssue]
    external_issues: list[ContextIssue]
    information_assets: list[dict[str, Any]] = Field(default_factory=list)
    scope_exclusions: list[str] = Field(default_factory=list)


class Role(ResultItem):
    role: str = ""
    responsibilities: list[str] = Field(default_factory=list)
    assigned_to: str = ""


class LeadershipPolicy(CheckedOutput):
    information_security_policy: dict[str, Any]
    roles: list[Role]
    security_objectives: list[str] = Field(default_factory=list)
    policy_path: str | None = None


class IsoGap(ResultItem):
    requirement: str = ""
    clause: str = ""
    status: str = ""
    severity: str = ""
    current_status: str | None = None
    recommendation: str = ""


class IsoGapAnalysis(CheckedOutput):
    total_gaps: int = Field(ge=0)
    current_compliance_level: float = Field(ge=0, le=100)
    gaps: list[IsoGap]
    critical_gaps: int | None = None
    high_gaps: int | None = None


class Risk(ResultItem):
    id: str = ""
    title: str = ""
    asset: str = ""
    threat: str = ""
    vulnerability: str = ""
    likelihood: str = ""
    impact: str = ""
    risk_level: str = ""


class RiskAssessment(CheckedOutput):
    risks: list[Risk]
    total_risks: int = Field(ge=0)
    overall_risk_score: float = Field(ge=0, le=100)
    critical_risks: int | None = None
    high_risks: int | None = None
    risk_register_path: str | None = None
    methodology: str | None = None


class RiskTreatment(ResultItem):
    risk_id: str = ""
    treatment_option: Literal["Modify", "Retain", "Avoid", "Share"] | None = None
    controls: list[str] = Field(default_factory=list)
    owner: str = ""


class RiskTreatmentPlan(CheckedOutput):
    treatments: list[RiskTreatment]
    controls_to_implement: int = Field(ge=0)
    residual_risk_accepted: bool | None = None
    treatment_plan_path: str | None = None


class AnnexAControl(ResultItem):
    control_id: str = ""
    control_name: str = ""
    category: str = ""
    applicability: str = ""
    status: str = ""
    justification: str = ""


class StatementOfApplicability(CheckedOutput):
    controls: list[AnnexAControl]
    applicable_controls: int = Field(ge=0)
    not_applicable_controls: int = Field(ge=0)
    implemented_controls: int | None = None
    planned_controls: int | None = None
    control_coverage: float | None = Field(default=None, ge=0, le=100)
    soa_path: str | None = None


class PolicyDocument(ResultItem):
    policy_name: str = ""
    policy_path: str = ""
    version: str = ""
    owner: str = ""
    approver: str = ""
    review_date: str = ""


class ProcedureDocument(ResultItem):
    procedure_name: str = ""
    procedure_path: str = ""
    related_controls: list[str] = Field(default_factory=list)


class IsmsDocumentation(CheckedOutput):
    isms_manual_path: str
    policies: list[PolicyDocument]
    procedures: list[ProcedureDocument]
    work_instructions: list[dict[str, Any]] = Field(default_factory=list)
    records: list[str] = Field(default_factory=list)


class ImplementationPhase(ResultItem):
    phase: str = ""
    duration: str = ""
    controls: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)


class ControlsImplementationPlan(CheckedOutput):
    phases: list[ImplementationPhase]
    total_actions: int = Field(ge=0)
    estimated_effort: str | None = None
    milestones: list[dict[str, Any]] = Field(default_factory=list)


class CompetenceAwareness(CheckedOutput):
    training_modules: list[dict[str, Any]]
    awareness_campaigns: list[str] = Field(default_factory=list)
    competence_matrix_path: str | None = None


class OperationalPlanning(CheckedOutput):
    operational_procedures: list[dict[str, Any]]
    change_management_process: str | None = None


class MonitoringMeasurement(CheckedOutput):
    kpis: list[dict[str, Any]]
    metrics: list[dict[str, Any]]
    dashboard_path: str | None = None


class InternalAuditProgram(CheckedOutput):
    audit_schedule: list[dict[str, Any]]
    audit_procedure_path: str | None = None
    auditor_competence: list[str] = Field(default_factory=list)


class ManagementReview(CheckedOutput):
    review_frequency: str
    review_inputs: list[str] = Field(default_factory=list)
    review_outputs: list[str] = Field(default_factory=list)


class ContinualImprovement(CheckedOutput):
    nonconformity_procedure_path: str | None = None
    corrective_action_process: str | None = None
    improvement_opportunities: list[str] = Field(default_factory=list)


class ReadinessGap(ResultItem):
    gap: str = ""
    severity: str = ""
    remediation: str = ""


class CertificationPreparation(CheckedOutput):
    readiness_score: float = Field(ge=0, le=100)
    readiness_level: Literal["Not Ready", "Partially Ready", "Ready", "Fully Ready"]
    remaining_actions: int | None = None
    critical_gaps: list[ReadinessGap] = Field(default_factory=list)
    recommendation: str | None = None
    audit_preparation_path: str | None = None


class Milestone(ResultItem):
    milestone: str = ""
    target_date: str = ""
    status: Literal["Not Started", "In Progress", "Completed"] | None = None


class ImplementationRoadmap(CheckedOutput):
    roadmap_path: str
    milestones: list[Milestone]
    total_actions: int = Field(ge=0)
    recommendation: str | None = None


ESTABLISH_ORGANIZATIONAL_CONTEXT = define_task(
    "establish-organizational-context",
    OrganizationalContext,
    title="Establish ISMS context and scope - {organization}",
    role="ISO 27001 Lead Implementer",
    task="Define the ISMS scope and understand the organization and its context (Clause 4)",
    instructions=[
        "Identify internal and external issues relevant to information security",
        "Identify interested parties and their requirements",
        "Define ISMS scope boundaries, interfaces and exclusions",
        "Inventory key information assets with classification",
    ],
    labels=["agent", "iso27001", "context", "clause-4"],
)

ESTABLISH_LEADERSHIP_POLICY = define_task(
    "establish-leadership-policy",
    LeadershipPolicy,
    title="Establish leadership commitment and security policy - {organization}",
    role="ISO 27001 Governance Consultant",
    task="Document leadership commitment, the information security policy and ISMS roles (Clause 5)",
    instructions=[
        "Draft the top-level information security policy",
        "Define roles, responsibilities and authorities for the ISMS",
        "Set measurable information security objectives",
        "Provide policy templates when requested",
    ],
    labels=["agent", "iso27001", "leadership", "clause-5"],
)

CONDUCT_GAP_ANALYSIS = define_task(
    "conduct-gap-analysis",
    IsoGapAnalysis,
    title="Conduct ISO 27001 gap analysis - {organization}",
    role="ISO 27001 Auditor",
    task="Compare current practices and existing controls against ISO 27001 clauses and Annex A",
    instructions=[
        "Assess clauses 4 to 10 and all 93 Annex A controls",
        "Record current status and severity for every gap",
        "Estimate the current compliance level as a percentage",
        "Recommend remediation for each gap",
    ],
    labels=["agent", "iso27001", "gap-analysis"],
)

CONDUCT_RISK_ASSESSMENT = define_task(
    "conduct-risk-assessment",
    RiskAssessment,
    title="Conduct information security risk assessment - {organization}",
    role="Information Security Risk Analyst",
    task="Identify, analyse and evaluate information security risks (Clause 6.1.2)",
    instructions=[
        "Define the risk assessment methodology and acceptance criteria",
        "Identify threats and vulnerabilities per asset",
        "Rate likelihood and impact and derive a risk level",
        "Write the risk register and compute an overall risk score",
    ],
    labels=["agent", "iso27001", "risk-assessment", "clause-6"],
)

DEVELOP_RISK_TREATMENT_PLAN = define_task(
    "develop-risk-treatment-plan",
    RiskTreatmentPlan,
    title="Develop risk treatment plan - {organization}",
    role="Information Security Risk Manager",
    task="Select treatment options and controls for each assessed risk (Clause 6.1.3)",
    instructions=[
        "Choose modify, retain, avoid or share for each risk",
        "Map treatments to Annex A controls, reusing existing controls",
        "Assign risk owners and record residual risk acceptance",
    ],
    labels=["agent", "iso27001", "risk-treatment"],
)

CREATE_STATEMENT_OF_APPLICABILITY = define_task(
    "create-statement-of-applicability",
    StatementOfApplicability,
    title="Create Statement of Applicability - {organization}",
    role="ISO 27001 Controls Specialist",
    task="Produce the Statement of Applicability covering all Annex A controls (Clause 6.1.3d)",
    instructions=[
        "Evaluate organizational, people, physical and technological controls",
        "Justify inclusion or exclusion of each control",
        "Record implementation status of applicable controls",
        "Compute control coverage and write the SOA document",
    ],
    labels=["agent", "iso27001", "soa", "annex-a"],
)

CREATE_ISMS_DOCUMENTATION = define_task(
    "create-isms-documentation",
    IsmsDocumentation,
    title="Create ISMS documentation - {organization}",
    role="ISO 27001 Documentation Specialist",
    task="Create the ISMS manual, policies, procedures and work instructions (Clause 7.5)",
    instructions=[
        "Write the ISMS manual linking context, policy, risk and controls",
        "Create topic-specific policies with owners and review dates",
        "Create procedures and work instructions for applicable controls",
        "Define document control and record retention",
    ],
    labels=["agent", "iso27001", "documentation", "clause-7"],
)

CREATE_CONTROLS_IMPLEMENTATION_PLAN = define_task(
    "create-controls-implementation-plan",
    ControlsImplementationPlan,
    title="Create Annex A controls implementation plan - {organization}",
    role="ISO 27001 Implementation Project Manager",
    task="Plan implementation of applicable controls within the certification timeline",
    instructions=[
        "Group controls into implementation phases by priority and dependency",
        "List actions per phase with owners and effort",
        "Fit the plan into the certification timeline",
    ],
    labels=["agent", "iso27001", "implementation-plan"],
)

DEVELOP_COMPETENCE_AWARENESS_PROGRAM = define_task(
    "develop-competence-awareness-program",
    CompetenceAwareness,
    title="Develop competence and awareness program - {organization}",
    role="Security Awareness Program Manager",
    task="Define competence requirements and awareness training (Clauses 7.2 and 7.3)",
    instructions=[
        "Define competence requirements per ISMS role",
        "Design training modules and awareness campaigns",
        "Define how training effectiveness is recorded",
    ],
    labels=["agent", "iso27001", "competence", "awareness"],
)

ESTABLISH_OPERATIONAL_PLANNING = define_task(
    "establish-operational-planning",
    OperationalPlanning,
    title="Establish ISMS operational planning and control - {organization}",
    role="ISMS Operations Manager",
    task="Establish operational planning and control of ISMS processes (Clause 8)",
    instructions=[
        "Define operational procedures for risk treatment and control operation",
        "Define change management and outsourced process control",
    ],
    labels=["agent", "iso27001", "operations", "clause-8"],
)

ESTABLISH_MONITORING_MEASUREMENT = define_task(
    "establish-monitoring-measurement",
    MonitoringMeasurement,
    title="Establish monitoring and measurement - {organization}",
    role="ISMS Performance Analyst",
    task="Define what is monitored and measured and how results are evaluated (Clause 9.1)",
    instructions=[
        "Define KPIs for security objectives and control effectiveness",
        "Define metrics, data sources, frequency and owners",
        "Design a reporting dashboard",
    ],
    labels=["agent", "iso27001", "monitoring", "clause-9"],
)

ESTABLISH_INTERNAL_AUDIT_PROGRAM = define_task(
    "establish-internal-audit-program",
    InternalAuditProgram,
    title="Establish internal audit program - {organization}",
    role="ISO 27001 Internal Audit Lead",
    task="Plan the internal audit program covering the whole ISMS (Clause 9.2)",
    instructions=[
        "Schedule audits covering all clauses and applicable controls",
        "Define the audit procedure, criteria and auditor independence",
        "Define reporting and follow-up of findings",
    ],
    labels=["agent", "iso27001", "internal-audit"],
)

ESTABLISH_MANAGEMENT_REVIEW = define_task(
    "establish-management-review",
    ManagementReview,
    title="Establish management review process - {organization}",
    role="ISMS Governance Advisor",
    task="Define the management review cadence, inputs and outputs (Clause 9.3)",
    instructions=[
        "Set the review frequency and participants",
        "List required review inputs and expected decisions",
    ],
    labels=["agent", "iso27001", "management-review"],
)

ESTABLISH_CONTINUAL_IMPROVEMENT = define_task(
    "establish-continual-improvement",
    ContinualImprovement,
    title="Establish continual improvement process - {organization}",
    role="ISMS Quality Manager",
    task="Define nonconformity handling, corrective action and improvement (Clause 10)",
    instructions=[
        "Write the nonconformity and corrective action procedure",
        "Define how improvement opportunities are captured and tracked",
    ],
    labels=["agent", "iso27001", "improvement", "clause-10"],
)

PREPARE_CERTIFICATION_AUDIT = define_task(
    "prepare-certification-audit",
    CertificationPreparation,
    title="Prepare for certification audit with {targetCertificationBody} - {organization}",
    role="ISO 27001 Certification Consultant",
    task="Assess readiness for the Stage 1 and Stage 2 certification audits",
    instructions=[
        "Check mandatory documents and records are complete",
        "Confirm an internal audit and a management review have been completed",
        "Score readiness from 0 to 100 and classify the readiness level",
        "List remaining actions and critical gaps with a recommendation",
    ],
    labels=["agent", "iso27001", "certification"],
)

CREATE_IMPLEMENTATION_ROADMAP = define_task(
    "create-implementation-roadmap",
    ImplementationRoadmap,
    title="Create ISMS implementation roadmap - {organization}",
    role="ISO 27001 Program Director",
    task="Consolidate all phases into an implementation roadmap and final report",
    instructions=[
        "Summarize outcomes of every phase",
        "Define major milestones up to certification",
        "Count total actions and give an overall recommendation",
    ],
    labels=["agent", "iso27001", "roadmap"],
)

TASKS = (
    ESTABLISH_ORGANIZATIONAL_CONTEXT,
    ESTABLISH_LEADERSHIP_POLICY,
    CONDUCT_GAP_ANALYSIS,
    CONDUCT_RISK_ASSESSMENT,
    DEVELOP_RISK_TREATMENT_PLAN,
    CREATE_STATEMENT_OF_APPLICABILITY,
    CREATE_ISMS_DOCUMENTATION,
    CREATE_CONTROLS_IMPLEMENTATION_PLAN,
    DEVELOP_COMPETENCE_AWARENESS_PROGRAM,
    ESTABLISH_OPERATIONAL_PLANNING,
    ESTABLISH_MONITORING_MEASUREMENT,
    ESTABLISH_INTERNAL_AUDIT_PROGRAM,
    ESTABLISH_MANAGEMENT_REVIEW,
    ESTABLISH_CONTINUAL_IMPROVEMENT,
    PREPARE_CERTIFICATION_AUDIT,
    CREATE_IMPLEMENTATION_ROADMAP,
)
