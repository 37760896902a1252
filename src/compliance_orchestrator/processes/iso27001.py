"""ISO/IEC 27001:2022 ISMS implementation, clause by clause."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from compliance_orchestrator.executor.base import GateRequest
from compliance_orchestrator.graph.phases import Gate, PhaseView, ProcessDefinition, TaskPhase, file_ref
from compliance_orchestrator.processes.base import ProcessInputs, count, pick
from compliance_orchestrator.tasks import iso27001 as tasks

PROCESS_ID = "security-compliance/iso27001-implementation"

# step name -> (phase label, ISO clause)
PHASE_CLAUSES: dict[str, tuple[str, str | None]] = {
    "context": ("context-establishment", "4"),
    "leadership": ("leadership-policy", "5"),
    "gap_analysis": ("gap-analysis", None),
    "risk_assessment": ("risk-assessment", "6.1"),
    "risk_treatment": ("risk-treatment-plan", "6.1.3"),
    "soa": ("statement-of-applicability", "6.1.3d"),
    "isms_documentation": ("isms-documentation", "7.5"),
    "controls_plan": ("controls-implementation-plan", None),
    "competence": ("competence-awareness", "7.2-7.3"),
    "operations": ("operational-planning", "8"),
    "monitoring": ("monitoring-measurement", "9.1"),
    "internal_audit": ("internal-audit-program", "9.2"),
    "management_review": ("management-review", "9.3"),
    "improvement": ("continual-improvement", "10"),
    "certification": ("certification-preparation", None),
}


class Iso27001Inputs(ProcessInputs):
    organization: str | None = None
    scope: str | None = None
    industry: str = "general"
    certification_timeline: str = "12-months"
    existing_controls: dict[str, Any] = Field(default_factory=dict)
    implementation_depth: str = "standard"
    target_certification_body: str = "ISO-Accredited"
    output_dir: str = "iso27001-implementation-output"
    include_audit_preparation: bool = True
    generate_policies_templates: bool = True
    include_gap_analysis: bool = True


def _readiness(view: PhaseView) -> float:
    preparation = view.result("certification")
    return preparation.readiness_score if preparation is not None else 0


def _phase_log(view: PhaseView) -> list[dict[str, Any]]:
    log = []
    for step, (phase, clause) in PHASE_CLAUSES.items():
        if not view.ran(step):
            continue
        entry: dict[str, Any] = {"phase": phase, "result": view.result(step)}
        if clause:
            entry["clause"] = clause
        log.append(entry)
    return log


def _context_gate(view: PhaseView) -> GateRequest:
    context = view.result("context")
    return GateRequest.breakpoint(
        "ISMS Context Establishment Review",
        f'ISMS context established for {view.inputs.organization}. Scope: "{context.isms_scope}". '
        f"Identified {len(context.stakeholders)} stakeholders. Review context?",
        organization=view.inputs.organization,
        ismsScope=context.isms_scope,
        stakeholders=len(context.stakeholders),
        internalIssues=len(context.internal_issues),
        externalIssues=len(context.external_issues),
    )


def _gap_gate(view: PhaseView) -> GateRequest:
    gaps = view.result("gap_analysis")
    return GateRequest.breakpoint(
        "Gap Analysis Review",
        f"Gap analysis complete. {gaps.total_gaps} gaps identified ({gaps.critical_gaps or 0} critical). "
        f"Compliance: {gaps.current_compliance_level}%. Review gaps?",
        totalGaps=gaps.total_gaps,
        criticalGaps=gaps.critical_gaps,
        highGaps=gaps.high_gaps,
        currentCompliance=gaps.current_compliance_level,
    )


def _risk_gate(view: PhaseView) -> GateRequest:
    risk = view.result("risk_assessment")
    return GateRequest.breakpoint(
        "Risk Assessment Review",
        f"Risk assessment complete. {risk.total_risks} risks identified. "
        f"Critical: {risk.critical_risks or 0}, High: {risk.high_risks or 0}. "
        f"Overall risk score: {risk.overall_risk_score}/100. Review risks?",
        totalRisks=risk.total_risks,
        criticalRisks=risk.critical_risks,
        highRisks=risk.high_risks,
        overallRiskScore=risk.overall_risk_score,
    )


def _soa_gate(view: PhaseView) -> GateRequest:
    soa = view.result("soa")
    return GateRequest.breakpoint(
        "Statement of Applicability Review",
        f"Statement of Applicability (SOA) created. {soa.applicable_controls} applicable controls, "
        f"{soa.not_applicable_controls} not applicable. Control coverage: {soa.control_coverage}%. "
        "Review SOA?",
        applicableControls=soa.applicable_controls,
        notApplicableControls=soa.not_applicable_controls,
        implementedControls=soa.implemented_controls,
        plannedControls=soa.planned_controls,
        controlCoverage=soa.control_coverage,
    )


def _controls_plan_gate(view: PhaseView) -> GateRequest:
    plan = view.result("controls_plan")
    timeline = view.inputs.certification_timeline
    return GateRequest.breakpoint(
        "Controls Implementation Plan Review",
        f"Controls implementation plan created. {plan.total_actions} actions across "
        f"{len(plan.phases)} phases. Timeline: {timeline}. Review plan?",
        totalActions=plan.total_actions,
        phases=len(plan.phases),
        estimatedEffort=plan.estimated_effort,
        timeline=timeline,
    )


def _certification_gate(view: PhaseView) -> GateRequest:
    preparation = view.result("certification")
    return GateRequest.breakpoint(
        "Certification Readiness Review",
        f"Certification audit preparation complete. Readiness score: {preparation.readiness_score}/100. "
        f"Status: {preparation.readiness_level}. {preparation.remaining_actions or 0} remaining actions. "
        "Proceed with certification?",
        readinessScore=preparation.readiness_score,
        readinessLevel=preparation.readiness_level,
        remainingActions=preparation.remaining_actions,
        criticalGaps=preparation.critical_gaps,
        recommendation=preparation.recommendation,
    )


def _final_gate(view: PhaseView) -> GateRequest:
    inputs = view.inputs
    soa = view.result("soa")
    risk = view.result("risk_assessment")
    roadmap = view.result("roadmap")
    documentation = view.result("isms_documentation")
    preparation = view.result("certification")
    readiness = _readiness(view)
    return GateRequest.breakpoint(
        "Final ISO 27001 Implementation Review",
        f"ISO 27001 Implementation planning complete for {inputs.organization}. Certification readiness: "
        f"{readiness}/100. {soa.applicable_controls} controls to implement. "
        f"Timeline: {inputs.certification_timeline}. Approve implementation plan?",
        summary={
            **pick(inputs, "organization", "scope"),
            "certificationReadiness": readiness,
            "applicableControls": soa.applicable_controls,
            "totalRisks": risk.total_risks,
            "criticalRisks": risk.critical_risks,
            "implementationActions": roadmap.total_actions,
            "milestones": len(roadmap.milestones),
            "estimatedTimeline": inputs.certification_timeline,
        },
        recommendation=roadmap.recommendation,
        files=[
            *file_ref(roadmap.roadmap_path, "ISMS Implementation Roadmap"),
            *file_ref(soa.soa_path, "Statement of Applicability", "json"),
            *file_ref(risk.risk_register_path, "Risk Register", "json"),
            *file_ref(documentation.isms_manual_path, "ISMS Manual"),
            *file_ref(
                preparation.audit_preparation_path if preparation else None,
                "Certification Audit Preparation",
            ),
        ],
    )


def _finalize(view: PhaseView) -> dict[str, Any]:
    inputs = view.inputs
    documentation = view.result("isms_documentation")
    risk = view.result("risk_assessment")
    soa = view.result("soa")
    plan = view.result("controls_plan")
    preparation = view.result("certification")
    gaps = view.result("gap_analysis")
    roadmap = view.result("roadmap")
    return {
        "success": True,
        **pick(inputs, "organization", "scope", "industry"),
        "certificationReadiness": _readiness(view),
        "ismsDocumentation": {
            "ismsManualPath": documentation.isms_manual_path,
            "policies": documentation.policies,
            "procedures": documentation.procedures,
            "workInstructions": documentation.work_instructions,
        },
        "riskAssessment": {
            "totalRisks": risk.total_risks,
            "criticalRisks": risk.critical_risks,
            "highRisks": risk.high_risks,
            "overallRiskScore": risk.overall_risk_score,
            "riskRegisterPath": risk.risk_register_path,
        },
        "annexAControls": {
            "applicableControls": soa.applicable_controls,
            "notApplicableControls": soa.not_applicable_controls,
            "implementedControls": soa.implemented_controls,
            "plannedControls": soa.planned_controls,
            "controlCoverage": soa.control_coverage,
            "soaPath": soa.soa_path,
        },
        "implementationPlan": {
            "totalActions": plan.total_actions,
            "phases": plan.phases,
            "estimatedEffort": plan.estimated_effort,
            "timeline": inputs.certification_timeline,
        },
        "certificationPreparation": (
            {
                "readinessScore": preparation.readiness_score,
                "readinessLevel": preparation.readiness_level,
                "remainingActions": preparation.remaining_actions,
                "criticalGaps": preparation.critical_gaps,
                "auditPreparationPath": preparation.audit_preparation_path,
            }
            if preparation is not None
            else None
        ),
        "gapAnalysis": (
            {
                "totalGaps": gaps.total_gaps,
                "criticalGaps": gaps.critical_gaps,
                "currentComplianceLevel": gaps.current_compliance_level,
            }
            if gaps is not None
            else None
        ),
        "roadmap": {
            "milestones": roadmap.milestones,
            "totalActions": roadmap.total_actions,
            "roadmapPath": roadmap.roadmap_path,
            "completedPhases": count(_phase_log(view)),
        },
    }


def _metadata(inputs: Iso27001Inputs) -> dict[str, Any]:
    return pick(inputs, "implementation_depth", "target_certification_body", "output_dir")


DEFINITION = ProcessDefinition(
    process_id=PROCESS_ID,
    title="ISO 27001 Implementation",
    description="ISMS design from context and risk assessment through certification readiness.",
    inputs_model=Iso27001Inputs,
    required=("organization",),
    steps=(
        TaskPhase(
            "context",
            tasks.ESTABLISH_ORGANIZATIONAL_CONTEXT,
            lambda v: pick(v.inputs, "organization", "scope", "industry", "implementation_depth", "output_dir"),
            gate=_context_gate,
            announce="Phase 1: Establishing ISMS scope and organizational context (ISO 27001 Clause 4)",
        ),
        TaskPhase(
            "leadership",
            tasks.ESTABLISH_LEADERSHIP_POLICY,
            lambda v: {
                **pick(v.inputs, "organization", "scope", "generate_policies_templates", "output_dir"),
                "contextEstablishment": v.result("context"),
            },
            announce="Phase 2: Establishing leadership commitment and information security policy (ISO 27001 Clause 5)",
        ),
        TaskPhase(
            "gap_analysis",
            tasks.CONDUCT_GAP_ANALYSIS,
            lambda v: {
                **pick(v.inputs, "organization", "scope", "existing_controls", "output_dir"),
                "contextEstablishment": v.result("context"),
            },
            when=lambda v: v.inputs.include_gap_analysis,
            gate=_gap_gate,
            announce="Phase 3: Conducting ISO 27001 gap analysis",
        ),
        TaskPhase(
            "risk_assessment",
            tasks.CONDUCT_RISK_ASSESSMENT,
            lambda v: {
                **pick(v.inputs, "organization", "scope", "industry", "implementation_depth", "output_dir"),
                "contextEstablishment": v.result("context"),
                "gapAnalysis": v.result("gap_analysis"),
            },
            gate=_risk_gate,
            announce="Phase 4: Conducting information security risk assessment (ISO 27001 Clause 6.1)",
        ),
        TaskPhase(
            "risk_treatment",
            tasks.DEVELOP_RISK_TREATMENT_PLAN,
            lambda v: {
                **pick(v.inputs, "organization", "existing_controls", "output_dir"),
                "riskAssessment": v.result("risk_assessment"),
            },
            announce="Phase 5: Developing risk treatment plan (ISO 27001 Clause 6.1.3)",
        ),
        TaskPhase(
            "soa",
            tasks.CREATE_STATEMENT_OF_APPLICABILITY,
            lambda v: {
                **pick(
                    v.inputs,
                    "organization",
                    "scope",
                    "existing_controls",
                    "industry",
                    "implementation_depth",
                    "output_dir",
                ),
                "riskAssessment": v.result("risk_assessment"),
                "riskTreatmentPlan": v.result("risk_treatment"),
            },
            gate=_soa_gate,
            announce="Phase 6: Creating Statement of Applicability (SOA) - Annex A controls selection",
        ),
        TaskPhase(
            "isms_documentation",
            tasks.CREATE_ISMS_DOCUMENTATION,
            lambda v: {
                **pick(
                    v.inputs,
                    "organization",
                    "scope",
                    "generate_policies_templates",
                    "implementation_depth",
                    "output_dir",
                ),
                "contextEstablishment": v.result("context"),
                "leadershipPolicy": v.result("leadership"),
                "riskAssessment": v.result("risk_assessment"),
                "riskTreatmentPlan": v.result("risk_treatment"),
                "statementOfApplicability": v.result("soa"),
            },
            announce="Phase 7: Creating ISMS documentation and procedures (ISO 27001 Clause 7.5)",
        ),
        TaskPhase(
            "controls_plan",
            tasks.CREATE_CONTROLS_IMPLEMENTATION_PLAN,
            lambda v: {
                **pick(v.inputs, "organization", "certification_timeline", "output_dir"),
                "statementOfApplicability": v.result("soa"),
                "riskTreatmentPlan": v.result("risk_treatment"),
            },
            gate=_controls_plan_gate,
            announce="Phase 8: Creating Annex A controls implementation plan",
        ),
        TaskPhase(
            "competence",
            tasks.DEVELOP_COMPETENCE_AWARENESS_PROGRAM,
            lambda v: {
                **pick(v.inputs, "organization", "scope", "output_dir"),
                "statementOfApplicability": v.result("soa"),
            },
            announce="Phase 9: Developing competence and awareness program (ISO 27001 Clause 7.2 & 7.3)",
        ),
        TaskPhase(
            "operations",
            tasks.ESTABLISH_OPERATIONAL_PLANNING,
            lambda v: {
                **pick(v.inputs, "organization", "scope", "output_dir"),
                "riskTreatmentPlan": v.result("risk_treatment"),
                "statementOfApplicability": v.result("soa"),
            },
            announce="Phase 10: Establishing ISMS operational planning and control (ISO 27001 Clause 8)",
        ),
        TaskPhase(
            "monitoring",
            tasks.ESTABLISH_MONITORING_MEASUREMENT,
            lambda v: {
                **pick(v.inputs, "organization", "output_dir"),
                "statementOfApplicability": v.result("soa"),
                "riskAssessment": v.result("risk_assessment"),
            },
            announce="Phase 11: Establishing monitoring, measurement, and analysis (ISO 27001 Clause 9.1)",
        ),
        TaskPhase(
            "internal_audit",
            tasks.ESTABLISH_INTERNAL_AUDIT_PROGRAM,
            lambda v: {
                **pick(v.inputs, "organization", "scope", "include_audit_preparation", "output_dir"),
                "statementOfApplicability": v.result("soa"),
            },
            announce="Phase 12: Establishing internal audit program (ISO 27001 Clause 9.2)",
        ),
        TaskPhase(
            "management_review",
            tasks.ESTABLISH_MANAGEMENT_REVIEW,
            lambda v: {
                **pick(v.inputs, "organization", "scope", "output_dir"),
                "riskAssessment": v.result("risk_assessment"),
                "statementOfApplicability": v.result("soa"),
            },
            announce="Phase 13: Establishing management review process (ISO 27001 Clause 9.3)",
        ),
        TaskPhase(
            "improvement",
            tasks.ESTABLISH_CONTINUAL_IMPROVEMENT,
            lambda v: {
                **pick(v.inputs, "organization", "scope", "output_dir"),
                "riskAssessment": v.result("risk_assessment"),
            },
            announce="Phase 14: Establishing continual improvement process (ISO 27001 Clause 10)",
        ),
        TaskPhase(
            "certification",
            tasks.PREPARE_CERTIFICATION_AUDIT,
            lambda v: {
                **pick(
                    v.inputs,
                    "organization",
                    "scope",
                    "target_certification_body",
                    "certification_timeline",
                    "output_dir",
                ),
                "contextEstablishment": v.result("context"),
                "leadershipPolicy": v.result("leadership"),
                "riskAssessment": v.result("risk_assessment"),
                "statementOfApplicability": v.result("soa"),
                "ismsDocumentation": v.result("isms_documentation"),
                "internalAuditProgram": v.result("internal_audit"),
                "managementReview": v.result("management_review"),
            },
            when=lambda v: v.inputs.include_audit_preparation,
            gate=_certification_gate,
            announce="Phase 15: Preparing for certification audit",
        ),
        TaskPhase(
            "roadmap",
            tasks.CREATE_IMPLEMENTATION_ROADMAP,
            lambda v: {
                **pick(v.inputs, "organization", "scope", "certification_timeline", "output_dir"),
                "contextEstablishment": v.result("context"),
                "gapAnalysis": v.result("gap_analysis"),
                "riskAssessment": v.result("risk_assessment"),
                "statementOfApplicability": v.result("soa"),
                "controlsImplementationPlan": v.result("controls_plan"),
                "certificationPreparation": v.result("certification"),
                "phases": _phase_log(v),
            },
            announce="Phase 16: Creating ISMS implementation roadmap and final report",
        ),
        Gate("final_review", _final_gate),
    ),
    finalize=_finalize,
    metadata=_metadata,
    labels=("iso27001", "isms", "certification"),
)
