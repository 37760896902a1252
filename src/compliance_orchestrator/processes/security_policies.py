"""Security policy documentation suite.

Assess the existing framework and design the document hierarchy, then write
the master policy followed by every policy package whose area is in scope.
Governance (approval workflow, training, maintenance), framework mapping and
the consolidated handbook close the run.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from compliance_orchestrator.executor.base import GateRequest
from compliance_orchestrator.graph.phases import (
    Gate,
    PhaseView,
    ProcessDefinition,
    TaskPhase,
    file_ref,
    files,
)
from compliance_orchestrator.processes.base import ProcessInputs, count, pick
from compliance_orchestrator.tasks import security_policies as tasks

PROCESS_ID = "security-compliance/security-policies"

DEFAULT_POLICY_SCOPE = (
    "information-security",
    "acceptable-use",
    "access-control",
    "data-protection",
    "incident-response",
    "business-continuity",
    "change-management",
    "vendor-management",
    "physical-security",
    "asset-management",
)


class SecurityPoliciesInputs(ProcessInputs):
    organization: str | None = None
    policy_scope: list[str] = Field(default_factory=lambda: list(DEFAULT_POLICY_SCOPE))
    frameworks: list[str] = Field(default_factory=lambda: ["ISO-27001", "NIST-CSF", "CIS-Controls"])
    industry_vertical: str = "general"
    compliance_requirements: list[str] = Field(default_factory=list)
    existing_policies: bool = False
    policy_review_cycle: str = "annual"
    approval_workflow: bool = True
    version_control: bool = True
    employee_acknowledgment: bool = True
    policy_training: bool = True
    organization_size: str = "medium"
    include_standards: bool = True
    include_procedures: bool = True
    include_guidelines: bool = True
    executive_summary: bool = True
    multi_language: bool = False
    languages: list[str] = Field(default_factory=lambda: ["en"])
    output_dir: str = "security-policies-output"


def in_scope(area: tasks.PolicyArea, scope: list[str]) -> bool:
    return any(item in scope for item in area.scopes)


def _area_packages(view: PhaseView, areas=tasks.POLICY_AREAS) -> list[tuple[tasks.PolicyArea, Any]]:
    return [(area, view.result(area.key)) for area in areas if view.ran(area.key)]


def _documents(view: PhaseView, kind: str) -> list[Any]:
    return [doc for _, package in _area_packages(view) for doc in getattr(package, kind)]


def _policies(view: PhaseView) -> list[Any]:
    return [view.result("master_policy").policy, *_documents(view, "policies")]


def _framework_gate(view: PhaseView) -> GateRequest:
    assessment = view.result("framework_assessment")
    return GateRequest.breakpoint(
        "Policy Framework Assessment Review",
        f"Policy framework assessment complete for {view.inputs.organization}. "
        f"{assessment.policies_required} policies required, {assessment.gaps_identified} gaps "
        "identified. Review assessment and approve policy development plan?",
        summary={
            "policiesRequired": assessment.policies_required,
            "gapsIdentified": assessment.gaps_identified,
            "frameworks": view.inputs.frameworks,
            "existingPolicies": view.inputs.existing_policies,
        },
        gaps=assessment.gaps[:10],
        recommendations=assessment.recommendations,
        files=files(view.artifacts),
    )


def _core_policies_gate(view: PhaseView) -> GateRequest:
    packages = _area_packages(view, tasks.CORE_AREAS)
    policies = 1 + sum(count(package.policies) for _, package in packages)
    procedures = sum(count(package.procedures) for _, package in packages)
    by_category = {"master": 1}
    by_category.update({area.key: count(package.policies) for area, package in packages})
    return GateRequest.breakpoint(
        "Core Policies Review",
        f"Core security policies created. {policies} policies, {procedures} procedures. "
        "Review core policies?",
        summary={
            "policiesCreated": policies,
            "proceduresCreated": procedures,
            "standardsCreated": sum(count(package.standards) for _, package in packages),
            "guidelinesCreated": sum(count(package.guidelines) for _, package in packages),
        },
        policiesByCategory=by_category,
        files=files(view.artifacts, limit=20),
    )


def _training_gate(view: PhaseView) -> GateRequest | None:
    program = view.result("training_program")
    if program is None:
        return None
    return GateRequest.breakpoint(
        "Training Program Review",
        f"Policy training program created. {program.training_modules} training modules, "
        f"{program.acknowledgment_forms} acknowledgment forms. Review training materials?",
        summary={
            "trainingModules": program.training_modules,
            "acknowledgmentForms": program.acknowledgment_forms,
            "estimatedDuration": program.estimated_duration,
            "deliveryMethods": program.delivery_methods,
        },
        files=files(view.artifacts[-5:]),
    )


def _final_gate(view: PhaseView) -> GateRequest:
    inputs = view.inputs
    mapping = view.result("framework_mapping")
    handbook = view.result("handbook")
    schedule = view.result("maintenance_schedule")
    policies = _policies(view)
    return GateRequest.breakpoint(
        "Final Policy Suite Review",
        f"Security policy suite complete for {inputs.organization}. {len(policies)} policies, "
        f"{len(_documents(view, 'procedures'))} procedures. Framework coverage: "
        f"{mapping.compliance_coverage}%. Approve policy suite for publication?",
        summary={
            "organization": inputs.organization,
            "policiesCreated": len(policies),
            "proceduresCreated": len(_documents(view, "procedures")),
            "standardsCreated": len(_documents(view, "standards")),
            "guidelinesCreated": len(_documents(view, "guidelines")),
            "frameworksMapped": mapping.frameworks_mapped,
            "complianceCoverage": mapping.compliance_coverage,
            "handbookPages": handbook.handbook_pages,
        },
        files=[
            *file_ref(handbook.handbook_path, "Policy Handbook", "pdf"),
            *file_ref(view.result("master_policy").policy_path, "Master Security Policy"),
            *file_ref(mapping.mapping_matrix_path, "Framework Mapping Matrix", "xlsx"),
            *file_ref(schedule.schedule_path, "Maintenance Schedule", "json"),
        ],
    )


def _document_list(documents: list[Any], *extra: str) -> list[dict[str, Any]]:
    return [
        {
            "name": doc.name,
            "category": doc.category,
            **{key: getattr(doc, key, None) for key in extra},
            "path": doc.path,
        }
        for doc in documents
    ]


def _finalize(view: PhaseView) -> dict[str, Any]:
    inputs = view.inputs
    mapping = view.result("framework_mapping")
    workflow = view.result("approval_workflow")
    training = view.result("training_program")
    schedule = view.result("maintenance_schedule")
    handbook = view.result("handbook")
    policies = _policies(view)
    procedures = _documents(view, "procedures")
    standards = _documents(view, "standards")
    guidelines = _documents(view, "guidelines")
    return {
        "success": True,
        "organization": inputs.organization,
        "policiesCreated": len(policies),
        "proceduresCreated": len(procedures),
        "standardsCreated": len(standards),
        "guidelinesCreated": len(guidelines),
        "totalDocuments": len(policies) + len(procedures) + len(standards) + len(guidelines),
        "policies": _document_list(policies, "version", "status"),
        "procedures": _document_list(procedures, "related_policy"),
        "standards": _document_list(standards),
        "guidelines": _document_list(guidelines),
        "frameworkCoverage": {
            "frameworks": mapping.frameworks_mapped,
            "coverage": mapping.compliance_coverage,
            "controlsMapped": mapping.controls_mapped,
            "mappingMatrixPath": mapping.mapping_matrix_path,
        },
        "approvalWorkflow": (
            {
                "enabled": True,
                "workflowsCreated": workflow.workflows_created,
                "approversAssigned": workflow.approvers_assigned,
            }
            if workflow is not None and inputs.approval_workflow
            else None
        ),
        "trainingProgram": (
            {
                "modules": training.training_modules,
                "acknowledgmentForms": training.acknowledgment_forms,
                "estimatedDuration": training.estimated_duration,
            }
            if training is not None and inputs.policy_training
            else None
        ),
        "maintenanceSchedule": {
            "reviewCycle": inputs.policy_review_cycle,
            "nextReviewDate": schedule.next_review_date,
            "reviewSchedules": schedule.review_schedules,
        },
        "policyHandbook": {
            "path": handbook.handbook_path,
            "pages": handbook.handbook_pages,
            "languages": handbook.language_versions,
            "executiveSummaryPath": handbook.executive_summary_path,
        },
    }


def _metadata(inputs: SecurityPoliciesInputs) -> dict[str, Any]:
    return pick(
        inputs, "policy_scope", "frameworks", "industry_vertical", "organization_size", "output_dir"
    )


def _area_args(area: tasks.PolicyArea):
    def build(view: PhaseView) -> dict[str, Any]:
        return {
            **pick(view.inputs, "organization", "output_dir", *area.extra_args),
            "masterPolicy": view.result("master_policy"),
            "structure": view.result("policy_structure").structure,
            "frameworks": view.inputs.frameworks,
            "complianceRequirements": view.inputs.compliance_requirements,
        }

    return build


def _area_phase(area: tasks.PolicyArea, **extra: Any) -> TaskPhase:
    return TaskPhase(
        area.key,
        tasks.POLICY_TASKS[area.key],
        _area_args(area),
        when=lambda v: in_scope(area, v.inputs.policy_scope),
        announce=f"Phase {area.phase}: Creating {area.title.lower()} policies",
        **extra,
    )


def _all_documents(view: PhaseView) -> dict[str, Any]:
    return {
        "masterPolicy": view.result("master_policy").policy,
        "policies": _documents(view, "policies"),
        "procedures": _documents(view, "procedures"),
        "standards": _documents(view, "standards"),
        "guidelines": _documents(view, "guidelines"),
    }


DEFINITION = ProcessDefinition(
    process_id=PROCESS_ID,
    title="Security Policy Documentation",
    description="Policy, procedure, standard and guideline suite mapped to security frameworks.",
    inputs_model=SecurityPoliciesInputs,
    required=("organization",),
    steps=(
        TaskPhase(
            "framework_assessment",
            tasks.ASSESS_POLICY_FRAMEWORK,
            lambda v: pick(
                v.inputs,
                "organization",
                "policy_scope",
                "frameworks",
                "industry_vertical",
                "compliance_requirements",
                "existing_policies",
                "organization_size",
                "output_dir",
            ),
            gate=_framework_gate,
            announce="Phase 1: Assessing policy framework and identifying gaps",
        ),
        TaskPhase(
            "policy_structure",
            tasks.DESIGN_POLICY_STRUCTURE,
            lambda v: {
                **pick(
                    v.inputs,
                    "organization",
                    "policy_scope",
                    "frameworks",
                    "include_standards",
                    "include_procedures",
                    "include_guidelines",
                    "output_dir",
                ),
                "frameworkAssessment": v.result("framework_assessment"),
            },
            announce="Phase 2: Designing policy hierarchy and structure",
        ),
        TaskPhase(
            "master_policy",
            tasks.CREATE_MASTER_SECURITY_POLICY,
            lambda v: {
                **pick(
                    v.inputs,
                    "organization",
                    "frameworks",
                    "industry_vertical",
                    "organization_size",
                    "compliance_requirements",
                    "output_dir",
                ),
                "structure": v.result("policy_structure").structure,
            },
            announce="Phase 3: Creating Information Security Master Policy",
        ),
        *(_area_phase(area) for area in tasks.CORE_AREAS),
        Gate("core_policies_review", _core_policies_gate),
        *(_area_phase(area) for area in tasks.EXTENDED_AREAS),
        TaskPhase(
            "approval_workflow",
            tasks.SETUP_APPROVAL_WORKFLOW,
            lambda v: {
                **pick(v.inputs, "organization", "version_control", "organization_size", "output_dir"),
                "allPolicies": _all_documents(v),
            },
            when=lambda v: v.inputs.approval_workflow or v.inputs.version_control,
            announce="Phase 13: Setting up approval workflow and version control",
        ),
        TaskPhase(
            "training_program",
            tasks.CREATE_TRAINING_PROGRAM,
            lambda v: {
                **pick(
                    v.inputs,
                    "organization",
                    "employee_acknowledgment",
                    "policy_training",
                    "organization_size",
                    "output_dir",
                ),
                "allPolicies": _all_documents(v),
            },
            when=lambda v: v.inputs.employee_acknowledgment or v.inputs.policy_training,
            gate=_training_gate,
            announce="Phase 14: Creating policy acknowledgment and training program",
        ),
        TaskPhase(
            "maintenance_schedule",
            tasks.CREATE_MAINTENANCE_SCHEDULE,
            lambda v: {
                **pick(v.inputs, "organization", "policy_review_cycle", "output_dir"),
                "allPolicies": _all_documents(v),
            },
            announce="Phase 15: Creating policy review and maintenance schedule",
        ),
        TaskPhase(
            "framework_mapping",
            tasks.MAP_POLICY_TO_FRAMEWORKS,
            lambda v: {
                **pick(v.inputs, "organization", "frameworks", "compliance_requirements", "output_dir"),
                "allPolicies": _all_documents(v),
            },
            announce="Phase 16: Mapping policies to security frameworks",
        ),
        TaskPhase(
            "handbook",
            tasks.CREATE_POLICY_HANDBOOK,
            lambda v: {
                **pick(
                    v.inputs,
                    "organization",
                    "executive_summary",
                    "multi_language",
                    "languages",
                    "output_dir",
                ),
                "allPolicies": _all_documents(v),
                "frameworkMapping": v.result("framework_mapping"),
            },
            announce="Phase 17: Creating policy handbook and executive summary",
        ),
        Gate("final_review", _final_gate),
    ),
    finalize=_finalize,
    metadata=_metadata,
    labels=("security-compliance", "security-policies"),
)
