"""Data classification and handling framework.

Discovery and policy definition always run; each protective control
(labeling, encryption, DLP, retention, lineage, audit, breach plan) is
switched by its own flag. The classification score is the sum of the points
reported by the phases that ran, capped at 100.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import Field

from compliance_orchestrator.executor.base import GateRequest
from compliance_orchestrator.graph.phases import Gate, PhaseView, ProcessDefinition, TaskPhase, files
from compliance_orchestrator.processes.base import ProcessInputs, pick
from compliance_orchestrator.tasks import data_classification as tasks

PROCESS_ID = "security-compliance/data-classification"

SCORE_FIELDS = {
    "discovery": "discovery_score",
    "policy": "policy_score",
    "classification": "classification_score",
    "labeling": "labeling_score",
    "access_control": "access_score",
    "encryption": "encryption_score",
    "dlp": "dlp_score",
    "retention": "retention_score",
    "lineage": "lineage_score",
    "audit": "audit_score",
    "compliance": "compliance_score",
    "breach_plan": "breach_plan_score",
    "monitoring": "monitoring_score",
}

FINAL_REVIEW_FILE_LIMIT = 20


def _default_integrations() -> dict[str, list[str]]:
    return {
        "dlp": ["microsoft-purview", "symantec-dlp", "forcepoint"],
        "siem": ["splunk", "elastic"],
        "cloudProviders": ["aws", "azure", "gcp"],
    }


class DataClassificationInputs(ProcessInputs):
    project_name: str | None = None
    environment: str = "production"
    compliance_frameworks: list[str] = Field(default_factory=lambda: ["GDPR", "SOC2"])
    systems: list[str] = Field(default_factory=list)
    classification_levels: list[str] = Field(
        default_factory=lambda: ["public", "internal", "confidential", "restricted"]
    )
    enable_automated_classification: bool = True
    enable_dlp: bool = Field(default=True, alias="enableDLP")
    enable_encryption: bool = True
    data_types: list[str] = Field(default_factory=lambda: ["pii", "financial", "customer-data"])
    retention_policies: bool = True
    access_control_model: str = "rbac"
    audit_logging: bool = True
    output_dir: str = "data-classification-output"
    enable_data_lineage: bool = True
    enable_masking: bool = True
    enable_tokenization: bool = False
    geographic_regions: list[str] = Field(default_factory=lambda: ["US", "EU"])
    data_residency_requirements: bool = True
    breach_notification_plan: bool = True
    data_minimization: bool = True
    automatic_labeling: bool = True
    ml_classification: bool = False
    scan_frequency: str = "daily"
    integrations: dict[str, Any] = Field(default_factory=_default_integrations)


def classification_score(view: PhaseView) -> int:
    total = sum(
        getattr(view.result(step), field, 0) or 0
        for step, field in SCORE_FIELDS.items()
        if view.ran(step)
    )
    # Halves round up.
    return min(100, math.floor(total + 0.5))


def _assets(view: PhaseView) -> list[Any]:
    return view.result("discovery").data_assets_list


def _discovery_gate(view: PhaseView) -> GateRequest:
    discovery = view.result("discovery")
    return GateRequest.breakpoint(
        "Data Discovery Review",
        f"Data discovery complete for {view.inputs.project_name}. Identified "
        f"{discovery.total_data_assets} data assets across {len(discovery.data_stores)} data stores. "
        f"Sensitive data found: {discovery.sensitive_data_assets}. Review inventory before classification?",
        discovery={
            "totalDataAssets": discovery.total_data_assets,
            "dataStores": len(discovery.data_stores),
            "sensitiveDataAssets": discovery.sensitive_data_assets,
            "dataTypes": discovery.data_types_found,
            "geographicDistribution": discovery.geographic_distribution,
        },
    )


def _policy_gate(view: PhaseView) -> GateRequest:
    policy = view.result("policy")
    levels = view.inputs.classification_levels
    return GateRequest.breakpoint(
        "Classification Policy Review",
        f"Classification policies created for {view.inputs.project_name}. Defined "
        f"{policy.policies_created} policies across {len(levels)} levels. Each level has handling "
        "procedures, access controls, and retention rules. Review policies before applying?",
        policies={
            "policiesCreated": policy.policies_created,
            "classificationLevels": levels,
            "handlingProcedures": len(policy.handling_procedures),
            "encryptionRequirements": policy.encryption_requirements,
            "retentionRules": len(policy.retention_rules),
        },
    )


def _classification_gate(view: PhaseView) -> GateRequest:
    result = view.result("classification")
    return GateRequest.breakpoint(
        "Automated Classification Review",
        f"Automated classification complete for {view.inputs.project_name}. Classified "
        f"{result.classified_assets} assets: Public ({result.public_assets}), Internal "
        f"({result.internal_assets}), Confidential ({result.confidential_assets}), Restricted "
        f"({result.restricted_assets}). Accuracy: {result.confidence_score}%. Review classifications?",
        classification={
            "classifiedAssets": result.classified_assets,
            "public": result.public_assets,
            "internal": result.internal_assets,
            "confidential": result.confidential_assets,
            "restricted": result.restricted_assets,
            "confidenceScore": result.confidence_score,
            "manualReviewRequired": result.manual_review_required,
        },
    )


def _labeling_gate(view: PhaseView) -> GateRequest:
    result = view.result("labeling")
    systems = len(view.inputs.systems)
    return GateRequest.breakpoint(
        "Labeling and Tagging Review",
        f"Labeling complete for {view.inputs.project_name}. Applied {result.labels_applied} labels to "
        f"{result.assets_labeled} assets across {systems} systems. Label consistency: "
        f"{result.consistency_score}%. Review labeling implementation?",
        labeling={
            "assetsLabeled": result.assets_labeled,
            "labelsApplied": result.labels_applied,
            "consistencyScore": result.consistency_score,
            "systemsCovered": systems,
            "labelingMechanisms": result.labeling_mechanisms,
        },
    )


def _access_gate(view: PhaseView) -> GateRequest:
    result = view.result("access_control")
    model = view.inputs.access_control_model
    return GateRequest.breakpoint(
        "Access Control Review",
        f"Access control implementation complete for {view.inputs.project_name}. Created "
        f"{result.policies_created} policies and {result.roles_created} roles using {model}. "
        f"Least-privilege compliance: {result.least_privilege_score}%. Review access controls?",
        accessControl={
            "model": model,
            "policiesCreated": result.policies_created,
            "rolesCreated": result.roles_created,
            "permissionsConfigured": result.permissions_configured,
            "leastPrivilegeScore": result.least_privilege_score,
            "separationOfDuties": result.separation_of_duties_implemented,
        },
    )


def _encryption_gate(view: PhaseView) -> GateRequest:
    result = view.result("encryption")
    return GateRequest.breakpoint(
        "Encryption Implementation Review",
        f"Encryption implementation complete for {view.inputs.project_name}. Encrypted "
        f"{result.encrypted_assets} assets using {', '.join(result.encryption_algorithms)}. "
        f"At-rest: {result.at_rest_encrypted}, In-transit: {result.in_transit_encrypted}, "
        f"Masking: {result.masked_fields}. Review encryption strategy?",
        encryption={
            "encryptedAssets": result.encrypted_assets,
            "atRestEncrypted": result.at_rest_encrypted,
            "inTransitEncrypted": result.in_transit_encrypted,
            "maskedFields": result.masked_fields,
            "tokenizedFields": result.tokenized_fields,
            "keyManagementSystems": result.key_management_configured,
            "encryptionAlgorithms": result.encryption_algorithms,
        },
    )


def _dlp_gate(view: PhaseView) -> GateRequest:
    result = view.result("dlp")
    return GateRequest.breakpoint(
        "Data Loss Prevention Review",
        f"DLP implementation complete for {view.inputs.project_name}. Configured {result.dlp_policies} "
        f"policies across {result.monitoring_channels} channels. Prevention rules: "
        f"{result.prevention_rules}, Detection rules: {result.detection_rules}. Incidents detected: "
        f"{result.incidents_detected}. Review DLP configuration?",
        dlp={
            "dlpPolicies": result.dlp_policies,
            "monitoringChannels": result.monitoring_channels,
            "preventionRules": result.prevention_rules,
            "detectionRules": result.detection_rules,
            "incidentsDetected": result.incidents_detected,
            "dlpTools": result.dlp_tools_configured,
        },
    )


def _retention_gate(view: PhaseView) -> GateRequest:
    result = view.result("retention")
    return GateRequest.breakpoint(
        "Retention and Disposal Review",
        f"Retention policies configured for {view.inputs.project_name}. Created "
        f"{result.retention_policies} policies covering {result.assets_with_retention} assets. "
        f"Scheduled disposals: {result.scheduled_disposals}, Compliance-driven: "
        f"{result.compliance_driven_policies}. Review retention strategy?",
        retention={
            "retentionPolicies": result.retention_policies,
            "assetsWithRetention": result.assets_with_retention,
            "scheduledDisposals": result.scheduled_disposals,
            "complianceDrivenPolicies": result.compliance_driven_policies,
            "secureDisposalMethods": result.secure_disposal_methods,
        },
    )


def _lineage_gate(view: PhaseView) -> GateRequest:
    result = view.result("lineage")
    return GateRequest.breakpoint(
        "Data Lineage Review",
        f"Data lineage tracking configured for {view.inputs.project_name}. Mapped "
        f"{result.lineage_mapped} assets with {result.data_flows} data flows. Upstream dependencies: "
        f"{result.upstream_dependencies}, Downstream consumers: {result.downstream_consumers}. "
        "Review lineage mapping?",
        lineage={
            "lineageMapped": result.lineage_mapped,
            "dataFlows": result.data_flows,
            "upstreamDependencies": result.upstream_dependencies,
            "downstreamConsumers": result.downstream_consumers,
            "lineageVisualization": result.visualization_created,
        },
    )


def _audit_gate(view: PhaseView) -> GateRequest:
    result = view.result("audit")
    return GateRequest.breakpoint(
        "Audit Logging Review",
        f"Audit logging configured for {view.inputs.project_name}. Implemented {result.audit_policies} "
        f"policies with {result.monitoring_rules} monitoring rules and {result.alerts_configured} alerts. "
        f"Retention: {result.retention_days} days. Review audit strategy?",
        audit={
            "auditPolicies": result.audit_policies,
            "monitoringRules": result.monitoring_rules,
            "alertsConfigured": result.alerts_configured,
            "retentionDays": result.retention_days,
            "siemIntegration": result.siem_integrated,
            "complianceCompliant": result.compliance_compliant,
        },
    )


def _compliance_gate(view: PhaseView) -> GateRequest:
    result = view.result("compliance")
    frameworks = len(view.inputs.compliance_frameworks)
    follow_up = (
        "Review compliance gaps and remediation plan?"
        if result.compliance_gaps
        else "All compliance requirements met!"
    )
    return GateRequest.breakpoint(
        "Compliance Validation Review",
        f"Compliance validation complete for {view.inputs.project_name}. "
        f"{result.frameworks_compliant}/{frameworks} frameworks compliant. "
        f"Gaps: {len(result.compliance_gaps)}. {follow_up}",
        compliance={
            "frameworksCompliant": result.frameworks_compliant,
            "totalFrameworks": frameworks,
            "complianceStatus": result.compliance_status,
            "gaps": result.compliance_gaps,
            "remediationPlan": result.remediation_plan,
            "auditReady": result.audit_ready,
        },
    )


def _breach_gate(view: PhaseView) -> GateRequest:
    result = view.result("breach_plan")
    return GateRequest.breakpoint(
        "Breach Notification Plan Review",
        f"Breach notification plan created for {view.inputs.project_name}. Defined "
        f"{result.notification_procedures} procedures for {len(view.inputs.geographic_regions)} regions. "
        f"Response time requirements: {result.response_time_requirements}. Stakeholders: "
        f"{result.stakeholders_identified}. Review breach response plan?",
        breachPlan={
            "notificationProcedures": result.notification_procedures,
            "stakeholdersIdentified": result.stakeholders_identified,
            "responseTimeRequirements": result.response_time_requirements,
            "complianceAligned": result.compliance_aligned,
            "testingSchedule": result.testing_schedule,
        },
    )


def _final_gate(view: PhaseView) -> GateRequest:
    inputs = view.inputs
    score = classification_score(view)
    discovery = view.result("discovery")
    policy = view.result("policy")
    compliance = view.result("compliance")
    return GateRequest.breakpoint(
        "Data Classification Framework Complete",
        f"Data Classification and Handling Framework complete for {inputs.project_name}! "
        f"Classification Score: {score}/100. Classified {discovery.total_data_assets} data assets with "
        f"{policy.policies_created} policies. Compliance: {compliance.frameworks_compliant}/"
        f"{len(inputs.compliance_frameworks)} frameworks. Review final summary and approve for production?",
        summary={
            **pick(inputs, "project_name", "environment", "classification_levels"),
            "dataAssets": discovery.total_data_assets,
            "classificationPolicies": policy.policies_created,
            "classificationScore": score,
            "complianceStatus": compliance.compliance_status,
            "systems": len(inputs.systems),
            "artifactsGenerated": len(view.artifacts),
        },
        capabilities={
            "automatedClassification": inputs.enable_automated_classification,
            "dlp": inputs.enable_dlp,
            "encryption": inputs.enable_encryption,
            "dataLineage": inputs.enable_data_lineage,
            "auditLogging": inputs.audit_logging,
            "retentionPolicies": inputs.retention_policies,
            "breachNotificationPlan": inputs.breach_notification_plan,
        },
        recommendations={
            "immediate": [
                "Review and validate data classifications",
                "Test DLP policies with controlled scenarios",
                "Train users on data handling procedures",
                "Verify encryption implementations",
                "Conduct access control review",
            ],
            "ongoing": [
                "Monitor classification accuracy and adjust ML models",
                "Review audit logs daily for anomalies",
                "Update retention policies based on compliance changes",
                "Conduct quarterly data classification audits",
                "Refresh training materials annually",
                "Test breach notification procedures semi-annually",
            ],
        },
        files=files(view.artifacts, limit=FINAL_REVIEW_FILE_LIMIT),
    )


def _finalize(view: PhaseView) -> dict[str, Any]:
    inputs = view.inputs
    policies = view.result("policy").policies_created
    return {
        "success": True,
        "classificationScore": classification_score(view),
        "dataAssets": view.result("discovery").total_data_assets,
        "classificationPolicies": policies,
        "classificationLevels": inputs.classification_levels,
        "complianceStatus": view.result("compliance").compliance_status,
        "environment": inputs.environment,
        "systems": len(inputs.systems),
        "summary": {
            "dataDiscoveryCompleted": True,
            "policiesCreated": policies > 0,
            "automatedClassification": view.ran("classification"),
            "labelingImplemented": view.ran("labeling"),
            "accessControlsConfigured": True,
            "encryptionImplemented": view.ran("encryption"),
            "dlpConfigured": view.ran("dlp"),
            "retentionPoliciesCreated": view.ran("retention"),
            "dataLineageTracked": view.ran("lineage"),
            "auditLoggingEnabled": view.ran("audit"),
            "complianceValidated": True,
            "breachPlanCreated": view.ran("breach_plan"),
            "continuousMonitoringEnabled": True,
        },
    }


def _metadata(inputs: DataClassificationInputs) -> dict[str, Any]:
    return pick(inputs, "environment", "output_dir", "compliance_frameworks")


DEFINITION = ProcessDefinition(
    process_id=PROCESS_ID,
    title="Data Classification and Handling Framework",
    description="Discovery, classification and protective controls for sensitive data.",
    inputs_model=DataClassificationInputs,
    required=("project_name",),
    steps=(
        TaskPhase(
            "discovery",
            tasks.DATA_DISCOVERY,
            lambda v: pick(
                v.inputs,
                "project_name",
                "systems",
                "environment",
                "data_types",
                "geographic_regions",
                "enable_automated_classification",
                "scan_frequency",
                "output_dir",
            ),
            gate=_discovery_gate,
            announce="Phase 1: Discovering and inventorying data assets",
        ),
        TaskPhase(
            "policy",
            tasks.CLASSIFICATION_POLICY,
            lambda v: pick(
                v.inputs,
                "project_name",
                "classification_levels",
                "data_types",
                "compliance_frameworks",
                "access_control_model",
                "enable_encryption",
                "retention_policies",
                "output_dir",
            ),
            gate=_policy_gate,
            announce="Phase 2: Defining data classification policies and levels",
        ),
        TaskPhase(
            "classification",
            tasks.AUTOMATED_CLASSIFICATION,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "classification_levels",
                    "ml_classification",
                    "automatic_labeling",
                    "output_dir",
                ),
                "dataAssets": _assets(v),
                "policies": v.result("policy").policies_list,
            },
            when=lambda v: v.inputs.enable_automated_classification,
            gate=_classification_gate,
            announce="Phase 3: Executing automated data classification",
        ),
        TaskPhase(
            "labeling",
            tasks.LABELING_TAGGING,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "classification_levels",
                    "systems",
                    "integrations",
                    "output_dir",
                ),
                "classifiedAssets": _assets(v),
            },
            when=lambda v: v.inputs.automatic_labeling,
            gate=_labeling_gate,
            announce="Phase 4: Applying labels and tags to classified data",
        ),
        TaskPhase(
            "access_control",
            tasks.ACCESS_CONTROL_IMPLEMENTATION,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "classification_levels",
                    "access_control_model",
                    "systems",
                    "compliance_frameworks",
                    "output_dir",
                ),
                "dataAssets": _assets(v),
            },
            gate=_access_gate,
            announce="Phase 5: Implementing classification-based access controls",
        ),
        TaskPhase(
            "encryption",
            tasks.ENCRYPTION_IMPLEMENTATION,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "classification_levels",
                    "systems",
                    "compliance_frameworks",
                    "enable_masking",
                    "enable_tokenization",
                    "output_dir",
                ),
                "dataAssets": _assets(v),
            },
            when=lambda v: v.inputs.enable_encryption,
            gate=_encryption_gate,
            announce="Phase 6: Implementing encryption based on classification levels",
        ),
        TaskPhase(
            "dlp",
            tasks.DLP_IMPLEMENTATION,
            lambda v: pick(
                v.inputs,
                "project_name",
                "classification_levels",
                "data_types",
                "systems",
                "integrations",
                "compliance_frameworks",
                "output_dir",
            ),
            when=lambda v: v.inputs.enable_dlp,
            gate=_dlp_gate,
            announce="Phase 7: Implementing Data Loss Prevention controls",
        ),
        TaskPhase(
            "retention",
            tasks.RETENTION_DISPOSAL,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "classification_levels",
                    "data_types",
                    "compliance_frameworks",
                    "output_dir",
                ),
                "dataAssets": _assets(v),
            },
            when=lambda v: v.inputs.retention_policies,
            gate=_retention_gate,
            announce="Phase 8: Implementing data retention and disposal policies",
        ),
        TaskPhase(
            "lineage",
            tasks.DATA_LINEAGE,
            lambda v: {
                **pick(v.inputs, "project_name", "systems", "classification_levels", "output_dir"),
                "dataAssets": _assets(v),
            },
            when=lambda v: v.inputs.enable_data_lineage,
            gate=_lineage_gate,
            announce="Phase 9: Implementing data lineage and tracking",
        ),
        TaskPhase(
            "audit",
            tasks.AUDIT_LOGGING,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "classification_levels",
                    "systems",
                    "compliance_frameworks",
                    "integrations",
                    "output_dir",
                ),
                "dataAssets": _assets(v),
            },
            when=lambda v: v.inputs.audit_logging,
            gate=_audit_gate,
            announce="Phase 10: Implementing audit logging and monitoring",
        ),
        TaskPhase(
            "compliance",
            tasks.COMPLIANCE_VALIDATION,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "compliance_frameworks",
                    "classification_levels",
                    "data_types",
                    "output_dir",
                ),
                "dataAssets": v.result("discovery").total_data_assets,
                "classificationPolicies": v.result("policy").policies_created,
                "encryptionEnabled": v.inputs.enable_encryption,
                "dlpEnabled": v.inputs.enable_dlp,
                "auditingEnabled": v.inputs.audit_logging,
            },
            gate=_compliance_gate,
            announce="Phase 11: Validating compliance with regulatory frameworks",
        ),
        TaskPhase(
            "breach_plan",
            tasks.BREACH_NOTIFICATION,
            lambda v: pick(
                v.inputs,
                "project_name",
                "classification_levels",
                "data_types",
                "compliance_frameworks",
                "geographic_regions",
                "output_dir",
            ),
            when=lambda v: v.inputs.breach_notification_plan,
            gate=_breach_gate,
            announce="Phase 12: Creating breach notification and incident response plan",
        ),
        TaskPhase(
            "training",
            tasks.TRAINING_DOCUMENTATION,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "classification_levels",
                    "data_types",
                    "compliance_frameworks",
                    "output_dir",
                ),
                "policies": v.result("policy").policies_list,
            },
            announce="Phase 13: Creating training materials and documentation",
        ),
        TaskPhase(
            "monitoring",
            tasks.CONTINUOUS_MONITORING,
            lambda v: {
                **pick(
                    v.inputs,
                    "project_name",
                    "classification_levels",
                    "systems",
                    "compliance_frameworks",
                    "scan_frequency",
                    "integrations",
                    "output_dir",
                ),
                "dataAssets": v.result("discovery").total_data_assets,
            },
            announce="Phase 14: Setting up continuous monitoring and compliance tracking",
        ),
        Gate("final_review", _final_gate),
    ),
    finalize=_finalize,
    metadata=_metadata,
    labels=("data-classification", "data-protection", "privacy"),
)
