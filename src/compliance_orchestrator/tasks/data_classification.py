"""Task catalogue for the data classification and handling framework.

Most phases report a point score that is summed into the overall
classification score, so those fields default to zero when omitted.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from compliance_orchestrator.tasks.base import CheckedOutput, ResultItem, TaskOutput, define_task


class DataAsset(ResultItem):
    id: str = ""
    name: str = ""
    type: str = ""
    system: str = ""
    location: str = ""
    sensitivity: str = ""
    owner: str = ""
    data_type: str = ""


class DataDiscovery(CheckedOutput):
    total_data_assets: int = Field(ge=0)
    data_assets_list: list[DataAsset]
    data_stores: list[str]
    sensitive_data_assets: int = Field(default=0, ge=0)
    data_types_found: list[str] = Field(default_factory=list)
    geographic_distribution: dict[str, int] = Field(default_factory=dict)
    discovery_score: float = 0


class ClassificationLevelPolicy(ResultItem):
    level: str = ""
    definition: str = ""
    examples: list[str] = Field(default_factory=list)
    access_requirements: dict[str, Any] = Field(default_factory=dict)
    encryption_requirements: dict[str, Any] = Field(default_factory=dict)
    retention_period: str = ""


class HandlingProcedure(ResultItem):
    level: str = ""
    storage: str = ""
    transmission: str = ""
    disposal: str = ""


class RetentionRule(ResultItem):
    data_type: str = ""
    retention_period: str = ""
    compliance_driver: str = ""


class ClassificationPolicy(CheckedOutput):
    policies_created: int = Field(ge=0)
    policies_list: list[ClassificationLevelPolicy]
    handling_procedures: list[HandlingProcedure]
    encryption_requirements: dict[str, Any] = Field(default_factory=dict)
    retention_rules: list[RetentionRule] = Field(default_factory=list)
    policy_score: float = 0


class AutomatedClassification(TaskOutput):
    classified_assets: int = Field(ge=0)
    public_assets: int = Field(default=0, ge=0)
    internal_assets: int = Field(default=0, ge=0)
    confidential_assets: int = Field(default=0, ge=0)
    restricted_assets: int = Field(default=0, ge=0)
    confidence_score: float = Field(default=0, ge=0, le=100)
    manual_review_required: int = Field(default=0, ge=0)
    classification_score: float = 0


class LabelingTagging(TaskOutput):
    assets_labeled: int = Field(ge=0)
    labels_applied: int = Field(ge=0)
    consistency_score: float = Field(default=0, ge=0, le=100)
    labeling_mechanisms: list[str] = Field(default_factory=list)
    labeling_score: float = 0


class AccessControl(TaskOutput):
    policies_created: int = Field(ge=0)
    roles_created: int = Field(ge=0)
    permissions_configured: int = Field(default=0, ge=0)
    least_privilege_score: float = Field(default=0, ge=0, le=100)
    separation_of_duties_implemented: bool | None = None
    access_score: float = 0


class EncryptionImplementation(TaskOutput):
    encrypted_assets: int = Field(ge=0)
    encryption_algorithms: list[str]
    at_rest_encrypted: int = Field(default=0, ge=0)
    in_transit_encrypted: int = Field(default=0, ge=0)
    masked_fields: int = Field(default=0, ge=0)
    tokenized_fields: int = Field(default=0, ge=0)
    key_management_configured: int = Field(default=0, ge=0)
    encryption_score: float = 0


class DlpImplementation(TaskOutput):
    dlp_policies: int = Field(ge=0)
    monitoring_channels: int = Field(ge=0)
    prevention_rules: int = Field(default=0, ge=0)
    detection_rules: int = Field(default=0, ge=0)
    incidents_detected: int = Field(default=0, ge=0)
    dlp_tools_configured: list[str] = Field(default_factory=list)
    dlp_score: float = 0


class RetentionDisposal(TaskOutput):
    retention_policies: int = Field(ge=0)
    assets_with_retention: int = Field(default=0, ge=0)
    scheduled_disposals: int = Field(default=0, ge=0)
    compliance_driven_policies: int = Field(default=0, ge=0)
    secure_disposal_methods: list[str] = Field(default_factory=list)
    retention_score: float = 0


class DataLineage(TaskOutput):
    lineage_mapped: int = Field(ge=0)
    data_flows: int = Field(ge=0)
    upstream_dependencies: int = Field(default=0, ge=0)
    downstream_consumers: int = Field(default=0, ge=0)
    visualization_created: bool | None = None
    lineage_score: float = 0


class AuditLogging(TaskOutput):
    audit_policies: int = Field(ge=0)
    monitoring_rules: int = Field(ge=0)
    alerts_configured: int = Field(default=0, ge=0)
    retention_days: int = Field(default=0, ge=0)
    siem_integrated: bool | None = None
    compliance_compliant: bool | None = None
    audit_score: float = 0


class ComplianceValidation(TaskOutput):
    frameworks_compliant: int = Field(ge=0)
    compliance_status: dict[str, Any]
    compliance_gaps: list[dict[str, Any]] = Field(default_factory=list)
    remediation_plan: dict[str, Any] | list[Any] | None = None
    audit_ready: bool | None = None
    compliance_score: float = 0


class BreachNotification(TaskOutput):
    notification_procedures: int = Field(ge=0)
    stakeholders_identified: int = Field(default=0, ge=0)
    response_time_requirements: str = ""
    compliance_aligned: bool | None = None
    testing_schedule: str | None = None
    breach_plan_score: float = 0


class TrainingDocumentation(TaskOutput):
    training_modules: int = Field(ge=0)
    documentation_pages: int = Field(default=0, ge=0)
    audiences: list[str] = Field(default_factory=list)


class ContinuousMonitoring(TaskOutput):
    monitoring_dashboards: int = Field(ge=0)
    automated_scans: int = Field(default=0, ge=0)
    alert_rules: int = Field(default=0, ge=0)
    monitoring_score: float = 0


DATA_DISCOVERY = define_task(
    "data-discovery",
    DataDiscovery,
    title="Phase 1: Data Discovery and Inventory - {projectName}",
    role="Data Discovery Specialist",
    task="Discover and inventory data assets across all systems",
    instructions=[
        "Scan every listed system for structured and unstructured data stores",
        "Identify sensitive data types such as PII, PHI and financial data",
        "Record owner, location and region for each asset",
        "Report data stores, sensitive asset count and geographic distribution",
        "Score discovery completeness",
    ],
    labels=["agent", "data-classification", "discovery"],
)

CLASSIFICATION_POLICY = define_task(
    "classification-policy",
    ClassificationPolicy,
    title="Phase 2: Classification Policy Definition - {projectName}",
    role="Data Governance Policy Architect",
    task="Define classification levels with handling, access, encryption and retention rules",
    instructions=[
        "Define each classification level with examples",
        "Set handling procedures for storage, transmission and disposal per level",
        "Set access and encryption requirements per level",
        "Derive retention rules from the compliance frameworks",
        "Score policy completeness",
    ],
    labels=["agent", "data-classification", "policy"],
)

AUTOMATED_CLASSIFICATION = define_task(
    "automated-classification",
    AutomatedClassification,
    title="Phase 3: Automated Data Classification - {projectName}",
    role="Automated Data Classification Engineer",
    task="Execute automated classification of data assets using policies and ML",
    instructions=[
        "Apply classification rules to each data asset",
        "Use pattern matching for structured data",
        "Apply ML models for unstructured data when enabled",
        "Calculate confidence scores and flag low-confidence assets for manual review",
        "Generate a classification report with accuracy metrics",
    ],
    labels=["agent", "data-classification", "automated"],
)

LABELING_TAGGING = define_task(
    "labeling-tagging",
    LabelingTagging,
    title="Phase 4: Labeling and Tagging - {projectName}",
    role="Data Labeling Engineer",
    task="Apply classification labels and tags to data assets in every system",
    instructions=[
        "Apply labels through native metadata, cloud tags and DLP integrations",
        "Verify label consistency across systems",
        "Document labeling mechanisms per system",
    ],
    labels=["agent", "data-classification", "labeling"],
)

ACCESS_CONTROL_IMPLEMENTATION = define_task(
    "access-control-implementation",
    AccessControl,
    title="Phase 5: Classification-Based Access Control - {projectName}",
    role="Identity and Access Management Architect",
    task="Implement access controls driven by classification level",
    instructions=[
        "Create roles and policies for the access control model",
        "Enforce least privilege and separation of duties for restricted data",
        "Configure permissions per classification level and system",
    ],
    labels=["agent", "data-classification", "access-control"],
)

ENCRYPTION_IMPLEMENTATION = define_task(
    "encryption-implementation",
    EncryptionImplementation,
    title="Phase 6: Encryption Implementation - {projectName}",
    role="Data Encryption Specialist",
    task="Implement encryption, masking and tokenization by classification level",
    instructions=[
        "Encrypt confidential and restricted data at rest and in transit",
        "Configure key management systems",
        "Apply masking and tokenization where enabled",
    ],
    labels=["agent", "data-classification", "encryption"],
)

DLP_IMPLEMENTATION = define_task(
    "dlp-implementation",
    DlpImplementation,
    title="Phase 7: Data Loss Prevention - {projectName}",
    role="Data Loss Prevention Engineer",
    task="Configure DLP policies across email, endpoint, web and cloud channels",
    instructions=[
        "Create detection and prevention rules per data type and level",
        "Configure monitoring channels in the integrated DLP tools",
        "Report incidents detected during tuning",
    ],
    labels=["agent", "data-classification", "dlp"],
)

RETENTION_DISPOSAL = define_task(
    "retention-disposal",
    RetentionDisposal,
    title="Phase 8: Retention and Disposal - {projectName}",
    role="Records Management Specialist",
    task="Implement retention schedules and secure disposal",
    instructions=[
        "Create retention policies per data type and compliance driver",
        "Schedule disposal for data past retention",
        "Define secure disposal methods per level",
    ],
    labels=["agent", "data-classification", "retention"],
)

DATA_LINEAGE = define_task(
    "data-lineage",
    DataLineage,
    title="Phase 9: Data Lineage and Tracking - {projectName}",
    role="Data Lineage Architect",
    task="Map lineage and data flows for classified assets",
    instructions=[
        "Trace upstream sources and downstream consumers",
        "Document data flows between systems",
        "Produce a lineage visualization",
    ],
    labels=["agent", "data-classification", "lineage"],
)

AUDIT_LOGGING = define_task(
    "audit-logging",
    AuditLogging,
    title="Phase 10: Audit Logging and Monitoring - {projectName}",
    role="Security Audit Engineer",
    task="Implement audit logging for access to classified data",
    instructions=[
        "Define audit policies per classification level",
        "Configure monitoring rules and alerts, forwarding to SIEM",
        "Set log retention to satisfy the compliance frameworks",
    ],
    labels=["agent", "data-classification", "audit"],
)

COMPLIANCE_VALIDATION = define_task(
    "compliance-validation",
    ComplianceValidation,
    title="Phase 11: Compliance Validation - {projectName}",
    role="Data Protection Compliance Officer",
    task="Validate the framework against each regulatory framework",
    instructions=[
        "Assess compliance per framework and record status",
        "List compliance gaps with a remediation plan",
        "State whether the organization is audit ready",
    ],
    labels=["agent", "data-classification", "compliance"],
)

BREACH_NOTIFICATION = define_task(
    "breach-notification",
    BreachNotification,
    title="Phase 12: Breach Notification Planning - {projectName}",
    role="Incident Response and Privacy Specialist",
    task="Create breach notification procedures for every region and framework",
    instructions=[
        "Define notification procedures and response time requirements per region",
        "Identify stakeholders and regulators to notify",
        "Set a testing schedule for the plan",
    ],
    labels=["agent", "data-classification", "breach-notification"],
)

TRAINING_DOCUMENTATION = define_task(
    "training-documentation",
    TrainingDocumentation,
    title="Phase 13: Training and Documentation - {projectName}",
    role="Security Awareness Trainer",
    task="Create training materials and handling documentation",
    instructions=[
        "Write handling guides per classification level",
        "Create training modules for staff and data owners",
    ],
    labels=["agent", "data-classification", "training"],
)

CONTINUOUS_MONITORING = define_task(
    "continuous-monitoring",
    ContinuousMonitoring,
    title="Phase 14: Continuous Monitoring - {projectName}",
    role="Data Security Operations Engineer",
    task="Set up continuous classification monitoring and compliance tracking",
    instructions=[
        "Schedule automated discovery and classification scans",
        "Build monitoring dashboards and alert rules",
    ],
    labels=["agent", "data-classification", "monitoring"],
)

TASKS = (
    DATA_DISCOVERY,
    CLASSIFICATION_POLICY,
    AUTOMATED_CLASSIFICATION,
    LABELING_TAGGING,
    ACCESS_CONTROL_IMPLEMENTATION,
    ENCRYPTION_IMPLEMENTATION,
    DLP_IMPLEMENTATION,
    RETENTION_DISPOSAL,
    DATA_LINEAGE,
    AUDIT_LOGGING,
    COMPLIANCE_VALIDATION,
    BREACH_NOTIFICATION,
    TRAINING_DOCUMENTATION,
    CONTINUOUS_MONITORING,
)
