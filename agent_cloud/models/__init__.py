"""Data models for Agent-Cloud."""

from agent_cloud.models.analysis import (
    CheckResult,
    DeploymentPlan,
    ProjectAnalysis,
    ValidationIssue,
    ValidationReport,
    default_analysis,
    default_plan,
    default_validation_report,
)
from agent_cloud.models.deployment import (
    MAX_DEPLOYMENT_RECORDS,
    CloudProvider,
    DeploymentRecord,
    DeploymentRequest,
    DeploymentResult,
    DeploymentStats,
    ProjectConfig,
)
from agent_cloud.models.workflow import (
    Completed,
    ResumeInput,
    SuspendPayload,
    Suspended,
    WorkflowOutcome,
    WorkflowResult,
    WorkflowRun,
    WorkflowState,
)

__all__ = [
    # Deployment models
    "MAX_DEPLOYMENT_RECORDS",
    "CloudProvider",
    "DeploymentRecord",
    "DeploymentRequest",
    "DeploymentResult",
    "DeploymentStats",
    "ProjectConfig",
    # Agent output models
    "CheckResult",
    "DeploymentPlan",
    "ProjectAnalysis",
    "ValidationIssue",
    "ValidationReport",
    "default_analysis",
    "default_plan",
    "default_validation_report",
    # Workflow models
    "Completed",
    "ResumeInput",
    "SuspendPayload",
    "Suspended",
    "WorkflowOutcome",
    "WorkflowResult",
    "WorkflowRun",
    "WorkflowState",
]
