"""Workflow run state and outcome models."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Union
from uuid import uuid4

from pydantic import Field

from agent_cloud.models.analysis import DeploymentPlan, ProjectAnalysis, ValidationReport
from agent_cloud.models.deployment import CamelModel, DeploymentRequest


class WorkflowState(str, Enum):
    """Deployment workflow states."""

    VALIDATING = "validating"
    ANALYZING = "analyzing"
    PLANNING = "planning"
    AWAITING_APPROVAL = "awaiting_approval"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (WorkflowState.SUCCEEDED, WorkflowState.FAILED, WorkflowState.CANCELLED)


class WorkflowRun(CamelModel):
    """A single workflow execution, persisted across the approval suspend point."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    request: DeploymentRequest
    state: WorkflowState = WorkflowState.VALIDATING
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Accumulated phase outputs
    validation: ValidationReport | None = None
    analysis: ProjectAnalysis | None = None
    plan: DeploymentPlan | None = None

    def elapsed_ms(self) -> int:
        """Milliseconds since the run started."""
        delta = datetime.now(timezone.utc) - self.started_at
        return int(delta.total_seconds() * 1000)


class ResumeInput(CamelModel):
    """External decision supplied when resuming a suspended run."""

    approved: bool


class SuspendPayload(CamelModel):
    """Data presented to the human at the approval point."""

    services: list[str]
    estimated_cost: float
    commands: list[str]
    message: str
    project_type: str | None = None
    runtime: str | None = None


class WorkflowResult(CamelModel):
    """Terminal result of a workflow run."""

    success: bool
    message: str
    deployment_url: str | None = None
    analysis: ProjectAnalysis | None = None
    plan: DeploymentPlan | None = None

    # Failure details for rendering remediation hints
    error_type: str | None = None
    suggestions: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class Suspended:
    """The run halted at the approval point and awaits ``resume``."""

    run_id: str
    payload: SuspendPayload


@dataclass(frozen=True)
class Completed:
    """The run reached a terminal state."""

    result: WorkflowResult


WorkflowOutcome = Union[Suspended, Completed]
