"""Agent output models: environment validation, project analysis and plans."""

from typing import Any, Literal

from pydantic import Field

from agent_cloud.models.deployment import CamelModel, CloudProvider


class CheckResult(CamelModel):
    """Outcome of a single environment check."""

    passed: bool = False
    message: str | None = None


class ValidationIssue(CamelModel):
    """A problem found while validating the environment."""

    severity: Literal["error", "warning", "info"] = "info"
    check: str | None = None
    message: str
    solution: str | None = None


class ValidationReport(CamelModel):
    """Environment validation report produced by the validator agent."""

    status: Literal["ready", "needs_setup", "partially_ready", "unknown"] = "unknown"
    cloud: CloudProvider | None = None
    checks: dict[str, CheckResult] = Field(default_factory=dict)
    summary: str | None = None
    issues: list[ValidationIssue] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        return self.status == "ready"


class ProjectAnalysis(CamelModel):
    """Project metadata produced by the analyzer agent."""

    project_type: Literal["api", "web", "static", "container"]
    runtime: str
    framework: str | None = None
    databases: list[str] = Field(default_factory=list)
    has_docker: bool = False

    # Optional details the analyzer may report
    port: int | None = None
    build_command: str | None = None
    start_command: str | None = None
    env_vars: list[str] = Field(default_factory=list)


class DeploymentPlan(CamelModel):
    """Services, cost and commands proposed for one cloud."""

    services: list[str]
    estimated_cost: float
    commands: list[str]


DEFAULT_PLAN_SERVICES = ["Cloud Service"]
DEFAULT_PLAN_COST = 45.00
DEFAULT_PLAN_COMMANDS = ["# Commands will be generated"]


def default_analysis() -> ProjectAnalysis:
    """Analysis substituted when the analyzer's response cannot be parsed."""
    return ProjectAnalysis(
        project_type="api",
        runtime="node",
        framework="express",
        databases=[],
    )


def default_plan() -> DeploymentPlan:
    """Plan substituted when the planner's response cannot be parsed."""
    return DeploymentPlan(
        services=list(DEFAULT_PLAN_SERVICES),
        estimated_cost=DEFAULT_PLAN_COST,
        commands=list(DEFAULT_PLAN_COMMANDS),
    )


def default_validation_report(cloud: CloudProvider | None = None) -> ValidationReport:
    """Report substituted when the validator's response cannot be parsed."""
    return ValidationReport(
        status="unknown",
        cloud=cloud,
        summary="Environment checks completed",
    )


def plan_from_payload(payload: dict[str, Any], cloud: CloudProvider) -> DeploymentPlan:
    """Build a plan from the planner's JSON payload.

    The planner may answer with plans for every cloud under
    ``deploymentPlans`` and with services grouped by category; only the
    target cloud's compute services are kept. Missing fields take the
    default plan's values.
    """
    plans = payload.get("deploymentPlans")
    cloud_plan = (plans.get(cloud.value) if isinstance(plans, dict) else None) or payload
    if not isinstance(cloud_plan, dict):
        raise ValueError("Plan payload must be an object")

    services = cloud_plan.get("services")
    if isinstance(services, dict):
        services = services.get("compute")

    return DeploymentPlan(
        services=services or list(DEFAULT_PLAN_SERVICES),
        estimated_cost=cloud_plan.get("estimatedCost") or DEFAULT_PLAN_COST,
        commands=cloud_plan.get("commands") or list(DEFAULT_PLAN_COMMANDS),
    )
