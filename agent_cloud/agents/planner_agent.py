"""Deployment Planner Agent.

Turns a project analysis into the services, monthly cost estimate and
commands for one cloud.
"""

from functools import partial

from pydantic import BaseModel

from agent_cloud.agents.base import BaseAgent
from agent_cloud.core.parsing import parse_structured_response
from agent_cloud.models.analysis import (
    DeploymentPlan,
    ProjectAnalysis,
    default_plan,
    plan_from_payload,
)
from agent_cloud.models.deployment import CloudProvider


class PlannerInput(BaseModel):
    """Input for the planner agent."""

    analysis: ProjectAnalysis
    cloud: CloudProvider


class PlannerOutput(BaseModel):
    """Output from the planner agent."""

    plan: DeploymentPlan
    parsed: bool = True


class PlannerAgent(BaseAgent[PlannerInput, PlannerOutput]):
    """Agent for generating a deployment plan."""

    @property
    def name(self) -> str:
        return "planner"

    @property
    def description(self) -> str:
        return "Generates cloud deployment plans with cost estimates"

    @property
    def system_prompt(self) -> str:
        return """You are an expert cloud architect specializing in multi-cloud deployments.

## Your Planning Process
1. Review the project analysis (type, runtime, framework, databases)
2. Map the project to managed services on the target cloud
3. Estimate the monthly cost in USD
4. List the deployment commands step by step

## Response Format
Respond with ONLY a JSON object:
{
  "deploymentPlans": {
    "aws": {
      "services": {"compute": ["ECS Fargate"], "database": ["RDS PostgreSQL"]},
      "estimatedCost": 45.99,
      "commands": ["aws ecs create-cluster ...", "..."]
    }
  }
}
"""

    async def execute(self, input_data: PlannerInput) -> PlannerOutput:
        """Plan a deployment of the analyzed project to ``input_data.cloud``."""
        cloud = input_data.cloud
        self.logger.info("planner.started", cloud=cloud.value)

        text = await self.collect_text([
            f"Create a deployment plan for {cloud.label} for this project:",
            input_data.analysis.model_dump_json(by_alias=True, indent=2),
        ])

        result = parse_structured_response(text, partial(plan_from_payload, cloud=cloud))
        if not result.ok:
            self.logger.warning("planner.parse_failed", error=result.error)
            return PlannerOutput(plan=default_plan(), parsed=False)

        plan = result.value
        self.logger.info("planner.completed", services=plan.services, estimated_cost=plan.estimated_cost)
        return PlannerOutput(plan=plan)
