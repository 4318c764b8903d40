"""Environment Validator Agent.

Checks that the vendor CLI is installed and authenticated before a
deployment is planned.
"""

from pydantic import BaseModel

from agent_cloud.agents.base import BaseAgent
from agent_cloud.core.parsing import parse_structured_response
from agent_cloud.models.analysis import ValidationReport, default_validation_report
from agent_cloud.models.deployment import CloudProvider

_CLI_HINTS = {
    CloudProvider.AWS: ("aws --version", "aws sts get-caller-identity"),
    CloudProvider.GCP: ("gcloud --version", "gcloud auth list"),
    CloudProvider.AZURE: ("az --version", "az account show"),
}


class ValidatorInput(BaseModel):
    """Input for the validator agent."""

    cloud: CloudProvider


class ValidatorOutput(BaseModel):
    """Output from the validator agent."""

    report: ValidationReport
    parsed: bool = True


class ValidatorAgent(BaseAgent[ValidatorInput, ValidatorOutput]):
    """Agent that validates the local environment for one cloud."""

    @property
    def name(self) -> str:
        return "validator"

    @property
    def description(self) -> str:
        return "Validates cloud CLI installation, authentication and configuration"

    @property
    def system_prompt(self) -> str:
        return """You are an expert DevOps engineer specializing in environment validation.

## Your Responsibilities
1. Verify the cloud CLI tool is installed and report its version
2. Verify the user is authenticated and identify the account
3. Check default regions/projects and required environment variables
4. Report missing permissions or connectivity problems

Only run read-only commands. Never create, modify or delete cloud resources.

## Response Format
Respond with ONLY a JSON object:
{
  "status": "ready" | "needs_setup" | "partially_ready",
  "cloud": "aws" | "gcp" | "azure",
  "checks": {"cli": {"passed": true, "message": "..."}, "authentication": {...}},
  "summary": "Environment is ready for AWS deployment",
  "issues": [{"severity": "error" | "warning" | "info", "check": "authentication",
              "message": "...", "solution": "..."}],
  "nextSteps": ["..."]
}
"""

    @property
    def tools(self) -> list[str]:
        return ["Bash"]

    async def execute(self, input_data: ValidatorInput) -> ValidatorOutput:
        """Validate the environment for ``input_data.cloud``."""
        cloud = input_data.cloud
        version_cmd, auth_cmd = _CLI_HINTS[cloud]

        self.logger.info("validator.started", cloud=cloud.value)

        text = await self.collect_text([
            f"Validate this machine for deploying to {cloud.label}.",
            f"Check the CLI with `{version_cmd}` and authentication with `{auth_cmd}`.",
        ])

        result = parse_structured_response(text, ValidationReport.model_validate)
        if not result.ok:
            self.logger.warning("validator.parse_failed", error=result.error)
            return ValidatorOutput(report=default_validation_report(cloud), parsed=False)

        report = result.value
        if report.cloud is None:
            report.cloud = cloud

        self.logger.info("validator.completed", status=report.status, issues=len(report.issues))
        return ValidatorOutput(report=report)
