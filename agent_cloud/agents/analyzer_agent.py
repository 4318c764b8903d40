"""Project Analyzer Agent.

Inspects a project directory and reports its type, runtime and framework.
"""

from pydantic import BaseModel

from agent_cloud.agents.base import BaseAgent
from agent_cloud.core.parsing import parse_structured_response
from agent_cloud.models.analysis import ProjectAnalysis, default_analysis


class AnalyzerInput(BaseModel):
    """Input for the analyzer agent."""

    project_path: str


class AnalyzerOutput(BaseModel):
    """Output from the analyzer agent."""

    analysis: ProjectAnalysis
    parsed: bool = True


class AnalyzerAgent(BaseAgent[AnalyzerInput, AnalyzerOutput]):
    """Agent for detecting a project's technology stack.

    This agent:
    1. Scans the project directory structure
    2. Reads manifests (package.json, requirements.txt, Dockerfile, ...)
    3. Classifies the project as api, web, static or container
    """

    def __init__(self, settings, project_path: str | None = None):
        self._project_path = project_path
        super().__init__(settings)

    @property
    def name(self) -> str:
        return "analyzer"

    @property
    def description(self) -> str:
        return "Analyzes project structure and technology stack"

    @property
    def system_prompt(self) -> str:
        return """You are an expert DevOps and cloud deployment analyst.

## Your Analysis Process
1. Scan the project directory and identify configuration files
2. Examine dependency manifests to find the runtime, framework and databases
3. Read configuration files to extract environment variables, build and start commands
4. Classify the project: an API, a web app, a static site or a container

## Response Format
Respond with ONLY a JSON object:
{
  "projectType": "api" | "web" | "static" | "container",
  "runtime": "node" | "python" | "java" | "go" | ...,
  "framework": "express" | "fastapi" | "next.js" | ...,
  "databases": ["postgresql", ...],
  "hasDocker": true | false,
  "buildCommand": "npm run build",
  "startCommand": "npm start",
  "port": 3000,
  "envVars": ["DATABASE_URL", ...]
}

If a file doesn't exist, that's okay. Never modify the project.
"""

    @property
    def tools(self) -> list[str]:
        return ["Read", "Glob", "Grep"]

    @property
    def cwd(self) -> str | None:
        return self._project_path

    async def execute(self, input_data: AnalyzerInput) -> AnalyzerOutput:
        """Analyze the project at ``input_data.project_path``."""
        self._project_path = input_data.project_path

        self.logger.info("analyzer.started", project_path=input_data.project_path)

        text = await self.collect_text([
            f"Analyze the project at {input_data.project_path}.",
            "Determine how it should be deployed to the cloud.",
        ])

        result = parse_structured_response(text, ProjectAnalysis.model_validate)
        if not result.ok:
            self.logger.warning("analyzer.parse_failed", error=result.error)
            return AnalyzerOutput(analysis=default_analysis(), parsed=False)

        analysis = result.value
        self.logger.info(
            "analyzer.completed",
            project_type=analysis.project_type,
            runtime=analysis.runtime,
            framework=analysis.framework,
        )
        return AnalyzerOutput(analysis=analysis)
