"""Pytest configuration and fixtures."""

import asyncio
import json
from pathlib import Path
from typing import AsyncIterator, Sequence

import pytest
from httpx import ASGITransport, AsyncClient

from agent_cloud.agents import AnalyzerAgent, PlannerAgent, ValidatorAgent
from agent_cloud.config import Settings
from agent_cloud.core.events import EventBus
from agent_cloud.core.history import HistoryStore
from agent_cloud.core.runs import RunStore
from agent_cloud.core.workflow import DeploymentWorkflow
from agent_cloud.main import create_app
from agent_cloud.models import CloudProvider, DeploymentResult
from agent_cloud.providers import BaseCloudProvider, CommandRequest, CommandResult

VALIDATION_RESPONSE = """```json
{
  "status": "ready",
  "cloud": "aws",
  "checks": {
    "cli": {"passed": true, "message": "aws-cli/2.15.0 installed"},
    "authentication": {"passed": true, "message": "Authenticated as admin"}
  },
  "summary": "Environment is ready for AWS deployment",
  "issues": [],
  "nextSteps": ["Run project analysis"]
}
```"""

ANALYSIS_RESPONSE = """I scanned the project. Here is the analysis:

```json
{
  "projectType": "api",
  "runtime": "node",
  "framework": "express",
  "databases": ["postgresql"],
  "hasDocker": false,
  "port": 3000,
  "startCommand": "npm start",
  "envVars": ["DATABASE_URL"]
}
```"""

PLAN_RESPONSE = json.dumps(
    {
        "recommendedCloud": "aws",
        "deploymentPlans": {
            "aws": {
                "services": {
                    "compute": ["ECS Fargate"],
                    "database": ["RDS PostgreSQL"],
                },
                "estimatedCost": 52.5,
                "commands": ["aws ecs create-cluster --cluster-name app-cluster"],
            },
            "gcp": {
                "services": {"compute": ["Cloud Run"]},
                "estimatedCost": 38.0,
                "commands": ["gcloud run deploy app"],
            },
        },
    }
)


def _chunks(text: str, size: int = 40) -> list[str]:
    return [text[i : i + size] for i in range(0, len(text), size)]


class StubStreamMixin:
    """Replaces the Claude Agent SDK stream with a canned response."""

    response: str | Exception = ""
    calls: int = 0

    async def stream(self, messages: Sequence[str]) -> AsyncIterator[str]:
        self.calls += 1
        if isinstance(self.response, Exception):
            raise self.response
        for chunk in _chunks(self.response):
            yield chunk


class StubValidator(StubStreamMixin, ValidatorAgent):
    response = VALIDATION_RESPONSE


class StubAnalyzer(StubStreamMixin, AnalyzerAgent):
    response = ANALYSIS_RESPONSE


class StubPlanner(StubStreamMixin, PlannerAgent):
    response = PLAN_RESPONSE


class FakeRunner:
    """Records vendor CLI invocations and returns scripted results.

    Rules match on a prefix of the argument vector; later rules win.
    Unmatched commands succeed with empty output.
    """

    def __init__(self):
        self.requests: list[CommandRequest] = []
        self._rules: list[tuple[list[str], CommandResult]] = []

    def on(self, *prefix: str, stdout: str = "", stderr: str = "", exit_code: int = 0) -> None:
        self._rules.append((list(prefix), CommandResult(stdout, stderr, exit_code)))

    async def __call__(self, request: CommandRequest) -> CommandResult:
        self.requests.append(request)
        for prefix, result in reversed(self._rules):
            if request.args[: len(prefix)] == prefix:
                return result
        return CommandResult("", "", 0)

    @property
    def commands(self) -> list[list[str]]:
        return [r.args for r in self.requests]

    def find(self, *prefix: str) -> list[CommandRequest]:
        return [r for r in self.requests if r.args[: len(prefix)] == list(prefix)]


class FakeProvider(BaseCloudProvider):
    """Provider adapter that records calls instead of running CLIs."""

    cli_binary = "fake"

    def __init__(
        self,
        settings: Settings,
        cloud: CloudProvider = CloudProvider.AWS,
        authenticated: bool = True,
        result: DeploymentResult | None = None,
        error: Exception | None = None,
    ):
        self.cloud = cloud
        super().__init__(settings)
        self.authenticated = authenticated
        self.result = result or DeploymentResult(
            success=True,
            resources={"cluster": "test-app-cluster", "service": "test-app-service"},
            url="http://<task-ip>:3000",
        )
        self.error = error
        # Seconds to stall in authenticate, to hold a run in executing
        self.delay = 0.0
        self.calls: list[tuple[str, dict]] = []

    @property
    def deploy_calls(self) -> list[tuple[str, dict]]:
        return [c for c in self.calls if c[0].startswith("deploy_")]

    async def authenticate(self) -> bool:
        self.calls.append(("authenticate", {}))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.authenticated

    async def deploy_managed_compute(
        self,
        app_name: str,
        container_port: int | None = None,
        docker_image: str | None = None,
        source_dir: str | None = None,
    ) -> DeploymentResult:
        self.calls.append(
            (
                "deploy_managed_compute",
                {"app_name": app_name, "container_port": container_port, "source_dir": source_dir},
            )
        )
        if self.error:
            raise self.error
        return self.result

    async def deploy_static_site(self, site_name: str, build_dir: str) -> DeploymentResult:
        self.calls.append(("deploy_static_site", {"site_name": site_name, "build_dir": build_dir}))
        if self.error:
            raise self.error
        return self.result

    async def cleanup(self, resources: dict[str, str]) -> None:
        self.calls.append(("cleanup", dict(resources)))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment and the user's home."""
    return Settings(
        _env_file=None,
        anthropic_api_key="test-key",
        app_name="test-app",
        agent_max_retries=1,
        gcloud_project="test-project",
        azure_subscription_id="sub-123",
        runs_dir=tmp_path / "runs",
        log_to_file=False,
    )


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A minimal Node.js project."""
    project = tmp_path / "project"
    project.mkdir()
    (project / "package.json").write_text(
        json.dumps({"name": "test-app", "scripts": {"start": "node index.js"}})
    )
    (project / "index.js").write_text("require('express')().listen(3000)\n")
    return project


@pytest.fixture
def history(project_dir: Path) -> HistoryStore:
    return HistoryStore(project_dir)


@pytest.fixture
def run_store(settings: Settings) -> RunStore:
    return RunStore(settings.runs_dir)


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def validator(settings: Settings) -> StubValidator:
    return StubValidator(settings)


@pytest.fixture
def analyzer(settings: Settings) -> StubAnalyzer:
    return StubAnalyzer(settings)


@pytest.fixture
def planner(settings: Settings) -> StubPlanner:
    return StubPlanner(settings)


@pytest.fixture
def provider(settings: Settings) -> FakeProvider:
    return FakeProvider(settings)


@pytest.fixture
def workflow(
    settings: Settings,
    run_store: RunStore,
    events: EventBus,
    validator: StubValidator,
    analyzer: StubAnalyzer,
    planner: StubPlanner,
    provider: FakeProvider,
) -> DeploymentWorkflow:
    """Workflow wired to stub agents and a recording provider."""
    return DeploymentWorkflow(
        settings,
        run_store,
        events=events,
        validator=validator,
        analyzer=analyzer,
        planner=planner,
        provider_factory=lambda cloud, _settings: provider,
    )


@pytest.fixture
async def client(settings: Settings, workflow: DeploymentWorkflow) -> AsyncClient:
    """Create an async test client around a fresh app."""
    app = create_app(settings=settings, workflow=workflow)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
