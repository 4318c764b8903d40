"""agent-cloud command line interface."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Coroutine, Optional

import typer

from agent_cloud import __version__
from agent_cloud.agents import AnalyzerAgent, AnalyzerInput, ValidatorAgent, ValidatorInput
from agent_cloud.cli import display
from agent_cloud.cli.display import console
from agent_cloud.cli.errors import ErrorHandler
from agent_cloud.cli.prompts import (
    CLOUD_PROVIDERS,
    confirm_deployment,
    display_cloud_providers,
    select_cloud,
)
from agent_cloud.config import STATE_DIR_NAME, Settings, get_settings
from agent_cloud.core.events import Event
from agent_cloud.core.exceptions import (
    ValidationError,
    invalid_cloud,
    missing_project_path,
)
from agent_cloud.core.history import HistoryStore
from agent_cloud.core.runs import RunStore
from agent_cloud.core.workflow import DeploymentWorkflow
from agent_cloud.models import (
    Completed,
    CloudProvider,
    DeploymentRequest,
    SuspendPayload,
    WorkflowResult,
    WorkflowState,
)
from agent_cloud.providers import get_provider
from agent_cloud.utils.logging import configure_logging, configure_tracing, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="agent-cloud",
    help="🤖 AI-Powered Cloud Deployment CLI",
    no_args_is_help=True,
    add_completion=False,
)

# Pause between simulated steps in the demo walkthrough (seconds)
DEMO_STEP_DELAY = 0.4

PHASE_LABELS = {
    "validation": "Environment validated",
    "analysis": "Project analyzed",
    "planning": "Deployment plan generated",
    "execution": "Resources deployed",
}


@dataclass
class CliState:
    settings: Settings
    errors: ErrorHandler


def create_workflow(settings: Settings) -> DeploymentWorkflow:
    """Build the workflow used by ``deploy`` and ``resume``."""
    return DeploymentWorkflow(settings, RunStore(settings.runs_dir))


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj


def _run_async(state: CliState, coro: Coroutine[Any, Any, int]) -> None:
    """Run a command coroutine and turn its result or error into an exit code."""
    try:
        code = asyncio.run(coro)
    except (Exception, KeyboardInterrupt) as e:
        code = state.errors.handle(e)
    if code:
        raise typer.Exit(code=code)


def _parse_cloud(cloud: str) -> CloudProvider:
    try:
        return CloudProvider(cloud.lower())
    except ValueError:
        raise invalid_cloud(cloud) from None


def _resolve_project(path: Path) -> Path:
    resolved = path.expanduser().resolve()
    if not resolved.is_dir():
        raise missing_project_path(str(path))
    return resolved


def _print_progress(event: Event) -> None:
    if event.event_type == "phase_started":
        console.print(f"  [dim]… {event.data['phase']}[/dim]")
    elif event.event_type == "phase_completed":
        label = PHASE_LABELS.get(event.data["phase"], event.data["phase"])
        console.print(f"  [green]✓[/green] {label}")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"agent-cloud {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging and stack traces"),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Display version number",
    ),
) -> None:
    """Deploy your application to AWS, GCP or Azure with AI agents."""
    settings = get_settings()
    if debug:
        settings = settings.model_copy(update={"debug": True})

    configure_logging(settings, log_dir=Path.cwd() / STATE_DIR_NAME / "logs")
    configure_tracing(settings)

    ctx.obj = CliState(settings=settings, errors=ErrorHandler(console, debug=settings.debug))


@app.command()
def demo(
    ctx: typer.Context,
    cloud: Optional[str] = typer.Option(None, "--cloud", "-c", help="Cloud provider (aws, gcp, azure)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip approval prompts (auto-approve)"),
) -> None:
    """Walk through a simulated deployment without touching any cloud."""
    state = _state(ctx)

    async def _demo() -> int:
        display.display_banner()
        provider = _parse_cloud(cloud) if cloud else select_cloud()
        info = CLOUD_PROVIDERS[provider]
        display.display_info(f"Selected provider: [bold]{info.display_name}[/bold]")
        display.display_info(f"Project path: [bold]{Path.cwd()}[/bold]")

        display.display_header("Analyzing Project")
        for step in (
            "Scanning project files",
            "Detecting technology stack",
            "Analyzing dependencies",
            "Identifying required services",
            "Generating deployment plan",
        ):
            with console.status(f"{step}..."):
                await asyncio.sleep(DEMO_STEP_DELAY)
            display.display_success(step)

        console.print()
        display.display_info("Detected: Node.js v20.x application")
        display.display_info("Framework: Express.js")
        display.display_info("Database: PostgreSQL (detected in package.json)")

        payload = SuspendPayload(
            services=[
                f"{info.icon} Container Service (for Node.js app)",
                "🗄️  Managed Database (PostgreSQL)",
                "🌐 Load Balancer",
                "🔒 SSL Certificate",
            ],
            estimated_cost=45.99,
            commands=[
                f"{info.cli} configure",
                f"{info.cli} deploy create-cluster",
                f"{info.cli} database create-instance",
                f"{info.cli} app deploy",
            ],
            message="Demo plan",
        )
        console.print()
        display.render_plan(payload)

        if yes:
            display.display_info("Auto-approved mode enabled, skipping confirmation")
        elif not confirm_deployment():
            display.display_error("Deployment cancelled by user")
            return 0

        display.display_header("Deploying Application")
        for step in (
            "Validating environment",
            "Creating cloud resources",
            "Building application",
            "Pushing container image",
            "Deploying services",
            "Configuring networking",
            "Running health checks",
        ):
            with console.status(f"{step}..."):
                await asyncio.sleep(DEMO_STEP_DELAY)
            display.display_success(step)

        console.print()
        display.display_success("Deployment completed successfully!")
        console.print("  🌐 Application URL: [bold cyan]https://my-app.example.com[/bold cyan]")
        console.print(f"  💰 Monthly cost: [green]${payload.estimated_cost}[/green]\n")
        display.display_info("Run [bold]agent-cloud deploy[/bold] to deploy for real")
        return 0

    _run_async(state, _demo())


def _exit_code(result: WorkflowResult) -> int:
    # A cancellation is a user decision, not a failure
    return 1 if not result.success and result.error_type else 0


@app.command()
def deploy(
    ctx: typer.Context,
    cloud: Optional[str] = typer.Option(None, "--cloud", "-c", help="Cloud provider (aws, gcp, azure)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip approval prompts (auto-approve)"),
    defer: bool = typer.Option(False, "--defer", help="Leave the run suspended and print its id"),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Project directory"),
) -> None:
    """Deploy your application to the cloud."""
    state = _state(ctx)

    async def _deploy() -> int:
        project = _resolve_project(path)
        history = HistoryStore(project)
        target = cloud or (history.get_default_cloud() or CloudProvider.AWS).value
        request = DeploymentRequest.create(project, target)

        display.display_header("Cloud Deployment")
        console.print(f"  Target: [bold]{request.cloud.value.upper()}[/bold]")
        console.print(f"  [dim]Project: {request.project_path}[/dim]\n")

        workflow = create_workflow(state.settings)
        workflow.events.add_listener(_print_progress)

        with console.status("Running deployment phases..."):
            outcome = await workflow.start(request)

        if isinstance(outcome, Completed):
            display.render_result(outcome.result)
            return _exit_code(outcome.result)

        console.print()
        display.render_plan(outcome.payload)

        if defer:
            display.display_info(f"Workflow suspended - run id [bold]{outcome.run_id}[/bold]")
            console.print(f"  [dim]Approve with: agent-cloud resume {outcome.run_id} --approve[/dim]")
            console.print(f"  [dim]Reject with:  agent-cloud resume {outcome.run_id} --reject[/dim]\n")
            return 0

        if yes or history.get_auto_approve():
            display.display_info("Auto-approving deployment...")
            approved = True
        else:
            approved = confirm_deployment()

        with console.status("Deploying..."):
            result = await workflow.resume(outcome.run_id, approved)

        display.render_result(result)
        return _exit_code(result)

    _run_async(state, _deploy())


@app.command()
def resume(
    ctx: typer.Context,
    run_id: str = typer.Argument(..., help="Id of a suspended run"),
    approve: bool = typer.Option(..., "--approve/--reject", help="Approve or reject the plan"),
) -> None:
    """Resume a suspended deployment with an approval decision."""
    state = _state(ctx)

    async def _resume() -> int:
        workflow = create_workflow(state.settings)
        workflow.events.add_listener(_print_progress)

        with console.status("Resuming deployment..."):
            result = await workflow.resume(run_id, approve)

        display.render_result(result)
        return _exit_code(result)

    _run_async(state, _resume())


@app.command()
def runs(ctx: typer.Context) -> None:
    """List runs waiting for approval."""
    state = _state(ctx)

    async def _runs() -> int:
        store = RunStore(state.settings.runs_dir)
        pending = await store.list_runs(WorkflowState.AWAITING_APPROVAL)
        if not pending:
            display.display_info("No suspended runs")
            return 0
        display.render_runs(pending)
        return 0

    _run_async(state, _runs())


@app.command()
def analyze(
    ctx: typer.Context,
    path: Path = typer.Option(Path("."), "--path", "-p", help="Project directory"),
) -> None:
    """Analyze the project structure and technology stack."""
    state = _state(ctx)

    async def _analyze() -> int:
        project = _resolve_project(path)
        display.display_header("Project Analysis")

        agent = AnalyzerAgent(state.settings, project_path=str(project))
        with console.status("Scanning project directory..."):
            output = await agent.execute(AnalyzerInput(project_path=str(project)))

        display.render_analysis(output.analysis, output.parsed)
        return 0

    _run_async(state, _analyze())


@app.command()
def status(
    ctx: typer.Context,
    cloud: str = typer.Option("aws", "--cloud", "-c", help="Cloud provider (aws, gcp, azure)"),
) -> None:
    """Check cloud CLI tools and authentication."""
    state = _state(ctx)

    async def _status() -> int:
        provider = _parse_cloud(cloud)
        display.display_header("Environment Status Check")
        console.print(f"  Checking [bold]{provider.value.upper()}[/bold] environment...\n")

        agent = ValidatorAgent(state.settings)
        with console.status("Running environment checks..."):
            output = await agent.execute(ValidatorInput(cloud=provider))

        display.render_checks(output.report, output.parsed)
        return 0

    _run_async(state, _status())


@app.command()
def info() -> None:
    """Show the supported cloud providers."""
    display_cloud_providers()


@app.command()
def history(
    ctx: typer.Context,
    cloud: Optional[str] = typer.Option(None, "--cloud", "-c", help="Only show one cloud"),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Project directory"),
) -> None:
    """Show the project's deployment history."""
    state = _state(ctx)

    async def _history() -> int:
        store = HistoryStore(_resolve_project(path))
        records = (
            store.get_deployments_by_cloud(_parse_cloud(cloud)) if cloud else store.get_deployments()
        )
        if not records:
            display.display_info("No deployments recorded yet")
            return 0
        display.render_history(records, store.get_stats())
        return 0

    _run_async(state, _history())


@app.command()
def cleanup(
    ctx: typer.Context,
    deployment_id: Optional[str] = typer.Option(None, "--id", help="Deployment id (defaults to the last one)"),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Project directory"),
    resource_group: bool = typer.Option(
        False, "--resource-group", help="Azure only: delete the deployment's whole resource group"
    ),
) -> None:
    """Tear down the cloud resources of a past deployment."""
    state = _state(ctx)

    async def _cleanup() -> int:
        store = HistoryStore(_resolve_project(path))
        if deployment_id:
            record = store.get_deployment(deployment_id)
            if record is None:
                raise ValidationError(f"Deployment not found: {deployment_id}", "id", deployment_id)
        else:
            record = store.get_last_deployment()

        if record is None:
            display.display_info("No deployments to clean up")
            return 0
        if resource_group and record.cloud != CloudProvider.AZURE:
            raise ValidationError(
                f"--resource-group only applies to Azure deployments, not {record.cloud.label}",
                "resourceGroup",
            )
        if not record.resources:
            display.display_info(f"Deployment {record.id[:8]} has no resources to clean up")
            return 0

        provider = get_provider(record.cloud, state.settings)
        with console.status(f"Cleaning up {record.cloud.label} resources..."):
            if resource_group:
                group = record.resources.get("resourceGroup")
                if not await provider.cleanup_resource_group(group):
                    display.display_warning(f"Could not delete resource group {group or provider.resource_group}")
                    return 1
            else:
                await provider.cleanup(record.resources)

        display.display_success(f"Cleanup complete for deployment {record.id[:8]}")
        return 0

    _run_async(state, _cleanup())


@app.command()
def config(
    ctx: typer.Context,
    default_cloud: Optional[str] = typer.Option(None, "--default-cloud", help="Cloud used when --cloud is omitted"),
    auto_approve: Optional[bool] = typer.Option(
        None, "--auto-approve/--no-auto-approve", help="Approve plans without prompting"
    ),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Project directory"),
) -> None:
    """Show or update the project's agent-cloud settings."""
    state = _state(ctx)

    async def _config() -> int:
        store = HistoryStore(_resolve_project(path))
        if default_cloud:
            store.set_default_cloud(_parse_cloud(default_cloud))
        if auto_approve is not None:
            store.set_auto_approve(auto_approve)

        current = store.get_config()
        console.print(f"  Config file: [dim]{store.config_path}[/dim]")
        console.print(f"  Default cloud: [bold]{current.default_cloud.value if current.default_cloud else '-'}[/bold]")
        console.print(f"  Auto-approve: [bold]{'yes' if current.auto_approve else 'no'}[/bold]")
        console.print(f"  Deployments recorded: [bold]{len(current.deployments)}[/bold]")
        return 0

    _run_async(state, _config())

