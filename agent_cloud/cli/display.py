"""Rich rendering helpers for the CLI."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from agent_cloud.models import (
    CloudProvider,
    DeploymentRecord,
    DeploymentStats,
    ProjectAnalysis,
    SuspendPayload,
    ValidationReport,
    WorkflowResult,
    WorkflowRun,
)

console = Console()

BANNER = r"""
  ___                   _      ___ _                _
 / _ \ __ _ ___ _ _ ___| |_   / __| |___ _  _ _  __| |
| (_) / _` / -_) ' \___|  _| | (__| / _ \ || | |/ _` |
 \___/\__, \___|_||_|   \__|  \___|_\___/\_,_|_|\__,_|
      |___/
"""

# Commands shown from a plan before truncating
MAX_PLAN_COMMANDS = 5


def display_banner() -> None:
    console.print(Text(BANNER, style="bold cyan"))
    console.print("  [bold white]AI-Powered Cloud Deployment[/bold white]\n")


def display_header(title: str) -> None:
    console.print()
    console.rule(f"[bold cyan]{title}[/bold cyan]")
    console.print()


def display_success(message: str) -> None:
    console.print(f"[bold green]✓[/bold green] {message}")


def display_error(message: str) -> None:
    console.print(f"[bold red]✗[/bold red] {message}")


def display_info(message: str) -> None:
    console.print(f"[cyan]ℹ[/cyan] {message}")


def display_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def render_plan(payload: SuspendPayload) -> None:
    """Show the plan presented at the approval point."""
    lines = ["[bold]Services:[/bold]"]
    lines += [f"  • {service}" for service in payload.services]
    lines.append("")
    lines.append(f"[bold]Estimated Cost:[/bold] [green]${payload.estimated_cost:.2f}[/green] /month")
    lines.append("")
    lines.append("[bold]Commands to execute:[/bold]")
    lines += [f"  [dim]{escape(cmd)}[/dim]" for cmd in payload.commands[:MAX_PLAN_COMMANDS]]
    if len(payload.commands) > MAX_PLAN_COMMANDS:
        lines.append(f"  [dim]... and {len(payload.commands) - MAX_PLAN_COMMANDS} more[/dim]")

    title = "Deployment Plan"
    if payload.project_type:
        title += f" ({payload.project_type}, {payload.runtime})"
    console.print(Panel("\n".join(lines), title=title, border_style="cyan"))


def render_result(result: WorkflowResult) -> None:
    """Show a terminal workflow result."""
    if result.success:
        display_success(result.message)
        if result.deployment_url:
            console.print(f"\n  🌐 URL: [bold cyan]{result.deployment_url}[/bold cyan]")
        if result.plan:
            console.print(f"  💰 Monthly cost: [green]${result.plan.estimated_cost:.2f}[/green]")
        console.print()
        return

    display_error(escape(result.message))
    for suggestion in result.suggestions:
        console.print(f"  [dim]→ {suggestion}[/dim]")
    console.print()


def render_analysis(analysis: ProjectAnalysis, parsed: bool = True) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Type", analysis.project_type)
    table.add_row("Runtime", analysis.runtime)
    table.add_row("Framework", analysis.framework or "-")
    table.add_row("Databases", ", ".join(analysis.databases) or "-")
    table.add_row("Docker", "yes" if analysis.has_docker else "no")
    if analysis.port:
        table.add_row("Port", str(analysis.port))
    if analysis.build_command:
        table.add_row("Build", analysis.build_command)
    if analysis.start_command:
        table.add_row("Start", analysis.start_command)
    if analysis.env_vars:
        table.add_row("Env vars", ", ".join(analysis.env_vars))
    console.print(table)

    if not parsed:
        console.print()
        display_warning("Analysis response could not be parsed; showing defaults")


def render_checks(report: ValidationReport, parsed: bool = True) -> None:
    """Show the validator's checks, or the generic notice when unparsed."""
    if not parsed:
        display_success(report.summary or "Environment checks completed")
        return

    labels = {"cli": "CLI Tool", "authentication": "Authentication", "network": "Network"}
    for key, check in report.checks.items():
        icon = "✅" if check.passed else "❌"
        label = labels.get(key, key.replace("_", " ").title())
        console.print(f"  {icon} [bold]{label}[/bold]: {check.message or 'Checked'}")

    for issue in report.issues:
        style = {"error": "red", "warning": "yellow"}.get(issue.severity, "cyan")
        console.print(f"  [{style}]{issue.severity}[/{style}] {issue.message}")
        if issue.solution:
            console.print(f"    [dim]→ {issue.solution}[/dim]")

    console.print()
    if report.is_ready:
        display_success("Environment is ready for deployment! 🚀")
    else:
        display_error(report.summary or "Environment needs configuration")


def render_runs(runs: list[WorkflowRun]) -> None:
    table = Table(title="Suspended Runs")
    table.add_column("Run ID", style="bold")
    table.add_column("Cloud")
    table.add_column("Project")
    table.add_column("Started")
    table.add_column("Est. Cost", justify="right")

    for run in runs:
        table.add_row(
            run.id,
            run.request.cloud.label,
            run.request.project_path,
            run.started_at.strftime("%Y-%m-%d %H:%M"),
            f"${run.plan.estimated_cost:.2f}" if run.plan else "-",
        )
    console.print(table)


def render_history(records: list[DeploymentRecord], stats: DeploymentStats) -> None:
    table = Table(title="Deployment History")
    table.add_column("ID", style="dim")
    table.add_column("When")
    table.add_column("Cloud")
    table.add_column("Result")
    table.add_column("URL")
    table.add_column("Cost", justify="right")
    table.add_column("Duration", justify="right")

    for record in reversed(records):
        table.add_row(
            record.id[:8],
            record.timestamp.strftime("%Y-%m-%d %H:%M"),
            record.cloud.label,
            "[green]success[/green]" if record.success else "[red]failed[/red]",
            record.deployment_url or "-",
            f"${record.cost:.2f}" if record.cost else "-",
            f"{record.duration / 1000:.1f}s" if record.duration else "-",
        )
    console.print(table)

    by_cloud = ", ".join(f"{cloud.label}: {stats.by_cloud.get(cloud, 0)}" for cloud in CloudProvider)
    console.print(
        f"\n  Total: [bold]{stats.total}[/bold]  "
        f"Successful: [green]{stats.successful}[/green]  "
        f"Failed: [red]{stats.failed}[/red]  ({by_cloud})"
    )
    console.print(
        f"  Total cost: ${stats.total_cost:.2f}/month  "
        f"Average duration: {stats.average_duration / 1000:.1f}s\n"
    )
