"""CLI error rendering."""

from rich.console import Console
from rich.markup import escape

from agent_cloud.core.exceptions import (
    AgentCloudError,
    AuthenticationError,
    DeploymentError,
    ValidationError,
    WorkflowError,
)
from agent_cloud.utils.logging import get_logger

logger = get_logger(__name__)

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


class ErrorHandler:
    """Renders errors for the terminal and returns the exit code to use.

    Stack traces are printed only in debug mode.
    """

    def __init__(self, console: Console, debug: bool = False):
        self.console = console
        self.debug = debug

    def handle(self, error: BaseException) -> int:
        if isinstance(error, KeyboardInterrupt):
            self.console.print("\n[yellow]⚠  Process interrupted by user[/yellow]")
            return EXIT_INTERRUPTED

        if isinstance(error, AuthenticationError):
            title = f"Authentication failed ({error.cloud})"
        elif isinstance(error, DeploymentError):
            title = f"Deployment failed ({error.code})"
        elif isinstance(error, ValidationError):
            title = "Invalid input"
        elif isinstance(error, WorkflowError):
            title = f"Workflow error in {error.step}"
        else:
            title = "Unexpected error"

        self.console.print(f"[bold red]✗ {title}:[/bold red] {escape(str(error))}")

        if isinstance(error, AgentCloudError):
            logger.error("cli.error", error_type=type(error).__name__, **error.details)
            for suggestion in error.suggestions:
                self.console.print(f"  [dim]→ {suggestion}[/dim]")
        else:
            logger.error("cli.unexpected_error", error=str(error), exc_info=self.debug)

        if self.debug:
            self.console.print_exception(show_locals=False)
        else:
            self.console.print("\n[dim]💡 Tip: Run with --debug for more details[/dim]")

        return EXIT_FAILURE
