"""Interactive prompts and cloud provider descriptions."""

from dataclasses import dataclass

from rich.prompt import Confirm, Prompt

from agent_cloud.cli.display import console, display_header
from agent_cloud.models import CloudProvider


@dataclass(frozen=True)
class CloudProviderInfo:
    display_name: str
    description: str
    icon: str
    cli: str
    docs_url: str


CLOUD_PROVIDERS: dict[CloudProvider, CloudProviderInfo] = {
    CloudProvider.AWS: CloudProviderInfo(
        display_name="Amazon Web Services (AWS)",
        description="Industry-leading cloud platform with extensive services",
        icon="☁️",
        cli="aws",
        docs_url="https://aws.amazon.com/cli/",
    ),
    CloudProvider.GCP: CloudProviderInfo(
        display_name="Google Cloud Platform (GCP)",
        description="Powerful infrastructure with advanced AI/ML capabilities",
        icon="🌐",
        cli="gcloud",
        docs_url="https://cloud.google.com/sdk/gcloud",
    ),
    CloudProvider.AZURE: CloudProviderInfo(
        display_name="Microsoft Azure",
        description="Enterprise-grade cloud with seamless Microsoft integration",
        icon="⚡",
        cli="az",
        docs_url="https://learn.microsoft.com/cli/azure/",
    ),
}


def display_cloud_providers() -> None:
    display_header("Available Cloud Providers")
    for info in CLOUD_PROVIDERS.values():
        console.print(f"  {info.icon}  [bold]{info.display_name}[/bold]")
        console.print(f"     [dim]{info.description}[/dim]")
        console.print(f"     [dim]CLI: {info.cli}[/dim]")
        console.print(f"     [dim]Docs: {info.docs_url}[/dim]")
        console.print()


def select_cloud(default: CloudProvider = CloudProvider.AWS) -> CloudProvider:
    """Ask the user to pick a cloud provider."""
    for cloud, info in CLOUD_PROVIDERS.items():
        console.print(f"  {info.icon}  [bold]{cloud.value}[/bold]  {info.display_name}")
    choice = Prompt.ask(
        "[cyan]Select your cloud provider[/cyan]",
        choices=[cloud.value for cloud in CloudProvider],
        default=default.value,
        console=console,
    )
    return CloudProvider(choice)


def confirm_deployment() -> bool:
    return Confirm.ask(
        "[cyan]Do you want to proceed with this deployment?[/cyan]",
        default=False,
        console=console,
    )
