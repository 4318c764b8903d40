"""Cloud provider adapters."""

from agent_cloud.config import Settings
from agent_cloud.models.deployment import CloudProvider
from agent_cloud.providers.aws import AWSProvider
from agent_cloud.providers.azure import AzureProvider
from agent_cloud.providers.base import BaseCloudProvider
from agent_cloud.providers.command import (
    CommandError,
    CommandRequest,
    CommandResult,
    CommandRunner,
    run_command,
)
from agent_cloud.providers.gcp import GCPProvider

PROVIDERS: dict[CloudProvider, type[BaseCloudProvider]] = {
    CloudProvider.AWS: AWSProvider,
    CloudProvider.GCP: GCPProvider,
    CloudProvider.AZURE: AzureProvider,
}


def get_provider(
    cloud: CloudProvider,
    settings: Settings,
    runner: CommandRunner | None = None,
) -> BaseCloudProvider:
    """Create the adapter for a cloud."""
    return PROVIDERS[cloud](settings, runner=runner)


__all__ = [
    "AWSProvider",
    "AzureProvider",
    "BaseCloudProvider",
    "CommandError",
    "CommandRequest",
    "CommandResult",
    "CommandRunner",
    "GCPProvider",
    "PROVIDERS",
    "get_provider",
    "run_command",
]
