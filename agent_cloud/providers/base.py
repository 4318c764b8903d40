"""Base class for cloud provider adapters."""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from agent_cloud.config import Settings
from agent_cloud.models.deployment import CloudProvider, DeploymentResult
from agent_cloud.providers.command import (
    CommandError,
    CommandRequest,
    CommandResult,
    CommandRunner,
    run_command,
)
from agent_cloud.utils.logging import get_logger


class BaseCloudProvider(ABC):
    """Uniform deployment contract implemented once per cloud vendor.

    Subclasses sequence vendor CLI calls and translate their failures into
    ``DeploymentResult``; they keep no state beyond configuration. All
    commands go through ``runner`` so tests can substitute a fake.
    """

    cloud: ClassVar[CloudProvider]
    cli_binary: ClassVar[str]
    default_container_port: ClassVar[int] = 8080

    def __init__(self, settings: Settings, runner: CommandRunner | None = None):
        self.settings = settings
        self._runner = runner or run_command
        self.logger = get_logger(f"provider.{self.cloud.value}")

    @abstractmethod
    async def authenticate(self) -> bool:
        """Verify the vendor CLI session; returns False instead of raising."""

    @abstractmethod
    async def deploy_managed_compute(
        self,
        app_name: str,
        container_port: int | None = None,
        docker_image: str | None = None,
        source_dir: str | None = None,
    ) -> DeploymentResult:
        """Deploy a container to the vendor's managed compute service."""

    @abstractmethod
    async def deploy_static_site(self, site_name: str, build_dir: str) -> DeploymentResult:
        """Host ``build_dir`` from object storage configured as a website."""

    @abstractmethod
    async def cleanup(self, resources: dict[str, str]) -> None:
        """Best-effort teardown of resources from a previous deployment."""

    async def _run(
        self,
        *args: str,
        cwd: str | None = None,
        timeout: float | None = None,
        check: bool = True,
    ) -> CommandResult:
        """Run a vendor CLI command.

        Raises:
            CommandError: If ``check`` is set and the command fails
        """
        request = CommandRequest(
            args=[self.cli_binary, *args],
            cwd=cwd,
            timeout=timeout or self.settings.command_timeout,
        )
        result = await self._runner(request)
        if check and not result.success:
            raise CommandError(request, result)
        return result

    async def _run_json(self, *args: str, timeout: float | None = None) -> Any:
        """Run a command and decode its JSON output."""
        result = await self._run(*args, timeout=timeout)
        return json.loads(result.stdout) if result.stdout else {}

    @property
    def _deploy_timeout(self) -> float:
        return self.settings.deploy_command_timeout

    @staticmethod
    def _unique_name(base: str) -> str:
        """Derive a resource name that is unique per deployment."""
        return f"{base}-{int(time.time() * 1000)}"

    def _failed(self, error: Exception) -> DeploymentResult:
        self.logger.error("provider.deploy_failed", error=str(error))
        return DeploymentResult(success=False, resources={}, error=str(error) or "Unknown error")

    async def _cleanup_step(self, description: str, *args: str) -> bool:
        """Run one teardown command, logging instead of raising on failure."""
        self.logger.info("provider.cleanup_step", step=description)
        try:
            await self._run(*args, timeout=self._deploy_timeout)
            return True
        except Exception as e:
            self.logger.warning("provider.cleanup_step_failed", step=description, error=str(e))
            return False
