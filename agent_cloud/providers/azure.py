"""Azure provider: Container Apps and Blob Storage website deployments."""

import re
import time
from pathlib import Path

from agent_cloud.models.deployment import CloudProvider, DeploymentResult
from agent_cloud.providers.base import BaseCloudProvider
from agent_cloud.providers.command import CommandError

DEFAULT_IMAGE = "mcr.microsoft.com/azuredocs/containerapps-helloworld:latest"

# Storage account names: 3-24 lowercase letters and digits
_STORAGE_NAME_MAX = 24
_NOT_ALNUM = re.compile(r"[^a-z0-9]")


def storage_account_name(base: str, suffix: str | None = None) -> str:
    """Derive a valid storage account name, keeping the uniqueness suffix intact."""
    suffix = suffix if suffix is not None else str(int(time.time() * 1000))
    prefix = _NOT_ALNUM.sub("", base.lower())[: _STORAGE_NAME_MAX - len(suffix)]
    return f"{prefix}{suffix}"[:_STORAGE_NAME_MAX]


class AzureProvider(BaseCloudProvider):
    """Deploys to Azure through the ``az`` CLI."""

    cloud = CloudProvider.AZURE
    cli_binary = "az"

    @property
    def resource_group(self) -> str:
        return self.settings.azure_resource_group

    @property
    def location(self) -> str:
        return self.settings.azure_location

    async def authenticate(self) -> bool:
        """Check the CLI session and select the configured subscription."""
        try:
            account = await self._run_json("account", "show", "--output", "json")
            if self.settings.azure_subscription_id:
                await self._run(
                    "account", "set",
                    "--subscription", self.settings.azure_subscription_id,
                )
        except Exception as e:
            self.logger.error("azure.authentication_failed", error=str(e), hint="Run: az login")
            return False

        self.logger.info(
            "azure.authenticated",
            user=account.get("user", {}).get("name"),
            subscription=self.settings.azure_subscription_id or account.get("id"),
        )
        return True

    async def ensure_resource_group(self) -> None:
        """Create the configured resource group if it does not exist."""
        try:
            await self._run("group", "show", "--name", self.resource_group)
            self.logger.debug("azure.resource_group_exists", resource_group=self.resource_group)
        except CommandError:
            self.logger.info("azure.resource_group_creating", resource_group=self.resource_group)
            await self._run(
                "group", "create",
                "--name", self.resource_group,
                "--location", self.location,
            )

    async def deploy_managed_compute(
        self,
        app_name: str,
        container_port: int | None = None,
        docker_image: str | None = None,
        source_dir: str | None = None,
    ) -> DeploymentResult:
        """Deploy to Azure Container Apps with external ingress."""
        port = container_port or self.default_container_port
        environment_name = f"{app_name}-env"

        self.logger.info("azure.container_app.deploying", app=app_name, port=port)

        try:
            await self.ensure_resource_group()

            try:
                await self._run(
                    "containerapp", "env", "create",
                    "--name", environment_name,
                    "--resource-group", self.resource_group,
                    "--location", self.location,
                    timeout=self._deploy_timeout,
                )
            except CommandError:
                # Reuse an environment left by a previous deployment
                await self._run(
                    "containerapp", "env", "show",
                    "--name", environment_name,
                    "--resource-group", self.resource_group,
                )

            result = await self._run(
                "containerapp", "create",
                "--name", app_name,
                "--resource-group", self.resource_group,
                "--environment", environment_name,
                "--image", docker_image or DEFAULT_IMAGE,
                "--target-port", str(port),
                "--ingress", "external",
                "--query", "properties.configuration.ingress.fqdn",
                "--output", "tsv",
                timeout=self._deploy_timeout,
            )
        except Exception as e:
            return self._failed(e)

        fqdn = result.stdout.strip()
        self.logger.info("azure.container_app.deployed", app=app_name, fqdn=fqdn)
        return DeploymentResult(
            success=True,
            resources={
                "containerApp": app_name,
                "environment": environment_name,
                "resourceGroup": self.resource_group,
            },
            url=f"https://{fqdn}" if fqdn else None,
        )

    async def deploy_static_site(self, site_name: str, build_dir: str) -> DeploymentResult:
        """Deploy a static site to a Blob Storage static website."""
        if not Path(build_dir).is_dir():
            return DeploymentResult(success=False, error=f"Build directory not found: {build_dir}")

        account_name = storage_account_name(site_name)
        self.logger.info("azure.storage.deploying", account=account_name, build_dir=build_dir)

        try:
            await self.ensure_resource_group()

            await self._run(
                "storage", "account", "create",
                "--name", account_name,
                "--resource-group", self.resource_group,
                "--location", self.location,
                "--sku", "Standard_LRS",
                "--kind", "StorageV2",
                timeout=self._deploy_timeout,
            )
            await self._run(
                "storage", "blob", "service-properties", "update",
                "--account-name", account_name,
                "--static-website",
                "--index-document", "index.html",
                "--404-document", "404.html",
            )
            await self._run(
                "storage", "blob", "upload-batch",
                "--account-name", account_name,
                "--source", build_dir,
                "--destination", "$web",
                "--overwrite",
                timeout=self._deploy_timeout,
            )
        except Exception as e:
            return self._failed(e)

        return DeploymentResult(
            success=True,
            resources={"storage": account_name, "resourceGroup": self.resource_group},
            url=f"https://{account_name}.z13.web.core.windows.net",
        )

    async def cleanup(self, resources: dict[str, str]) -> None:
        """Delete the container app, its environment and the storage account."""
        group = resources.get("resourceGroup") or self.resource_group

        if resources.get("containerApp"):
            await self._cleanup_step(
                f"delete container app {resources['containerApp']}",
                "containerapp", "delete",
                "--name", resources["containerApp"],
                "--resource-group", group,
                "--yes",
            )
        # The environment can only go once its apps are gone
        if resources.get("environment"):
            await self._cleanup_step(
                f"delete container apps environment {resources['environment']}",
                "containerapp", "env", "delete",
                "--name", resources["environment"],
                "--resource-group", group,
                "--yes",
            )
        if resources.get("storage"):
            await self._cleanup_step(
                f"delete storage account {resources['storage']}",
                "storage", "account", "delete",
                "--name", resources["storage"],
                "--resource-group", group,
                "--yes",
            )

        self.logger.info("azure.cleanup.completed", resources=resources)

    async def cleanup_resource_group(self, group: str | None = None) -> bool:
        """Start deleting a whole resource group without waiting for it."""
        group = group or self.resource_group
        return await self._cleanup_step(
            f"delete resource group {group}",
            "group", "delete",
            "--name", group,
            "--yes",
            "--no-wait",
        )
