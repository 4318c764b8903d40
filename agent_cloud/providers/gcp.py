"""GCP provider: Cloud Run and Cloud Storage website deployments."""

import re
from pathlib import Path

from agent_cloud.models.deployment import CloudProvider, DeploymentResult
from agent_cloud.providers.base import BaseCloudProvider
from agent_cloud.providers.command import CommandResult

_SERVICE_URL = re.compile(r"Service URL: (https://\S+)")


class GCPProvider(BaseCloudProvider):
    """Deploys to Google Cloud through the ``gcloud`` CLI."""

    cloud = CloudProvider.GCP
    cli_binary = "gcloud"

    @property
    def project_id(self) -> str | None:
        return self.settings.gcloud_project

    @property
    def region(self) -> str:
        return self.settings.gcloud_region

    async def authenticate(self) -> bool:
        """Require an active account and a configured project."""
        try:
            result = await self._run(
                "auth", "list",
                "--filter=status:ACTIVE",
                "--format=value(account)",
            )
        except Exception as e:
            self.logger.error("gcp.authentication_failed", error=str(e), hint="Run: gcloud auth login")
            return False

        if not result.stdout.strip():
            self.logger.error("gcp.no_active_account", hint="Run: gcloud auth login")
            return False

        if not self.project_id:
            self.logger.error(
                "gcp.no_project",
                hint="Set GCLOUD_PROJECT or GOOGLE_CLOUD_PROJECT",
            )
            return False

        self.logger.info("gcp.authenticated", account=result.stdout.splitlines()[0], project=self.project_id)
        return True

    async def deploy_managed_compute(
        self,
        app_name: str,
        container_port: int | None = None,
        docker_image: str | None = None,
        source_dir: str | None = None,
    ) -> DeploymentResult:
        """Deploy to Cloud Run, building the image with Cloud Build when none is given."""
        if not self.project_id:
            return self._failed(RuntimeError("GCP project is not configured"))

        port = container_port or self.default_container_port
        service_name = app_name
        image = docker_image

        self.logger.info("gcp.cloud_run.deploying", service=service_name, port=port)

        try:
            if not image:
                image = f"gcr.io/{self.project_id}/{service_name}:latest"
                await self._run(
                    "builds", "submit",
                    "--tag", image,
                    "--project", self.project_id,
                    cwd=source_dir,
                    timeout=self._deploy_timeout,
                )

            result = await self._run(
                "run", "deploy", service_name,
                "--image", image,
                "--platform", "managed",
                "--region", self.region,
                "--port", str(port),
                "--allow-unauthenticated",
                "--project", self.project_id,
                timeout=self._deploy_timeout,
            )

            url = self._parse_service_url(result)
            if not url:
                described = await self._run(
                    "run", "services", "describe", service_name,
                    "--platform", "managed",
                    "--region", self.region,
                    "--project", self.project_id,
                    "--format=value(status.url)",
                )
                url = described.stdout.strip() or None
        except Exception as e:
            return self._failed(e)

        self.logger.info("gcp.cloud_run.deployed", service=service_name, url=url)
        return DeploymentResult(
            success=True,
            resources={"service": service_name, "region": self.region, "image": image},
            url=url,
        )

    @staticmethod
    def _parse_service_url(result: CommandResult) -> str | None:
        # gcloud prints progress, including the URL, on stderr
        match = _SERVICE_URL.search(f"{result.stdout}\n{result.stderr}")
        return match.group(1) if match else None

    async def deploy_static_site(self, site_name: str, build_dir: str) -> DeploymentResult:
        """Deploy a static site to a public Cloud Storage bucket."""
        if not self.project_id:
            return self._failed(RuntimeError("GCP project is not configured"))
        if not Path(build_dir).is_dir():
            return DeploymentResult(success=False, error=f"Build directory not found: {build_dir}")

        bucket_name = self._unique_name(site_name)
        bucket_url = f"gs://{bucket_name}"
        self.logger.info("gcp.storage.deploying", bucket=bucket_name, build_dir=build_dir)

        try:
            await self._run(
                "storage", "buckets", "create", bucket_url,
                "--project", self.project_id,
                "--location", self.region,
                "--uniform-bucket-level-access",
            )
            await self._run(
                "storage", "buckets", "add-iam-policy-binding", bucket_url,
                "--member=allUsers",
                "--role=roles/storage.objectViewer",
                "--project", self.project_id,
            )
            await self._run(
                "storage", "buckets", "update", bucket_url,
                "--web-main-page-suffix=index.html",
                "--web-error-page=404.html",
                "--project", self.project_id,
            )
            # Copies the directory contents, not the directory itself
            await self._run(
                "storage", "rsync", "--recursive", build_dir, bucket_url,
                "--project", self.project_id,
                timeout=self._deploy_timeout,
            )
        except Exception as e:
            return self._failed(e)

        return DeploymentResult(
            success=True,
            resources={"bucket": bucket_name},
            url=f"https://storage.googleapis.com/{bucket_name}/index.html",
        )

    async def cleanup(self, resources: dict[str, str]) -> None:
        """Delete the Cloud Run service and storage bucket."""
        # Target the deploy project, not whatever gcloud has active
        project = ["--project", self.project_id] if self.project_id else []

        if resources.get("service"):
            await self._cleanup_step(
                f"delete service {resources['service']}",
                "run", "services", "delete", resources["service"],
                "--platform", "managed",
                "--region", resources.get("region") or self.region,
                *project,
                "--quiet",
            )
        if resources.get("bucket"):
            await self._cleanup_step(
                f"delete bucket {resources['bucket']}",
                "storage", "rm", "-r", f"gs://{resources['bucket']}",
                *project,
            )

        self.logger.info("gcp.cleanup.completed", resources=resources)
