"""AWS provider: ECS Fargate and S3 static website deployments."""

import json
from pathlib import Path

from agent_cloud.models.deployment import CloudProvider, DeploymentResult
from agent_cloud.providers.base import BaseCloudProvider
from agent_cloud.providers.command import CommandResult

DEFAULT_IMAGE = "nginx:latest"


class AWSProvider(BaseCloudProvider):
    """Deploys to AWS through the ``aws`` CLI."""

    cloud = CloudProvider.AWS
    cli_binary = "aws"
    default_container_port = 3000

    @property
    def region(self) -> str:
        return self.settings.aws_region

    async def _run(self, *args: str, **kwargs) -> CommandResult:
        # Every call is pinned to the configured region and profile
        scoped = [*args, "--region", self.region]
        if self.settings.aws_profile:
            scoped += ["--profile", self.settings.aws_profile]
        return await super()._run(*scoped, **kwargs)

    async def authenticate(self) -> bool:
        """Verify credentials with ``sts get-caller-identity``."""
        try:
            identity = await self._run_json("sts", "get-caller-identity", "--output", "json")
        except Exception as e:
            self.logger.error("aws.authentication_failed", error=str(e), hint="Run: aws configure")
            return False

        self.logger.info("aws.authenticated", arn=identity.get("Arn"))
        return True

    async def deploy_managed_compute(
        self,
        app_name: str,
        container_port: int | None = None,
        docker_image: str | None = None,
        source_dir: str | None = None,
    ) -> DeploymentResult:
        """Deploy to ECS Fargate.

        Creates a cluster, registers a task definition, opens the container
        port in a new security group of the default VPC and starts a
        one-task service.
        """
        port = container_port or self.default_container_port
        cluster_name = f"{app_name}-cluster"
        service_name = f"{app_name}-service"
        task_family = f"{app_name}-task"
        resources: dict[str, str] = {}

        self.logger.info("aws.ecs.deploying", app=app_name, port=port)

        try:
            # Step 1: Create ECS cluster
            await self._run("ecs", "create-cluster", "--cluster-name", cluster_name)
            resources["cluster"] = cluster_name

            # Step 2: Register task definition
            task_definition = {
                "family": task_family,
                "networkMode": "awsvpc",
                "requiresCompatibilities": ["FARGATE"],
                "cpu": "256",
                "memory": "512",
                "containerDefinitions": [
                    {
                        "name": app_name,
                        "image": docker_image or DEFAULT_IMAGE,
                        "portMappings": [{"containerPort": port, "protocol": "tcp"}],
                        "essential": True,
                    }
                ],
            }
            await self._run(
                "ecs",
                "register-task-definition",
                "--cli-input-json",
                json.dumps(task_definition),
            )
            resources["taskDefinition"] = task_family

            # Step 3: Default VPC and two of its subnets
            vpcs = await self._run_json(
                "ec2", "describe-vpcs",
                "--filters", "Name=isDefault,Values=true",
                "--output", "json",
            )
            if not vpcs.get("Vpcs"):
                raise RuntimeError(f"No default VPC found in {self.region}")
            vpc_id = vpcs["Vpcs"][0]["VpcId"]

            subnets = await self._run_json(
                "ec2", "describe-subnets",
                "--filters", f"Name=vpc-id,Values={vpc_id}",
                "--output", "json",
            )
            subnet_ids = [s["SubnetId"] for s in subnets.get("Subnets", [])][:2]
            if not subnet_ids:
                raise RuntimeError(f"No subnets found in VPC {vpc_id}")

            # Step 4: Security group allowing inbound traffic on the port
            group = await self._run_json(
                "ec2", "create-security-group",
                "--group-name", self._unique_name(f"{app_name}-sg"),
                "--description", f"Security group for {app_name}",
                "--vpc-id", vpc_id,
                "--output", "json",
            )
            security_group_id = group["GroupId"]
            resources["securityGroup"] = security_group_id

            await self._run(
                "ec2", "authorize-security-group-ingress",
                "--group-id", security_group_id,
                "--protocol", "tcp",
                "--port", str(port),
                "--cidr", "0.0.0.0/0",
            )

            # Step 5: Create ECS service
            network = (
                f"awsvpcConfiguration={{subnets=[{','.join(subnet_ids)}],"
                f"securityGroups=[{security_group_id}],assignPublicIp=ENABLED}}"
            )
            await self._run(
                "ecs", "create-service",
                "--cluster", cluster_name,
                "--service-name", service_name,
                "--task-definition", task_family,
                "--desired-count", "1",
                "--launch-type", "FARGATE",
                "--network-configuration", network,
                timeout=self._deploy_timeout,
            )
            resources["service"] = service_name

        except Exception as e:
            return self._failed(e)

        self.logger.info("aws.ecs.deployed", cluster=cluster_name, service=service_name)

        # The task's public IP is only known once it is running
        return DeploymentResult(
            success=True,
            resources=resources,
            url=f"http://<task-ip>:{port}",
        )

    async def deploy_static_site(self, site_name: str, build_dir: str) -> DeploymentResult:
        """Deploy a static site to an S3 website bucket."""
        if not Path(build_dir).is_dir():
            return DeploymentResult(success=False, error=f"Build directory not found: {build_dir}")

        bucket_name = self._unique_name(site_name)
        self.logger.info("aws.s3.deploying", bucket=bucket_name, build_dir=build_dir)

        try:
            await self._run("s3", "mb", f"s3://{bucket_name}")

            # New buckets block public policies by default
            await self._run("s3api", "delete-public-access-block", "--bucket", bucket_name)

            await self._run(
                "s3", "website", f"s3://{bucket_name}",
                "--index-document", "index.html",
                "--error-document", "error.html",
            )

            policy = {
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Sid": "PublicReadGetObject",
                        "Effect": "Allow",
                        "Principal": "*",
                        "Action": "s3:GetObject",
                        "Resource": f"arn:aws:s3:::{bucket_name}/*",
                    }
                ],
            }
            await self._run(
                "s3api", "put-bucket-policy",
                "--bucket", bucket_name,
                "--policy", json.dumps(policy),
            )

            await self._run(
                "s3", "sync", build_dir, f"s3://{bucket_name}", "--delete",
                timeout=self._deploy_timeout,
            )
        except Exception as e:
            return self._failed(e)

        return DeploymentResult(
            success=True,
            resources={"bucket": bucket_name},
            url=f"http://{bucket_name}.s3-website-{self.region}.amazonaws.com",
        )

    async def cleanup(self, resources: dict[str, str]) -> None:
        """Delete the service, cluster, security group and bucket."""
        cluster = resources.get("cluster")
        service = resources.get("service")

        if service and cluster:
            await self._cleanup_step(
                f"delete service {service}",
                "ecs", "delete-service", "--cluster", cluster, "--service", service, "--force",
            )
        if cluster:
            await self._cleanup_step(
                f"delete cluster {cluster}",
                "ecs", "delete-cluster", "--cluster", cluster,
            )
        if resources.get("securityGroup"):
            await self._cleanup_step(
                f"delete security group {resources['securityGroup']}",
                "ec2", "delete-security-group", "--group-id", resources["securityGroup"],
            )
        if resources.get("bucket"):
            await self._cleanup_step(
                f"delete bucket {resources['bucket']}",
                "s3", "rb", f"s3://{resources['bucket']}", "--force",
            )

        self.logger.info("aws.cleanup.completed", resources=resources)
