"""Unit tests for the cloud provider adapters."""

import json

import pytest

from agent_cloud.models import CloudProvider
from agent_cloud.providers import (
    PROVIDERS,
    AWSProvider,
    AzureProvider,
    GCPProvider,
    get_provider,
)
from agent_cloud.providers.azure import storage_account_name

VPCS = json.dumps({"Vpcs": [{"VpcId": "vpc-123"}]})
SUBNETS = json.dumps({"Subnets": [{"SubnetId": s} for s in ("subnet-a", "subnet-b", "subnet-c")]})
SECURITY_GROUP = json.dumps({"GroupId": "sg-42"})


@pytest.fixture
def site_dir(tmp_path):
    build = tmp_path / "dist"
    build.mkdir()
    (build / "index.html").write_text("<h1>hi</h1>")
    return build


def test_get_provider_covers_every_cloud(settings):
    assert set(PROVIDERS) == set(CloudProvider)
    for cloud in CloudProvider:
        assert get_provider(cloud, settings).cloud == cloud


class TestAWSProvider:
    """Tests for AWSProvider."""

    @pytest.fixture
    def aws(self, settings, runner):
        runner.on("aws", "ec2", "describe-vpcs", stdout=VPCS)
        runner.on("aws", "ec2", "describe-subnets", stdout=SUBNETS)
        runner.on("aws", "ec2", "create-security-group", stdout=SECURITY_GROUP)
        runner.on("aws", "sts", "get-caller-identity", stdout='{"Arn": "arn:aws:iam::1:user/dev"}')
        return AWSProvider(settings, runner=runner)

    @pytest.mark.asyncio
    async def test_authenticate(self, aws, runner):
        assert await aws.authenticate() is True
        assert runner.commands[0][:3] == ["aws", "sts", "get-caller-identity"]
        assert runner.commands[0][-2:] == ["--region", "us-east-1"]

    @pytest.mark.asyncio
    async def test_authenticate_failure_returns_false(self, aws, runner):
        runner.on("aws", "sts", stderr="Unable to locate credentials", exit_code=255)
        assert await aws.authenticate() is False

    @pytest.mark.asyncio
    async def test_profile_is_appended(self, settings, runner):
        provider = AWSProvider(settings.model_copy(update={"aws_profile": "staging"}), runner=runner)
        await provider.authenticate()
        assert runner.commands[0][-2:] == ["--profile", "staging"]

    @pytest.mark.asyncio
    async def test_deploy_managed_compute(self, aws, runner):
        result = await aws.deploy_managed_compute("shop", container_port=3000)

        assert result.success
        assert result.url == "http://<task-ip>:3000"
        assert result.resources == {
            "cluster": "shop-cluster",
            "taskDefinition": "shop-task",
            "securityGroup": "sg-42",
            "service": "shop-service",
        }

        steps = [cmd[1:3] for cmd in runner.commands]
        assert steps == [
            ["ecs", "create-cluster"],
            ["ecs", "register-task-definition"],
            ["ec2", "describe-vpcs"],
            ["ec2", "describe-subnets"],
            ["ec2", "create-security-group"],
            ["ec2", "authorize-security-group-ingress"],
            ["ecs", "create-service"],
        ]

        task = json.loads(runner.find("aws", "ecs", "register-task-definition")[0].args[4])
        assert task["family"] == "shop-task"
        assert task["containerDefinitions"][0]["portMappings"][0]["containerPort"] == 3000

        create_service = runner.find("aws", "ecs", "create-service")[0]
        network = create_service.args[create_service.args.index("--network-configuration") + 1]
        assert "subnets=[subnet-a,subnet-b]" in network
        assert "securityGroups=[sg-42]" in network
        assert create_service.timeout == aws.settings.deploy_command_timeout

    @pytest.mark.asyncio
    async def test_deploy_failure_is_a_result(self, aws, runner):
        runner.on("aws", "ecs", "create-service", stderr="AccessDenied", exit_code=254)

        result = await aws.deploy_managed_compute("shop")

        assert result.success is False
        assert result.resources == {}
        assert "AccessDenied" in result.error

    @pytest.mark.asyncio
    async def test_no_default_vpc(self, aws, runner):
        runner.on("aws", "ec2", "describe-vpcs", stdout='{"Vpcs": []}')

        result = await aws.deploy_managed_compute("shop")

        assert not result.success
        assert "No default VPC" in result.error

    @pytest.mark.asyncio
    async def test_deploy_static_site(self, aws, runner, site_dir):
        result = await aws.deploy_static_site("site", str(site_dir))

        assert result.success
        bucket = result.resources["bucket"]
        assert bucket.startswith("site-")
        assert result.url == f"http://{bucket}.s3-website-us-east-1.amazonaws.com"

        sync = runner.find("aws", "s3", "sync")[0]
        assert sync.args[3:6] == [str(site_dir), f"s3://{bucket}", "--delete"]
        policy = json.loads(runner.find("aws", "s3api", "put-bucket-policy")[0].args[6])
        assert policy["Statement"][0]["Resource"] == f"arn:aws:s3:::{bucket}/*"

    @pytest.mark.asyncio
    async def test_static_site_missing_build_dir(self, aws, runner, tmp_path):
        result = await aws.deploy_static_site("site", str(tmp_path / "build"))

        assert not result.success
        assert result.error.startswith("Build directory not found")
        assert runner.commands == []

    @pytest.mark.asyncio
    async def test_cleanup_continues_after_failures(self, aws, runner):
        runner.on("aws", "ecs", "delete-service", stderr="ServiceNotFound", exit_code=254)

        await aws.cleanup(
            {"cluster": "shop-cluster", "service": "shop-service", "securityGroup": "sg-42"}
        )

        steps = [cmd[1:3] for cmd in runner.commands]
        assert steps == [
            ["ecs", "delete-service"],
            ["ecs", "delete-cluster"],
            ["ec2", "delete-security-group"],
        ]


class TestGCPProvider:
    """Tests for GCPProvider."""

    @pytest.fixture
    def gcp(self, settings, runner):
        runner.on("gcloud", "auth", "list", stdout="dev@example.com\n")
        return GCPProvider(settings, runner=runner)

    @pytest.mark.asyncio
    async def test_authenticate(self, gcp):
        assert await gcp.authenticate() is True

    @pytest.mark.asyncio
    async def test_no_active_account(self, gcp, runner):
        runner.on("gcloud", "auth", "list", stdout="")
        assert await gcp.authenticate() is False

    @pytest.mark.asyncio
    async def test_missing_project(self, settings, runner):
        runner.on("gcloud", "auth", "list", stdout="dev@example.com")
        provider = GCPProvider(settings.model_copy(update={"gcloud_project": None}), runner=runner)

        assert await provider.authenticate() is False
        result = await provider.deploy_managed_compute("shop")
        assert not result.success
        assert "project" in result.error

    @pytest.mark.asyncio
    async def test_deploy_builds_image_then_deploys(self, gcp, runner, project_dir):
        runner.on(
            "gcloud", "run", "deploy",
            stderr="Deploying...\nService URL: https://shop-abc-uc.a.run.app\n",
        )

        result = await gcp.deploy_managed_compute("shop", container_port=3000, source_dir=str(project_dir))

        assert result.success
        assert result.url == "https://shop-abc-uc.a.run.app"
        assert result.resources == {
            "service": "shop",
            "region": "us-central1",
            "image": "gcr.io/test-project/shop:latest",
        }

        build = runner.find("gcloud", "builds", "submit")[0]
        assert build.cwd == str(project_dir)
        deploy = runner.find("gcloud", "run", "deploy")[0]
        assert deploy.args[deploy.args.index("--port") + 1] == "3000"
        assert "--allow-unauthenticated" in deploy.args

    @pytest.mark.asyncio
    async def test_deploy_with_image_skips_build(self, gcp, runner):
        runner.on("gcloud", "run", "services", "describe", stdout="https://shop.run.app\n")

        result = await gcp.deploy_managed_compute("shop", docker_image="nginx:latest")

        assert result.url == "https://shop.run.app"
        assert runner.find("gcloud", "builds") == []

    @pytest.mark.asyncio
    async def test_deploy_static_site(self, gcp, runner, site_dir):
        result = await gcp.deploy_static_site("site", str(site_dir))

        assert result.success
        bucket = result.resources["bucket"]
        assert result.url == f"https://storage.googleapis.com/{bucket}/index.html"
        rsync = runner.find("gcloud", "storage", "rsync")[0]
        assert rsync.args[3:6] == ["--recursive", str(site_dir), f"gs://{bucket}"]

    @pytest.mark.asyncio
    async def test_cleanup(self, gcp, runner):
        await gcp.cleanup({"service": "shop", "region": "europe-west1", "bucket": "site-1"})

        delete = runner.find("gcloud", "run", "services", "delete")[0]
        assert "europe-west1" in delete.args
        assert delete.args[delete.args.index("--project") + 1] == "test-project"
        remove = runner.find("gcloud", "storage", "rm")[0]
        assert "gs://site-1" in remove.args
        assert remove.args[remove.args.index("--project") + 1] == "test-project"


class TestAzureProvider:
    """Tests for AzureProvider."""

    @pytest.fixture
    def azure(self, settings, runner):
        runner.on("az", "account", "show", stdout='{"id": "sub-123", "user": {"name": "dev"}}')
        runner.on("az", "containerapp", "create", stdout="shop.kindhill.eastus.azurecontainerapps.io\n")
        return AzureProvider(settings, runner=runner)

    @pytest.mark.asyncio
    async def test_authenticate_selects_subscription(self, azure, runner):
        assert await azure.authenticate() is True
        assert runner.commands[1] == ["az", "account", "set", "--subscription", "sub-123"]

    @pytest.mark.asyncio
    async def test_authenticate_failure(self, azure, runner):
        runner.on("az", "account", "show", stderr="Please run 'az login'", exit_code=1)
        assert await azure.authenticate() is False

    @pytest.mark.asyncio
    async def test_creates_missing_resource_group(self, azure, runner):
        runner.on("az", "group", "show", stderr="ResourceGroupNotFound", exit_code=3)

        await azure.ensure_resource_group()

        assert runner.commands[-1][:3] == ["az", "group", "create"]

    @pytest.mark.asyncio
    async def test_deploy_managed_compute(self, azure, runner):
        result = await azure.deploy_managed_compute("shop", container_port=8000)

        assert result.success
        assert result.url == "https://shop.kindhill.eastus.azurecontainerapps.io"
        assert result.resources == {
            "containerApp": "shop",
            "environment": "shop-env",
            "resourceGroup": "agent-cloud-rg",
        }
        create = runner.find("az", "containerapp", "create")[0]
        assert create.args[create.args.index("--target-port") + 1] == "8000"
        assert runner.find("az", "group", "create") == []

    @pytest.mark.asyncio
    async def test_reuses_existing_environment(self, azure, runner):
        runner.on("az", "containerapp", "env", "create", stderr="already exists", exit_code=1)

        result = await azure.deploy_managed_compute("shop")

        assert result.success
        assert len(runner.find("az", "containerapp", "env", "show")) == 1

    @pytest.mark.asyncio
    async def test_deploy_static_site(self, azure, runner, site_dir):
        result = await azure.deploy_static_site("My-Site", str(site_dir))

        assert result.success
        account = result.resources["storage"]
        assert account.startswith("mysite")
        assert result.url == f"https://{account}.z13.web.core.windows.net"
        upload = runner.find("az", "storage", "blob", "upload-batch")[0]
        assert "$web" in upload.args

    @pytest.mark.asyncio
    async def test_cleanup_deletes_environment_after_app(self, azure, runner):
        await azure.cleanup(
            {"containerApp": "shop", "environment": "shop-env", "resourceGroup": "shop-rg"}
        )

        steps = [cmd[1:4] for cmd in runner.commands]
        assert steps == [
            ["containerapp", "delete", "--name"],
            ["containerapp", "env", "delete"],
        ]
        env_delete = runner.find("az", "containerapp", "env", "delete")[0]
        assert env_delete.args[env_delete.args.index("--name") + 1] == "shop-env"
        assert env_delete.args[env_delete.args.index("--resource-group") + 1] == "shop-rg"
        assert env_delete.args[-1] == "--yes"

    @pytest.mark.asyncio
    async def test_cleanup_resource_group(self, azure, runner):
        assert await azure.cleanup_resource_group() is True
        assert runner.commands[-1][-2:] == ["--yes", "--no-wait"]


class TestStorageAccountName:
    """Tests for storage account naming."""

    def test_strips_invalid_characters(self):
        assert storage_account_name("My_App-Site", "123") == "myappsite123"

    def test_keeps_suffix_within_limit(self):
        name = storage_account_name("a" * 40, "1700000000000")
        assert len(name) == 24
        assert name.endswith("1700000000000")

    def test_default_suffix_is_numeric(self):
        name = storage_account_name("site")
        assert name.startswith("site")
        assert name[4:].isdigit()
        assert len(name) <= 24
