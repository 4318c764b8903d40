"""Integration tests for the command line interface."""

import asyncio

import pytest
from typer.testing import CliRunner

from agent_cloud.cli import app as cli_app
from agent_cloud.core.history import HistoryStore
from agent_cloud.models import CloudProvider
from agent_cloud.providers import AzureProvider

cli_runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, settings, workflow, tmp_path):
    """Point the CLI at test settings, the stub workflow and a scratch cwd."""
    monkeypatch.setattr("agent_cloud.cli.commands.get_settings", lambda: settings)
    monkeypatch.setattr("agent_cloud.cli.commands.create_workflow", lambda _settings: workflow)
    monkeypatch.setattr("agent_cloud.cli.commands.DEMO_STEP_DELAY", 0)
    monkeypatch.chdir(tmp_path)


def invoke(*args: str, input: str | None = None):
    return cli_runner.invoke(cli_app, list(args), input=input)


class TestInfoCommands:
    """Tests for commands that need no project."""

    def test_version(self):
        result = invoke("--version")
        assert result.exit_code == 0
        assert "agent-cloud 1.0.0" in result.output

    def test_info(self):
        result = invoke("info")

        assert result.exit_code == 0
        assert "Amazon Web Services" in result.output
        assert "gcloud" in result.output
        assert "Microsoft Azure" in result.output

    def test_no_suspended_runs(self):
        result = invoke("runs")

        assert result.exit_code == 0
        assert "No suspended runs" in result.output


class TestDemo:
    """Tests for the simulated walkthrough."""

    def test_auto_approved(self, provider):
        result = invoke("demo", "--cloud", "aws", "--yes")

        assert result.exit_code == 0
        assert "Deployment completed successfully!" in result.output
        assert provider.calls == []

    def test_declined(self):
        result = invoke("demo", "--cloud", "gcp", input="n\n")

        assert result.exit_code == 0
        assert "Deployment cancelled by user" in result.output

    def test_invalid_cloud(self):
        result = invoke("demo", "--cloud", "ibm")

        assert result.exit_code == 1
        assert "Invalid cloud provider" in result.output


class TestDeploy:
    """Tests for deploy and resume."""

    def test_deploy_auto_approved(self, project_dir, provider):
        result = invoke("deploy", "--cloud", "aws", "--yes", "--path", str(project_dir))

        assert result.exit_code == 0, result.output
        assert "Deployment to AWS completed successfully!" in result.output
        assert [name for name, _ in provider.deploy_calls] == ["deploy_managed_compute"]

        records = HistoryStore(project_dir).get_deployments()
        assert len(records) == 1
        assert records[0].success is True

    def test_deploy_declined(self, project_dir, provider):
        result = invoke("deploy", "--cloud", "gcp", "--path", str(project_dir), input="n\n")

        assert result.exit_code == 0
        assert "Deployment cancelled by user" in result.output
        assert provider.calls == []

    def test_deploy_uses_project_default_cloud(self, project_dir, provider):
        HistoryStore(project_dir).set_default_cloud(CloudProvider.AZURE)

        result = invoke("deploy", "--yes", "--path", str(project_dir))

        assert result.exit_code == 0
        assert "Deployment to AZURE completed successfully!" in result.output

    def test_deploy_honors_auto_approve_setting(self, project_dir, provider):
        HistoryStore(project_dir).set_auto_approve(True)

        result = invoke("deploy", "--cloud", "aws", "--path", str(project_dir))

        assert result.exit_code == 0
        assert provider.deploy_calls

    def test_deploy_failure_exits_nonzero(self, project_dir, provider):
        provider.authenticated = False

        result = invoke("deploy", "--cloud", "aws", "--yes", "--path", str(project_dir))

        assert result.exit_code == 1
        assert "AWS authentication failed" in result.output

    def test_deploy_missing_project(self, tmp_path):
        result = invoke("deploy", "--cloud", "aws", "--path", str(tmp_path / "missing"))

        assert result.exit_code == 1
        assert "Project path does not exist" in result.output

    def test_defer_then_resume(self, project_dir, run_store, provider):
        result = invoke("deploy", "--cloud", "aws", "--defer", "--path", str(project_dir))

        assert result.exit_code == 0
        assert provider.calls == []

        pending = asyncio.run(run_store.list_runs())
        assert len(pending) == 1
        run_id = pending[0].id
        assert run_id in result.output

        listed = invoke("runs")
        assert listed.exit_code == 0
        assert "Suspended Runs" in listed.output

        resumed = invoke("resume", run_id, "--approve")

        assert resumed.exit_code == 0
        assert "completed successfully" in resumed.output
        assert provider.deploy_calls

    def test_resume_unknown_run(self):
        result = invoke("resume", "abc123", "--reject")

        assert result.exit_code == 1
        assert "Run not found" in result.output


class TestHistoryCommands:
    """Tests for history, config and cleanup."""

    def test_empty_history(self, project_dir):
        result = invoke("history", "--path", str(project_dir))

        assert result.exit_code == 0
        assert "No deployments recorded yet" in result.output

    def test_history_after_deploy(self, project_dir):
        invoke("deploy", "--cloud", "aws", "--yes", "--path", str(project_dir))

        result = invoke("history", "--path", str(project_dir))

        assert result.exit_code == 0
        assert "No deployments recorded yet" not in result.output

    def test_config_updates_settings(self, project_dir):
        result = invoke(
            "config", "--default-cloud", "gcp", "--auto-approve", "--path", str(project_dir)
        )

        assert result.exit_code == 0
        history = HistoryStore(project_dir)
        assert history.get_default_cloud() == CloudProvider.GCP
        assert history.get_auto_approve() is True

    def test_cleanup_without_history(self, project_dir):
        result = invoke("cleanup", "--path", str(project_dir))

        assert result.exit_code == 0
        assert "No deployments to clean up" in result.output

    def test_cleanup_unknown_deployment(self, project_dir):
        result = invoke("cleanup", "--id", "nope", "--path", str(project_dir))

        assert result.exit_code == 1
        assert "Deployment not found" in result.output

    def test_cleanup_record_without_resources(self, project_dir):
        HistoryStore(project_dir).add_deployment(
            cloud=CloudProvider.AWS, project_path=str(project_dir), success=False
        )

        result = invoke("cleanup", "--path", str(project_dir))

        assert result.exit_code == 0
        assert "has no resources to clean up" in result.output

    def test_cleanup_runs_provider_teardown(self, project_dir, monkeypatch, provider):
        record = HistoryStore(project_dir).add_deployment(
            cloud=CloudProvider.AWS,
            project_path=str(project_dir),
            success=True,
            resources={"cluster": "test-app-cluster"},
        )
        monkeypatch.setattr(
            "agent_cloud.cli.commands.get_provider", lambda cloud, _settings: provider
        )

        result = invoke("cleanup", "--id", record.id, "--path", str(project_dir))

        assert result.exit_code == 0
        assert provider.calls == [("cleanup", {"cluster": "test-app-cluster"})]

    def test_cleanup_resource_group(self, project_dir, monkeypatch, settings, runner):
        HistoryStore(project_dir).add_deployment(
            cloud=CloudProvider.AZURE,
            project_path=str(project_dir),
            success=True,
            resources={"containerApp": "shop", "environment": "shop-env", "resourceGroup": "shop-rg"},
        )
        monkeypatch.setattr(
            "agent_cloud.cli.commands.get_provider",
            lambda cloud, _settings: AzureProvider(settings, runner=runner),
        )

        result = invoke("cleanup", "--resource-group", "--path", str(project_dir))

        assert result.exit_code == 0
        assert runner.commands == [["az", "group", "delete", "--name", "shop-rg", "--yes", "--no-wait"]]

    def test_cleanup_resource_group_rejects_other_clouds(self, project_dir, provider, monkeypatch):
        HistoryStore(project_dir).add_deployment(
            cloud=CloudProvider.GCP,
            project_path=str(project_dir),
            success=True,
            resources={"service": "shop"},
        )
        monkeypatch.setattr(
            "agent_cloud.cli.commands.get_provider", lambda cloud, _settings: provider
        )

        result = invoke("cleanup", "--resource-group", "--path", str(project_dir))

        assert result.exit_code == 1
        assert "only applies to Azure" in result.output
        assert provider.calls == []
