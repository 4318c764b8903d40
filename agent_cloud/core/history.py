"""Per-project configuration and deployment history store."""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from agent_cloud.config import STATE_DIR_NAME
from agent_cloud.core.exceptions import ValidationError
from agent_cloud.models.deployment import (
    MAX_DEPLOYMENT_RECORDS,
    CloudProvider,
    DeploymentRecord,
    DeploymentStats,
    ProjectConfig,
)
from agent_cloud.utils.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAME = "config.json"


class HistoryStore:
    """Manages project configuration and deployment history.

    Backed by a single JSON document at ``<project>/.agent-cloud/config.json``.
    The document is read lazily on first access and rewritten in full on
    every mutation. Assumes a single writer process.
    """

    def __init__(self, project_path: str | Path):
        self._config_dir = Path(project_path) / STATE_DIR_NAME
        self._config_file = self._config_dir / CONFIG_FILE_NAME
        self._config: ProjectConfig | None = None

    @property
    def config_path(self) -> Path:
        """Path to the backing config file."""
        return self._config_file

    @property
    def state_dir(self) -> Path:
        """The project's ``.agent-cloud`` directory."""
        return self._config_dir

    @property
    def _data(self) -> ProjectConfig:
        if self._config is None:
            self._config = self._load()
        return self._config

    def _load(self) -> ProjectConfig:
        """Load configuration from file, falling back to defaults."""
        if self._config_file.exists():
            try:
                content = self._config_file.read_text(encoding="utf-8")
                return ProjectConfig.model_validate_json(content)
            except (OSError, PydanticValidationError) as e:
                logger.warning(
                    "history.load_failed",
                    path=str(self._config_file),
                    error=str(e),
                )

        return ProjectConfig()

    def _save(self) -> None:
        """Rewrite the whole document."""
        self._config_dir.mkdir(parents=True, exist_ok=True)
        self._config_file.write_text(
            self._data.model_dump_json(by_alias=True, exclude_none=True, indent=2),
            encoding="utf-8",
        )

    # Configuration

    def get_config(self) -> ProjectConfig:
        """Get a copy of the current configuration."""
        return self._data.model_copy(deep=True)

    def update_config(self, **updates: Any) -> ProjectConfig:
        """Update top-level configuration fields and persist them."""
        merged = {**self._data.model_dump(), **updates}
        self._config = ProjectConfig.model_validate(merged)
        self._save()
        return self.get_config()

    def set_default_cloud(self, cloud: CloudProvider) -> None:
        self._data.default_cloud = cloud
        self._save()

    def get_default_cloud(self) -> CloudProvider | None:
        return self._data.default_cloud

    def set_auto_approve(self, auto_approve: bool) -> None:
        self._data.auto_approve = auto_approve
        self._save()

    def get_auto_approve(self) -> bool:
        return bool(self._data.auto_approve)

    def set_preferred_region(self, cloud: CloudProvider, region: str) -> None:
        setattr(self._data.preferences.region, CloudProvider(cloud).value, region)
        self._save()

    def get_preferred_region(self, cloud: CloudProvider) -> str | None:
        return getattr(self._data.preferences.region, CloudProvider(cloud).value)

    # Deployment history

    def add_deployment(
        self,
        *,
        cloud: CloudProvider,
        project_path: str,
        success: bool,
        deployment_url: str | None = None,
        resources: dict[str, str] | None = None,
        cost: float | None = None,
        duration: int | None = None,
    ) -> DeploymentRecord:
        """Append a deployment record; id and timestamp are assigned here."""
        record = DeploymentRecord(
            cloud=cloud,
            project_path=project_path,
            success=success,
            deployment_url=deployment_url,
            resources=dict(resources or {}),
            cost=cost,
            duration=duration,
        )

        deployments = self._data.deployments
        deployments.append(record)

        # Keep only the most recent records, evicting in insertion order
        if len(deployments) > MAX_DEPLOYMENT_RECORDS:
            del deployments[: len(deployments) - MAX_DEPLOYMENT_RECORDS]

        self._save()

        logger.info(
            "history.deployment_recorded",
            record_id=record.id,
            cloud=record.cloud.value,
            success=record.success,
        )
        return record

    def get_deployments(self) -> list[DeploymentRecord]:
        return list(self._data.deployments)

    def get_deployment(self, record_id: str) -> DeploymentRecord | None:
        for record in self._data.deployments:
            if record.id == record_id:
                return record
        return None

    def get_last_deployment(self) -> DeploymentRecord | None:
        deployments = self._data.deployments
        return deployments[-1] if deployments else None

    def get_deployments_by_cloud(self, cloud: CloudProvider) -> list[DeploymentRecord]:
        return [d for d in self._data.deployments if d.cloud == cloud]

    def get_successful_deployments(self) -> list[DeploymentRecord]:
        return [d for d in self._data.deployments if d.success]

    def get_failed_deployments(self) -> list[DeploymentRecord]:
        return [d for d in self._data.deployments if not d.success]

    def get_stats(self) -> DeploymentStats:
        """Aggregate statistics over the stored history."""
        deployments = self._data.deployments

        costs = [d.cost for d in deployments if d.cost]
        durations = [d.duration for d in deployments if d.duration]

        return DeploymentStats(
            total=len(deployments),
            successful=len(self.get_successful_deployments()),
            failed=len(self.get_failed_deployments()),
            by_cloud={cloud: len(self.get_deployments_by_cloud(cloud)) for cloud in CloudProvider},
            total_cost=sum(costs),
            average_duration=sum(durations) / len(durations) if durations else 0.0,
        )

    def clear_history(self) -> None:
        self._data.deployments.clear()
        self._save()

    # Import / export

    def export_config(self) -> str:
        """Serialize the configuration document."""
        return self._data.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    def import_config(self, config_json: str) -> None:
        """Replace the configuration with an exported document.

        Raises:
            ValidationError: If the JSON is malformed or does not match the schema
        """
        try:
            self._config = ProjectConfig.model_validate(json.loads(config_json))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise ValidationError("Invalid configuration JSON", "config") from e
        self._save()
