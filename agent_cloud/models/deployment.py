"""Deployment data models."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agent_cloud.core.exceptions import invalid_cloud, missing_project_path

# History keeps only this many records, evicting the oldest first
MAX_DEPLOYMENT_RECORDS = 50

CONFIG_VERSION = "1.0.0"


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CloudProvider(str, Enum):
    """Supported cloud providers."""

    AWS = "aws"
    GCP = "gcp"
    AZURE = "azure"

    @property
    def label(self) -> str:
        return {"aws": "AWS", "gcp": "GCP", "azure": "Azure"}[self.value]


class DeploymentRequest(CamelModel):
    """Input for one workflow run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    project_path: str
    cloud: CloudProvider

    @classmethod
    def create(cls, project_path: str | Path | None, cloud: str | None) -> "DeploymentRequest":
        """Validate raw user input and build a request.

        Raises:
            ValidationError: If the cloud is unsupported or the path is missing
        """
        try:
            provider = CloudProvider(str(cloud).lower()) if cloud else None
        except ValueError:
            provider = None
        if provider is None:
            raise invalid_cloud(str(cloud))

        if not project_path:
            raise missing_project_path()

        path = Path(project_path).expanduser().resolve()
        if not path.is_dir():
            raise missing_project_path(str(project_path))

        return cls(project_path=str(path), cloud=provider)


class DeploymentResult(CamelModel):
    """Uniform result of a cloud provider deploy operation."""

    success: bool
    resources: dict[str, str] = Field(default_factory=dict)
    url: str | None = None
    error: str | None = None


class DeploymentRecord(CamelModel):
    """One persisted deployment history entry."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    cloud: CloudProvider
    project_path: str
    success: bool
    deployment_url: str | None = None
    resources: dict[str, str] = Field(default_factory=dict)
    cost: float | None = None
    # Elapsed wall-clock milliseconds
    duration: int | None = None


class RegionPreferences(CamelModel):
    """Preferred region per cloud."""

    aws: str | None = None
    gcp: str | None = None
    azure: str | None = None


class Preferences(CamelModel):
    """User preferences stored alongside the history."""

    log_level: str | None = None
    region: RegionPreferences = Field(default_factory=RegionPreferences)


class ProjectConfig(CamelModel):
    """The persisted per-project configuration document."""

    version: str = CONFIG_VERSION
    project_name: str | None = None
    default_cloud: CloudProvider | None = None
    auto_approve: bool | None = None
    deployments: list[DeploymentRecord] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)


class DeploymentStats(CamelModel):
    """Aggregates over the deployment history."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    by_cloud: dict[CloudProvider, int] = Field(
        default_factory=lambda: {cloud: 0 for cloud in CloudProvider}
    )
    total_cost: float = 0.0
    average_duration: float = 0.0
