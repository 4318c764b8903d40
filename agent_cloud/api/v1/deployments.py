"""Deployment history endpoints."""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel

from agent_cloud.core.exceptions import missing_project_path
from agent_cloud.core.history import HistoryStore
from agent_cloud.models import CloudProvider, DeploymentRecord, DeploymentStats

router = APIRouter()


class DeploymentListResponse(BaseModel):
    """Response for listing deployment records."""

    deployments: list[DeploymentRecord]
    total: int


def _history(project_path: str) -> HistoryStore:
    if not Path(project_path).expanduser().is_dir():
        raise missing_project_path(project_path)
    return HistoryStore(Path(project_path).expanduser().resolve())


@router.get(
    "",
    response_model=DeploymentListResponse,
    summary="List a project's deployment history",
)
async def list_deployments(
    project_path: Annotated[str, Query(alias="projectPath")],
    cloud: Annotated[CloudProvider | None, Query()] = None,
) -> DeploymentListResponse:
    history = _history(project_path)
    records = history.get_deployments_by_cloud(cloud) if cloud else history.get_deployments()
    return DeploymentListResponse(deployments=records, total=len(records))


@router.get(
    "/stats",
    response_model=DeploymentStats,
    summary="Aggregate statistics over a project's deployment history",
)
async def deployment_stats(
    project_path: Annotated[str, Query(alias="projectPath")],
) -> DeploymentStats:
    return _history(project_path).get_stats()
