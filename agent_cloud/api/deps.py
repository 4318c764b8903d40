"""Dependency injection for API endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from agent_cloud.config import Settings
from agent_cloud.core.events import EventBus
from agent_cloud.core.runs import RunStore
from agent_cloud.core.workflow import DeploymentWorkflow
from agent_cloud.models import WorkflowResult, WorkflowRun


async def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_workflow(request: Request) -> DeploymentWorkflow:
    return request.app.state.workflow


async def get_runs(request: Request) -> RunStore:
    return request.app.state.workflow.runs


async def get_events(request: Request) -> EventBus:
    return request.app.state.workflow.events


async def get_results(request: Request) -> dict[str, WorkflowResult]:
    """Terminal results of runs finished by this process, by run id."""
    return request.app.state.results


async def get_run_by_id(
    run_id: str,
    runs: Annotated[RunStore, Depends(get_runs)],
) -> WorkflowRun:
    """Get an in-flight run by id or raise 404."""
    run = await runs.get(run_id)
    if not run:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Run not found: {run_id}",
        )
    return run


# Type aliases for cleaner signatures
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
WorkflowDep = Annotated[DeploymentWorkflow, Depends(get_workflow)]
RunsDep = Annotated[RunStore, Depends(get_runs)]
EventsDep = Annotated[EventBus, Depends(get_events)]
ResultsDep = Annotated[dict[str, WorkflowResult], Depends(get_results)]
RunDep = Annotated[WorkflowRun, Depends(get_run_by_id)]
