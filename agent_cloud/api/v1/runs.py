"""Workflow run endpoints."""

import asyncio
import json
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from agent_cloud.api.deps import EventsDep, ResultsDep, RunDep, RunsDep, WorkflowDep
from agent_cloud.core.events import TERMINAL_EVENTS, Event
from agent_cloud.core.exceptions import WorkflowError
from agent_cloud.core.workflow import DeploymentWorkflow
from agent_cloud.models import (
    CloudProvider,
    Completed,
    DeploymentPlan,
    DeploymentRequest,
    ProjectAnalysis,
    ResumeInput,
    ValidationReport,
    WorkflowResult,
    WorkflowRun,
    WorkflowState,
)
from agent_cloud.models.deployment import CamelModel
from agent_cloud.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

# Seconds between keepalive messages on an idle stream
KEEPALIVE_INTERVAL = 30.0


class CreateRunRequest(CamelModel):
    """Request to start a deployment run."""

    project_path: str
    cloud: str


class RunResponse(CamelModel):
    """A run, in flight or finished."""

    id: str
    state: WorkflowState
    cloud: CloudProvider | None = None
    project_path: str | None = None
    started_at: datetime | None = None
    updated_at: datetime | None = None
    validation: ValidationReport | None = None
    analysis: ProjectAnalysis | None = None
    plan: DeploymentPlan | None = None
    result: WorkflowResult | None = None

    @classmethod
    def from_run(cls, run: WorkflowRun) -> "RunResponse":
        return cls(
            id=run.id,
            state=run.state,
            cloud=run.request.cloud,
            project_path=run.request.project_path,
            started_at=run.started_at,
            updated_at=run.updated_at,
            validation=run.validation,
            analysis=run.analysis,
            plan=run.plan,
        )

    @classmethod
    def from_result(cls, run_id: str, result: WorkflowResult) -> "RunResponse":
        if result.success:
            state = WorkflowState.SUCCEEDED
        elif result.error_type is None:
            state = WorkflowState.CANCELLED
        else:
            state = WorkflowState.FAILED
        return cls(
            id=run_id,
            state=state,
            analysis=result.analysis,
            plan=result.plan,
            result=result,
        )


class RunListResponse(BaseModel):
    """Response for listing runs."""

    runs: list[RunResponse]
    total: int


async def start_run_background(
    workflow: DeploymentWorkflow,
    results: dict[str, WorkflowResult],
    request: DeploymentRequest,
    run: WorkflowRun,
) -> None:
    """Background task running the upstream phases of a run."""
    try:
        outcome = await workflow.start(request, run)
    except Exception as e:
        logger.error("runs.start_failed", run_id=run.id, error=str(e), exc_info=True)
        await workflow.events.publish_error(run.id, str(e))
        return

    if isinstance(outcome, Completed):
        results[run.id] = outcome.result


async def resume_run_background(
    workflow: DeploymentWorkflow,
    results: dict[str, WorkflowResult],
    run: WorkflowRun,
    approved: bool,
) -> None:
    """Background task executing or cancelling a claimed run."""
    try:
        results[run.id] = await workflow.resume_claimed(run, approved)
    except Exception as e:
        logger.error("runs.resume_failed", run_id=run.id, error=str(e), exc_info=True)
        await workflow.events.publish_error(run.id, str(e), phase="execution")


@router.post(
    "",
    response_model=RunResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a deployment run",
    description="Returns immediately while validation, analysis and planning continue in background.",
)
async def create_run(
    data: CreateRunRequest,
    workflow: WorkflowDep,
    results: ResultsDep,
    background_tasks: BackgroundTasks,
) -> RunResponse:
    """Validate the request, persist a run and start it."""
    request = DeploymentRequest.create(data.project_path, data.cloud)
    run = await workflow.create_run(request)

    background_tasks.add_task(start_run_background, workflow, results, request, run)

    return RunResponse.from_run(run)


@router.get(
    "",
    response_model=RunListResponse,
    summary="List in-flight runs",
)
async def list_runs(
    runs: RunsDep,
    state: Annotated[WorkflowState | None, Query()] = None,
) -> RunListResponse:
    items = await runs.list_runs(state)
    return RunListResponse(runs=[RunResponse.from_run(r) for r in items], total=len(items))


@router.get(
    "/{run_id}",
    response_model=RunResponse,
    summary="Get run details",
)
async def get_run(run_id: str, runs: RunsDep, results: ResultsDep) -> RunResponse:
    """Get an in-flight run, or the result of a run finished by this server."""
    run = await runs.get(run_id)
    if run:
        return RunResponse.from_run(run)
    if run_id in results:
        return RunResponse.from_result(run_id, results[run_id])
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Run not found: {run_id}",
    )


@router.post(
    "/{run_id}/resume",
    response_model=RunResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Approve or reject a suspended run",
)
async def resume_run(
    data: ResumeInput,
    run: RunDep,
    workflow: WorkflowDep,
    results: ResultsDep,
    background_tasks: BackgroundTasks,
) -> RunResponse:
    # Claimed before the 202 so a concurrent resume gets a conflict
    try:
        claimed = await workflow.claim(run.id)
    except WorkflowError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e

    background_tasks.add_task(resume_run_background, workflow, results, claimed, data.approved)

    return RunResponse.from_run(claimed)


@router.get(
    "/{run_id}/stream",
    summary="Stream run events (SSE)",
)
async def stream_run_events(run: RunDep, events: EventsDep) -> EventSourceResponse:
    """Stream progress events for a run until it suspends or finishes."""

    async def event_generator():
        queue = events.subscribe(run.id)

        try:
            yield {
                "event": "connected",
                "data": json.dumps({"runId": run.id, "state": run.state.value}),
            }

            while True:
                try:
                    event: Event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_INTERVAL)
                    yield {
                        "event": event.event_type,
                        "data": json.dumps(event.data, default=str),
                    }

                    if event.event_type in TERMINAL_EVENTS:
                        break

                except asyncio.TimeoutError:
                    yield {"event": "keepalive", "data": "{}"}

        finally:
            events.unsubscribe(run.id)

    return EventSourceResponse(event_generator())
