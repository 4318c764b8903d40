"""Deployment Workflow.

Coordinates the agents and the cloud provider adapters for one deployment:
validate, analyze, plan, wait for approval, then execute.
"""

import asyncio
from pathlib import Path
from typing import Callable

from agent_cloud.agents import (
    AnalyzerAgent,
    AnalyzerInput,
    PlannerAgent,
    PlannerInput,
    ValidatorAgent,
    ValidatorInput,
)
from agent_cloud.config import Settings
from agent_cloud.core.events import EventBus
from agent_cloud.core.exceptions import (
    AgentCloudError,
    AuthenticationError,
    DeploymentError,
    WorkflowError,
    auth_failed,
    deployment_failed,
    workflow_step_failed,
)
from agent_cloud.core.history import HistoryStore
from agent_cloud.core.runs import RunStore
from agent_cloud.models.analysis import ProjectAnalysis, default_analysis
from agent_cloud.models.deployment import CloudProvider, DeploymentRequest, DeploymentResult
from agent_cloud.models.workflow import (
    Completed,
    ResumeInput,
    SuspendPayload,
    Suspended,
    WorkflowOutcome,
    WorkflowResult,
    WorkflowRun,
    WorkflowState,
)
from agent_cloud.providers import BaseCloudProvider, get_provider
from agent_cloud.utils.logging import get_logger

ProviderFactory = Callable[[CloudProvider, Settings], BaseCloudProvider]
HistoryFactory = Callable[[str], HistoryStore]

APPROVAL_MESSAGE = "Waiting for user approval to proceed with deployment"
CANCELLED_MESSAGE = "Deployment cancelled by user"


class DeploymentWorkflow:
    """Orchestrates a deployment run with a single approval suspend point.

    Pipeline phases:
    1. validating - Check the cloud CLI environment
    2. analyzing - Detect the project type and runtime
    3. planning - Propose services, cost and commands
    4. awaiting_approval - Suspend until ``resume`` is called
    5. executing - Authenticate and deploy through the provider adapter

    Every terminal outcome appends exactly one record to the project's
    deployment history; a suspended run appends none.
    """

    def __init__(
        self,
        settings: Settings,
        runs: RunStore,
        history_factory: HistoryFactory = HistoryStore,
        events: EventBus | None = None,
        validator: ValidatorAgent | None = None,
        analyzer: AnalyzerAgent | None = None,
        planner: PlannerAgent | None = None,
        provider_factory: ProviderFactory = get_provider,
    ):
        self.settings = settings
        self.runs = runs
        self.history_factory = history_factory
        self.events = events or EventBus()
        self.provider_factory = provider_factory
        self.logger = get_logger("workflow")
        self._claim_lock = asyncio.Lock()

        # Initialize agents
        self.validator = validator or ValidatorAgent(settings)
        self.analyzer = analyzer or AnalyzerAgent(settings)
        self.planner = planner or PlannerAgent(settings)

    async def create_run(self, request: DeploymentRequest) -> WorkflowRun:
        """Persist a new run without starting it."""
        run = await self.runs.save(WorkflowRun(request=request))
        self.logger.info(
            "workflow.run.created",
            run_id=run.id,
            cloud=request.cloud.value,
            project_path=request.project_path,
        )
        return run

    async def start(
        self, request: DeploymentRequest, run: WorkflowRun | None = None
    ) -> WorkflowOutcome:
        """Run the upstream phases and suspend for approval.

        Args:
            request: The validated deployment request
            run: A run already created with ``create_run``

        Returns:
            ``Suspended`` when the plan awaits approval, or ``Completed``
            when an upstream phase failed
        """
        if run is None:
            run = await self.create_run(request)
        return await self.execute_step(run, None)

    async def claim(self, run_id: str) -> WorkflowRun:
        """Take a suspended run out of ``awaiting_approval``.

        The run moves to ``executing`` before any deploy work starts, so a
        second claim on the same run is refused.

        Raises:
            WorkflowError: If the run does not exist or is not awaiting approval
        """
        async with self._claim_lock:
            run = await self.runs.get(run_id)
            if run is None:
                raise WorkflowError(f"Run not found: {run_id}", "resume")
            if run.state != WorkflowState.AWAITING_APPROVAL:
                raise WorkflowError(
                    f"Run {run_id} is not awaiting approval (state: {run.state.value})",
                    "resume",
                )
            run.state = WorkflowState.EXECUTING
            await self.runs.save(run)

        self.logger.info("workflow.run.claimed", run_id=run_id)
        return run

    async def resume(self, run_id: str, approved: bool) -> WorkflowResult:
        """Resume a suspended run with the approval decision.

        Raises:
            WorkflowError: If the run does not exist or is not awaiting approval
        """
        run = await self.claim(run_id)
        return await self.resume_claimed(run, approved)

    async def resume_claimed(self, run: WorkflowRun, approved: bool) -> WorkflowResult:
        """Resume a run already taken with ``claim``."""
        outcome = await self.execute_step(run, ResumeInput(approved=approved))
        if not isinstance(outcome, Completed):
            raise WorkflowError(f"Run {run.id} did not complete after resume", "resume")
        return outcome.result

    async def execute_step(
        self, run: WorkflowRun, resume_data: ResumeInput | None
    ) -> WorkflowOutcome:
        """The single resumable step.

        Without ``resume_data`` the upstream phases run and the step suspends.
        With it, only the approval branch runs.
        """
        if resume_data is None:
            try:
                await self._run_validation(run)
                await self._run_analysis(run)
                await self._run_planning(run)
            except WorkflowError as e:
                return await self._finish(
                    run,
                    WorkflowState.FAILED,
                    self._error_result(run, e.message, e),
                )
            return await self._suspend(run)

        if not resume_data.approved:
            self.logger.info("workflow.cancelled", run_id=run.id)
            return await self._finish(
                run,
                WorkflowState.CANCELLED,
                WorkflowResult(
                    success=False,
                    message=CANCELLED_MESSAGE,
                    analysis=run.analysis,
                    plan=run.plan,
                ),
            )

        return await self._run_execution(run)

    # Upstream phases

    async def _enter_phase(self, run: WorkflowRun, phase: str, state: WorkflowState) -> None:
        run.state = state
        await self.runs.save(run)
        await self.events.publish_phase_started(run.id, phase)
        self.logger.info("workflow.phase.started", run_id=run.id, phase=phase)

    async def _complete_phase(self, run: WorkflowRun, phase: str, **details) -> None:
        await self.runs.save(run)
        await self.events.publish_phase_completed(run.id, phase, details)
        self.logger.info("workflow.phase.completed", run_id=run.id, phase=phase, **details)

    def _phase_failed(self, run: WorkflowRun, phase: str, error: Exception) -> WorkflowError:
        self.logger.error("workflow.phase.failed", run_id=run.id, phase=phase, error=str(error))
        return workflow_step_failed(phase, f"{phase.capitalize()} failed: {error}")

    async def _run_validation(self, run: WorkflowRun) -> None:
        """Run the environment validation phase."""
        phase = "validation"
        await self._enter_phase(run, phase, WorkflowState.VALIDATING)

        try:
            output = await self.validator.execute(ValidatorInput(cloud=run.request.cloud))
        except Exception as e:
            raise self._phase_failed(run, phase, e) from e

        run.validation = output.report
        await self._complete_phase(
            run, phase, status=output.report.status, parsed=output.parsed
        )

    async def _run_analysis(self, run: WorkflowRun) -> None:
        """Run the project analysis phase."""
        phase = "analysis"
        await self._enter_phase(run, phase, WorkflowState.ANALYZING)

        try:
            output = await self.analyzer.execute(
                AnalyzerInput(project_path=run.request.project_path)
            )
        except Exception as e:
            raise self._phase_failed(run, phase, e) from e

        run.analysis = output.analysis
        await self._complete_phase(
            run,
            phase,
            project_type=output.analysis.project_type,
            runtime=output.analysis.runtime,
            parsed=output.parsed,
        )

    async def _run_planning(self, run: WorkflowRun) -> None:
        """Run the deployment planning phase."""
        phase = "planning"
        await self._enter_phase(run, phase, WorkflowState.PLANNING)

        try:
            output = await self.planner.execute(
                PlannerInput(analysis=run.analysis, cloud=run.request.cloud)
            )
        except Exception as e:
            raise self._phase_failed(run, phase, e) from e

        run.plan = output.plan
        await self._complete_phase(
            run,
            phase,
            estimated_cost=output.plan.estimated_cost,
            parsed=output.parsed,
        )

    async def _suspend(self, run: WorkflowRun) -> Suspended:
        payload = SuspendPayload(
            services=run.plan.services,
            estimated_cost=run.plan.estimated_cost,
            commands=run.plan.commands,
            message=APPROVAL_MESSAGE,
            project_type=run.analysis.project_type if run.analysis else None,
            runtime=run.analysis.runtime if run.analysis else None,
        )

        run.state = WorkflowState.AWAITING_APPROVAL
        await self.runs.save(run)
        await self.events.publish_suspended(run.id, payload.model_dump(by_alias=True))

        self.logger.info(
            "workflow.suspended",
            run_id=run.id,
            estimated_cost=payload.estimated_cost,
        )
        return Suspended(run_id=run.id, payload=payload)

    # Execution

    async def _run_execution(self, run: WorkflowRun) -> Completed:
        """Authenticate and deploy through the provider adapter."""
        phase = "execution"
        cloud = run.request.cloud
        await self._enter_phase(run, phase, WorkflowState.EXECUTING)

        try:
            provider = self.provider_factory(cloud, self.settings)

            if not await provider.authenticate():
                raise auth_failed(cloud.value)

            result = await self._deploy(run, provider)
            if not result.success:
                raise deployment_failed(cloud.value, result.error or "Unknown error")

        except AuthenticationError as e:
            hint = f". {e.suggestions[0]}" if e.suggestions else ""
            message = f"{e.message}{hint}"
            return await self._finish(
                run, WorkflowState.FAILED, self._error_result(run, message, e)
            )
        except DeploymentError as e:
            return await self._finish(
                run,
                WorkflowState.FAILED,
                self._error_result(run, f"Deployment failed: {e.message}", e),
            )
        except Exception as e:
            self.logger.exception("workflow.execution.error", run_id=run.id)
            return await self._finish(
                run,
                WorkflowState.FAILED,
                self._error_result(run, f"Deployment error: {e}", e),
            )

        await self.events.publish_phase_completed(run.id, phase, {"url": result.url})
        return await self._finish(
            run,
            WorkflowState.SUCCEEDED,
            WorkflowResult(
                success=True,
                message=f"Deployment to {cloud.value.upper()} completed successfully!",
                deployment_url=result.url,
                analysis=run.analysis,
                plan=run.plan,
            ),
            resources=result.resources,
        )

    async def _deploy(self, run: WorkflowRun, provider: BaseCloudProvider) -> DeploymentResult:
        """Invoke exactly one adapter deploy operation for the project type."""
        analysis: ProjectAnalysis = run.analysis or default_analysis()
        project_path = run.request.project_path

        if analysis.project_type == "static":
            build_dir = Path(project_path) / self.settings.static_build_dir
            self.logger.info("workflow.deploy.static_site", run_id=run.id, build_dir=str(build_dir))
            return await provider.deploy_static_site(
                site_name=self.settings.app_name,
                build_dir=str(build_dir),
            )

        port = analysis.port or provider.default_container_port
        self.logger.info("workflow.deploy.managed_compute", run_id=run.id, port=port)
        return await provider.deploy_managed_compute(
            app_name=self.settings.app_name,
            container_port=port,
            source_dir=project_path,
        )

    # Terminal states

    def _error_result(
        self, run: WorkflowRun, message: str, error: AgentCloudError | Exception
    ) -> WorkflowResult:
        return WorkflowResult(
            success=False,
            message=message,
            analysis=run.analysis,
            plan=run.plan,
            error_type=type(error).__name__,
            suggestions=error.suggestions if isinstance(error, AgentCloudError) else [],
        )

    async def _finish(
        self,
        run: WorkflowRun,
        state: WorkflowState,
        result: WorkflowResult,
        resources: dict[str, str] | None = None,
    ) -> Completed:
        """Record the outcome, discard the run and announce completion."""
        try:
            history = self.history_factory(run.request.project_path)
            history.add_deployment(
                cloud=run.request.cloud,
                project_path=run.request.project_path,
                success=result.success,
                deployment_url=result.deployment_url,
                resources=resources if result.success else {},
                cost=run.plan.estimated_cost if result.success and run.plan else None,
                duration=run.elapsed_ms(),
            )
        except OSError as e:
            # A failed history write must not strand the run in executing
            self.logger.error(
                "workflow.history_write_failed",
                run_id=run.id,
                project_path=run.request.project_path,
                error=str(e),
            )

        run.state = state
        await self.runs.delete(run.id)
        await self.events.publish_completed(
            run.id,
            {"state": state.value, **result.model_dump(by_alias=True, exclude={"analysis", "plan"})},
        )

        log = self.logger.info if result.success else self.logger.warning
        log(
            "workflow.completed",
            run_id=run.id,
            state=state.value,
            success=result.success,
            message=result.message,
        )
        return Completed(result=result)
