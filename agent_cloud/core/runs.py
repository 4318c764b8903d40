"""Persistence for in-flight workflow runs."""

from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from agent_cloud.models.workflow import WorkflowRun, WorkflowState
from agent_cloud.utils.logging import get_logger

logger = get_logger(__name__)


class RunStore:
    """Stores non-terminal workflow runs as one JSON file per run.

    A suspended run must survive process exit so that a later invocation can
    resume it by id; terminal runs are deleted by the workflow.
    """

    def __init__(self, runs_dir: str | Path):
        self._runs_dir = Path(runs_dir)

    @property
    def runs_dir(self) -> Path:
        return self._runs_dir

    def _path(self, run_id: str) -> Path:
        # Run ids are generated hex strings; reject anything path-like
        if not run_id or not run_id.isalnum():
            raise ValueError(f"Invalid run id: {run_id!r}")
        return self._runs_dir / f"{run_id}.json"

    async def save(self, run: WorkflowRun) -> WorkflowRun:
        """Create or update a run."""
        run.updated_at = datetime.now(timezone.utc)
        self._runs_dir.mkdir(parents=True, exist_ok=True)
        self._path(run.id).write_text(
            run.model_dump_json(by_alias=True, indent=2),
            encoding="utf-8",
        )
        return run

    async def get(self, run_id: str) -> WorkflowRun | None:
        """Get a run by id."""
        try:
            path = self._path(run_id)
        except ValueError:
            return None
        if not path.exists():
            return None
        try:
            return WorkflowRun.model_validate_json(path.read_text(encoding="utf-8"))
        except PydanticValidationError as e:
            logger.warning("runs.corrupt_run_file", run_id=run_id, error=str(e))
            return None

    async def delete(self, run_id: str) -> bool:
        """Delete a run."""
        try:
            path = self._path(run_id)
        except ValueError:
            return False
        if path.exists():
            path.unlink()
            return True
        return False

    async def list_runs(self, state: WorkflowState | None = None) -> list[WorkflowRun]:
        """List stored runs, newest first."""
        if not self._runs_dir.exists():
            return []

        runs: list[WorkflowRun] = []
        for path in self._runs_dir.glob("*.json"):
            run = await self.get(path.stem)
            if run is None:
                continue
            if state and run.state != state:
                continue
            runs.append(run)

        runs.sort(key=lambda r: r.started_at, reverse=True)
        return runs
