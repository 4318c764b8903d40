"""Unit tests for the workflow run store."""

import pytest

from agent_cloud.core.runs import RunStore
from agent_cloud.models import DeploymentRequest, WorkflowRun, WorkflowState


@pytest.fixture
def run(project_dir) -> WorkflowRun:
    return WorkflowRun(request=DeploymentRequest.create(project_dir, "aws"))


class TestRunStore:
    """Tests for RunStore."""

    @pytest.mark.asyncio
    async def test_save_and_get(self, run_store, run):
        await run_store.save(run)

        loaded = await run_store.get(run.id)
        assert loaded is not None
        assert loaded.id == run.id
        assert loaded.request == run.request
        assert loaded.state == WorkflowState.VALIDATING

    @pytest.mark.asyncio
    async def test_survives_a_new_store_instance(self, settings, run_store, run):
        run.state = WorkflowState.AWAITING_APPROVAL
        await run_store.save(run)

        loaded = await RunStore(settings.runs_dir).get(run.id)
        assert loaded.state == WorkflowState.AWAITING_APPROVAL

    @pytest.mark.asyncio
    async def test_get_unknown(self, run_store):
        assert await run_store.get("doesnotexist") is None

    @pytest.mark.asyncio
    async def test_rejects_path_like_ids(self, run_store):
        assert await run_store.get("../etc/passwd") is None
        assert await run_store.delete("../etc/passwd") is False

    @pytest.mark.asyncio
    async def test_delete(self, run_store, run):
        await run_store.save(run)

        assert await run_store.delete(run.id) is True
        assert await run_store.get(run.id) is None
        assert await run_store.delete(run.id) is False

    @pytest.mark.asyncio
    async def test_list_filters_by_state(self, run_store, project_dir):
        request = DeploymentRequest.create(project_dir, "gcp")
        waiting = WorkflowRun(request=request, state=WorkflowState.AWAITING_APPROVAL)
        planning = WorkflowRun(request=request, state=WorkflowState.PLANNING)
        await run_store.save(waiting)
        await run_store.save(planning)

        assert len(await run_store.list_runs()) == 2
        suspended = await run_store.list_runs(WorkflowState.AWAITING_APPROVAL)
        assert [r.id for r in suspended] == [waiting.id]

    @pytest.mark.asyncio
    async def test_list_without_directory(self, tmp_path):
        store = RunStore(tmp_path / "missing")
        assert await store.list_runs() == []

    @pytest.mark.asyncio
    async def test_corrupt_file_is_skipped(self, run_store, run):
        await run_store.save(run)
        (run_store.runs_dir / "garbage.json").write_text("{}")

        runs = await run_store.list_runs()
        assert [r.id for r in runs] == [run.id]
