import asyncio
import importlib.util
from pathlib import Path

import pytest

from aiprime.api.deps import build_services
from aiprime.schemas.job import JobStatus
from aiprime.services.job_store import JobStore
from tests.conftest import make_job

SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "process_queue.py"


def load_queue_script():
    spec = importlib.util.spec_from_file_location("process_queue", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


process_queue = load_queue_script()


@pytest.fixture
def api_store(memory_storage):
    """Second store on the same backend, the way the API process sees it."""
    return JobStore(memory_storage)


@pytest.mark.asyncio
async def test_drain_once_processes_jobs_added_after_startup(services, api_store):
    api_store.add(make_job("from-api"))

    assert await process_queue.drain_once(services) == 1

    job = api_store.get("from-api")
    assert job.status == JobStatus.PUBLISHED
    assert job.video_url == "blob://x"


@pytest.mark.asyncio
async def test_drain_once_fails_interrupted_jobs_first(services, api_store):
    api_store.add_batch([
        make_job("queued"),
        make_job("stuck", status=JobStatus.GENERATING, progress=50),
    ])

    assert await process_queue.drain_once(services) == 1

    assert api_store.get("queued").status == JobStatus.PUBLISHED
    stuck = api_store.get("stuck")
    assert stuck.status == JobStatus.FAILED
    assert stuck.status_message_key == "errors.videoGen"


@pytest.mark.asyncio
async def test_drain_once_keeps_jobs_added_mid_render(
    test_settings, memory_storage, fake_pipeline, fake_storage, api_store
):
    api_store.add(make_job("old"))
    services = build_services(
        config=test_settings,
        state_storage=memory_storage,
        pipeline=fake_pipeline,
        storage=fake_storage,
    )
    video = fake_pipeline.render.return_value

    async def render_while_api_adds(*args, **kwargs):
        if api_store.get("new-from-api") is None:
            api_store.add(make_job("new-from-api"))
        return video

    fake_pipeline.render.side_effect = render_while_api_adds

    assert await process_queue.drain_once(services) == 2

    assert [j.id for j in api_store.list()] == ["new-from-api", "old"]
    assert {j.status for j in api_store.list()} == {JobStatus.PUBLISHED}


@pytest.mark.asyncio
async def test_watch_picks_up_jobs_from_another_store(services, api_store):
    api_store.add(make_job("before"))
    runner = asyncio.create_task(process_queue.watch(services, 0.01))
    try:
        await asyncio.sleep(0.05)
        api_store.add(make_job("during"))

        for _ in range(200):
            if api_store.get("during").status == JobStatus.PUBLISHED:
                break
            await asyncio.sleep(0.01)
    finally:
        runner.cancel()
        with pytest.raises(asyncio.CancelledError):
            await runner

    assert [j.id for j in api_store.list()] == ["during", "before"]
    assert api_store.get("before").status == JobStatus.PUBLISHED
    assert api_store.get("during").status == JobStatus.PUBLISHED
    assert services.job_store.get("during").video_url == "blob://x"
