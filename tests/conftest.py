import os
import tempfile

# Environment defaults must be in place before aiprime modules read settings
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STATE_BACKEND"] = "memory"
os.environ["LOCAL_STORAGE_PATH"] = tempfile.mkdtemp(prefix="aiprime-tests-")
os.environ["PROCESSOR_AUTOSTART"] = "false"
os.environ["GEMINI_API_KEY"] = ""
os.environ["USE_GCS"] = "false"

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from aiprime.api.deps import build_services
from aiprime.core.config import Settings
from aiprime.main import create_app
from aiprime.schemas.job import AspectRatio, JobStatus, ProductionJob
from aiprime.services.gemini_video import RenderedVideo, VideoPipeline
from aiprime.services.job_store import JobStore
from aiprime.services.state_storage import MemoryStateStorage
from aiprime.services.storage import StorageService


def make_job(job_id: str = "j1", status: JobStatus = JobStatus.QUEUED, **fields) -> ProductionJob:
    data = {
        "id": job_id,
        "prompt": "cat",
        "aspect_ratio": AspectRatio.LANDSCAPE,
        "is_8k": False,
        "status": status,
        "progress": 10,
    }
    data.update(fields)
    return ProductionJob(**data)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        STATE_BACKEND="memory",
        GEMINI_API_KEY="test-key",
        LOCAL_STORAGE_PATH=str(tmp_path / "uploads"),
        VEO_POLL_INTERVAL=0,
        PROCESSOR_AUTOSTART=False,
    )


@pytest.fixture
def memory_storage():
    return MemoryStateStorage()


@pytest.fixture
def job_store(memory_storage):
    return JobStore(memory_storage)


@pytest.fixture
def fake_pipeline(test_settings):
    """Pipeline double: enhancement and render resolve immediately."""
    pipeline = MagicMock(spec=VideoPipeline)
    pipeline.settings = test_settings

    async def enhance(prompt, language=None):
        return f"Cinematic shot of {prompt}"

    video = RenderedVideo(data=b"fake-mp4", mime_type="video/mp4", uri="https://example.com/v.mp4")
    pipeline.enhance_prompt = AsyncMock(side_effect=enhance)
    pipeline.render = AsyncMock(return_value=video)
    pipeline.generate = AsyncMock(return_value=("Cinematic shot of cat", video))
    return pipeline


@pytest.fixture
def fake_storage():
    storage = MagicMock(spec=StorageService)
    storage.upload_bytes = AsyncMock(return_value="blob://x")
    storage.get_file = AsyncMock(side_effect=FileNotFoundError("missing"))
    storage.health_check.return_value = "ok"
    return storage


@pytest.fixture
def services(test_settings, memory_storage, fake_pipeline, fake_storage):
    return build_services(
        config=test_settings,
        state_storage=memory_storage,
        pipeline=fake_pipeline,
        storage=fake_storage,
    )


@pytest.fixture
def client(services):
    app = create_app(services)
    with TestClient(app) as test_client:
        yield test_client
