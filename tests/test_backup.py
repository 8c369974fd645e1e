import pytest

from aiprime.core.errors import BackupFormatError
from aiprime.schemas.job import JobStatus
from aiprime.schemas.system import Directive
from aiprime.services.backup import BackupService
from aiprime.services.directives import DirectiveQueue
from aiprime.services.job_store import JobStore
from aiprime.services.state_storage import CREDENTIALS_KEY, MemoryStateStorage
from tests.conftest import make_job


@pytest.fixture
def directives(memory_storage):
    return DirectiveQueue(memory_storage)


@pytest.fixture
def backup(memory_storage, job_store, directives):
    return BackupService(memory_storage, job_store, directives)


def valid_backup():
    return {
        "credentials": {"youtube": {"connected": True}},
        "agents": [{"id": "agent-1", "name": "Travel"}],
        "videoJobs": [
            make_job("r1", status=JobStatus.PUBLISHED, progress=100, video_url="/files/a.mp4").to_storage(),
            make_job("r2").to_storage(),
        ],
        "directives": [{"directive": "Cover spring travel", "rationale": "Seasonal"}],
        "automationFlows": [],
    }


def test_export_includes_every_section(backup, job_store, directives, memory_storage):
    memory_storage.set(CREDENTIALS_KEY, {"tiktok": {}})
    job_store.add(make_job("a"))
    directives.add(Directive(directive="Post more shorts"))

    data = backup.export().model_dump(by_alias=True, mode="json")

    assert set(data) == {"credentials", "agents", "videoJobs", "directives", "automationFlows"}
    assert data["credentials"] == {"tiktok": {}}
    assert [j["id"] for j in data["videoJobs"]] == ["a"]
    assert data["directives"][0]["directive"] == "Post more shorts"


def test_restore_reproduces_the_store(backup, job_store, directives, memory_storage):
    job_store.add(make_job("old"))

    backup.restore(valid_backup())

    assert [j.id for j in job_store.list()] == ["r1", "r2"]
    assert job_store.get("r1").video_url == "/files/a.mp4"
    assert [d.directive for d in directives.list()] == ["Cover spring travel"]
    assert memory_storage.get(CREDENTIALS_KEY) == {"youtube": {"connected": True}}

    # A fresh store over the same storage sees the same jobs
    assert [j.id for j in JobStore(memory_storage).list()] == ["r1", "r2"]


def test_export_then_restore_elsewhere(backup, job_store):
    job_store.add_batch([make_job("a"), make_job("b", status=JobStatus.FAILED, progress=100)])
    exported = backup.export().model_dump(by_alias=True, mode="json")

    other_storage = MemoryStateStorage()
    other_store = JobStore(other_storage)
    BackupService(other_storage, other_store, DirectiveQueue(other_storage)).restore(exported)

    assert other_store.list() == job_store.list()


@pytest.mark.parametrize("mutate", [
    lambda b: b.pop("videoJobs"),
    lambda b: b.__setitem__("agents", "not a list"),
    lambda b: b.__setitem__("videoJobs", [{"id": "x"}]),
    lambda b: b["videoJobs"].append(dict(b["videoJobs"][0])),
])
def test_malformed_restore_changes_nothing(backup, job_store, directives, mutate):
    job_store.add(make_job("keep"))
    directives.add(Directive(directive="Stay"))
    payload = valid_backup()
    mutate(payload)

    with pytest.raises(BackupFormatError):
        backup.restore(payload)

    assert [j.id for j in job_store.list()] == ["keep"]
    assert [d.directive for d in directives.list()] == ["Stay"]


def test_restore_rejects_non_object(backup):
    with pytest.raises(BackupFormatError):
        backup.restore(["not", "a", "backup"])
