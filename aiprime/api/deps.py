"""
API Dependencies
Service wiring and FastAPI dependency getters.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from aiprime.core.config import Settings, settings as default_settings
from aiprime.services.backup import BackupService
from aiprime.services.directives import DirectiveQueue
from aiprime.services.gemini_video import VideoPipeline
from aiprime.services.job_store import JobStore
from aiprime.services.post_package import PostPackageService
from aiprime.services.state_storage import StateStorage, build_state_storage
from aiprime.services.storage import StorageService
from aiprime.workers.processor import JobProcessor
from aiprime.workers.video import VideoProductionWorker


@dataclass
class AppServices:
    """Everything the routes need, built once at startup."""
    settings: Settings
    state_storage: StateStorage
    job_store: JobStore
    directives: DirectiveQueue
    backup: BackupService
    pipeline: VideoPipeline
    post_packages: PostPackageService
    storage: StorageService
    processor: JobProcessor


def build_services(
    config: Optional[Settings] = None,
    state_storage: Optional[StateStorage] = None,
    pipeline: Optional[VideoPipeline] = None,
    storage: Optional[StorageService] = None,
) -> AppServices:
    """Construct the service graph; any piece can be passed in pre-built."""
    config = config or default_settings
    state_storage = state_storage or build_state_storage(config)
    pipeline = pipeline or VideoPipeline(config)
    storage = storage or StorageService(config)

    job_store = JobStore(state_storage)
    directives = DirectiveQueue(state_storage)
    worker = VideoProductionWorker(job_store, pipeline, storage)

    return AppServices(
        settings=config,
        state_storage=state_storage,
        job_store=job_store,
        directives=directives,
        backup=BackupService(state_storage, job_store, directives),
        pipeline=pipeline,
        post_packages=PostPackageService(pipeline),
        storage=storage,
        processor=JobProcessor(job_store, worker),
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_job_store(request: Request) -> JobStore:
    return get_services(request).job_store


def get_directives(request: Request) -> DirectiveQueue:
    return get_services(request).directives


def get_backup(request: Request) -> BackupService:
    return get_services(request).backup


def get_pipeline(request: Request) -> VideoPipeline:
    return get_services(request).pipeline


def get_post_packages(request: Request) -> PostPackageService:
    return get_services(request).post_packages


def get_storage(request: Request) -> StorageService:
    return get_services(request).storage
