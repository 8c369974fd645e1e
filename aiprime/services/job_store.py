"""
Job Store
Authoritative ordered list of production jobs, written through to state storage.

Jobs are kept newest-first: ``add`` and ``add_batch`` prepend, matching the
order the dashboard shows them in.

The persisted list is the source of truth. Every read and every mutation
reloads it first, so a queue runner in another process sees jobs the API
added, and a mutation only rewrites the job it touches on top of the latest
persisted list.
"""

import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from aiprime.schemas.job import JobStatus, ProductionJob
from aiprime.services.state_storage import StateStorage, VIDEO_JOBS_KEY

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class JobStore:
    """Job list read from and written through to state storage."""

    def __init__(self, storage: StateStorage, key: str = VIDEO_JOBS_KEY):
        self.storage = storage
        self.key = key
        self._listeners: List[Listener] = []
        self._jobs: List[ProductionJob] = self._load()
        logger.info(f"Loaded {len(self._jobs)} job(s) from {self.key}")

    def _load(self) -> List[ProductionJob]:
        raw = self.storage.get(self.key, [])
        if not isinstance(raw, list):
            logger.error(f"Ignoring persisted jobs under {self.key}: expected a list")
            return []

        jobs = []
        for item in raw:
            try:
                jobs.append(ProductionJob.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed persisted job: {e.error_count()} error(s)")
        return jobs

    def reload(self) -> List[ProductionJob]:
        """Re-read the persisted list, picking up writes from other processes."""
        self._jobs = self._load()
        return list(self._jobs)

    def _commit(self) -> None:
        self.storage.set(self.key, [job.to_storage() for job in self._jobs])
        for listener in list(self._listeners):
            listener()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change callback; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _ensure_new_ids(self, jobs: List[ProductionJob]) -> None:
        existing = {job.id for job in self._jobs}
        seen = set()
        for job in jobs:
            if job.id in existing or job.id in seen:
                raise ValueError(f"Duplicate job id: {job.id}")
            seen.add(job.id)

    def add(self, job: ProductionJob) -> ProductionJob:
        """Add one job at the front of the list."""
        self.reload()
        self._ensure_new_ids([job])
        self._jobs = [job, *self._jobs]
        self._commit()
        return job

    def add_batch(self, jobs: List[ProductionJob]) -> List[ProductionJob]:
        """Add several jobs at the front, keeping their given order."""
        self.reload()
        self._ensure_new_ids(jobs)
        self._jobs = [*jobs, *self._jobs]
        self._commit()
        return jobs

    def update(self, job: ProductionJob) -> Optional[ProductionJob]:
        """Replace the job with the same id in place. Returns None if it is gone."""
        self.reload()
        for index, current in enumerate(self._jobs):
            if current.id == job.id:
                jobs = list(self._jobs)
                jobs[index] = job
                self._jobs = jobs
                self._commit()
                return job
        return None

    def remove(self, job_id: str) -> bool:
        """Remove exactly the job with ``job_id``; other jobs keep their order."""
        self.reload()
        remaining = [job for job in self._jobs if job.id != job_id]
        if len(remaining) == len(self._jobs):
            return False
        self._jobs = remaining
        self._commit()
        return True

    def replace_all(self, jobs: List[ProductionJob]) -> None:
        """Swap the whole list (used by backup restore)."""
        self._jobs = list(jobs)
        self._commit()

    def get(self, job_id: str) -> Optional[ProductionJob]:
        return next((job for job in self.reload() if job.id == job_id), None)

    def list(self, status: Optional[JobStatus] = None) -> List[ProductionJob]:
        jobs = self.reload()
        if status is None:
            return jobs
        return [job for job in jobs if job.status == status]

    def next_queued(self) -> Optional[ProductionJob]:
        """First Queued job in list order, the one the processor starts next."""
        return next((job for job in self.reload() if job.status == JobStatus.QUEUED), None)

    def __len__(self) -> int:
        return len(self.reload())
