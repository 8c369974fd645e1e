"""
Base Worker Classes
Provides the base class for job workers: status writes through the job store,
structured logging and timing.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from aiprime.schemas.job import ProductionJob
from aiprime.services.job_store import JobStore

logger = logging.getLogger(__name__)


class JobRemovedError(Exception):
    """The job was deleted from the store while a worker was processing it."""

    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} was removed while in flight")
        self.job_id = job_id


class BaseWorker(ABC):
    """
    Abstract base class for job workers.

    Features:
    - Progress and status updates applied to the latest stored copy of a job
    - Structured logging
    - Duration tracking
    """

    TASK_NAME = "task"

    def __init__(self, store: JobStore):
        self.store = store
        self.start_time: Optional[datetime] = None

    def _apply(self, job_id: str, **changes) -> ProductionJob:
        """
        Merge ``changes`` into the stored job and write it back.

        Re-reads the job every time so edits made while the worker runs are
        kept, and so a removed job is never written back.
        """
        current = self.store.get(job_id)
        if current is None:
            raise JobRemovedError(job_id)

        updated = current.model_copy(update=changes)
        if self.store.update(updated) is None:
            raise JobRemovedError(job_id)
        return updated

    def _update_progress(self, job_id: str, progress: int, message: str, **changes) -> ProductionJob:
        """Set job progress (0-100) and its status message key."""
        progress = min(max(progress, 0), 100)
        logger.debug(f"Progress {job_id}: {progress}% - {message}")
        return self._apply(job_id, progress=progress, status_message_key=message, **changes)

    def _log_start(self, task_name: str, **context):
        """Log task start with context."""
        self.start_time = datetime.utcnow()
        logger.info(f"[START] {task_name} | Context: {context}")

    def _duration(self) -> float:
        return (datetime.utcnow() - self.start_time).total_seconds() if self.start_time else 0

    def _log_complete(self, task_name: str, result_summary: str = ""):
        """Log task completion with timing."""
        logger.info(f"[COMPLETE] {task_name} | Duration: {self._duration():.2f}s | {result_summary}")

    def _log_error(self, task_name: str, error: Exception):
        """Log task error with details."""
        logger.error(
            f"[ERROR] {task_name} | Duration: {self._duration():.2f}s | Error: {error}",
            exc_info=error,
        )

    @abstractmethod
    async def execute(self, job: ProductionJob) -> Any:
        """
        Execute the worker task for one job. Must be implemented by subclasses.

        Returns:
            Task result
        """


__all__ = [
    "JobRemovedError",
    "BaseWorker",
]
