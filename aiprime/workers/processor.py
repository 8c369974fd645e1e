"""
Job Processor
Advances queued jobs one at a time.

The store notifies the processor on every change; a background task wakes up
and drains the queue under a lock, so at most one job is Generating no matter
how quickly jobs are inserted.
"""

import asyncio
import logging
from typing import Optional

from aiprime.core.errors import ErrorKey
from aiprime.schemas.job import JobStatus
from aiprime.services.job_store import JobStore
from aiprime.workers.base import BaseWorker

logger = logging.getLogger(__name__)


class JobProcessor:
    """Serializes job execution over a store and a worker."""

    def __init__(self, store: JobStore, worker: BaseWorker):
        self.store = store
        self.worker = worker
        self._lock = asyncio.Lock()
        self._wakeup: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self._unsubscribe = store.subscribe(self.notify)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def notify(self) -> None:
        """Store change callback: wake the background loop if it is running."""
        if self._wakeup is not None:
            self._wakeup.set()

    def recover_interrupted(self) -> int:
        """
        Fail jobs left in Generating by a previous process.

        Their remote calls died with that process; no state is re-entered,
        so they end as Failed with the generic video error key.
        """
        interrupted = self.store.list(JobStatus.GENERATING)
        for job in interrupted:
            self.store.update(job.model_copy(update={
                "status": JobStatus.FAILED,
                "progress": 100,
                "status_message_key": ErrorKey.VIDEO_GEN.value,
            }))
            logger.warning(f"Marked interrupted job {job.id} as Failed")
        return len(interrupted)

    async def drain(self) -> int:
        """Process queued jobs until none are left. Returns how many ran."""
        processed = 0
        async with self._lock:
            while True:
                job = self.store.next_queued()
                if job is None:
                    break
                await self.worker.execute(job)
                processed += 1
        if processed:
            logger.info(f"Queue drained: {processed} job(s) processed")
        return processed

    async def _run(self) -> None:
        while True:
            await self._wakeup.wait()
            self._wakeup.clear()
            try:
                await self.drain()
            except Exception:
                logger.exception("Job processor iteration failed")

    async def start(self) -> None:
        """Start the background loop; queued jobs left from earlier runs are picked up."""
        if self.running:
            return
        self.recover_interrupted()
        self._wakeup = asyncio.Event()
        self._wakeup.set()
        self._task = asyncio.create_task(self._run(), name="job-processor")
        logger.info("Job processor started")

    async def stop(self) -> None:
        """Stop the background loop. An in-flight job is cancelled with it."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._wakeup = None
        logger.info("Job processor stopped")

    def close(self) -> None:
        self._unsubscribe()
