"""
Video Production Worker
Takes one queued job through enhancement, rendering and storage.
"""

import logging
import mimetypes
from typing import Optional

from aiprime.core.errors import ErrorKey, classify_error
from aiprime.schemas.job import JobStatus, ProductionJob, StatusMessage
from aiprime.services.gemini_video import VideoPipeline
from aiprime.services.job_store import JobStore
from aiprime.services.storage import StorageService
from aiprime.workers.base import BaseWorker, JobRemovedError

logger = logging.getLogger(__name__)


class VideoProductionWorker(BaseWorker):
    """Worker for video production jobs."""

    TASK_NAME = "video_production"

    def __init__(self, store: JobStore, pipeline: VideoPipeline, storage: StorageService):
        super().__init__(store)
        self.pipeline = pipeline
        self.storage = storage

    @staticmethod
    def result_path(job_id: str, mime_type: str) -> str:
        extension = mimetypes.guess_extension(mime_type) or ".mp4"
        return f"outputs/videos/{job_id}/result{extension}"

    async def execute(self, job: ProductionJob) -> Optional[ProductionJob]:
        """
        Run the pipeline for ``job`` and leave it Published or Failed.

        Returns the final job, or None if the job was removed mid-flight.
        Failures are recorded on the job, never raised.
        """
        self._log_start(self.TASK_NAME, job_id=job.id, aspect_ratio=job.aspect_ratio.value, is_8k=job.is_8k)

        try:
            self._update_progress(
                job.id, 25, StatusMessage.ENHANCING.value, status=JobStatus.GENERATING
            )
            enhanced_prompt = await self.pipeline.enhance_prompt(job.prompt, job.language)

            self._update_progress(
                job.id, 50, StatusMessage.RENDERING.value, enhanced_prompt=enhanced_prompt
            )
            video = await self.pipeline.render(enhanced_prompt, job.aspect_ratio, job.is_8k)

            # Skip the upload if the job disappeared during rendering
            if self.store.get(job.id) is None:
                raise JobRemovedError(job.id)
            video_url = await self.storage.upload_bytes(
                video.data, self.result_path(job.id, video.mime_type), video.mime_type
            )

            result = self._update_progress(
                job.id, 100, StatusMessage.SUCCESS.value,
                status=JobStatus.PUBLISHED, video_url=video_url,
            )
            self._log_complete(self.TASK_NAME, f"Job {job.id} published at {video_url}")
            return result

        except JobRemovedError as e:
            logger.warning(f"{e}; dropping its result")
            return None

        except Exception as e:
            self._log_error(self.TASK_NAME, e)
            error_key = classify_error(e, ErrorKey.VIDEO_GEN)
            try:
                return self._update_progress(
                    job.id, 100, error_key.value, status=JobStatus.FAILED
                )
            except JobRemovedError:
                logger.warning(f"Job {job.id} was removed before its failure could be recorded")
                return None
