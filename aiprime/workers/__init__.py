# Workers package - in-process job processing

from aiprime.workers.base import (
    BaseWorker,
    JobRemovedError,
)
from aiprime.workers.video import VideoProductionWorker
from aiprime.workers.processor import JobProcessor

__all__ = [
    # Base
    "BaseWorker",
    "JobRemovedError",
    # Video
    "VideoProductionWorker",
    # Processor
    "JobProcessor",
]
