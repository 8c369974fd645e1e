# Pydantic schemas package
from aiprime.schemas.job import (
    AspectRatio, JobBatchCreate, JobCreate, JobSchedule, JobStatus, Language,
    PostPackage, ProductionJob, StatusMessage,
)
from aiprime.schemas.video import VideoGenerateRequest, PostPackageRequest
from aiprime.schemas.system import Directive, SystemBackup, SystemStatus

__all__ = [
    "AspectRatio", "JobBatchCreate", "JobCreate", "JobSchedule", "JobStatus", "Language",
    "PostPackage", "ProductionJob", "StatusMessage",
    "VideoGenerateRequest", "PostPackageRequest",
    "Directive", "SystemBackup", "SystemStatus",
]
