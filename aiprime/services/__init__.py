# Services package - business logic and external integrations
from aiprime.services.state_storage import StateStorage, SQLStateStorage, RedisStateStorage, MemoryStateStorage, build_state_storage
from aiprime.services.job_store import JobStore
from aiprime.services.directives import DirectiveQueue
from aiprime.services.backup import BackupService
from aiprime.services.gemini_video import VideoPipeline, RenderedVideo
from aiprime.services.post_package import PostPackageService
from aiprime.services.storage import StorageService

__all__ = [
    "StateStorage",
    "SQLStateStorage",
    "RedisStateStorage",
    "MemoryStateStorage",
    "build_state_storage",
    "JobStore",
    "DirectiveQueue",
    "BackupService",
    "VideoPipeline",
    "RenderedVideo",
    "PostPackageService",
    "StorageService",
]
