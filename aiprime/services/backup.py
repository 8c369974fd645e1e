"""
Backup Service
Exports and restores the complete persisted dashboard state.
"""

import logging
from typing import Any

from pydantic import ValidationError

from aiprime.core.errors import BackupFormatError
from aiprime.schemas.system import SystemBackup
from aiprime.services.directives import DirectiveQueue
from aiprime.services.job_store import JobStore
from aiprime.services.state_storage import (
    StateStorage, AGENTS_KEY, AUTOMATION_FLOWS_KEY, CREDENTIALS_KEY,
)

logger = logging.getLogger(__name__)


class BackupService:
    """Snapshot and restore of jobs, directives and the opaque sections."""

    def __init__(self, storage: StateStorage, job_store: JobStore, directives: DirectiveQueue):
        self.storage = storage
        self.job_store = job_store
        self.directives = directives

    def export(self) -> SystemBackup:
        return SystemBackup(
            credentials=self.storage.get(CREDENTIALS_KEY, {}) or {},
            agents=self.storage.get(AGENTS_KEY, []) or [],
            video_jobs=self.job_store.list(),
            directives=self.directives.list(),
            automation_flows=self.storage.get(AUTOMATION_FLOWS_KEY, []) or [],
        )

    def restore(self, payload: Any) -> SystemBackup:
        """
        Replace all persisted state with ``payload``.

        The payload is validated in full before anything is written, so a
        malformed backup raises BackupFormatError and changes nothing.
        """
        try:
            backup = SystemBackup.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Rejected backup: {e.error_count()} validation error(s)")
            raise BackupFormatError() from e

        ids = [job.id for job in backup.video_jobs]
        if len(ids) != len(set(ids)):
            raise BackupFormatError("Invalid backup data structure: duplicate job ids.")

        self.storage.set(CREDENTIALS_KEY, backup.credentials)
        self.storage.set(AGENTS_KEY, backup.agents)
        self.storage.set(AUTOMATION_FLOWS_KEY, backup.automation_flows)
        self.directives.replace_all(backup.directives)
        self.job_store.replace_all(backup.video_jobs)

        logger.info(
            f"Restored backup: {len(backup.video_jobs)} job(s), "
            f"{len(backup.directives)} directive(s)"
        )
        return backup
