"""
System API Routes
Backup/restore of the persisted state, the system monitor, and directives.
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from aiprime.api.deps import get_backup, get_directives, get_job_store
from aiprime.schemas.job import JobStatus
from aiprime.schemas.system import Directive, SystemBackup, SystemStatus
from aiprime.services.backup import BackupService
from aiprime.services.directives import DirectiveQueue
from aiprime.services.job_store import JobStore

logger = logging.getLogger(__name__)

router = APIRouter()
directives_router = APIRouter()

ACTIVE_STATUSES = (JobStatus.QUEUED, JobStatus.GENERATING)
COMPLETED_STATUSES = (JobStatus.PUBLISHED, JobStatus.FAILED)


@router.get("/backup", response_model=SystemBackup)
async def export_backup(backup: BackupService = Depends(get_backup)):
    """Download the full persisted state."""
    return backup.export()


@router.post("/restore")
async def restore_backup(
    payload: Any = Body(...),
    backup: BackupService = Depends(get_backup),
):
    """
    Replace the persisted state with a backup.

    A malformed backup is rejected with 400 and nothing is changed.
    """
    restored = backup.restore(payload)
    return {
        "restored": True,
        "videoJobs": len(restored.video_jobs),
        "directives": len(restored.directives),
    }


@router.get("/status", response_model=SystemStatus)
async def system_status(store: JobStore = Depends(get_job_store)):
    """Summary for the system monitor strip."""
    jobs = store.list()
    active = [j for j in jobs if j.status in ACTIVE_STATUSES]
    completed = [j for j in jobs if j.status in COMPLETED_STATUSES]
    failed = [j for j in jobs if j.status == JobStatus.FAILED]

    if active:
        label = "Processing"
    elif failed:
        label = "Warning"
    else:
        label = "Nominal"

    return SystemStatus(
        status=label,
        active_jobs=len(active),
        completed_jobs=len(completed),
        failed_jobs=len(failed),
        latest_published=next((j for j in jobs if j.status == JobStatus.PUBLISHED), None),
    )


@directives_router.get("", response_model=List[Directive])
async def list_directives(directives: DirectiveQueue = Depends(get_directives)):
    return directives.list()


@directives_router.post("", status_code=status.HTTP_201_CREATED)
async def add_directive(directive: Directive, directives: DirectiveQueue = Depends(get_directives)):
    """Queue a directive; the same directive text is only queued once."""
    added = directives.add(directive)
    return {"added": added}


@directives_router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def remove_directive(
    directive: str = Query(..., description="Directive text to remove"),
    directives: DirectiveQueue = Depends(get_directives),
):
    if not directives.remove(directive):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Directive not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
