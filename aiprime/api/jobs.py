"""
Jobs API Routes
Create, inspect, edit, package and schedule video production jobs.
"""

import logging
import time
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from aiprime.api.deps import get_job_store, get_post_packages
from aiprime.core.errors import ErrorKey, InvalidJobTransitionError, JobNotFoundError, PipelineError, classify_error
from aiprime.schemas.job import (
    JobBatchCreate,
    JobCreate,
    JobSchedule,
    JobStatus,
    ProductionJob,
)
from aiprime.services.job_store import JobStore
from aiprime.services.post_package import PostPackageService, aspect_ratio_for_platform

logger = logging.getLogger(__name__)

router = APIRouter()

# Jobs start at 10% so the queue shows them as accepted
INITIAL_PROGRESS = 10


def _new_job_id(kind: str) -> str:
    return f"job-{kind}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:5]}"


def _get_or_404(store: JobStore, job_id: str) -> ProductionJob:
    job = store.get(job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    return job


@router.get("", response_model=List[ProductionJob])
async def list_jobs(
    job_status: Optional[JobStatus] = Query(None, alias="status"),
    store: JobStore = Depends(get_job_store),
):
    """List jobs newest first, optionally filtered by status."""
    return store.list(job_status)


@router.get("/{job_id}", response_model=ProductionJob)
async def get_job(job_id: str, store: JobStore = Depends(get_job_store)):
    """Get one job."""
    return _get_or_404(store, job_id)


@router.post("", response_model=ProductionJob, status_code=status.HTTP_201_CREATED)
async def create_job(request: JobCreate, store: JobStore = Depends(get_job_store)):
    """Queue a single video job. The processor picks it up right away."""
    job = ProductionJob(
        id=_new_job_id("direct"),
        prompt=request.prompt,
        aspect_ratio=request.aspect_ratio,
        is_8k=request.is_8k,
        language=request.language,
        platform=request.platform,
        status=JobStatus.QUEUED,
        progress=INITIAL_PROGRESS,
    )
    store.add(job)
    logger.info(f"Queued job {job.id}")
    return job


@router.post("/batch", response_model=List[ProductionJob], status_code=status.HTTP_201_CREATED)
async def create_job_batch(request: JobBatchCreate, store: JobStore = Depends(get_job_store)):
    """Queue one job per platform, each in the platform's native aspect ratio."""
    jobs = [
        ProductionJob(
            id=_new_job_id(platform.lower()),
            prompt=request.prompt,
            aspect_ratio=aspect_ratio_for_platform(platform),
            is_8k=request.is_8k,
            language=request.language,
            platform=platform,
            status=JobStatus.QUEUED,
            progress=INITIAL_PROGRESS,
        )
        for platform in request.platforms
    ]
    store.add_batch(jobs)
    logger.info(f"Queued batch of {len(jobs)} job(s)")
    return jobs


@router.put("/{job_id}", response_model=ProductionJob)
async def update_job(job_id: str, job: ProductionJob, store: JobStore = Depends(get_job_store)):
    """
    Replace a job in place.

    The status cannot be changed here: the processor drives
    Queued, Generating, Published and Failed, and scheduling goes through
    the schedule route.
    """
    if job.id != job_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Job id does not match the URL")

    current = _get_or_404(store, job_id)
    if current.status != job.status:
        raise InvalidJobTransitionError(
            f"Cannot change status from {current.status.value} to {job.status.value}"
        )

    store.update(job)
    return job


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(job_id: str, store: JobStore = Depends(get_job_store)):
    """
    Remove a job.

    An in-flight remote call is not cancelled; its result is discarded.
    """
    if not store.remove(job_id):
        raise JobNotFoundError(job_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{job_id}/post-package", response_model=ProductionJob)
async def generate_job_post_package(
    job_id: str,
    store: JobStore = Depends(get_job_store),
    post_packages: PostPackageService = Depends(get_post_packages),
):
    """Generate title/description/tags for a job and attach them."""
    job = _get_or_404(store, job_id)

    try:
        package = await post_packages.generate(job.enhanced_prompt or job.prompt, job.platform, job.language)
    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"Post package failed for {job_id}: {e}")
        raise PipelineError("Failed to generate post package.", error_key=classify_error(e, ErrorKey.GENERIC)) from e

    # The job may have changed (or gone) while the model was answering
    current = _get_or_404(store, job_id)
    updated = current.model_copy(update={"post_package": package})
    store.update(updated)
    return updated


@router.post("/{job_id}/schedule", response_model=ProductionJob)
async def schedule_job(
    job_id: str,
    request: JobSchedule,
    store: JobStore = Depends(get_job_store),
):
    """Move a Published job to Scheduled for the given day."""
    job = _get_or_404(store, job_id)
    if job.status != JobStatus.PUBLISHED:
        raise InvalidJobTransitionError(f"Only Published jobs can be scheduled (job is {job.status.value})")

    updated = job.model_copy(update={"status": JobStatus.SCHEDULED, "scheduled_day": request.day})
    store.update(updated)
    logger.info(f"Scheduled job {job_id} for {request.day}")
    return updated
