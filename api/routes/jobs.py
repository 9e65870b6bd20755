"""
Job endpoints.

Jobs are listed in board order and always carry their live candidate count.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from api.dependencies import get_store
from api.schemas.jobs import JobCreate, JobUpdate
from api.services import jobs as job_service
from database.models.jobs import JobStatus
from database.store import Store

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", summary="List Jobs")
async def list_jobs(
    status_filter: Optional[JobStatus] = Query(None, alias="status", description="active or archived"),
    search: Optional[str] = Query(None, description="Case-insensitive title search"),
    store: Store = Depends(get_store),
):
    """List jobs ordered by their board position."""
    return await job_service.list_jobs(store, status=status_filter, search=search)


@router.get("/{job_id}", summary="Get Job")
async def get_job(
    job_id: str = Path(..., description="Job ID"),
    store: Store = Depends(get_store),
):
    return await job_service.get_job(store, job_id)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create Job")
async def create_job(data: JobCreate, store: Store = Depends(get_store)):
    """Create a job. Only `title` is required; it is appended to the board."""
    return await job_service.create_job(store, data)


@router.patch("/{job_id}", summary="Update Job")
async def update_job(
    data: JobUpdate,
    job_id: str = Path(..., description="Job ID"),
    store: Store = Depends(get_store),
):
    """Update only the fields present in the body."""
    return await job_service.update_job(store, job_id, data)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Job")
async def delete_job(
    job_id: str = Path(..., description="Job ID"),
    store: Store = Depends(get_store),
):
    await job_service.delete_job(store, job_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
