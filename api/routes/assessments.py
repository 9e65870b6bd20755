"""
Assessment endpoints.

Assessments are addressed by the id of the job they belong to; a job has at
most one. A 404 on GET means the job has no assessment yet.
"""

from fastapi import APIRouter, Depends, Path, Response, status

from api.dependencies import get_store
from api.schemas.assessments import AssessmentUpsert
from api.services import assessments as assessment_service
from database.store import Store

router = APIRouter(prefix="/assessments", tags=["assessments"])


@router.get("", summary="List Assessments")
async def list_assessments(store: Store = Depends(get_store)):
    """All assessments with their job's title and company name."""
    return await assessment_service.list_assessments(store)


@router.get("/{job_id}", summary="Get Assessment")
async def get_assessment(
    job_id: str = Path(..., description="Job ID"),
    store: Store = Depends(get_store),
):
    return await assessment_service.get_assessment(store, job_id)


@router.put("/{job_id}", summary="Save Assessment")
async def save_assessment(
    data: AssessmentUpsert,
    job_id: str = Path(..., description="Job ID"),
    store: Store = Depends(get_store),
):
    """Create the job's assessment, or replace it entirely."""
    return await assessment_service.save_assessment(store, job_id, data)


@router.delete(
    "/{job_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Assessment",
)
async def delete_assessment(
    job_id: str = Path(..., description="Job ID"),
    store: Store = Depends(get_store),
):
    await assessment_service.delete_assessment(store, job_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
