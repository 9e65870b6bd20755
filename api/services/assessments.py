"""Assessment service functions."""

from typing import Any, Dict, List
import logging
import uuid

from api.schemas.assessments import (
    AssessmentResponse,
    AssessmentSummaryResponse,
    AssessmentUpsert,
)
from core.errors import NotFoundError
from core.utils.datetime import now
from database.models.assessments import Assessment
from database.store import Store

logger = logging.getLogger(__name__)


async def list_assessments(store: Store) -> List[Dict[str, Any]]:
    """
    List all assessments with the title and company of their job.

    `jobRole` and `companyName` are null when the job no longer exists.
    """
    async with store.transaction() as tx:
        assessments = await tx.assessments.list(order_by=[Assessment.created_at])
        jobs = {job.id: job for job in await tx.jobs.list()}

    summaries = []
    for assessment in assessments:
        summary = AssessmentSummaryResponse.model_validate(assessment)
        job = jobs.get(assessment.job_id)
        if job is not None:
            summary.job_role = job.title
            summary.company_name = (job.company or {}).get("name")
        summaries.append(summary.to_wire())
    return summaries


async def get_assessment(store: Store, job_id: str) -> Dict[str, Any]:
    """Get the assessment of a job. Raises NotFoundError if it has none."""
    async with store.transaction() as tx:
        assessment = await tx.assessments.first(Assessment.job_id == job_id)
        if assessment is None:
            raise NotFoundError(f"No assessment for job {job_id}")
    return AssessmentResponse.model_validate(assessment).to_wire()


async def save_assessment(
    store: Store, job_id: str, data: AssessmentUpsert
) -> Dict[str, Any]:
    """
    Create or fully replace the assessment of a job.

    Replacing keeps the stored id and creation time; everything else comes
    from the request. The job must exist.
    """
    sections = [section.to_wire() for section in data.sections]

    async with store.transaction() as tx:
        await tx.jobs.require(job_id)
        assessment = await tx.assessments.first(Assessment.job_id == job_id)

        if assessment is None:
            timestamp = now()
            assessment = Assessment(
                id=data.id or str(uuid.uuid4()),
                job_id=job_id,
                title=data.title,
                sections=sections,
                created_at=timestamp,
                updated_at=timestamp,
            )
            await tx.assessments.add(assessment)
            logger.info(f"Assessment {assessment.id} created for job {job_id}")
        else:
            assessment = await tx.assessments.update(
                assessment.id, {"title": data.title, "sections": sections}
            )
            logger.info(f"Assessment {assessment.id} replaced for job {job_id}")

    return AssessmentResponse.model_validate(assessment).to_wire()


async def delete_assessment(store: Store, job_id: str) -> None:
    """Delete the assessment of a job. Raises NotFoundError if it has none."""
    async with store.transaction() as tx:
        assessment = await tx.assessments.first(Assessment.job_id == job_id)
        if assessment is None:
            raise NotFoundError(f"No assessment for job {job_id}")
        await tx.assessments.delete(assessment.id)

    logger.info(f"Assessment {assessment.id} deleted for job {job_id}")
