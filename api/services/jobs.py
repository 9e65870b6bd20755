"""Job service functions."""

from typing import Any, Dict, List, Optional
import logging
import uuid

from sqlalchemy import and_, distinct, func, select

from api.schemas.jobs import JobCreate, JobResponse, JobUpdate, Salary
from core.utils.datetime import now
from core.utils.formatting import format_salary_range, slugify
from database.models.assessments import Assessment
from database.models.candidates import CandidateApplication
from database.models.jobs import Job, JobStatus
from database.store import Store, UnitOfWork

logger = logging.getLogger(__name__)


def _salary_document(salary: Optional[Salary]) -> Optional[Dict[str, Any]]:
    """Salary as stored, with `formatted` filled in when the caller left it out."""
    if salary is None:
        return None
    document = salary.to_wire()
    if not document.get("formatted"):
        document["formatted"] = format_salary_range(
            salary.min, salary.max, salary.currency
        )
    return document


async def _candidate_counts(
    tx: UnitOfWork, job_ids: Optional[List[str]] = None
) -> Dict[str, int]:
    """Live number of candidates per job, from the applications index."""
    query = select(
        CandidateApplication.job_id,
        func.count(distinct(CandidateApplication.candidate_id)),
    ).group_by(CandidateApplication.job_id)
    if job_ids is not None:
        query = query.where(CandidateApplication.job_id.in_(job_ids))
    result = await tx.session.execute(query)
    return {job_id: count for job_id, count in result.all()}


def _serialize(job: Job, candidates_count: int) -> Dict[str, Any]:
    response = JobResponse.model_validate(job)
    response.candidates_count = candidates_count
    return response.to_wire()


async def list_jobs(
    store: Store,
    status: Optional[JobStatus] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """List jobs in board order, each with its live candidate count."""
    predicates = []
    if status:
        predicates.append(Job.status == status)
    if search and search.strip():
        predicates.append(Job.title.ilike(f"%{search.strip()}%"))

    async with store.transaction() as tx:
        jobs = await tx.jobs.list(
            predicate=and_(*predicates) if predicates else None,
            order_by=[Job.order, Job.created_at],
        )
        counts = await _candidate_counts(tx)

    return [_serialize(job, counts.get(job.id, 0)) for job in jobs]


async def get_job(store: Store, job_id: str) -> Dict[str, Any]:
    """Get job details. Raises NotFoundError for unknown ids."""
    async with store.transaction() as tx:
        job = await tx.jobs.require(job_id)
        counts = await _candidate_counts(tx, [job_id])
    return _serialize(job, counts.get(job_id, 0))


async def create_job(store: Store, data: JobCreate) -> Dict[str, Any]:
    """Create a job at the end of the board."""
    async with store.transaction() as tx:
        result = await tx.session.execute(select(func.max(Job.order)))
        max_order = result.scalar() or 0

        timestamp = now()
        job = Job(
            id=str(uuid.uuid4()),
            title=data.title,
            slug=slugify(data.title),
            description=data.description,
            company=data.company.to_wire() if data.company else None,
            industry=data.industry,
            job_type=data.job_type,
            salary=_salary_document(data.salary),
            status=data.status,
            location=data.location,
            tags=list(data.tags),
            order=max_order + 1,
            created_at=timestamp,
            updated_at=timestamp,
        )
        await tx.jobs.add(job)

    logger.info(f"Job {job.id} created: {job.title}")
    return _serialize(job, 0)


async def update_job(store: Store, job_id: str, data: JobUpdate) -> Dict[str, Any]:
    """
    Partially update a job.

    Only the fields present in the request change. The slug is fixed at
    creation and does not follow later title edits.
    """
    fields = data.changes()
    if "company" in fields:
        fields["company"] = data.company.to_wire() if data.company else None
    if "salary" in fields:
        fields["salary"] = _salary_document(data.salary)

    async with store.transaction() as tx:
        job = await tx.jobs.update(job_id, fields)
        counts = await _candidate_counts(tx, [job_id])

    if fields:
        logger.info(f"Job {job_id} updated: {', '.join(fields)}")
    return _serialize(job, counts.get(job_id, 0))


async def delete_job(store: Store, job_id: str) -> None:
    """Delete a job together with its assessment."""
    async with store.transaction() as tx:
        await tx.jobs.require(job_id)
        assessment = await tx.assessments.first(Assessment.job_id == job_id)
        if assessment is not None:
            await tx.assessments.delete(assessment.id)
        await tx.jobs.delete(job_id)

    logger.info(f"Job {job_id} deleted")

