"""Candidate service functions."""

from typing import Any, Dict, List, Optional
import logging
import uuid

from api.schemas.candidates import (
    AppliedJob,
    CandidateCreate,
    CandidateDetailResponse,
    CandidateResponse,
    CandidateUpdate,
    Note,
    NoteCreate,
    TimelineEventResponse,
)
from core.errors import ValidationError
from core.utils.datetime import now
from core.utils.formatting import mask_email
from database.models.candidates import (
    Candidate,
    CandidateApplication,
    CandidateStage,
    CandidateTimelineEvent,
    TimelineActionType,
)
from database.store import Store, UnitOfWork

logger = logging.getLogger(__name__)

ALL_STAGES = "all"


def _applications(applied_jobs: List[AppliedJob]) -> List[CandidateApplication]:
    timestamp = now()
    return [
        CandidateApplication(
            job_id=application.job_id,
            status=application.status,
            applied_on=application.applied_on or timestamp,
        )
        for application in applied_jobs
    ]


async def _require_jobs(tx: UnitOfWork, job_ids: List[str]) -> None:
    for job_id in job_ids:
        if await tx.jobs.get(job_id) is None:
            raise ValidationError(f"Job {job_id} does not exist")


def _matches(candidate: Candidate, needle: str) -> bool:
    return needle in candidate.name.casefold() or needle in candidate.email.casefold()


async def list_candidates(
    store: Store,
    stage: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    List candidates.

    The stage filter runs against the stage index; `search` then narrows the
    result by case-insensitive substring on name or email.
    """
    predicate = None
    if stage and stage != ALL_STAGES:
        try:
            predicate = Candidate.stage == CandidateStage(stage)
        except ValueError:
            raise ValidationError(f"Unknown stage: {stage}")

    async with store.transaction() as tx:
        candidates = await tx.candidates.list(
            predicate=predicate,
            order_by=[Candidate.created_at, Candidate.id],
        )

    needle = (search or "").strip().casefold()
    if needle:
        candidates = [c for c in candidates if _matches(c, needle)]

    return [CandidateResponse.model_validate(c).to_wire() for c in candidates]


async def get_candidate(store: Store, candidate_id: str) -> Dict[str, Any]:
    """Get a candidate with their timeline, oldest event first."""
    async with store.transaction() as tx:
        candidate = await tx.candidates.require(candidate_id)
        events = await tx.timeline.for_candidate(candidate_id)

    response = CandidateDetailResponse.model_validate(candidate)
    response.timeline = [TimelineEventResponse.model_validate(e) for e in events]
    return response.to_wire()


async def create_candidate(
    store: Store,
    data: CandidateCreate,
    actor_id: str,
    actor_name: str,
) -> Dict[str, Any]:
    """Create a candidate and record one Applied event per applied job."""
    async with store.transaction() as tx:
        await _require_jobs(tx, data.applied_job_ids)

        timestamp = now()
        candidate = Candidate(
            id=str(uuid.uuid4()),
            name=data.name,
            email=str(data.email),
            stage=data.stage,
            skills=list(data.skills),
            notes=[],
            personal_details=dict(data.personal_details),
            applied_jobs=_applications(data.applied_jobs),
            created_at=timestamp,
            updated_at=timestamp,
        )
        await tx.candidates.add(candidate)

        for job_id in candidate.applied_job_ids:
            await tx.timeline.add(CandidateTimelineEvent(
                candidate_id=candidate.id,
                job_id=job_id,
                action_type=TimelineActionType.APPLIED,
                details={"note": "Candidate applied."},
                actor_id=actor_id,
                actor_name=actor_name,
                timestamp=timestamp,
            ))

    logger.info(f"Candidate {candidate.id} created ({mask_email(candidate.email)})")
    return CandidateResponse.model_validate(candidate).to_wire()


async def update_candidate(
    store: Store,
    candidate_id: str,
    data: CandidateUpdate,
    actor_id: str,
    actor_name: str,
) -> Dict[str, Any]:
    """
    Partially update a candidate.

    A stage change appends exactly one Stage Change event in the same
    transaction; setting the stage to its current value records nothing.
    `actorId`/`actorName` in the request override the default actor.
    """
    fields = data.changes()
    actor_id = fields.pop("actor_id", None) or actor_id
    actor_name = fields.pop("actor_name", None) or actor_name
    if "applied_jobs" in fields:
        fields["applied_jobs"] = _applications(data.applied_jobs)
    if "email" in fields:
        fields["email"] = str(fields["email"])

    async with store.transaction() as tx:
        candidate = await tx.candidates.require(candidate_id)
        from_stage = candidate.stage

        if "applied_jobs" in fields:
            await _require_jobs(tx, [a.job_id for a in fields["applied_jobs"]])

        candidate = await tx.candidates.update(candidate_id, fields)

        if "stage" in fields and fields["stage"] != from_stage:
            job_ids = candidate.applied_job_ids
            await tx.timeline.add(CandidateTimelineEvent(
                candidate_id=candidate_id,
                job_id=job_ids[0] if job_ids else None,
                action_type=TimelineActionType.STAGE_CHANGE,
                details={
                    "fromStage": from_stage.value,
                    "toStage": candidate.stage.value,
                },
                actor_id=actor_id,
                actor_name=actor_name,
                timestamp=now(),
            ))
            logger.info(
                f"Candidate {candidate_id} moved {from_stage.value} -> {candidate.stage.value}"
            )

    return CandidateResponse.model_validate(candidate).to_wire()


async def add_note(
    store: Store,
    candidate_id: str,
    data: NoteCreate,
    actor_id: str,
    actor_name: str,
) -> Dict[str, Any]:
    """Append a note to a candidate and return it."""
    note = Note(
        id=str(uuid.uuid4()),
        content=data.content,
        author_id=data.author_id or actor_id,
        author_name=data.author_name or actor_name,
        created_at=now(),
    ).to_wire()

    async with store.transaction() as tx:
        candidate = await tx.candidates.require(candidate_id)
        await tx.candidates.update(candidate_id, {"notes": [*candidate.notes, note]})

    logger.info(f"Note {note['id']} added to candidate {candidate_id}")
    return note
