"""
Candidate endpoints.

Stage changes made through PATCH are recorded on the candidate's timeline.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_settings, get_store
from api.schemas.candidates import CandidateCreate, CandidateUpdate, NoteCreate
from api.services import candidates as candidate_service
from core.config import Settings
from database.store import Store

router = APIRouter(prefix="/candidates", tags=["candidates"])


@router.get("", summary="List Candidates")
async def list_candidates(
    stage: Optional[str] = Query(None, description="Pipeline stage, or 'all'"),
    search: Optional[str] = Query(None, description="Substring of name or email"),
    store: Store = Depends(get_store),
):
    """List candidates, optionally filtered by stage and searched by name/email."""
    return await candidate_service.list_candidates(store, stage=stage, search=search)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create Candidate")
async def create_candidate(
    data: CandidateCreate,
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return await candidate_service.create_candidate(
        store,
        data,
        actor_id=settings.default_actor_id,
        actor_name=settings.default_actor_name,
    )


@router.get("/{candidate_id}", summary="Get Candidate")
async def get_candidate(
    candidate_id: str = Path(..., description="Candidate ID"),
    store: Store = Depends(get_store),
):
    """Candidate details including the full timeline, oldest event first."""
    return await candidate_service.get_candidate(store, candidate_id)


@router.patch("/{candidate_id}", summary="Update Candidate")
async def update_candidate(
    data: CandidateUpdate,
    candidate_id: str = Path(..., description="Candidate ID"),
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Update only the fields present in the body; a stage change is logged."""
    return await candidate_service.update_candidate(
        store,
        candidate_id,
        data,
        actor_id=settings.default_actor_id,
        actor_name=settings.default_actor_name,
    )


@router.post(
    "/{candidate_id}/notes",
    status_code=status.HTTP_201_CREATED,
    summary="Add Note",
)
async def add_note(
    data: NoteCreate,
    candidate_id: str = Path(..., description="Candidate ID"),
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return await candidate_service.add_note(
        store,
        candidate_id,
        data,
        actor_id=settings.default_actor_id,
        actor_name=settings.default_actor_name,
    )
