"""Candidate-related Pydantic schemas."""

from datetime import datetime
from typing import Any, Optional
from pydantic import ConfigDict, EmailStr, Field, field_validator, model_validator

from api.schemas.common import CamelModel, StrippedStr, TimestampMixin, UpdateModel
from core.utils.datetime import ensure_utc
from database.models.candidates import CandidateStage


class AppliedJob(CamelModel):
    """One job the candidate applied to."""

    job_id: str = Field(min_length=1)
    status: str = Field(default="applied", max_length=50)
    applied_on: Optional[datetime] = None

    @field_validator("applied_on")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class Note(CamelModel):
    """A note left on a candidate by an HR manager."""

    id: str
    content: str
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    created_at: datetime


class NoteCreate(CamelModel):
    """Schema for adding a note."""

    content: StrippedStr = Field(min_length=1, max_length=5000, description="Note text")
    author_id: Optional[str] = Field(None, max_length=36)
    author_name: Optional[str] = Field(None, max_length=255)


class CandidateCreate(CamelModel):
    """
    Schema for creating a candidate.

    Applied jobs may be given in full (`appliedJobs`) or as bare ids
    (`appliedJobIds`); both are merged, first occurrence wins.
    """

    model_config = ConfigDict(extra="forbid")

    name: StrippedStr = Field(min_length=1, max_length=255, description="Full name")
    email: EmailStr
    stage: CandidateStage = CandidateStage.APPLIED
    skills: list[str] = Field(default_factory=list)
    personal_details: dict[str, Any] = Field(default_factory=dict)
    applied_jobs: list[AppliedJob] = Field(default_factory=list)
    applied_job_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def merge_applied_job_ids(self) -> "CandidateCreate":
        merged: dict[str, AppliedJob] = {}
        for application in self.applied_jobs:
            merged.setdefault(application.job_id, application)
        for job_id in self.applied_job_ids:
            merged.setdefault(job_id, AppliedJob(job_id=job_id))
        self.applied_jobs = list(merged.values())
        self.applied_job_ids = list(merged)
        return self


class CandidateUpdate(UpdateModel):
    """
    Schema for a partial candidate update.

    `actorId`/`actorName` are not stored on the candidate; they name who made
    the change on the timeline.
    """

    name: Optional[StrippedStr] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    stage: Optional[CandidateStage] = None
    skills: Optional[list[str]] = None
    personal_details: Optional[dict[str, Any]] = None
    applied_jobs: Optional[list[AppliedJob]] = None
    actor_id: Optional[str] = Field(None, max_length=36)
    actor_name: Optional[str] = Field(None, max_length=255)

    @field_validator("name", "email", "stage", "skills", "personal_details", "applied_jobs")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class TimelineEventResponse(CamelModel):
    """An entry of the candidate's audit timeline."""

    id: int
    candidate_id: str
    job_id: Optional[str] = None
    action_type: str
    details: dict[str, Any] = Field(default_factory=dict)
    actor_id: Optional[str] = None
    actor_name: Optional[str] = None
    timestamp: datetime

    @field_validator("action_type", mode="before")
    @classmethod
    def enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)

    @field_validator("timestamp")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class CandidateResponse(TimestampMixin):
    """Schema for candidate response."""

    id: str
    name: str
    email: str
    stage: CandidateStage
    skills: list[str] = Field(default_factory=list)
    applied_jobs: list[AppliedJob] = Field(default_factory=list)
    applied_job_ids: list[str] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    personal_details: dict[str, Any] = Field(default_factory=dict)


class CandidateDetailResponse(CandidateResponse):
    """Candidate with their timeline, oldest event first."""

    timeline: list[TimelineEventResponse] = Field(default_factory=list)
