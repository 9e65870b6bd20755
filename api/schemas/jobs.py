"""Job-related Pydantic schemas."""

from typing import Annotated, Optional
from pydantic import AfterValidator, ConfigDict, Field, field_validator, model_validator

from api.schemas.common import CamelModel, StrippedStr, TimestampMixin, UpdateModel
from database.models.jobs import JobStatus


class Company(CamelModel):
    """Hiring company shown on the job card."""

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    avatar_url: Optional[str] = None


class Salary(CamelModel):
    """Salary band. `formatted` is filled in by the server when omitted."""

    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)
    currency: str = Field(default="USD", min_length=1, max_length=10)
    formatted: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self) -> "Salary":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("Salary min cannot exceed max")
        return self


def _unique_tags(tags: list[str]) -> list[str]:
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


# Tags are a set; order of first appearance is kept for display
Tags = Annotated[list[str], AfterValidator(_unique_tags)]


class JobCreate(CamelModel):
    """Schema for creating a job. Only the title is required."""

    model_config = ConfigDict(extra="forbid")

    title: StrippedStr = Field(min_length=1, max_length=255, description="Job title")
    description: Optional[str] = None
    company: Optional[Company] = None
    industry: Optional[str] = Field(None, max_length=255)
    job_type: Optional[str] = Field(None, max_length=50)
    salary: Optional[Salary] = None
    status: JobStatus = JobStatus.ACTIVE
    location: Optional[str] = Field(None, max_length=255)
    tags: Tags = Field(default_factory=list)


class JobUpdate(UpdateModel):
    """Schema for a partial job update."""

    title: Optional[StrippedStr] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    company: Optional[Company] = None
    industry: Optional[str] = Field(None, max_length=255)
    job_type: Optional[str] = Field(None, max_length=50)
    salary: Optional[Salary] = None
    status: Optional[JobStatus] = None
    location: Optional[str] = Field(None, max_length=255)
    tags: Optional[Tags] = None
    order: Optional[int] = Field(None, ge=0)

    @field_validator("title", "status", "tags", "order")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class JobResponse(TimestampMixin):
    """Schema for job response, enriched with the live candidate count."""

    id: str
    title: str
    slug: str
    description: Optional[str] = None
    company: Optional[Company] = None
    industry: Optional[str] = None
    job_type: Optional[str] = None
    salary: Optional[Salary] = None
    status: JobStatus
    location: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    order: int
    candidates_count: int = 0
