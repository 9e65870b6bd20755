"""
Jobs Module

Job postings shown on the hiring board. Archival is a status toggle, never a
deletion; the candidate count per job is computed at read time.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Text,
    JSON,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any


# ==================== Job Enums ===================== #
class JobStatus(str, PyEnum):
    """Job posting status."""

    ACTIVE = "active"
    ARCHIVED = "archived"


# ==================== Models ===================== #
class Job(Base):
    """
    A job posting.

    `company` holds {name, description, avatarUrl}; `salary` holds
    {min, max, currency, formatted}.
    """

    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    company: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    industry: Mapped[str | None] = mapped_column(String(255))
    job_type: Mapped[str | None] = mapped_column(String(50))
    salary: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, native_enum=False, length=20,
                values_callable=lambda e: [m.value for m in e]),
        default=JobStatus.ACTIVE,
        nullable=False,
    )
    location: Mapped[str | None] = mapped_column(String(255))
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now, nullable=False
    )

    __table_args__ = (
        Index("idx_jobs_status_order", "status", "order"),
    )

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, title={self.title!r}, status={self.status})>"
