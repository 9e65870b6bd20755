"""
Candidate Models

Candidates move through the hiring stages on the board. The jobs a candidate
applied to live in their own table so that "candidates of job X" is an
indexed lookup; the flat list of applied job ids is derived from it and never
stored. Stage transitions are recorded in an append-only timeline.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Integer,
    ForeignKey,
    DateTime,
    JSON,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any


# ==================== Candidate Enums ===================== #
class CandidateStage(str, PyEnum):
    """Hiring pipeline stage, in board order."""

    APPLIED = "applied"
    SCREEN = "screen"
    TECH = "tech"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"


class TimelineActionType(str, PyEnum):
    """Kinds of timeline events."""

    APPLIED = "Applied"
    STAGE_CHANGE = "Stage Change"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# ==================== Models ===================== #
class Candidate(Base):
    """A person in the hiring pipeline."""

    __tablename__ = "candidates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    stage: Mapped[CandidateStage] = mapped_column(
        SQLEnum(CandidateStage, native_enum=False, length=20,
                values_callable=_enum_values),
        default=CandidateStage.APPLIED,
        nullable=False,
        index=True,
    )
    skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    notes: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, default=list, nullable=False
    )
    personal_details: Mapped[dict[str, Any]] = mapped_column(
        JSON, default=dict, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now, nullable=False
    )

    applied_jobs: Mapped[list["CandidateApplication"]] = relationship(
        back_populates="candidate",
        cascade="all, delete-orphan",
        order_by="CandidateApplication.id",
        lazy="selectin",
    )

    @property
    def applied_job_ids(self) -> list[str]:
        """Job ids of `applied_jobs`, in the same order."""
        return [application.job_id for application in self.applied_jobs]

    def __repr__(self) -> str:
        return f"<Candidate(id={self.id}, stage={self.stage})>"


class CandidateApplication(Base):
    """One job a candidate applied to."""

    __tablename__ = "candidate_applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    candidate_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("candidates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    job_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(String(50), default="applied", nullable=False)
    applied_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now, nullable=False
    )

    candidate: Mapped["Candidate"] = relationship(back_populates="applied_jobs")


class CandidateTimelineEvent(Base):
    """
    Append-only audit record of something that happened to a candidate.

    `job_id` is deliberately not a foreign key: events outlive the jobs they
    mention.
    """

    __tablename__ = "candidate_timeline"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    candidate_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False
    )
    job_id: Mapped[str | None] = mapped_column(String(36))
    action_type: Mapped[TimelineActionType] = mapped_column(
        SQLEnum(TimelineActionType, native_enum=False, length=50,
                values_callable=_enum_values),
        nullable=False,
    )
    details: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    actor_id: Mapped[str | None] = mapped_column(String(36))
    actor_name: Mapped[str | None] = mapped_column(String(255))
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now, nullable=False
    )

    __table_args__ = (
        Index("idx_timeline_candidate_timestamp", "candidate_id", "timestamp"),
    )
