"""
HR Manager Models

Static reference data: the people who act on candidates. Seeded once and
read-only to the rest of the system.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, JSON
from database.engine import Base
from core.utils.datetime import now
from datetime import datetime
from typing import Any


class HRManager(Base):
    """An HR manager account."""

    __tablename__ = "hr_managers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    # Demo credential only; never serialized
    password: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(50), default="manager", nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(2048))
    assigned_jobs: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    personal_details: Mapped[dict[str, Any]] = mapped_column(
        JSON, default=dict, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now, nullable=False
    )
