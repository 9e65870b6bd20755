"""HR manager schemas."""

from datetime import datetime
from typing import Any, Optional
from pydantic import Field, field_validator

from api.schemas.common import CamelModel
from core.utils.datetime import ensure_utc


class HRManagerResponse(CamelModel):
    """Public view of an HR manager; credentials are never serialized."""

    id: str
    name: str
    email: str
    role: str
    avatar_url: Optional[str] = None
    assigned_jobs: list[str] = Field(default_factory=list)
    personal_details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)
