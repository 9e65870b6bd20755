"""Common Pydantic schemas shared across the API."""

from datetime import datetime
from typing import Annotated, Any, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.utils.datetime import ensure_utc


def strip_text(v: Any) -> Any:
    """Strip surrounding whitespace from strings, pass anything else through."""
    if isinstance(v, str):
        return v.strip()
    return v


# Blank-after-strip strings then fail min_length checks
StrippedStr = Annotated[str, BeforeValidator(strip_text)]


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class UpdateModel(CamelModel):
    """Base for partial updates: unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class TimestampMixin(CamelModel):
    """Mixin for timestamp fields."""

    created_at: datetime = Field(description="Timestamp when the resource was created")
    updated_at: datetime = Field(description="Timestamp when the resource was last updated")

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ErrorDetail(BaseModel):
    """Error body."""

    code: str = Field(description="Error code for programmatic handling")
    message: str = Field(description="Human-readable message")
    path: str
    method: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Error response model."""

    error: ErrorDetail
