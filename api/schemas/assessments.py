"""Assessment-related Pydantic schemas."""

import uuid
from typing import Any, Optional
from pydantic import ConfigDict, Field, model_validator

from api.schemas.common import CamelModel, StrippedStr, TimestampMixin
from database.models.assessments import QuestionType


def _new_id() -> str:
    return str(uuid.uuid4())


class QuestionOption(CamelModel):
    """One answer option of a choice question."""

    id: str = Field(default_factory=_new_id)
    text: StrippedStr = Field(min_length=1, max_length=1000)


class Question(CamelModel):
    """
    A single question.

    Choice questions need at least one option; text questions never carry
    options.
    """

    id: str = Field(default_factory=_new_id)
    title: StrippedStr = Field(min_length=1, max_length=1000)
    type: QuestionType
    required: bool = False
    options: list[QuestionOption] = Field(default_factory=list)
    validation: dict[str, Any] = Field(default_factory=dict)
    conditional_logic: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_options(self) -> "Question":
        if self.type.is_choice:
            if not self.options:
                raise ValueError(f"{self.type.value} questions need at least one option")
        else:
            self.options = []
        return self


class Section(CamelModel):
    """An ordered group of questions."""

    id: str = Field(default_factory=_new_id)
    title: str = Field(default="", max_length=255)
    questions: list[Question] = Field(default_factory=list)


class AssessmentUpsert(CamelModel):
    """
    Full assessment document sent on save.

    Clients round-trip the whole object, so read-only fields (timestamps) are
    ignored rather than rejected.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = Field(None, max_length=36)
    job_id: Optional[str] = Field(None, max_length=36)
    title: StrippedStr = Field(min_length=1, max_length=255)
    sections: list[Section] = Field(default_factory=list)


class AssessmentResponse(TimestampMixin):
    """Schema for assessment response."""

    id: str
    job_id: str
    title: str
    sections: list[Section] = Field(default_factory=list)


class AssessmentSummaryResponse(AssessmentResponse):
    """Assessment list entry, enriched with its job's title and company."""

    job_role: Optional[str] = None
    company_name: Optional[str] = None
