"""Survey domain Pydantic V2 schemas.

Mirrors the records served by the survey store: surveys with their typed
questions, and the immutable per-respondent responses. Parsing is lenient on
purpose: the results engine must cope with whatever the store holds, so the
question ``type`` stays a raw token here and is normalized at aggregation time.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, ValidationError, ValidatorFunctionWrapHandler, field_validator

from app.surveys.constants import DurationUnit
from shared.models.base import camel_config


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Survey definition
# ---------------------------------------------------------------------------


class Question(BaseModel):
    model_config = camel_config

    id: str
    survey_id: str | None = None
    title: str = ""
    type: str = Field(description="Raw type token, e.g. MULTIPLE_CHOICE or multiple-choice.")
    options: list[str] | None = None
    required: bool = False
    order: int = 0
    image_url: str | None = None


class Survey(BaseModel):
    model_config = camel_config

    id: str
    title: str = ""
    description: str | None = ""
    created_by: str | None = None
    is_published: bool = False
    duration_value: int | None = None
    duration_unit: DurationUnit = DurationUnit.NONE
    expires_at: datetime | None = None
    questions: list[Question] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _title_or_blank(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("duration_unit", mode="before")
    @classmethod
    def _lower_unit(cls, v: object) -> object:
        if v is None:
            return DurationUnit.NONE
        return v.lower() if isinstance(v, str) else v

    @field_validator("expires_at", "created_at", "updated_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class Answer(BaseModel):
    model_config = camel_config

    question_id: str
    value: list[str] = Field(default_factory=list)

    @field_validator("value", mode="before")
    @classmethod
    def _as_list(cls, v: object) -> object:
        # Single-answer types are stored as a one-element list; accept bare scalars too.
        if v is None:
            return []
        if isinstance(v, (str, int, float)):
            return [str(v)]
        if isinstance(v, list):
            return [str(item) for item in v]
        return v


class SurveyResponse(BaseModel):
    model_config = camel_config

    id: str
    survey_id: str
    respondent_id: str | None = None
    respondent_email: str | None = None
    answers: list[Answer] = Field(default_factory=list)
    completed_at: datetime | None = None

    @field_validator("answers", mode="before")
    @classmethod
    def _answers_or_empty(cls, v: object) -> object:
        return [] if v is None else v

    @field_validator("completed_at", mode="wrap")
    @classmethod
    def _utc_or_none(cls, v: object, handler: ValidatorFunctionWrapHandler) -> datetime | None:
        # An unreadable timestamp must not cost the rest of the record.
        try:
            return _as_utc(handler(v))
        except ValidationError:
            return None


class SurveyStatusResponse(BaseModel):
    model_config = camel_config

    survey_id: str
    is_published: bool
    expires_at: datetime | None = None
    is_expired: bool
    accepting_responses: bool
