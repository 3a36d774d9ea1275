"""Results domain Pydantic V2 schemas.

Derived data only: nothing here is persisted. A ``QuestionResult`` is rebuilt
from scratch on every aggregation pass.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, Field

from app.surveys.schemas import Survey, SurveyResponse
from shared.models.base import camel_config


class SessionState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


class AnswerTally(BaseModel):
    model_config = camel_config

    value: str
    count: int
    percentage: float


class QuestionResult(BaseModel):
    model_config = camel_config

    question_id: str
    question_title: str
    question_type: str
    total_responses: int
    answers: list[AnswerTally] = Field(default_factory=list)
    text_responses: list[str] | None = None


class ResultsSnapshot(BaseModel):
    """What a results view renders.

    The survey, its raw responses and per-question results, plus the summary
    figures shown above them.
    """

    model_config = camel_config

    state: SessionState
    survey: Survey | None = None
    responses: list[SurveyResponse] = Field(default_factory=list)
    results: list[QuestionResult] = Field(default_factory=list)
    error: str | None = None
    total_respondents: int = 0
    question_count: int = 0
    last_response_at: datetime | None = None
