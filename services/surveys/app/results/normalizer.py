"""Canonical question types and flat answer lists for the aggregator."""

from __future__ import annotations

from collections.abc import Iterable

from app.surveys.constants import QuestionType
from app.surveys.schemas import SurveyResponse


def normalize_type(raw_type: str) -> QuestionType | str:
    """Map a stored type token (``MULTIPLE_CHOICE``) to the internal enum (``multiple-choice``).

    Unknown tokens come back lower-cased and hyphenated but otherwise untouched,
    so corrupt data shows up as an odd label instead of an exception.
    """
    token = raw_type.lower().replace("_", "-")
    try:
        return QuestionType(token)
    except ValueError:
        return token


def flatten_answers(responses: Iterable[SurveyResponse], question_id: str) -> list[str]:
    """Every answer value given to ``question_id``, in response order then value order.

    A checkbox answer contributes one entry per selected option.
    """
    return [
        value
        for response in responses
        for answer in response.answers
        if answer.question_id == question_id
        for value in answer.value
    ]
