"""Per-question statistics over a survey's full response set.

Pure functions: inputs are never mutated and every call recomputes from the
raw responses. Results always come back one per survey question, in survey
order, even when nobody has answered yet.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from app.results.normalizer import flatten_answers, normalize_type
from app.results.schemas import AnswerTally, QuestionResult
from app.surveys.constants import QuestionType
from app.surveys.schemas import Question, Survey, SurveyResponse


def tally(values: Sequence[str]) -> list[AnswerTally]:
    """Count each distinct value, in first-seen order.

    Percentages are relative to ``len(values)``; with no values there is nothing
    to divide and the list is empty.
    """
    counts: dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    total = len(values)
    return [
        AnswerTally(
            value=value,
            count=count,
            percentage=(count / total * 100) if total > 0 else 0.0,
        )
        for value, count in counts.items()
    ]


def _scale_key(entry: AnswerTally) -> tuple[int, int | str]:
    # Scale labels are numeric strings; anything else sorts after them, by text.
    try:
        return (0, int(entry.value))
    except ValueError:
        return (1, entry.value)


def aggregate(question: Question, responses: Sequence[SurveyResponse]) -> QuestionResult:
    question_type = normalize_type(question.type)
    values = flatten_answers(responses, question.id)
    result = QuestionResult(
        question_id=question.id,
        question_title=question.title,
        question_type=question_type.value if isinstance(question_type, QuestionType) else question_type,
        total_responses=len(values),
    )

    match question_type:
        case QuestionType.TEXT:
            result.text_responses = values
        case QuestionType.SCALE:
            result.answers = sorted(tally(values), key=_scale_key)
        case QuestionType.MULTIPLE_CHOICE | QuestionType.CHECKBOX | QuestionType.DROPDOWN:
            # Checkbox totals count selections, not respondents.
            result.answers = sorted(tally(values), key=lambda e: e.count, reverse=True)
        case _:
            # Unrecognised token: rank like a choice question so the data is still visible.
            result.answers = sorted(tally(values), key=lambda e: e.count, reverse=True)

    return result


def aggregate_survey(survey: Survey, responses: Sequence[SurveyResponse]) -> list[QuestionResult]:
    return [aggregate(question, responses) for question in survey.questions]


def last_response_at(responses: Sequence[SurveyResponse]) -> datetime | None:
    """Completion time of the newest dated response, or None when no response carries one."""
    dates = [r.completed_at for r in responses if r.completed_at is not None]
    return max(dates) if dates else None
