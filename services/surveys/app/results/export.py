"""CSV export of a survey's responses.

The layout is consumed by spreadsheet users, so it is byte-exact: UTF-8 with a
BOM, CRLF line endings and every cell quoted::

    "Encuesta: <title>"
    "Fecha de exportación: <local datetime>"
    "Total de respuestas: <N>"

    "No.","Email del participante","Fecha y hora de respuesta","<question> (<type>)",...
    "1","ana@example.com","19/10/2026 14:03:05","Sí | No",...

Rows are newest first, undated ones last, and numbered by position, so numbers
shift whenever a new response arrives.
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Sequence
from datetime import datetime, timezone, tzinfo
from typing import NamedTuple

from app.results.normalizer import normalize_type
from app.surveys.constants import QUESTION_TYPE_LABELS
from app.surveys.schemas import Question, Survey, SurveyResponse

CSV_BOM = "\ufeff"
CSV_LINE_SEPARATOR = "\r\n"
CSV_MIME_TYPE = "text/csv;charset=utf-8;"
ANSWER_SEPARATOR = " | "
NO_ANSWER = "Sin respuesta"
ANONYMOUS = "Anónimo"
NO_DATE = "Sin fecha"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


class ExportedFile(NamedTuple):
    content: bytes
    filename: str
    mime_type: str = CSV_MIME_TYPE


def question_type_label(raw_type: str) -> str:
    question_type = normalize_type(raw_type)
    return QUESTION_TYPE_LABELS.get(question_type, str(question_type))


def export_filename(title: str, now: datetime) -> str:
    safe_title = _UNSAFE_FILENAME_CHARS.sub("_", title)
    return f"Resultados_{safe_title}_{now.astimezone(timezone.utc).date().isoformat()}.csv"


def _format_export_date(moment: datetime, tz: tzinfo | None) -> str:
    return moment.astimezone(tz).strftime("%d/%m/%Y, %H:%M:%S")


def _format_response_date(moment: datetime | None, tz: tzinfo | None) -> str:
    if moment is None:
        return NO_DATE
    return moment.astimezone(tz).strftime("%d/%m/%Y %H:%M:%S")


def _answer_cell(response: SurveyResponse, question: Question) -> str:
    answer = next((a for a in response.answers if a.question_id == question.id), None)
    if answer is None or not answer.value:
        return NO_ANSWER
    return ANSWER_SEPARATOR.join(answer.value)


def export_csv(
    survey: Survey | None,
    responses: Sequence[SurveyResponse] | None,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> ExportedFile | None:
    """Render the export document; returns None when there is nothing loaded to export.

    ``tz`` is the zone used for the human-readable dates (system local time when
    omitted). The filename always carries the UTC date of ``now``.
    """
    if survey is None or responses is None:
        return None
    now = now or datetime.now(timezone.utc)

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator=CSV_LINE_SEPARATOR)

    writer.writerow([f"Encuesta: {survey.title}"])
    writer.writerow([f"Fecha de exportación: {_format_export_date(now, tz)}"])
    writer.writerow([f"Total de respuestas: {len(responses)}"])
    writer.writerow([])
    writer.writerow([
        "No.",
        "Email del participante",
        "Fecha y hora de respuesta",
        *(f"{q.title} ({question_type_label(q.type)})" for q in survey.questions),
    ])

    dated = [r for r in responses if r.completed_at is not None]
    undated = [r for r in responses if r.completed_at is None]
    newest_first = sorted(dated, key=lambda r: r.completed_at, reverse=True) + undated
    for position, response in enumerate(newest_first, start=1):
        writer.writerow([
            str(position),
            response.respondent_id or response.respondent_email or ANONYMOUS,
            _format_response_date(response.completed_at, tz),
            *(_answer_cell(response, q) for q in survey.questions),
        ])

    content = (CSV_BOM + buf.getvalue()).encode("utf-8")
    return ExportedFile(content=content, filename=export_filename(survey.title, now))
