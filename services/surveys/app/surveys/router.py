"""Surveys router — read-only survey status used while browsing."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_survey_store
from app.exceptions import FetchFailure, SurveyNotFoundError
from app.surveys.expiration import is_accepting_responses, is_expired
from app.surveys.schemas import SurveyStatusResponse
from app.surveys.store import SurveyStore

router = APIRouter(prefix="/surveys", tags=["Surveys"])


@router.get(
    "/{survey_id}/status",
    response_model=SurveyStatusResponse,
    summary="Whether a survey is published, expired and still accepting responses",
)
async def get_survey_status(
    survey_id: str,
    store: SurveyStore = Depends(get_survey_store),
) -> SurveyStatusResponse:
    try:
        survey = await store.fetch_survey(survey_id)
    except SurveyNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from exc
    except FetchFailure as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc
    return SurveyStatusResponse(
        survey_id=survey.id,
        is_published=survey.is_published,
        expires_at=survey.expires_at,
        is_expired=is_expired(survey.expires_at),
        accepting_responses=is_accepting_responses(survey),
    )
