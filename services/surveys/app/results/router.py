"""Results router — HTTP layer for aggregated results, CSV export and live updates.

Every request builds its own ResultsSession; only the survey's creator may read it.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from fastapi.responses import StreamingResponse

from app.config import Settings
from app.dependencies import get_current_user, get_settings, get_survey_store
from app.results import controller
from app.results.schemas import ResultsSnapshot
from app.surveys.store import SurveyStore

router = APIRouter(prefix="/results", tags=["Results"])


@router.get(
    "/{survey_id}",
    response_model=ResultsSnapshot,
    summary="Get aggregated survey results (creator only)",
    description="Returns the survey, its responses and one result per question: "
    "ascending tallies for scale, most-popular-first tallies for choice questions, "
    "the raw answers for free text.",
)
async def get_results(
    survey_id: str,
    store: SurveyStore = Depends(get_survey_store),
    user_id: str = Depends(get_current_user),
) -> ResultsSnapshot:
    return await controller.get_results(store, survey_id, user_id)


@router.get(
    "/{survey_id}/export",
    summary="Download survey responses as CSV (creator only)",
    response_class=Response,
)
async def export_results(
    survey_id: str,
    store: SurveyStore = Depends(get_survey_store),
    user_id: str = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> Response:
    exported = await controller.export_results(store, survey_id, user_id, settings)
    return Response(
        content=exported.content,
        media_type=exported.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )


@router.get(
    "/{survey_id}/stream",
    summary="Live results (server-sent events)",
    description="Emits a `results` event after the initial load and after every "
    "polling refresh, plus `notification` events. Polling stops when the client disconnects.",
)
async def stream_results(
    survey_id: str,
    user_id: str = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    events = await controller.open_results_stream(survey_id, user_id, settings)
    return StreamingResponse(
        events,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
