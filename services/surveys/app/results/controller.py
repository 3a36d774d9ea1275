"""Results controller — maps session outcomes to HTTP responses."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status

from app.config import Settings
from app.exceptions import (
    FetchFailure,
    NotSurveyOwnerError,
    ResultsNotLoadedError,
    SurveyNotFoundError,
)
from app.results.export import ExportedFile
from app.results.schemas import ResultsSnapshot, SessionState
from app.results.session import ResultsSession
from app.results.sinks import QueueNotifier
from app.surveys.store import SurveyStore, open_survey_store

logger = logging.getLogger(__name__)


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, SurveyNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, NotSurveyOwnerError):
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para ver los resultados de esta encuesta",
        )
    if isinstance(exc, FetchFailure):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    if isinstance(exc, ResultsNotLoadedError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No results loaded.")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def _load_for_owner(session: ResultsSession, survey_id: str, user_id: str) -> None:
    await session.load_results(survey_id)
    if session.state is SessionState.ERRORED:
        raise session.failure or FetchFailure(session.error or "")
    if session.survey is not None and session.survey.created_by != user_id:
        session.reset()
        raise NotSurveyOwnerError()


async def get_results(store: SurveyStore, survey_id: str, user_id: str) -> ResultsSnapshot:
    session = ResultsSession(store)
    try:
        await _load_for_owner(session, survey_id, user_id)
        return session.snapshot()
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def export_results(
    store: SurveyStore,
    survey_id: str,
    user_id: str,
    settings: Settings,
) -> ExportedFile:
    session = ResultsSession(store)
    try:
        await _load_for_owner(session, survey_id, user_id)
        return session.export(tz=ZoneInfo(settings.export_timezone))
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


def _sse(event: str, data: str) -> str:
    return f"event: {event}\ndata: {data}\n\n"


async def open_results_stream(
    survey_id: str,
    user_id: str,
    settings: Settings,
) -> AsyncIterator[str]:
    """Load once (strict), then return an SSE generator that polls until the client leaves.

    The store is opened here rather than taken from a request dependency because
    it has to outlive the handler and stay open for as long as the stream runs.
    """
    stack = AsyncExitStack()
    store = await stack.enter_async_context(open_survey_store(settings))
    updates: asyncio.Queue[ResultsSnapshot] = asyncio.Queue()
    notifier = QueueNotifier()
    session = ResultsSession(
        store,
        notifier=notifier,
        on_update=updates.put_nowait,
        polling_interval=settings.results_polling_interval_secs,
    )
    try:
        await _load_for_owner(session, survey_id, user_id)
    except Exception as exc:
        await stack.aclose()
        raise _handle_domain_error(exc) from exc

    async def events() -> AsyncIterator[str]:
        try:
            async with session:
                session.start_polling(survey_id)
                while True:
                    while not notifier.queue.empty():
                        yield _sse("notification", json.dumps(notifier.queue.get_nowait()))
                    snapshot = await updates.get()
                    yield _sse("results", snapshot.model_dump_json(by_alias=True))
        finally:
            await stack.aclose()
            logger.debug("Results stream for survey %s closed", survey_id)

    return events()
