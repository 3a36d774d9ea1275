"""
Results session — survey + responses + derived results for one results view.

State machine::

    IDLE ──load_results──▶ LOADING ──▶ READY
                                  └──▶ ERRORED

``load_results`` is strict: a failed fetch moves the session to ERRORED with an
empty snapshot and a toast. ``refresh_results`` is lenient: it recomputes
without touching the loading state and, on failure, only logs, leaving the last
good snapshot in place so a blip during polling never blanks the dashboard.

One session per view or request. It is the only writer of its results, and its
polling task is owned by the session and cancelled by ``stop_polling``,
``reset`` or leaving ``async with``.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, tzinfo

from app.exceptions import FetchFailure, ResultsNotLoadedError
from app.results.aggregator import aggregate_survey, last_response_at
from app.results.export import ExportedFile, export_csv
from app.results.schemas import QuestionResult, ResultsSnapshot, SessionState
from app.results.sinks import FileSink, LoggingNotifier, Notifier
from app.surveys.schemas import Survey, SurveyResponse
from app.surveys.store import SurveyStore

logger = logging.getLogger(__name__)

DEFAULT_POLLING_INTERVAL_SECS = 5.0
EXPORT_SUCCESS_MESSAGE = "Resultados exportados exitosamente"

UpdateCallback = Callable[[ResultsSnapshot], Awaitable[None] | None]


def _failure_message(exc: Exception) -> str:
    if isinstance(exc, FetchFailure) and exc.message:
        return exc.message
    return str(exc) or exc.__class__.__name__


def _log_refresh_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Error in polled results refresh: %s", exc, exc_info=exc)


class ResultsSession:
    def __init__(
        self,
        store: SurveyStore,
        *,
        notifier: Notifier | None = None,
        on_update: UpdateCallback | None = None,
        polling_interval: float = DEFAULT_POLLING_INTERVAL_SECS,
    ) -> None:
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.on_update = on_update
        self.polling_interval = polling_interval

        self.state = SessionState.IDLE
        self.survey: Survey | None = None
        self.responses: list[SurveyResponse] = []
        self.results: list[QuestionResult] = []
        self.error: str | None = None
        self.failure: Exception | None = None

        # Every fetch cycle takes a ticket; only a ticket newer than the last
        # applied one may write state.
        self._issued = 0
        self._applied = 0
        self._poll_task: asyncio.Task | None = None
        self._refresh_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        return self.state is SessionState.LOADING

    def snapshot(self) -> ResultsSnapshot:
        return ResultsSnapshot(
            state=self.state,
            survey=self.survey,
            responses=list(self.responses),
            results=list(self.results),
            error=self.error,
            total_respondents=len(self.responses),
            question_count=len(self.survey.questions) if self.survey else 0,
            last_response_at=last_response_at(self.responses),
        )

    def _take_ticket(self) -> int:
        self._issued += 1
        return self._issued

    def _is_current(self, ticket: int) -> bool:
        return ticket > self._applied

    async def _fetch(self, survey_id: str) -> tuple[Survey, list[SurveyResponse], list[QuestionResult]]:
        # Survey first so a missing survey fails before the responses round-trip.
        survey = await self.store.fetch_survey(survey_id)
        responses = await self.store.fetch_responses(survey_id)
        return survey, responses, aggregate_survey(survey, responses)

    def _apply(
        self,
        ticket: int,
        survey: Survey,
        responses: list[SurveyResponse],
        results: list[QuestionResult],
    ) -> None:
        self._applied = ticket
        self.survey = survey
        self.responses = responses
        self.results = results
        self.state = SessionState.READY
        self.error = None
        self.failure = None

    async def _emit(self) -> None:
        if self.on_update is None:
            return
        outcome = self.on_update(self.snapshot())
        if inspect.isawaitable(outcome):
            await outcome

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def load_results(self, survey_id: str) -> None:
        ticket = self._take_ticket()
        self.state = SessionState.LOADING
        self.error = None
        self.failure = None
        try:
            survey, responses, results = await self._fetch(survey_id)
        except Exception as exc:
            if not self._is_current(ticket):
                return
            message = _failure_message(exc)
            logger.warning("Loading results for survey %s failed: %s", survey_id, message)
            self._applied = ticket
            self.survey = None
            self.responses = []
            self.results = []
            self.state = SessionState.ERRORED
            self.error = message
            self.failure = exc
            self.notifier.notify(message, "error")
            await self._emit()
            return

        if not self._is_current(ticket):
            logger.debug("Discarding stale load for survey %s", survey_id)
            return
        self._apply(ticket, survey, responses, results)
        await self._emit()

    async def refresh_results(self, survey_id: str) -> None:
        ticket = self._take_ticket()
        try:
            survey, responses, results = await self._fetch(survey_id)
        except Exception as exc:
            logger.error("Error refreshing results for survey %s: %s", survey_id, _failure_message(exc))
            return

        if not self._is_current(ticket):
            logger.debug("Discarding stale refresh for survey %s", survey_id)
            return
        self._apply(ticket, survey, responses, results)
        await self._emit()

    def reset(self) -> None:
        """Back to IDLE; stops polling and invalidates any fetch still in flight."""
        self._cancel_tasks()
        self._applied = self._issued
        self.state = SessionState.IDLE
        self.survey = None
        self.responses = []
        self.results = []
        self.error = None
        self.failure = None

    def export(
        self,
        *,
        sink: FileSink | None = None,
        now: datetime | None = None,
        tz: tzinfo | None = None,
    ) -> ExportedFile:
        exported = export_csv(self.survey, self.responses, now=now, tz=tz)
        if exported is None:
            raise ResultsNotLoadedError()
        if sink is not None:
            sink.save(exported.content, exported.filename, exported.mime_type)
        self.notifier.notify(EXPORT_SUCCESS_MESSAGE, "success")
        return exported

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def start_polling(self, survey_id: str) -> None:
        if self.polling:
            return
        self._poll_task = asyncio.create_task(self._poll(survey_id), name=f"results-poll:{survey_id}")

    async def _poll(self, survey_id: str) -> None:
        while True:
            await asyncio.sleep(self.polling_interval)
            if self._refresh_task is not None and not self._refresh_task.done():
                logger.debug("Refresh for survey %s still in flight, skipping tick", survey_id)
                continue
            self._refresh_task = asyncio.create_task(self.refresh_results(survey_id))
            self._refresh_task.add_done_callback(_log_refresh_outcome)

    def _cancel_tasks(self) -> list[asyncio.Task]:
        tasks = [t for t in (self._poll_task, self._refresh_task) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        self._poll_task = None
        self._refresh_task = None
        return tasks

    async def stop_polling(self) -> None:
        tasks = self._cancel_tasks()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> ResultsSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop_polling()
