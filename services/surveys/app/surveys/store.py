"""
Survey store clients — where the results engine reads surveys and responses from.

The store itself (survey CRUD, response submission) lives in another service;
this module only fetches. ``HttpSurveyStore`` talks to it over REST with httpx,
``InMemorySurveyStore`` backs local development and tests.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import ValidationError

from app.config import Settings
from app.exceptions import FetchFailure, SurveyNotFoundError
from app.surveys.schemas import Survey, SurveyResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", Survey, SurveyResponse)

_NETWORK_ERROR_MESSAGE = "No se pudo conectar con el servidor. Verifica tu conexión a internet."
_INVALID_DATA_MESSAGE = "El servidor devolvió datos inválidos"

_STATUS_MESSAGES: dict[int, str] = {
    400: "La solicitud contiene datos inválidos",
    401: "No estás autorizado. Por favor inicia sesión",
    403: "No tienes permisos para realizar esta acción",
    404: "El recurso solicitado no existe",
    500: "Error del servidor. Por favor intenta más tarde",
}


class SurveyStore(Protocol):
    async def fetch_survey(self, survey_id: str) -> Survey: ...

    async def fetch_responses(self, survey_id: str) -> list[SurveyResponse]: ...


def error_message_from_response(response: httpx.Response) -> str:
    """Human-readable message for a 4xx/5xx from the survey store."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        errors = data.get("errors")
        if isinstance(errors, dict) and errors:
            lines = "\n".join(f"• {field}: {msg}" for field, msg in errors.items())
            return f"Por favor, corrige los siguientes errores:\n{lines}"
        if data.get("message"):
            return str(data["message"])

    return _STATUS_MESSAGES.get(
        response.status_code,
        f"Error: {response.status_code} - {response.reason_phrase}",
    )


def _validate(model: type[ModelT], data: Any, survey_id: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "body" for err in exc.errors())
        logger.error("Survey store sent an invalid %s for survey %s: %s", model.__name__, survey_id, exc)
        raise FetchFailure(f"{_INVALID_DATA_MESSAGE} ({model.__name__}: {fields})") from exc


class HttpSurveyStore:
    """Reads surveys from the store's REST API (``/surveys/{id}``, ``/surveys/{id}/responses``)."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)

    async def __aenter__(self) -> HttpSurveyStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, path: str) -> Any:
        try:
            r = await self._client.get(path)
        except httpx.HTTPError as exc:
            logger.error("Survey store request %s failed: %s", path, exc)
            if isinstance(exc, (httpx.ConnectError, httpx.TimeoutException)) or not str(exc):
                raise FetchFailure(_NETWORK_ERROR_MESSAGE) from exc
            raise FetchFailure(str(exc)) from exc
        if r.status_code >= 400:
            logger.error("Survey store error %s on %s: %s", r.status_code, path, r.text[:300])
            raise FetchFailure(error_message_from_response(r), status_code=r.status_code)
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as exc:
            logger.error("Survey store sent a non-JSON body on %s: %s", path, r.text[:300])
            raise FetchFailure(_INVALID_DATA_MESSAGE, status_code=r.status_code) from exc

    async def fetch_survey(self, survey_id: str) -> Survey:
        try:
            data = await self._get(f"/surveys/{survey_id}")
        except FetchFailure as exc:
            if exc.status_code == 404:
                raise SurveyNotFoundError(survey_id, exc.message) from exc
            raise
        if data is None:
            raise SurveyNotFoundError(survey_id)
        return _validate(Survey, data, survey_id)

    async def fetch_responses(self, survey_id: str) -> list[SurveyResponse]:
        data = await self._get(f"/surveys/{survey_id}/responses")
        return [_validate(SurveyResponse, item, survey_id) for item in data or []]


class InMemorySurveyStore:
    """Dict-backed store for local runs; responses keep submission order."""

    def __init__(self) -> None:
        self._surveys: dict[str, Survey] = {}
        self._responses: dict[str, list[SurveyResponse]] = {}

    def add_survey(self, survey: Survey) -> Survey:
        self._surveys[survey.id] = survey
        self._responses.setdefault(survey.id, [])
        return survey

    def add_response(self, response: SurveyResponse) -> SurveyResponse:
        self._responses.setdefault(response.survey_id, []).append(response)
        return response

    def clear(self) -> None:
        self._surveys.clear()
        self._responses.clear()

    async def fetch_survey(self, survey_id: str) -> Survey:
        survey = self._surveys.get(survey_id)
        if survey is None:
            raise SurveyNotFoundError(survey_id)
        return survey.model_copy(deep=True)

    async def fetch_responses(self, survey_id: str) -> list[SurveyResponse]:
        return [r.model_copy(deep=True) for r in self._responses.get(survey_id, [])]


# Shared by every caller when survey_store_backend == "memory".
memory_store = InMemorySurveyStore()


@asynccontextmanager
async def open_survey_store(settings: Settings) -> AsyncIterator[SurveyStore]:
    if settings.survey_store_backend == "memory":
        yield memory_store
        return
    async with HttpSurveyStore(settings.survey_api_url, timeout=settings.http_timeout_secs) as store:
        yield store
