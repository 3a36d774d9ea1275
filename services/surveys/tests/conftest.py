from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.dependencies import get_settings
from app.main import app
from app.surveys.schemas import Survey, SurveyResponse
from app.surveys.store import InMemorySurveyStore, memory_store

TEST_JWT_SECRET = "test-secret-for-the-surveys-service-0123"
OWNER_ID = "owner-1"
BASE_TIME = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def make_survey(**overrides) -> Survey:
    """A survey as the store serves it: camelCase keys, upper-case type tokens."""
    data = {
        "id": "s1",
        "title": "Encuesta de satisfacción",
        "description": "",
        "createdBy": OWNER_ID,
        "isPublished": True,
        "durationUnit": "none",
        "questions": [
            {"id": "q1", "title": "Color favorito", "type": "MULTIPLE_CHOICE",
             "options": ["A", "B", "C"], "required": True, "order": 0},
            {"id": "q2", "title": "Bebidas", "type": "CHECKBOX",
             "options": ["Café", "Té", "Agua"], "required": False, "order": 1},
            {"id": "q3", "title": "Satisfacción", "type": "SCALE",
             "options": ["1", "2", "3", "4", "5"], "required": True, "order": 2},
            {"id": "q4", "title": "Comentarios", "type": "TEXT", "required": False, "order": 3},
            {"id": "q5", "title": "País", "type": "DROPDOWN",
             "options": ["ES", "MX"], "required": False, "order": 4},
        ],
        "createdAt": "2026-10-01T09:00:00Z",
        "updatedAt": "2026-10-01T09:00:00Z",
    }
    data.update(overrides)
    return Survey.model_validate(data)


def make_response(
    response_id: str,
    answers: dict[str, list[str]],
    *,
    survey_id: str = "s1",
    respondent: str | None = None,
    minutes: int = 0,
) -> SurveyResponse:
    return SurveyResponse.model_validate({
        "id": response_id,
        "surveyId": survey_id,
        "respondentId": respondent or f"{response_id}@example.com",
        "answers": [{"questionId": qid, "value": value} for qid, value in answers.items()],
        "completedAt": (BASE_TIME + timedelta(minutes=minutes)).isoformat(),
    })


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, kind: str) -> None:
        self.messages.append((message, kind))


@pytest.fixture
def survey() -> Survey:
    return make_survey()


@pytest.fixture
def responses() -> list[SurveyResponse]:
    return [
        make_response("r1", {"q1": ["A"], "q2": ["Café", "Té"], "q3": ["3"], "q4": ["Muy bien"]}, minutes=1),
        make_response("r2", {"q1": ["B"], "q2": ["Té"], "q3": ["1"], "q5": ["ES"]}, minutes=2),
        make_response("r3", {"q1": ["A"], "q2": ["Agua", "Café"], "q3": ["2"], "q4": ["Regular"]}, minutes=3),
        make_response("r4", {"q1": ["A"], "q3": ["1"], "q5": ["MX"]}, minutes=4),
    ]


@pytest.fixture
def store(survey, responses) -> InMemorySurveyStore:
    s = InMemorySurveyStore()
    s.add_survey(survey)
    for r in responses:
        s.add_response(r)
    return s


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        survey_store_backend="memory",
        jwt_secret=TEST_JWT_SECRET,
        results_polling_interval_secs=0.01,
        export_timezone="UTC",
    )


@pytest.fixture
def seeded_memory_store(survey, responses) -> Generator[InMemorySurveyStore, None, None]:
    memory_store.clear()
    memory_store.add_survey(survey)
    for r in responses:
        memory_store.add_response(r)
    yield memory_store
    memory_store.clear()


@pytest.fixture
def client(test_settings, seeded_memory_store) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_settings] = lambda: test_settings
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_headers(user_id: str = OWNER_ID) -> dict[str, str]:
    token = jwt.encode({"sub": user_id}, TEST_JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}
