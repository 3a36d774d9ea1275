from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from conftest import make_survey


def test_status_of_open_survey(client: TestClient) -> None:
    response = client.get("/api/v1/surveys/s1/status")
    assert response.status_code == 200
    body = response.json()
    assert body == {
        "surveyId": "s1",
        "isPublished": True,
        "expiresAt": None,
        "isExpired": False,
        "acceptingResponses": True,
    }


def test_status_of_expired_survey(client: TestClient, seeded_memory_store) -> None:
    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    seeded_memory_store.add_survey(make_survey(id="s2", expiresAt=past.isoformat()))
    body = client.get("/api/v1/surveys/s2/status").json()
    assert body["isExpired"] is True
    assert body["acceptingResponses"] is False


def test_status_of_missing_survey(client: TestClient) -> None:
    response = client.get("/api/v1/surveys/nope/status")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"
