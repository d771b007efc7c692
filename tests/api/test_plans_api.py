from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.core.auth_jwt import create_access_token
from app.core.clock import fixed_clock
from app.main import create_app
from app.plans.generation_client import GenerationClient
from app.users.schemas import UserProfileUpdate

SECRET = "test-secret"
NOW = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)
PLAN_REQUEST = {
    "raceDate": "2025-04-27",
    "raceDistance": "Marathon",
    "targetFinishTimeSeconds": 12600,
    "goalNotes": "Sub 3:30",
}


def _settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="",
        AUTH_SECRET_KEY=SECRET,
        PROVIDER_API_KEY="",
        PROVIDER_MOCK_MODE=True,
        CORS_ALLOWED_ORIGINS="http://localhost:3000",
        LOG_LEVEL="WARNING",
    )


def _auth(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, SECRET)}"}


def _build(generation_client: GenerationClient | None = None):
    app = create_app(_settings(), clock=fixed_clock(NOW), generation_client=generation_client)
    user = app.state.stores.users.create_user(UserProfileUpdate(display_name="Ana Runner", weekly_training_days=5))
    return app, user


@pytest.fixture
def app_and_user():
    return _build()


@pytest.fixture
def client(app_and_user):
    app, _ = app_and_user
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers(app_and_user):
    _, user = app_and_user
    return _auth(user.id)


def test_health_endpoints(client):
    assert client.get("/").json() == {"status": "ok"}
    assert client.get("/api/health").json() == {"status": "ok"}


def test_create_plan_requires_token(client):
    assert client.post("/api/plans", json=PLAN_REQUEST).status_code == 401


def test_create_plan_rejects_invalid_token(client):
    response = client.post("/api/plans", json=PLAN_REQUEST, headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_create_plan_for_unknown_user_is_unauthorized(client):
    response = client.post("/api/plans", json=PLAN_REQUEST, headers=_auth("ghost"))

    assert response.status_code == 401


def test_create_plan_returns_plan_and_workouts(client, headers, app_and_user):
    _, user = app_and_user

    response = client.post("/api/plans", json=PLAN_REQUEST, headers=headers)

    assert response.status_code == 201
    body = response.json()
    assert set(body) == {"plan", "workouts", "rawResponse"}
    assert body["rawResponse"] is None
    assert body["plan"]["status"] == "completed"
    assert body["plan"]["userId"] == user.id
    assert body["plan"]["confidenceScore"] == 0.72
    assert body["plan"]["goalRaceDate"] == "2025-04-27"
    assert body["plan"]["goalTargetTimeSeconds"] == 12600
    assert len(body["workouts"]) == 16
    assert body["workouts"][0]["scheduledDate"] == "2025-03-31"
    assert body["workouts"][-1]["workoutType"] == "Long Run"
    assert body["workouts"][-1]["additionalPayload"]["weekNumber"] == 4


def test_create_plan_with_missing_goal_fields_is_bad_request(client, headers):
    response = client.post("/api/plans", json={"raceDate": "2025-04-27"}, headers=headers)

    assert response.status_code == 400


def test_latest_plan_is_404_before_generation(client, headers):
    response = client.get("/api/plans/latest", headers=headers)

    assert response.status_code == 404
    assert response.json() == {"plan": None, "workouts": []}


def test_latest_plan_returns_created_plan(client, headers):
    created = client.post("/api/plans", json=PLAN_REQUEST, headers=headers).json()

    response = client.get("/api/plans/latest", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["plan"]["id"] == created["plan"]["id"]
    assert [w["id"] for w in body["workouts"]] == [w["id"] for w in created["workouts"]]


def test_provider_failure_is_bad_gateway():
    failing_client = GenerationClient(
        api_key="secret-key",
        clock=fixed_clock(NOW),
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="unavailable")),
    )
    app, user = _build(failing_client)

    with TestClient(app) as client:
        response = client.post("/api/plans", json=PLAN_REQUEST, headers=_auth(user.id))
        latest = client.get("/api/plans/latest", headers=_auth(user.id))

    assert response.status_code == 502
    assert "503" in response.json()["detail"]
    assert latest.status_code == 404
    (plan,) = app.state.stores.plans.list_plans_for_user(user.id)
    assert plan.status == "failed"


def test_malformed_generation_is_server_error():
    garbled_client = GenerationClient(
        api_key="secret-key",
        clock=fixed_clock(NOW),
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"choices": [{"message": {"content": "not json"}}]})
        ),
    )
    app, user = _build(garbled_client)

    with TestClient(app) as client:
        response = client.post("/api/plans", json=PLAN_REQUEST, headers=_auth(user.id))

    assert response.status_code == 500


def _first_workout_id(client, headers) -> str:
    return client.post("/api/plans", json=PLAN_REQUEST, headers=headers).json()["workouts"][0]["id"]


def test_checkin_updates_ratings(client, headers):
    workout_id = _first_workout_id(client, headers)

    response = client.post(
        f"/api/workouts/{workout_id}/checkin",
        json={"sleepQuality": 7, "bodyFeel": "8"},
        headers=headers,
    )

    assert response.status_code == 200
    workout = response.json()["workout"]
    assert workout["preRunSleepQuality"] == 7
    assert workout["preRunBodyFeel"] == 8
    assert workout["status"] == "scheduled"
    assert workout["scheduledDate"] == "2025-03-31"


def test_log_updates_feedback(client, headers):
    workout_id = _first_workout_id(client, headers)

    response = client.post(
        f"/api/workouts/{workout_id}/log",
        json={"difficulty": 6, "notes": "Felt strong", "status": "completed"},
        headers=headers,
    )

    assert response.status_code == 200
    workout = response.json()["workout"]
    assert workout["userFeedbackDifficulty"] == 6
    assert workout["userFeedbackNotes"] == "Felt strong"
    assert workout["status"] == "completed"


def test_checkin_with_out_of_range_rating_is_bad_request(client, headers):
    workout_id = _first_workout_id(client, headers)

    response = client.post(f"/api/workouts/{workout_id}/checkin", json={"sleepQuality": 42}, headers=headers)

    assert response.status_code == 400


def test_workout_of_another_user_is_forbidden(client, headers, app_and_user):
    app, _ = app_and_user
    workout_id = _first_workout_id(client, headers)
    intruder = app.state.stores.users.create_user(UserProfileUpdate(display_name="Intruder"))

    checkin = client.post(f"/api/workouts/{workout_id}/checkin", json={"sleepQuality": 5}, headers=_auth(intruder.id))
    log = client.post(f"/api/workouts/{workout_id}/log", json={"difficulty": 5}, headers=_auth(intruder.id))

    assert checkin.status_code == 403
    assert log.status_code == 403


def test_unknown_workout_is_not_found(client, headers):
    response = client.post("/api/workouts/missing/log", json={"difficulty": 5}, headers=headers)

    assert response.status_code == 404


def test_cors_allows_configured_origin(client):
    response = client.options(
        "/api/health",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )

    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
