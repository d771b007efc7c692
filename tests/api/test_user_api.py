import pytest
from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.core.auth_jwt import create_access_token
from app.main import create_app
from app.users.schemas import UserProfileUpdate

SECRET = "user-api-secret"


@pytest.fixture
def app():
    settings = Settings(_env_file=None, DATABASE_URL="sqlite:///:memory:", AUTH_SECRET_KEY=SECRET, LOG_LEVEL="WARNING")
    application = create_app(settings)
    yield application
    application.state.stores.engine.dispose()


@pytest.fixture
def user(app):
    return app.state.stores.users.create_user(
        UserProfileUpdate(display_name="Ana Runner", weekly_training_days=4, best_race_distance="10K")
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def _auth(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, SECRET)}"}


def test_get_me_returns_profile(client, user):
    response = client.get("/api/user/me", headers=_auth(user.id))

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == user.id
    assert body["displayName"] == "Ana Runner"
    assert body["weeklyTrainingDays"] == 4


def test_get_me_requires_token(client):
    assert client.get("/api/user/me").status_code == 401


def test_put_me_applies_partial_update(client, user):
    response = client.put(
        "/api/user/me",
        json={"weeklyTrainingDays": 6, "birthdate": "1990-05-17"},
        headers=_auth(user.id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["weeklyTrainingDays"] == 6
    assert body["birthdate"] == "1990-05-17"
    assert body["displayName"] == "Ana Runner"
    assert body["bestRaceDistance"] == "10K"


def test_put_me_rejects_out_of_range_values(client, user):
    response = client.put("/api/user/me", json={"weeklyTrainingDays": 9}, headers=_auth(user.id))

    assert response.status_code == 422


def test_token_signed_with_other_secret_is_rejected(client, user):
    token = create_access_token(user.id, "some-other-secret")

    response = client.get("/api/user/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
