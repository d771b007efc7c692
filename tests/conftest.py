"""Root conftest for all tests.

Shared fixtures: pinned clocks, stores on both backends, a seeded athlete
and a plan service running the generation client in mock mode.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import event
from sqlalchemy.engine import Engine

from app.core.clock import fixed_clock
from app.plans.generation_client import GenerationClient
from app.plans.schemas import Goal
from app.plans.service import TrainingPlanService
from app.plans.store import build_stores
from app.users.schemas import UserProfileUpdate

FIXED_NOW = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)


# Enable foreign key constraints for SQLite
@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints in SQLite connections."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
def clock():
    return fixed_clock(FIXED_NOW)


@pytest.fixture
def ticking_clock():
    """Clock advancing one second per reading, so creation order is observable."""
    state = {"now": FIXED_NOW}

    def _now() -> datetime:
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return _now


@pytest.fixture(params=["memory", "sql"])
def stores(request, ticking_clock):
    """Stores on the in-process backend and on in-memory SQLite."""
    database_url = "" if request.param == "memory" else "sqlite:///:memory:"
    built = build_stores(database_url, ticking_clock)
    yield built
    if built.engine is not None:
        built.engine.dispose()


@pytest.fixture
def sql_stores(ticking_clock):
    built = build_stores("sqlite:///:memory:", ticking_clock)
    yield built
    built.engine.dispose()


@pytest.fixture
def user_profile() -> UserProfileUpdate:
    return UserProfileUpdate(
        display_name="Ana Runner",
        gender="female",
        birthdate=date(1990, 5, 17),
        height_cm=168,
        weight_kg=58,
        weekly_training_days=5,
        timezone="Europe/Madrid",
        best_race_distance="Half Marathon",
        best_race_time_seconds=5700,
    )


@pytest.fixture
def user(stores, user_profile):
    return stores.users.create_user(user_profile, provider="google", provider_user_id="google-123")


@pytest.fixture
def other_user(stores):
    return stores.users.create_user(UserProfileUpdate(display_name="Someone Else"))


@pytest.fixture
def marathon_goal() -> Goal:
    return Goal(
        race_date=date(2025, 4, 27),
        race_distance="Marathon",
        target_finish_time_seconds=12600,
        description="Sub 3:30 at the spring marathon",
    )


@pytest.fixture
def mock_client(ticking_clock) -> GenerationClient:
    return GenerationClient(mock_mode=True, clock=ticking_clock)


@pytest.fixture
def service(stores, mock_client, ticking_clock) -> TrainingPlanService:
    return TrainingPlanService(stores, mock_client, clock=ticking_clock)
