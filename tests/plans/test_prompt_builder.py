import json
from datetime import date, datetime, timezone

import pytest

from app.config.settings import DEFAULT_PLAN_MODEL
from app.plans.errors import InvalidInputError
from app.plans.prompt_builder import (
    PLAN_OUTPUT_SCHEMA,
    SYSTEM_PROMPT,
    build_plan_prompt,
    calculate_age,
    normalise_goal,
    summarise_user_profile,
)
from app.plans.schemas import Goal
from app.users.schemas import UserProfileSchema

NOW = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)


def _profile(**overrides) -> UserProfileSchema:
    fields = {
        "id": "user-1",
        "display_name": "Ana Runner",
        "gender": "female",
        "birthdate": date(1990, 5, 17),
        "height_cm": 168,
        "weight_kg": 58,
        "weekly_training_days": 5,
        "timezone": "Europe/Madrid",
        "best_race_distance": "Half Marathon",
        "best_race_time_seconds": 5700,
    }
    fields.update(overrides)
    return UserProfileSchema(**fields)


def test_calculate_age_counts_whole_years():
    assert calculate_age(date(1990, 5, 17), NOW) == 34
    assert calculate_age("1990-05-17", NOW) == 34
    assert calculate_age(datetime(1990, 5, 17, 12, 0), NOW) == 34


@pytest.mark.parametrize("birthdate", [None, "", "not-a-date", date(2030, 1, 1)])
def test_calculate_age_returns_none_for_unusable_birthdate(birthdate):
    assert calculate_age(birthdate, NOW) is None


def test_summarise_user_profile_uses_camel_case_keys():
    summary = summarise_user_profile(_profile(), NOW)

    assert summary == {
        "id": "user-1",
        "displayName": "Ana Runner",
        "gender": "female",
        "age": 34,
        "heightCm": 168,
        "weightKg": 58,
        "weeklyTrainingDays": 5,
        "timezone": "Europe/Madrid",
        "bestRaceDistance": "Half Marathon",
        "bestRaceTimeSeconds": 5700,
    }


def test_normalise_goal_resolves_target_time_alias_and_training_days_fallback():
    goal = Goal(race_date=date(2025, 4, 27), race_distance="Marathon", goal_target_time_seconds=12600)

    normalised = normalise_goal(goal, fallback_weekly_training_days=4)

    assert normalised["raceDate"] == "2025-04-27"
    assert normalised["targetFinishTimeSeconds"] == 12600
    assert normalised["description"] is None
    assert normalised["constraints"] == {
        "weeklyTrainingDays": 4,
        "longRunDay": None,
        "availableEquipment": None,
    }


def test_normalise_goal_prefers_explicit_values():
    goal = Goal(
        race_date=date(2025, 4, 27),
        race_distance="Marathon",
        target_finish_time_seconds=12000,
        goal_target_time_seconds=13000,
        weekly_training_days=6,
        long_run_day="Sunday",
    )

    normalised = normalise_goal(goal, fallback_weekly_training_days=4)

    assert normalised["targetFinishTimeSeconds"] == 12000
    assert normalised["constraints"]["weeklyTrainingDays"] == 6
    assert normalised["constraints"]["longRunDay"] == "Sunday"


def test_build_plan_prompt_packages_messages_and_context():
    goal = Goal(race_date=date(2025, 4, 27), race_distance="Marathon", target_finish_time_seconds=12600)

    prompt = build_plan_prompt(_profile(), goal, now=NOW)

    assert prompt.model == DEFAULT_PLAN_MODEL
    assert prompt.response_format == PLAN_OUTPUT_SCHEMA
    assert [message["role"] for message in prompt.messages] == ["system", "user"]
    assert prompt.messages[0]["content"] == SYSTEM_PROMPT

    user_content = json.loads(prompt.messages[1]["content"])
    assert user_content["goal"]["raceDistance"] == "Marathon"
    assert user_content["athleteProfile"]["age"] == 34
    assert user_content["outputSchema"] == PLAN_OUTPUT_SCHEMA

    assert set(prompt.prompt_context) == {"profile", "goal", "schema"}
    assert prompt.prompt_context["goal"]["constraints"]["weeklyTrainingDays"] == 5


def test_build_plan_prompt_uses_requested_model():
    goal = Goal(race_date=date(2025, 4, 27), race_distance="10K")

    assert build_plan_prompt(_profile(), goal, now=NOW, model="other-model").model == "other-model"


@pytest.mark.parametrize(
    "goal",
    [
        Goal(race_distance="Marathon"),
        Goal(race_date=date(2025, 4, 27)),
        Goal(race_date=date(2025, 4, 27), race_distance="   "),
    ],
)
def test_build_plan_prompt_rejects_incomplete_goal(goal):
    with pytest.raises(InvalidInputError):
        build_plan_prompt(_profile(), goal, now=NOW)


def test_build_plan_prompt_requires_user_id():
    goal = Goal(race_date=date(2025, 4, 27), race_distance="Marathon")

    with pytest.raises(InvalidInputError):
        build_plan_prompt(_profile(id=""), goal, now=NOW)


def test_output_schema_requires_top_level_sections():
    assert set(PLAN_OUTPUT_SCHEMA["required"]) == {"planSummary", "weeks", "metadata"}
