"""Plan prompt composition.

Builds the deterministic, schema-annotated request sent to the generation
provider from an athlete profile and a race goal. Pure: no I/O, and "now" is
passed in so derived values (age) are reproducible.
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from app.config.settings import DEFAULT_PLAN_MODEL
from app.plans.errors import InvalidInputError
from app.plans.schemas import Goal
from app.users.schemas import UserProfileSchema

_DAYS_PER_YEAR = 365.25

COACH_PERSONA = "You are PB Assistant, an elite running coach focused on helping athletes achieve a personal best."

SYSTEM_PROMPT = (
    "You are PB Assistant, an expert running coach. Respond ONLY with JSON strictly matching "
    "the provided schema. Avoid commentary."
)

PLAN_INSTRUCTIONS = [
    "Generate a periodised plan that balances intensity, recovery, and progressive overload.",
    "Respect the athlete's available training days and highlight key workouts each week.",
    "Return JSON matching the provided schema. Do not include markdown or additional prose.",
    "Populate the confidence score between 0 and 1 based on how realistic the target appears.",
    "Populate mileage values in kilometres. Include pace using min/km or perceived effort terms.",
]

PLAN_OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["planSummary", "weeks", "metadata"],
    "properties": {
        "planSummary": {
            "type": "object",
            "required": ["totalWeeks", "weeklyMileageRangeKm", "focusAreas"],
            "properties": {
                "totalWeeks": {"type": "integer", "minimum": 1},
                "weeklyMileageRangeKm": {
                    "type": "object",
                    "required": ["min", "max"],
                    "properties": {
                        "min": {"type": "number", "minimum": 0},
                        "max": {"type": "number", "minimum": 0},
                    },
                },
                "focusAreas": {"type": "array", "items": {"type": "string"}},
                "confidenceScore": {"type": "number", "minimum": 0, "maximum": 1},
            },
        },
        "weeks": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["weekNumber", "microcycleFocus", "workouts"],
                "properties": {
                    "weekNumber": {"type": "integer", "minimum": 1},
                    "microcycleFocus": {"type": "string"},
                    "workouts": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["day", "workoutType", "description"],
                            "properties": {
                                "day": {"type": "string", "description": "ISO-8601 date"},
                                "workoutType": {"type": "string"},
                                "description": {"type": "string"},
                                "distanceKm": {"type": "number", "minimum": 0},
                                "targetPace": {"type": "string"},
                                "effort": {"type": "string"},
                                "notes": {"type": "string"},
                            },
                        },
                    },
                },
            },
        },
        "metadata": {
            "type": "object",
            "required": ["modelVersion", "generatedAtIso"],
            "properties": {
                "modelVersion": {"type": "string"},
                "generatedAtIso": {"type": "string", "description": "ISO-8601 timestamp"},
                "disclaimers": {"type": "array", "items": {"type": "string"}},
            },
        },
    },
}


class PromptPackage(BaseModel):
    """Everything the generation client needs for one plan request.

    prompt_context is persisted on the draft plan as an audit snapshot.
    """

    model: str
    response_format: dict[str, Any]
    messages: list[dict[str, str]]
    prompt_context: dict[str, Any]


def _to_date(value: date | datetime | str | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        return None


def calculate_age(birthdate: date | datetime | str | None, now: datetime) -> int | None:
    """Whole years elapsed since birthdate.

    Args:
        birthdate: Date, datetime or ISO string
        now: Reference instant

    Returns:
        Age in whole years, or None when the birthdate is absent, unparsable
        or in the future
    """
    dob = _to_date(birthdate)
    if dob is None:
        return None
    elapsed_days = (now.date() - dob).days
    if elapsed_days < 0:
        return None
    return math.floor(elapsed_days / _DAYS_PER_YEAR)


def summarise_user_profile(user: UserProfileSchema, now: datetime) -> dict[str, Any]:
    return {
        "id": user.id,
        "displayName": user.display_name,
        "gender": user.gender,
        "age": calculate_age(user.birthdate, now),
        "heightCm": user.height_cm,
        "weightKg": user.weight_kg,
        "weeklyTrainingDays": user.weekly_training_days,
        "timezone": user.timezone,
        "bestRaceDistance": user.best_race_distance,
        "bestRaceTimeSeconds": user.best_race_time_seconds,
    }


def normalise_goal(goal: Goal, fallback_weekly_training_days: int | None = None) -> dict[str, Any]:
    """Normalize a goal for the prompt; missing optional fields become null."""
    weekly_training_days = goal.weekly_training_days
    if weekly_training_days is None:
        weekly_training_days = fallback_weekly_training_days

    return {
        "raceDate": goal.race_date.isoformat() if goal.race_date else None,
        "raceDistance": goal.race_distance,
        "targetFinishTimeSeconds": goal.resolved_target_time_seconds,
        "description": goal.description,
        "constraints": {
            "weeklyTrainingDays": weekly_training_days,
            "longRunDay": goal.long_run_day,
            "availableEquipment": goal.available_equipment,
        },
    }


def validate_goal(user_id: str | None, goal: Goal | None) -> None:
    """Reject requests missing the user or the required goal fields.

    Raises:
        InvalidInputError: If user id, race date or race distance is missing
    """
    if not user_id:
        raise InvalidInputError("User context is required to build the plan prompt.")
    if goal is None or not goal.race_date or not (goal.race_distance or "").strip():
        raise InvalidInputError("Goal race distance and date are required to build the plan prompt.")


def build_plan_prompt(
    user: UserProfileSchema,
    goal: Goal,
    now: datetime,
    model: str | None = None,
) -> PromptPackage:
    """Build the generation request for a user's goal.

    Args:
        user: Athlete profile (id required)
        goal: Race goal (race date and distance required)
        now: Reference instant for derived profile values
        model: Model identifier, defaults to DEFAULT_PLAN_MODEL

    Returns:
        PromptPackage with messages, schema hint and prompt context snapshot

    Raises:
        InvalidInputError: If required user or goal fields are missing
    """
    validate_goal(user.id if user else None, goal)

    profile = summarise_user_profile(user, now)
    goal_context = normalise_goal(goal, fallback_weekly_training_days=user.weekly_training_days)

    user_content = {
        "persona": COACH_PERSONA,
        "instructions": PLAN_INSTRUCTIONS,
        "athleteProfile": profile,
        "goal": goal_context,
        "outputSchema": PLAN_OUTPUT_SCHEMA,
    }

    return PromptPackage(
        model=model or DEFAULT_PLAN_MODEL,
        response_format=PLAN_OUTPUT_SCHEMA,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps(user_content, indent=2)},
        ],
        prompt_context={
            "profile": profile,
            "goal": goal_context,
            "schema": PLAN_OUTPUT_SCHEMA,
        },
    )
