"""Plan payload parsing and flattening.

Acceptance is best-effort: only what the stores need is enforced
(an object payload, workout dates, non-negative distances). Missing
optional fields fall back to explicit defaults.
"""

from __future__ import annotations

import json
from collections import OrderedDict
from datetime import date, datetime
from typing import Any

from pydantic import ValidationError

from app.plans.errors import MalformedPlanError
from app.plans.schemas import NewWorkout, WorkoutSchema, WorkoutStatus

DEFAULT_WORKOUT_TYPE = "Workout"


def parse_plan_payload(content: str) -> dict[str, Any]:
    """Parse provider content into a plan payload.

    Raises:
        MalformedPlanError: If content is not JSON or not a JSON object
    """
    try:
        payload = json.loads(content)
    except (TypeError, ValueError) as e:
        raise MalformedPlanError("Failed to parse AI response as JSON.") from e

    if not isinstance(payload, dict):
        raise MalformedPlanError(f"AI response must be a JSON object, got {type(payload).__name__}.")
    return payload


def _first_present(source: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return None


def _parse_day(raw: Any, week_number: Any, index: int) -> date:
    if isinstance(raw, str) and raw:
        try:
            return date.fromisoformat(raw[:10])
        except ValueError:
            pass
    raise MalformedPlanError(f"Workout {index + 1} of week {week_number} has no valid ISO date (got {raw!r}).")


def flatten_workouts(payload: dict[str, Any]) -> list[NewWorkout]:
    """Flatten weeks -> workouts into an ordered list of storable workouts.

    Each workout keeps its week number and microcycle focus in
    additional_payload so weekly groupings can be rebuilt without re-parsing.

    Raises:
        MalformedPlanError: If weeks/workouts are not lists, a workout has no
            parseable date, or a distance is not a non-negative number
    """
    weeks = payload.get("weeks") or []
    if not isinstance(weeks, list):
        raise MalformedPlanError("Plan 'weeks' must be a list.")

    workouts: list[NewWorkout] = []
    for week in weeks:
        if not isinstance(week, dict):
            raise MalformedPlanError("Each plan week must be an object.")
        week_number = week.get("weekNumber")
        week_workouts = week.get("workouts") or []
        if not isinstance(week_workouts, list):
            raise MalformedPlanError(f"Workouts of week {week_number} must be a list.")

        for index, workout in enumerate(week_workouts):
            if not isinstance(workout, dict):
                raise MalformedPlanError(f"Workout {index + 1} of week {week_number} must be an object.")
            try:
                workouts.append(
                    NewWorkout(
                        scheduled_date=_parse_day(workout.get("day"), week_number, index),
                        workout_type=_first_present(workout, "workoutType", "type") or DEFAULT_WORKOUT_TYPE,
                        description=workout.get("description"),
                        distance_km=_first_present(workout, "distanceKm", "distance_km"),
                        target_pace=_first_present(workout, "targetPace", "pace"),
                        status=WorkoutStatus.SCHEDULED,
                        additional_payload={
                            "effort": workout.get("effort"),
                            "notes": workout.get("notes"),
                            "weekNumber": week_number,
                            "microcycleFocus": week.get("microcycleFocus"),
                        },
                    )
                )
            except ValidationError as e:
                raise MalformedPlanError(f"Workout {index + 1} of week {week_number} is invalid: {e}") from e

    return workouts


def resolve_confidence_score(payload: dict[str, Any]) -> float | None:
    """planSummary.confidenceScore, else planSummary.confidence, else None.

    Values outside [0, 1] or non-numeric values resolve to None.
    """
    summary = payload.get("planSummary")
    if not isinstance(summary, dict):
        return None
    value = _first_present(summary, "confidenceScore", "confidence")
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if not 0 <= value <= 1:
        return None
    return float(value)


def resolve_generated_at(payload: dict[str, Any], now: datetime) -> datetime:
    """metadata.generatedAtIso when parseable, else `now`."""
    metadata = payload.get("metadata")
    raw = metadata.get("generatedAtIso") if isinstance(metadata, dict) else None
    if isinstance(raw, str) and raw:
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            pass
    return now


def group_workouts_by_week(workouts: list[WorkoutSchema] | list[NewWorkout]) -> list[dict[str, Any]]:
    """Rebuild weekly groupings from flattened workouts.

    Groups follow first appearance of each week number; workouts keep their
    relative order.
    """
    groups: OrderedDict[Any, dict[str, Any]] = OrderedDict()
    for workout in workouts:
        extra = workout.additional_payload or {}
        week_number = extra.get("weekNumber")
        group = groups.get(week_number)
        if group is None:
            group = {"weekNumber": week_number, "microcycleFocus": extra.get("microcycleFocus"), "workouts": []}
            groups[week_number] = group
        group["workouts"].append(workout)
    return list(groups.values())
