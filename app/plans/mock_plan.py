"""Synthetic plan generation for mock mode.

Produces a deterministic four-week plan satisfying PLAN_OUTPUT_SCHEMA
without any network call. Used for local development and tests.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

MOCK_TOTAL_WEEKS = 4
MOCK_CONFIDENCE_SCORE = 0.72
MOCK_MODEL_VERSION = "mock-model"
MOCK_DISCLAIMER = "Mock plan generated without contacting the generation provider."

# Session offsets (days) from the Monday that opens each week: Mon, Wed, Fri, Sun
_SESSION_OFFSETS = (0, 2, 4, 6)


def _session(index: int, day: date) -> dict[str, Any]:
    if index == 3:
        return {
            "day": day.isoformat(),
            "workoutType": "Long Run",
            "description": "Long aerobic run building endurance.",
            "distanceKm": 18,
            "targetPace": "5:30-5:45 min/km",
            "effort": "Easy",
            "notes": "Fuel well and prioritize recovery.",
        }
    if index == 1:
        return {
            "day": day.isoformat(),
            "workoutType": "Quality Session",
            "description": "Threshold intervals to build speed endurance.",
            "distanceKm": 10,
            "targetPace": "4:45 min/km",
            "effort": "Hard",
        }
    return {
        "day": day.isoformat(),
        "workoutType": "Easy Run",
        "description": "Easy effort run for aerobic base.",
        "distanceKm": 6,
        "targetPace": "5:30-5:45 min/km",
        "effort": "Easy",
    }


def _week_anchor(day: date) -> date:
    """Monday on or before `day`."""
    return day - timedelta(days=day.weekday())


def _race_date(prompt_context: dict[str, Any] | None, now: datetime) -> date:
    raw = ((prompt_context or {}).get("goal") or {}).get("raceDate")
    if raw:
        try:
            return date.fromisoformat(str(raw)[:10])
        except ValueError:
            pass
    return now.date()


def build_mock_plan(
    prompt_context: dict[str, Any] | None,
    now: datetime,
    model: str | None = None,
) -> dict[str, Any]:
    """Build a synthetic plan ending in the race week.

    Weeks are counted back from the race date; the final week tapers.

    Args:
        prompt_context: Prompt context snapshot (goal.raceDate is used)
        now: Generation instant (also the fallback race date)
        model: Configured model, recorded as metadata.modelVersion

    Returns:
        Plan payload matching PLAN_OUTPUT_SCHEMA
    """
    race_date = _race_date(prompt_context, now)

    weeks = []
    for week_number in range(1, MOCK_TOTAL_WEEKS + 1):
        week_start = race_date - timedelta(weeks=MOCK_TOTAL_WEEKS - week_number)
        anchor = _week_anchor(week_start)
        weeks.append(
            {
                "weekNumber": week_number,
                "microcycleFocus": "Taper & sharpen" if week_number == MOCK_TOTAL_WEEKS else "Endurance + speed endurance",
                "workouts": [
                    _session(index, anchor + timedelta(days=offset)) for index, offset in enumerate(_SESSION_OFFSETS)
                ],
            }
        )

    return {
        "planSummary": {
            "totalWeeks": MOCK_TOTAL_WEEKS,
            "weeklyMileageRangeKm": {"min": 40, "max": 55},
            "focusAreas": ["Aerobic base", "Threshold", "Race specificity"],
            "confidenceScore": MOCK_CONFIDENCE_SCORE,
        },
        "weeks": weeks,
        "metadata": {
            "modelVersion": model or MOCK_MODEL_VERSION,
            "generatedAtIso": now.isoformat(),
            "disclaimers": [MOCK_DISCLAIMER],
        },
    }
