"""Plan and workout API request/response schemas."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import Field

from app.core.schemas import CamelModel
from app.plans.schemas import Goal, TrainingPlanSchema, WorkoutSchema, WorkoutStatus


class CreatePlanRequest(CamelModel):
    """Goal fields accepted when requesting a new plan."""

    race_date: date | None = Field(default=None, description="Race date (ISO-8601)")
    race_distance: str | None = Field(default=None, description="Race distance label, e.g. 'Marathon'")
    target_finish_time_seconds: int | None = Field(default=None, ge=0)
    goal_target_time_seconds: int | None = Field(default=None, ge=0, description="Alias of targetFinishTimeSeconds")
    goal_notes: str | None = Field(default=None, max_length=2000)
    weekly_training_days: int | None = Field(default=None, ge=0, le=7)
    long_run_day: str | None = None
    available_equipment: list[str] | None = None

    def to_goal(self) -> Goal:
        return Goal(
            race_date=self.race_date,
            race_distance=self.race_distance,
            target_finish_time_seconds=self.target_finish_time_seconds,
            goal_target_time_seconds=self.goal_target_time_seconds,
            description=self.goal_notes,
            weekly_training_days=self.weekly_training_days,
            long_run_day=self.long_run_day,
            available_equipment=self.available_equipment,
        )


class CreatePlanResponse(CamelModel):
    plan: TrainingPlanSchema
    workouts: list[WorkoutSchema]
    raw_response: dict[str, Any] | None = None


class LatestPlanResponse(CamelModel):
    plan: TrainingPlanSchema | None
    workouts: list[WorkoutSchema]


class WorkoutCheckinRequest(CamelModel):
    """Pre-run check-in. Ratings accept numbers or numeric strings."""

    sleep_quality: int | str | None = None
    body_feel: int | str | None = None
    status: WorkoutStatus | None = None


class WorkoutLogRequest(CamelModel):
    """Post-run log."""

    difficulty: int | str | None = None
    notes: str | None = Field(default=None, max_length=2000)
    status: WorkoutStatus | None = None


class WorkoutResponse(CamelModel):
    workout: WorkoutSchema
