"""Training plan and workout records.

API contract and store contract share these models: both store backends
return them, and the HTTP layer serializes them with camelCase aliases.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import Field

from app.core.schemas import CamelModel


class PlanStatus(StrEnum):
    """Plan lifecycle: draft -> completed | failed (both terminal)."""

    DRAFT = "draft"
    COMPLETED = "completed"
    FAILED = "failed"


class WorkoutStatus(StrEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    MISSED = "missed"


class Goal(CamelModel):
    """Race goal supplied by the athlete.

    race_date and race_distance are required by the pipeline but optional here
    so that their absence is reported as InvalidInputError, not a parse error.
    goal_target_time_seconds is an alias accepted for the target finish time.
    """

    race_date: date | None = None
    race_distance: str | None = None
    target_finish_time_seconds: int | None = Field(default=None, ge=0)
    goal_target_time_seconds: int | None = Field(default=None, ge=0)
    description: str | None = None
    weekly_training_days: int | None = Field(default=None, ge=0, le=7)
    long_run_day: str | None = None
    available_equipment: list[str] | None = None

    @property
    def resolved_target_time_seconds(self) -> int | None:
        if self.target_finish_time_seconds is not None:
            return self.target_finish_time_seconds
        return self.goal_target_time_seconds


class TrainingPlanSchema(CamelModel):
    id: str
    user_id: str
    goal_race_distance: str
    goal_race_date: date
    goal_target_time_seconds: int | None = None
    goal_notes: str | None = None
    status: PlanStatus = PlanStatus.DRAFT
    ai_model: str | None = None
    prompt_context: dict[str, Any] | None = None
    plan_payload: dict[str, Any] | None = None
    generation_notes: str | None = None
    confidence_score: float | None = Field(default=None, ge=0, le=1)
    generated_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class NewWorkout(CamelModel):
    """A flattened workout ready to be stored (no id yet)."""

    scheduled_date: date
    workout_type: str
    description: str | None = None
    distance_km: float | None = Field(default=None, ge=0)
    target_pace: str | None = None
    status: WorkoutStatus = WorkoutStatus.SCHEDULED
    additional_payload: dict[str, Any] | None = None


class WorkoutSchema(CamelModel):
    id: str
    training_plan_id: str
    scheduled_date: date
    workout_type: str
    description: str | None = None
    distance_km: float | None = None
    target_pace: str | None = None
    status: WorkoutStatus = WorkoutStatus.SCHEDULED
    pre_run_sleep_quality: int | None = None
    pre_run_body_feel: int | None = None
    user_feedback_difficulty: int | None = None
    user_feedback_notes: str | None = None
    additional_payload: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class WorkoutUpdate(CamelModel):
    """Check-in/log fields of a workout.

    Schedule fields only change on regeneration and are not part of this model.
    None means "leave unchanged".
    """

    status: WorkoutStatus | None = None
    pre_run_sleep_quality: int | None = Field(default=None, ge=1, le=10)
    pre_run_body_feel: int | None = Field(default=None, ge=1, le=10)
    user_feedback_difficulty: int | None = Field(default=None, ge=1, le=10)
    user_feedback_notes: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


@dataclass(frozen=True)
class PlanCreationResult:
    plan: TrainingPlanSchema
    workouts: list[WorkoutSchema]
    raw_response: dict[str, Any] | None


@dataclass(frozen=True)
class LatestPlan:
    plan: TrainingPlanSchema
    workouts: list[WorkoutSchema]
