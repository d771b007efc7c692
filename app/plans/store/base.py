"""Store contracts for plans and workouts.

Callers depend only on these interfaces; which backend is active is decided
once, in build_stores().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from app.plans.errors import InvalidInputError, PlanTransitionError
from app.plans.schemas import Goal, NewWorkout, PlanStatus, TrainingPlanSchema, WorkoutSchema, WorkoutUpdate


def require_draft_fields(user_id: str | None, goal: Goal) -> None:
    if not user_id:
        raise InvalidInputError("userId is required to create a plan.")
    if not (goal.race_distance or "").strip() or not goal.race_date:
        raise InvalidInputError("Both goal race distance and date are required.")


# completed -> completed is the last-write-wins overwrite of a regenerated payload
ALLOWED_TRANSITIONS: dict[PlanStatus, frozenset[PlanStatus]] = {
    PlanStatus.COMPLETED: frozenset({PlanStatus.DRAFT, PlanStatus.COMPLETED}),
    PlanStatus.FAILED: frozenset({PlanStatus.DRAFT}),
}


def require_transition(plan_id: str, current: PlanStatus | str, target: PlanStatus) -> None:
    """Raise PlanTransitionError unless a plan in `current` may move to `target`."""
    current = PlanStatus(current)
    if current not in ALLOWED_TRANSITIONS.get(target, frozenset()):
        raise PlanTransitionError(plan_id, current.value, target.value)


class PlanStore(ABC):
    """Durable record of plan lifecycles: draft -> completed | failed."""

    @abstractmethod
    def create_draft(
        self,
        user_id: str,
        goal: Goal,
        ai_model: str | None = None,
        prompt_context: dict[str, Any] | None = None,
    ) -> TrainingPlanSchema:
        """Persist a new draft plan with no payload.

        Raises:
            InvalidInputError: If user id, race distance or race date is missing
        """

    @abstractmethod
    def mark_completed(
        self,
        plan_id: str,
        payload: dict[str, Any],
        confidence_score: float | None,
        generated_at: datetime,
        notes: str | None = None,
    ) -> TrainingPlanSchema | None:
        """Store the generated payload and move the plan to completed.

        Last write wins. Returns None when the plan does not exist.

        Raises:
            PlanTransitionError: If the plan has already failed
        """

    @abstractmethod
    def mark_failed(self, plan_id: str, notes: str) -> TrainingPlanSchema | None:
        """Move a draft plan to failed with the failure cause as notes.

        Returns None when the plan does not exist.

        Raises:
            PlanTransitionError: If the plan is no longer a draft
        """

    @abstractmethod
    def get_plan(self, plan_id: str) -> TrainingPlanSchema | None: ...

    @abstractmethod
    def list_plans_for_user(
        self,
        user_id: str,
        statuses: Iterable[PlanStatus] | None = None,
    ) -> list[TrainingPlanSchema]:
        """Plans of a user, newest first, optionally filtered by status."""

    def get_latest_completed(self, user_id: str) -> TrainingPlanSchema | None:
        """Most recently created completed plan of the user, or None."""
        plans = self.list_plans_for_user(user_id, statuses=[PlanStatus.COMPLETED])
        return plans[0] if plans else None


class WorkoutStore(ABC):
    """Plan-scoped workout sets, replaced wholesale per generation."""

    @abstractmethod
    def replace_all(self, plan_id: str, workouts: list[NewWorkout]) -> list[WorkoutSchema]:
        """Atomically replace every workout of a plan.

        Readers see either the previous set or the new set, never a mix.
        Returns the stored workouts ordered by scheduled date.
        """

    @abstractmethod
    def list_for_plan(self, plan_id: str) -> list[WorkoutSchema]:
        """Workouts of a plan ordered by scheduled date ascending."""

    @abstractmethod
    def get_workout(self, workout_id: str) -> WorkoutSchema | None: ...

    @abstractmethod
    def update_fields(self, workout_id: str, update: WorkoutUpdate) -> WorkoutSchema | None:
        """Apply check-in/log fields to one workout.

        Returns the updated workout, or None when it does not exist.
        """
