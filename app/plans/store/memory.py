"""Process-local stores for environments without a database.

Each store instance owns its state; nothing is shared between instances.
Records are deep-copied on the way in and out so callers cannot mutate
stored state.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from app.core.clock import Clock, utc_now
from app.plans.schemas import Goal, NewWorkout, PlanStatus, TrainingPlanSchema, WorkoutSchema, WorkoutUpdate
from app.plans.store.base import PlanStore, WorkoutStore, require_draft_fields, require_transition


class InMemoryPlanStore(PlanStore):
    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._plans: dict[str, TrainingPlanSchema] = {}
        # Creation order, used to break created_at ties
        self._sequence: dict[str, int] = {}

    def create_draft(
        self,
        user_id: str,
        goal: Goal,
        ai_model: str | None = None,
        prompt_context: dict[str, Any] | None = None,
    ) -> TrainingPlanSchema:
        require_draft_fields(user_id, goal)
        now = self._clock()
        plan = TrainingPlanSchema(
            id=f"mem-plan-{uuid.uuid4()}",
            user_id=user_id,
            goal_race_distance=goal.race_distance,
            goal_race_date=goal.race_date,
            goal_target_time_seconds=goal.resolved_target_time_seconds,
            goal_notes=goal.description,
            status=PlanStatus.DRAFT,
            ai_model=ai_model,
            prompt_context=prompt_context,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._plans[plan.id] = plan.model_copy(deep=True)
            self._sequence[plan.id] = len(self._sequence)
        return plan.model_copy(deep=True)

    def _transition(self, plan_id: str, target: PlanStatus, changes: dict[str, Any]) -> TrainingPlanSchema | None:
        with self._lock:
            existing = self._plans.get(plan_id)
            if existing is None:
                return None
            require_transition(plan_id, existing.status, target)
            updated = existing.model_copy(update={**changes, "status": target, "updated_at": self._clock()}, deep=True)
            self._plans[plan_id] = updated
            return updated.model_copy(deep=True)

    def mark_completed(
        self,
        plan_id: str,
        payload: dict[str, Any],
        confidence_score: float | None,
        generated_at: datetime,
        notes: str | None = None,
    ) -> TrainingPlanSchema | None:
        return self._transition(
            plan_id,
            PlanStatus.COMPLETED,
            {
                "plan_payload": payload,
                "confidence_score": confidence_score,
                "generated_at": generated_at,
                "generation_notes": notes,
            },
        )

    def mark_failed(self, plan_id: str, notes: str) -> TrainingPlanSchema | None:
        return self._transition(
            plan_id,
            PlanStatus.FAILED,
            {
                "plan_payload": None,
                "generation_notes": notes,
            },
        )

    def get_plan(self, plan_id: str) -> TrainingPlanSchema | None:
        with self._lock:
            plan = self._plans.get(plan_id)
            return plan.model_copy(deep=True) if plan else None

    def list_plans_for_user(
        self,
        user_id: str,
        statuses: Iterable[PlanStatus] | None = None,
    ) -> list[TrainingPlanSchema]:
        if not user_id:
            return []
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            plans = [
                plan
                for plan in self._plans.values()
                if plan.user_id == user_id and (wanted is None or plan.status in wanted)
            ]
            plans.sort(key=lambda plan: (plan.created_at, self._sequence[plan.id]), reverse=True)
            return [plan.model_copy(deep=True) for plan in plans]


class InMemoryWorkoutStore(WorkoutStore):
    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._by_plan: dict[str, list[WorkoutSchema]] = {}
        self._plan_of: dict[str, str] = {}

    @staticmethod
    def _sorted(workouts: list[WorkoutSchema]) -> list[WorkoutSchema]:
        return [workout.model_copy(deep=True) for workout in sorted(workouts, key=lambda w: w.scheduled_date)]

    def replace_all(self, plan_id: str, workouts: list[NewWorkout]) -> list[WorkoutSchema]:
        if not plan_id:
            raise ValueError("plan_id is required to store workouts.")
        now = self._clock()
        replacement = [
            WorkoutSchema(
                id=f"mem-workout-{uuid.uuid4()}",
                training_plan_id=plan_id,
                created_at=now,
                updated_at=now,
                **workout.model_dump(),
            )
            for workout in workouts
        ]
        with self._lock:
            for previous in self._by_plan.get(plan_id, []):
                self._plan_of.pop(previous.id, None)
            self._by_plan[plan_id] = replacement
            for workout in replacement:
                self._plan_of[workout.id] = plan_id
            return self._sorted(replacement)

    def list_for_plan(self, plan_id: str) -> list[WorkoutSchema]:
        with self._lock:
            return self._sorted(self._by_plan.get(plan_id, []))

    def _find(self, workout_id: str) -> tuple[str, int] | None:
        plan_id = self._plan_of.get(workout_id)
        if plan_id is None:
            return None
        for index, workout in enumerate(self._by_plan[plan_id]):
            if workout.id == workout_id:
                return plan_id, index
        return None

    def get_workout(self, workout_id: str) -> WorkoutSchema | None:
        with self._lock:
            location = self._find(workout_id)
            if location is None:
                return None
            plan_id, index = location
            return self._by_plan[plan_id][index].model_copy(deep=True)

    def update_fields(self, workout_id: str, update: WorkoutUpdate) -> WorkoutSchema | None:
        with self._lock:
            location = self._find(workout_id)
            if location is None:
                return None
            plan_id, index = location
            current = self._by_plan[plan_id]
            updated = current[index].model_copy(update={**update.changes(), "updated_at": self._clock()})
            # Copy-on-write keeps lists already handed to readers intact
            self._by_plan[plan_id] = [*current[:index], updated, *current[index + 1 :]]
            return updated.model_copy(deep=True)
