"""SQLAlchemy-backed plan and workout stores (source of truth in production)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from app.core.clock import Clock, utc_now
from app.db.models import TrainingPlan, Workout
from app.db.session import store_transaction
from app.plans.schemas import Goal, NewWorkout, PlanStatus, TrainingPlanSchema, WorkoutSchema, WorkoutUpdate
from app.plans.store.base import PlanStore, WorkoutStore, require_draft_fields, require_transition


def _plan_to_schema(row: TrainingPlan) -> TrainingPlanSchema:
    return TrainingPlanSchema.model_validate(row, from_attributes=True)


def _workout_to_schema(row: Workout) -> WorkoutSchema:
    return WorkoutSchema.model_validate(row, from_attributes=True)


class SqlPlanStore(PlanStore):
    def __init__(self, session_factory: sessionmaker[Session], clock: Clock = utc_now) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def create_draft(
        self,
        user_id: str,
        goal: Goal,
        ai_model: str | None = None,
        prompt_context: dict[str, Any] | None = None,
    ) -> TrainingPlanSchema:
        require_draft_fields(user_id, goal)
        now = self._clock()
        with store_transaction(self._session_factory, "create plan draft") as session:
            row = TrainingPlan(
                user_id=user_id,
                goal_race_distance=goal.race_distance,
                goal_race_date=goal.race_date,
                goal_target_time_seconds=goal.resolved_target_time_seconds,
                goal_notes=goal.description,
                status=PlanStatus.DRAFT.value,
                ai_model=ai_model,
                prompt_context=prompt_context,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            return _plan_to_schema(row)

    def _transition(
        self,
        plan_id: str,
        target: PlanStatus,
        changes: dict[str, Any],
        operation: str,
    ) -> TrainingPlanSchema | None:
        with store_transaction(self._session_factory, operation) as session:
            # Row lock so concurrent transitions check the status they overwrite
            row = session.get(TrainingPlan, plan_id, with_for_update=True)
            if row is None:
                return None
            require_transition(plan_id, row.status, target)
            row.status = target.value
            for column, value in changes.items():
                setattr(row, column, value)
            row.updated_at = self._clock()
            session.flush()
            return _plan_to_schema(row)

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
            "mark plan completed",
        )

    def mark_failed(self, plan_id: str, notes: str) -> TrainingPlanSchema | None:
        return self._transition(
            plan_id,
            PlanStatus.FAILED,
            {
                "plan_payload": None,
                "generation_notes": notes,
            },
            "mark plan failed",
        )

    def get_plan(self, plan_id: str) -> TrainingPlanSchema | None:
        with store_transaction(self._session_factory, "load plan") as session:
            row = session.get(TrainingPlan, plan_id)
            return _plan_to_schema(row) if row else None

    def list_plans_for_user(
        self,
        user_id: str,
        statuses: Iterable[PlanStatus] | None = None,
    ) -> list[TrainingPlanSchema]:
        if not user_id:
            return []
        query = select(TrainingPlan).where(TrainingPlan.user_id == user_id)
        if statuses is not None:
            query = query.where(TrainingPlan.status.in_([PlanStatus(status).value for status in statuses]))
        query = query.order_by(TrainingPlan.created_at.desc())

        with store_transaction(self._session_factory, "list plans") as session:
            return [_plan_to_schema(row) for row in session.execute(query).scalars().all()]


class SqlWorkoutStore(WorkoutStore):
    def __init__(self, session_factory: sessionmaker[Session], clock: Clock = utc_now) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def replace_all(self, plan_id: str, workouts: list[NewWorkout]) -> list[WorkoutSchema]:
        if not plan_id:
            raise ValueError("plan_id is required to store workouts.")
        now = self._clock()
        # Delete and insert share one transaction: readers see old or new set, never neither
        with store_transaction(self._session_factory, "replace plan workouts") as session:
            session.execute(delete(Workout).where(Workout.training_plan_id == plan_id))
            session.add_all(
                [
                    Workout(
                        training_plan_id=plan_id,
                        created_at=now,
                        updated_at=now,
                        **{
                            **workout.model_dump(),
                            "status": workout.status.value,
                        },
                    )
                    for workout in workouts
                ]
            )
            session.flush()
            rows = session.execute(
                select(Workout).where(Workout.training_plan_id == plan_id).order_by(Workout.scheduled_date.asc())
            )
            stored = [_workout_to_schema(row) for row in rows.scalars().all()]

        logger.debug("Replaced plan workouts", plan_id=plan_id, count=len(stored))
        return stored

    def list_for_plan(self, plan_id: str) -> list[WorkoutSchema]:
        if not plan_id:
            return []
        query = select(Workout).where(Workout.training_plan_id == plan_id).order_by(Workout.scheduled_date.asc())
        with store_transaction(self._session_factory, "list plan workouts") as session:
            return [_workout_to_schema(row) for row in session.execute(query).scalars().all()]

    def get_workout(self, workout_id: str) -> WorkoutSchema | None:
        with store_transaction(self._session_factory, "load workout") as session:
            row = session.get(Workout, workout_id)
            return _workout_to_schema(row) if row else None

    def update_fields(self, workout_id: str, update: WorkoutUpdate) -> WorkoutSchema | None:
        changes = update.changes()
        with store_transaction(self._session_factory, "update workout") as session:
            row = session.get(Workout, workout_id)
            if row is None:
                return None
            if not changes:
                return _workout_to_schema(row)
            for column, value in changes.items():
                setattr(row, column, value.value if column == "status" else value)
            row.updated_at = self._clock()
            session.flush()
            return _workout_to_schema(row)
