"""Training plan service - orchestration layer for plan generation.

This service provides the entry point for the generate-validate-persist
pipeline:
- Input validation (before anything is persisted)
- Prompt composition
- Draft creation, generation, parsing
- Terminal transition of the draft (completed or failed)
- Wholesale replacement of the plan's workouts

It also applies check-in/log updates to individual workouts on behalf of
the plan owner.
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError

from app.config.settings import DEFAULT_PLAN_MODEL
from app.core.clock import Clock, utc_now
from app.plans.errors import (
    ForbiddenError,
    InvalidInputError,
    MalformedPlanError,
    PersistenceError,
    ProviderError,
    UserNotFoundError,
    WorkoutNotFoundError,
)
from app.plans.generation_client import GenerationClient
from app.plans.parser import flatten_workouts, parse_plan_payload, resolve_confidence_score, resolve_generated_at
from app.plans.prompt_builder import build_plan_prompt, validate_goal
from app.plans.schemas import Goal, LatestPlan, PlanCreationResult, WorkoutSchema, WorkoutStatus, WorkoutUpdate
from app.plans.store import Stores

MOCK_GENERATION_NOTES = "Plan generated using mock mode. No call to the generation provider was made."


def coerce_rating(value: Any) -> int | None:
    """Parse a rating leniently; unparsable input means "no change"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class TrainingPlanService:
    def __init__(
        self,
        stores: Stores,
        generation_client: GenerationClient,
        *,
        model: str = DEFAULT_PLAN_MODEL,
        clock: Clock = utc_now,
    ) -> None:
        self._plans = stores.plans
        self._workouts = stores.workouts
        self._users = stores.users
        self._client = generation_client
        self._model = model
        self._clock = clock

    def create_plan(self, user_id: str, goal: Goal) -> PlanCreationResult:
        """Generate and persist a training plan for a goal.

        Args:
            user_id: Authenticated user ID
            goal: Race goal (race date and distance required)

        Returns:
            PlanCreationResult with the completed plan, its stored workouts and
            the raw provider response (None in mock mode)

        Raises:
            InvalidInputError: If required fields are missing (nothing persisted)
            UserNotFoundError: If the user has no profile (nothing persisted)
            ProviderError: If generation failed (plan marked failed)
            MalformedPlanError: If the generated content is unusable (plan marked failed)
            PersistenceError: If a store write failed
        """
        validate_goal(user_id, goal)

        user = self._users.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        prompt = build_plan_prompt(user, goal, now=self._clock(), model=self._model)

        draft = self._plans.create_draft(
            user_id,
            goal,
            ai_model=prompt.model,
            prompt_context=prompt.prompt_context,
        )
        logger.info(
            "Training plan service: Draft created",
            plan_id=draft.id,
            user_id=user_id,
            race_distance=goal.race_distance,
            race_date=goal.race_date.isoformat(),
        )

        try:
            generation = self._client.invoke(prompt)
        except ProviderError as e:
            logger.error(
                "Training plan service: Generation failed",
                plan_id=draft.id,
                user_id=user_id,
                status_code=e.status_code,
                error=e.message,
            )
            self._plans.mark_failed(draft.id, e.message)
            raise

        try:
            payload = parse_plan_payload(generation.content)
            workouts = flatten_workouts(payload)
        except MalformedPlanError as e:
            logger.error(
                "Training plan service: Generated plan is malformed",
                plan_id=draft.id,
                user_id=user_id,
                error=e.message,
            )
            self._plans.mark_failed(draft.id, e.message)
            raise

        completed = self._plans.mark_completed(
            draft.id,
            payload=payload,
            confidence_score=resolve_confidence_score(payload),
            generated_at=resolve_generated_at(payload, self._clock()),
            notes=MOCK_GENERATION_NOTES if generation.used_mock else None,
        )
        if completed is None:
            raise PersistenceError(f"Plan {draft.id} disappeared before completion.")

        stored_workouts = self._workouts.replace_all(draft.id, workouts)

        logger.info(
            "Training plan service: Plan generation complete",
            plan_id=completed.id,
            user_id=user_id,
            used_mock=generation.used_mock,
            total_workouts=len(stored_workouts),
        )
        return PlanCreationResult(
            plan=completed,
            workouts=stored_workouts,
            raw_response=generation.raw_provider_response,
        )

    def get_latest_plan(self, user_id: str) -> LatestPlan | None:
        """Latest completed plan of the user with its workouts, or None."""
        plan = self._plans.get_latest_completed(user_id)
        if plan is None:
            return None
        return LatestPlan(plan=plan, workouts=self._workouts.list_for_plan(plan.id))

    def _owned_workout(self, user_id: str, workout_id: str) -> WorkoutSchema:
        workout = self._workouts.get_workout(workout_id)
        if workout is None:
            raise WorkoutNotFoundError(workout_id)
        plan = self._plans.get_plan(workout.training_plan_id)
        if plan is None or plan.user_id != user_id:
            raise ForbiddenError("Forbidden.")
        return workout

    def _apply_update(self, workout_id: str, fields: dict[str, Any]) -> WorkoutSchema:
        try:
            update = WorkoutUpdate(**fields)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid workout update: {e}") from e
        updated = self._workouts.update_fields(workout_id, update)
        if updated is None:
            raise WorkoutNotFoundError(workout_id)
        return updated

    def check_in_workout(
        self,
        user_id: str,
        workout_id: str,
        *,
        sleep_quality: Any = None,
        body_feel: Any = None,
        status: WorkoutStatus | str | None = None,
    ) -> WorkoutSchema:
        """Record pre-run sleep quality and body feel."""
        self._owned_workout(user_id, workout_id)
        return self._apply_update(
            workout_id,
            {
                "pre_run_sleep_quality": coerce_rating(sleep_quality),
                "pre_run_body_feel": coerce_rating(body_feel),
                "status": status or None,
            },
        )

    def log_workout(
        self,
        user_id: str,
        workout_id: str,
        *,
        difficulty: Any = None,
        notes: str | None = None,
        status: WorkoutStatus | str | None = None,
    ) -> WorkoutSchema:
        """Record post-run difficulty and notes."""
        self._owned_workout(user_id, workout_id)
        return self._apply_update(
            workout_id,
            {
                "user_feedback_difficulty": coerce_rating(difficulty),
                "user_feedback_notes": notes if isinstance(notes, str) else None,
                "status": status or None,
            },
        )
