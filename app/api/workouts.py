"""Workout check-in and log endpoints.

Only the owner of a workout's plan may update it; schedule fields are
never touched here.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from app.api.dependencies.auth import get_current_user_id
from app.api.dependencies.services import get_plan_service
from app.api.schemas.plans import WorkoutCheckinRequest, WorkoutLogRequest, WorkoutResponse
from app.plans.errors import ForbiddenError, InvalidInputError, PersistenceError, PlanPipelineError, WorkoutNotFoundError
from app.plans.service import TrainingPlanService

router = APIRouter(prefix="/workouts", tags=["workouts"])


def _to_http_error(error: PlanPipelineError) -> HTTPException:
    if isinstance(error, WorkoutNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workout not found.")
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden.")
    if isinstance(error, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)


@router.post("/{workout_id}/checkin", response_model=WorkoutResponse)
def checkin_workout(
    workout_id: str,
    request: WorkoutCheckinRequest,
    user_id: str = Depends(get_current_user_id),
    service: TrainingPlanService = Depends(get_plan_service),
) -> WorkoutResponse:
    """Record pre-run sleep quality and body feel."""
    try:
        workout = service.check_in_workout(
            user_id,
            workout_id,
            sleep_quality=request.sleep_quality,
            body_feel=request.body_feel,
            status=request.status,
        )
    except (WorkoutNotFoundError, ForbiddenError, InvalidInputError) as e:
        raise _to_http_error(e) from e
    except PersistenceError as e:
        logger.exception("Failed to record workout check-in", workout_id=workout_id)
        raise _to_http_error(e) from e
    return WorkoutResponse(workout=workout)


@router.post("/{workout_id}/log", response_model=WorkoutResponse)
def log_workout(
    workout_id: str,
    request: WorkoutLogRequest,
    user_id: str = Depends(get_current_user_id),
    service: TrainingPlanService = Depends(get_plan_service),
) -> WorkoutResponse:
    """Record post-run difficulty and notes."""
    try:
        workout = service.log_workout(
            user_id,
            workout_id,
            difficulty=request.difficulty,
            notes=request.notes,
            status=request.status,
        )
    except (WorkoutNotFoundError, ForbiddenError, InvalidInputError) as e:
        raise _to_http_error(e) from e
    except PersistenceError as e:
        logger.exception("Failed to record workout log", workout_id=workout_id)
        raise _to_http_error(e) from e
    return WorkoutResponse(workout=workout)
