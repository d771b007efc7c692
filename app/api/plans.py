"""Training plan API endpoints.

POST /plans generates a new plan for the authenticated user;
GET /plans/latest returns the most recent completed plan.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from loguru import logger

from app.api.dependencies.auth import get_current_user_id
from app.api.dependencies.services import get_plan_service
from app.api.schemas.plans import CreatePlanRequest, CreatePlanResponse, LatestPlanResponse
from app.plans.errors import (
    InvalidInputError,
    MalformedPlanError,
    PersistenceError,
    PlanTransitionError,
    ProviderError,
    UserNotFoundError,
)
from app.plans.service import TrainingPlanService

router = APIRouter(prefix="/plans", tags=["plans"])


@router.post("", response_model=CreatePlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(
    request: CreatePlanRequest,
    user_id: str = Depends(get_current_user_id),
    service: TrainingPlanService = Depends(get_plan_service),
) -> CreatePlanResponse:
    """Generate, validate and persist a training plan.

    Raises:
        HTTPException: 400 missing goal fields, 404 unknown user,
            502 provider failure, 500 malformed plan or storage failure
    """
    try:
        result = service.create_plan(user_id, request.to_goal())
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from e
    except ProviderError as e:
        logger.exception("Plan generation failed", user_id=user_id)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message) from e
    except (MalformedPlanError, PersistenceError, PlanTransitionError) as e:
        logger.exception("Plan generation failed", user_id=user_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message) from e

    return CreatePlanResponse(plan=result.plan, workouts=result.workouts, raw_response=result.raw_response)


@router.get("/latest", response_model=LatestPlanResponse)
def get_latest_plan(
    user_id: str = Depends(get_current_user_id),
    service: TrainingPlanService = Depends(get_plan_service),
) -> LatestPlanResponse | JSONResponse:
    """Latest completed plan and its workouts; 404 with an empty body when none exists."""
    try:
        latest = service.get_latest_plan(user_id)
    except PersistenceError as e:
        logger.exception("Failed to load latest plan", user_id=user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load latest plan.",
        ) from e

    if latest is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"plan": None, "workouts": []})

    return LatestPlanResponse(plan=latest.plan, workouts=latest.workouts)
