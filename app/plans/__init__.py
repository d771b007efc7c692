"""Training plan generation pipeline.

Turns a race goal into a persisted multi-week plan:
prompt composition -> draft -> generation -> parsing -> completion -> workout replacement.
"""

from app.plans.errors import (
    ForbiddenError,
    InvalidInputError,
    MalformedPlanError,
    PersistenceError,
    PlanPipelineError,
    PlanTransitionError,
    ProviderError,
    UserNotFoundError,
    WorkoutNotFoundError,
)
from app.plans.schemas import (
    Goal,
    PlanStatus,
    TrainingPlanSchema,
    WorkoutSchema,
    WorkoutStatus,
)

__all__ = [
    "ForbiddenError",
    "Goal",
    "InvalidInputError",
    "MalformedPlanError",
    "PersistenceError",
    "PlanPipelineError",
    "PlanStatus",
    "PlanTransitionError",
    "ProviderError",
    "TrainingPlanSchema",
    "UserNotFoundError",
    "WorkoutNotFoundError",
    "WorkoutSchema",
    "WorkoutStatus",
]
