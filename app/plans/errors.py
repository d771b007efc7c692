"""Error types for the plan generation pipeline.

Domain code raises these; the API layer maps them to HTTP responses.
"""


class PlanPipelineError(Exception):
    """Base class for plan pipeline failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidInputError(PlanPipelineError):
    """Raised when required user or goal fields are missing.

    Always raised before anything is persisted.
    """


class ProviderError(PlanPipelineError):
    """Raised when the generation provider call fails or returns unusable content."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class MalformedPlanError(PlanPipelineError):
    """Raised when generated content cannot be parsed into a plan."""


class PersistenceError(PlanPipelineError):
    """Raised when a store is unavailable or rejects a write."""


class UserNotFoundError(PlanPipelineError):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class WorkoutNotFoundError(PlanPipelineError):
    def __init__(self, workout_id: str):
        self.workout_id = workout_id
        super().__init__(f"Workout {workout_id} not found")


class ForbiddenError(PlanPipelineError):
    """Raised when a user acts on a workout belonging to another user's plan."""


class PlanTransitionError(PlanPipelineError):
    """Raised when a plan is moved out of a terminal status."""

    def __init__(self, plan_id: str, current: str, target: str):
        self.plan_id = plan_id
        self.current = current
        self.target = target
        super().__init__(f"Plan {plan_id} cannot move from {current} to {target}")
