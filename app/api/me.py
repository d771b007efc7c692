"""Current-user profile endpoints.

The profile feeds plan generation; these routes only read and patch it.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from app.api.dependencies.auth import get_current_user_id
from app.api.dependencies.services import get_stores
from app.plans.errors import PersistenceError
from app.plans.store import Stores
from app.users.schemas import UserProfileSchema, UserProfileUpdate

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/me", response_model=UserProfileSchema)
def get_me(
    user_id: str = Depends(get_current_user_id),
    stores: Stores = Depends(get_stores),
) -> UserProfileSchema:
    user = stores.users.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.put("/me", response_model=UserProfileSchema)
def update_me(
    request: UserProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    stores: Stores = Depends(get_stores),
) -> UserProfileSchema:
    """Apply a partial profile update. Omitted fields keep their values."""
    try:
        user = stores.users.update_profile(user_id, request)
    except PersistenceError as e:
        logger.exception("Failed to update profile", user_id=user_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message) from e
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    logger.info("Profile updated", user_id=user_id, fields=sorted(request.changes()))
    return user
