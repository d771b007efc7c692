"""FastAPI authentication dependency for JWT-based auth.

Provides get_current_user_id, which verifies the bearer token from the
Authorization header and checks that the user still has a profile.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from app.api.dependencies.services import get_settings, get_stores
from app.config.settings import Settings
from app.core.auth_jwt import decode_access_token
from app.plans.store import Stores

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
    stores: Stores = Depends(get_stores),
) -> str:
    """FastAPI dependency to get current authenticated user ID from JWT token.

    Returns:
        User ID (string) from token

    Raises:
        HTTPException: 401 if token is missing, invalid, expired, or the user is unknown
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        logger.warning(f"Auth failed: Missing bearer token. Path: {request.url.path}, Method: {request.method}")
        raise _unauthorized()

    try:
        user_id = decode_access_token(credentials.credentials, settings.auth_secret_key, settings.auth_algorithm)
    except ValueError as e:
        logger.warning(f"Auth failed: {e}, Path: {request.url.path}, Method: {request.method}")
        raise _unauthorized() from e

    if stores.users.get_user(user_id) is None:
        logger.warning(f"Auth failed: User not found user_id={user_id}, Path: {request.url.path}")
        raise _unauthorized("User not found")

    return user_id
