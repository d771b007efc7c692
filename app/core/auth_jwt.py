"""JWT token creation and verification utilities.

The identity exchange happens elsewhere; this backend only verifies the
bearer credential it was handed. Tokens carry the user id in the 'sub' claim.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from loguru import logger

TOKEN_ISSUER = "pb-assistant-backend"


def create_access_token(
    user_id: str,
    secret_key: str,
    algorithm: str = "HS256",
    expire_days: int = 30,
    now: datetime | None = None,
) -> str:
    """Create a JWT access token for a user.

    Args:
        user_id: User ID to encode in token
        secret_key: Signing secret
        algorithm: Signing algorithm
        expire_days: Token lifetime in days
        now: Issue instant (defaults to current UTC time)

    Returns:
        JWT token string
    """
    user_id_str = str(user_id) if user_id is not None else ""
    if not user_id_str:
        raise ValueError("user_id cannot be None or empty")
    if not secret_key:
        raise ValueError("secret_key cannot be empty")

    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": user_id_str,
        "exp": issued_at + timedelta(days=expire_days),
        "iat": issued_at,
        "iss": TOKEN_ISSUER,
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_access_token(token: str, secret_key: str, algorithm: str = "HS256") -> str:
    """Decode and verify a JWT access token.

    Args:
        token: JWT token string
        secret_key: Signing secret
        algorithm: Expected signing algorithm

    Returns:
        User ID (string) from token 'sub' claim

    Raises:
        ValueError: If token is invalid or expired, or no secret is configured
    """
    if not secret_key:
        raise ValueError("AUTH_SECRET_KEY is not configured")
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError as e:
        logger.warning(f"JWT decode failed: {e}")
        raise ValueError("Invalid or expired token") from e

    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Token missing user ID")
    return str(user_id)
