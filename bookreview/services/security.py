"""
Security Service

Bearer token handling. Accounts and logins belong to a separate service;
this package only needs to turn a token into a user id.

Tokens are HS256 JWTs (python-jose) whose "sub" claim is the user id as a
string and whose "type" claim is "access".

Usage:
    from bookreview.services.security import create_access_token, get_user_id_from_token

    token = create_access_token(user_id=42)
    get_user_id_from_token(token)  # 42
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from bookreview.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    user_id: int,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token for a user.

    Used by tests and maintenance tooling; production tokens come from the
    account service, signed with the same secret.

    Example:
        >>> token = create_access_token(1)
        >>> token.count(".") == 2  # JWT format: header.payload.signature
        True
    """
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {"sub": str(user_id), "exp": expire, "type": ACCESS_TOKEN_TYPE}
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def verify_token_type(token: str, expected_type: str) -> dict | None:
    """Decode a token and check its "type" claim."""
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != expected_type:
        logger.warning(
            f"Token type mismatch: expected {expected_type}, got {payload.get('type')}"
        )
        return None

    return payload


def get_user_id_from_token(token: str) -> int | None:
    """
    Resolve an access token to the user id in its "sub" claim.

    Returns:
        The user id, or None for an invalid, expired or malformed token
    """
    payload = verify_token_type(token, ACCESS_TOKEN_TYPE)
    if payload is None:
        return None

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.warning("Token subject is not a user id")
        return None
