# -*- coding: utf-8 -*-
"""Location: ./teamhub/auth.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Shared authentication utilities.

Resolves the calling user from a bearer JWT and answers whether a user
has administrative rights. Session management lives elsewhere; the team
service only ever sees the resolved ``User``.
"""

# Standard
from typing import Any, Dict, Optional

# Third-Party
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlalchemy.orm import Session

# First-Party
from teamhub.config import settings
from teamhub.db import ADMIN_ROLE, get_db, User
from teamhub.services.logging_service import LoggingService

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


def is_admin(user: Optional[User]) -> bool:
    """Return True when the user holds the admin role.

    Args:
        user: User to check; None is never an admin.

    Returns:
        bool: Whether the user is an admin.

    Examples:
        >>> is_admin(User(user_account="root", user_role=1))
        True
        >>> is_admin(User(user_account="alice", user_role=0))
        False
        >>> is_admin(None)
        False
    """
    return user is not None and user.user_role == ADMIN_ROLE


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify a bearer token and return its claims.

    Args:
        token: Encoded JWT.

    Returns:
        Dict[str, Any]: Verified claims.

    Raises:
        jwt.PyJWTError: If the signature, audience, issuer or expiry check fails.
    """
    return jwt.decode(
        token,
        settings.jwt_secret_key.get_secret_value(),
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail, headers={"WWW-Authenticate": "Bearer"})


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get the current authenticated user from the bearer token.

    Args:
        credentials: HTTP authorization credentials
        db: Database session

    Returns:
        User: Authenticated user

    Raises:
        HTTPException: 401 if the token is missing or invalid or the user does not exist
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Authentication required")

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise _unauthorized("Token has expired")
    except jwt.PyJWTError as e:
        logger.warning(f"Rejected invalid token: {e}")
        raise _unauthorized("Invalid authentication credentials")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token subject")

    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"Token subject {user_id} does not match any user")
        raise _unauthorized("User not found")
    return user
