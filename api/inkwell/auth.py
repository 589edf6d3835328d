from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import models
from .deps import get_db
from .errors import AccountSuspended, AuthenticationError, AuthorizationError
from .models import ROLE_RANK, Role
from .settings import JWT_ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM

logger = logging.getLogger(__name__)

# Security scheme for Bearer token
oauth2_scheme = HTTPBearer(auto_error=False)

# JWT Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY:
    raise RuntimeError(
        "JWT_SECRET_KEY environment variable is required but not set. "
        "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )
# 256 bits minimum
if len(JWT_SECRET_KEY) < 32:
    raise RuntimeError(
        "JWT_SECRET_KEY is too short. Must be at least 32 characters long. "
        "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )

PRIVILEGED_ROLES = frozenset({Role.EDITOR.value, Role.ADMIN.value})


def check_user_can_authenticate(user: models.User) -> None:
    """
    Check if a user is allowed to authenticate.

    Called on login and on every bearer-token resolution, before any role check.
    """
    if user.is_suspended:
        raise AccountSuspended("Account suspended")


def create_access_token(user: models.User, expires_in_seconds: int | None = None) -> str:
    """
    Create a JWT access token for a user.

    The role claim is informational; the database role is authoritative.
    """
    if expires_in_seconds is None:
        expires_in_seconds = JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60

    now = datetime.now(timezone.utc)
    payload = {
        "user_id": str(user.uuid),
        "role": user.role,
        "exp": now + timedelta(seconds=expires_in_seconds),
        "iat": now,
        "type": "access",
    }

    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def _resolve_token(token: str, db: Session) -> models.User:
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    user_id_str = payload.get("user_id")
    if not user_id_str:
        raise AuthenticationError("Invalid token: missing user_id")

    try:
        user_key = uuid.UUID(user_id_str)
    except ValueError:
        raise AuthenticationError("Invalid user ID in token")

    user = db.query(models.User).filter(models.User.uuid == user_key).first()
    if not user:
        raise AuthenticationError("User not found")

    check_user_can_authenticate(user)
    return user


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    """
    Get current authenticated user from Bearer token.
    """
    if not credentials:
        raise AuthenticationError("Authentication required")

    user = _resolve_token(credentials.credentials, db)
    # Picked up by the activity log middleware
    request.state.user_id = user.id
    return user


def get_current_user_optional(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> models.User | None:
    """
    Get current user if authenticated, None otherwise.

    Used for endpoints that work differently for authenticated vs anonymous users.
    """
    if credentials is None:
        return None

    try:
        return get_current_user(request, credentials, db)
    except AuthenticationError:
        return None


def has_role(user: models.User, minimum: Role | str) -> bool:
    """True when the user's role ranks at or above ``minimum``."""
    required = minimum.value if isinstance(minimum, Role) else minimum
    return ROLE_RANK.get(user.role, -1) >= ROLE_RANK[required]


def is_privileged(user: models.User | None) -> bool:
    """Editors and admins moderate content."""
    return user is not None and user.role in PRIVILEGED_ROLES


def is_admin(user: models.User | None) -> bool:
    return user is not None and user.role == Role.ADMIN.value


def require_role(minimum: Role) -> Callable[..., models.User]:
    """
    Build a dependency that requires at least ``minimum`` role.

    Authentication (including the suspension check) runs first.
    """

    def dependency(user: models.User = Depends(get_current_user)) -> models.User:
        if not has_role(user, minimum):
            raise AuthorizationError(f"{minimum.value.capitalize()} role or higher required")
        return user

    return dependency


require_subscriber = require_role(Role.SUBSCRIBER)
require_editor = require_role(Role.EDITOR)
require_admin = require_role(Role.ADMIN)


def check_ownership(resource_owner_id: int | None, current_user: models.User) -> bool:
    """
    Check if the current user owns a resource.

    Returns True if:
    - User owns the resource, OR
    - User is an editor/admin
    """
    if resource_owner_id is not None and resource_owner_id == current_user.id:
        return True

    return is_privileged(current_user)


def require_ownership(resource_owner_id: int | None, current_user: models.User) -> None:
    """
    Require that the current user owns a resource or is an editor/admin.
    """
    if not check_ownership(resource_owner_id, current_user):
        raise AuthorizationError("You don't have permission to access this resource")


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request, handling proxies.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs; take the first one
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
