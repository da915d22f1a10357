"""
Authentication and Authorization

FastAPI dependencies that validate the bearer JWT and expose the caller as
a CurrentUser, plus the capability predicates every route uses instead of
checking roles inline.

Capabilities:
- can_access_admin_area: admins and partners reach the admin console
- can_administer_platform: full admins only (partners excluded)
- can_bypass_stage_lock: admins and partners may submit evidence to any stage
- can_review_evidence: admins and partners approve / reject evidence and audits
- can_manage_content: admins and partners curate case studies
- can_download_exports: full admins only (CSV exports)
- can_assign_roles: full admins only

SECURITY NOTE:
- Development test tokens are ONLY accepted when PYTHON_ENV=development
"""

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from plastic_clever.core.config import settings
from plastic_clever.core.security import decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)

ROLE_ADMIN = "admin"
ROLE_PARTNER = "partner"
ROLE_TEACHER = "teacher"


@dataclass
class CurrentUser:
    """
    The authenticated caller, populated from JWT claims.

    Attributes:
        id: User ID (UUID string)
        email: User's email address
        role: Platform role (admin, partner, teacher)
        name: Display name (optional)
    """

    id: str
    email: str
    role: str
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_partner(self) -> bool:
        return self.role == ROLE_PARTNER

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role})"


# ============================================
# Capability predicates
# ============================================


def can_access_admin_area(user: CurrentUser | None) -> bool:
    return user is not None and (user.is_admin or user.is_partner)


def can_administer_platform(user: CurrentUser | None) -> bool:
    return user is not None and user.is_admin


def can_bypass_stage_lock(user: CurrentUser | None) -> bool:
    return user is not None and (user.is_admin or user.is_partner)


def can_review_evidence(user: CurrentUser | None) -> bool:
    return user is not None and (user.is_admin or user.is_partner)


def can_manage_content(user: CurrentUser | None) -> bool:
    return user is not None and (user.is_admin or user.is_partner)


def can_download_exports(user: CurrentUser | None) -> bool:
    return user is not None and user.is_admin


def can_assign_roles(user: CurrentUser | None) -> bool:
    return user is not None and user.is_admin


# ============================================
# Token validation
# ============================================


def _is_dev_mode_safe() -> bool:
    """Development tokens require PYTHON_ENV=development in both settings and the raw env."""
    env_var = os.getenv("PYTHON_ENV", "").lower()
    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )
    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )
    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_USERS = {
    "dev-token": CurrentUser(
        id="00000000-0000-0000-0000-000000000001",
        email="admin@plasticclever.dev",
        role=ROLE_ADMIN,
        name="Development Admin",
    ),
    "dev-teacher-token": CurrentUser(
        id="00000000-0000-0000-0000-000000000002",
        email="teacher@plasticclever.dev",
        role=ROLE_TEACHER,
        name="Development Teacher",
    ),
}


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def validate_access_token(token: str) -> CurrentUser:
    """
    Validate an access token and build the CurrentUser from its claims.

    Raises:
        HTTPException 401: If the token is invalid, expired, not an access
            token, or missing the ``sub`` claim
    """
    if _DEVELOPMENT_MODE and token in _DEV_USERS:
        logger.debug("Development mode: using test token")
        return _DEV_USERS[token]

    payload = decode_token(token)
    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims.")

    return CurrentUser(
        id=str(user_id),
        email=payload.get("email", ""),
        role=payload.get("role", ROLE_TEACHER),
        name=payload.get("name"),
    )


# ============================================
# Dependencies
# ============================================


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    """
    Require an authenticated caller.

    Raises:
        HTTPException 401: If no bearer token is supplied or it is invalid
    """
    if credentials is None:
        raise _unauthorized("NOT_AUTHENTICATED", "Authentication required.")
    return validate_access_token(credentials.credentials)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser | None:
    """Return the caller if a valid token is supplied, otherwise None."""
    if credentials is None:
        return None
    try:
        return validate_access_token(credentials.credentials)
    except HTTPException:
        return None


def require_capability(
    capability: Callable[[CurrentUser | None], bool],
    error_code: str,
    message: str,
) -> Callable[..., Awaitable[CurrentUser]]:
    """
    Build a dependency that admits callers for whom ``capability`` holds.

    Raises:
        HTTPException 403: With ``{"error": error_code, "message": message}``
    """

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not capability(user):
            logger.warning(f"{error_code} for {user.id} (role '{user.role}')")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": error_code, "message": message},
            )
        return user

    return dependency


# Full admins only (partners are rejected)
require_admin = require_capability(
    can_administer_platform,
    "ADMIN_ACCESS_REQUIRED",
    "Admin access required",
)

require_admin_or_partner = require_capability(
    can_access_admin_area,
    "ADMIN_OR_PARTNER_REQUIRED",
    "Admin or partner access required",
)

require_export_access = require_capability(
    can_download_exports,
    "EXPORT_ACCESS_REQUIRED",
    "Full admin access required. Partners cannot download data.",
)


__all__ = [
    "CurrentUser",
    "can_access_admin_area",
    "can_administer_platform",
    "can_assign_roles",
    "can_bypass_stage_lock",
    "can_download_exports",
    "can_manage_content",
    "can_review_evidence",
    "get_current_user",
    "get_optional_user",
    "require_admin",
    "require_admin_or_partner",
    "require_capability",
    "require_export_access",
    "validate_access_token",
]
