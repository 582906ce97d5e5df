"""
FastAPI dependencies for authentication and authorization.

WHAT: ``get_current_user`` turns a bearer token into a loaded User;
``require_roles`` is the coarse role gate.

WHY: Routes declare what they need through Depends() and never parse
headers themselves. The role gate runs before a route loads any resource,
so a member asking to create a project gets a 403 without a query.

HOW: HTTPBearer extracts the token, verify_token checks it, UserDAO loads
the user it names.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core.auth import verify_token
from bugtracker.core.exceptions import (
    AuthenticationError,
    InsufficientPermissionsError,
    TokenExpiredError,
    TokenInvalidError,
)
from bugtracker.core.ids import to_uuid
from bugtracker.core.permissions import has_role
from bugtracker.db.session import get_db
from bugtracker.models.user import User, UserRole
from bugtracker.dao.user import UserDAO


# auto_error=False so a missing header reaches our own 401 message
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user from JWT token.

    WHY: A valid token for a deleted user must not authenticate, so the
    user is always reloaded rather than trusted from the claims.

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": user.id}

    Args:
        credentials: Bearer token from Authorization header
        db: Database session

    Returns:
        Authenticated User instance

    Raises:
        AuthenticationError: If the token is missing, invalid or expired, or
            the user it names no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="No token provided")

    try:
        payload = verify_token(credentials.credentials)
    except (TokenExpiredError, TokenInvalidError):
        raise AuthenticationError(message="Token invalid or expired")

    user_id = to_uuid(payload.get("user_id"))
    if user_id is None:
        raise AuthenticationError(message="Token invalid or expired")

    user_dao = UserDAO(User, db)
    user = await user_dao.get_by_id(user_id)

    if not user:
        raise AuthenticationError(
            message="User no longer exists",
            user_id=str(user_id),
        )

    return user


def require_roles(*roles: UserRole):
    """
    Factory function to create a role requirement dependency.

    WHAT: Returns a dependency that raises InsufficientPermissionsError
    unless the requester has one of ``roles``.

    Usage:
        @router.post("/projects")
        async def create(user: User = Depends(require_roles(UserRole.ADMIN))):
            ...

    Args:
        *roles: Roles allowed through

    Returns:
        Dependency function that checks the requester's role
    """

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_role(current_user, *roles):
            raise InsufficientPermissionsError(
                user_role=current_user.role.value,
                required_roles=[role.value for role in roles],
            )
        return current_user

    return role_checker


require_admin = require_roles(UserRole.ADMIN)
require_member = require_roles(UserRole.ADMIN, UserRole.MEMBER)
