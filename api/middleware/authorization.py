"""
Admin authorization dependencies.

Bearer-token authentication plus role checks for the admin endpoints.
Tokens are issued by the site's login service and carry the user's roles:

    {"sub": "jdoe", "roles": ["Admin"], "exp": ..., "iat": ...}

Usage:
    @router.delete("/productions/{production_id}")
    async def delete_production(
        production_id: int,
        current_user: Annotated[dict, Depends(require_role("Admin"))],
    ):
        ...

The role check runs as a dependency, before the handler body, so a
handler never has to test roles itself.
"""

import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Annotated, Any
from uuid import uuid4

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from shared.config import get_settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 8

security = HTTPBearer(auto_error=False)


def get_jwt_secret() -> str:
    """
    Get JWT secret from settings.

    Raises:
        RuntimeError: If ADMIN_JWT_SECRET is not set in environment
    """
    secret = get_settings().ADMIN_JWT_SECRET
    if not secret:
        raise RuntimeError(
            "ADMIN_JWT_SECRET must be set in environment variables. "
            "Generate a secure secret with: openssl rand -hex 32"
        )
    return secret


def create_access_token(username: str, roles: Iterable[str] = ()) -> str:
    """Create a signed access token for a user and their roles."""
    now = int(time.time())
    payload = {
        "sub": username,
        "roles": list(roles),
        "exp": now + JWT_EXPIRATION_HOURS * 3600,
        "iat": now,
        "jti": str(uuid4()),
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict[str, Any]:
    """Verify a token's signature and expiry and return its payload."""
    try:
        payload = jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
) -> dict[str, Any]:
    """Dependency returning the verified token payload of the caller."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return verify_token(credentials.credentials)


def token_roles(payload: dict[str, Any]) -> frozenset[str]:
    """
    Role names granted by a token payload.

    A bare string claim is a single role name. Any other non-list value
    grants nothing.
    """
    claim = payload.get("roles")
    if isinstance(claim, str):
        claim = [claim]
    if not isinstance(claim, (list, tuple)):
        return frozenset()
    return frozenset(item for item in claim if isinstance(item, str))


def require_role(role: str) -> Callable[..., Awaitable[dict[str, Any]]]:
    """
    Create a dependency that requires the caller to hold a role.

    Args:
        role: Role name required (e.g. "Admin")

    Returns:
        Dependency that yields the current user, or raises 403 when the
        user's roles exclude ``role``.
    """

    async def role_checker(
        request: Request,
        current_user: Annotated[dict[str, Any], Depends(get_current_user)],
    ) -> dict[str, Any]:
        if role not in token_roles(current_user):
            logger.warning(
                f"Denied {request.method} {request.url.path}: role '{role}' required",
                extra={"request_path": request.url.path, "user": current_user.get("sub")},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{role}' required",
            )
        return current_user

    return role_checker


def require_admin() -> Callable[..., Awaitable[dict[str, Any]]]:
    """require_role() for the configured admin role."""
    return require_role(get_settings().ADMIN_ROLE)
