"""API dependencies for the identity gate and common utilities."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fxleague.logging_config import bind_context
from fxleague.services.identity import Identity, IdentityService, require_operator
from fxleague.utils.db import get_db
from fxleague.utils.security import TokenError, verify_access_token

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": {
                "code": code,
                "message": message,
                "details": {},
            }
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_identity_optional(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Identity | None:
    """Identity from the bearer token if one is provided.

    A missing token yields None so the service layer can decide whether the
    operation needs a signed-in caller. A token that is present but invalid
    is rejected.
    """
    if not credentials:
        return None

    try:
        payload = verify_access_token(credentials.credentials)
    except TokenError as e:
        raise _unauthorized(e.code, e.message)

    if not payload:
        raise _unauthorized("AUTH_INVALID_TOKEN", "Invalid or expired token")

    identity = await IdentityService(db).load(payload["sub"])
    if identity is None:
        raise _unauthorized("AUTH_USER_NOT_FOUND", "User not found")

    bind_context(user_id=identity.user_id)
    return identity


async def get_identity(
    identity: Annotated[Identity | None, Depends(get_identity_optional)],
) -> Identity:
    """Signed-in identity (required)."""
    if identity is None:
        raise _unauthorized("AUTH_REQUIRED", "Authentication required")
    return identity


async def get_operator(
    identity: Annotated[Identity | None, Depends(get_identity_optional)],
) -> Identity:
    """Signed-in operator; 401/403 rendered through the LeagueError handler."""
    return require_operator(identity)


# Type aliases for cleaner annotations
OptionalIdentity = Annotated[Identity | None, Depends(get_identity_optional)]
CurrentIdentity = Annotated[Identity, Depends(get_identity)]
CurrentOperator = Annotated[Identity, Depends(get_operator)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
