"""Identity gate.

Turns a verified token subject into an explicit ``Identity`` passed to every
service call. Services never read ambient "current user" state.
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fxleague.models.user import Admin, Profile
from fxleague.utils.errors import AuthorizationError, ErrorCode


@dataclass(frozen=True)
class Identity:
    """The calling user as seen by the core."""

    user_id: str
    is_banned: bool = False
    email_verified: bool = False
    is_admin: bool = False


def require_participant(identity: Identity | None) -> Identity:
    """Signed in and not banned."""
    if identity is None:
        raise AuthorizationError(
            "You must sign in before joining.",
            code=ErrorCode.AUTH_REQUIRED,
            authenticated=False,
        )
    if identity.is_banned:
        raise AuthorizationError(
            "This account is banned from tournaments.",
            code=ErrorCode.ACCOUNT_BANNED,
        )
    return identity


def require_operator(identity: Identity | None) -> Identity:
    """Signed in operator."""
    if identity is None:
        raise AuthorizationError(
            "Authentication required",
            code=ErrorCode.AUTH_REQUIRED,
            authenticated=False,
        )
    if not identity.is_admin:
        raise AuthorizationError("Operator access required", code=ErrorCode.ADMIN_REQUIRED)
    return identity


class IdentityService:
    """Loads identities from profiles and admin membership."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load(self, user_id: str) -> Identity | None:
        """Build the Identity for a token subject, or None if no profile exists."""
        profile = await self.db.get(Profile, user_id)
        if profile is None:
            return None

        result = await self.db.execute(
            select(Admin.user_id).where(Admin.user_id == user_id)
        )
        is_admin = result.scalar_one_or_none() is not None

        return Identity(
            user_id=profile.id,
            is_banned=profile.is_banned,
            email_verified=profile.email_verified,
            is_admin=is_admin,
        )
