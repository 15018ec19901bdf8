"""User moderation."""

from sqlalchemy.ext.asyncio import AsyncSession

from fxleague.logging_config import get_logger
from fxleague.models.user import Profile
from fxleague.services.identity import Identity, require_operator
from fxleague.utils.errors import ErrorCode, NotFoundError

logger = get_logger(__name__)


class ModerationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def set_ban(
        self,
        identity: Identity | None,
        user_id: str,
        is_banned: bool,
    ) -> Profile:
        """Ban or unban a participant.

        A banned identity is refused by join and credential submission.
        """
        operator = require_operator(identity)

        profile = await self.db.get(Profile, user_id)
        if profile is None:
            raise NotFoundError(
                code=ErrorCode.PROFILE_NOT_FOUND,
                message=f"Profile not found: {user_id}",
                details={"userId": user_id},
            )

        profile.is_banned = is_banned
        await self.db.commit()

        logger.info(
            "user_ban_updated",
            user_id=user_id,
            is_banned=is_banned,
            operator_id=operator.user_id,
        )
        return profile
