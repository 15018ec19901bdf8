"""Admin decision processor and review queue.

Decisions are a compare-and-swap on ``status = pending_review``. A lost race
or a registration that is not under review matches zero rows and is reported
as ``NOT_PENDING``; it is never retried and never raises.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fxleague.logging_config import get_logger
from fxleague.models.tournament import (
    Decision,
    RegistrationStatus,
    Tournament,
    TournamentCredential,
    TournamentRegistration,
)
from fxleague.models.user import Profile
from fxleague.services.identity import Identity, require_operator
from fxleague.utils.errors import RegistrationNotFoundError
from fxleague.utils.sql import escape_like_pattern

logger = get_logger(__name__)


class DecisionOutcome(str, Enum):
    APPLIED = "applied"
    NOT_PENDING = "not_pending"


@dataclass(frozen=True)
class DecisionResult:
    """Structured outcome of a decide() call."""

    outcome: DecisionOutcome
    registration_id: str
    decision: Decision
    status: RegistrationStatus | None

    @property
    def applied(self) -> bool:
        return self.outcome is DecisionOutcome.APPLIED

    @property
    def message(self) -> str:
        if self.applied:
            return f"Registration {self.status.value}."
        return "Registration is no longer pending review; the decision was not applied."


class DecisionService:
    """Operator review of submitted registrations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def decide(
        self,
        identity: Identity | None,
        registration_id: str,
        decision: Decision,
        now: datetime | None = None,
    ) -> DecisionResult:
        """Approve or reject a registration under review.

        Raises:
            AuthorizationError: caller is not an operator
            RegistrationNotFoundError: unknown registration id
        """
        operator = require_operator(identity)
        decision = Decision(decision)
        now = now or datetime.now(timezone.utc)
        target = decision.registration_status

        result = await self.db.execute(
            update(TournamentRegistration)
            .where(
                TournamentRegistration.id == registration_id,
                TournamentRegistration.status == RegistrationStatus.PENDING_REVIEW,
            )
            .values(
                status=target,
                decided_by=operator.user_id,
                decided_at=now,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            await self.db.rollback()
            current = await self.db.get(
                TournamentRegistration, registration_id, populate_existing=True
            )
            if current is None:
                raise RegistrationNotFoundError(registration_id)

            logger.warning(
                "decision_not_applied",
                registration_id=registration_id,
                decision=decision.value,
                current_status=current.status.value,
                operator_id=operator.user_id,
            )
            return DecisionResult(
                outcome=DecisionOutcome.NOT_PENDING,
                registration_id=registration_id,
                decision=decision,
                status=current.status,
            )

        registration = await self.db.get(
            TournamentRegistration, registration_id, populate_existing=True
        )
        await self.db.execute(
            update(TournamentCredential)
            .where(
                TournamentCredential.tournament_id == registration.tournament_id,
                TournamentCredential.user_id == registration.user_id,
            )
            .values(
                status=decision.credential_status,
                reviewed_by=operator.user_id,
                reviewed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        logger.info(
            "decision_applied",
            registration_id=registration_id,
            tournament_id=registration.tournament_id,
            user_id=registration.user_id,
            status=target.value,
            operator_id=operator.user_id,
        )
        return DecisionResult(
            outcome=DecisionOutcome.APPLIED,
            registration_id=registration_id,
            decision=decision,
            status=target,
        )

    # =========================================================================
    # Review queue
    # =========================================================================

    async def list_registrations(
        self,
        identity: Identity | None,
        tournament_id: str | None = None,
        status: RegistrationStatus | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[dict[str, Any]], int]:
        """Registrations with profile and tournament info, newest first.

        Returns:
            (rows, total) where each row reports whether it can be decided
        """
        require_operator(identity)

        conditions = []
        if tournament_id:
            conditions.append(TournamentRegistration.tournament_id == tournament_id)
        if status is not None:
            conditions.append(TournamentRegistration.status == status)
        if search:
            pattern = f"%{escape_like_pattern(search.strip())}%"
            conditions.append(
                or_(
                    Profile.email.ilike(pattern, escape="\\"),
                    Profile.full_name.ilike(pattern, escape="\\"),
                )
            )

        base = (
            select(TournamentRegistration, Tournament.title, Profile.full_name, Profile.email)
            .join(Tournament, Tournament.id == TournamentRegistration.tournament_id)
            .join(Profile, Profile.id == TournamentRegistration.user_id)
            .where(*conditions)
        )

        count_result = await self.db.execute(
            select(func.count()).select_from(base.subquery())
        )
        total = count_result.scalar_one()

        result = await self.db.execute(
            base.order_by(TournamentRegistration.registered_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )

        rows = [
            {
                "registration_id": reg.id,
                "tournament_id": reg.tournament_id,
                "tournament_title": title,
                "user_id": reg.user_id,
                "full_name": full_name,
                "email": email,
                "status": reg.status,
                "details_submitted": reg.details_submitted,
                "registered_at": reg.registered_at,
                "can_decide": (
                    reg.status == RegistrationStatus.PENDING_REVIEW and reg.details_submitted
                ),
            }
            for reg, title, full_name, email in result.all()
        ]
        return rows, total

    async def list_credentials(
        self,
        identity: Identity | None,
        tournament_id: str | None = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        """Submitted demo accounts with the owner's registration status."""
        require_operator(identity)

        query = (
            select(
                TournamentCredential,
                Tournament.title,
                Profile.email,
                TournamentRegistration.status,
            )
            .join(Tournament, Tournament.id == TournamentCredential.tournament_id)
            .outerjoin(Profile, Profile.id == TournamentCredential.user_id)
            .outerjoin(
                TournamentRegistration,
                (TournamentRegistration.tournament_id == TournamentCredential.tournament_id)
                & (TournamentRegistration.user_id == TournamentCredential.user_id),
            )
            .order_by(TournamentCredential.submitted_at.desc())
            .limit(limit)
        )
        if tournament_id:
            query = query.where(TournamentCredential.tournament_id == tournament_id)

        result = await self.db.execute(query)
        return [
            {
                "id": cred.id,
                "tournament_id": cred.tournament_id,
                "tournament_title": title,
                "user_id": cred.user_id,
                "email": email,
                "platform": cred.platform,
                "login": cred.login,
                "investor_password": cred.investor_password,
                "server": cred.server,
                "status": cred.status,
                "submitted_at": cred.submitted_at,
                "registration_status": reg_status,
            }
            for cred, title, email, reg_status in result.all()
        ]
