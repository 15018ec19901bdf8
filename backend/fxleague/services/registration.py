"""Registration state machine and credential submission gate.

    (no row) --join--> joined_pending --submit_credentials--> pending_review

Duplicate joins are an expected outcome reported as ``ALREADY_REGISTERED``;
the unique (tournament_id, user_id) constraint is the authority, the pre-check
only saves a round trip. Credential upsert and the registration advance run in
one transaction so the two rows can never disagree.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fxleague.logging_config import get_logger
from fxleague.models.tournament import (
    AdminStatus,
    CredentialStatus,
    RegistrationStatus,
    Tournament,
    TournamentCredential,
    TournamentRegistration,
)
from fxleague.schemas.tournament import CredentialSubmission
from fxleague.services.identity import Identity, require_participant
from fxleague.tournament.status import tournament_status
from fxleague.utils.errors import (
    ErrorCode,
    StateError,
    TournamentNotFoundError,
)
from fxleague.utils.sql import escape_like_pattern

logger = get_logger(__name__)

# "daily-sprint-0217" -> "daily-sprint"
_SLUG_DATE_SUFFIX = re.compile(r"-\d+$")


class JoinOutcome(str, Enum):
    JOINED = "joined"
    ALREADY_REGISTERED = "already_registered"


@dataclass(frozen=True)
class JoinResult:
    """Structured outcome of a join attempt."""

    outcome: JoinOutcome
    registration_id: str
    tournament_id: str
    status: RegistrationStatus

    @property
    def joined(self) -> bool:
        return self.outcome is JoinOutcome.JOINED

    @property
    def message(self) -> str:
        if self.joined:
            return "Successfully joined the tournament."
        return "You are already registered in this tournament."


def base_slug(slug: str) -> str:
    """Strip a trailing numeric date suffix from a tournament link."""
    return _SLUG_DATE_SUFFIX.sub("", slug.strip().lower())


def title_guess(slug: str) -> str:
    """'daily-sprint' -> 'Daily Sprint'."""
    return " ".join(word.capitalize() for word in slug.replace("-", " ").split())


class RegistrationService:
    """Join and credential submission."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = await self.db.get(Tournament, tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        return tournament

    async def resolve_tournament(self, slug: str) -> Tournament:
        """Find a tournament from a (possibly date-suffixed) link slug.

        Exact slug match first, then a case-insensitive title match.
        """
        wanted = base_slug(slug)
        if not wanted:
            raise TournamentNotFoundError(slug)

        result = await self.db.execute(select(Tournament).where(Tournament.slug == wanted))
        tournament = result.scalar_one_or_none()
        if tournament is not None:
            return tournament

        pattern = escape_like_pattern(title_guess(wanted))
        result = await self.db.execute(
            select(Tournament)
            .where(Tournament.title.ilike(f"%{pattern}%", escape="\\"))
            .order_by(Tournament.start_at.desc())
            .limit(1)
        )
        tournament = result.scalar_one_or_none()
        if tournament is None:
            raise TournamentNotFoundError(wanted)
        return tournament

    async def find_registration(
        self,
        tournament_id: str,
        user_id: str,
    ) -> TournamentRegistration | None:
        result = await self.db.execute(
            select(TournamentRegistration).where(
                TournamentRegistration.tournament_id == tournament_id,
                TournamentRegistration.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # Join
    # =========================================================================

    async def join(self, identity: Identity | None, tournament_id: str) -> JoinResult:
        """Register the caller for a tournament.

        Raises:
            AuthorizationError: not signed in or banned
            TournamentNotFoundError: unknown tournament
            StateError: tournament closed by an operator
        """
        identity = require_participant(identity)
        tournament = await self.get_tournament(tournament_id)
        return await self._join(identity, tournament)

    async def join_by_slug(self, identity: Identity | None, slug: str) -> JoinResult:
        identity = require_participant(identity)
        tournament = await self.resolve_tournament(slug)
        return await self._join(identity, tournament)

    async def _join(self, identity: Identity, tournament: Tournament) -> JoinResult:
        # A rollback expires loaded rows; read nothing from them afterwards
        tournament_id = tournament.id
        user_id = identity.user_id

        if tournament.admin_status == AdminStatus.COMPLETED:
            raise StateError(
                "This tournament is closed.",
                code=ErrorCode.TOURNAMENT_CLOSED,
                details={"tournamentId": tournament_id},
            )

        existing = await self.find_registration(tournament_id, user_id)
        if existing is not None:
            return self._already_registered(existing)

        registration = TournamentRegistration(
            id=str(uuid4()),
            tournament_id=tournament_id,
            user_id=user_id,
            status=RegistrationStatus.JOINED,
            details_submitted=False,
        )
        self.db.add(registration)

        try:
            await self.db.commit()
        except IntegrityError:
            # Lost the race against a concurrent join for the same pair
            await self.db.rollback()
            existing = await self.find_registration(tournament_id, user_id)
            if existing is None:
                raise
            return self._already_registered(existing)

        logger.info(
            "registration_joined",
            tournament_id=tournament_id,
            user_id=user_id,
            registration_id=registration.id,
        )
        return JoinResult(
            outcome=JoinOutcome.JOINED,
            registration_id=registration.id,
            tournament_id=tournament_id,
            status=RegistrationStatus.JOINED,
        )

    def _already_registered(self, registration: TournamentRegistration) -> JoinResult:
        logger.info(
            "registration_already_exists",
            tournament_id=registration.tournament_id,
            user_id=registration.user_id,
        )
        return JoinResult(
            outcome=JoinOutcome.ALREADY_REGISTERED,
            registration_id=registration.id,
            tournament_id=registration.tournament_id,
            status=registration.status,
        )

    # =========================================================================
    # Credential submission
    # =========================================================================

    def _upsert_credential_stmt(
        self,
        tournament_id: str,
        user_id: str,
        submission: CredentialSubmission,
    ):
        dialect = self.db.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert

        stmt = insert(TournamentCredential).values(
            id=str(uuid4()),
            tournament_id=tournament_id,
            user_id=user_id,
            platform=submission.platform,
            login=submission.login,
            investor_password=submission.view_only_password,
            server=submission.server,
            status=CredentialStatus.SUBMITTED,
        )
        return stmt.on_conflict_do_update(
            index_elements=["tournament_id", "user_id"],
            set_={
                "platform": stmt.excluded.platform,
                "login": stmt.excluded.login,
                "investor_password": stmt.excluded.investor_password,
                "server": stmt.excluded.server,
                "status": stmt.excluded.status,
                "submitted_at": func.now(),
                "reviewed_by": None,
                "reviewed_at": None,
            },
        )

    async def submit_credentials(
        self,
        identity: Identity | None,
        tournament_id: str,
        submission: CredentialSubmission,
    ) -> TournamentRegistration:
        """Save the demo account and move the registration to pending_review.

        Raises:
            AuthorizationError: not signed in or banned
            TournamentNotFoundError: unknown tournament
            StateError: no registration in joined_pending
        """
        identity = require_participant(identity)
        await self.get_tournament(tournament_id)

        registration = await self.find_registration(tournament_id, identity.user_id)
        if registration is None or registration.status != RegistrationStatus.JOINED:
            raise self._not_joined(tournament_id, registration)

        await self.db.execute(
            self._upsert_credential_stmt(tournament_id, identity.user_id, submission)
        )

        result = await self.db.execute(
            update(TournamentRegistration)
            .where(
                TournamentRegistration.id == registration.id,
                TournamentRegistration.status == RegistrationStatus.JOINED,
            )
            .values(
                status=RegistrationStatus.PENDING_REVIEW,
                details_submitted=True,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # State moved under us; drop the credential write with it
            await self.db.rollback()
            current = await self.find_registration(tournament_id, identity.user_id)
            raise self._not_joined(tournament_id, current)

        await self.db.commit()
        await self.db.refresh(registration)

        logger.info(
            "credentials_submitted",
            tournament_id=tournament_id,
            user_id=identity.user_id,
            platform=submission.platform.value,
        )
        return registration

    def _not_joined(
        self,
        tournament_id: str,
        registration: TournamentRegistration | None,
    ) -> StateError:
        if registration is None:
            return StateError(
                "Join the tournament before submitting account details.",
                code=ErrorCode.NOT_JOINED,
                details={"tournamentId": tournament_id},
            )
        return StateError(
            "Account details were already submitted for this tournament.",
            code=ErrorCode.NOT_JOINED,
            details={"tournamentId": tournament_id, "status": registration.status.value},
        )

    # =========================================================================
    # Participant views
    # =========================================================================

    async def list_my_registrations(
        self,
        identity: Identity | None,
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """The caller's registrations with each tournament's effective status."""
        identity = require_participant(identity)
        now = now or datetime.now(timezone.utc)

        result = await self.db.execute(
            select(TournamentRegistration, Tournament)
            .join(Tournament, Tournament.id == TournamentRegistration.tournament_id)
            .where(TournamentRegistration.user_id == identity.user_id)
            .order_by(Tournament.start_at.desc())
        )

        return [
            {
                "registration_id": reg.id,
                "tournament_id": tournament.id,
                "tournament_title": tournament.title,
                "tournament_slug": tournament.slug,
                "start_at": tournament.start_at,
                "end_at": tournament.end_at,
                "tournament_status": tournament_status(tournament, now),
                "status": reg.status,
                "details_submitted": reg.details_submitted,
                "registered_at": reg.registered_at,
            }
            for reg, tournament in result.all()
        ]
