"""Tournament reads and operator administration.

Every read model carries the computed effective status, the participant count
(always COUNT(*) over registrations) and the prize schedule.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fxleague.config import get_settings
from fxleague.logging_config import get_logger
from fxleague.models.tournament import (
    Tournament,
    TournamentCredential,
    TournamentRegistration,
    TournamentResult,
)
from fxleague.schemas.tournament import TournamentCreate, TournamentUpdate
from fxleague.services.identity import Identity, require_operator
from fxleague.tournament.prizes import (
    PrizeSchedule,
    check_winners_count,
    normalize_breakdown,
    schedule_for,
    validate_breakdown,
)
from fxleague.tournament.status import EffectiveStatus, as_utc, tournament_status
from fxleague.utils.errors import (
    ConflictError,
    ErrorCode,
    TournamentNotFoundError,
    ValidationError,
)

logger = get_logger(__name__)


def slugify(value: str) -> str:
    """'Daily Sprint #3!' -> 'daily-sprint-3'."""
    slug = value.strip().lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


@dataclass(frozen=True)
class TournamentView:
    """A tournament as readers see it."""

    tournament: Tournament
    status: EffectiveStatus
    participants: int
    schedule: PrizeSchedule

    def to_dict(self) -> dict[str, Any]:
        t = self.tournament
        return {
            "id": t.id,
            "slug": t.slug,
            "title": t.title,
            "description": t.description,
            "start_at": t.start_at,
            "end_at": t.end_at,
            "prize_pool": t.prize_pool,
            "winners_count": t.winners_count,
            "prize_breakdown": t.prize_breakdown,
            "admin_status": t.admin_status,
            "status": self.status,
            "type": t.type,
            "entry": t.entry,
            "sponsor_name": t.sponsor_name,
            "sponsor_logo_key": t.sponsor_logo_key,
            "participants": self.participants,
            "prize_schedule": self.schedule.to_dict(),
        }


class TournamentService:
    """Tournament catalogue and operator CRUD."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    # =========================================================================
    # Reads
    # =========================================================================

    async def participant_counts(self, tournament_ids: list[str]) -> dict[str, int]:
        if not tournament_ids:
            return {}
        result = await self.db.execute(
            select(TournamentRegistration.tournament_id, func.count())
            .where(TournamentRegistration.tournament_id.in_(tournament_ids))
            .group_by(TournamentRegistration.tournament_id)
        )
        return {tid: count for tid, count in result.all()}

    def _view(
        self,
        tournament: Tournament,
        participants: int,
        now: datetime | None = None,
    ) -> TournamentView:
        return TournamentView(
            tournament=tournament,
            status=tournament_status(tournament, now),
            participants=participants,
            schedule=schedule_for(tournament, self.settings.max_winners_count),
        )

    async def get(self, tournament_id: str) -> Tournament:
        tournament = await self.db.get(Tournament, tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        return tournament

    async def get_by_slug(self, slug: str) -> Tournament:
        result = await self.db.execute(
            select(Tournament).where(Tournament.slug == slug.strip().lower())
        )
        tournament = result.scalar_one_or_none()
        if tournament is None:
            raise TournamentNotFoundError(slug)
        return tournament

    async def get_view(self, ref: str, now: datetime | None = None) -> TournamentView:
        """Detail view by slug, falling back to id."""
        try:
            tournament = await self.get_by_slug(ref)
        except TournamentNotFoundError:
            tournament = await self.get(ref)
        counts = await self.participant_counts([tournament.id])
        return self._view(tournament, counts.get(tournament.id, 0), now)

    async def list_tournaments(
        self,
        status: EffectiveStatus | None = None,
        now: datetime | None = None,
    ) -> list[TournamentView]:
        """All tournaments ordered by start, optionally filtered by effective status."""
        now = now or datetime.now(timezone.utc)
        result = await self.db.execute(select(Tournament).order_by(Tournament.start_at.asc()))
        tournaments = list(result.scalars().all())
        counts = await self.participant_counts([t.id for t in tournaments])

        views = [self._view(t, counts.get(t.id, 0), now) for t in tournaments]
        if status is not None:
            views = [v for v in views if v.status == status]
        return views

    async def prize_schedule(self, tournament_id: str) -> PrizeSchedule:
        tournament = await self.get(tournament_id)
        return schedule_for(tournament, self.settings.max_winners_count)

    # =========================================================================
    # Operator CRUD
    # =========================================================================

    def _check_schedule(self, start_at: datetime, end_at: datetime | None) -> None:
        if end_at is not None and as_utc(end_at) < as_utc(start_at):
            raise ValidationError(
                "End time cannot be before the start time",
                code=ErrorCode.INVALID_SCHEDULE,
                details={"startAt": start_at.isoformat(), "endAt": end_at.isoformat()},
            )

    def _clean_slug(self, raw: str | None, title: str) -> str:
        slug = slugify(raw or title)
        if not slug:
            raise ValidationError(
                "Could not derive a slug from the title",
                details={"title": title},
            )
        return slug

    async def _ensure_slug_free(self, slug: str, exclude_id: str | None = None) -> None:
        query = select(Tournament.id).where(Tournament.slug == slug)
        if exclude_id:
            query = query.where(Tournament.id != exclude_id)
        result = await self.db.execute(query)
        if result.first() is not None:
            raise ConflictError(
                f"Slug already in use: {slug}",
                code=ErrorCode.SLUG_TAKEN,
                details={"slug": slug},
            )

    async def _commit_slug(self, slug: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(
                f"Slug already in use: {slug}",
                code=ErrorCode.SLUG_TAKEN,
                details={"slug": slug},
            )

    async def create(self, identity: Identity | None, data: TournamentCreate) -> TournamentView:
        """Create a tournament.

        Raises:
            AuthorizationError: caller is not an operator
            ValidationError: bad schedule, winners count or breakdown
            ConflictError: slug collision
        """
        operator = require_operator(identity)
        winners_count = check_winners_count(data.winners_count, self.settings.max_winners_count)
        self._check_schedule(data.start_at, data.end_at)

        breakdown = None
        if data.prize_breakdown:
            breakdown = [
                e.to_dict() for e in validate_breakdown(data.prize_breakdown, winners_count)
            ]

        slug = self._clean_slug(data.slug, data.title)
        await self._ensure_slug_free(slug)

        tournament = Tournament(
            id=str(uuid4()),
            slug=slug,
            title=data.title,
            description=data.description,
            start_at=data.start_at,
            end_at=data.end_at,
            prize_pool=data.prize_pool,
            winners_count=winners_count,
            prize_breakdown=breakdown,
            admin_status=data.admin_status,
            type=data.type,
            entry=data.entry or "FREE",
            sponsor_name=data.sponsor_name,
            sponsor_logo_key=data.sponsor_logo_key,
        )
        self.db.add(tournament)
        await self._commit_slug(slug)

        logger.info(
            "tournament_created",
            tournament_id=tournament.id,
            slug=slug,
            operator_id=operator.user_id,
        )
        return self._view(tournament, 0)

    async def update(
        self,
        identity: Identity | None,
        tournament_id: str,
        data: TournamentUpdate,
    ) -> TournamentView:
        """Apply a partial update.

        A new winners_count re-normalizes the stored breakdown to the new length
        unless a new breakdown is sent with it.
        """
        operator = require_operator(identity)
        tournament = await self.get(tournament_id)
        changes = data.model_dump(exclude_unset=True)

        if "title" in changes and changes["title"] is None:
            raise ValidationError("Title cannot be empty")
        if "start_at" in changes and changes["start_at"] is None:
            raise ValidationError("Start time is required", code=ErrorCode.INVALID_SCHEDULE)

        winners_count = tournament.winners_count
        if changes.get("winners_count") is not None:
            winners_count = check_winners_count(
                changes["winners_count"], self.settings.max_winners_count
            )

        start_at = changes.get("start_at", tournament.start_at)
        end_at = changes["end_at"] if "end_at" in changes else tournament.end_at
        self._check_schedule(start_at, end_at)

        if "prize_breakdown" in changes:
            items = data.prize_breakdown
            tournament.prize_breakdown = (
                [e.to_dict() for e in validate_breakdown(items, winners_count)]
                if items
                else None
            )
        elif winners_count != tournament.winners_count and tournament.prize_breakdown:
            tournament.prize_breakdown = [
                e.to_dict() for e in normalize_breakdown(tournament.prize_breakdown, winners_count)
            ]

        if "slug" in changes or "title" in changes:
            raw_slug = changes.get("slug") if "slug" in changes else tournament.slug
            slug = self._clean_slug(raw_slug, changes.get("title") or tournament.title)
            if slug != tournament.slug:
                await self._ensure_slug_free(slug, exclude_id=tournament.id)
                tournament.slug = slug

        # Nullable columns accept an explicit null; the rest ignore it
        for field in ("description", "end_at", "sponsor_name", "sponsor_logo_key"):
            if field in changes:
                setattr(tournament, field, changes[field])
        for field in ("title", "start_at", "prize_pool", "admin_status", "type", "entry"):
            if changes.get(field) is not None:
                setattr(tournament, field, changes[field])
        tournament.winners_count = winners_count

        await self._commit_slug(tournament.slug or "")
        await self.db.refresh(tournament)

        logger.info(
            "tournament_updated",
            tournament_id=tournament.id,
            fields=sorted(changes),
            operator_id=operator.user_id,
        )
        counts = await self.participant_counts([tournament.id])
        return self._view(tournament, counts.get(tournament.id, 0))

    async def delete(self, identity: Identity | None, tournament_id: str) -> None:
        """Hard delete with its registrations, credentials and results."""
        operator = require_operator(identity)
        tournament = await self.get(tournament_id)

        for model in (TournamentResult, TournamentCredential, TournamentRegistration):
            await self.db.execute(delete(model).where(model.tournament_id == tournament.id))
        await self.db.delete(tournament)
        await self.db.commit()

        logger.info(
            "tournament_deleted",
            tournament_id=tournament_id,
            operator_id=operator.user_id,
        )
