"""Results publication and the winners board."""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from fxleague.config import get_settings
from fxleague.logging_config import get_logger
from fxleague.models.tournament import (
    RegistrationStatus,
    ResultOutcome,
    Tournament,
    TournamentRegistration,
    TournamentResult,
)
from fxleague.models.user import Profile
from fxleague.schemas.tournament import ResultEntry
from fxleague.services.identity import Identity, require_operator
from fxleague.tournament.prizes import schedule_for
from fxleague.utils.errors import ErrorCode, TournamentNotFoundError, ValidationError

logger = get_logger(__name__)

# Ranks shown per tournament on the winners board
PODIUM_SIZE = 3


def outcome_for(pnl: Decimal) -> ResultOutcome:
    return ResultOutcome.WIN if pnl > 0 else ResultOutcome.LOSS


def roi_percent(pnl: Decimal, starting_balance: int) -> Decimal:
    """Return on the demo starting balance, in percent, 2 decimals."""
    roi = Decimal(pnl) / Decimal(starting_balance) * 100
    return roi.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class ResultsService:
    """Publishes ranked results and reads them back with prizes."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def _get_tournament(self, tournament_id: str) -> Tournament:
        tournament = await self.db.get(Tournament, tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        return tournament

    def _validate_entries(self, tournament: Tournament, entries: Sequence[ResultEntry]) -> None:
        if not entries:
            raise ValidationError(
                "At least one result is required",
                code=ErrorCode.INVALID_RESULTS,
            )

        seen_ranks: set[int] = set()
        seen_users: set[str] = set()
        for entry in entries:
            if not 1 <= entry.rank <= tournament.winners_count:
                raise ValidationError(
                    f"Rank must be between 1 and {tournament.winners_count}",
                    code=ErrorCode.INVALID_RESULTS,
                    details={"rank": entry.rank},
                )
            if entry.rank in seen_ranks:
                raise ValidationError(
                    f"Rank {entry.rank} is listed more than once",
                    code=ErrorCode.INVALID_RESULTS,
                    details={"rank": entry.rank},
                )
            if entry.user_id in seen_users:
                raise ValidationError(
                    "The same trader cannot take multiple ranks",
                    code=ErrorCode.INVALID_RESULTS,
                    details={"userId": entry.user_id},
                )
            if not Decimal(entry.pnl).is_finite():
                raise ValidationError(
                    "PnL must be a number",
                    code=ErrorCode.INVALID_RESULTS,
                    details={"rank": entry.rank},
                )
            seen_ranks.add(entry.rank)
            seen_users.add(entry.user_id)

    async def _check_participants(self, tournament_id: str, user_ids: set[str]) -> None:
        result = await self.db.execute(
            select(TournamentRegistration.user_id).where(
                TournamentRegistration.tournament_id == tournament_id,
                TournamentRegistration.user_id.in_(user_ids),
                TournamentRegistration.status == RegistrationStatus.APPROVED,
            )
        )
        missing = user_ids - set(result.scalars().all())
        if missing:
            raise ValidationError(
                "Results may only list approved participants",
                code=ErrorCode.INVALID_RESULTS,
                details={"userIds": sorted(missing)},
            )

    async def publish_results(
        self,
        identity: Identity | None,
        tournament_id: str,
        entries: Sequence[ResultEntry],
    ) -> list[dict[str, Any]]:
        """Replace the ranked results of a tournament.

        The batch is the full result set: ranks missing from it are removed
        and the rest are upserted on (tournament_id, rank) in one commit.

        Raises:
            AuthorizationError: caller is not an operator
            TournamentNotFoundError: unknown tournament
            ValidationError: empty list, bad or duplicate ranks, duplicate users,
                or a trader without an approved registration
        """
        operator = require_operator(identity)
        tournament = await self._get_tournament(tournament_id)
        self._validate_entries(tournament, entries)
        await self._check_participants(tournament_id, {e.user_id for e in entries})

        dialect = self.db.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert

        rows = [
            {
                "tournament_id": tournament_id,
                "rank": e.rank,
                "user_id": e.user_id,
                "pnl": e.pnl,
                "outcome": outcome_for(e.pnl),
            }
            for e in entries
        ]
        stmt = insert(TournamentResult).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=["tournament_id", "rank"],
            set_={
                "user_id": stmt.excluded.user_id,
                "pnl": stmt.excluded.pnl,
                "outcome": stmt.excluded.outcome,
            },
        )
        await self.db.execute(
            delete(TournamentResult).where(
                TournamentResult.tournament_id == tournament_id,
                TournamentResult.rank.notin_([e.rank for e in entries]),
            )
        )
        await self.db.execute(stmt)
        await self.db.commit()

        logger.info(
            "results_published",
            tournament_id=tournament_id,
            count=len(rows),
            operator_id=operator.user_id,
        )
        return await self.get_results(tournament_id)

    async def get_results(
        self,
        tournament_id: str,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Results ordered by rank with prize and ROI."""
        tournament = await self._get_tournament(tournament_id)
        return await self._results_for(tournament, limit)

    async def _results_for(
        self,
        tournament: Tournament,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        schedule = schedule_for(tournament, self.settings.max_winners_count)

        query = (
            select(TournamentResult, Profile)
            .outerjoin(Profile, Profile.id == TournamentResult.user_id)
            .where(TournamentResult.tournament_id == tournament.id)
            .order_by(TournamentResult.rank.asc())
            # Rows may have been rewritten by the upsert behind the identity map
            .execution_options(populate_existing=True)
        )
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)

        rows = []
        for res, profile in result.all():
            pnl = Decimal(res.pnl)
            rows.append(
                {
                    "rank": res.rank,
                    "user_id": res.user_id,
                    "display_name": (
                        profile.display_name if profile else f"User-{res.user_id[:6]}"
                    ),
                    "pnl": pnl,
                    "outcome": res.outcome,
                    "roi": roi_percent(pnl, self.settings.demo_starting_balance),
                    "prize": schedule.amount_for(res.rank),
                }
            )
        return rows

    async def list_winners(self, limit: int = 10) -> list[dict[str, Any]]:
        """Most recent tournaments with published results and their podium."""
        with_results = select(TournamentResult.tournament_id).distinct()
        result = await self.db.execute(
            select(Tournament)
            .where(Tournament.id.in_(with_results))
            .order_by(Tournament.start_at.desc())
            .limit(limit)
        )

        board = []
        for tournament in result.scalars().all():
            board.append(
                {
                    "tournament_id": tournament.id,
                    "title": tournament.title,
                    "slug": tournament.slug,
                    "end_at": tournament.end_at,
                    "results": await self._results_for(tournament, PODIUM_SIZE),
                }
            )
        return board
