"""Tournament administration and read model tests."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from fxleague.models.tournament import (
    AdminStatus,
    RegistrationStatus,
    ResultOutcome,
    Tournament,
    TournamentRegistration,
    TournamentResult,
    TournamentType,
)
from fxleague.schemas.tournament import TournamentCreate, TournamentUpdate
from fxleague.services.tournaments import TournamentService, slugify
from fxleague.tournament.status import EffectiveStatus
from fxleague.utils.errors import (
    AuthorizationError,
    ConflictError,
    ErrorCode,
    TournamentNotFoundError,
    ValidationError,
)

START = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


def make_create(**overrides) -> TournamentCreate:
    data = {
        "title": "Weekly Cup",
        "start_at": START,
        "end_at": START + timedelta(days=7),
        "prize_pool": 1000,
        "winners_count": 3,
    }
    data.update(overrides)
    return TournamentCreate(**data)


class TestSlugify:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Weekly Cup", "weekly-cup"),
            ("  Daily  Sprint #3! ", "daily-sprint-3"),
            ("FX -- Masters", "fx-masters"),
            ("---", ""),
        ],
    )
    def test_slugify(self, raw, expected):
        assert slugify(raw) == expected


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_derives_slug_and_schedule(self, test_db, operator):
        view = await TournamentService(test_db).create(operator, make_create())

        assert view.tournament.slug == "weekly-cup"
        assert view.tournament.entry == "FREE"
        assert view.tournament.type == TournamentType.DAILY
        assert view.participants == 0
        assert view.schedule.amounts == [500, 300, 200]

    @pytest.mark.asyncio
    async def test_create_with_explicit_breakdown(self, test_db, operator):
        view = await TournamentService(test_db).create(
            operator,
            make_create(
                prize_breakdown=[
                    {"position": 2, "amount": 200},
                    {"position": 1, "amount": 500},
                    {"position": 3, "amount": 100},
                ]
            ),
        )

        stored = await test_db.get(Tournament, view.tournament.id)
        assert stored.prize_breakdown == [
            {"position": 1, "amount": 500},
            {"position": 2, "amount": 200},
            {"position": 3, "amount": 100},
        ]
        assert view.schedule.explicit is True
        assert view.schedule.sum_matches_pool is False

    @pytest.mark.asyncio
    async def test_non_contiguous_breakdown_rejected(self, test_db, operator):
        with pytest.raises(ValidationError) as exc_info:
            await TournamentService(test_db).create(
                operator,
                make_create(prize_breakdown=[{"position": 1, "amount": 1}, {"position": 3, "amount": 1}]),
            )
        assert exc_info.value.code == ErrorCode.INVALID_PRIZE_BREAKDOWN.value

    @pytest.mark.asyncio
    async def test_slug_collision(self, test_db, operator):
        service = TournamentService(test_db)
        await service.create(operator, make_create())

        with pytest.raises(ConflictError) as exc_info:
            await service.create(operator, make_create(title="Weekly  CUP!"))
        assert exc_info.value.code == ErrorCode.SLUG_TAKEN.value

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, test_db, operator):
        with pytest.raises(ValidationError) as exc_info:
            await TournamentService(test_db).create(
                operator, make_create(end_at=START - timedelta(minutes=1))
            )
        assert exc_info.value.code == ErrorCode.INVALID_SCHEDULE.value

    @pytest.mark.asyncio
    async def test_winners_over_limit_rejected(self, test_db, operator):
        with pytest.raises(ValidationError) as exc_info:
            await TournamentService(test_db).create(operator, make_create(winners_count=21))
        assert exc_info.value.code == ErrorCode.INVALID_WINNERS_COUNT.value

    @pytest.mark.asyncio
    async def test_title_without_slug_characters(self, test_db, operator):
        with pytest.raises(ValidationError):
            await TournamentService(test_db).create(operator, make_create(title="!!!"))

    @pytest.mark.asyncio
    async def test_requires_operator(self, test_db, trader_identity):
        with pytest.raises(AuthorizationError):
            await TournamentService(test_db).create(trader_identity, make_create())


class TestUpdate:
    @pytest.mark.asyncio
    async def test_winners_change_renormalizes_breakdown(self, test_db, operator):
        service = TournamentService(test_db)
        view = await service.create(
            operator,
            make_create(
                prize_breakdown=[
                    {"position": 1, "amount": 500},
                    {"position": 2, "amount": 300},
                    {"position": 3, "amount": 200},
                ]
            ),
        )

        updated = await service.update(
            operator, view.tournament.id, TournamentUpdate(winners_count=4)
        )
        assert updated.tournament.prize_breakdown == [
            {"position": 1, "amount": 500},
            {"position": 2, "amount": 300},
            {"position": 3, "amount": 200},
            {"position": 4, "amount": 0},
        ]

        shrunk = await service.update(
            operator, view.tournament.id, TournamentUpdate(winners_count=2)
        )
        assert shrunk.schedule.amounts == [500, 300]

    @pytest.mark.asyncio
    async def test_clearing_breakdown_restores_derived_split(self, test_db, operator):
        service = TournamentService(test_db)
        view = await service.create(
            operator,
            make_create(prize_breakdown=[{"position": i, "amount": 1} for i in (1, 2, 3)]),
        )

        updated = await service.update(
            operator, view.tournament.id, TournamentUpdate(prize_breakdown=None)
        )

        assert updated.tournament.prize_breakdown is None
        assert updated.schedule.amounts == [500, 300, 200]

    @pytest.mark.asyncio
    async def test_close_tournament(self, test_db, operator):
        service = TournamentService(test_db)
        view = await service.create(
            operator,
            make_create(start_at=datetime.now(timezone.utc) - timedelta(hours=1), end_at=None),
        )
        assert view.status == EffectiveStatus.LIVE

        updated = await service.update(
            operator, view.tournament.id, TournamentUpdate(admin_status=AdminStatus.COMPLETED)
        )
        assert updated.status == EffectiveStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_rename_moves_slug(self, test_db, operator):
        service = TournamentService(test_db)
        view = await service.create(operator, make_create())

        updated = await service.update(
            operator, view.tournament.id, TournamentUpdate(slug="Cup Finals")
        )
        assert updated.tournament.slug == "cup-finals"

    @pytest.mark.asyncio
    async def test_rename_into_taken_slug(self, test_db, operator):
        service = TournamentService(test_db)
        await service.create(operator, make_create(title="Daily Sprint"))
        view = await service.create(operator, make_create())

        with pytest.raises(ConflictError):
            await service.update(operator, view.tournament.id, TournamentUpdate(slug="daily-sprint"))

    @pytest.mark.asyncio
    async def test_end_before_existing_start(self, test_db, operator):
        service = TournamentService(test_db)
        view = await service.create(operator, make_create())

        with pytest.raises(ValidationError):
            await service.update(
                operator,
                view.tournament.id,
                TournamentUpdate(end_at=START - timedelta(days=1)),
            )

    @pytest.mark.asyncio
    async def test_unknown_tournament(self, test_db, operator):
        with pytest.raises(TournamentNotFoundError):
            await TournamentService(test_db).update(operator, "missing", TournamentUpdate(title="x"))


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_children(
        self, test_db, tournament, trader, make_registration, operator
    ):
        await make_registration(tournament, trader, status=RegistrationStatus.APPROVED)
        test_db.add(
            TournamentResult(tournament_id=tournament.id, rank=1, user_id=trader.id, pnl=10, outcome=ResultOutcome.WIN)
        )
        await test_db.commit()

        await TournamentService(test_db).delete(operator, tournament.id)

        assert await test_db.get(Tournament, tournament.id) is None
        result = await test_db.execute(select(func.count()).select_from(TournamentRegistration))
        assert result.scalar_one() == 0
        result = await test_db.execute(select(func.count()).select_from(TournamentResult))
        assert result.scalar_one() == 0


class TestReads:
    @pytest.mark.asyncio
    async def test_list_with_participants_and_status(
        self, test_db, tournament, make_tournament, trader, trader2, make_registration
    ):
        upcoming = await make_tournament(
            title="Monthly Major",
            slug="monthly-major",
            start_at=datetime.now(timezone.utc) + timedelta(days=3),
            end_at=datetime.now(timezone.utc) + timedelta(days=33),
        )
        await make_registration(tournament, trader)
        await make_registration(tournament, trader2)

        service = TournamentService(test_db)
        views = await service.list_tournaments()

        by_id = {v.tournament.id: v for v in views}
        assert by_id[tournament.id].participants == 2
        assert by_id[tournament.id].status == EffectiveStatus.LIVE
        assert by_id[upcoming.id].participants == 0
        assert by_id[upcoming.id].status == EffectiveStatus.UPCOMING

        live_only = await service.list_tournaments(status=EffectiveStatus.LIVE)
        assert [v.tournament.id for v in live_only] == [tournament.id]

    @pytest.mark.asyncio
    async def test_get_view_by_slug_or_id(self, test_db, tournament):
        service = TournamentService(test_db)
        assert (await service.get_view("daily-sprint")).tournament.id == tournament.id
        assert (await service.get_view(tournament.id)).tournament.id == tournament.id

        with pytest.raises(TournamentNotFoundError):
            await service.get_view("nothing-here")

    @pytest.mark.asyncio
    async def test_prize_schedule(self, test_db, make_tournament):
        t = await make_tournament(slug="four", prize_pool=1000, winners_count=4)
        schedule = await TournamentService(test_db).prize_schedule(t.id)
        assert schedule.amounts == [250, 250, 250, 250]

    @pytest.mark.asyncio
    async def test_to_dict_carries_schedule(self, test_db, tournament):
        view = await TournamentService(test_db).get_view(tournament.id)
        data = view.to_dict()
        assert data["status"] == EffectiveStatus.LIVE
        assert data["prize_schedule"]["entries"][0] == {"position": 1, "amount": 500}
