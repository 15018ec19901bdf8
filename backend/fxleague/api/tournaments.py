"""Public and participant tournament API."""

from fastapi import APIRouter, Query, Response, status

from fxleague.api.deps import CurrentIdentity, DbSession, OptionalIdentity
from fxleague.schemas.tournament import (
    CredentialSubmission,
    JoinResponse,
    MyRegistrationResponse,
    MyRegistrationsResponse,
    PrizeScheduleResponse,
    RegistrationResponse,
    ResultRow,
    ResultsResponse,
    TournamentListResponse,
    TournamentResponse,
    WinnersBoardItem,
    WinnersBoardResponse,
)
from fxleague.services.registration import JoinResult, RegistrationService
from fxleague.services.results import ResultsService
from fxleague.services.tournaments import TournamentService
from fxleague.tournament.status import EffectiveStatus

router = APIRouter(tags=["Tournaments"])


def _join_response(result: JoinResult, response: Response) -> JoinResponse:
    if result.joined:
        response.status_code = status.HTTP_201_CREATED
    return JoinResponse(
        outcome=result.outcome.value,
        registration_id=result.registration_id,
        tournament_id=result.tournament_id,
        status=result.status,
        message=result.message,
    )


# ============================================================================
# Catalogue
# ============================================================================


@router.get("/tournaments", response_model=TournamentListResponse)
async def list_tournaments(
    db: DbSession,
    status_filter: EffectiveStatus | None = Query(None, alias="status"),
):
    """List tournaments with computed status and participant counts."""
    views = await TournamentService(db).list_tournaments(status=status_filter)
    return TournamentListResponse(
        items=[TournamentResponse(**v.to_dict()) for v in views]
    )


@router.get("/tournaments/{ref}", response_model=TournamentResponse)
async def get_tournament(ref: str, db: DbSession):
    """Tournament detail by slug or id."""
    view = await TournamentService(db).get_view(ref)
    return TournamentResponse(**view.to_dict())


@router.get("/tournaments/{tournament_id}/prizes", response_model=PrizeScheduleResponse)
async def get_prize_schedule(tournament_id: str, db: DbSession):
    schedule = await TournamentService(db).prize_schedule(tournament_id)
    return PrizeScheduleResponse(**schedule.to_dict())


# ============================================================================
# Registration
# ============================================================================


@router.post("/tournaments/{tournament_id}/join", response_model=JoinResponse)
async def join_tournament(
    tournament_id: str,
    response: Response,
    identity: OptionalIdentity,
    db: DbSession,
):
    """Join a tournament.

    - 201 when a registration is created
    - 200 with outcome ``already_registered`` for a repeated join
    """
    result = await RegistrationService(db).join(identity, tournament_id)
    return _join_response(result, response)


@router.post("/tournaments/by-slug/{slug}/join", response_model=JoinResponse)
async def join_tournament_by_slug(
    slug: str,
    response: Response,
    identity: OptionalIdentity,
    db: DbSession,
):
    """Join through a shared tournament link (date suffix allowed)."""
    result = await RegistrationService(db).join_by_slug(identity, slug)
    return _join_response(result, response)


@router.put("/tournaments/{tournament_id}/credentials", response_model=RegistrationResponse)
async def submit_credentials(
    tournament_id: str,
    body: CredentialSubmission,
    identity: OptionalIdentity,
    db: DbSession,
):
    """Submit demo account details and move the registration to review."""
    registration = await RegistrationService(db).submit_credentials(
        identity, tournament_id, body
    )
    return RegistrationResponse.model_validate(registration)


@router.get("/me/registrations", response_model=MyRegistrationsResponse)
async def my_registrations(identity: CurrentIdentity, db: DbSession):
    rows = await RegistrationService(db).list_my_registrations(identity)
    return MyRegistrationsResponse(items=[MyRegistrationResponse(**r) for r in rows])


# ============================================================================
# Results
# ============================================================================


@router.get("/tournaments/{tournament_id}/results", response_model=ResultsResponse)
async def get_results(tournament_id: str, db: DbSession):
    rows = await ResultsService(db).get_results(tournament_id)
    return ResultsResponse(
        tournament_id=tournament_id,
        items=[ResultRow(**r) for r in rows],
    )


@router.get("/winners", response_model=WinnersBoardResponse)
async def winners_board(
    db: DbSession,
    limit: int = Query(10, ge=1, le=50),
):
    """Recent tournaments with their top three."""
    board = await ResultsService(db).list_winners(limit=limit)
    return WinnersBoardResponse(
        items=[
            WinnersBoardItem(
                tournament_id=item["tournament_id"],
                title=item["title"],
                slug=item["slug"],
                end_at=item["end_at"],
                results=[ResultRow(**r) for r in item["results"]],
            )
            for item in board
        ]
    )
