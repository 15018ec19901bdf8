"""Operator API: tournament CRUD, review queue, results and moderation."""

from fastapi import APIRouter, Query, status

from fxleague.api.deps import CurrentOperator, DbSession
from fxleague.config import get_settings
from fxleague.models.tournament import RegistrationStatus
from fxleague.schemas.common import PaginatedResponse, PaginationMeta
from fxleague.schemas.tournament import (
    AdminRegistrationRow,
    BanRequest,
    CredentialListResponse,
    CredentialRow,
    DecisionRequest,
    DecisionResponse,
    ProfileResponse,
    ResultRow,
    ResultsPublish,
    ResultsResponse,
    TournamentCreate,
    TournamentListResponse,
    TournamentResponse,
    TournamentUpdate,
)
from fxleague.services.decision import DecisionService
from fxleague.services.moderation import ModerationService
from fxleague.services.results import ResultsService
from fxleague.services.tournaments import TournamentService
from fxleague.utils.errors import ErrorCode, StateError

settings = get_settings()

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============================================================================
# Tournaments
# ============================================================================


@router.get("/tournaments", response_model=TournamentListResponse)
async def admin_list_tournaments(operator: CurrentOperator, db: DbSession):
    views = await TournamentService(db).list_tournaments()
    return TournamentListResponse(
        items=[TournamentResponse(**v.to_dict()) for v in views]
    )


@router.post(
    "/tournaments",
    response_model=TournamentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_tournament(body: TournamentCreate, operator: CurrentOperator, db: DbSession):
    view = await TournamentService(db).create(operator, body)
    return TournamentResponse(**view.to_dict())


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
async def admin_get_tournament(tournament_id: str, operator: CurrentOperator, db: DbSession):
    view = await TournamentService(db).get_view(tournament_id)
    return TournamentResponse(**view.to_dict())


@router.patch("/tournaments/{tournament_id}", response_model=TournamentResponse)
async def update_tournament(
    tournament_id: str,
    body: TournamentUpdate,
    operator: CurrentOperator,
    db: DbSession,
):
    view = await TournamentService(db).update(operator, tournament_id, body)
    return TournamentResponse(**view.to_dict())


@router.delete("/tournaments/{tournament_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tournament(tournament_id: str, operator: CurrentOperator, db: DbSession):
    await TournamentService(db).delete(operator, tournament_id)


@router.put("/tournaments/{tournament_id}/results", response_model=ResultsResponse)
async def publish_results(
    tournament_id: str,
    body: ResultsPublish,
    operator: CurrentOperator,
    db: DbSession,
):
    rows = await ResultsService(db).publish_results(operator, tournament_id, body.results)
    return ResultsResponse(
        tournament_id=tournament_id,
        items=[ResultRow(**r) for r in rows],
    )


# ============================================================================
# Review queue
# ============================================================================


@router.get("/registrations", response_model=PaginatedResponse[AdminRegistrationRow])
async def list_registrations(
    operator: CurrentOperator,
    db: DbSession,
    tournament_id: str | None = Query(None),
    status_filter: RegistrationStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=200),
):
    rows, total = await DecisionService(db).list_registrations(
        operator,
        tournament_id=tournament_id,
        status=status_filter,
        search=search,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse[AdminRegistrationRow](
        items=[AdminRegistrationRow(**r) for r in rows],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.post("/registrations/{registration_id}/decision", response_model=DecisionResponse)
async def decide_registration(
    registration_id: str,
    body: DecisionRequest,
    operator: CurrentOperator,
    db: DbSession,
):
    """Approve or reject a registration under review.

    A registration that is no longer pending review answers 409.
    """
    result = await DecisionService(db).decide(operator, registration_id, body.decision)
    if not result.applied:
        raise StateError(
            result.message,
            code=ErrorCode.NOT_PENDING_REVIEW,
            details={
                "registrationId": registration_id,
                "status": result.status.value if result.status else None,
            },
        )
    return DecisionResponse(
        outcome=result.outcome.value,
        registration_id=result.registration_id,
        decision=result.decision,
        status=result.status,
        message=result.message,
    )


@router.get("/credentials", response_model=CredentialListResponse)
async def list_credentials(
    operator: CurrentOperator,
    db: DbSession,
    tournament_id: str | None = Query(None),
):
    rows = await DecisionService(db).list_credentials(operator, tournament_id=tournament_id)
    return CredentialListResponse(items=[CredentialRow(**r) for r in rows])


# ============================================================================
# Moderation
# ============================================================================


@router.post("/users/{user_id}/ban", response_model=ProfileResponse)
async def set_ban(user_id: str, body: BanRequest, operator: CurrentOperator, db: DbSession):
    profile = await ModerationService(db).set_ban(operator, user_id, body.is_banned)
    return ProfileResponse.model_validate(profile)
