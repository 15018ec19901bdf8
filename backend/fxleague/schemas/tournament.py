"""Tournament request/response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator

from fxleague.models.tournament import (
    AdminStatus,
    CredentialStatus,
    Decision,
    RegistrationStatus,
    ResultOutcome,
    TournamentType,
    TradingPlatform,
)
from fxleague.schemas.common import BaseSchema
from fxleague.tournament.status import EffectiveStatus


# =============================================================================
# Requests
# =============================================================================


class PrizeItem(BaseSchema):
    position: int = Field(..., ge=1)
    amount: Decimal


class TournamentCreate(BaseSchema):
    """Operator input for a new tournament."""

    title: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(None, max_length=120)
    description: str | None = None
    start_at: datetime
    end_at: datetime | None = None
    prize_pool: int = Field(0, ge=0)
    winners_count: int = Field(3, ge=1)
    prize_breakdown: list[PrizeItem] | None = None
    admin_status: AdminStatus = AdminStatus.UPCOMING
    type: TournamentType = TournamentType.DAILY
    entry: str = Field("FREE", max_length=20)
    sponsor_name: str | None = Field(None, max_length=120)
    sponsor_logo_key: str | None = Field(None, max_length=60)


class TournamentUpdate(BaseSchema):
    """Partial update; only fields that are sent are applied."""

    title: str | None = Field(None, min_length=1, max_length=200)
    slug: str | None = Field(None, max_length=120)
    description: str | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    prize_pool: int | None = Field(None, ge=0)
    winners_count: int | None = Field(None, ge=1)
    prize_breakdown: list[PrizeItem] | None = None
    admin_status: AdminStatus | None = None
    type: TournamentType | None = None
    entry: str | None = Field(None, max_length=20)
    sponsor_name: str | None = Field(None, max_length=120)
    sponsor_logo_key: str | None = Field(None, max_length=60)


class CredentialSubmission(BaseSchema):
    """Demo account details submitted by a registrant."""

    platform: TradingPlatform
    login: str = Field(..., min_length=1, max_length=64)
    view_only_password: str = Field(..., min_length=1, max_length=128)
    server: str = Field(..., min_length=1, max_length=120)

    @field_validator("platform", mode="before")
    @classmethod
    def normalize_platform(cls, v: Any) -> Any:
        if isinstance(v, str):
            wanted = v.strip().lower()
            for platform in TradingPlatform:
                if platform.value.lower() == wanted:
                    return platform
        return v


class DecisionRequest(BaseSchema):
    decision: Decision


class ResultEntry(BaseSchema):
    rank: int = Field(..., ge=1)
    user_id: str = Field(..., min_length=1, max_length=36)
    pnl: Decimal


class ResultsPublish(BaseSchema):
    results: list[ResultEntry] = Field(..., min_length=1)


class BanRequest(BaseSchema):
    is_banned: bool


# =============================================================================
# Responses
# =============================================================================


class PrizeEntryResponse(BaseModel):
    position: int
    amount: int


class PrizeScheduleResponse(BaseModel):
    pool: int
    explicit: bool
    total: int
    sum_matches_pool: bool
    warning: str | None = None
    entries: list[PrizeEntryResponse]


class TournamentResponse(BaseModel):
    id: str
    slug: str | None
    title: str
    description: str | None
    start_at: datetime
    end_at: datetime | None
    prize_pool: int
    winners_count: int
    prize_breakdown: list[PrizeEntryResponse] | None
    admin_status: AdminStatus
    status: EffectiveStatus
    type: TournamentType
    entry: str
    sponsor_name: str | None
    sponsor_logo_key: str | None
    participants: int
    prize_schedule: PrizeScheduleResponse


class TournamentListResponse(BaseModel):
    items: list[TournamentResponse]


class JoinResponse(BaseModel):
    outcome: str
    registration_id: str
    tournament_id: str
    status: RegistrationStatus
    message: str


class RegistrationResponse(BaseSchema):
    id: str
    tournament_id: str
    user_id: str
    status: RegistrationStatus
    details_submitted: bool
    registered_at: datetime
    decided_by: str | None = None
    decided_at: datetime | None = None


class MyRegistrationResponse(BaseModel):
    registration_id: str
    tournament_id: str
    tournament_title: str
    tournament_slug: str | None
    start_at: datetime
    end_at: datetime | None
    tournament_status: EffectiveStatus
    status: RegistrationStatus
    details_submitted: bool
    registered_at: datetime


class MyRegistrationsResponse(BaseModel):
    items: list[MyRegistrationResponse]


class DecisionResponse(BaseModel):
    outcome: str
    registration_id: str
    decision: Decision
    status: RegistrationStatus | None
    message: str


class AdminRegistrationRow(BaseModel):
    registration_id: str
    tournament_id: str
    tournament_title: str
    user_id: str
    full_name: str | None
    email: str | None
    status: RegistrationStatus
    details_submitted: bool
    registered_at: datetime
    can_decide: bool


class CredentialRow(BaseModel):
    id: str
    tournament_id: str
    tournament_title: str
    user_id: str
    email: str | None
    platform: TradingPlatform
    login: str
    investor_password: str
    server: str
    status: CredentialStatus
    submitted_at: datetime
    registration_status: RegistrationStatus | None


class CredentialListResponse(BaseModel):
    items: list[CredentialRow]


class ResultRow(BaseModel):
    rank: int
    user_id: str
    display_name: str
    pnl: Decimal
    outcome: ResultOutcome
    roi: Decimal
    prize: int | None


class ResultsResponse(BaseModel):
    tournament_id: str
    items: list[ResultRow]


class WinnersBoardItem(BaseModel):
    tournament_id: str
    title: str
    slug: str | None
    end_at: datetime | None
    results: list[ResultRow]


class WinnersBoardResponse(BaseModel):
    items: list[WinnersBoardItem]


class ProfileResponse(BaseSchema):
    id: str
    email: str | None
    full_name: str | None
    username: str | None
    is_banned: bool
    email_verified: bool
