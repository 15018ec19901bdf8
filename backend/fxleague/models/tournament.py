"""Tournament, registration, credential and result models.

Registration lifecycle:
    (no row) -> joined_pending -> pending_review -> approved | rejected

Rows are never moved backward; decisions are applied with a conditional
update on ``status = pending_review``.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from fxleague.models.base import Base, JSONType, TimestampMixin, UUIDMixin


def _enum_column(enum_cls: type[Enum], length: int = 20) -> SQLEnum:
    """Store the enum's value (not its name) in a plain VARCHAR."""
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class AdminStatus(str, Enum):
    """Operator-set coarse status of a tournament."""

    UPCOMING = "UPCOMING"
    COMPLETED = "COMPLETED"


class TournamentType(str, Enum):
    """Contest cadence shown on the schedule."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    SPECIAL = "Special"


class RegistrationStatus(str, Enum):
    """Registration state; NONE is the absence of a row."""

    JOINED = "joined_pending"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(str, Enum):
    """Operator verdict on a registration under review."""

    APPROVE = "approve"
    REJECT = "reject"

    @property
    def registration_status(self) -> RegistrationStatus:
        if self is Decision.APPROVE:
            return RegistrationStatus.APPROVED
        return RegistrationStatus.REJECTED

    @property
    def credential_status(self) -> "CredentialStatus":
        if self is Decision.APPROVE:
            return CredentialStatus.APPROVED
        return CredentialStatus.REJECTED


class CredentialStatus(str, Enum):
    """Review state of a submitted demo account."""

    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class TradingPlatform(str, Enum):
    """Supported demo trading platforms."""

    MT4 = "MT4"
    MT5 = "MT5"
    CTRADER = "cTrader"


class ResultOutcome(str, Enum):
    """Published outcome label of a ranked result."""

    WIN = "win"
    LOSS = "loss"


class Tournament(Base, UUIDMixin, TimestampMixin):
    """Time-boxed trading contest."""

    __tablename__ = "tournaments"

    slug: Mapped[str | None] = mapped_column(
        String(120),
        unique=True,
        nullable=True,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Schedule
    start_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    end_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Prizes
    prize_pool: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    winners_count: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    prize_breakdown: Mapped[list | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="[{position, amount}] with positions 1..winners_count",
    )

    admin_status: Mapped[AdminStatus] = mapped_column(
        _enum_column(AdminStatus),
        default=AdminStatus.UPCOMING,
        nullable=False,
    )
    type: Mapped[TournamentType] = mapped_column(
        _enum_column(TournamentType),
        default=TournamentType.DAILY,
        nullable=False,
    )
    entry: Mapped[str] = mapped_column(String(20), default="FREE", nullable=False)

    # Sponsor
    sponsor_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    sponsor_logo_key: Mapped[str | None] = mapped_column(String(60), nullable=True)

    def __repr__(self) -> str:
        return f"<Tournament {self.slug or self.id}>"


class TournamentRegistration(Base, UUIDMixin):
    """A user's entry in a tournament."""

    __tablename__ = "tournament_registrations"

    tournament_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[RegistrationStatus] = mapped_column(
        _enum_column(RegistrationStatus),
        default=RegistrationStatus.JOINED,
        nullable=False,
    )
    details_submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Decision metadata
    decided_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # One registration per user per tournament
        UniqueConstraint("tournament_id", "user_id", name="uq_registration_tournament_user"),
        Index("ix_registration_tournament_status", "tournament_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<TournamentRegistration {self.tournament_id}/{self.user_id} {self.status.value}>"


class TournamentCredential(Base, UUIDMixin):
    """View-only demo account submitted for verification.

    ``investor_password`` is the broker's read-only password. It is stored as
    submitted and only exposed through operator endpoints.
    """

    __tablename__ = "tournament_credentials"

    tournament_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    platform: Mapped[TradingPlatform] = mapped_column(
        _enum_column(TradingPlatform, length=10),
        nullable=False,
    )
    login: Mapped[str] = mapped_column(String(64), nullable=False)
    investor_password: Mapped[str] = mapped_column(String(128), nullable=False)
    server: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[CredentialStatus] = mapped_column(
        _enum_column(CredentialStatus),
        default=CredentialStatus.SUBMITTED,
        nullable=False,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    reviewed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("tournament_id", "user_id", name="uq_credential_tournament_user"),
    )


class TournamentResult(Base):
    """Published ranked result."""

    __tablename__ = "tournament_results"

    tournament_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    rank: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    pnl: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    outcome: Mapped[ResultOutcome] = mapped_column(
        _enum_column(ResultOutcome, length=10),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<TournamentResult {self.tournament_id} #{self.rank}>"
