"""Database models."""

from fxleague.models.base import Base, TimestampMixin, UUIDMixin
from fxleague.models.tournament import (
    AdminStatus,
    CredentialStatus,
    Decision,
    RegistrationStatus,
    ResultOutcome,
    Tournament,
    TournamentCredential,
    TournamentRegistration,
    TournamentResult,
    TournamentType,
    TradingPlatform,
)
from fxleague.models.user import Admin, Profile

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Identity
    "Profile",
    "Admin",
    # Tournament
    "Tournament",
    "TournamentRegistration",
    "TournamentCredential",
    "TournamentResult",
    "AdminStatus",
    "TournamentType",
    "RegistrationStatus",
    "CredentialStatus",
    "Decision",
    "TradingPlatform",
    "ResultOutcome",
]
