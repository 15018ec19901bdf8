"""Business logic services."""

from fxleague.services.decision import DecisionOutcome, DecisionResult, DecisionService
from fxleague.services.identity import (
    Identity,
    IdentityService,
    require_operator,
    require_participant,
)
from fxleague.services.moderation import ModerationService
from fxleague.services.registration import JoinOutcome, JoinResult, RegistrationService
from fxleague.services.results import ResultsService
from fxleague.services.tournaments import TournamentService, TournamentView, slugify

__all__ = [
    "DecisionOutcome",
    "DecisionResult",
    "DecisionService",
    "Identity",
    "IdentityService",
    "JoinOutcome",
    "JoinResult",
    "ModerationService",
    "RegistrationService",
    "ResultsService",
    "TournamentService",
    "TournamentView",
    "require_operator",
    "require_participant",
    "slugify",
]
