"""
Tournament lifecycle rules.

Pure, side-effect-free pieces consulted whenever a tournament is displayed
or edited:
- Status clock: effective UPCOMING / LIVE / COMPLETED status
- Prize calculator: per-rank payout schedule
"""

from .prizes import (
    PrizeEntry,
    PrizeSchedule,
    compute_prize_schedule,
    schedule_for,
    validate_breakdown,
)
from .status import EffectiveStatus, compute_status, tournament_status

__all__ = [
    "EffectiveStatus",
    "compute_status",
    "tournament_status",
    "PrizeEntry",
    "PrizeSchedule",
    "compute_prize_schedule",
    "schedule_for",
    "validate_breakdown",
]
