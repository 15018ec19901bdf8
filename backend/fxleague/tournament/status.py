"""
Tournament Status Clock.

Effective status is derived on every read from the schedule and the
operator-set flag. There is no scheduler: a tournament "goes live" only in
the sense that the next read computes LIVE.

Precedence:
    1. admin_status == COMPLETED       -> COMPLETED (override wins over time)
    2. end set and now > end           -> COMPLETED
    3. start <= now (<= end if set)    -> LIVE
    4. otherwise                       -> UPCOMING
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from fxleague.models.tournament import AdminStatus, Tournament


class EffectiveStatus(str, Enum):
    """Status shown to readers."""

    UPCOMING = "UPCOMING"
    LIVE = "LIVE"
    COMPLETED = "COMPLETED"


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; stored values are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def compute_status(
    now: datetime,
    start: datetime,
    end: Optional[datetime],
    admin_status: Optional[AdminStatus],
) -> EffectiveStatus:
    """Derive the effective status of a tournament.

    Args:
        now: Current instant
        start: Scheduled start
        end: Scheduled end, or None for open-ended tournaments
        admin_status: Operator flag

    Returns:
        EffectiveStatus
    """
    if admin_status == AdminStatus.COMPLETED:
        return EffectiveStatus.COMPLETED

    now = as_utc(now)
    start = as_utc(start)
    end = as_utc(end) if end is not None else None

    if end is not None and now > end:
        return EffectiveStatus.COMPLETED

    if start <= now:
        return EffectiveStatus.LIVE

    return EffectiveStatus.UPCOMING


def tournament_status(
    tournament: Tournament,
    now: Optional[datetime] = None,
) -> EffectiveStatus:
    """compute_status() for a stored tournament."""
    return compute_status(
        now=now or datetime.now(timezone.utc),
        start=tournament.start_at,
        end=tournament.end_at,
        admin_status=tournament.admin_status,
    )
