"""
Prize Distribution Calculator.

Turns a prize pool, a winners count and an optional operator breakdown into
the per-rank payout schedule used for display and for publishing results.

Explicit breakdown:
    normalized to exactly winners_count positions (missing -> 0,
    negative -> 0, extra positions dropped). The sum is NOT forced to match
    the pool; a mismatch is reported as a warning.

Derived split (no breakdown):
    1 winner  -> 100%
    2 winners -> 70 / 30
    3 winners -> 50 / 30 / 20
    more      -> equal shares
    Each share is round-half-up(pool * weight); the rounding remainder goes
    to the last position so the amounts always sum to the pool exactly.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fxleague.models.tournament import Tournament
from fxleague.utils.errors import ErrorCode, ValidationError

# Hard upper bound when the caller does not supply the configured limit
MAX_WINNERS = 50

DEFAULT_WEIGHTS: Dict[int, Tuple[Fraction, ...]] = {
    1: (Fraction(1),),
    2: (Fraction(7, 10), Fraction(3, 10)),
    3: (Fraction(1, 2), Fraction(3, 10), Fraction(1, 5)),
}


@dataclass(frozen=True)
class PrizeEntry:
    """Payout for one finishing position."""

    position: int
    amount: int

    def to_dict(self) -> Dict[str, int]:
        return {"position": self.position, "amount": self.amount}


@dataclass(frozen=True)
class PrizeSchedule:
    """Per-rank payout list."""

    pool: int
    entries: Tuple[PrizeEntry, ...] = field(default_factory=tuple)
    explicit: bool = False

    @property
    def amounts(self) -> List[int]:
        return [e.amount for e in self.entries]

    @property
    def total(self) -> int:
        return sum(self.amounts)

    @property
    def sum_matches_pool(self) -> bool:
        return self.total == self.pool

    @property
    def warning(self) -> Optional[str]:
        """Operator-facing notice when an explicit split differs from the pool."""
        if self.sum_matches_pool:
            return None
        if self.total > self.pool:
            return f"Prize breakdown total {self.total} exceeds the prize pool {self.pool}"
        return f"Prize breakdown total {self.total} is below the prize pool {self.pool}"

    def amount_for(self, position: int) -> Optional[int]:
        if 1 <= position <= len(self.entries):
            return self.entries[position - 1].amount
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool": self.pool,
            "explicit": self.explicit,
            "total": self.total,
            "sum_matches_pool": self.sum_matches_pool,
            "warning": self.warning,
            "entries": [e.to_dict() for e in self.entries],
        }


# =============================================================================
# Input coercion
# =============================================================================


def _to_decimal(value: Any, what: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(
            f"{what} must be a number",
            code=ErrorCode.INVALID_AMOUNT,
            details={"value": repr(value)},
        )
    try:
        number = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(
            f"{what} must be a number",
            code=ErrorCode.INVALID_AMOUNT,
            details={"value": repr(value)},
        )
    if not number.is_finite():
        raise ValidationError(
            f"{what} must be a finite number",
            code=ErrorCode.INVALID_AMOUNT,
            details={"value": repr(value)},
        )
    return number


def _round_half_up(value: Fraction) -> int:
    return math.floor(value + Fraction(1, 2))


def coerce_pool(pool: Any) -> int:
    """Validate a prize pool: a non-negative whole amount."""
    number = _to_decimal(pool, "Prize pool")
    if number < 0:
        raise ValidationError(
            "Prize pool cannot be negative",
            code=ErrorCode.INVALID_AMOUNT,
            details={"pool": str(number)},
        )
    if number != number.to_integral_value():
        raise ValidationError(
            "Prize pool must be a whole amount",
            code=ErrorCode.INVALID_AMOUNT,
            details={"pool": str(number)},
        )
    return int(number)


def coerce_amount(amount: Any) -> int:
    """Breakdown amount in whole units: rounded half-up, negatives clamped to 0."""
    number = _to_decimal(amount, "Prize amount")
    if number <= 0:
        return 0
    return _round_half_up(Fraction(number))


def check_winners_count(winners_count: Any, max_winners: int = MAX_WINNERS) -> int:
    if isinstance(winners_count, bool) or not isinstance(winners_count, int):
        raise ValidationError(
            "Winners count must be an integer",
            code=ErrorCode.INVALID_WINNERS_COUNT,
            details={"winnersCount": repr(winners_count)},
        )
    if not 1 <= winners_count <= max_winners:
        raise ValidationError(
            f"Winners count must be between 1 and {max_winners}",
            code=ErrorCode.INVALID_WINNERS_COUNT,
            details={"winnersCount": winners_count, "max": max_winners},
        )
    return winners_count


def _entry_fields(item: Any) -> Tuple[Any, Any]:
    if isinstance(item, Mapping):
        return item.get("position"), item.get("amount")
    return getattr(item, "position", None), getattr(item, "amount", None)


def _coerce_position(value: Any) -> int:
    if isinstance(value, bool):
        value = None
    try:
        number = _to_decimal(value, "Prize position")
    except ValidationError:
        raise ValidationError(
            "Prize position must be an integer",
            code=ErrorCode.INVALID_PRIZE_BREAKDOWN,
            details={"position": repr(value)},
        )
    if number != number.to_integral_value():
        raise ValidationError(
            "Prize position must be an integer",
            code=ErrorCode.INVALID_PRIZE_BREAKDOWN,
            details={"position": repr(value)},
        )
    return int(number)


# =============================================================================
# Breakdown handling
# =============================================================================


def normalize_breakdown(breakdown: Iterable[Any], winners_count: int) -> List[PrizeEntry]:
    """Align an explicit breakdown to positions 1..winners_count.

    Later entries for the same position win. Positions outside the range are
    dropped, missing positions get 0.
    """
    by_position: Dict[int, int] = {}
    for item in breakdown:
        position, amount = _entry_fields(item)
        by_position[_coerce_position(position)] = coerce_amount(amount)

    return [
        PrizeEntry(position=pos, amount=by_position.get(pos, 0))
        for pos in range(1, winners_count + 1)
    ]


def validate_breakdown(breakdown: Iterable[Any], winners_count: int) -> List[PrizeEntry]:
    """Strict check for a breakdown an operator is about to store.

    Positions must be exactly the contiguous range 1..winners_count.
    """
    items = list(breakdown)
    positions = []
    for item in items:
        position, _ = _entry_fields(item)
        positions.append(_coerce_position(position))

    expected = list(range(1, winners_count + 1))
    if sorted(positions) != expected:
        raise ValidationError(
            f"Prize positions must be exactly 1..{winners_count}",
            code=ErrorCode.INVALID_PRIZE_BREAKDOWN,
            details={"positions": positions, "winnersCount": winners_count},
        )
    return normalize_breakdown(items, winners_count)


def default_weights(winners_count: int) -> Tuple[Fraction, ...]:
    """Weight per position for the derived split."""
    if winners_count in DEFAULT_WEIGHTS:
        return DEFAULT_WEIGHTS[winners_count]
    return tuple(Fraction(1, winners_count) for _ in range(winners_count))


def derive_split(pool: int, winners_count: int) -> List[PrizeEntry]:
    """Weighted split whose amounts sum to ``pool`` exactly."""
    shares = [_round_half_up(pool * weight) for weight in default_weights(winners_count)]
    shares[-1] += pool - sum(shares)

    # Tiny pools can push the last share below zero; carry the deficit upward
    for idx in range(len(shares) - 1, 0, -1):
        if shares[idx] < 0:
            shares[idx - 1] += shares[idx]
            shares[idx] = 0

    return [PrizeEntry(position=i + 1, amount=amount) for i, amount in enumerate(shares)]


def compute_prize_schedule(
    pool: Any,
    winners_count: Any,
    breakdown: Optional[Iterable[Any]] = None,
    max_winners: int = MAX_WINNERS,
) -> PrizeSchedule:
    """Compute the payout schedule.

    Args:
        pool: Non-negative whole prize pool
        winners_count: Number of paid positions
        breakdown: Optional explicit [{position, amount}] list
        max_winners: Upper bound for winners_count

    Returns:
        PrizeSchedule with exactly winners_count entries

    Raises:
        ValidationError: negative/non-numeric pool or amounts, bad winners count
    """
    pool_amount = coerce_pool(pool)
    count = check_winners_count(winners_count, max_winners)

    items = list(breakdown) if breakdown else []
    if items:
        return PrizeSchedule(
            pool=pool_amount,
            entries=tuple(normalize_breakdown(items, count)),
            explicit=True,
        )

    return PrizeSchedule(
        pool=pool_amount,
        entries=tuple(derive_split(pool_amount, count)),
        explicit=False,
    )


def schedule_for(tournament: Tournament, max_winners: int = MAX_WINNERS) -> PrizeSchedule:
    """compute_prize_schedule() for a stored tournament."""
    return compute_prize_schedule(
        pool=tournament.prize_pool,
        winners_count=tournament.winners_count,
        breakdown=tournament.prize_breakdown,
        max_winners=max(max_winners, tournament.winners_count),
    )
