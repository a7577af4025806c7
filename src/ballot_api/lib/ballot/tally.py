"""Tally arithmetic.

Turns per-candidate vote counts into ranked, percentage-weighted position
results.  The service layer supplies counts from committed votes.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

_HUNDREDTHS = Decimal("0.01")


def percentage(part: int, whole: int) -> float:
    """``part / whole * 100`` rounded half-up to two decimals; 0.0 when ``whole`` is 0."""
    if whole <= 0:
        return 0.0
    value = (Decimal(part) * 100 / Decimal(whole)).quantize(_HUNDREDTHS, rounding=ROUND_HALF_UP)
    return float(value)


@dataclass(frozen=True)
class CandidateEntry:
    """A candidate as it appears on the ballot."""

    id: int
    name: str
    photo_path: str | None = None


@dataclass
class CandidateTally:
    id: int
    name: str
    photo_path: str | None
    votes: int
    percentage: float


@dataclass
class PositionTally:
    id: int
    title: str
    total_votes: int
    candidates: list[CandidateTally] = field(default_factory=list)


def tally_position(
    position_id: int,
    title: str,
    candidates: Iterable[CandidateEntry],
    counts: Mapping[int, int],
) -> PositionTally:
    """Rank a position's candidates by votes.

    Candidates without votes count zero.  Ordering is votes descending, then
    candidate id ascending, so repeated tallies order ties identically.

    Args:
        position_id: The position id.
        title: The position title.
        candidates: Every candidate of the position.
        counts: Votes per candidate id for this position.

    Returns:
        The ranked position tally.
    """
    entries = list(candidates)
    total = sum(int(counts.get(entry.id, 0)) for entry in entries)
    ranked = sorted(entries, key=lambda entry: (-int(counts.get(entry.id, 0)), entry.id))
    return PositionTally(
        id=position_id,
        title=title,
        total_votes=total,
        candidates=[
            CandidateTally(
                id=entry.id,
                name=entry.name,
                photo_path=entry.photo_path,
                votes=int(counts.get(entry.id, 0)),
                percentage=percentage(int(counts.get(entry.id, 0)), total),
            )
            for entry in ranked
        ],
    )
