"""Immutable ballot snapshots.

A ``Ballot`` is the position/candidate graph of one election, detached from
the ORM so that validation and lifecycle checks stay pure.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class BallotPosition:
    """A contestable position with its candidates and selection bounds."""

    id: int
    title: str
    min_votes_allowed: int
    max_votes_allowed: int
    candidate_ids: frozenset[int] = field(default_factory=frozenset)

    @property
    def candidate_count(self) -> int:
        return len(self.candidate_ids)

    @property
    def selection_bounds(self) -> tuple[int, int]:
        """Effective ``(lo, hi)`` selection bounds.

        ``lo`` is never below one and ``hi`` never below ``lo``, whatever the
        stored limits say.
        """
        lo = max(1, int(self.min_votes_allowed))
        hi = max(lo, int(self.max_votes_allowed))
        return lo, hi


@dataclass(frozen=True)
class Ballot:
    """All positions of an election, in display order."""

    election_id: int
    positions: tuple[BallotPosition, ...] = ()

    def position(self, position_id: int) -> BallotPosition | None:
        for position in self.positions:
            if position.id == position_id:
                return position
        return None


@dataclass(frozen=True)
class Selection:
    """One (position, candidate) choice in a submission."""

    position_id: int
    candidate_id: int


def ballot_from_election(election: Any) -> Ballot:
    """Snapshot an ORM election with ``positions`` and their ``candidates`` loaded.

    Positions are expected in display order (the relationship orders them).
    """
    return Ballot(
        election_id=election.id,
        positions=tuple(
            BallotPosition(
                id=position.id,
                title=position.title,
                min_votes_allowed=position.min_votes_allowed,
                max_votes_allowed=position.max_votes_allowed,
                candidate_ids=frozenset(candidate.id for candidate in position.candidates),
            )
            for position in election.positions
        ),
    )
