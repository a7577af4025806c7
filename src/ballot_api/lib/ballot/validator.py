"""Ballot validation.

Checks a proposed list of selections against an election's ballot.  Pure and
side-effect free, so it runs as a cheap pre-check before any transaction.
"""

from collections.abc import Iterable

from ballot_api.lib.ballot.errors import BallotValidationError
from ballot_api.lib.ballot.schema import Ballot, BallotPosition, Selection


def bounds_message(position: BallotPosition) -> str:
    lo, hi = position.selection_bounds
    if lo == hi:
        return f'Position "{position.title}" requires exactly {lo} selection(s).'
    return f'Position "{position.title}" requires between {lo} and {hi} selection(s).'


def validate_selections(ballot: Ballot, selections: Iterable[Selection]) -> dict[int, list[int]]:
    """Validate a submission and group it by position.

    Each selection is checked in submission order: its position must belong
    to the election, its candidate must belong to that position, and the
    pair must not repeat.  Afterwards every position of the election,
    submitted or not, must receive a selection count within its bounds.

    Args:
        ballot: Snapshot of the election's positions and candidates.
        selections: The proposed selections.

    Returns:
        Mapping of position id to the selected candidate ids, in
        submission order.

    Raises:
        BallotValidationError: On the first rule violated.
    """
    positions = {position.id: position for position in ballot.positions}
    by_position: dict[int, list[int]] = {}
    seen: set[tuple[int, int]] = set()

    for selection in selections:
        position_id = selection.position_id
        candidate_id = selection.candidate_id

        position = positions.get(position_id)
        if position is None:
            msg = f"Position {position_id} does not belong to this election."
            raise BallotValidationError(msg)

        if candidate_id not in position.candidate_ids:
            msg = f"Candidate {candidate_id} is invalid for position {position_id}."
            raise BallotValidationError(msg)

        key = (position_id, candidate_id)
        if key in seen:
            msg = f"Candidate {candidate_id} has been selected more than once for position {position_id}."
            raise BallotValidationError(msg)

        seen.add(key)
        by_position.setdefault(position_id, []).append(candidate_id)

    for position in ballot.positions:
        lo, hi = position.selection_bounds
        count = len(by_position.get(position.id, ()))
        if count < lo or count > hi:
            raise BallotValidationError(bounds_message(position))

    return by_position
