"""Ballot library: the pure core of the voting engine.

Public API:
    - ElectionStatus, plan_update, check_deletable: lifecycle state machine
    - voter_hash: one-way voter token
    - validate_selections: ballot validation
    - tally_position, percentage: results arithmetic
    - BallotError and subclasses: business error taxonomy
"""

from ballot_api.lib.ballot.anonymizer import VOTER_HASH_LENGTH, voter_hash
from ballot_api.lib.ballot.errors import (
    ActionNotPermittedError,
    BallotError,
    BallotValidationError,
    ElectionNotFoundError,
    ElectionStateError,
    VoteConflictError,
    VoteIntegrityError,
)
from ballot_api.lib.ballot.lifecycle import (
    ElectionStatus,
    as_utc,
    check_ballot_editable,
    check_deletable,
    fill_problem,
    has_ended,
    has_started,
    is_accepting_votes,
    is_closed,
    is_open,
    plan_update,
    validate_window,
)
from ballot_api.lib.ballot.schema import Ballot, BallotPosition, Selection, ballot_from_election
from ballot_api.lib.ballot.tally import CandidateEntry, CandidateTally, PositionTally, percentage, tally_position
from ballot_api.lib.ballot.validator import validate_selections

__all__ = [
    "VOTER_HASH_LENGTH",
    "ActionNotPermittedError",
    "Ballot",
    "BallotError",
    "BallotPosition",
    "BallotValidationError",
    "CandidateEntry",
    "CandidateTally",
    "ElectionNotFoundError",
    "ElectionStateError",
    "ElectionStatus",
    "PositionTally",
    "Selection",
    "VoteConflictError",
    "VoteIntegrityError",
    "as_utc",
    "ballot_from_election",
    "check_ballot_editable",
    "check_deletable",
    "fill_problem",
    "has_ended",
    "has_started",
    "is_accepting_votes",
    "is_closed",
    "is_open",
    "percentage",
    "plan_update",
    "tally_position",
    "validate_selections",
    "validate_window",
    "voter_hash",
]
