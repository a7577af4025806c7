"""Vote submission coordinator.

Records a voter's complete ballot for one election as a single atomic
append.  An optimistic pre-check runs outside any lock, then the state is
re-checked inside the per-election critical section, where the rows are
written.  The votes unique constraint remains authoritative beneath both.
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.locks import ElectionLockRegistry, election_locks
from ballot_api.lib.ballot import (
    BallotError,
    ElectionStateError,
    Selection,
    VoteConflictError,
    ballot_from_election,
    has_ended,
    is_accepting_votes,
    is_open,
    validate_selections,
    voter_hash,
)
from ballot_api.models.user import User
from ballot_api.models.vote import Vote
from ballot_api.schemas.vote import VoteReceipt
from ballot_api.services.authorization_service import AuthorizationPolicy, ensure
from ballot_api.services.election_service import require_election

ALREADY_VOTED = "You have already voted in this election."
SUBMISSION_CONFLICT = "Vote submission conflict detected. Please refresh and try again."


async def _vote_exists(session: AsyncSession, election_id: int, token: str) -> bool:
    result = await session.execute(
        select(Vote.id).where(Vote.election_id == election_id, Vote.voter_hash == token).limit(1)
    )
    return result.first() is not None


async def has_voted(session: AsyncSession, voter_id: int, election_id: int) -> bool:
    """Whether the voter has a committed ballot in the election.

    Derived from the votes table on every call; nothing is stored on the voter.
    """
    return await _vote_exists(session, election_id, voter_hash(voter_id, election_id))


async def submit_ballot(
    session: AsyncSession,
    voter: User,
    election_id: int,
    selections: Sequence[Selection],
    *,
    policy: AuthorizationPolicy,
    now: datetime | None = None,
    locks: ElectionLockRegistry = election_locks,
) -> VoteReceipt:
    """Record one voter's ballot for an election.

    Either every selection is committed or none is.

    Args:
        session: Async database session.
        voter: The authenticated voter.
        election_id: The election being voted in.
        selections: The voter's (position, candidate) choices.
        policy: Authorization collaborator.
        now: Current time; defaults to the wall clock.
        locks: Per-election lock registry.

    Returns:
        An advisory receipt of the committed ballot.

    Raises:
        ElectionNotFoundError: If the election does not exist.
        ActionNotPermittedError: If the actor may not vote.
        ElectionStateError: If the election is not accepting votes.
        VoteConflictError: If the voter already voted or a concurrent
            submission won the race.
        BallotValidationError: If the selections break a ballot rule.
        SQLAlchemyError: On storage failures, after rolling back.
    """
    now = now or datetime.now(UTC)

    election = await require_election(session, election_id)
    ensure(policy.can_submit_vote(voter, election))

    if not is_open(election):
        msg = "Voting is not open for this election."
        raise ElectionStateError(msg)
    if has_ended(election, now):
        msg = "Election has expired."
        raise ElectionStateError(msg)

    token = voter_hash(voter.id, election_id)
    if await _vote_exists(session, election_id, token):
        raise VoteConflictError(ALREADY_VOTED)

    grouped = validate_selections(ballot_from_election(election), selections)
    # End the read transaction before queueing on the lock.
    await session.commit()

    async with locks.hold(election_id):
        try:
            election = await require_election(session, election_id, for_update=True)
            if not is_accepting_votes(election, now):
                msg = "Voting is not currently available for this election."
                raise ElectionStateError(msg)
            if await _vote_exists(session, election_id, token):
                raise VoteConflictError(ALREADY_VOTED)

            session.add_all(
                Vote(
                    election_id=election_id,
                    position_id=selection.position_id,
                    candidate_id=selection.candidate_id,
                    voter_hash=token,
                )
                for selection in selections
            )
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise VoteConflictError(SUBMISSION_CONFLICT) from e
        except BallotError:
            await session.rollback()
            raise
        except SQLAlchemyError:
            await session.rollback()
            logger.exception("Vote submission for election {} failed", election_id)
            raise

    logger.info("vote.cast election={} voter_hash={} positions={}", election_id, token, len(grouped))
    return VoteReceipt(
        election_id=election_id,
        positions_voted=len(grouped),
        submitted_at=now,
    )
