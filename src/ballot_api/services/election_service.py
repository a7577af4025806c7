"""Election service: business logic for election administration.

Orchestrates election CRUD, lifecycle transitions and ballot schema edits
(positions and candidates).  Lifecycle rules live in
``ballot_api.lib.ballot.lifecycle``; this module loads rows, asks the
authorization collaborator and persists what the rules allow.

Functions taking ``actor=None`` are operator calls (the CLI) and skip the
authorization checks.
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ballot_api.core.locks import ElectionLockRegistry, election_locks
from ballot_api.lib.ballot import (
    BallotValidationError,
    ElectionNotFoundError,
    ElectionStateError,
    ElectionStatus,
    ballot_from_election,
    check_ballot_editable,
    check_deletable,
    has_ended,
    is_accepting_votes,
    plan_update,
    validate_window,
)
from ballot_api.models.election import Candidate, Election, Position
from ballot_api.models.user import User
from ballot_api.models.vote import Vote
from ballot_api.schemas.election import (
    CandidateCreateRequest,
    CandidateResponse,
    CandidateUpdateRequest,
    ElectionCreateRequest,
    ElectionDetailResponse,
    ElectionUpdateRequest,
    PositionCreateRequest,
    PositionResponse,
)
from ballot_api.services.authorization_service import AuthorizationPolicy, ListingScope, ensure


async def get_election(
    session: AsyncSession,
    election_id: int,
    *,
    for_update: bool = False,
) -> Election | None:
    """Get an election by ID with its positions and candidates eagerly loaded.

    Always refreshes identity-map instances so that callers re-reading
    inside a critical section see committed state.

    Args:
        session: Async database session.
        election_id: The election ID.
        for_update: Take a row lock on the election (PostgreSQL).

    Returns:
        Election instance or None if not found.
    """
    query = (
        select(Election)
        .options(selectinload(Election.positions).selectinload(Position.candidates))
        .where(Election.id == election_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def require_election(
    session: AsyncSession,
    election_id: int,
    *,
    for_update: bool = False,
) -> Election:
    """Like ``get_election`` but raises ``ElectionNotFoundError`` when missing."""
    election = await get_election(session, election_id, for_update=for_update)
    if election is None:
        msg = "Election not found."
        raise ElectionNotFoundError(msg)
    return election


async def get_visible_election(
    session: AsyncSession,
    actor: User,
    election_id: int,
    *,
    policy: AuthorizationPolicy,
) -> Election:
    """Load an election the actor is allowed to see."""
    election = await require_election(session, election_id)
    ensure(policy.can_view_election(actor, election))
    return election


async def get_preview(session: AsyncSession, election_id: int) -> Election:
    """Load a draft election for a pre-publication ballot preview.

    Raises:
        ElectionNotFoundError: If the election does not exist.
        ElectionStateError: If the election is no longer a draft, or no
            position has a candidate yet.
    """
    election = await require_election(session, election_id)
    if election.status != ElectionStatus.DRAFT:
        msg = "Election preview is only available while election is in draft mode."
        raise ElectionStateError(msg)
    if not any(position.candidates for position in election.positions):
        msg = "Preview requires at least one position with at least one candidate."
        raise ElectionStateError(msg)
    return election


async def list_elections(
    session: AsyncSession,
    scope: ListingScope | None = None,
    *,
    status: str | None = None,
) -> list[Election]:
    """List elections, newest start first, restricted to the actor's scope.

    Args:
        session: Async database session.
        scope: Listing restrictions from the authorization policy.
        status: Optional lifecycle status filter.

    Returns:
        Elections without their ballots loaded.
    """
    query = select(Election)
    if scope is not None:
        if scope.created_by is not None:
            query = query.where(Election.created_by == scope.created_by)
        if scope.statuses is not None:
            query = query.where(Election.status.in_(scope.statuses))
    if status is not None:
        query = query.where(Election.status == status)
    query = query.order_by(Election.start_datetime.desc(), Election.id.desc())
    result = await session.execute(query)
    return list(result.scalars().all())


async def create_election(
    session: AsyncSession,
    actor: User | None,
    request: ElectionCreateRequest,
    *,
    policy: AuthorizationPolicy | None = None,
) -> Election:
    """Create a new election.  Elections always start as drafts.

    Raises:
        BallotValidationError: If the end time is not after the start time.
        ActionNotPermittedError: If the actor may not create elections.
    """
    if actor is not None and policy is not None:
        ensure(policy.can_create_election(actor))
    validate_window(request.start_datetime, request.end_datetime)

    election = Election(
        title=request.title,
        description=request.description,
        start_datetime=request.start_datetime,
        end_datetime=request.end_datetime,
        status=ElectionStatus.DRAFT.value,
        created_by=actor.id if actor is not None else None,
    )
    session.add(election)
    await session.commit()
    logger.info("Election {} created", election.id)
    return await require_election(session, election.id)


async def update_election(
    session: AsyncSession,
    actor: User | None,
    election_id: int,
    request: ElectionUpdateRequest,
    *,
    policy: AuthorizationPolicy | None = None,
    now: datetime | None = None,
    locks: ElectionLockRegistry = election_locks,
) -> Election:
    """Apply a partial update, including lifecycle transitions.

    Runs under the same per-election lock and row lock as vote submission so
    that a close cannot interleave with a ballot being recorded.

    Raises:
        ElectionNotFoundError: If the election does not exist.
        ActionNotPermittedError: If the actor may not manage the election.
        ElectionStateError: If the transition or edit is illegal.
        BallotValidationError: If the resulting schedule is malformed.
    """
    now = now or datetime.now(UTC)
    changes = request.model_dump(exclude_unset=True)

    async with locks.hold(election_id):
        election = await require_election(session, election_id, for_update=True)
        can_override = False
        if actor is not None and policy is not None:
            ensure(policy.can_manage_election(actor, election))
            can_override = policy.can_override_schedule(actor)

        previous_status = election.status
        try:
            updates = plan_update(
                election,
                changes,
                ballot_from_election(election).positions,
                now,
                can_override_schedule=can_override,
            )
        except (ElectionStateError, BallotValidationError):
            await session.rollback()
            raise

        for field, value in updates.items():
            setattr(election, field, value)
        await session.commit()

    if updates.get("status", previous_status) != previous_status:
        logger.info("Election {} moved from {} to {}", election_id, previous_status, updates["status"])
    return await require_election(session, election_id)


async def _has_votes(session: AsyncSession, **criteria: int) -> bool:
    query = select(Vote.id).limit(1)
    for column, value in criteria.items():
        query = query.where(getattr(Vote, column) == value)
    result = await session.execute(query)
    return result.first() is not None


async def delete_election(
    session: AsyncSession,
    actor: User | None,
    election_id: int,
    *,
    policy: AuthorizationPolicy | None = None,
    locks: ElectionLockRegistry = election_locks,
) -> None:
    """Delete an election and its ballot.

    Raises:
        ElectionNotFoundError: If the election does not exist.
        ActionNotPermittedError: If the actor may not delete it.
        ElectionStateError: If the election is open, closed without
            privilege, or holds votes.
    """
    async with locks.hold(election_id):
        election = await require_election(session, election_id, for_update=True)
        can_delete_closed = actor is None
        if actor is not None and policy is not None:
            ensure(policy.can_delete_election(actor, election))
            can_delete_closed = policy.can_delete_closed(actor)

        try:
            check_deletable(
                election,
                has_votes=await _has_votes(session, election_id=election_id),
                can_delete_closed=can_delete_closed,
            )
        except ElectionStateError:
            await session.rollback()
            raise

        await session.delete(election)
        await session.commit()

    locks.discard(election_id)
    logger.info("Election {} deleted", election_id)


async def _load_position(session: AsyncSession, position_id: int) -> Position:
    result = await session.execute(
        select(Position)
        .options(selectinload(Position.candidates))
        .where(Position.id == position_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _manageable(
    session: AsyncSession,
    actor: User | None,
    election_id: int,
    policy: AuthorizationPolicy | None,
    action: str,
) -> Election:
    election = await require_election(session, election_id)
    if actor is not None and policy is not None:
        ensure(policy.can_manage_election(actor, election))
    check_ballot_editable(election, action)
    return election


async def _commit_ballot_edit(session: AsyncSession, message: str) -> None:
    """Commit, turning a uniqueness collision into a validation error."""
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise BallotValidationError(message) from e


async def add_position(
    session: AsyncSession,
    actor: User | None,
    election_id: int,
    request: PositionCreateRequest,
    *,
    policy: AuthorizationPolicy | None = None,
) -> Position:
    """Append a position to the end of the election's ballot.

    Raises:
        BallotValidationError: If a position with the same title exists.
    """
    election = await _manageable(session, actor, election_id, policy, "add positions to")

    duplicate = f'Position "{request.title}" already exists in this election.'
    if any(position.title == request.title for position in election.positions):
        raise BallotValidationError(duplicate)

    result = await session.execute(
        select(func.coalesce(func.max(Position.sort_order), 0)).where(Position.election_id == election_id)
    )
    position = Position(
        election_id=election_id,
        title=request.title,
        min_votes_allowed=request.min_votes_allowed,
        max_votes_allowed=request.max_votes_allowed,
        sort_order=int(result.scalar_one()) + 1,
    )
    session.add(position)
    await _commit_ballot_edit(session, duplicate)
    return await _load_position(session, position.id)


async def reorder_positions(
    session: AsyncSession,
    actor: User | None,
    election_id: int,
    position_ids: Sequence[int],
    *,
    policy: AuthorizationPolicy | None = None,
) -> Election:
    """Rewrite the display order of every position in the election.

    Raises:
        BallotValidationError: Unless ``position_ids`` is a permutation of
            the election's position ids.
    """
    election = await _manageable(session, actor, election_id, policy, "reorder positions in")

    by_id = {position.id: position for position in election.positions}
    if len(position_ids) != len(by_id) or set(position_ids) != set(by_id):
        msg = "Position order payload must include every position in the election exactly once."
        raise BallotValidationError(msg)

    for index, position_id in enumerate(position_ids, start=1):
        by_id[position_id].sort_order = index
    await session.commit()
    return await require_election(session, election_id)


def _position_of(election: Election, position_id: int) -> Position:
    for position in election.positions:
        if position.id == position_id:
            return position
    msg = f"Position {position_id} does not belong to this election."
    raise BallotValidationError(msg)


async def _get_candidate(session: AsyncSession, election_id: int, candidate_id: int) -> Candidate:
    result = await session.execute(
        select(Candidate).where(Candidate.id == candidate_id, Candidate.election_id == election_id)
    )
    candidate = result.scalar_one_or_none()
    if candidate is None:
        msg = "Candidate not found."
        raise ElectionNotFoundError(msg)
    return candidate


async def add_candidate(
    session: AsyncSession,
    actor: User | None,
    election_id: int,
    request: CandidateCreateRequest,
    *,
    policy: AuthorizationPolicy | None = None,
) -> Candidate:
    """Add a candidate to one of the election's positions.

    Raises:
        BallotValidationError: If the position is foreign to the election or
            the name is already taken within the position.
    """
    election = await _manageable(session, actor, election_id, policy, "add candidates to")
    position = _position_of(election, request.position_id)

    duplicate = f'Candidate "{request.name}" already exists for position "{position.title}".'
    if any(candidate.name == request.name for candidate in position.candidates):
        raise BallotValidationError(duplicate)

    candidate = Candidate(
        election_id=election_id,
        position_id=position.id,
        name=request.name,
        bio=request.bio,
        photo_path=request.photo_path,
    )
    session.add(candidate)
    await _commit_ballot_edit(session, duplicate)
    await session.refresh(candidate)
    return candidate


async def update_candidate(
    session: AsyncSession,
    actor: User | None,
    election_id: int,
    candidate_id: int,
    request: CandidateUpdateRequest,
    *,
    policy: AuthorizationPolicy | None = None,
) -> Candidate:
    """Partially update a candidate.

    A candidate holding votes keeps its position: the recorded votes
    reference that position.
    """
    election = await _manageable(session, actor, election_id, policy, "update candidates of")
    candidate = await _get_candidate(session, election_id, candidate_id)
    changes = request.model_dump(exclude_unset=True)

    new_position_id = changes.get("position_id")
    if new_position_id is not None and new_position_id != candidate.position_id:
        _position_of(election, new_position_id)
        if await _has_votes(session, candidate_id=candidate_id):
            msg = "Candidate with votes cannot be moved to another position."
            raise BallotValidationError(msg)

    for field in ("position_id", "name"):
        if field in changes and changes[field] is None:
            del changes[field]
    for field, value in changes.items():
        setattr(candidate, field, value)

    await _commit_ballot_edit(session, f'Candidate "{candidate.name}" already exists for this position.')
    await session.refresh(candidate)
    return candidate


async def delete_candidate(
    session: AsyncSession,
    actor: User | None,
    election_id: int,
    candidate_id: int,
    *,
    policy: AuthorizationPolicy | None = None,
) -> None:
    """Remove a candidate that has not received any votes."""
    await _manageable(session, actor, election_id, policy, "delete candidates from")
    candidate = await _get_candidate(session, election_id, candidate_id)
    if await _has_votes(session, candidate_id=candidate_id):
        msg = "Candidate with votes cannot be deleted."
        raise BallotValidationError(msg)
    await session.delete(candidate)
    await session.commit()


def build_detail_response(election: Election, now: datetime | None = None) -> ElectionDetailResponse:
    """Build an ElectionDetailResponse from an Election with its ballot loaded."""
    now = now or datetime.now(UTC)
    return ElectionDetailResponse(
        id=election.id,
        title=election.title,
        description=election.description,
        start_datetime=election.start_datetime,
        end_datetime=election.end_datetime,
        status=election.status,
        created_by=election.created_by,
        has_ended=has_ended(election, now),
        accepting_votes=is_accepting_votes(election, now),
        created_at=election.created_at,
        updated_at=election.updated_at,
        positions=[
            PositionResponse(
                id=position.id,
                title=position.title,
                min_votes_allowed=position.min_votes_allowed,
                max_votes_allowed=position.max_votes_allowed,
                sort_order=position.sort_order,
                candidates=[CandidateResponse.model_validate(candidate) for candidate in position.candidates],
            )
            for position in election.positions
        ],
    )
