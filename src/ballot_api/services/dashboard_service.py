"""Dashboard service: today's participation over an admin's elections.

Every figure is recounted from the votes table.  Voters are counted through
their per-election ``voter_hash``, so a ballot with several selections counts
once.
"""

from datetime import UTC, datetime, timedelta

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.lib.ballot import as_utc, percentage
from ballot_api.models.election import Candidate, Election, Position
from ballot_api.models.user import User
from ballot_api.models.vote import Vote
from ballot_api.schemas.dashboard import DashboardOverviewResponse, HourlyVotes, TimeRange
from ballot_api.services.auth_service import count_active_voters
from ballot_api.services.authorization_service import AuthorizationPolicy, ListingScope


def _scoped(query: Select, scope: ListingScope) -> Select:
    if scope.created_by is not None:
        query = query.where(Election.created_by == scope.created_by)
    if scope.statuses is not None:
        query = query.where(Election.status.in_(scope.statuses))
    return query


async def _count(session: AsyncSession, query: Select) -> int:
    result = await session.execute(query)
    return int(result.scalar_one())


async def dashboard_overview(
    session: AsyncSession,
    actor: User,
    *,
    policy: AuthorizationPolicy,
    now: datetime | None = None,
) -> DashboardOverviewResponse:
    """Summarize today's (UTC) voting activity in the elections the actor may list.

    Args:
        session: Async database session.
        actor: The administrator asking.
        policy: Authorization collaborator; its listing scope limits the elections.
        now: Current time; defaults to the wall clock.

    Returns:
        Distinct voters today, per hour and in total, with ballot size totals.
    """
    now = as_utc(now or datetime.now(UTC))
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)
    scope = policy.listing_scope(actor)

    todays_votes = _scoped(
        select(Vote.created_at, Vote.voter_hash)
        .join(Election, Election.id == Vote.election_id)
        .where(Vote.created_at >= day_start, Vote.created_at < day_end),
        scope,
    )
    voters_today = await _count(
        session,
        _scoped(
            select(func.count(distinct(Vote.voter_hash)))
            .join(Election, Election.id == Vote.election_id)
            .where(Vote.created_at >= day_start, Vote.created_at < day_end),
            scope,
        ),
    )

    # Hour extraction differs per dialect, so bucket the rows here.
    hourly: list[set[str]] = [set() for _ in range(24)]
    result = await session.execute(todays_votes)
    for created_at, token in result.all():
        hourly[as_utc(created_at).hour].add(token)

    total_positions = await _count(
        session, _scoped(select(func.count(Position.id)).join(Election, Election.id == Position.election_id), scope)
    )
    total_candidates = await _count(
        session, _scoped(select(func.count(Candidate.id)).join(Election, Election.id == Candidate.election_id), scope)
    )
    total_voters = await count_active_voters(session)

    return DashboardOverviewResponse(
        time_range=TimeRange(date=day_start.date(), start=day_start, end=day_end),
        total_votes_today=voters_today,
        total_voters_voted_today=voters_today,
        total_voters=total_voters,
        voters_participated_today=voters_today,
        participation_percentage_today=percentage(voters_today, total_voters),
        total_positions=total_positions,
        total_candidates=total_candidates,
        votes_per_hour=[HourlyVotes(hour=f"{hour:02d}:00", votes=len(tokens)) for hour, tokens in enumerate(hourly)],
    )
