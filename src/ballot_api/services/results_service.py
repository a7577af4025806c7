"""Results service: live tallies computed from committed votes.

Read-only: every call recounts the votes table, so repeated calls over the
same committed state return identical results.
"""

from collections import defaultdict

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.lib.ballot import CandidateEntry, percentage, tally_position
from ballot_api.lib.exporter import render_results_csv
from ballot_api.models.vote import Vote
from ballot_api.schemas.results import CandidateResult, ElectionResultsResponse, PositionResult
from ballot_api.services.auth_service import count_active_voters
from ballot_api.services.election_service import get_election


async def _vote_counts(session: AsyncSession, election_id: int) -> dict[int, dict[int, int]]:
    """Votes per candidate, grouped by position."""
    result = await session.execute(
        select(Vote.position_id, Vote.candidate_id, func.count(Vote.id))
        .where(Vote.election_id == election_id)
        .group_by(Vote.position_id, Vote.candidate_id)
    )
    counts: dict[int, dict[int, int]] = defaultdict(dict)
    for position_id, candidate_id, votes in result.all():
        counts[position_id][candidate_id] = int(votes)
    return counts


async def tally_election(session: AsyncSession, election_id: int) -> ElectionResultsResponse | None:
    """Tally an election's results and turnout.

    Args:
        session: Async database session.
        election_id: The election ID.

    Returns:
        The results, or None if the election does not exist.
    """
    election = await get_election(session, election_id)
    if election is None:
        return None

    counts = await _vote_counts(session, election_id)

    totals = await session.execute(
        select(func.count(Vote.id), func.count(distinct(Vote.voter_hash))).where(Vote.election_id == election_id)
    )
    total_votes, voters_participated = totals.one()
    total_voters = await count_active_voters(session)

    positions = []
    for position in election.positions:
        tally = tally_position(
            position.id,
            position.title,
            (CandidateEntry(c.id, c.name, c.photo_path) for c in position.candidates),
            counts.get(position.id, {}),
        )
        positions.append(
            PositionResult(
                id=tally.id,
                title=tally.title,
                total_votes=tally.total_votes,
                candidates=[CandidateResult.model_validate(candidate) for candidate in tally.candidates],
            )
        )

    return ElectionResultsResponse(
        id=election.id,
        title=election.title,
        status=election.status,
        start_datetime=election.start_datetime,
        end_datetime=election.end_datetime,
        total_votes=int(total_votes),
        voters_participated=int(voters_participated),
        total_voters=total_voters,
        voter_turnout_percentage=percentage(int(voters_participated), total_voters),
        positions=positions,
    )


def results_csv(results: ElectionResultsResponse) -> str:
    """Render tallied results as CSV text."""
    return render_results_csv(results.model_dump())
