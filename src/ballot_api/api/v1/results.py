"""Election results API endpoints.

GET /elections/{id}/results: live tally as JSON
GET /elections/{id}/results/export: the same tally as a CSV attachment
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.dependencies import get_async_session, get_authorization_policy, get_current_user
from ballot_api.lib.ballot import ElectionNotFoundError
from ballot_api.models.user import User
from ballot_api.schemas.common import DataResponse
from ballot_api.schemas.results import ElectionResultsResponse
from ballot_api.services import election_service, results_service
from ballot_api.services.authorization_service import AuthorizationPolicy, ensure

results_router = APIRouter(prefix="/elections", tags=["results"])


async def _authorized_results(
    session: AsyncSession,
    actor: User,
    election_id: int,
    policy: AuthorizationPolicy,
) -> ElectionResultsResponse:
    election = await election_service.require_election(session, election_id)
    ensure(policy.can_view_results(actor, election))
    results = await results_service.tally_election(session, election_id)
    if results is None:
        msg = "Election not found."
        raise ElectionNotFoundError(msg)
    return results


@results_router.get("/{election_id}/results", response_model=DataResponse[ElectionResultsResponse])
async def get_results(
    election_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    policy: Annotated[AuthorizationPolicy, Depends(get_authorization_policy)],
) -> DataResponse[ElectionResultsResponse]:
    """Return ranked per-position results and turnout."""
    results = await _authorized_results(session, current_user, election_id, policy)
    return DataResponse(data=results)


@results_router.get("/{election_id}/results/export")
async def export_results(
    election_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    policy: Annotated[AuthorizationPolicy, Depends(get_authorization_policy)],
) -> Response:
    """Download the results as CSV, one row per candidate per position."""
    results = await _authorized_results(session, current_user, election_id, policy)
    return Response(
        content=results_service.results_csv(results),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="election_{election_id}_results.csv"'},
    )
