"""Election administration API endpoints.

GET /elections: list elections visible to the caller
POST /elections: create a draft election
GET /elections/{id}: election detail with ballot
PUT /elections/{id}: partial update, including lifecycle transitions
DELETE /elections/{id}: delete an election without votes
POST /elections/{id}/positions: add a position
PATCH /elections/{id}/positions/reorder: reorder positions
POST /elections/{id}/candidates: add a candidate
PATCH /elections/{id}/candidates/{candidate_id}: update a candidate
DELETE /elections/{id}/candidates/{candidate_id}: delete a candidate
GET /preview/elections/{id}: public ballot preview of a draft election
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.dependencies import (
    get_async_session,
    get_authorization_policy,
    get_current_user,
    require_role,
)
from ballot_api.models.user import ROLE_ELECTION_ADMIN, ROLE_SUPER_ADMIN, User
from ballot_api.schemas.common import DataResponse
from ballot_api.schemas.election import (
    CandidateCreateRequest,
    CandidateResponse,
    CandidateUpdateRequest,
    ElectionCreateRequest,
    ElectionDetailResponse,
    ElectionSummary,
    ElectionUpdateRequest,
    PositionCreateRequest,
    PositionReorderRequest,
    PositionResponse,
)
from ballot_api.services import election_service
from ballot_api.services.authorization_service import AuthorizationPolicy

elections_router = APIRouter(prefix="/elections", tags=["elections"])
preview_router = APIRouter(prefix="/preview", tags=["elections"])

AdminUser = Annotated[User, Depends(require_role(ROLE_SUPER_ADMIN, ROLE_ELECTION_ADMIN))]
Session = Annotated[AsyncSession, Depends(get_async_session)]
Policy = Annotated[AuthorizationPolicy, Depends(get_authorization_policy)]


@elections_router.get("", response_model=DataResponse[list[ElectionSummary]])
async def list_elections(
    current_user: Annotated[User, Depends(get_current_user)],
    session: Session,
    policy: Policy,
    status: Literal["draft", "open", "closed"] | None = Query(default=None, description="Filter by status"),
) -> DataResponse[list[ElectionSummary]]:
    """List the elections the caller may see."""
    elections = await election_service.list_elections(session, policy.listing_scope(current_user), status=status)
    return DataResponse(data=[ElectionSummary.model_validate(e) for e in elections])


@elections_router.post("", response_model=DataResponse[ElectionDetailResponse], status_code=201)
async def create_election(
    request: ElectionCreateRequest,
    current_user: AdminUser,
    session: Session,
    policy: Policy,
) -> DataResponse[ElectionDetailResponse]:
    """Create an election.  New elections are always drafts."""
    election = await election_service.create_election(session, current_user, request, policy=policy)
    return DataResponse(data=election_service.build_detail_response(election))


@elections_router.get("/{election_id}", response_model=DataResponse[ElectionDetailResponse])
async def get_election(
    election_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Session,
    policy: Policy,
) -> DataResponse[ElectionDetailResponse]:
    """Get election detail with its ballot."""
    election = await election_service.get_visible_election(session, current_user, election_id, policy=policy)
    return DataResponse(data=election_service.build_detail_response(election))


@elections_router.put("/{election_id}", response_model=DataResponse[ElectionDetailResponse])
async def update_election(
    election_id: int,
    request: ElectionUpdateRequest,
    current_user: AdminUser,
    session: Session,
    policy: Policy,
) -> DataResponse[ElectionDetailResponse]:
    """Update an election's details, schedule or status."""
    election = await election_service.update_election(session, current_user, election_id, request, policy=policy)
    return DataResponse(data=election_service.build_detail_response(election))


@elections_router.delete("/{election_id}", status_code=204)
async def delete_election(
    election_id: int,
    current_user: AdminUser,
    session: Session,
    policy: Policy,
) -> Response:
    """Delete an election that holds no votes."""
    await election_service.delete_election(session, current_user, election_id, policy=policy)
    return Response(status_code=204)


@elections_router.post(
    "/{election_id}/positions",
    response_model=DataResponse[PositionResponse],
    status_code=201,
)
async def add_position(
    election_id: int,
    request: PositionCreateRequest,
    current_user: AdminUser,
    session: Session,
    policy: Policy,
) -> DataResponse[PositionResponse]:
    """Append a position to the ballot."""
    position = await election_service.add_position(session, current_user, election_id, request, policy=policy)
    return DataResponse(data=PositionResponse.model_validate(position))


@elections_router.patch(
    "/{election_id}/positions/reorder",
    response_model=DataResponse[ElectionDetailResponse],
)
async def reorder_positions(
    election_id: int,
    request: PositionReorderRequest,
    current_user: AdminUser,
    session: Session,
    policy: Policy,
) -> DataResponse[ElectionDetailResponse]:
    """Set the display order of every position."""
    election = await election_service.reorder_positions(
        session, current_user, election_id, request.positions, policy=policy
    )
    return DataResponse(data=election_service.build_detail_response(election))


@elections_router.post(
    "/{election_id}/candidates",
    response_model=DataResponse[CandidateResponse],
    status_code=201,
)
async def add_candidate(
    election_id: int,
    request: CandidateCreateRequest,
    current_user: AdminUser,
    session: Session,
    policy: Policy,
) -> DataResponse[CandidateResponse]:
    """Add a candidate to a position."""
    candidate = await election_service.add_candidate(session, current_user, election_id, request, policy=policy)
    return DataResponse(data=CandidateResponse.model_validate(candidate))


@elections_router.patch(
    "/{election_id}/candidates/{candidate_id}",
    response_model=DataResponse[CandidateResponse],
)
async def update_candidate(
    election_id: int,
    candidate_id: int,
    request: CandidateUpdateRequest,
    current_user: AdminUser,
    session: Session,
    policy: Policy,
) -> DataResponse[CandidateResponse]:
    """Update a candidate."""
    candidate = await election_service.update_candidate(
        session, current_user, election_id, candidate_id, request, policy=policy
    )
    return DataResponse(data=CandidateResponse.model_validate(candidate))


@elections_router.delete("/{election_id}/candidates/{candidate_id}", status_code=204)
async def delete_candidate(
    election_id: int,
    candidate_id: int,
    current_user: AdminUser,
    session: Session,
    policy: Policy,
) -> Response:
    """Delete a candidate without votes."""
    await election_service.delete_candidate(session, current_user, election_id, candidate_id, policy=policy)
    return Response(status_code=204)


@preview_router.get("/elections/{election_id}", response_model=DataResponse[ElectionDetailResponse])
async def preview_election(election_id: int, session: Session) -> DataResponse[ElectionDetailResponse]:
    """Preview a draft election's ballot without signing in."""
    election = await election_service.get_preview(session, election_id)
    return DataResponse(data=election_service.build_detail_response(election))
