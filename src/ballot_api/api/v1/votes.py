"""Vote submission API endpoints.

POST /votes: cast a complete ballot for one election
GET /votes/status/{election_id}: whether the caller has voted
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.dependencies import get_async_session, get_authorization_policy, require_role
from ballot_api.lib.ballot import Selection
from ballot_api.models.user import ROLE_VOTER, User
from ballot_api.schemas.common import DataResponse
from ballot_api.schemas.vote import VoteReceipt, VoteStatusResponse, VoteSubmitRequest
from ballot_api.services import vote_service
from ballot_api.services.authorization_service import AuthorizationPolicy

votes_router = APIRouter(prefix="/votes", tags=["votes"])


@votes_router.post("", response_model=DataResponse[VoteReceipt], status_code=201)
async def submit_votes(
    request: VoteSubmitRequest,
    current_user: Annotated[User, Depends(require_role(ROLE_VOTER))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    policy: Annotated[AuthorizationPolicy, Depends(get_authorization_policy)],
) -> DataResponse[VoteReceipt]:
    """Cast the caller's ballot.  Each voter votes once per election."""
    selections = [Selection(position_id=v.position_id, candidate_id=v.candidate_id) for v in request.votes]
    receipt = await vote_service.submit_ballot(
        session,
        current_user,
        request.election_id,
        selections,
        policy=policy,
    )
    return DataResponse(data=receipt)


@votes_router.get("/status/{election_id}", response_model=DataResponse[VoteStatusResponse])
async def vote_status(
    election_id: int,
    current_user: Annotated[User, Depends(require_role(ROLE_VOTER))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> DataResponse[VoteStatusResponse]:
    """Report whether the caller has a recorded ballot in the election."""
    voted = await vote_service.has_voted(session, current_user.id, election_id)
    return DataResponse(data=VoteStatusResponse(election_id=election_id, has_voted=voted))
