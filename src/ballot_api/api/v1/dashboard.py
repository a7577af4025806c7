"""Administrator dashboard API endpoints.

GET /dashboard/overview: today's participation across the caller's elections
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.dependencies import get_async_session, get_authorization_policy, require_role
from ballot_api.models.user import ROLE_ELECTION_ADMIN, ROLE_SUPER_ADMIN, User
from ballot_api.schemas.common import DataResponse
from ballot_api.schemas.dashboard import DashboardOverviewResponse
from ballot_api.services import dashboard_service
from ballot_api.services.authorization_service import AuthorizationPolicy

dashboard_router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@dashboard_router.get("/overview", response_model=DataResponse[DashboardOverviewResponse])
async def overview(
    current_user: Annotated[User, Depends(require_role(ROLE_SUPER_ADMIN, ROLE_ELECTION_ADMIN))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    policy: Annotated[AuthorizationPolicy, Depends(get_authorization_policy)],
) -> DataResponse[DashboardOverviewResponse]:
    """Today's voting activity.  Election admins see only their own elections."""
    data = await dashboard_service.dashboard_overview(session, current_user, policy=policy)
    return DataResponse(data=data)
