"""Integration tests for the administrator dashboard endpoint."""

from httpx import AsyncClient

from ballot_api.lib.ballot import Selection
from ballot_api.services.authorization_service import RolePolicy
from ballot_api.services.vote_service import submit_ballot


class TestDashboardOverview:
    async def test_owner_sees_todays_ballot(
        self, client: AsyncClient, async_session, election_admin, voter, auth_headers, make_election
    ) -> None:
        election = await make_election(created_by=election_admin.id)
        position = election.positions[0]
        await submit_ballot(
            async_session, voter, election.id, [Selection(position.id, position.candidates[0].id)], policy=RolePolicy()
        )

        resp = await client.get("/api/v1/dashboard/overview", headers=auth_headers(election_admin))

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["total_votes_today"] == 1
        assert data["total_voters"] == 1
        assert data["participation_percentage_today"] == 100.0
        assert data["total_positions"] == 1
        assert data["total_candidates"] == 2
        assert len(data["votes_per_hour"]) == 24
        assert sum(bucket["votes"] for bucket in data["votes_per_hour"]) == 1

    async def test_other_admins_elections_excluded(
        self, client: AsyncClient, make_user, auth_headers, make_election
    ) -> None:
        owner = await make_user("owner", "election_admin")
        outsider = await make_user("outsider", "election_admin")
        await make_election(created_by=owner.id)

        resp = await client.get("/api/v1/dashboard/overview", headers=auth_headers(outsider))

        assert resp.status_code == 200
        assert resp.json()["data"]["total_positions"] == 0

    async def test_voters_refused(self, client: AsyncClient, voter, auth_headers) -> None:
        resp = await client.get("/api/v1/dashboard/overview", headers=auth_headers(voter))
        assert resp.status_code == 403

    async def test_requires_authentication(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/dashboard/overview")
        assert resp.status_code == 401
