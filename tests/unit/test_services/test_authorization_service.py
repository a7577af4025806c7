"""Tests for the role-based authorization policy."""

import pytest

from ballot_api.lib.ballot import ActionNotPermittedError
from ballot_api.models.election import Election
from ballot_api.models.user import ROLE_ELECTION_ADMIN, ROLE_SUPER_ADMIN, ROLE_VOTER, User
from ballot_api.services.authorization_service import ListingScope, RolePolicy, ensure


def _user(role: str, user_id: int = 1, *, is_active: bool = True) -> User:
    return User(id=user_id, username=f"user{user_id}", name="User", hashed_password="x", role=role, is_active=is_active)


def _election(status: str, created_by: int | None = 1) -> Election:
    return Election(id=10, title="Council", status=status, created_by=created_by)


ROOT = _user(ROLE_SUPER_ADMIN, 1)
OWNER = _user(ROLE_ELECTION_ADMIN, 2)
OTHER_ADMIN = _user(ROLE_ELECTION_ADMIN, 3)
VOTER = _user(ROLE_VOTER, 4)


@pytest.fixture
def policy() -> RolePolicy:
    return RolePolicy()


class TestSubmitVote:
    def test_only_active_voters(self, policy: RolePolicy) -> None:
        election = _election("open")
        assert policy.can_submit_vote(VOTER, election)
        assert not policy.can_submit_vote(_user(ROLE_VOTER, 5, is_active=False), election)
        assert not policy.can_submit_vote(ROOT, election)
        assert not policy.can_submit_vote(OWNER, election)


class TestViewElection:
    @pytest.mark.parametrize(("status", "visible"), [("draft", False), ("open", True), ("closed", True)])
    def test_voter_sees_published(self, policy: RolePolicy, status: str, visible: bool) -> None:
        assert policy.can_view_election(VOTER, _election(status)) is visible

    def test_admin_sees_own(self, policy: RolePolicy) -> None:
        election = _election("draft", created_by=OWNER.id)
        assert policy.can_view_election(OWNER, election)
        assert not policy.can_view_election(OTHER_ADMIN, election)
        assert policy.can_view_election(ROOT, election)


class TestViewResults:
    def test_voter_waits_for_close(self, policy: RolePolicy) -> None:
        assert not policy.can_view_results(VOTER, _election("open"))
        assert policy.can_view_results(VOTER, _election("closed"))

    def test_flag_publishes_live_results(self) -> None:
        assert RolePolicy(allow_results_before_close=True).can_view_results(VOTER, _election("open"))

    def test_admins_see_live_results(self, policy: RolePolicy) -> None:
        election = _election("open", created_by=OWNER.id)
        assert policy.can_view_results(ROOT, election)
        assert policy.can_view_results(OWNER, election)
        assert not policy.can_view_results(OTHER_ADMIN, election)


class TestManageElection:
    def test_open_elections_need_super_admin(self, policy: RolePolicy) -> None:
        election = _election("open", created_by=OWNER.id)
        assert policy.can_manage_election(ROOT, election)
        assert not policy.can_manage_election(OWNER, election)

    def test_owner_manages_draft(self, policy: RolePolicy) -> None:
        election = _election("draft", created_by=OWNER.id)
        assert policy.can_manage_election(OWNER, election)
        assert not policy.can_manage_election(OTHER_ADMIN, election)
        assert not policy.can_manage_election(VOTER, election)

    def test_create(self, policy: RolePolicy) -> None:
        assert policy.can_create_election(ROOT)
        assert policy.can_create_election(OWNER)
        assert not policy.can_create_election(VOTER)
        assert not policy.can_create_election(_user(ROLE_SUPER_ADMIN, 9, is_active=False))


class TestDeleteElection:
    def test_owner_cannot_delete_closed(self, policy: RolePolicy) -> None:
        assert policy.can_delete_election(OWNER, _election("draft", created_by=OWNER.id))
        assert not policy.can_delete_election(OWNER, _election("closed", created_by=OWNER.id))
        assert policy.can_delete_election(ROOT, _election("closed", created_by=OWNER.id))

    def test_privileges(self, policy: RolePolicy) -> None:
        assert policy.can_delete_closed(ROOT)
        assert not policy.can_delete_closed(OWNER)
        assert policy.can_override_schedule(ROOT)
        assert not policy.can_override_schedule(OWNER)


class TestListingScope:
    def test_scopes(self, policy: RolePolicy) -> None:
        assert policy.listing_scope(ROOT) == ListingScope()
        assert policy.listing_scope(OWNER) == ListingScope(created_by=OWNER.id)
        assert policy.listing_scope(VOTER) == ListingScope(statuses=("open", "closed"))


def test_ensure() -> None:
    ensure(True)
    with pytest.raises(ActionNotPermittedError, match="This action is unauthorized."):
        ensure(False)
