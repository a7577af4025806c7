"""Authorization collaborator.

The voting engine asks capability questions through ``AuthorizationPolicy``
and never inspects roles itself.  ``RolePolicy`` answers them from the
actor's role, active flag and election ownership.
"""

from dataclasses import dataclass
from typing import Protocol

from ballot_api.lib.ballot.errors import ActionNotPermittedError
from ballot_api.lib.ballot.lifecycle import ElectionStatus, is_closed, is_open
from ballot_api.models.election import Election
from ballot_api.models.user import ROLE_ELECTION_ADMIN, ROLE_SUPER_ADMIN, ROLE_VOTER, User


@dataclass(frozen=True)
class ListingScope:
    """Which elections an actor may list: ``None`` means unrestricted."""

    created_by: int | None = None
    statuses: tuple[str, ...] | None = None


class AuthorizationPolicy(Protocol):
    """Capability checks consumed by the services and routers."""

    def can_submit_vote(self, actor: User, election: Election) -> bool: ...

    def can_view_election(self, actor: User, election: Election) -> bool: ...

    def can_view_results(self, actor: User, election: Election) -> bool: ...

    def can_create_election(self, actor: User) -> bool: ...

    def can_manage_election(self, actor: User, election: Election) -> bool: ...

    def can_delete_election(self, actor: User, election: Election) -> bool: ...

    def can_override_schedule(self, actor: User) -> bool: ...

    def can_delete_closed(self, actor: User) -> bool: ...

    def listing_scope(self, actor: User) -> ListingScope: ...


class RolePolicy:
    """Role-based ``AuthorizationPolicy``.

    Super admins may do everything, including opening early, editing open
    elections and deleting closed ones.  Election admins manage the
    elections they created while those are not open.  Voters vote and see
    published (open or closed) elections; they see results once an election
    is closed, or earlier when ``allow_results_before_close`` is set.
    """

    def __init__(self, *, allow_results_before_close: bool = False) -> None:
        self.allow_results_before_close = allow_results_before_close

    @staticmethod
    def _is_super_admin(actor: User) -> bool:
        return actor.role == ROLE_SUPER_ADMIN

    @staticmethod
    def _owns(actor: User, election: Election) -> bool:
        return actor.role == ROLE_ELECTION_ADMIN and election.created_by == actor.id

    def can_submit_vote(self, actor: User, election: Election) -> bool:
        return bool(actor.is_active) and actor.role == ROLE_VOTER

    def can_view_election(self, actor: User, election: Election) -> bool:
        if not actor.is_active:
            return False
        if self._is_super_admin(actor):
            return True
        if actor.role == ROLE_VOTER:
            return election.status != ElectionStatus.DRAFT
        return self._owns(actor, election)

    def can_view_results(self, actor: User, election: Election) -> bool:
        if not self.can_view_election(actor, election):
            return False
        if actor.role in (ROLE_SUPER_ADMIN, ROLE_ELECTION_ADMIN):
            return True
        if is_closed(election):
            return True
        return self.allow_results_before_close

    def can_create_election(self, actor: User) -> bool:
        return bool(actor.is_active) and actor.role in (ROLE_SUPER_ADMIN, ROLE_ELECTION_ADMIN)

    def can_manage_election(self, actor: User, election: Election) -> bool:
        if not actor.is_active:
            return False
        if self._is_super_admin(actor):
            return True
        # Open elections are editable by super admins only.
        if is_open(election):
            return False
        return self._owns(actor, election)

    def can_delete_election(self, actor: User, election: Election) -> bool:
        if not actor.is_active:
            return False
        if self._is_super_admin(actor):
            return True
        if is_closed(election):
            return False
        return self._owns(actor, election)

    def can_override_schedule(self, actor: User) -> bool:
        return bool(actor.is_active) and self._is_super_admin(actor)

    def can_delete_closed(self, actor: User) -> bool:
        return bool(actor.is_active) and self._is_super_admin(actor)

    def listing_scope(self, actor: User) -> ListingScope:
        if actor.role == ROLE_ELECTION_ADMIN:
            return ListingScope(created_by=actor.id)
        if actor.role == ROLE_VOTER:
            return ListingScope(statuses=(ElectionStatus.OPEN.value, ElectionStatus.CLOSED.value))
        return ListingScope()


def ensure(allowed: bool) -> None:
    """Raise ``ActionNotPermittedError`` unless ``allowed``."""
    if not allowed:
        raise ActionNotPermittedError
