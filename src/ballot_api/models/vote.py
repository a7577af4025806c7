"""Vote model: append-only record of one selection in a cast ballot.

A vote references the voter only through ``voter_hash``.  Rows are never
updated or deleted: flushes that would do so raise ``VoteIntegrityError``,
foreign keys restrict deletion of anything a vote points at, and the
PostgreSQL migration adds a trigger rejecting UPDATE/DELETE on ``votes``.
"""

from datetime import datetime

from sqlalchemy import CHAR, DateTime, ForeignKey, Index, Integer, UniqueConstraint, event, func
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Mapped, Mapper, mapped_column

from ballot_api.lib.ballot.errors import VoteIntegrityError
from ballot_api.models.base import Base, IdMixin


class Vote(Base, IdMixin):
    """One (position, candidate) selection cast under an anonymous voter token."""

    __tablename__ = "votes"

    election_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("elections.id", ondelete="RESTRICT"),
        nullable=False,
    )
    position_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("positions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    candidate_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("candidates.id", ondelete="RESTRICT"),
        nullable=False,
    )
    voter_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint(
            "election_id",
            "position_id",
            "candidate_id",
            "voter_hash",
            name="uq_votes_election_position_candidate_voter",
        ),
        Index("idx_votes_election_voter_hash", "election_id", "voter_hash"),
        Index("idx_votes_election_candidate", "election_id", "candidate_id"),
    )

    def __repr__(self) -> str:
        # voter_hash stays out of reprs and therefore out of logs
        return f"<Vote id={self.id} election={self.election_id} position={self.position_id}>"


@event.listens_for(Vote, "before_update")
def _reject_vote_update(mapper: Mapper, connection: Connection, target: Vote) -> None:
    msg = "Votes are immutable and cannot be updated."
    raise VoteIntegrityError(msg)


@event.listens_for(Vote, "before_delete")
def _reject_vote_delete(mapper: Mapper, connection: Connection, target: Vote) -> None:
    msg = "Votes are immutable and cannot be deleted."
    raise VoteIntegrityError(msg)
