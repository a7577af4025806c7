"""Election, Position and Candidate ORM models.

Together they form the ballot schema: an election owns ordered positions,
each position owns its candidates and selection limits.
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ballot_api.models.base import Base, IdMixin, TimestampMixin


class Election(Base, IdMixin, TimestampMixin):
    """A single-organization election with a voting window and lifecycle status."""

    __tablename__ = "elections"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="draft")
    created_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    positions: Mapped[list["Position"]] = relationship(
        back_populates="election",
        cascade="all, delete-orphan",
        order_by="[Position.sort_order, Position.id]",
    )

    __table_args__ = (
        CheckConstraint("status IN ('draft', 'open', 'closed')", name="ck_election_status"),
        Index("idx_elections_status", "status"),
        Index("idx_elections_created_by", "created_by"),
    )


class Position(Base, IdMixin, TimestampMixin):
    """A contestable role on the ballot with its selection-count bounds."""

    __tablename__ = "positions"

    election_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("elections.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    min_votes_allowed: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    max_votes_allowed: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    # Relationships
    election: Mapped[Election] = relationship(back_populates="positions")
    candidates: Mapped[list["Candidate"]] = relationship(
        back_populates="position",
        cascade="all, delete-orphan",
        order_by="Candidate.id",
    )

    __table_args__ = (
        UniqueConstraint("election_id", "title", name="uq_positions_election_title"),
        CheckConstraint("min_votes_allowed >= 1", name="ck_positions_min_votes"),
        CheckConstraint("max_votes_allowed >= min_votes_allowed", name="ck_positions_max_votes"),
        Index("idx_positions_election_sort", "election_id", "sort_order"),
    )


class Candidate(Base, IdMixin, TimestampMixin):
    """A candidate standing for exactly one position."""

    __tablename__ = "candidates"

    election_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("elections.id", ondelete="CASCADE"),
        nullable=False,
    )
    position_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("positions.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    position: Mapped[Position] = relationship(back_populates="candidates")

    __table_args__ = (
        UniqueConstraint("position_id", "name", name="uq_candidates_position_name"),
        Index("idx_candidates_election_id", "election_id"),
    )
