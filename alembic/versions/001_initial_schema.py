"""Initial migration: users, elections, positions, candidates and votes.

Votes are append-only: on PostgreSQL a trigger rejects UPDATE and DELETE on
the votes table, and every foreign key out of votes restricts deletion.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('super_admin', 'election_admin', 'voter')", name="ck_users_role"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "elections",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("created_by", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('draft', 'open', 'closed')", name="ck_election_status"),
    )
    op.create_index("idx_elections_status", "elections", ["status"])
    op.create_index("idx_elections_created_by", "elections", ["created_by"])

    op.create_table(
        "positions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("election_id", sa.Integer, sa.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("min_votes_allowed", sa.Integer, nullable=False, server_default="1"),
        sa.Column("max_votes_allowed", sa.Integer, nullable=False, server_default="1"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("election_id", "title", name="uq_positions_election_title"),
        sa.CheckConstraint("min_votes_allowed >= 1", name="ck_positions_min_votes"),
        sa.CheckConstraint("max_votes_allowed >= min_votes_allowed", name="ck_positions_max_votes"),
    )
    op.create_index("idx_positions_election_sort", "positions", ["election_id", "sort_order"])

    op.create_table(
        "candidates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("election_id", sa.Integer, sa.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position_id", sa.Integer, sa.ForeignKey("positions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("photo_path", sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("position_id", "name", name="uq_candidates_position_name"),
    )
    op.create_index("idx_candidates_election_id", "candidates", ["election_id"])

    op.create_table(
        "votes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("election_id", sa.Integer, sa.ForeignKey("elections.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("position_id", sa.Integer, sa.ForeignKey("positions.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("candidate_id", sa.Integer, sa.ForeignKey("candidates.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("voter_hash", sa.CHAR(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "election_id",
            "position_id",
            "candidate_id",
            "voter_hash",
            name="uq_votes_election_position_candidate_voter",
        ),
    )
    op.create_index("idx_votes_election_voter_hash", "votes", ["election_id", "voter_hash"])
    op.create_index("idx_votes_election_candidate", "votes", ["election_id", "candidate_id"])

    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            """
            CREATE FUNCTION votes_reject_mutation() RETURNS trigger AS $$
            BEGIN
                RAISE EXCEPTION 'votes are immutable (% rejected)', TG_OP;
            END;
            $$ LANGUAGE plpgsql
            """
        )
        op.execute(
            """
            CREATE TRIGGER votes_immutable
            BEFORE UPDATE OR DELETE ON votes
            FOR EACH ROW EXECUTE FUNCTION votes_reject_mutation()
            """
        )


def downgrade() -> None:
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TRIGGER IF EXISTS votes_immutable ON votes")
        op.execute("DROP FUNCTION IF EXISTS votes_reject_mutation()")
    op.drop_table("votes")
    op.drop_table("candidates")
    op.drop_table("positions")
    op.drop_table("elections")
    op.drop_table("users")
