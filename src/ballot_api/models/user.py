"""User model for authentication and role-based access control."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ballot_api.models.base import Base, IdMixin

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ELECTION_ADMIN = "election_admin"
ROLE_VOTER = "voter"
ROLES = (ROLE_SUPER_ADMIN, ROLE_ELECTION_ADMIN, ROLE_VOTER)


class User(Base, IdMixin):
    """An administrator or voter.  Voters are the electorate of every election."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "role IN ('super_admin', 'election_admin', 'voter')",
            name="ck_users_role",
        ),
    )
