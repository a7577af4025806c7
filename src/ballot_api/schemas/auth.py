"""Authentication and user Pydantic v2 schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

ROLE_PATTERN = "^(super_admin|election_admin|voter)$"


class RefreshRequest(BaseModel):
    """Token refresh request."""

    refresh_token: str


class TokenResponse(BaseModel):
    """JWT token pair response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiration in seconds")


class UserCreateRequest(BaseModel):
    """Request to create a new user."""

    username: str = Field(min_length=3, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str = Field(min_length=8, max_length=72)
    role: str = Field(pattern=ROLE_PATTERN)


class UserResponse(BaseModel):
    """User information response."""

    model_config = {"from_attributes": True}

    id: int
    username: str
    name: str
    email: str | None = None
    role: str
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None
