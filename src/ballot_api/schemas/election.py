"""Pydantic v2 schemas for election administration endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

# --- Request schemas ---


class ElectionCreateRequest(BaseModel):
    """Request body for creating an election.  New elections always start as drafts."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    start_datetime: datetime
    end_datetime: datetime


class ElectionUpdateRequest(BaseModel):
    """Partial update of an election's details, schedule or status."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None
    status: Literal["draft", "open", "closed"] | None = None


class PositionCreateRequest(BaseModel):
    """Request body for adding a position to an election's ballot."""

    title: str = Field(min_length=1, max_length=255)
    min_votes_allowed: int = Field(default=1, ge=1, le=100)
    max_votes_allowed: int = Field(default=1, ge=1, le=100)

    @model_validator(mode="after")
    def check_bounds(self) -> "PositionCreateRequest":
        if self.max_votes_allowed < self.min_votes_allowed:
            msg = "max_votes_allowed must be greater than or equal to min_votes_allowed"
            raise ValueError(msg)
        return self


class PositionReorderRequest(BaseModel):
    """Every position id of the election, in the desired display order."""

    positions: list[int] = Field(min_length=1)


class CandidateCreateRequest(BaseModel):
    """Request body for adding a candidate to a position."""

    position_id: int
    name: str = Field(min_length=1, max_length=255)
    bio: str | None = Field(default=None, max_length=5000)
    photo_path: str | None = Field(default=None, max_length=500)


class CandidateUpdateRequest(BaseModel):
    """Partial update of a candidate."""

    position_id: int | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    bio: str | None = Field(default=None, max_length=5000)
    photo_path: str | None = Field(default=None, max_length=500)


# --- Response schemas ---


class CandidateResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    position_id: int
    name: str
    bio: str | None = None
    photo_path: str | None = None


class PositionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    title: str
    min_votes_allowed: int
    max_votes_allowed: int
    sort_order: int
    candidates: list[CandidateResponse] = Field(default_factory=list)


class ElectionSummary(BaseModel):
    """Election summary for list endpoints."""

    model_config = {"from_attributes": True}

    id: int
    title: str
    description: str | None = None
    start_datetime: datetime
    end_datetime: datetime
    status: str
    created_by: int | None = None


class ElectionDetailResponse(ElectionSummary):
    """Full election detail including the ballot."""

    has_ended: bool
    accepting_votes: bool
    created_at: datetime
    updated_at: datetime
    positions: list[PositionResponse] = Field(default_factory=list)
