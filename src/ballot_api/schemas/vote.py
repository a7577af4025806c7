"""Pydantic v2 schemas for ballot submission."""

from datetime import datetime

from pydantic import BaseModel, Field


class SelectionRequest(BaseModel):
    """A single (position, candidate) choice."""

    position_id: int
    candidate_id: int


class VoteSubmitRequest(BaseModel):
    """A complete ballot for one election."""

    election_id: int
    votes: list[SelectionRequest] = Field(min_length=1)


class VoteReceipt(BaseModel):
    """Advisory confirmation of a committed ballot.  Carries no voter identity."""

    election_id: int
    positions_voted: int
    submitted_at: datetime
    message: str = "Vote submitted successfully."


class VoteStatusResponse(BaseModel):
    election_id: int
    has_voted: bool
