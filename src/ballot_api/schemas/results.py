"""Pydantic v2 schemas for election results."""

from datetime import datetime

from pydantic import BaseModel, Field


class CandidateResult(BaseModel):
    """A candidate's votes and share of its position's total."""

    model_config = {"from_attributes": True}

    id: int
    name: str
    photo_path: str | None = None
    votes: int = 0
    percentage: float = 0.0


class PositionResult(BaseModel):
    """A position's total and its candidates ranked by votes."""

    model_config = {"from_attributes": True}

    id: int
    title: str
    total_votes: int = 0
    candidates: list[CandidateResult] = Field(default_factory=list)


class ElectionResultsResponse(BaseModel):
    """Live or final tally of an election, with turnout."""

    id: int
    title: str
    status: str
    start_datetime: datetime
    end_datetime: datetime
    total_votes: int = Field(description="Number of recorded selections across all positions")
    voters_participated: int = Field(description="Distinct voter tokens with at least one vote")
    total_voters: int = Field(description="Eligible (active) voters")
    voter_turnout_percentage: float
    positions: list[PositionResult] = Field(default_factory=list)
