"""Pydantic v2 schemas for the administrator dashboard."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class TimeRange(BaseModel):
    """The UTC day the overview covers.  ``end`` is exclusive."""

    date: date
    start: datetime
    end: datetime


class HourlyVotes(BaseModel):
    """Distinct voters who cast a ballot within one hour of the day."""

    hour: str = Field(description="Hour label, HH:00")
    votes: int = 0


class DashboardOverviewResponse(BaseModel):
    """Today's participation across the elections an admin manages."""

    time_range: TimeRange
    total_votes_today: int = Field(description="Ballots cast today, one per voter and election")
    total_voters_voted_today: int
    total_voters: int = Field(description="Eligible (active) voters")
    voters_participated_today: int
    participation_percentage_today: float
    total_positions: int
    total_candidates: int
    votes_per_hour: list[HourlyVotes] = Field(default_factory=list)
