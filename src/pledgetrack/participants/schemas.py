"""Pydantic schemas for participant and progress endpoints."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

from pledgetrack.pledges.schemas import Money


class CreateParticipantRequest(BaseModel):
    campaign_id: int
    challenge_type_id: int
    goal_amount: int = Field(..., gt=0)
    participant_name: str = Field(..., min_length=1, max_length=128)
    bio: str | None = Field(None, max_length=2000)
    custom_unit: str | None = Field(None, max_length=32)
    custom_challenge_name: str | None = Field(None, max_length=128)


class CreateParticipantResponse(BaseModel):
    id: int
    success: bool = True


class ParticipantSummary(BaseModel):
    id: int
    campaign_id: int
    campaign_title: str
    participant_name: str
    challenge_name: str
    unit: str
    goal_amount: int
    current_progress: int
    progress_pct: int
    bio: str | None = None
    is_active: bool
    created_at: dt.datetime
    donor_count: int = 0
    total_raised: Money = 0


class ParticipantDetail(ParticipantSummary):
    empty: bool = False
    user_id: str
    challenge_type_id: int
    custom_unit: str | None = None
    custom_challenge_name: str | None = None
    donation_url: str | None = None
    ended_at: dt.datetime | None = None
    updated_at: dt.datetime
    total_potential: Money = 0


class ParticipantUnavailable(BaseModel):
    """Zeroed participant page served while the database is not initialized."""

    empty: bool = True
    id: int
    current_progress: int = 0
    goal_amount: int = 0
    progress_pct: int = 0
    donor_count: int = 0
    total_raised: Money = 0
    total_potential: Money = 0


class ChallengeSummaryResponse(BaseModel):
    """End-of-challenge recap for the thank-you page."""

    empty: bool = False
    id: int
    campaign_title: str
    participant_name: str
    challenge_name: str
    unit: str
    goal_amount: int
    current_progress: int
    progress_pct: int
    is_active: bool
    ended_at: dt.datetime | None = None
    created_at: dt.datetime
    donor_count: int = 0
    total_raised: Money = 0


class BrowseResponse(BaseModel):
    participants: list[ParticipantSummary]
    total: int
    page: int
    per_page: int


class SpotlightResponse(BaseModel):
    empty: bool = False
    id: int | None = None
    participant_name: str | None = None
    campaign_title: str | None = None
    challenge_name: str | None = None
    unit: str | None = None
    current_progress: int = 0
    goal_amount: int = 0
    progress_pct: int = 0


class EndParticipantResponse(BaseModel):
    success: bool = True
    final_progress: int
    total_raised: Money
    donors_notified: int


# --- Progress ---


class LogProgressRequest(BaseModel):
    participant_id: int
    # strict: 2.5 or "3" are rejected rather than coerced
    units_completed: int = Field(..., strict=True)
    log_date: dt.date
    notes: str | None = Field(None, max_length=2000)


class LogProgressResponse(BaseModel):
    success: bool = True
    progress_log_id: int
    new_total_progress: int


class ProgressLogResponse(BaseModel):
    id: int
    units_completed: int
    log_date: dt.date
    notes: str | None = None
    created_at: dt.datetime


class CreatePostRequest(BaseModel):
    participant_id: int
    content: str = Field(..., min_length=1, max_length=2000)
    post_type: Literal["update", "pledge_announcement"] = "update"


class CreatePostResponse(BaseModel):
    success: bool = True
    id: int


class PostResponse(BaseModel):
    id: int
    content: str
    post_type: str
    created_at: dt.datetime
