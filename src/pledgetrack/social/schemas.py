"""Pydantic schemas for activity feed endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from pledgetrack.pledges.schemas import Money


class CreateActivityRequest(BaseModel):
    type: Literal["donation", "milestone", "pledge", "progress"]
    message: str = Field(..., min_length=1, max_length=500)
    amount: Decimal | None = Field(None, ge=0)
    units: int | None = Field(None, ge=0)
    user_name: str | None = Field(None, max_length=128)
    participant_id: int | None = None
    campaign_id: int | None = None


class ActivityResponse(BaseModel):
    id: int
    type: str
    message: str
    amount: Money | None = None
    units: int | None = None
    user_name: str | None = None
    participant_id: int | None = None
    campaign_id: int | None = None
    created_at: datetime


class ActivityFeedResponse(BaseModel):
    ok: bool = True
    items: list[ActivityResponse]


class ActivityStatsResponse(BaseModel):
    window: str
    pledges: int = 0
    donations: int = 0
    progress_units: int = 0
    raised: Money = 0
    spark: list[int] = []


# --- Follows ---


class FollowRequest(BaseModel):
    participant_id: int


class FollowStatusResponse(BaseModel):
    following: bool
    follower_count: int = 0


class FollowResponse(BaseModel):
    ok: bool = True
    inserted: int


class UnfollowResponse(BaseModel):
    ok: bool = True
    deleted: int
