"""Pydantic schemas for campaign and catalog endpoints."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field

from pledgetrack.pledges.schemas import Money


class CreateCampaignRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    donation_url: str | None = Field(None, max_length=2048)
    start_date: dt.date | None = None
    end_date: dt.date | None = None


class CampaignResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    status: str
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    donation_url: str | None = None
    created_at: dt.datetime
    participant_count: int = 0
    donor_count: int = 0
    total_raised: Money = 0


class CategoryResponse(BaseModel):
    id: int
    name: str
    icon: str
    description: str | None = None
    challenge_count: int = 0


class ChallengeTypeResponse(BaseModel):
    id: int
    category_id: int
    name: str
    unit: str
    suggested_min: int | None = None
    suggested_max: int | None = None
    is_custom: bool


class CreateChallengeTypeRequest(BaseModel):
    category_id: int
    name: str = Field(..., min_length=1, max_length=128)
    unit: str = Field(..., min_length=1, max_length=32)
    suggested_min: int | None = Field(None, ge=0)
    suggested_max: int | None = Field(None, ge=0)
