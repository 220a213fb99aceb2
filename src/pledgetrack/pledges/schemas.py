"""Pydantic schemas for pledge endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, EmailStr, Field, PlainSerializer, field_validator

# Decimal in Python, plain JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

PledgeType = Literal["per_unit_uncapped", "per_unit_capped", "flat_rate"]


class CreatePledgeRequest(BaseModel):
    participant_id: int
    donor_name: str = Field(..., max_length=128)
    donor_email: EmailStr
    pledge_type: PledgeType
    amount_per_unit: Decimal | None = None
    max_total_amount: Decimal | None = None
    flat_amount: Decimal | None = None

    @field_validator("donor_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Donor name must contain something besides whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Donor name is required")
        return v

    @field_validator("donor_email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class CreatePledgeResponse(BaseModel):
    success: bool = True
    donor_id: int
    pledge_id: int


class PledgeResponse(BaseModel):
    id: int
    donor_id: int
    donor_name: str
    pledge_type: str
    amount_per_unit: Money | None = None
    max_total_amount: Money | None = None
    flat_amount: Money | None = None
    currency: str
    is_fulfilled: bool
    raised_amount: Money
    maximum_amount: Money
    created_at: datetime


class PledgeListResponse(BaseModel):
    pledges: list[PledgeResponse]
    total: int
