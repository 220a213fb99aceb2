"""Pledge endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.database import get_session
from pledgetrack.errors import read_or_empty
from pledgetrack.participants.service import get_participant
from pledgetrack.pledges.calculator import maximum_amount, raised_amount
from pledgetrack.pledges.schemas import (
    CreatePledgeRequest,
    CreatePledgeResponse,
    PledgeListResponse,
    PledgeResponse,
)
from pledgetrack.pledges.service import create_pledge, list_pledges

router = APIRouter(prefix="/api/v1", tags=["Pledges"])


@router.post("/pledges", response_model=CreatePledgeResponse, status_code=201)
async def create_pledge_endpoint(
    body: CreatePledgeRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> CreatePledgeResponse:
    """Record a pledge against an active participant."""
    donor, pledge = await create_pledge(
        db,
        participant_id=body.participant_id,
        donor_name=body.donor_name,
        donor_email=body.donor_email,
        pledge_type=body.pledge_type,
        amount_per_unit=body.amount_per_unit,
        max_total_amount=body.max_total_amount,
        flat_amount=body.flat_amount,
    )
    await db.commit()
    return CreatePledgeResponse(donor_id=donor.id, pledge_id=pledge.id)


async def _load_pledges(db: AsyncSession, participant_id: int) -> PledgeListResponse:
    participant = await get_participant(db, participant_id)
    if participant is None:
        return PledgeListResponse(pledges=[], total=0)

    rows = await list_pledges(db, participant_id)
    pledges = [
        PledgeResponse(
            id=pledge.id,
            donor_id=donor.id,
            donor_name=donor.name,
            pledge_type=pledge.pledge_type,
            amount_per_unit=pledge.amount_per_unit,
            max_total_amount=pledge.max_total_amount,
            flat_amount=pledge.flat_amount,
            currency=pledge.currency,
            is_fulfilled=pledge.is_fulfilled,
            raised_amount=raised_amount(pledge, participant.current_progress),
            maximum_amount=maximum_amount(pledge, participant.goal_amount),
            created_at=pledge.created_at,
        )
        for pledge, donor in rows
    ]
    return PledgeListResponse(pledges=pledges, total=len(pledges))


@router.get("/participants/{participant_id}/pledges", response_model=PledgeListResponse)
async def list_pledges_endpoint(
    participant_id: int,
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> PledgeListResponse:
    """Pledges on a participant with what each has raised so far."""
    return await read_or_empty(
        response,
        _load_pledges(db, participant_id),
        PledgeListResponse(pledges=[], total=0),
    )
