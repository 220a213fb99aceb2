"""Campaign and challenge catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.auth.dependencies import get_current_user_id
from pledgetrack.campaigns.schemas import (
    CampaignResponse,
    CategoryResponse,
    ChallengeTypeResponse,
    CreateCampaignRequest,
    CreateChallengeTypeRequest,
)
from pledgetrack.campaigns.service import (
    create_campaign,
    create_challenge_type,
    list_active_campaigns,
    list_categories,
    list_challenge_types,
)
from pledgetrack.database import get_session
from pledgetrack.errors import read_or_empty

router = APIRouter(prefix="/api/v1", tags=["Campaigns"])


def _type_response(challenge_type) -> ChallengeTypeResponse:  # noqa: ANN001
    return ChallengeTypeResponse(
        id=challenge_type.id,
        category_id=challenge_type.category_id,
        name=challenge_type.name,
        unit=challenge_type.unit,
        suggested_min=challenge_type.suggested_min,
        suggested_max=challenge_type.suggested_max,
        is_custom=challenge_type.is_custom,
    )


@router.get("/campaigns", response_model=list[CampaignResponse])
async def list_campaigns_endpoint(
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> list[CampaignResponse]:
    """Active campaigns with participant counts and money raised."""
    campaigns = await read_or_empty(response, list_active_campaigns(db), [])
    return [CampaignResponse(**c) for c in campaigns]


@router.post("/campaigns", response_model=CampaignResponse, status_code=201)
async def create_campaign_endpoint(
    body: CreateCampaignRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> CampaignResponse:
    """Start a new campaign administered by the caller."""
    campaign = await create_campaign(
        db,
        admin_user_id=user_id,
        title=body.title,
        description=body.description,
        donation_url=body.donation_url,
        start_date=body.start_date,
        end_date=body.end_date,
    )
    await db.commit()
    return CampaignResponse(
        id=campaign.id,
        title=campaign.title,
        description=campaign.description,
        status=campaign.status,
        start_date=campaign.start_date,
        end_date=campaign.end_date,
        donation_url=campaign.donation_url,
        created_at=campaign.created_at,
    )


@router.get("/challenge-categories", response_model=list[CategoryResponse])
async def list_categories_endpoint(
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> list[CategoryResponse]:
    categories = await read_or_empty(response, list_categories(db), [])
    return [CategoryResponse(**c) for c in categories]


@router.get("/challenge-types/{category_id}", response_model=list[ChallengeTypeResponse])
async def list_challenge_types_endpoint(
    category_id: int,
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> list[ChallengeTypeResponse]:
    types = await read_or_empty(response, list_challenge_types(db, category_id), [])
    return [_type_response(t) for t in types]


@router.post("/challenge-types", response_model=ChallengeTypeResponse, status_code=201)
async def create_challenge_type_endpoint(
    body: CreateChallengeTypeRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ChallengeTypeResponse:
    """Add a custom challenge to a category."""
    challenge_type = await create_challenge_type(
        db,
        user_id=user_id,
        category_id=body.category_id,
        name=body.name,
        unit=body.unit,
        suggested_min=body.suggested_min,
        suggested_max=body.suggested_max,
    )
    await db.commit()
    return _type_response(challenge_type)
