"""Campaigns and the challenge catalog."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.db.models import Campaign, ChallengeCategory, ChallengeType, Participant
from pledgetrack.errors import NotFoundError, ValidationError
from pledgetrack.pledges.aggregation import FundraisingTotals, get_totals_for_participants

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------


async def create_campaign(
    db: AsyncSession,
    admin_user_id: str,
    title: str,
    description: str | None = None,
    donation_url: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> Campaign:
    """Create an active campaign administered by the caller."""
    title = (title or "").strip()
    if not title:
        raise ValidationError("Campaign title is required")
    if start_date and end_date and end_date < start_date:
        raise ValidationError("end_date must not be before start_date")

    now = datetime.now(timezone.utc)
    campaign = Campaign(
        title=title,
        description=description,
        status="active",
        start_date=start_date,
        end_date=end_date,
        donation_url=donation_url,
        admin_user_id=admin_user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(campaign)
    await db.flush()
    logger.info("Campaign created: %s (id=%d, admin=%s)", title, campaign.id, admin_user_id)
    return campaign


async def list_active_campaigns(db: AsyncSession) -> list[dict[str, Any]]:
    """Active campaigns, newest first, with participant_count and total_raised.

    Totals only include active participants.
    """
    result = await db.execute(
        select(Campaign).where(Campaign.status == "active").order_by(Campaign.created_at.desc(), Campaign.id.desc())
    )
    campaigns = list(result.scalars().all())
    if not campaigns:
        return []

    participants_result = await db.execute(
        select(Participant).where(
            Participant.campaign_id.in_([c.id for c in campaigns]),
            Participant.is_active.is_(True),
        )
    )
    participants = list(participants_result.scalars().all())
    participant_totals = await get_totals_for_participants(db, participants)

    by_campaign: dict[int, FundraisingTotals] = {c.id: FundraisingTotals() for c in campaigns}
    participant_counts: dict[int, int] = {c.id: 0 for c in campaigns}
    for participant in participants:
        by_campaign[participant.campaign_id].add(participant_totals[participant.id])
        participant_counts[participant.campaign_id] += 1

    return [
        {
            "id": c.id,
            "title": c.title,
            "description": c.description,
            "status": c.status,
            "start_date": c.start_date,
            "end_date": c.end_date,
            "donation_url": c.donation_url,
            "created_at": c.created_at,
            "participant_count": participant_counts[c.id],
            "donor_count": by_campaign[c.id].donor_count,
            "total_raised": by_campaign[c.id].total_raised,
        }
        for c in campaigns
    ]


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


async def list_categories(db: AsyncSession) -> list[dict[str, Any]]:
    """Challenge categories by name, each with its challenge_count."""
    result = await db.execute(
        select(ChallengeCategory, func.count(ChallengeType.id))
        .outerjoin(ChallengeType, ChallengeType.category_id == ChallengeCategory.id)
        .group_by(ChallengeCategory.id)
        .order_by(ChallengeCategory.name)
    )
    return [
        {
            "id": category.id,
            "name": category.name,
            "icon": category.icon,
            "description": category.description,
            "challenge_count": count,
        }
        for category, count in result.all()
    ]


async def list_challenge_types(db: AsyncSession, category_id: int) -> list[ChallengeType]:
    """Types in a category: built-in first, then custom, each by name."""
    result = await db.execute(
        select(ChallengeType)
        .where(ChallengeType.category_id == category_id)
        .order_by(ChallengeType.is_custom.asc(), ChallengeType.name.asc())
    )
    return list(result.scalars().all())


async def create_challenge_type(
    db: AsyncSession,
    user_id: str,
    category_id: int,
    name: str,
    unit: str,
    suggested_min: int | None = None,
    suggested_max: int | None = None,
) -> ChallengeType:
    """Add a user-defined challenge type to a category."""
    category = await db.get(ChallengeCategory, category_id)
    if category is None:
        raise NotFoundError("Challenge category not found")
    if suggested_min is not None and suggested_max is not None and suggested_max < suggested_min:
        raise ValidationError("suggested_max must not be below suggested_min")

    challenge_type = ChallengeType(
        category_id=category_id,
        name=name.strip(),
        unit=unit.strip(),
        suggested_min=suggested_min or None,
        suggested_max=suggested_max or None,
        is_custom=True,
        created_by_user_id=user_id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(challenge_type)
    await db.flush()
    return challenge_type


async def create_category(
    db: AsyncSession,
    name: str,
    icon: str = "",
    description: str | None = None,
) -> ChallengeCategory:
    """Add a challenge category (seed data and admin tooling)."""
    category = ChallengeCategory(
        name=name,
        icon=icon,
        description=description,
        created_at=datetime.now(timezone.utc),
    )
    db.add(category)
    await db.flush()
    return category
