"""Participant lifecycle and read models.

Rules:
- A participant joins an active campaign with an existing challenge type
- goal_amount is a positive number of units, at most max_goal_amount
- Only the owner may end a participant's challenge; ending is terminal
- Read paths recompute fundraising totals from pledges on every call
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.config import get_settings
from pledgetrack.db.models import Campaign, ChallengeType, Participant, ParticipantPost
from pledgetrack.errors import NotFoundError, ValidationError
from pledgetrack.pledges.aggregation import FundraisingTotals, get_participant_totals, get_totals_for_participants

logger = logging.getLogger(__name__)


def unit_for(participant: Participant) -> str:
    """Custom unit if set, else the challenge type's unit."""
    return participant.custom_unit or participant.challenge_type.unit


def challenge_name_for(participant: Participant) -> str:
    """Custom challenge name if set, else the challenge type's name."""
    return participant.custom_challenge_name or participant.challenge_type.name


def progress_pct(current_progress: int, goal_amount: int) -> int:
    """Percent of goal reached, rounded and capped at 100."""
    if not goal_amount or goal_amount <= 0:
        return 0
    return min(100, round(current_progress / goal_amount * 100))


async def get_participant(db: AsyncSession, participant_id: int) -> Participant | None:
    """Get a participant by ID."""
    result = await db.execute(select(Participant).where(Participant.id == participant_id))
    return result.scalar_one_or_none()


async def get_owned_participant(db: AsyncSession, participant_id: int, user_id: str) -> Participant:
    """Get a participant owned by ``user_id`` or raise NotFoundError."""
    participant = await get_participant(db, participant_id)
    if participant is None or participant.user_id != user_id:
        raise NotFoundError("Participant not found or unauthorized")
    return participant


async def create_participant(
    db: AsyncSession,
    user_id: str,
    campaign_id: int,
    challenge_type_id: int,
    goal_amount: int,
    participant_name: str,
    bio: str | None = None,
    custom_unit: str | None = None,
    custom_challenge_name: str | None = None,
) -> Participant:
    """Create a participant in an active campaign."""
    participant_name = (participant_name or "").strip()
    if not participant_name:
        raise ValidationError("Participant name is required")
    if goal_amount <= 0:
        raise ValidationError("goal_amount must be greater than 0")
    max_goal = get_settings().max_goal_amount
    if goal_amount > max_goal:
        raise ValidationError(f"goal_amount must be at most {max_goal:,}")

    campaign = await db.get(Campaign, campaign_id)
    if campaign is None:
        raise NotFoundError("Campaign not found")
    if campaign.status != "active":
        raise ValidationError("Campaign is not accepting participants")

    challenge_type = await db.get(ChallengeType, challenge_type_id)
    if challenge_type is None:
        raise NotFoundError("Challenge type not found")

    now = datetime.now(timezone.utc)
    participant = Participant(
        campaign_id=campaign_id,
        user_id=user_id,
        challenge_type_id=challenge_type_id,
        goal_amount=goal_amount,
        current_progress=0,
        participant_name=participant_name,
        bio=bio or None,
        custom_unit=custom_unit or None,
        custom_challenge_name=custom_challenge_name or None,
        is_active=True,
        is_featured=False,
        created_at=now,
        updated_at=now,
    )
    db.add(participant)
    await db.flush()
    await db.refresh(participant, attribute_names=["campaign", "challenge_type"])

    logger.info("Participant created: id=%d campaign=%d owner=%s", participant.id, campaign_id, user_id)
    return participant


def build_summary(participant: Participant, totals: FundraisingTotals) -> dict[str, Any]:
    """Card fields shared by browse, my-participants and detail views."""
    return {
        "id": participant.id,
        "campaign_id": participant.campaign_id,
        "campaign_title": participant.campaign.title,
        "participant_name": participant.display_name,
        "challenge_name": challenge_name_for(participant),
        "unit": unit_for(participant),
        "goal_amount": participant.goal_amount,
        "current_progress": participant.current_progress,
        "progress_pct": progress_pct(participant.current_progress, participant.goal_amount),
        "bio": participant.bio,
        "is_active": participant.is_active,
        "created_at": participant.created_at,
        "donor_count": totals.donor_count,
        "total_raised": totals.total_raised,
    }


async def get_participant_detail(db: AsyncSession, participant_id: int) -> dict[str, Any]:
    """Participant fields plus donor_count, total_raised and total_potential."""
    participant = await get_participant(db, participant_id)
    if participant is None:
        raise NotFoundError("Participant not found")

    totals = await get_participant_totals(db, participant)
    detail = build_summary(participant, totals)
    detail.update(
        {
            "user_id": participant.user_id,
            "challenge_type_id": participant.challenge_type_id,
            "custom_unit": participant.custom_unit,
            "custom_challenge_name": participant.custom_challenge_name,
            "donation_url": participant.campaign.donation_url,
            "ended_at": participant.ended_at,
            "updated_at": participant.updated_at,
            "total_potential": totals.total_potential,
        }
    )
    return detail


async def list_browse(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[dict[str, Any]], int]:
    """Active participants of active campaigns, newest first, with totals."""
    base = (
        select(Participant)
        .join(Campaign, Participant.campaign_id == Campaign.id)
        .where(Participant.is_active.is_(True), Campaign.status == "active")
    )
    total_result = await db.execute(
        select(func.count(Participant.id))
        .join(Campaign, Participant.campaign_id == Campaign.id)
        .where(Participant.is_active.is_(True), Campaign.status == "active")
    )
    total = total_result.scalar_one()

    result = await db.execute(
        base.order_by(Participant.created_at.desc(), Participant.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    participants = list(result.scalars().all())
    totals = await get_totals_for_participants(db, participants)
    return [build_summary(p, totals[p.id]) for p in participants], total


async def list_user_participants(db: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    """The caller's active participants, newest first, with totals."""
    result = await db.execute(
        select(Participant)
        .where(Participant.user_id == user_id, Participant.is_active.is_(True))
        .order_by(Participant.created_at.desc(), Participant.id.desc())
    )
    participants = list(result.scalars().all())
    totals = await get_totals_for_participants(db, participants)
    return [build_summary(p, totals[p.id]) for p in participants]


async def get_spotlight(db: AsyncSession) -> dict[str, Any] | None:
    """Featured participant, else the most recently updated active one."""
    result = await db.execute(
        select(Participant)
        .where(Participant.is_active.is_(True))
        .order_by(
            Participant.is_featured.desc(),
            Participant.updated_at.desc(),
            Participant.created_at.desc(),
        )
        .limit(1)
    )
    participant = result.scalar_one_or_none()
    if participant is None:
        return None

    return {
        "id": participant.id,
        "participant_name": participant.display_name,
        "campaign_title": participant.campaign.title,
        "challenge_name": challenge_name_for(participant),
        "unit": unit_for(participant),
        "current_progress": participant.current_progress,
        "goal_amount": participant.goal_amount,
        "progress_pct": progress_pct(participant.current_progress, participant.goal_amount),
        "updated_at": participant.updated_at,
    }


async def create_post(
    db: AsyncSession,
    participant_id: int,
    content: str,
    post_type: str = "update",
) -> ParticipantPost:
    """Attach a post to a participant page."""
    post = ParticipantPost(
        participant_id=participant_id,
        content=content,
        post_type=post_type,
        created_at=datetime.now(timezone.utc),
    )
    db.add(post)
    await db.flush()
    return post


async def list_posts(db: AsyncSession, participant_id: int, limit: int = 50) -> list[ParticipantPost]:
    """Posts for a participant, newest first."""
    result = await db.execute(
        select(ParticipantPost)
        .where(ParticipantPost.participant_id == participant_id)
        .order_by(ParticipantPost.created_at.desc(), ParticipantPost.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def create_owner_post(
    db: AsyncSession,
    user_id: str,
    participant_id: int,
    content: str,
    post_type: str = "update",
) -> ParticipantPost:
    """Post written by the participant's owner on their own page."""
    participant = await get_owned_participant(db, participant_id, user_id)
    content = (content or "").strip()
    if not content:
        raise ValidationError("Post content is required")
    return await create_post(db, participant.id, content, post_type)
