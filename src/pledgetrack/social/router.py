"""Activity feed and follow endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.auth.dependencies import get_current_user_id
from pledgetrack.database import get_session
from pledgetrack.errors import read_or_empty
from pledgetrack.social.activity_service import (
    DEFAULT_WINDOW,
    get_activities,
    get_activity_stats,
    normalize_window,
    record_activity,
)
from pledgetrack.social.follow_service import count_followers, follow, is_following, unfollow
from pledgetrack.social.schemas import (
    ActivityFeedResponse,
    ActivityResponse,
    ActivityStatsResponse,
    CreateActivityRequest,
    FollowRequest,
    FollowResponse,
    FollowStatusResponse,
    UnfollowResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Activity"])


def _activity_response(event) -> ActivityResponse:  # noqa: ANN001
    return ActivityResponse(
        id=event.id,
        type=event.event_type,
        message=event.message,
        amount=event.amount,
        units=event.units,
        user_name=event.user_name,
        participant_id=event.participant_id,
        campaign_id=event.campaign_id,
        created_at=event.created_at,
    )


@router.get("/activities", response_model=ActivityFeedResponse)
async def list_activities_endpoint(
    response: Response,
    limit: int = Query(50, ge=1, le=200),
    since: datetime | None = Query(None),
    participant_id: int | None = Query(None),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ActivityFeedResponse:
    """Recent activity, newest first."""
    events = await read_or_empty(
        response,
        get_activities(db, limit=limit, since=since, participant_id=participant_id),
        [],
    )
    return ActivityFeedResponse(items=[_activity_response(e) for e in events])


@router.post("/activities", response_model=ActivityResponse, status_code=201)
async def record_activity_endpoint(
    body: CreateActivityRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ActivityResponse:
    """Record an externally reported event such as a completed donation."""
    event = await record_activity(
        db,
        event_type=body.type,
        message=body.message.strip(),
        amount=body.amount,
        units=body.units,
        user_name=body.user_name,
        participant_id=body.participant_id,
        campaign_id=body.campaign_id,
    )
    await db.commit()
    return _activity_response(event)


@router.get("/activity-stats", response_model=ActivityStatsResponse)
async def activity_stats_endpoint(
    response: Response,
    window: str = Query(DEFAULT_WINDOW),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ActivityStatsResponse:
    """Counts and sparkline for the last hour, day or week."""
    stats = await read_or_empty(
        response,
        get_activity_stats(db, window=window),
        {"window": normalize_window(window)},
    )
    return ActivityStatsResponse(**stats)


@router.get("/follows/{participant_id}", response_model=FollowStatusResponse)
async def follow_status_endpoint(
    participant_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> FollowStatusResponse:
    return FollowStatusResponse(
        following=await is_following(db, user_id, participant_id),
        follower_count=await count_followers(db, participant_id),
    )


@router.post("/follows", response_model=FollowResponse)
async def follow_endpoint(
    body: FollowRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> FollowResponse:
    """Follow a participant; following twice is a no-op."""
    inserted = await follow(db, user_id, body.participant_id)
    await db.commit()
    return FollowResponse(inserted=int(inserted))


@router.delete("/follows/{participant_id}", response_model=UnfollowResponse)
async def unfollow_endpoint(
    participant_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> UnfollowResponse:
    deleted = await unfollow(db, user_id, participant_id)
    await db.commit()
    return UnfollowResponse(deleted=deleted)
