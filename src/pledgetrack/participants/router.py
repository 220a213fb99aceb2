"""Participant, progress and browse endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.auth.dependencies import get_current_user_id
from pledgetrack.config import get_settings
from pledgetrack.database import get_session
from pledgetrack.email.service import get_email_service
from pledgetrack.errors import read_or_empty
from pledgetrack.participants.completion import end_participant, notify_donors
from pledgetrack.participants.progress_service import append_progress, list_progress
from pledgetrack.participants.schemas import (
    BrowseResponse,
    ChallengeSummaryResponse,
    CreateParticipantRequest,
    CreateParticipantResponse,
    CreatePostRequest,
    CreatePostResponse,
    EndParticipantResponse,
    LogProgressRequest,
    LogProgressResponse,
    ParticipantDetail,
    ParticipantSummary,
    ParticipantUnavailable,
    PostResponse,
    ProgressLogResponse,
    SpotlightResponse,
)
from pledgetrack.participants.service import (
    create_owner_post,
    create_participant,
    get_participant_detail,
    get_spotlight,
    list_browse,
    list_posts,
    list_user_participants,
)
from pledgetrack.pledges.calculator import ZERO
from pledgetrack.redis_client import get_redis_or_none

router = APIRouter(prefix="/api/v1", tags=["Participants"])


@router.post("/participants", response_model=CreateParticipantResponse, status_code=201)
async def create_participant_endpoint(
    body: CreateParticipantRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> CreateParticipantResponse:
    """Join a campaign with a challenge and a goal."""
    participant = await create_participant(
        db,
        user_id=user_id,
        campaign_id=body.campaign_id,
        challenge_type_id=body.challenge_type_id,
        goal_amount=body.goal_amount,
        participant_name=body.participant_name,
        bio=body.bio,
        custom_unit=body.custom_unit,
        custom_challenge_name=body.custom_challenge_name,
    )
    await db.commit()
    return CreateParticipantResponse(id=participant.id)


@router.get("/participants/{participant_id}", response_model=ParticipantDetail | ParticipantUnavailable)
async def get_participant_endpoint(
    participant_id: int,
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ParticipantDetail | ParticipantUnavailable:
    """Participant page with live fundraising totals."""
    detail = await read_or_empty(response, get_participant_detail(db, participant_id), None)
    if detail is None:
        return ParticipantUnavailable(id=participant_id)
    return ParticipantDetail(**detail)


@router.get(
    "/participants/{participant_id}/summary",
    response_model=ChallengeSummaryResponse | ParticipantUnavailable,
)
async def challenge_summary_endpoint(
    participant_id: int,
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ChallengeSummaryResponse | ParticipantUnavailable:
    """Final progress and amount raised, shown once a challenge is over."""
    detail = await read_or_empty(response, get_participant_detail(db, participant_id), None)
    if detail is None:
        return ParticipantUnavailable(id=participant_id)
    return ChallengeSummaryResponse(**detail)


@router.post("/participants/{participant_id}/end", response_model=EndParticipantResponse)
async def end_participant_endpoint(
    participant_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> EndParticipantResponse:
    """End the owner's challenge and email every donor their final amount."""
    participant, statements = await end_participant(db, user_id, participant_id)
    await db.commit()

    donors_notified = await notify_donors(get_email_service(get_redis_or_none()), participant, statements)
    return EndParticipantResponse(
        final_progress=participant.current_progress,
        total_raised=sum((s.amount_owed for s in statements), start=ZERO),
        donors_notified=donors_notified,
    )


@router.get("/participants/{participant_id}/progress", response_model=list[ProgressLogResponse])
async def list_progress_endpoint(
    participant_id: int,
    response: Response,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> list[ProgressLogResponse]:
    """Progress ledger, most recent first."""
    entries = await read_or_empty(response, list_progress(db, participant_id, limit=limit), [])
    return [
        ProgressLogResponse(
            id=e.id,
            units_completed=e.units_completed,
            log_date=e.log_date,
            notes=e.notes,
            created_at=e.created_at,
        )
        for e in entries
    ]


@router.get("/participants/{participant_id}/posts", response_model=list[PostResponse])
async def list_posts_endpoint(
    participant_id: int,
    response: Response,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> list[PostResponse]:
    posts = await read_or_empty(response, list_posts(db, participant_id, limit=limit), [])
    return [
        PostResponse(id=p.id, content=p.content, post_type=p.post_type, created_at=p.created_at)
        for p in posts
    ]


@router.post("/posts", response_model=CreatePostResponse, status_code=201)
async def create_post_endpoint(
    body: CreatePostRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> CreatePostResponse:
    """Owner update on their participant page."""
    post = await create_owner_post(db, user_id, body.participant_id, body.content, body.post_type)
    await db.commit()
    return CreatePostResponse(id=post.id)


@router.post("/progress", response_model=LogProgressResponse, status_code=201)
async def log_progress_endpoint(
    body: LogProgressRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> LogProgressResponse:
    """Append units to the owner's progress ledger."""
    entry, new_total = await append_progress(
        db,
        user_id=user_id,
        participant_id=body.participant_id,
        units_completed=body.units_completed,
        log_date=body.log_date,
        notes=body.notes,
    )
    await db.commit()
    return LogProgressResponse(progress_log_id=entry.id, new_total_progress=new_total)


@router.get("/browse", response_model=BrowseResponse)
async def browse_endpoint(
    response: Response,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> BrowseResponse:
    """Active participants of active campaigns, newest first."""
    per_page = per_page or get_settings().browse_page_size
    items, total = await read_or_empty(response, list_browse(db, page=page, per_page=per_page), ([], 0))
    return BrowseResponse(
        participants=[ParticipantSummary(**item) for item in items],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/spotlight", response_model=SpotlightResponse)
async def spotlight_endpoint(
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> SpotlightResponse:
    """Featured participant for the landing page."""
    spotlight = await read_or_empty(response, get_spotlight(db), None)
    if spotlight is None:
        return SpotlightResponse(empty=True)
    return SpotlightResponse(
        id=spotlight["id"],
        participant_name=spotlight["participant_name"],
        campaign_title=spotlight["campaign_title"],
        challenge_name=spotlight["challenge_name"],
        unit=spotlight["unit"],
        current_progress=spotlight["current_progress"],
        goal_amount=spotlight["goal_amount"],
        progress_pct=spotlight["progress_pct"],
    )


@router.get("/me/participants", response_model=list[ParticipantSummary])
async def my_participants_endpoint(
    response: Response,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> list[ParticipantSummary]:
    """The caller's active challenges."""
    items = await read_or_empty(response, list_user_participants(db, user_id), [])
    return [ParticipantSummary(**item) for item in items]
