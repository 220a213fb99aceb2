"""Endpoints for the caller's preferences and reminder banner."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.auth.dependencies import get_current_user_id
from pledgetrack.database import get_session
from pledgetrack.errors import read_or_empty
from pledgetrack.notifications.schemas import (
    PreferencesResponse,
    ReminderResponse,
    SuccessResponse,
    UpdatePreferencesRequest,
)
from pledgetrack.notifications.service import (
    check_reminder,
    dismiss_banner,
    get_or_create_preferences,
    update_preferences,
)

router = APIRouter(prefix="/api/v1/me", tags=["Notifications"])


@router.get("/notification-preferences", response_model=PreferencesResponse)
async def get_preferences_endpoint(
    response: Response,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> PreferencesResponse:
    """Email opt-ins; first access creates them switched off."""

    async def _load() -> PreferencesResponse:
        prefs = await get_or_create_preferences(db, user_id)
        await db.commit()
        return PreferencesResponse(
            email_challenge_reminders=prefs.email_challenge_reminders,
            email_donor_updates=prefs.email_donor_updates,
        )

    return await read_or_empty(response, _load(), PreferencesResponse())


@router.put("/notification-preferences", response_model=PreferencesResponse)
async def update_preferences_endpoint(
    body: UpdatePreferencesRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> PreferencesResponse:
    prefs = await update_preferences(db, user_id, body.model_dump(exclude_none=True))
    await db.commit()
    return PreferencesResponse(
        email_challenge_reminders=prefs.email_challenge_reminders,
        email_donor_updates=prefs.email_donor_updates,
    )


@router.get("/reminder", response_model=ReminderResponse)
async def reminder_endpoint(
    response: Response,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ReminderResponse:
    """Whether to show the "update your progress" banner."""
    reminder = await read_or_empty(response, check_reminder(db, user_id), {"show_reminder": False})
    return ReminderResponse(**reminder)


@router.post("/dismiss-banner", response_model=SuccessResponse)
async def dismiss_banner_endpoint(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> SuccessResponse:
    """Snooze the reminder banner for a week."""
    await dismiss_banner(db, user_id)
    await db.commit()
    return SuccessResponse()
