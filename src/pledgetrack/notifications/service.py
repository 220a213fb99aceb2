"""Notification preferences and the "update your progress" reminder banner."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.config import get_settings
from pledgetrack.db.models import NotificationPreferences, Participant, ProgressLog
from pledgetrack.participants.service import challenge_name_for
from pledgetrack.social.activity_service import as_utc

BANNER_SNOOZE = timedelta(days=7)


async def get_or_create_preferences(db: AsyncSession, user_id: str) -> NotificationPreferences:
    """Preferences for a user, created with every opt-in off on first access."""
    query = select(NotificationPreferences).where(NotificationPreferences.user_id == user_id)
    result = await db.execute(query)
    prefs = result.scalar_one_or_none()
    if prefs is not None:
        return prefs

    prefs = NotificationPreferences(
        user_id=user_id,
        email_challenge_reminders=False,
        email_donor_updates=False,
        updated_at=datetime.now(timezone.utc),
    )
    try:
        async with db.begin_nested():
            db.add(prefs)
            await db.flush()
    except IntegrityError:
        result = await db.execute(query)
        return result.scalar_one()
    return prefs


async def update_preferences(
    db: AsyncSession,
    user_id: str,
    updates: dict[str, bool],
) -> NotificationPreferences:
    """Apply the provided opt-in flags; omitted flags keep their value."""
    prefs = await get_or_create_preferences(db, user_id)
    for field in ("email_challenge_reminders", "email_donor_updates"):
        if updates.get(field) is not None:
            setattr(prefs, field, updates[field])
    prefs.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return prefs


async def dismiss_banner(db: AsyncSession, user_id: str) -> NotificationPreferences:
    """Snooze the reminder banner for a week."""
    prefs = await get_or_create_preferences(db, user_id)
    now = datetime.now(timezone.utc)
    prefs.last_banner_dismissed = now
    prefs.updated_at = now
    await db.flush()
    return prefs


async def check_reminder(
    db: AsyncSession,
    user_id: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Reminder banner payload for the newest active participant with stale progress."""
    now = now or datetime.now(timezone.utc)

    result = await db.execute(
        select(NotificationPreferences.last_banner_dismissed).where(NotificationPreferences.user_id == user_id)
    )
    last_dismissed = result.scalar_one_or_none()
    if last_dismissed is not None and as_utc(last_dismissed) > now - BANNER_SNOOZE:
        return {"show_reminder": False}

    stale_cutoff = now - timedelta(days=get_settings().reminder_stale_days)
    last_log = (
        select(func.max(ProgressLog.created_at))
        .where(ProgressLog.participant_id == Participant.id)
        .correlate(Participant)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Participant)
        .where(
            Participant.user_id == user_id,
            Participant.is_active.is_(True),
            (last_log.is_(None)) | (last_log < stale_cutoff),
        )
        .order_by(Participant.created_at.desc(), Participant.id.desc())
        .limit(1)
    )
    stale = result.scalar_one_or_none()
    if stale is None:
        return {"show_reminder": False}

    return {
        "show_reminder": True,
        "type": "participant",
        "message": "Is your challenge progress up to date?",
        "action_text": "Update Progress",
        "action_url": f"/participant/{stale.id}?action=progress",
        "participant_id": stale.id,
        "challenge_name": challenge_name_for(stale),
    }
