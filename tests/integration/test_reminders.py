"""Reminder banner and notification preferences."""

from datetime import date, datetime, timedelta, timezone

import pytest

from pledgetrack.notifications.service import (
    check_reminder,
    dismiss_banner,
    get_or_create_preferences,
    update_preferences,
)
from pledgetrack.participants.progress_service import append_progress

OWNER = "owner-1"


@pytest.mark.asyncio
async def test_preferences_default_off(db_session):
    prefs = await get_or_create_preferences(db_session, OWNER)
    assert prefs.email_challenge_reminders is False
    assert prefs.email_donor_updates is False

    again = await get_or_create_preferences(db_session, OWNER)
    assert again.id == prefs.id


@pytest.mark.asyncio
async def test_partial_update_keeps_other_flag(db_session):
    await update_preferences(db_session, OWNER, {"email_donor_updates": True})
    prefs = await update_preferences(db_session, OWNER, {"email_challenge_reminders": True})
    assert prefs.email_donor_updates is True
    assert prefs.email_challenge_reminders is True


@pytest.mark.asyncio
async def test_reminder_for_participant_without_progress(db_session, participant):
    reminder = await check_reminder(db_session, OWNER)
    assert reminder["show_reminder"] is True
    assert reminder["participant_id"] == participant.id
    assert reminder["challenge_name"] == "Running"
    assert reminder["action_url"] == f"/participant/{participant.id}?action=progress"


@pytest.mark.asyncio
async def test_no_reminder_after_recent_progress(db_session, participant):
    await append_progress(db_session, OWNER, participant.id, 2, date.today())
    await db_session.commit()

    assert await check_reminder(db_session, OWNER) == {"show_reminder": False}


@pytest.mark.asyncio
async def test_reminder_returns_when_progress_goes_stale(db_session, participant):
    await append_progress(db_session, OWNER, participant.id, 2, date.today())
    await db_session.commit()

    later = datetime.now(timezone.utc) + timedelta(days=8)
    reminder = await check_reminder(db_session, OWNER, now=later)
    assert reminder["show_reminder"] is True


@pytest.mark.asyncio
async def test_dismissed_banner_snoozed_for_a_week(db_session, participant):
    await dismiss_banner(db_session, OWNER)
    await db_session.commit()

    assert await check_reminder(db_session, OWNER) == {"show_reminder": False}
    later = datetime.now(timezone.utc) + timedelta(days=8)
    assert (await check_reminder(db_session, OWNER, now=later))["show_reminder"] is True


@pytest.mark.asyncio
async def test_no_reminder_without_participants(db_session):
    assert await check_reminder(db_session, "nobody") == {"show_reminder": False}
