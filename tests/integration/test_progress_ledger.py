"""Progress ledger: append-only entries and the derived current_progress."""

from datetime import date

import pytest
from sqlalchemy import func, select

from pledgetrack.config import get_settings
from pledgetrack.db.models import ActivityEvent, ParticipantPost, ProgressLog
from pledgetrack.errors import NotFoundError, ValidationError
from pledgetrack.participants.completion import end_participant
from pledgetrack.participants.progress_service import append_progress, list_progress, recompute_progress

OWNER = "owner-1"
LOG_DATE = date(2026, 3, 1)


async def _ledger_count(db) -> int:
    result = await db.execute(select(func.count(ProgressLog.id)))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_entries_sum_to_current_progress(db_session, participant):
    totals = []
    for units in (5, 3, 2):
        _, new_total = await append_progress(db_session, OWNER, participant.id, units, LOG_DATE)
        totals.append(new_total)
    await db_session.commit()

    assert totals == [5, 8, 10]
    assert participant.current_progress == 10
    assert await recompute_progress(db_session, participant.id) == 10


@pytest.mark.asyncio
@pytest.mark.parametrize("units", [0, -3])
async def test_non_positive_units_rejected_without_mutation(db_session, participant, units):
    await append_progress(db_session, OWNER, participant.id, 4, LOG_DATE)
    await db_session.commit()

    with pytest.raises(ValidationError):
        await append_progress(db_session, OWNER, participant.id, units, LOG_DATE)

    assert participant.current_progress == 4
    assert await _ledger_count(db_session) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("units", [2.5, "3", True])
async def test_non_integer_units_rejected(db_session, participant, units):
    with pytest.raises(ValidationError, match="whole number"):
        await append_progress(db_session, OWNER, participant.id, units, LOG_DATE)
    assert await _ledger_count(db_session) == 0


@pytest.mark.asyncio
async def test_units_above_entry_maximum_rejected(db_session, participant, monkeypatch):
    monkeypatch.setenv("PLEDGETRACK_MAX_UNITS_PER_ENTRY", "50")
    get_settings.cache_clear()
    with pytest.raises(ValidationError, match="at most 50"):
        await append_progress(db_session, OWNER, participant.id, 51, LOG_DATE)


@pytest.mark.asyncio
async def test_only_owner_may_log(db_session, participant):
    with pytest.raises(NotFoundError, match="unauthorized"):
        await append_progress(db_session, "someone-else", participant.id, 3, LOG_DATE)
    assert await _ledger_count(db_session) == 0


@pytest.mark.asyncio
async def test_ended_participant_rejects_progress(db_session, participant):
    await end_participant(db_session, OWNER, participant.id)
    await db_session.commit()

    with pytest.raises(ValidationError, match="ended"):
        await append_progress(db_session, OWNER, participant.id, 3, LOG_DATE)


@pytest.mark.asyncio
async def test_ended_participant_accepts_progress_when_allowed(db_session, participant, monkeypatch):
    await end_participant(db_session, OWNER, participant.id)
    await db_session.commit()
    monkeypatch.setenv("PLEDGETRACK_ALLOW_PROGRESS_AFTER_END", "true")
    get_settings.cache_clear()

    _, new_total = await append_progress(db_session, OWNER, participant.id, 3, LOG_DATE)
    assert new_total == 3


@pytest.mark.asyncio
async def test_entry_creates_post_and_activity(db_session, participant):
    await append_progress(db_session, OWNER, participant.id, 3, LOG_DATE, notes="  Easy morning run  ")
    await db_session.commit()

    posts = (await db_session.execute(select(ParticipantPost))).scalars().all()
    assert [(p.post_type, p.content) for p in posts] == [("progress_update", "Easy morning run")]

    events = (await db_session.execute(select(ActivityEvent))).scalars().all()
    assert [(e.event_type, e.units) for e in events] == [("progress", 3)]


@pytest.mark.asyncio
async def test_milestones_recorded_once(db_session, make_participant):
    participant = await make_participant(goal_amount=10)
    await append_progress(db_session, OWNER, participant.id, 3, LOG_DATE)
    await append_progress(db_session, OWNER, participant.id, 3, LOG_DATE)
    await append_progress(db_session, OWNER, participant.id, 6, LOG_DATE)
    await db_session.commit()

    result = await db_session.execute(
        select(ActivityEvent.message).where(ActivityEvent.event_type == "milestone").order_by(ActivityEvent.id)
    )
    messages = list(result.scalars().all())
    assert len(messages) == 4
    assert "25%" in messages[0]
    assert "100%" in messages[-1]


@pytest.mark.asyncio
async def test_list_progress_newest_first(db_session, participant):
    first, _ = await append_progress(db_session, OWNER, participant.id, 1, LOG_DATE)
    second, _ = await append_progress(db_session, OWNER, participant.id, 2, LOG_DATE)
    await db_session.commit()

    entries = await list_progress(db_session, participant.id)
    assert [e.id for e in entries] == [second.id, first.id]
