"""Progress ledger: append-only log of completed units.

Rules:
- units_completed must be a positive integer; rejected input mutates nothing
- Only the owner may log progress
- Ended challenges reject new entries unless allow_progress_after_end is set
- log_date is free-form (backdating allowed, no campaign date checks)
- current_progress is recomputed from the ledger in a single UPDATE
- Entries are never edited or deleted
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.config import get_settings
from pledgetrack.db.models import Participant, ProgressLog
from pledgetrack.errors import ValidationError
from pledgetrack.participants.service import create_post, get_owned_participant, unit_for
from pledgetrack.social.activity_service import crossed_milestones, record_activity

logger = logging.getLogger(__name__)


def _ledger_sum(participant_id: int):  # noqa: ANN202
    return (
        select(func.coalesce(func.sum(ProgressLog.units_completed), 0))
        .where(ProgressLog.participant_id == participant_id)
        .scalar_subquery()
    )


async def recompute_progress(db: AsyncSession, participant_id: int) -> int:
    """Set current_progress to the ledger sum in one statement and return it."""
    await db.execute(
        update(Participant)
        .where(Participant.id == participant_id)
        .values(current_progress=_ledger_sum(participant_id), updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(select(Participant.current_progress).where(Participant.id == participant_id))
    return int(result.scalar_one())


async def append_progress(
    db: AsyncSession,
    user_id: str,
    participant_id: int,
    units_completed: int,
    log_date: date,
    notes: str | None = None,
) -> tuple[ProgressLog, int]:
    """Append a ledger entry and refresh the participant's progress.

    Returns (entry, new_total_progress).
    """
    settings = get_settings()
    if isinstance(units_completed, bool) or not isinstance(units_completed, int) or units_completed <= 0:
        raise ValidationError("units_completed must be a positive whole number")
    if units_completed > settings.max_units_per_entry:
        raise ValidationError(f"units_completed must be at most {settings.max_units_per_entry}")

    participant = await get_owned_participant(db, participant_id, user_id)
    if not participant.is_active and not settings.allow_progress_after_end:
        raise ValidationError("This challenge has ended; progress can no longer be logged")

    previous = participant.current_progress or 0
    notes = notes.strip() if notes else None

    entry = ProgressLog(
        participant_id=participant_id,
        units_completed=units_completed,
        log_date=log_date,
        notes=notes or None,
        created_at=datetime.now(timezone.utc),
    )
    db.add(entry)
    await db.flush()

    new_total = await recompute_progress(db, participant_id)
    await db.refresh(participant, attribute_names=["current_progress", "updated_at"])

    unit = unit_for(participant)
    await create_post(
        db,
        participant_id,
        notes or f"Completed {units_completed} {unit} on {log_date.isoformat()}",
        post_type="progress_update",
    )
    await record_activity(
        db,
        event_type="progress",
        message=f"{participant.display_name} completed {units_completed} {unit} on {log_date.isoformat()}",
        units=units_completed,
        user_name=participant.display_name,
        participant_id=participant_id,
        campaign_id=participant.campaign_id,
    )
    for pct in crossed_milestones(previous, new_total, participant.goal_amount):
        await record_activity(
            db,
            event_type="milestone",
            message=f"{participant.display_name} reached {pct}% of their {participant.goal_amount} {unit} goal",
            user_name=participant.display_name,
            participant_id=participant_id,
            campaign_id=participant.campaign_id,
        )

    logger.info(
        "Progress logged: participant=%d units=%d total=%d",
        participant_id, units_completed, new_total,
    )
    return entry, new_total


async def list_progress(db: AsyncSession, participant_id: int, limit: int = 100) -> list[ProgressLog]:
    """Ledger entries, most recently created first."""
    result = await db.execute(
        select(ProgressLog)
        .where(ProgressLog.participant_id == participant_id)
        .order_by(ProgressLog.created_at.desc(), ProgressLog.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
