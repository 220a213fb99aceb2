"""Public activity feed: pledges, progress updates, milestones and donations.

Events older than ``activity_retention_days`` are hidden on read and removed
by ``prune_activity_feed``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.config import get_settings
from pledgetrack.db.models import ActivityEvent

ACTIVITY_TYPES = ("donation", "milestone", "pledge", "progress")

STATS_WINDOWS = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
}
DEFAULT_WINDOW = "24h"
SPARK_BUCKETS = 12

MILESTONES = (25, 50, 75, 100)


def normalize_window(window: str | None) -> str:
    """Lower-cased window name, or the default for anything unknown."""
    window = (window or DEFAULT_WINDOW).lower()
    return window if window in STATS_WINDOWS else DEFAULT_WINDOW


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from stores without timezone support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def record_activity(
    db: AsyncSession,
    event_type: str,
    message: str,
    amount: Decimal | None = None,
    units: int | None = None,
    user_name: str | None = None,
    participant_id: int | None = None,
    campaign_id: int | None = None,
    created_at: datetime | None = None,
) -> ActivityEvent:
    """Append an event to the global feed."""
    if event_type not in ACTIVITY_TYPES:
        raise ValueError(f"Unknown activity type: {event_type}")
    event = ActivityEvent(
        event_type=event_type,
        message=message,
        amount=amount,
        units=units,
        user_name=user_name,
        participant_id=participant_id,
        campaign_id=campaign_id,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(event)
    await db.flush()
    return event


def crossed_milestones(previous: int, current: int, goal: int) -> list[int]:
    """Goal percentages passed when progress moved from ``previous`` to ``current``."""
    if goal <= 0 or current <= previous:
        return []
    return [m for m in MILESTONES if previous * 100 < m * goal <= current * 100]


async def get_activities(
    db: AsyncSession,
    limit: int = 50,
    since: datetime | None = None,
    participant_id: int | None = None,
) -> list[ActivityEvent]:
    """Newest-first events within the retention window, strictly after ``since``."""
    settings = get_settings()
    cutoff = datetime.now(timezone.utc) - timedelta(days=settings.activity_retention_days)
    if since is not None and as_utc(since) > cutoff:
        cutoff = as_utc(since)

    query = select(ActivityEvent).where(ActivityEvent.created_at > cutoff)
    if participant_id is not None:
        query = query.where(ActivityEvent.participant_id == participant_id)
    result = await db.execute(
        query.order_by(ActivityEvent.created_at.desc(), ActivityEvent.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def get_activity_stats(
    db: AsyncSession,
    window: str = DEFAULT_WINDOW,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Event counts, progress units, donation total and a sparkline for a time window.

    Unknown windows fall back to 24h.
    """
    window = normalize_window(window)
    span = STATS_WINDOWS[window]
    now = now or datetime.now(timezone.utc)
    start = now - span

    result = await db.execute(
        select(ActivityEvent).where(ActivityEvent.created_at >= start, ActivityEvent.created_at <= now)
    )

    pledges = 0
    donations = 0
    progress_units = 0
    raised = Decimal("0.00")
    spark = [0] * SPARK_BUCKETS
    bucket_seconds = span.total_seconds() / SPARK_BUCKETS

    for event in result.scalars().all():
        if event.event_type == "pledge":
            pledges += 1
        elif event.event_type == "donation":
            donations += 1
            raised += event.amount or 0
        elif event.event_type == "progress":
            progress_units += event.units or 0

        offset = (as_utc(event.created_at) - start).total_seconds()
        idx = max(0, min(SPARK_BUCKETS - 1, int(offset // bucket_seconds)))
        spark[idx] += 1

    return {
        "window": window,
        "pledges": pledges,
        "donations": donations,
        "progress_units": progress_units,
        "raised": raised,
        "spark": spark,
    }


async def prune_activity_feed(db: AsyncSession) -> int:
    """Delete events older than the retention window. Returns deleted count."""
    settings = get_settings()
    cutoff = datetime.now(timezone.utc) - timedelta(days=settings.activity_retention_days)
    result = await db.execute(delete(ActivityEvent).where(ActivityEvent.created_at <= cutoff))
    await db.commit()
    return result.rowcount  # type: ignore[return-value]
