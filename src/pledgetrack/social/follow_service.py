"""Following a participant's challenge."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.db.models import Follow
from pledgetrack.errors import NotFoundError
from pledgetrack.participants.service import get_participant

logger = logging.getLogger(__name__)


async def is_following(db: AsyncSession, user_id: str, participant_id: int) -> bool:
    result = await db.execute(
        select(Follow.id).where(Follow.user_id == user_id, Follow.participant_id == participant_id).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def follow(db: AsyncSession, user_id: str, participant_id: int) -> bool:
    """Follow a participant. Returns False when already following."""
    if await get_participant(db, participant_id) is None:
        raise NotFoundError("Participant not found")
    if await is_following(db, user_id, participant_id):
        return False

    try:
        async with db.begin_nested():
            db.add(Follow(user_id=user_id, participant_id=participant_id, created_at=datetime.now(timezone.utc)))
            await db.flush()
    except IntegrityError:
        return False
    logger.info("Follow added: user=%s participant=%d", user_id, participant_id)
    return True


async def unfollow(db: AsyncSession, user_id: str, participant_id: int) -> int:
    """Stop following. Returns the number of rows removed (0 or 1)."""
    result = await db.execute(
        delete(Follow).where(Follow.user_id == user_id, Follow.participant_id == participant_id)
    )
    return result.rowcount or 0


async def count_followers(db: AsyncSession, participant_id: int) -> int:
    result = await db.execute(select(func.count(Follow.id)).where(Follow.participant_id == participant_id))
    return result.scalar_one()
