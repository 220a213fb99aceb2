"""Built-in challenge catalog seed data."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.campaigns.service import create_category
from pledgetrack.db.models import ChallengeCategory, ChallengeType

logger = logging.getLogger(__name__)

CATALOG_SEED_DATA: list[dict] = [
    {
        "name": "Fitness",
        "icon": "🏃",
        "description": "Move your body for a good cause",
        "types": [
            {"name": "Running", "unit": "miles", "suggested_min": 10, "suggested_max": 200},
            {"name": "Cycling", "unit": "miles", "suggested_min": 25, "suggested_max": 500},
            {"name": "Push-ups", "unit": "push-ups", "suggested_min": 100, "suggested_max": 5000},
            {"name": "Swimming", "unit": "laps", "suggested_min": 20, "suggested_max": 1000},
        ],
    },
    {
        "name": "Learning",
        "icon": "📚",
        "description": "Read, study and practice",
        "types": [
            {"name": "Reading", "unit": "books", "suggested_min": 3, "suggested_max": 50},
            {"name": "Reading Pages", "unit": "pages", "suggested_min": 100, "suggested_max": 10000},
            {"name": "Practice", "unit": "hours", "suggested_min": 10, "suggested_max": 200},
        ],
    },
    {
        "name": "Community",
        "icon": "🤝",
        "description": "Give your time to others",
        "types": [
            {"name": "Volunteering", "unit": "hours", "suggested_min": 5, "suggested_max": 100},
            {"name": "Litter Pickup", "unit": "bags", "suggested_min": 5, "suggested_max": 200},
        ],
    },
]


async def seed_catalog(db: AsyncSession) -> int:
    """Insert missing built-in categories and types. Returns number of rows added."""
    added = 0
    now = datetime.now(timezone.utc)
    for category_data in CATALOG_SEED_DATA:
        result = await db.execute(select(ChallengeCategory).where(ChallengeCategory.name == category_data["name"]))
        category = result.scalar_one_or_none()
        if category is None:
            category = await create_category(
                db,
                name=category_data["name"],
                icon=category_data["icon"],
                description=category_data["description"],
            )
            added += 1

        existing = await db.execute(
            select(ChallengeType.name).where(
                ChallengeType.category_id == category.id,
                ChallengeType.is_custom.is_(False),
            )
        )
        existing_names = set(existing.scalars().all())
        for type_data in category_data["types"]:
            if type_data["name"] in existing_names:
                continue
            db.add(ChallengeType(category_id=category.id, is_custom=False, created_at=now, **type_data))
            added += 1

    await db.commit()
    logger.info("Seeded %d catalog rows", added)
    return added
