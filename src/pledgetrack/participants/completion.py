"""Ending a challenge and telling donors what they owe.

Each donor's amount is computed with the same ``raised_amount`` function the
read endpoints use, evaluated at the participant's final progress.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.db.models import Donor, Participant, Pledge
from pledgetrack.email.service import EmailService
from pledgetrack.errors import ValidationError
from pledgetrack.participants.service import challenge_name_for, get_owned_participant, unit_for
from pledgetrack.pledges.calculator import ZERO, raised_amount

logger = structlog.get_logger()


@dataclass
class DonorStatement:
    """What one donor owes at the participant's final progress."""

    donor_id: int
    name: str
    email: str
    amount_owed: Decimal
    pledge_count: int


async def build_donor_statements(db: AsyncSession, participant: Participant) -> list[DonorStatement]:
    """One statement per donor, summing their pledges at current progress."""
    result = await db.execute(
        select(Donor, Pledge)
        .outerjoin(Pledge, Pledge.donor_id == Donor.id)
        .where(Donor.participant_id == participant.id)
        .order_by(Donor.id, Pledge.id)
    )

    statements: dict[int, DonorStatement] = {}
    for donor, pledge in result.all():
        statement = statements.get(donor.id)
        if statement is None:
            statement = DonorStatement(
                donor_id=donor.id, name=donor.name, email=donor.email, amount_owed=ZERO, pledge_count=0
            )
            statements[donor.id] = statement
        if pledge is not None:
            statement.amount_owed += raised_amount(pledge, participant.current_progress)
            statement.pledge_count += 1
    return list(statements.values())


async def end_participant(
    db: AsyncSession,
    user_id: str,
    participant_id: int,
) -> tuple[Participant, list[DonorStatement]]:
    """Mark the challenge ended (terminal) and return donor statements."""
    participant = await get_owned_participant(db, participant_id, user_id)
    if not participant.is_active:
        raise ValidationError("This challenge has already ended")

    now = datetime.now(timezone.utc)
    participant.is_active = False
    participant.ended_at = now
    participant.updated_at = now
    await db.flush()

    statements = await build_donor_statements(db, participant)
    logger.info(
        "campaign_ended",
        participant_id=participant.id,
        final_progress=participant.current_progress,
        donors=len(statements),
    )
    return participant, statements


async def notify_donors(
    email_service: EmailService,
    participant: Participant,
    statements: list[DonorStatement],
) -> int:
    """Email every donor their final amount. Returns the number of emails sent."""
    sent = 0
    for statement in statements:
        delivered = await email_service.send_template(
            statement.email,
            "campaign_ended",
            {
                "donor_name": statement.name,
                "participant_name": participant.display_name,
                "challenge_name": challenge_name_for(participant),
                "final_progress": participant.current_progress,
                "goal_amount": participant.goal_amount,
                "unit": unit_for(participant),
                "amount_owed": statement.amount_owed,
                "donation_url": participant.campaign.donation_url,
            },
        )
        if delivered:
            sent += 1
        else:
            logger.warning("donor_notification_failed", participant_id=participant.id, donor_id=statement.donor_id)
    return sent
