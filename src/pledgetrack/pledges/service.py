"""Pledge creation and listing.

Rules:
- Target participant must exist and still be active
- Donor identity is (participant, lower-cased email); repeat pledges reuse it
- per-unit amounts in (0, max_amount_per_unit], flat/cap totals in (0, max_pledge_total]
- Capped pledges need max_total_amount >= amount_per_unit
- Pledges are immutable once written
- Each pledge is announced on the participant page and in the activity feed
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.config import get_settings
from pledgetrack.db.models import PLEDGE_TYPES, Donor, Pledge
from pledgetrack.errors import ValidationError
from pledgetrack.participants.service import challenge_name_for, create_post, get_participant, unit_for
from pledgetrack.pledges.calculator import (
    CENTS,
    FLAT_RATE,
    PER_UNIT_CAPPED,
    PledgeTerms,
)
from pledgetrack.social.activity_service import record_activity

logger = logging.getLogger(__name__)


def _positive_money(value: Decimal | float | None, field: str, upper: float) -> Decimal:
    """Validate a required amount lies in (0, upper] and round it to cents."""
    if value is None:
        raise ValidationError(f"{field} is required for this pledge type")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"{field} must be a number") from e
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    # bound before rounding; quantize overflows the context precision on huge values
    if amount > Decimal(str(upper)):
        raise ValidationError(f"{field} must be at most {upper:,.2f}")
    if amount > 0:
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return amount


def validate_pledge_terms(
    pledge_type: str,
    amount_per_unit: Decimal | float | None = None,
    max_total_amount: Decimal | float | None = None,
    flat_amount: Decimal | float | None = None,
) -> PledgeTerms:
    """Check amounts against the pledge type and return normalized terms.

    Fields that do not belong to the pledge type are dropped.
    """
    settings = get_settings()
    if pledge_type not in PLEDGE_TYPES:
        raise ValidationError(f"Unknown pledge type: {pledge_type}")

    if pledge_type == FLAT_RATE:
        flat = _positive_money(flat_amount, "flat_amount", settings.max_pledge_total)
        return PledgeTerms(pledge_type=pledge_type, flat_amount=flat)

    per_unit = _positive_money(amount_per_unit, "amount_per_unit", settings.max_amount_per_unit)
    if pledge_type == PER_UNIT_CAPPED:
        cap = _positive_money(max_total_amount, "max_total_amount", settings.max_pledge_total)
        if cap < per_unit:
            raise ValidationError("max_total_amount must be at least amount_per_unit")
        return PledgeTerms(pledge_type=pledge_type, amount_per_unit=per_unit, max_total_amount=cap)

    return PledgeTerms(pledge_type=pledge_type, amount_per_unit=per_unit)


async def get_or_create_donor(
    db: AsyncSession,
    participant_id: int,
    name: str,
    email: str,
) -> tuple[Donor, bool]:
    """Find the donor for (participant, email) or create it. Returns (donor, created)."""
    email = email.strip().lower()
    query = select(Donor).where(Donor.participant_id == participant_id, Donor.email == email)

    result = await db.execute(query)
    donor = result.scalar_one_or_none()
    if donor is not None:
        return donor, False

    donor = Donor(
        participant_id=participant_id,
        name=name,
        email=email,
        created_at=datetime.now(timezone.utc),
    )
    try:
        async with db.begin_nested():
            db.add(donor)
            await db.flush()
    except IntegrityError:
        # A concurrent request created the same donor first
        result = await db.execute(query)
        return result.scalar_one(), False
    return donor, True


async def create_pledge(
    db: AsyncSession,
    participant_id: int,
    donor_name: str,
    donor_email: str,
    pledge_type: str,
    amount_per_unit: Decimal | float | None = None,
    max_total_amount: Decimal | float | None = None,
    flat_amount: Decimal | float | None = None,
) -> tuple[Donor, Pledge]:
    """Validate and persist a pledge, creating the donor on first pledge."""
    donor_name = (donor_name or "").strip()
    if not donor_name:
        raise ValidationError("Donor name is required")

    terms = validate_pledge_terms(pledge_type, amount_per_unit, max_total_amount, flat_amount)

    participant = await get_participant(db, participant_id)
    if participant is None:
        raise ValidationError("Participant not found")
    if not participant.is_active:
        raise ValidationError("This challenge has ended and is no longer accepting pledges")

    donor, created = await get_or_create_donor(db, participant_id, donor_name, donor_email)

    pledge = Pledge(
        donor_id=donor.id,
        pledge_type=terms.pledge_type,
        amount_per_unit=terms.amount_per_unit,
        max_total_amount=terms.max_total_amount,
        flat_amount=terms.flat_amount,
        currency="USD",
        is_fulfilled=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(pledge)
    await db.flush()

    await record_activity(
        db,
        event_type="pledge",
        message=f"{donor_name} {describe_pledge(terms, unit_for(participant))}",
        amount=terms.flat_amount or terms.amount_per_unit,
        user_name=donor_name,
        participant_id=participant.id,
        campaign_id=participant.campaign_id,
    )
    await create_post(
        db,
        participant.id,
        content=(
            f"New supporter! {donor_name} {describe_pledge(terms, unit_for(participant))} "
            f"to this {challenge_name_for(participant)} challenge."
        ),
        post_type="pledge_announcement",
    )

    logger.info(
        "Pledge created: id=%d participant=%d donor=%d new_donor=%s type=%s",
        pledge.id, participant_id, donor.id, created, terms.pledge_type,
    )
    return donor, pledge


async def list_pledges(db: AsyncSession, participant_id: int) -> list[tuple[Pledge, Donor]]:
    """All pledges for a participant with their donors, newest first."""
    result = await db.execute(
        select(Pledge, Donor)
        .join(Donor, Pledge.donor_id == Donor.id)
        .where(Donor.participant_id == participant_id)
        .order_by(Pledge.created_at.desc(), Pledge.id.desc())
    )
    return [(pledge, donor) for pledge, donor in result.all()]


def describe_pledge(terms: PledgeTerms, unit: str = "unit") -> str:
    """Human-readable pledge summary for the activity feed."""
    if terms.pledge_type == FLAT_RATE:
        return f"pledged ${terms.flat_amount:,.2f}"
    # "miles" -> "mile"
    per = unit[:-1] if len(unit) > 1 and unit.endswith("s") else unit
    text = f"pledged ${terms.amount_per_unit:,.2f} per {per}"
    if terms.pledge_type == PER_UNIT_CAPPED:
        text += f" (up to ${terms.max_total_amount:,.2f})"
    return text

