"""Pledge creation, donor identity and fundraising totals against the database."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from pledgetrack.db.models import ActivityEvent, Donor, Pledge
from pledgetrack.errors import ValidationError
from pledgetrack.participants.progress_service import append_progress
from pledgetrack.participants.service import get_participant_detail, list_browse
from pledgetrack.pledges.aggregation import get_participant_totals
from pledgetrack.pledges.service import create_pledge, list_pledges

OWNER = "owner-1"
LOG_DATE = date(2026, 3, 1)


@pytest.mark.asyncio
async def test_mixed_pledges_total_raised(db_session, participant):
    """$1/unit plus a $10 flat pledge at 5 units raises $15."""
    await create_pledge(db_session, participant.id, "Sam", "sam@example.com", "per_unit_uncapped", amount_per_unit=1)
    await create_pledge(db_session, participant.id, "Kim", "kim@example.com", "flat_rate", flat_amount=10)
    await append_progress(db_session, OWNER, participant.id, 5, LOG_DATE)
    await db_session.commit()

    detail = await get_participant_detail(db_session, participant.id)
    assert detail["current_progress"] == 5
    assert detail["total_raised"] == Decimal("15.00")
    assert detail["donor_count"] == 2
    # goal 100: 1 x 100 + 10
    assert detail["total_potential"] == Decimal("110.00")


@pytest.mark.asyncio
async def test_no_donors_means_zero(db_session, participant):
    detail = await get_participant_detail(db_session, participant.id)
    assert detail["donor_count"] == 0
    assert detail["total_raised"] == Decimal("0.00")
    assert detail["total_potential"] == Decimal("0.00")


@pytest.mark.asyncio
async def test_same_email_reuses_donor(db_session, participant):
    donor1, _ = await create_pledge(
        db_session, participant.id, "Sam", "sam@example.com", "per_unit_uncapped", amount_per_unit=1
    )
    donor2, _ = await create_pledge(db_session, participant.id, "Sam", "SAM@Example.com", "flat_rate", flat_amount=5)
    await db_session.commit()

    assert donor1.id == donor2.id
    totals = await get_participant_totals(db_session, participant)
    assert totals.donor_count == 1
    assert totals.pledge_count == 2

    count = await db_session.execute(select(func.count(Donor.id)))
    assert count.scalar_one() == 1


@pytest.mark.asyncio
async def test_same_email_on_other_participant_is_new_donor(db_session, make_participant):
    first = await make_participant()
    second = await make_participant(participant_name="Jo")
    d1, _ = await create_pledge(db_session, first.id, "Sam", "sam@example.com", "flat_rate", flat_amount=5)
    d2, _ = await create_pledge(db_session, second.id, "Sam", "sam@example.com", "flat_rate", flat_amount=5)
    assert d1.id != d2.id


@pytest.mark.asyncio
async def test_capped_pledge_stops_at_cap(db_session, participant):
    await create_pledge(
        db_session, participant.id, "Sam", "sam@example.com", "per_unit_capped", amount_per_unit=5, max_total_amount=30
    )
    await append_progress(db_session, OWNER, participant.id, 10, LOG_DATE)
    await db_session.commit()

    totals = await get_participant_totals(db_session, participant)
    assert totals.total_raised == Decimal("30.00")


@pytest.mark.asyncio
async def test_irrelevant_fields_not_stored(db_session, participant):
    _, pledge = await create_pledge(
        db_session, participant.id, "Sam", "sam@example.com", "flat_rate",
        amount_per_unit=3, max_total_amount=9, flat_amount=20,
    )
    await db_session.commit()

    stored = await db_session.get(Pledge, pledge.id)
    assert stored.flat_amount == Decimal("20.00")
    assert stored.amount_per_unit is None
    assert stored.max_total_amount is None
    assert stored.currency == "USD"
    assert stored.is_fulfilled is False


@pytest.mark.asyncio
async def test_invalid_pledge_writes_nothing(db_session, participant):
    with pytest.raises(ValidationError):
        await create_pledge(db_session, participant.id, "Sam", "sam@example.com", "per_unit_uncapped")
    with pytest.raises(ValidationError, match="Donor name"):
        await create_pledge(db_session, participant.id, "   ", "sam@example.com", "flat_rate", flat_amount=5)

    donors = await db_session.execute(select(func.count(Donor.id)))
    assert donors.scalar_one() == 0


@pytest.mark.asyncio
async def test_pledge_on_missing_participant_rejected(db_session, participant):
    with pytest.raises(ValidationError, match="Participant not found"):
        await create_pledge(db_session, participant.id + 999, "Sam", "sam@example.com", "flat_rate", flat_amount=5)


@pytest.mark.asyncio
async def test_pledge_records_activity(db_session, participant):
    await create_pledge(db_session, participant.id, "Sam", "sam@example.com", "per_unit_uncapped", amount_per_unit=2)
    await db_session.commit()

    result = await db_session.execute(select(ActivityEvent).where(ActivityEvent.event_type == "pledge"))
    event = result.scalar_one()
    assert event.participant_id == participant.id
    assert event.user_name == "Sam"
    assert event.message == "Sam pledged $2.00 per mile"


@pytest.mark.asyncio
async def test_list_pledges_newest_first(db_session, participant):
    await create_pledge(db_session, participant.id, "Sam", "sam@example.com", "flat_rate", flat_amount=5)
    await create_pledge(db_session, participant.id, "Kim", "kim@example.com", "flat_rate", flat_amount=7)
    await db_session.commit()

    rows = await list_pledges(db_session, participant.id)
    assert [donor.name for _, donor in rows] == ["Kim", "Sam"]


@pytest.mark.asyncio
async def test_browse_totals_match_detail(db_session, make_participant):
    first = await make_participant()
    second = await make_participant(participant_name="Jo")
    await create_pledge(db_session, first.id, "Sam", "sam@example.com", "per_unit_uncapped", amount_per_unit=2)
    await create_pledge(db_session, second.id, "Kim", "kim@example.com", "flat_rate", flat_amount=12)
    await append_progress(db_session, OWNER, first.id, 4, LOG_DATE)
    await db_session.commit()

    items, total = await list_browse(db_session, page=1, per_page=10)
    assert total == 2
    by_id = {item["id"]: item for item in items}
    for participant_id in (first.id, second.id):
        detail = await get_participant_detail(db_session, participant_id)
        assert by_id[participant_id]["total_raised"] == detail["total_raised"]
        assert by_id[participant_id]["donor_count"] == detail["donor_count"]
    assert by_id[first.id]["total_raised"] == Decimal("8.00")
    assert by_id[second.id]["total_raised"] == Decimal("12.00")
