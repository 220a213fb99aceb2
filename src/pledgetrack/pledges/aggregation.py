"""Fundraising totals derived from pledges and current progress.

Totals are recomputed from source rows on every read; nothing here is cached.
The database returns raw pledge rows and the sums are taken in Python through
``raised_amount`` so SQL never carries its own copy of the pledge formula.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pledgetrack.db.models import Donor, Participant, Pledge
from pledgetrack.pledges.calculator import ZERO, PledgeTerms, raised_amount


@dataclass
class FundraisingTotals:
    """Aggregates for one participant (or a whole campaign)."""

    donor_count: int = 0
    total_raised: Decimal = ZERO
    total_potential: Decimal = ZERO
    pledge_count: int = 0
    donor_ids: set[int] = field(default_factory=set, repr=False)

    def add(self, other: FundraisingTotals) -> None:
        """Fold another participant's totals into this one."""
        self.donor_ids |= other.donor_ids
        self.donor_count = len(self.donor_ids)
        self.total_raised += other.total_raised
        self.total_potential += other.total_potential
        self.pledge_count += other.pledge_count


def summarize(
    pledges: Iterable[tuple[int, PledgeTerms]],
    current_progress: int,
    goal_amount: int,
    donor_ids: Iterable[int] = (),
) -> FundraisingTotals:
    """Sum raised/potential amounts for ``(donor_id, terms)`` pairs of one participant.

    ``donor_ids`` lists donors that exist even without a pledge row, so
    donor_count matches the number of Donor rows.
    """
    totals = FundraisingTotals(donor_ids=set(donor_ids))
    for donor_id, terms in pledges:
        totals.donor_ids.add(donor_id)
        totals.pledge_count += 1
        totals.total_raised += raised_amount(terms, current_progress)
        totals.total_potential += raised_amount(terms, goal_amount)
    totals.donor_count = len(totals.donor_ids)
    return totals


async def get_totals_for_participants(
    db: AsyncSession,
    participants: Sequence[Participant],
) -> dict[int, FundraisingTotals]:
    """Totals for many participants using one donor/pledge query.

    Every requested participant gets an entry; participants without donors
    map to zeroed totals.
    """
    if not participants:
        return {}

    ids = [p.id for p in participants]
    result = await db.execute(
        select(
            Donor.participant_id,
            Donor.id,
            Pledge.pledge_type,
            Pledge.amount_per_unit,
            Pledge.max_total_amount,
            Pledge.flat_amount,
        )
        .select_from(Donor)
        .outerjoin(Pledge, Pledge.donor_id == Donor.id)
        .where(Donor.participant_id.in_(ids))
    )

    pledges_by_participant: dict[int, list[tuple[int, PledgeTerms]]] = defaultdict(list)
    donors_by_participant: dict[int, set[int]] = defaultdict(set)
    for row in result.all():
        donors_by_participant[row.participant_id].add(row.id)
        if row.pledge_type is None:
            # Donor without a pledge row (outer join miss)
            continue
        pledges_by_participant[row.participant_id].append((row.id, PledgeTerms.of(row)))

    return {
        p.id: summarize(
            pledges_by_participant.get(p.id, []),
            p.current_progress or 0,
            p.goal_amount or 0,
            donors_by_participant.get(p.id, ()),
        )
        for p in participants
    }


async def get_participant_totals(db: AsyncSession, participant: Participant) -> FundraisingTotals:
    """donor_count / total_raised / total_potential for a single participant."""
    totals = await get_totals_for_participants(db, [participant])
    return totals[participant.id]
