"""Raised-amount calculator: how much one pledge is worth at a given progress.

This is the only place the pledge formula lives. The participant read path,
browse and campaign lists, pledge listings and the campaign-end donor emails
all call ``raised_amount``.

Rules:
- flat_rate          → flat_amount (independent of progress, also at 0)
- per_unit_uncapped  → amount_per_unit × progress
- per_unit_capped    → min(amount_per_unit × progress, max_total_amount)

Missing or malformed numeric fields count as 0. The calculator never raises;
a broken pledge contributes $0 instead of failing the whole aggregate.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import structlog

logger = structlog.get_logger()

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

FLAT_RATE = "flat_rate"
PER_UNIT_UNCAPPED = "per_unit_uncapped"
PER_UNIT_CAPPED = "per_unit_capped"


@dataclass(frozen=True)
class PledgeTerms:
    """The amount-bearing fields of a pledge, detached from the ORM row."""

    pledge_type: str
    amount_per_unit: Decimal | None = None
    max_total_amount: Decimal | None = None
    flat_amount: Decimal | None = None

    @classmethod
    def of(cls, pledge: Any) -> PledgeTerms:  # noqa: ANN401
        """Build terms from any object exposing the pledge columns (ORM row, Row, dataclass)."""
        return cls(
            pledge_type=getattr(pledge, "pledge_type", None) or "",
            amount_per_unit=getattr(pledge, "amount_per_unit", None),
            max_total_amount=getattr(pledge, "max_total_amount", None),
            flat_amount=getattr(pledge, "flat_amount", None),
        )


def to_money(value: Any, field: str = "amount") -> Decimal:  # noqa: ANN401
    """Coerce a stored numeric value to a non-negative Decimal.

    None means "not set" and silently becomes 0. Anything else that is not a
    finite, non-negative number also becomes 0, with a warning.
    """
    if value is None:
        return Decimal(0)
    try:
        if isinstance(value, float):
            if not math.isfinite(value):
                raise InvalidOperation
            amount = Decimal(str(value))
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        logger.warning("pledge_field_coerced", field=field, value=repr(value), reason="not_a_number")
        return Decimal(0)

    if not amount.is_finite():
        logger.warning("pledge_field_coerced", field=field, value=repr(value), reason="not_finite")
        return Decimal(0)
    if amount < 0:
        logger.warning("pledge_field_coerced", field=field, value=repr(value), reason="negative")
        return Decimal(0)
    return amount


def raised_amount(pledge: Any, progress_units: Any) -> Decimal:  # noqa: ANN401
    """Dollar amount a pledge is worth at ``progress_units`` completed units."""
    terms = pledge if isinstance(pledge, PledgeTerms) else PledgeTerms.of(pledge)
    progress = to_money(progress_units, "progress_units")

    if terms.pledge_type == FLAT_RATE:
        amount = to_money(terms.flat_amount, "flat_amount")
    elif terms.pledge_type == PER_UNIT_CAPPED:
        uncapped = to_money(terms.amount_per_unit, "amount_per_unit") * progress
        amount = min(uncapped, to_money(terms.max_total_amount, "max_total_amount"))
    else:
        if terms.pledge_type != PER_UNIT_UNCAPPED:
            logger.warning("unknown_pledge_type", pledge_type=terms.pledge_type)
        amount = to_money(terms.amount_per_unit, "amount_per_unit") * progress

    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def maximum_amount(pledge: Any, goal_amount: Any) -> Decimal:  # noqa: ANN401
    """Amount the pledge would be worth if the goal were fully met."""
    return raised_amount(pledge, goal_amount)
