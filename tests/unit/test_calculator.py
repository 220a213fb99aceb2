"""Raised-amount calculator tests: pledge formulas, rounding and coercion."""

from dataclasses import dataclass
from decimal import Decimal

import pytest

from pledgetrack.pledges.aggregation import summarize
from pledgetrack.pledges.calculator import PledgeTerms, maximum_amount, raised_amount, to_money


def uncapped(rate: str) -> PledgeTerms:
    return PledgeTerms(pledge_type="per_unit_uncapped", amount_per_unit=Decimal(rate))


def capped(rate: str, cap: str) -> PledgeTerms:
    return PledgeTerms(pledge_type="per_unit_capped", amount_per_unit=Decimal(rate), max_total_amount=Decimal(cap))


def flat(amount: str) -> PledgeTerms:
    return PledgeTerms(pledge_type="flat_rate", flat_amount=Decimal(amount))


class TestScenarios:
    def test_uncapped_two_dollars_ten_units(self):
        assert raised_amount(uncapped("2.00"), 10) == Decimal("20.00")

    def test_capped_hits_cap(self):
        """5 x 10 = 50 is above the 30 cap."""
        assert raised_amount(capped("5.00", "30.00"), 10) == Decimal("30.00")

    def test_flat_at_zero_progress(self):
        assert raised_amount(flat("15.00"), 0) == Decimal("15.00")

    def test_mixed_pledges_total(self):
        totals = summarize([(1, uncapped("1.00")), (2, flat("10.00"))], current_progress=5, goal_amount=100)
        assert totals.total_raised == Decimal("15.00")
        assert totals.donor_count == 2


class TestFlatRate:
    @pytest.mark.parametrize("progress", [0, 1, 7, 1000])
    def test_constant_in_progress(self, progress):
        assert raised_amount(flat("25.50"), progress) == Decimal("25.50")


class TestUncapped:
    def test_zero_progress_is_zero(self):
        assert raised_amount(uncapped("3.00"), 0) == Decimal("0.00")

    def test_linear(self):
        pledge = uncapped("1.25")
        assert raised_amount(pledge, 8) == raised_amount(pledge, 4) * 2

    def test_monotone(self):
        pledge = uncapped("0.10")
        amounts = [raised_amount(pledge, x) for x in range(0, 50)]
        assert amounts == sorted(amounts)

    def test_half_cent_rounds_up(self):
        assert raised_amount(uncapped("0.05"), Decimal("0.5")) == Decimal("0.03")


class TestCapped:
    def test_below_cap_is_linear(self):
        assert raised_amount(capped("2.00", "50.00"), 10) == Decimal("20.00")

    def test_exactly_at_cap(self):
        assert raised_amount(capped("5.00", "50.00"), 10) == Decimal("50.00")

    @pytest.mark.parametrize("progress", [0, 3, 10, 11, 500])
    def test_never_above_cap(self, progress):
        pledge = capped("5.00", "50.00")
        amount = raised_amount(pledge, progress)
        assert amount <= Decimal("50.00")
        assert amount == min(Decimal("5.00") * progress, Decimal("50.00"))


class TestCoercion:
    def test_missing_amount_counts_as_zero(self):
        assert raised_amount(PledgeTerms(pledge_type="per_unit_uncapped"), 10) == Decimal("0.00")

    def test_missing_cap_counts_as_zero(self):
        pledge = PledgeTerms(pledge_type="per_unit_capped", amount_per_unit=Decimal("2.00"))
        assert raised_amount(pledge, 10) == Decimal("0.00")

    def test_malformed_string_counts_as_zero(self):
        assert to_money("not-a-number") == Decimal(0)

    def test_nan_and_negative_count_as_zero(self):
        assert to_money(float("nan")) == Decimal(0)
        assert to_money(Decimal("-4.00")) == Decimal(0)

    def test_none_progress_is_zero(self):
        assert raised_amount(uncapped("2.00"), None) == Decimal("0.00")

    def test_unknown_type_uses_per_unit_rule(self):
        pledge = PledgeTerms(pledge_type="mystery", amount_per_unit=Decimal("2.00"))
        assert raised_amount(pledge, 3) == Decimal("6.00")

    def test_accepts_any_object_with_pledge_columns(self):
        @dataclass
        class Row:
            pledge_type: str
            amount_per_unit: Decimal | None = None
            max_total_amount: Decimal | None = None
            flat_amount: Decimal | None = None

        assert raised_amount(Row("per_unit_capped", Decimal("4.00"), Decimal("10.00")), 5) == Decimal("10.00")


class TestAggregation:
    def test_no_pledges_is_zero(self):
        totals = summarize([], current_progress=40, goal_amount=100)
        assert totals.total_raised == Decimal("0.00")
        assert totals.total_potential == Decimal("0.00")
        assert totals.donor_count == 0

    def test_total_is_sum_of_raised_amounts(self):
        pledges = [(1, uncapped("1.00")), (1, capped("2.00", "15.00")), (2, flat("7.00"))]
        totals = summarize(pledges, current_progress=10, goal_amount=20)
        expected = sum(raised_amount(terms, 10) for _, terms in pledges)
        assert totals.total_raised == expected == Decimal("32.00")
        assert totals.donor_count == 2
        assert totals.pledge_count == 3

    def test_potential_uses_goal(self):
        totals = summarize([(1, uncapped("1.00")), (1, capped("2.00", "15.00"))], current_progress=0, goal_amount=20)
        assert totals.total_potential == Decimal("35.00")
        assert maximum_amount(capped("2.00", "15.00"), 20) == Decimal("15.00")

    def test_donor_without_pledges_still_counted(self):
        totals = summarize([], current_progress=0, goal_amount=10, donor_ids=[9])
        assert totals.donor_count == 1
