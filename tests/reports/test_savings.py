from datetime import datetime, timezone
from decimal import Decimal

from reports.savings import (
    lead_achievement,
    lead_generated_savings,
    percentage,
    plan_achievement,
    plan_net_savings,
    plan_totals,
    rollup_leads,
    rollup_plans,
)
from reports.snapshots import EntrySnapshot, LeadSnapshot, PlanSnapshot, UpdateSnapshot

WHEN = datetime(2024, 8, 1, tzinfo=timezone.utc)


def lead(expected, *savings, district="D1", branch="B1"):
    updates = tuple(
        UpdateSnapshot(id=i, text="x", timestamp=WHEN, author="Ada", status="IN_PROGRESS", generated_savings=s)
        for i, s in enumerate(savings)
    )
    return LeadSnapshot(
        id=f"lead-{expected}-{len(savings)}",
        title="Lead",
        status="IN_PROGRESS",
        district_id=district,
        branch_id=branch,
        officer_id=None,
        location=(0.0, 0.0),
        expected_savings=Decimal(expected),
        updates=updates,
    )


def entry(entry_type, amount, status="APPROVED"):
    return EntrySnapshot(id=None, entry_type=entry_type, amount=Decimal(amount), status=status)


def plan(target, *entries, branch="B1"):
    return PlanSnapshot(
        id=None, branch_id=branch, district_id="D1", quarter="Q3 2024",
        savings_target=Decimal(target), entries=tuple(entries),
    )


class TestPercentage:
    def test_rounds_to_two_places(self):
        assert percentage(1, 3) == Decimal("33.33")
        assert percentage(2, 3) == Decimal("66.67")

    def test_capped_at_hundred(self):
        assert percentage(300, 100) == Decimal("100.00")

    def test_zero_denominator(self):
        assert percentage(50, 0) == Decimal("0.00")
        assert percentage(50, -1) == Decimal("0.00")


class TestLeadSavings:
    def test_half_achieved(self):
        item = lead("50000", Decimal("25000"))
        assert lead_generated_savings(item) == Decimal("25000")
        assert lead_achievement(item) == Decimal("50.00")

    def test_updates_without_savings_are_ignored(self):
        item = lead("50000", None, Decimal("10000"), None, Decimal("5000"))
        assert lead_generated_savings(item) == Decimal("15000")
        assert lead_achievement(item) == Decimal("30.00")

    def test_no_updates(self):
        assert lead_achievement(lead("50000")) == Decimal("0.00")

    def test_zero_expected(self):
        assert lead_achievement(lead("0", Decimal("100"))) == Decimal("0.00")

    def test_overachievement_capped(self):
        assert lead_achievement(lead("100", Decimal("250"))) == Decimal("100.00")


class TestPlanSavings:
    def test_net_against_target(self):
        item = plan(
            "250000",
            entry("collection", "75000"),
            entry("collection", "50000"),
            entry("withdrawal", "10000"),
        )
        assert plan_net_savings(item) == Decimal("115000")
        assert plan_achievement(item) == Decimal("46.00")

    def test_only_approved_entries_count(self):
        item = plan(
            "100000",
            entry("collection", "40000"),
            entry("collection", "30000", status="PENDING"),
            entry("withdrawal", "5000", status="REJECTED"),
        )
        totals = plan_totals(item)
        assert totals.collections == Decimal("40000")
        assert totals.withdrawals == Decimal("0")
        assert plan_achievement(item) == Decimal("40.00")

    def test_withdrawals_can_make_it_negative(self):
        item = plan("100000", entry("collection", "10000"), entry("withdrawal", "30000"))
        assert plan_net_savings(item) == Decimal("-20000")
        assert plan_achievement(item) == Decimal("-20.00")

    def test_zero_target(self):
        assert plan_achievement(plan("0", entry("collection", "10"))) == Decimal("0.00")


class TestRollups:
    def test_sum_then_divide(self):
        leads = [lead("100", Decimal("100")), lead("900", Decimal("0"))]
        (group,) = rollup_leads(leads, key=lambda item: item.district_id)
        assert group.lead_count == 2
        assert group.expected == Decimal("1000")
        assert group.generated == Decimal("100")
        # 10%, not the 50% an average of per-lead percentages would give
        assert group.achievement == Decimal("10.00")

    def test_groups_keep_first_seen_order(self):
        leads = [lead("1", branch="B2"), lead("2", branch="B1"), lead("3", branch="B2")]
        assert [g.key for g in rollup_leads(leads, key=lambda item: item.branch_id)] == ["B2", "B1"]

    def test_none_keys_skipped(self):
        leads = [lead("1", branch=None), lead("2", branch="B1")]
        assert [g.key for g in rollup_leads(leads, key=lambda item: item.branch_id)] == ["B1"]

    def test_plan_rollup(self):
        plans = [
            plan("100", entry("collection", "100")),
            plan("300", entry("collection", "50"), branch="B2"),
        ]
        (group,) = rollup_plans(plans, key=lambda item: item.district_id)
        assert group.plan_count == 2
        assert group.target == Decimal("400")
        assert group.net == Decimal("150")
        assert group.achievement == Decimal("37.50")
