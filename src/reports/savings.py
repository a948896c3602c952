"""Savings metrics.

All functions are pure and accept snapshots (or any object with the same
attributes).  Percentages are ``Decimal`` quantized to two places.

Roll-ups always sum numerators and denominators first and divide once;
per-entity percentages are never averaged.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

APPROVED = "APPROVED"
COLLECTION = "collection"
WITHDRAWAL = "withdrawal"


def percentage(numerator, denominator) -> Decimal:
    """``min(100, 100 * numerator / denominator)``, or ``0`` if the denominator is not positive."""
    numerator = Decimal(numerator)
    denominator = Decimal(denominator)
    if denominator <= 0:
        return ZERO.quantize(CENT)
    value = min(HUNDRED, HUNDRED * numerator / denominator)
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------

def lead_generated_savings(lead) -> Decimal:
    """Sum of the savings reported on the lead's updates."""
    return sum(
        (u.generated_savings for u in lead.updates if u.generated_savings is not None),
        ZERO,
    )


def lead_achievement(lead) -> Decimal:
    # generated savings are never negative so the result stays in [0, 100]
    return max(ZERO.quantize(CENT), percentage(lead_generated_savings(lead), lead.expected_savings))


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanTotals:
    collections: Decimal
    withdrawals: Decimal

    @property
    def net(self) -> Decimal:
        return self.collections - self.withdrawals


def plan_totals(plan) -> PlanTotals:
    """Approved collections and withdrawals of *plan*; pending and rejected entries are ignored."""
    collections = withdrawals = ZERO
    for entry in plan.entries:
        if entry.status != APPROVED:
            continue
        if entry.entry_type == COLLECTION:
            collections += entry.amount
        elif entry.entry_type == WITHDRAWAL:
            withdrawals += entry.amount
    return PlanTotals(collections=collections, withdrawals=withdrawals)


def plan_net_savings(plan) -> Decimal:
    return plan_totals(plan).net


def plan_achievement(plan) -> Decimal:
    """Net savings against target, capped at 100.  Negative when withdrawals dominate."""
    return percentage(plan_net_savings(plan), plan.savings_target)


# ---------------------------------------------------------------------------
# Roll-ups
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LeadRollup:
    key: object
    lead_count: int
    expected: Decimal
    generated: Decimal

    @property
    def achievement(self) -> Decimal:
        return max(ZERO.quantize(CENT), percentage(self.generated, self.expected))


@dataclass(frozen=True)
class PlanRollup:
    key: object
    plan_count: int
    target: Decimal
    net: Decimal

    @property
    def achievement(self) -> Decimal:
        return percentage(self.net, self.target)


def rollup_leads(leads, key) -> list[LeadRollup]:
    """Group *leads* by ``key(lead)`` and aggregate savings per group.

    Groups keep first-seen order.  Leads whose key is ``None`` are skipped.
    """
    groups: OrderedDict = OrderedDict()
    for lead in leads:
        k = key(lead)
        if k is None:
            continue
        count, expected, generated = groups.get(k, (0, ZERO, ZERO))
        groups[k] = (
            count + 1,
            expected + lead.expected_savings,
            generated + lead_generated_savings(lead),
        )
    return [
        LeadRollup(key=k, lead_count=c, expected=e, generated=g)
        for k, (c, e, g) in groups.items()
    ]


def rollup_plans(plans, key) -> list[PlanRollup]:
    groups: OrderedDict = OrderedDict()
    for plan in plans:
        k = key(plan)
        if k is None:
            continue
        count, target, net = groups.get(k, (0, ZERO, ZERO))
        groups[k] = (count + 1, target + plan.savings_target, net + plan_net_savings(plan))
    return [
        PlanRollup(key=k, plan_count=c, target=t, net=n)
        for k, (c, t, n) in groups.items()
    ]
