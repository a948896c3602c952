"""Dashboard aggregation over lead and plan snapshots.

Read-only.  Filters follow the dashboard's rules: choosing a district
narrows the branch choices to that district and drops a branch filter that
lies outside it; ``None``, ``""`` or ``"all"`` remove a filter.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from leads.models import SalesLead
from reports.savings import (
    lead_achievement,
    lead_generated_savings,
    percentage,
    plan_achievement,
    plan_totals,
    rollup_leads,
)

ALL = "all"
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PerformanceRow:
    id: object
    name: str
    lead_count: int
    expected: Decimal
    generated: Decimal
    achievement: Decimal


@dataclass(frozen=True)
class PlanRow:
    id: object
    branch_id: object
    branch_name: str
    quarter: str
    target: Decimal
    collections: Decimal
    withdrawals: Decimal
    net: Decimal
    achievement: Decimal

    @property
    def name(self) -> str:
        return f"{self.branch_name} {self.quarter}"


@dataclass(frozen=True)
class Dashboard:
    district_id: object | None
    branch_id: object | None
    lead_count: int
    total_expected: Decimal
    total_generated: Decimal
    achievement: Decimal
    leads_by_status: dict
    district_performance: list = field(default_factory=list)
    branch_performance: list = field(default_factory=list)
    plan_performance: list = field(default_factory=list)
    lead_performance: list = field(default_factory=list)
    branch_choices: list = field(default_factory=list)


def normalize_filter(value):
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in ("", ALL):
        return None
    return value


def _same(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def resolve_filters(branches, district_id=None, branch_id=None):
    """Return ``(district_id, branch_id, branch_choices)`` after applying the filter rules."""
    district_id = normalize_filter(district_id)
    branch_id = normalize_filter(branch_id)

    if district_id is None:
        choices = list(branches)
    else:
        choices = [b for b in branches if _same(b.district_id, district_id)]
    if branch_id is not None and not any(_same(b.id, branch_id) for b in choices):
        branch_id = None
    return district_id, branch_id, choices


def _by_achievement(rows):
    return sorted(rows, key=lambda r: (-r.achievement, r.name))


def _performance_rows(refs, rollups) -> list[PerformanceRow]:
    """One row per district or branch in *refs*; those without leads show zeros."""
    by_key = {str(r.key): r for r in rollups}
    rows = []
    for ref in refs:
        r = by_key.get(str(ref.id))
        if r is None:
            rows.append(PerformanceRow(ref.id, ref.name, 0, ZERO, ZERO, ZERO))
        else:
            rows.append(PerformanceRow(ref.id, ref.name, r.lead_count, r.expected, r.generated, r.achievement))
    return rows


def build_dashboard(leads, plans, districts, branches, district_id=None, branch_id=None) -> Dashboard:
    """Aggregate *leads* and *plans* for the dashboard.

    Parameters
    ----------
    leads : iterable of LeadSnapshot
    plans : iterable of PlanSnapshot
    districts : iterable of DistrictRef
    branches : iterable of BranchRef
    district_id, branch_id : optional
        Filters; see the module docstring.

    Returns
    -------
    Dashboard
    """
    branches = list(branches)
    district_id, branch_id, choices = resolve_filters(branches, district_id, branch_id)

    def selected(obj) -> bool:
        if district_id is not None and not _same(obj.district_id, district_id):
            return False
        if branch_id is not None and not _same(obj.branch_id, branch_id):
            return False
        return True

    leads = [lead for lead in leads if selected(lead)]
    plans = [plan for plan in plans if selected(plan)]

    totals = rollup_leads(leads, key=lambda lead: ALL)
    if totals:
        lead_count, expected, generated = totals[0].lead_count, totals[0].expected, totals[0].generated
    else:
        lead_count, expected, generated = 0, Decimal("0"), Decimal("0")

    by_status = {status: 0 for status in SalesLead.Status.values}
    for lead in leads:
        by_status[lead.status] = by_status.get(lead.status, 0) + 1

    branch_names = {str(b.id): b.name for b in branches}

    district_rows = _performance_rows(
        [d for d in districts if district_id is None or _same(d.id, district_id)],
        rollup_leads(leads, key=lambda lead: lead.district_id),
    )
    branch_rows = _performance_rows(
        [b for b in choices if branch_id is None or _same(b.id, branch_id)],
        rollup_leads(leads, key=lambda lead: lead.branch_id),
    )
    lead_rows = [
        PerformanceRow(
            id=lead.id,
            name=lead.title,
            lead_count=1,
            expected=lead.expected_savings,
            generated=lead_generated_savings(lead),
            achievement=lead_achievement(lead),
        )
        for lead in leads
    ]

    plan_rows = []
    for plan in plans:
        t = plan_totals(plan)
        plan_rows.append(
            PlanRow(
                id=plan.id,
                branch_id=plan.branch_id,
                branch_name=plan.branch_name or branch_names.get(str(plan.branch_id), ""),
                quarter=plan.quarter,
                target=plan.savings_target,
                collections=t.collections,
                withdrawals=t.withdrawals,
                net=t.net,
                achievement=plan_achievement(plan),
            )
        )

    return Dashboard(
        district_id=district_id,
        branch_id=branch_id,
        lead_count=lead_count,
        total_expected=expected,
        total_generated=generated,
        achievement=max(Decimal("0.00"), percentage(generated, expected)),
        leads_by_status=by_status,
        district_performance=_by_achievement(district_rows),
        branch_performance=_by_achievement(branch_rows),
        plan_performance=_by_achievement(plan_rows),
        lead_performance=_by_achievement(lead_rows),
        branch_choices=choices,
    )
